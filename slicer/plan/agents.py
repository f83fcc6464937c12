"""
Collaborator interfaces and their agent-CLI implementations.

The engine talks to three collaborators and never to a CLI directly:

- RequirementAnalyzer: feature description -> raw slice proposals
- ArtifactRenderer: (slice, artifact kind) -> markdown content
- BuildAction: slice -> implemented in the codebase

The Command* classes back each one with the command configured for its
stage in agents.yaml (see slicer.lib.agents_config). Tests substitute
plain in-process stubs.
"""

import json
import logging
import os
import re
import subprocess
from pathlib import Path
from typing import Any, Optional, Protocol

from slicer.lib.agents_config import AgentsConfig, get_stage_command
from slicer.lib.prompts import PromptError, build_section, render_prompt
from slicer.plan.errors import AnalyzerError, BuildError, RenderError
from slicer.plan.models import ArtifactKind, Slice

logger = logging.getLogger(__name__)


class RequirementAnalyzer(Protocol):
    def propose(self, feature_name: str, description: str) -> list[Any]:
        """Return raw slice proposals (mappings with name, rationale, priority,
        requires_research, depends_on)."""
        ...


class ArtifactRenderer(Protocol):
    def render(self, slice_: Slice, kind: ArtifactKind) -> str:
        """Return the markdown content of one artifact. Raise on failure."""
        ...


class BuildAction(Protocol):
    def implement(self, slice_: Slice) -> bool:
        """Implement the slice. Return False or raise on failure."""
        ...


def run_agent(
    config: AgentsConfig,
    stage: str,
    prompt: str,
    timeout: int,
    cwd: Optional[Path] = None,
    context: Optional[dict[str, str]] = None,
) -> tuple[bool, str]:
    """Run the stage's command with a prompt and return (success, response).

    Args:
        config: Agent commands
        stage: 'propose', 'render' or 'implement'
        prompt: Prompt text (argument or stdin, depending on the template)
        timeout: Timeout in seconds
        cwd: Working directory for the command
        context: Extra template variables (e.g. workdir)
    """
    ctx = dict(context or {})
    ctx["prompt"] = prompt
    stage_cmd = get_stage_command(config, stage, ctx)

    # Remove ANTHROPIC_API_KEY so Claude uses OAuth
    env = {k: v for k, v in os.environ.items() if k != "ANTHROPIC_API_KEY"}

    logger.debug(f"Running {stage} agent: {stage_cmd.cmd[0]} (timeout {timeout}s)")
    try:
        result = subprocess.run(
            stage_cmd.cmd,
            input=stage_cmd.get_stdin_input(prompt),
            cwd=str(cwd) if cwd else None,
            capture_output=True,
            text=True,
            timeout=timeout,
            env=env,
        )
    except subprocess.TimeoutExpired:
        return False, f"{stage} agent timed out after {timeout}s"
    except FileNotFoundError:
        return False, f"{stage_cmd.cmd[0]} not found in PATH"

    if result.returncode != 0:
        error_msg = result.stderr.strip() or result.stdout.strip()
        if not error_msg:
            error_msg = "(no output)"
        return False, f"{stage} agent failed (exit {result.returncode}): {error_msg}"

    # Unwrap --output-format json if the template asked for it
    response = result.stdout
    try:
        wrapper = json.loads(result.stdout.strip())
        if isinstance(wrapper, dict) and isinstance(wrapper.get("result"), str):
            response = wrapper["result"]
    except json.JSONDecodeError:
        pass

    return True, response


def strip_markdown_fences(text: str) -> str:
    """Strip markdown code fences from text if present."""
    text = text.strip()
    if text.startswith("```"):
        lines = text.split("\n")
        if lines and lines[0].strip().startswith("```"):
            lines = lines[1:]
        if lines and lines[-1].strip() == "```":
            lines = lines[:-1]
        text = "\n".join(lines)
    return text


def extract_json(text: str) -> str:
    """Pull the JSON document out of a response that may have prose around it.

    Tries a fenced block first, then the outermost {...} or [...] span.
    Returns "" if nothing looks like JSON.
    """
    text = text.strip()

    fence_match = re.search(r'```(?:json)?\s*\n([\[{][\s\S]*?[\]}])\s*\n```', text)
    if fence_match:
        return fence_match.group(1)

    starts = [i for i in (text.find("{"), text.find("[")) if i != -1]
    if not starts:
        return ""
    start = min(starts)
    end = text.rfind("}" if text[start] == "{" else "]")
    if end <= start:
        return ""
    return text[start:end + 1]


def parse_proposals(response: str) -> list[dict]:
    """Parse {"slices": [...]} (or a bare list) from an analyzer response.

    Raises:
        AnalyzerError: if the response isn't a list of proposal objects
    """
    json_str = extract_json(strip_markdown_fences(response))
    if not json_str:
        raise AnalyzerError("response contained no JSON")

    try:
        data = json.loads(json_str)
    except json.JSONDecodeError as e:
        raise AnalyzerError(f"invalid JSON in response: {e}") from e

    if isinstance(data, dict):
        data = data.get("slices")
    if not isinstance(data, list):
        raise AnalyzerError("expected a list of slices")
    if not all(isinstance(item, dict) for item in data):
        raise AnalyzerError("every slice must be a JSON object")
    return data


def _dependencies_section(slice_: Slice) -> str:
    deps = "\n".join(f"- {d}" for d in slice_.depends_on)
    return build_section(deps, "## Prerequisite slices", "None. This slice stands on its own.")


def _artifacts_section(slice_: Slice, header: str) -> str:
    parts = []
    for kind in slice_.required_artifacts():
        artifact = slice_.artifacts.get(kind)
        if artifact is not None:
            parts.append(f"### {kind.value}\n\n{artifact.content.strip()}\n")
    return build_section("\n".join(parts), header)


class CommandAnalyzer:
    """RequirementAnalyzer backed by the 'propose' stage command."""

    def __init__(self, config: AgentsConfig, timeout: int = 300, cwd: Optional[Path] = None):
        self.config = config
        self.timeout = timeout
        self.cwd = cwd

    def propose(self, feature_name: str, description: str) -> list[dict]:
        try:
            prompt = render_prompt("propose_slices", feature_name=feature_name, description=description)
        except PromptError as e:
            raise AnalyzerError(str(e)) from e

        success, response = run_agent(self.config, "propose", prompt, self.timeout, cwd=self.cwd)
        if not success:
            raise AnalyzerError(response)
        return parse_proposals(response)


class CommandRenderer:
    """ArtifactRenderer backed by the 'render' stage command.

    Each artifact kind has its own prompt template. Artifacts already
    generated for the slice in this run are passed along as context.
    """

    def __init__(self, config: AgentsConfig, timeout: int = 300, cwd: Optional[Path] = None):
        self.config = config
        self.timeout = timeout
        self.cwd = cwd

    def render(self, slice_: Slice, kind: ArtifactKind) -> str:
        try:
            prompt = render_prompt(
                kind.prompt_name,
                feature_name=slice_.feature,
                slice_name=slice_.name,
                rationale=slice_.rationale or "(no rationale given)",
                priority=slice_.priority,
                dependencies_section=_dependencies_section(slice_),
                prior_artifacts_section=_artifacts_section(slice_, "## Earlier documents for this slice"),
            )
        except PromptError as e:
            raise RenderError(str(e)) from e

        success, response = run_agent(self.config, "render", prompt, self.timeout, cwd=self.cwd)
        if not success:
            raise RenderError(response)

        content = strip_markdown_fences(response)
        if not content.strip():
            raise RenderError("empty response")
        return content


class CommandBuildAction:
    """BuildAction backed by the 'implement' stage command, run inside workdir."""

    def __init__(self, config: AgentsConfig, workdir: Path, timeout: int = 1800):
        self.config = config
        self.workdir = Path(workdir)
        self.timeout = timeout

    def implement(self, slice_: Slice) -> bool:
        try:
            prompt = render_prompt(
                "implement_slice",
                feature_name=slice_.feature,
                slice_name=slice_.name,
                rationale=slice_.rationale or "(no rationale given)",
                artifacts_section=_artifacts_section(slice_, "## Planning documents"),
            )
        except PromptError as e:
            raise BuildError(str(e)) from e

        success, response = run_agent(
            self.config,
            "implement",
            prompt,
            self.timeout,
            cwd=self.workdir,
            context={"workdir": str(self.workdir)},
        )
        if not success:
            raise BuildError(response)

        logger.debug(f"Build agent output for {slice_.name}: {response[:500]}")
        return True
