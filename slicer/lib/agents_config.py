"""
Agent command configuration.

Loads agents.yaml to decide which CLI command backs each collaborator stage.
Without a config file the defaults below are used.

STAGE COMMAND TEMPLATES
=======================

Each stage maps to a command template with {variable} substitution:

- {prompt}: The prompt text. If present, it is passed as a CLI argument;
  otherwise the prompt goes to the command's stdin.
- {workdir}: Directory the command runs in (the codebase a build action
  edits). Required by the implement stage.

Example agents.yaml:

    stages:
      render: claude --print --model sonnet
      implement: codex exec --full-auto -C {workdir} {prompt}
"""

import logging
import re
import shlex
import shutil
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

import yaml

from .constants import AGENTS_CONFIG_FILE

logger = logging.getLogger(__name__)


DEFAULT_STAGE_COMMANDS = {
    "propose": "claude --print",
    # Feature description -> slice proposals JSON

    "render": "claude --print",
    # Slice + artifact kind -> markdown document

    "implement": "claude --dangerously-skip-permissions -p {prompt}",
    # Builds one slice end to end inside {workdir}
}

STAGE_REQUIRED_VARIABLES = {
    "implement": ["workdir"],
}


@dataclass
class AgentsConfig:
    """Agent configuration from agents.yaml."""
    stages: dict[str, str] = field(default_factory=lambda: DEFAULT_STAGE_COMMANDS.copy())


def load_agents_config(project_dir: Optional[Path]) -> AgentsConfig:
    """Load agents.yaml and return AgentsConfig.

    If project_dir is None, the file is missing, or it doesn't parse,
    returns defaults.
    """
    if project_dir is None:
        return AgentsConfig()

    config_path = project_dir / AGENTS_CONFIG_FILE
    if not config_path.exists():
        return AgentsConfig()

    try:
        data = yaml.safe_load(config_path.read_text())
        stages = DEFAULT_STAGE_COMMANDS.copy()
        if isinstance(data, dict) and isinstance(data.get("stages"), dict):
            for stage, command in data["stages"].items():
                if stage not in DEFAULT_STAGE_COMMANDS:
                    logger.warning(f"Ignoring unknown stage '{stage}' in {config_path}")
                    continue
                stages[stage] = str(command)
        return AgentsConfig(stages=stages)
    except yaml.YAMLError as e:
        logger.warning(f"Failed to parse {config_path}: {e}")
        return AgentsConfig()


@dataclass
class StageCommand:
    """Result of building a stage command."""
    cmd: list[str]  # Command ready for subprocess
    prompt_via_stdin: bool

    def get_stdin_input(self, prompt: str) -> str | None:
        """Return prompt if it should be passed via stdin, else None."""
        return prompt if self.prompt_via_stdin else None


def get_stage_command(
    config: AgentsConfig,
    stage: str,
    context: dict[str, str] | None = None,
) -> StageCommand:
    """Build command list for a stage with variable substitution.

    Raises:
        ValueError: If stage is unknown or required variables are missing.

    Example:
        >>> config = AgentsConfig()
        >>> result = get_stage_command(config, "implement", {"workdir": "/tmp/app", "prompt": "build it"})
        >>> result.cmd
        ['claude', '--dangerously-skip-permissions', '-p', 'build it']
    """
    if stage not in config.stages:
        raise ValueError(f"Unknown stage: {stage}")

    required_vars = STAGE_REQUIRED_VARIABLES.get(stage, [])
    if required_vars:
        context_keys = set(context.keys()) if context else set()
        missing = [v for v in required_vars if v not in context_keys]
        if missing:
            raise ValueError(
                f"Stage '{stage}' requires variables {required_vars} in context, "
                f"but missing: {missing}"
            )

    cmd_template = config.stages[stage]
    prompt_via_stdin = "{prompt}" not in cmd_template

    # Pull the prompt out before shlex so quotes in it can't break parsing
    prompt_value = None
    if context and "prompt" in context:
        prompt_value = context["prompt"]
        cmd_template = cmd_template.replace("{prompt}", "__PROMPT_PLACEHOLDER__")

    if context:
        for key, value in context.items():
            if key != "prompt":
                cmd_template = cmd_template.replace(f"{{{key}}}", str(value))

    remaining_vars = re.findall(r'\{(\w+)\}', cmd_template)
    if remaining_vars:
        logger.error(
            f"Stage '{stage}' has unsubstituted variables: {remaining_vars}. "
            f"Template: {cmd_template}"
        )

    cmd = shlex.split(cmd_template)

    if prompt_value is not None:
        cmd = [prompt_value if arg == "__PROMPT_PLACEHOLDER__" else arg for arg in cmd]

    return StageCommand(cmd=cmd, prompt_via_stdin=prompt_via_stdin)


def get_stage_binary(config: AgentsConfig, stage: str) -> str:
    """Get the binary name for a stage (first element of command)."""
    if stage not in config.stages:
        raise ValueError(f"Unknown stage: {stage}")

    parts = shlex.split(config.stages[stage])
    return parts[0] if parts else ""


def missing_stage_binaries(config: AgentsConfig, stages: list[str]) -> dict[str, list[str]]:
    """Map each binary not found in PATH to the stages that need it."""
    missing: dict[str, list[str]] = {}
    for stage in stages:
        binary = get_stage_binary(config, stage)
        if shutil.which(binary) is None:
            missing.setdefault(binary, []).append(stage)
    return missing
