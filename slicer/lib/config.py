"""
Configuration loader for slicer.

Project settings live in slicer.env inside the project directory. Every key is
optional; a missing file yields the defaults.
"""

import logging
from dataclasses import dataclass
from pathlib import Path

from . import envparse
from .constants import PROJECT_ENV_FILE

logger = logging.getLogger(__name__)

DEFAULT_FEATURES_DIR = "features"
DEFAULT_PROPOSE_TIMEOUT = 300
DEFAULT_RENDER_TIMEOUT = 300
DEFAULT_IMPLEMENT_TIMEOUT = 1800
DEFAULT_LOCK_TIMEOUT = 60
DEFAULT_MAX_WORKERS = 1


@dataclass
class ProjectConfig:
    """Project-level configuration from slicer.env"""
    project_dir: Path
    features_dir: Path  # Where feature directories are written
    workdir: Path  # cwd for agent commands (build actions edit code here)
    propose_timeout: int
    render_timeout: int
    implement_timeout: int
    lock_timeout: int
    max_workers: int  # 1 = strictly sequential


def _positive_int(env: dict, key: str, default: int) -> int:
    """Read a positive int, falling back to default with a warning."""
    raw = env.get(key)
    if raw is None or raw == "":
        return default
    try:
        value = int(raw)
    except ValueError:
        logger.warning(f"Invalid {key} '{raw}' in {PROJECT_ENV_FILE}, using {default}")
        return default
    if value < 1:
        logger.warning(f"{key} must be >= 1 (got {value}), using {default}")
        return default
    return value


def _resolve_dir(project_dir: Path, value: str) -> Path:
    path = Path(value).expanduser()
    return path if path.is_absolute() else project_dir / path


def load_project_config(project_dir: Path) -> ProjectConfig:
    """Load slicer.env from project_dir and return ProjectConfig.

    Raises:
        ValueError: if slicer.env exists but is malformed
    """
    project_dir = Path(project_dir)
    env_path = project_dir / PROJECT_ENV_FILE
    env = envparse.load_env(env_path) if env_path.exists() else {}

    return ProjectConfig(
        project_dir=project_dir,
        features_dir=_resolve_dir(project_dir, env.get("FEATURES_DIR") or DEFAULT_FEATURES_DIR),
        workdir=_resolve_dir(project_dir, env.get("WORKDIR") or "."),
        propose_timeout=_positive_int(env, "PROPOSE_TIMEOUT", DEFAULT_PROPOSE_TIMEOUT),
        render_timeout=_positive_int(env, "RENDER_TIMEOUT", DEFAULT_RENDER_TIMEOUT),
        implement_timeout=_positive_int(env, "IMPLEMENT_TIMEOUT", DEFAULT_IMPLEMENT_TIMEOUT),
        lock_timeout=_positive_int(env, "LOCK_TIMEOUT", DEFAULT_LOCK_TIMEOUT),
        max_workers=_positive_int(env, "MAX_WORKERS", DEFAULT_MAX_WORKERS),
    )
