"""Locate the ``binderctl.toml`` that governs a binder workspace.

``BINDERCTL_CONFIG`` wins when set. Otherwise the search walks up from the
starting directory and stops at the first directory that owns a workspace:
one holding ``binderctl.toml`` or the ``.binderctl/`` data directory. A data
directory with no config file next to it runs on defaults, so a nested
workspace never inherits a parent workspace's quotas or remote.
"""

from __future__ import annotations

import os
import tomllib
from pathlib import Path
from typing import Any

from binderctl.config.models import BinderctlConfig
from binderctl.infrastructure.database.engine import WORKSPACE_DIRNAME

CONFIG_FILENAME = "binderctl.toml"
CONFIG_ENV_VAR = "BINDERCTL_CONFIG"


def _ancestors(start: Path) -> list[Path]:
    resolved = start.resolve()
    return [resolved, *resolved.parents]


def find_config(start: Path | None = None) -> Path | None:
    """Config file for the workspace at or above *start* (default: cwd)."""
    env_path = os.environ.get(CONFIG_ENV_VAR)
    if env_path:
        path = Path(env_path)
        return path if path.is_file() else None

    for directory in _ancestors(start or Path.cwd()):
        candidate = directory / CONFIG_FILENAME
        if candidate.is_file():
            return candidate
        if (directory / WORKSPACE_DIRNAME).is_dir():
            return None
    return None


def load_config(path: Path | None = None, cwd: Path | None = None) -> BinderctlConfig:
    """Parse the workspace config, falling back to code defaults."""
    path = path or find_config(cwd)
    if path is None:
        return BinderctlConfig()
    data: dict[str, Any] = tomllib.loads(path.read_text(encoding="utf-8"))
    return BinderctlConfig.model_validate(data)
