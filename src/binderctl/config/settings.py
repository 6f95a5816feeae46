"""Unified settings: CLI flags, env vars, and TOML config in one object.

Priority chain (highest to lowest):
  1. Init kwargs  (CLI flags passed by Click)
  2. Env vars     (``BINDERCTL_*`` prefix)
  3. TOML file    (``binderctl.toml`` discovered via walk-up)
  4. Code defaults baked into the section models
"""

from __future__ import annotations

import threading
import tomllib
from pathlib import Path
from typing import Any

import click
from pydantic import Field
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource

from binderctl.config.discovery import find_config
from binderctl.config.models import (
    BinderConfig,
    LayoutConfig,
    RemoteConfig,
    SaveRateConfig,
    SyncConfig,
    WorkspaceConfig,
)


class TomlSettingsSource(PydanticBaseSettingsSource):
    """Read settings from a ``binderctl.toml`` file discovered via walk-up."""

    def __init__(self, settings_cls: type[BaseSettings], toml_path: Path | None) -> None:
        super().__init__(settings_cls)
        self._data: dict[str, Any] = {}
        if toml_path and toml_path.is_file():
            raw = toml_path.read_text(encoding="utf-8")
            try:
                self._data = tomllib.loads(raw)
            except tomllib.TOMLDecodeError as exc:
                msg = f"Invalid TOML in {toml_path}: {exc}"
                raise click.ClickException(msg) from exc

    def get_field_value(self, field: Any, field_name: str) -> tuple[Any, str, bool]:
        val = self._data.get(field_name)
        return val, field_name, field_name in self._data

    def __call__(self) -> dict[str, Any]:
        return self._data


# Thread-local storage for the TOML path during construction.
_tls = threading.local()


class BinderSettings(BaseSettings):
    """Settings for the binderctl CLI and services.

    Attributes:
        root: Workspace directory (parent of ``binderctl.toml``, or CWD).
        config_path: Config file in effect, or None when defaults apply.
    """

    model_config = {
        "frozen": True,
        "env_prefix": "BINDERCTL_",
        "env_nested_delimiter": "__",
    }

    root: Path = Field(default_factory=Path.cwd)
    config_path: Path | None = None

    # --- CLI flags ---
    json_output: bool = False
    quiet: bool = False
    verbose: bool = False
    log_json: bool = False

    # --- TOML sections ---
    workspace: WorkspaceConfig = Field(default_factory=WorkspaceConfig)
    binder: BinderConfig = Field(default_factory=BinderConfig)
    layout: LayoutConfig = Field(default_factory=LayoutConfig)
    save_rate: SaveRateConfig = Field(default_factory=SaveRateConfig)
    sync: SyncConfig = Field(default_factory=SyncConfig)
    remote: RemoteConfig = Field(default_factory=RemoteConfig)

    @property
    def max_pages(self) -> int:
        return self.binder.max_pages(self.workspace.user_type)

    @property
    def remote_path(self) -> Path:
        path = Path(self.remote.path)
        return path if path.is_absolute() else self.root / path

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Insert the TOML source between env vars and defaults."""
        toml_path = getattr(_tls, "toml_path", None)
        return (
            init_settings,
            env_settings,
            TomlSettingsSource(settings_cls, toml_path),
        )

    @classmethod
    def from_cli(
        cls,
        *,
        config_path: str | None = None,
        root: Path | None = None,
        **cli_flags: Any,
    ) -> BinderSettings:
        """Construct settings from a CLI invocation.

        Discovers ``binderctl.toml`` via walk-up (or explicit *config_path*),
        resolves *root* from the config file's parent directory, and merges
        CLI flags as highest-priority overrides.
        """
        toml_path: Path | None = None
        if config_path:
            p = Path(config_path)
            if p.is_file():
                toml_path = p
        else:
            toml_path = find_config(root)

        resolved_root = root
        if resolved_root is None:
            resolved_root = toml_path.parent if toml_path else Path.cwd()

        _tls.toml_path = toml_path
        try:
            return cls(root=resolved_root, config_path=toml_path, **cli_flags)
        finally:
            _tls.toml_path = None
