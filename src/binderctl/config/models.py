"""Pydantic configuration models with code-baked defaults.

Sparse TOML contract: defaults baked here, binderctl.toml only contains
overrides. A fresh workspace needs no config file at all.
"""

from __future__ import annotations

from pydantic import BaseModel, Field

from binderctl.domain.rate_limit import SaveRatePolicy
from binderctl.domain.reverse_holo import REVERSE_HOLO_RARITIES


class WorkspaceConfig(BaseModel):
    """[workspace] section."""

    model_config = {"frozen": True}

    owner: str = "local-user"
    user_type: str = "registered"


class BinderConfig(BaseModel):
    """[binder] section."""

    model_config = {"frozen": True}

    default_grid_size: str = "3x3"
    default_page_count: int = 1
    guest_max_pages: int = 10
    registered_max_pages: int = 50

    def max_pages(self, user_type: str) -> int:
        return self.guest_max_pages if user_type == "guest" else self.registered_max_pages


class LayoutConfig(BaseModel):
    """[layout] section."""

    model_config = {"frozen": True}

    reverse_holo_rarities: list[str] = Field(
        default_factory=lambda: sorted(REVERSE_HOLO_RARITIES),
    )


class SaveRateConfig(BaseModel):
    """[save_rate] section."""

    model_config = {"frozen": True}

    enforce: bool = True
    guest_saves_per_minute: int = 3
    guest_saves_per_hour: int = 15
    registered_saves_per_minute: int = 10
    registered_saves_per_hour: int = 60
    cooldown_seconds: float = 2.0

    def policy_for(self, user_type: str) -> SaveRatePolicy:
        """Resolve the quota set for *user_type* (``guest`` or ``registered``)."""
        if user_type == "guest":
            per_minute, per_hour = self.guest_saves_per_minute, self.guest_saves_per_hour
        else:
            per_minute, per_hour = (
                self.registered_saves_per_minute,
                self.registered_saves_per_hour,
            )
        return SaveRatePolicy(
            saves_per_minute=per_minute,
            saves_per_hour=per_hour,
            cooldown_seconds=self.cooldown_seconds,
            enforce=self.enforce,
        )


class SyncConfig(BaseModel):
    """[sync] section."""

    model_config = {"frozen": True}

    timeout_seconds: float = 30.0


class RemoteConfig(BaseModel):
    """[remote] section.

    ``path`` is relative to the workspace root unless absolute.
    """

    model_config = {"frozen": True}

    path: str = ".binderctl/remote.db"


class BinderctlConfig(BaseModel):
    """Root configuration composing all sections."""

    model_config = {"frozen": True}

    workspace: WorkspaceConfig = Field(default_factory=WorkspaceConfig)
    binder: BinderConfig = Field(default_factory=BinderConfig)
    layout: LayoutConfig = Field(default_factory=LayoutConfig)
    save_rate: SaveRateConfig = Field(default_factory=SaveRateConfig)
    sync: SyncConfig = Field(default_factory=SyncConfig)
    remote: RemoteConfig = Field(default_factory=RemoteConfig)
