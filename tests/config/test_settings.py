"""Tests for BinderSettings: unified settings with TOML source."""

from pathlib import Path

import click
import pytest

from binderctl.config.settings import BinderSettings


class TestDefaults:
    def test_all_defaults(self, tmp_path: Path) -> None:
        settings = BinderSettings.from_cli(root=tmp_path)
        assert settings.root == tmp_path
        assert settings.config_path is None
        assert settings.json_output is False
        assert settings.quiet is False
        assert settings.workspace.owner == "local-user"
        assert settings.max_pages == 50

    def test_frozen(self, tmp_path: Path) -> None:
        settings = BinderSettings.from_cli(root=tmp_path)
        with pytest.raises(Exception):
            settings.quiet = True  # type: ignore[misc]

    def test_remote_path_relative_to_root(self, tmp_path: Path) -> None:
        settings = BinderSettings.from_cli(root=tmp_path)
        assert settings.remote_path == tmp_path / ".binderctl" / "remote.db"

    def test_remote_path_absolute(self, tmp_path: Path) -> None:
        target = tmp_path / "shared" / "remote.db"
        settings = BinderSettings.from_cli(root=tmp_path, remote={"path": str(target)})
        assert settings.remote_path == target


class TestTomlSource:
    def test_loads_from_toml(self, tmp_path: Path) -> None:
        (tmp_path / "binderctl.toml").write_text(
            '[workspace]\nowner = "brock"\nuser_type = "guest"\n[save_rate]\ncooldown_seconds = 5\n'
        )
        settings = BinderSettings.from_cli(root=tmp_path)
        assert settings.workspace.owner == "brock"
        assert settings.max_pages == 10
        assert settings.save_rate.cooldown_seconds == 5
        assert settings.save_rate.guest_saves_per_minute == 3  # default preserved

    def test_explicit_config_path(self, tmp_path: Path) -> None:
        custom = tmp_path / "custom" / "my.toml"
        custom.parent.mkdir(parents=True)
        custom.write_text('[workspace]\nowner = "custom"\n')
        settings = BinderSettings.from_cli(config_path=str(custom), root=tmp_path)
        assert settings.workspace.owner == "custom"
        assert settings.config_path == custom

    def test_root_from_toml_location(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        subdir = tmp_path / "sub" / "deep"
        subdir.mkdir(parents=True)
        (tmp_path / "binderctl.toml").write_text("")
        monkeypatch.chdir(subdir)
        settings = BinderSettings.from_cli()
        assert settings.root.resolve() == tmp_path.resolve()

    def test_invalid_toml(self, tmp_path: Path) -> None:
        (tmp_path / "binderctl.toml").write_text("[workspace\n")
        with pytest.raises(click.ClickException, match="Invalid TOML"):
            BinderSettings.from_cli(root=tmp_path)


class TestPriority:
    def test_cli_flags_override(self, tmp_path: Path) -> None:
        settings = BinderSettings.from_cli(root=tmp_path, json_output=True, verbose=True)
        assert settings.json_output is True
        assert settings.verbose is True

    def test_env_var_override(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("BINDERCTL_QUIET", "true")
        assert BinderSettings.from_cli(root=tmp_path).quiet is True

    def test_nested_env_var_beats_toml(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        (tmp_path / "binderctl.toml").write_text("[sync]\ntimeout_seconds = 10\n")
        monkeypatch.setenv("BINDERCTL_SYNC__TIMEOUT_SECONDS", "2.5")
        settings = BinderSettings.from_cli(root=tmp_path)
        assert settings.sync.timeout_seconds == 2.5
