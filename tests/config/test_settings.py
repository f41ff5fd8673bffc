"""Tests for DocwardenSettings: unified settings with TOML source."""

from __future__ import annotations

import logging
from pathlib import Path

import pytest

from docwarden.config.settings import DocwardenSettings
from docwarden.domain.errors import ConfigurationError


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in ("DOCWARDEN_CONFIG", "DOCWARDEN_HOST__NAME", "DOCWARDEN_DEFINITIONS__PATH"):
        monkeypatch.delenv(name, raising=False)


class TestDefaults:
    def test_all_defaults(self, tmp_path: Path) -> None:
        settings = DocwardenSettings.from_cli(project_root=tmp_path)
        assert settings.project_root == tmp_path
        assert settings.json_output is False
        assert settings.definitions.path is None
        assert settings.definitions_source is None
        assert settings.plugins_dir is None
        assert settings.plugins.enabled is True

    def test_frozen(self, tmp_path: Path) -> None:
        settings = DocwardenSettings.from_cli(project_root=tmp_path)
        with pytest.raises(Exception):
            settings.quiet = True  # type: ignore[misc]


class TestTomlSource:
    def test_loads_from_toml(self, tmp_path: Path) -> None:
        (tmp_path / "docwarden.toml").write_text(
            '[definitions]\npath = "schema/defs.py"\n[host]\nname = "alice"\nchannels = ["edit"]\n'
        )
        settings = DocwardenSettings.from_cli(project_root=tmp_path)
        assert settings.host.name == "alice"
        assert settings.host.channels == ["edit"]
        assert settings.definitions_source == tmp_path / "schema" / "defs.py"
        assert settings.host.admin is False

    def test_project_root_is_config_directory(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        (tmp_path / "docwarden.toml").write_text('[plugins]\nlocal_dir = "plugins"\n')
        child = tmp_path / "sub"
        child.mkdir()
        monkeypatch.chdir(child)
        settings = DocwardenSettings.from_cli()
        assert settings.project_root == tmp_path.resolve()
        assert settings.config_path == tmp_path.resolve() / "docwarden.toml"
        assert settings.plugins_dir == tmp_path.resolve() / "plugins"

    def test_dotted_module_source(self, tmp_path: Path) -> None:
        (tmp_path / "docwarden.toml").write_text('[definitions]\npath = "myapp.sync"\n')
        settings = DocwardenSettings.from_cli(project_root=tmp_path)
        assert settings.definitions_source == "myapp.sync"

    def test_explicit_config_path(self, tmp_path: Path) -> None:
        custom = tmp_path / "custom" / "my.toml"
        custom.parent.mkdir(parents=True)
        custom.write_text('[host]\nname = "custom"\n')
        settings = DocwardenSettings.from_cli(config_path=str(custom), project_root=tmp_path)
        assert settings.host.name == "custom"
        assert settings.config_path == custom

    def test_invalid_toml(self, tmp_path: Path) -> None:
        (tmp_path / "docwarden.toml").write_text("[host\n")
        with pytest.raises(ConfigurationError, match="Invalid TOML"):
            DocwardenSettings.from_cli(project_root=tmp_path)

    def test_missing_explicit_config(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigurationError, match="config file not found"):
            DocwardenSettings.from_cli(config_path=str(tmp_path / "absent.toml"), project_root=tmp_path)

    def test_unknown_sections_ignored(self, tmp_path: Path, caplog: pytest.LogCaptureFixture) -> None:
        caplog.set_level(logging.WARNING, logger="docwarden.config.settings")
        (tmp_path / "docwarden.toml").write_text('[host]\nname = "alice"\n\n[vault]\npath = "x"\n')
        settings = DocwardenSettings.from_cli(project_root=tmp_path)
        assert settings.host.name == "alice"
        assert "Ignoring unknown sections" in caplog.text
        assert "vault" in caplog.text


class TestPriority:
    def test_env_overrides_toml(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        (tmp_path / "docwarden.toml").write_text('[host]\nname = "alice"\n')
        monkeypatch.setenv("DOCWARDEN_HOST__NAME", "bob")
        settings = DocwardenSettings.from_cli(project_root=tmp_path)
        assert settings.host.name == "bob"

    def test_cli_flags_override_everything(self, tmp_path: Path) -> None:
        settings = DocwardenSettings.from_cli(project_root=tmp_path, json_output=True, verbose=True)
        assert settings.json_output is True
        assert settings.verbose is True
