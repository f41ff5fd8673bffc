"""Unified settings: CLI flags, env vars and TOML config in one object.

Priority chain (highest to lowest):
  1. Init kwargs: CLI flags passed by Click
  2. Env vars: ``DOCWARDEN_*`` prefix, ``__`` between nested names
  3. TOML file: ``docwarden.toml`` discovered via walk-up
  4. Code defaults baked into the section models
"""

from __future__ import annotations

import logging
import threading
import tomllib
from pathlib import Path
from typing import Any

from pydantic import Field
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource

from docwarden.config.discovery import find_config
from docwarden.config.models import DefinitionsConfig, HostConfig, PluginsConfig
from docwarden.domain.errors import ConfigurationError


TOML_SECTIONS = frozenset({"definitions", "host", "plugins"})

logger = logging.getLogger(__name__)


def read_toml(path: Path) -> dict[str, Any]:
    """Parse *path*, dropping (with a warning) top-level keys docwarden does not know.

    Raises:
        ConfigurationError: when the file is not valid TOML.
    """
    try:
        data = tomllib.loads(path.read_text(encoding="utf-8"))
    except tomllib.TOMLDecodeError as exc:
        raise ConfigurationError(f"Invalid TOML in {path}: {exc}") from exc
    unknown = sorted(set(data) - TOML_SECTIONS)
    if unknown:
        logger.warning("Ignoring unknown sections in %s: %s", path, ", ".join(unknown))
    return {key: value for key, value in data.items() if key in TOML_SECTIONS}


class TomlSettingsSource(PydanticBaseSettingsSource):
    """The sections of one ``docwarden.toml``, below env vars in priority."""

    def __init__(self, settings_cls: type[BaseSettings], toml_path: Path | None) -> None:
        super().__init__(settings_cls)
        self._data = read_toml(toml_path) if toml_path is not None else {}

    def get_field_value(self, field: Any, field_name: str) -> tuple[Any, str, bool]:
        return self._data.get(field_name), field_name, field_name in self._data

    def __call__(self) -> dict[str, Any]:
        return self._data


# The TOML path for the settings object under construction; settings_customise_sources
# is a classmethod and cannot receive it as an argument.
_construction = threading.local()


class DocwardenSettings(BaseSettings):
    """Unified settings for the docwarden CLI.

    Built once per invocation by the root command and held by ``AppContext``.

    Attributes:
        project_root: Directory relative paths are resolved against (parent
            of ``docwarden.toml``, or CWD if no config was found).
        config_path: The config file in use, if any.
    """

    model_config = {
        "frozen": True,
        "env_prefix": "DOCWARDEN_",
        "env_nested_delimiter": "__",
    }

    project_root: Path = Field(default_factory=Path.cwd)
    config_path: Path | None = None

    # --- CLI flags ---
    json_output: bool = False
    quiet: bool = False
    verbose: bool = False
    log_json: bool = False

    # --- TOML sections ---
    definitions: DefinitionsConfig = Field(default_factory=DefinitionsConfig)
    host: HostConfig = Field(default_factory=HostConfig)
    plugins: PluginsConfig = Field(default_factory=PluginsConfig)

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
        toml_path = getattr(_construction, "toml_path", None)
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
        project_root: Path | None = None,
        **cli_flags: Any,
    ) -> DocwardenSettings:
        """Construct settings from a CLI invocation.

        Discovers ``docwarden.toml`` via walk-up (or explicit *config_path*)
        and merges CLI flags as highest-priority overrides.

        Raises:
            ConfigurationError: when *config_path* does not exist or the
                config file is not valid TOML.
        """
        toml_path: Path | None
        if config_path:
            toml_path = Path(config_path).expanduser()
            if not toml_path.is_file():
                raise ConfigurationError(f"config file not found: {toml_path}")
        else:
            toml_path = find_config(project_root)

        resolved_root = project_root
        if resolved_root is None:
            resolved_root = toml_path.parent.resolve() if toml_path else Path.cwd()

        _construction.toml_path = toml_path
        try:
            return cls(project_root=resolved_root, config_path=toml_path, **cli_flags)
        finally:
            _construction.toml_path = None

    # --- derived values ---

    @property
    def definitions_source(self) -> str | Path | None:
        """The configured definitions module: a resolved file path or a dotted name."""
        source = self.definitions.path
        if source is None:
            return None
        if source.endswith(".py") or "/" in source:
            path = Path(source).expanduser()
            return path if path.is_absolute() else self.project_root / path
        return source

    @property
    def plugins_dir(self) -> Path | None:
        local_dir = self.plugins.local_dir
        if local_dir is None:
            return None
        path = Path(local_dir).expanduser()
        return path if path.is_absolute() else self.project_root / path
