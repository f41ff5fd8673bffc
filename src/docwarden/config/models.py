"""Pydantic configuration models with code-baked defaults.

Sparse TOML contract: defaults baked here, docwarden.toml only contains
overrides. A project needs only ``[definitions] path``.
"""

from __future__ import annotations

from pydantic import BaseModel, Field

# --- docwarden.toml sections ---


class DefinitionsConfig(BaseModel):
    """[definitions] section."""

    model_config = {"frozen": True}

    path: str | None = None
    attribute: str = "definitions"


class HostConfig(BaseModel):
    """[host] section: the default simulated user for ``docwarden write``."""

    model_config = {"frozen": True}

    name: str | None = None
    roles: list[str] = Field(default_factory=list)
    channels: list[str] = Field(default_factory=list)
    admin: bool = False


class PluginsConfig(BaseModel):
    """[plugins] section."""

    model_config = {"frozen": True}

    enabled: bool = True
    local_dir: str | None = None
