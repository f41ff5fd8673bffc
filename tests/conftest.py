"""Shared pytest fixtures and test helpers for docwarden tests."""

from __future__ import annotations

from collections.abc import Mapping
from pathlib import Path
from typing import Any

import pytest
from click.testing import CliRunner

from docwarden.domain.definitions import DocumentDefinitions, compile_definitions, simple_type_filter
from docwarden.services.dispatcher import WriteProcessor
from docwarden.services.host import SimulatedHost, UserContext

DEFINITIONS_MODULE = '''\
from docwarden.domain.definitions import simple_type_filter

definitions = {
    "notification": {
        "typeFilter": simple_type_filter,
        "channels": {"write": "notifications"},
        "propertyValidators": {
            "message": {"type": "string", "required": True, "mustNotBeEmpty": True},
            "priority": {"type": "integer", "minimumValue": 1, "maximumValue": 5},
        },
    },
    "config": {
        "typeFilter": lambda doc, old_doc, doc_type: doc.get("_id") == "config",
        "authorizedRoles": {"write": "admin"},
        "propertyValidators": {"theme": {"type": "enum", "predefinedValues": ["dark", "light"]}},
    },
}
'''


@pytest.fixture
def cli_runner() -> CliRunner:
    """Provide a Click CLI test runner."""
    return CliRunner()


@pytest.fixture
def host() -> SimulatedHost:
    """A host acting for a plain user with no channels or roles."""
    return SimulatedHost(UserContext(name="alice"))


@pytest.fixture
def admin_host() -> SimulatedHost:
    return SimulatedHost(UserContext(admin=True))


@pytest.fixture
def project_root(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Temporary project with a definitions module and a docwarden.toml.

    CWD is moved into the project so CLI commands discover its config.
    """
    monkeypatch.delenv("DOCWARDEN_CONFIG", raising=False)
    (tmp_path / "sync_definitions.py").write_text(DEFINITIONS_MODULE, encoding="utf-8")
    (tmp_path / "docwarden.toml").write_text(
        '[definitions]\npath = "sync_definitions.py"\n\n[plugins]\nenabled = false\n',
        encoding="utf-8",
    )
    monkeypatch.chdir(tmp_path)
    return tmp_path


# ---------------------------------------------------------------------------
# Shared test helpers
# ---------------------------------------------------------------------------


def single_type(
    property_validators: Mapping[str, Any] | Any,
    *,
    doc_type: str = "widget",
    **definition: Any,
) -> DocumentDefinitions:
    """Compile one simple-filter type writable through the ``edit`` channel."""
    raw: dict[str, Any] = {
        "typeFilter": simple_type_filter,
        "channels": {"write": "edit"},
        "propertyValidators": property_validators,
    }
    raw.update(definition)
    return compile_definitions({doc_type: raw})


def processor_for(property_validators: Mapping[str, Any] | Any, **definition: Any) -> WriteProcessor:
    return WriteProcessor(single_type(property_validators, **definition))


def violations_for(
    property_validators: Mapping[str, Any] | Any,
    doc: Mapping[str, Any],
    old_doc: Mapping[str, Any] | None = None,
    **definition: Any,
) -> list[str]:
    """Violations for a ``widget`` write (the ``type`` property is added)."""
    processor = processor_for(property_validators, **definition)
    doc = {"type": "widget", **doc}
    if old_doc is not None:
        old_doc = {"type": "widget", **old_doc}
    return processor.validate("widget", doc, old_doc)
