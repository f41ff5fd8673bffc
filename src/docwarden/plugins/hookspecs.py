"""Pluggy hook specifications for docwarden write lifecycle events.

Four outcome events are dispatched synchronously after each write stage.
One setup-time hook lets plugins contribute extra document types.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

import pluggy

hookspec = pluggy.HookspecMarker("docwarden")
hookimpl = pluggy.HookimplMarker("docwarden")


class DocwardenHookSpec:
    """Hook specifications for the docwarden plugin system."""

    @hookspec
    def post_authorize(
        self,
        doc_type: str,
        doc_id: str | None,
        operation: str,
        authorized: bool,
    ) -> None:
        """Called after the authorization stage, whatever its result."""

    @hookspec
    def post_accept(
        self,
        doc_type: str | None,
        doc_id: str | None,
        operation: str,
        channels: list[str],
    ) -> None:
        """Called after a write is accepted and its channels assigned."""

    @hookspec
    def post_reject(
        self,
        doc_type: str | None,
        doc_id: str | None,
        violations: list[str],
    ) -> None:
        """Called after a write is rejected as invalid."""

    @hookspec
    def post_deny(
        self,
        doc_type: str | None,
        doc_id: str | None,
        message: str,
    ) -> None:
        """Called after a write is refused for lack of permission."""

    @hookspec
    def register_document_definitions(self) -> Mapping[str, Any] | None:
        """Return raw document definitions to add to the loaded set."""
