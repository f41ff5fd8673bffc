"""ServiceResult and ServiceError: the contract between services and the CLI.

INVARIANT: every command-facing service method returns a ServiceResult.
A rejected or denied write is a failed result, not an exception.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


class ServiceError(BaseModel):
    """Why an operation failed.

    ``code`` is one of ``invalid_definitions``, ``rejected`` or ``denied``;
    ``detail`` carries the individual ``problems`` or ``violations``.
    """

    model_config = {"frozen": True}

    code: str
    message: str
    detail: dict[str, Any] = Field(default_factory=dict)

    @property
    def reasons(self) -> list[str]:
        """The individual problems or violations behind the message."""
        return list(self.detail.get("violations") or self.detail.get("problems") or [])


class ServiceResult(BaseModel):
    """Return type of command-facing service operations.

    Attributes:
        ok: Whether the operation succeeded.
        op: Name of the operation (``check``, ``types`` or ``write``).
        data: Operation-specific payload; a failed write still reports its outcome.
        warnings: Non-fatal issues encountered during the operation.
        error: Structured error if ``ok`` is False.
    """

    model_config = {"frozen": True}

    ok: bool
    op: str
    data: dict[str, Any] = Field(default_factory=dict)
    warnings: list[str] = Field(default_factory=list)
    error: ServiceError | None = None

    @classmethod
    def success(cls, op: str, data: dict[str, Any], warnings: list[str] | None = None) -> ServiceResult:
        return cls(ok=True, op=op, data=data, warnings=warnings or [])

    @classmethod
    def failure(
        cls,
        op: str,
        code: str,
        message: str,
        *,
        data: dict[str, Any] | None = None,
        **detail: Any,
    ) -> ServiceResult:
        error = ServiceError(code=code, message=message, detail=detail)
        return cls(ok=False, op=op, data=data or {}, error=error)
