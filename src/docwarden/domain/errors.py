"""Exception types shared by every layer.

Violations found while validating a document are data (lists of strings),
never exceptions. The types below cover the three things that are *not*
recoverable into a violation list, plus one for unreadable input files:

- ``ConfigurationError``: a document definition is malformed. Fatal.
- ``ExpiryError``: an expiry constraint resolved to something unusable. Fatal.
- ``AccessDenied``: the host refused a requirement (channel, role, user).
- ``DocumentFileError``: a document file is unreadable or malformed.
"""

from __future__ import annotations

from collections.abc import Iterable


class DocwardenError(Exception):
    """Base class for all docwarden errors."""


class ConfigurationError(DocwardenError):
    """A document definition failed to compile or resolved to an invalid shape.

    Attributes:
        problems: Every individual problem found, in discovery order.
    """

    def __init__(self, message: str, problems: Iterable[str] = ()) -> None:
        self.problems = list(problems)
        if self.problems:
            message = f"{message}: " + "; ".join(self.problems)
        super().__init__(message)


class ExpiryError(ConfigurationError):
    """An expiry constraint could not be converted into an expiry directive."""


class AccessDenied(DocwardenError):
    """Denial signal raised by host requirement primitives.

    Attributes:
        forbidden: The user-visible denial message.
    """

    def __init__(self, forbidden: str) -> None:
        self.forbidden = forbidden
        super().__init__(forbidden)


class DocumentFileError(DocwardenError):
    """A document file could not be read or is not a JSON/YAML object."""
