"""Document expiry.

An expiry constraint resolves to one of:

- a number of seconds: relative to now when at most 30 days, otherwise an
  absolute Unix timestamp;
- an ISO 8601 date or datetime string, passed to the host verbatim;
- a ``date`` or ``datetime``, passed to the host as whole epoch seconds.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Callable
from datetime import UTC, date, datetime, timedelta
from typing import Any

from docwarden.domain import messages
from docwarden.domain.definitions import resolve_document_constraint
from docwarden.domain.documents import Document, document_id
from docwarden.domain.errors import ExpiryError
from docwarden.domain.iso8601 import is_iso8601_datetime_string, to_epoch_milliseconds
from docwarden.services.host import Host

logger = logging.getLogger(__name__)

MAXIMUM_RELATIVE_SECONDS = 2_592_000
EPOCH = datetime(1970, 1, 1, tzinfo=UTC)

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(UTC)


def _from_epoch_milliseconds(milliseconds: float) -> datetime:
    return EPOCH + timedelta(milliseconds=milliseconds)


def _invalid(doc: Document, value: Any) -> ExpiryError:
    return ExpiryError(f'Invalid expiry value for document "{document_id(doc)}": {messages.to_json(value)}')


def resolve_expiry(
    doc: Document,
    old_doc: Document | None,
    constraint: Any,
    host: Host,
    clock: Clock | None = None,
) -> datetime:
    """Send the expiry directive to the host and return the expiry instant.

    ``old_doc`` is the effective previous revision.

    Raises:
        ExpiryError: when the constraint resolves to an unusable value.
    """
    value = resolve_document_constraint(constraint, doc, old_doc)

    try:
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            if not math.isfinite(value):
                raise _invalid(doc, value)
            host.expiry(value)
            if value > MAXIMUM_RELATIVE_SECONDS:
                return _from_epoch_milliseconds(value * 1000)
            return (clock or utc_now)() + timedelta(seconds=value)

        if isinstance(value, str):
            if not is_iso8601_datetime_string(value):
                raise _invalid(doc, value)
            host.expiry(value)
            return _from_epoch_milliseconds(to_epoch_milliseconds(value))

        if isinstance(value, date):
            milliseconds = to_epoch_milliseconds(value)
            host.expiry(milliseconds // 1000)
            return _from_epoch_milliseconds(milliseconds)
    except OverflowError as exc:
        raise _invalid(doc, value) from exc

    raise _invalid(doc, value)
