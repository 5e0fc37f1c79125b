"""Error taxonomy shared by the reconciliation core and its surfaces."""

from __future__ import annotations

from enum import Enum
from typing import Optional


class ErrorKind(str, Enum):
    """Discriminates failures so the request layer can map them to responses."""

    upstream_timeout = "upstream_timeout"
    upstream_unavailable = "upstream_unavailable"
    parse_failed = "parse_failed"
    storage_failed = "storage_failed"
    not_found = "not_found"


class ReconciliationError(Exception):
    """Base class for failures that terminate a reconciliation attempt."""

    kind: ErrorKind = ErrorKind.storage_failed

    def __init__(
        self,
        message: str,
        *,
        kind: Optional[ErrorKind] = None,
        details: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        if kind is not None:
            self.kind = kind
        self.details = details


class FetchError(ReconciliationError):
    """An upstream feed was unreachable, returned a non-success status or timed out."""

    kind = ErrorKind.upstream_unavailable

    def __init__(
        self,
        message: str,
        *,
        url: str,
        status_code: Optional[int] = None,
        timed_out: bool = False,
        details: Optional[str] = None,
    ) -> None:
        super().__init__(
            message,
            kind=ErrorKind.upstream_timeout if timed_out else ErrorKind.upstream_unavailable,
            details=details,
        )
        self.url = url
        self.status_code = status_code
        self.timed_out = timed_out


class ParseError(ReconciliationError):
    """An upstream payload was malformed as a whole."""

    kind = ErrorKind.parse_failed


class StorageError(ReconciliationError):
    """A storage backend hit an unrecoverable I/O or transaction failure."""

    kind = ErrorKind.storage_failed
