"""Canonicalization of tray identifiers used as the reconciliation join key."""

from __future__ import annotations

import logging
import math
import re
from typing import Any, Optional

logger = logging.getLogger(__name__)

DEFAULT_TRAY_PREFIX = "TRAY"
UNPARSEABLE_TRAY_ID = "0"

_INTEGER_PATTERN = re.compile(r"^[+-]?\d+$", re.ASCII)


def _to_int(digits: str) -> int | None:
    # int() refuses strings past the interpreter's digit limit.
    try:
        return int(digits)
    except ValueError:
        return None


def describe_value(raw: Any) -> str:
    """Return ``repr(raw)`` for log context, summarising integers too long to print."""
    try:
        return repr(raw)
    except ValueError:
        return f"<int of {raw.bit_length()} bits>"


def _parse_int(candidate: str) -> int | None:
    candidate = candidate.strip()
    if not _INTEGER_PATTERN.match(candidate):
        return None
    return _to_int(candidate)


def _resolve_number(value: int | float) -> int | None:
    if isinstance(value, int):
        return value
    if math.isfinite(value) and value.is_integer():
        return int(value)
    return None


def _resolve_string(value: str, prefix: str) -> int | None:
    direct = _parse_int(value)
    if direct is not None:
        return direct

    stripped = value.strip()
    if prefix and stripped.upper().startswith(prefix.upper()):
        remainder = _parse_int(stripped[len(prefix):])
        if remainder is not None:
            return remainder

    digits = "".join(char for char in stripped if "0" <= char <= "9")
    if digits:
        return _to_int(digits)
    return None


def resolve_tray_id(raw: Any, prefix: str = DEFAULT_TRAY_PREFIX) -> Optional[str]:
    """Return the canonical key for ``raw``, or ``None`` when it has none."""
    resolved: int | None = None
    if isinstance(raw, bool):
        resolved = None
    elif isinstance(raw, (int, float)):
        resolved = _resolve_number(raw)
    elif isinstance(raw, str):
        resolved = _resolve_string(raw, prefix)
    if resolved is None:
        return None
    try:
        return str(resolved)
    except ValueError:
        return None


def normalize_tray_id(raw: Any, prefix: str = DEFAULT_TRAY_PREFIX) -> str:
    """Return the canonical string key for a tray identifier.

    Resolution order: native number, integer string, ``prefix`` followed by an
    integer (case-insensitive), then every digit in the value in order.
    Anything that yields no integer maps to :data:`UNPARSEABLE_TRAY_ID`.
    """

    key = resolve_tray_id(raw, prefix)
    if key is None:
        logger.warning(
            "Could not parse tray identifier; using placeholder key.",
            extra={"raw_value": describe_value(raw), "tray_id": UNPARSEABLE_TRAY_ID},
        )
        return UNPARSEABLE_TRAY_ID
    return key
