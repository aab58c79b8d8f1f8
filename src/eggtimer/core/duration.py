"""
Duration parsing.

``create`` accepts three shapes of duration:

=====================  ==========================  ===========
Shape                  Example                     Result (ms)
=====================  ==========================  ===========
integer milliseconds   ``1500``                    1500
``{"ms": N}`` mapping  ``{"ms": 500}``             500
compact string         ``"2h30m"``, ``"45S"``      9000000, 45000
=====================  ==========================  ===========

Compact strings are one or more ``<integer><unit>`` tokens with no separator,
unit in ``s m h d`` (case-insensitive), summed. Anything that does not parse
fully, or parses to a total of zero, raises :class:`InvalidDurationError`;
so does any total above ``MAX_DURATION_MS`` (about 285,000 years).
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from typing import Any, Union

from eggtimer.core.errors import InvalidDurationError

DurationSpec = Union[int, str, Mapping[str, Any]]

UNIT_MS: dict[str, int] = {
    "s": 1_000,
    "m": 60 * 1_000,
    "h": 60 * 60 * 1_000,
    "d": 24 * 60 * 60 * 1_000,
}

_TOKEN = re.compile(r"(\d+)([smhd])")
_COMPACT = re.compile(r"(?:\d+[smhd])+")

# largest integer a float holds exactly; due times are float milliseconds
MAX_DURATION_MS = 2**53 - 1
_TOO_LONG = f"Duration exceeds the maximum of {MAX_DURATION_MS}ms"


def parse_duration(spec: Any) -> int:
    """Parse a duration spec into a positive millisecond count.

    Raises:
        InvalidDurationError: unsupported shape, malformed string, or a
            total that is not positive or exceeds ``MAX_DURATION_MS``.
    """
    if isinstance(spec, bool):
        raise InvalidDurationError("Duration must not be a boolean", spec=spec)

    if isinstance(spec, Mapping):
        if set(spec) != {"ms"}:
            raise InvalidDurationError("Duration mapping must have exactly one key 'ms'", spec=spec)
        return _positive_ms(spec["ms"], spec)

    if isinstance(spec, (int, float)):
        return _positive_ms(spec, spec)

    if isinstance(spec, str):
        return _parse_compact(spec)

    raise InvalidDurationError(
        f"Unsupported duration type: {type(spec).__name__}", spec=spec
    )


def _positive_ms(value: Any, spec: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise InvalidDurationError("Duration milliseconds must be a number", spec=spec)
    if isinstance(value, float) and not value.is_integer():
        raise InvalidDurationError("Duration milliseconds must be a whole number", spec=spec)
    ms = int(value)
    if ms <= 0:
        raise InvalidDurationError(f"Duration must be positive, got {ms}ms", spec=spec)
    return _bounded(ms, spec)


def _parse_compact(spec: str) -> int:
    text = spec.strip().lower()
    if not _COMPACT.fullmatch(text):
        raise InvalidDurationError(f"Invalid duration format: {spec!r}", spec=spec)

    total_ms = 0
    for value, unit in _TOKEN.findall(text):
        # no single token may exceed the cap, so int() never sees a huge literal
        digits = value.lstrip("0") or "0"
        if len(digits) > len(str(MAX_DURATION_MS)):
            raise InvalidDurationError(_TOO_LONG, spec=spec)
        total_ms += int(digits) * UNIT_MS[unit]
    if total_ms <= 0:
        raise InvalidDurationError(f"Duration must be positive: {spec!r}", spec=spec)
    return _bounded(total_ms, spec)


def _bounded(ms: int, spec: Any) -> int:
    if ms > MAX_DURATION_MS:
        raise InvalidDurationError(_TOO_LONG, spec=spec)
    return ms


def format_duration(ms: int) -> str:
    """Render milliseconds back into compact form (``9000000`` -> ``"2h30m"``).

    Sub-second remainders are dropped; zero renders as ``"0s"``.
    """
    parts = []
    remaining = max(0, int(ms)) // 1_000 * 1_000
    for unit in ("d", "h", "m", "s"):
        count, remaining = divmod(remaining, UNIT_MS[unit])
        if count:
            parts.append(f"{count}{unit}")
    return "".join(parts) or "0s"


__all__ = ["DurationSpec", "UNIT_MS", "MAX_DURATION_MS", "parse_duration", "format_duration"]
