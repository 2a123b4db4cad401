"""Decoding of textual API responses into a typed structured value."""

from __future__ import annotations

import json
import logging
from typing import Any, Mapping, Optional

from .core.errors import ProjectionError

LOGGER = logging.getLogger(__name__)

INVALID_RESPONSE = "Invalid response"
UNKNOWN_ERROR = "Unknown error"

_MISSING = object()


class ParsedResponse:
    """Read-only view over a decoded response body.

    ``get_*`` accessors return a default when a field is absent or has the
    wrong type. ``require_*`` accessors raise :class:`ProjectionError` in the
    same situations, for fields a successful response must carry.
    """

    __slots__ = ("_fields", "raw", "decoded")

    def __init__(
        self, fields: Mapping[str, Any], *, raw: str = "", decoded: bool = True
    ) -> None:
        self._fields = dict(fields)
        self.raw = raw
        self.decoded = decoded

    def __contains__(self, key: str) -> bool:
        return self._fields.get(key) is not None

    def __repr__(self) -> str:
        return f"ParsedResponse({self._fields!r})"

    def as_dict(self) -> dict[str, Any]:
        return dict(self._fields)

    # ------------------------------------------------------------------
    # Status
    # ------------------------------------------------------------------
    @property
    def has_success_flag(self) -> bool:
        return isinstance(self._fields.get("success"), bool)

    def is_success(self) -> bool:
        return self._fields.get("success") is True

    def error_message(self) -> Optional[str]:
        error = self._fields.get("error")
        if error is None:
            return None
        if isinstance(error, str):
            return error or None
        return json.dumps(error)

    def failure_message(self) -> Optional[str]:
        """Return the failure text for this response, or None when it reports success."""
        if not self.has_success_flag:
            return INVALID_RESPONSE
        if self.is_success():
            return None
        return self.error_message() or UNKNOWN_ERROR

    @property
    def is_transport_failure(self) -> bool:
        return self._fields.get("transport") is True

    # ------------------------------------------------------------------
    # Typed accessors
    # ------------------------------------------------------------------
    def get_int(self, key: str, default: int = 0) -> int:
        value = _coerce_int(self._fields.get(key, _MISSING))
        return default if value is None else value

    def get_float(self, key: str, default: float = 0.0) -> float:
        value = _coerce_float(self._fields.get(key, _MISSING))
        return default if value is None else value

    def get_str(self, key: str, default: str = "") -> str:
        value = self._fields.get(key)
        if isinstance(value, str):
            return value
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return str(value)
        return default

    def get_bool(self, key: str, default: bool = False) -> bool:
        value = self._fields.get(key)
        if isinstance(value, bool):
            return value
        if isinstance(value, str) and value.lower() in ("true", "false"):
            return value.lower() == "true"
        return default

    def require_int(self, key: str) -> int:
        value = _coerce_int(self._fields.get(key, _MISSING))
        if value is None:
            raise ProjectionError(self._describe_bad_field(key, "an integer"))
        return value

    def require_str(self, key: str) -> str:
        value = self._fields.get(key)
        if not isinstance(value, str):
            raise ProjectionError(self._describe_bad_field(key, "a string"))
        return value

    def _describe_bad_field(self, key: str, expected: str) -> str:
        if self._fields.get(key) is None:
            return f"Response is missing field '{key}'"
        return f"Response field '{key}' is not {expected}: {self._fields[key]!r}"


def parse_response(raw: str) -> ParsedResponse:
    """Decode a response body. Malformed bodies yield an empty, undecoded view."""

    try:
        payload = json.loads(raw)
    except (TypeError, ValueError):
        LOGGER.debug("Discarding non-JSON response body: %r", raw[:200] if raw else raw)
        return ParsedResponse({}, raw=raw or "", decoded=False)

    if not isinstance(payload, dict):
        return ParsedResponse({}, raw=raw, decoded=False)
    return ParsedResponse(payload, raw=raw)


def _coerce_int(value: Any) -> Optional[int]:
    if value is _MISSING or value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if value.is_integer() else None
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            return None
    return None


def _coerce_float(value: Any) -> Optional[float]:
    if value is _MISSING or value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value.strip())
        except ValueError:
            return None
    return None
