"""
Map arbitrary form payloads onto a mapping's column order.

Each column label is turned into a snake_case field key which is looked up
in the payload under a few spellings. A handful of columns need bespoke
handling; those live in ``SPECIAL_RESOLVERS`` and are tried first.
"""
import json
import re
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable, FrozenSet, List, Mapping, Optional, Sequence, Tuple

_WHITESPACE = re.compile(r"\s+")
_SNAKE_SEGMENT = re.compile(r"_([a-z0-9])")

_FALSE_STRINGS = {"", "0", "false", "no", "n", "off"}


def utc_timestamp(now: Optional[datetime] = None) -> str:
    """ISO-8601 UTC timestamp with millisecond precision, e.g. 2025-01-01T10:00:00.000Z."""
    now = now or datetime.now(timezone.utc)
    return now.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def field_key(column: str) -> str:
    """``"Experience (Years)"`` -> ``"experience_years"``."""
    key = _WHITESPACE.sub("_", column.strip().lower())
    return key.replace("(", "").replace(")", "")


def to_camel_case(key: str) -> str:
    return _SNAKE_SEGMENT.sub(lambda match: match.group(1).upper(), key)


def is_empty(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, (list, tuple, dict)):
        return len(value) == 0
    return False


def to_cell(value: Any) -> str:
    """Render a payload value as a sheet cell."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "TRUE" if value else "FALSE"
    if isinstance(value, (list, tuple)):
        return ", ".join(to_cell(item) for item in value if not is_empty(item))
    if isinstance(value, dict):
        return json.dumps(value, ensure_ascii=False, sort_keys=True)
    return str(value)


def first_present(payload: Mapping[str, Any], keys: Sequence[str]) -> str:
    for key in keys:
        value = payload.get(key)
        if not is_empty(value):
            return to_cell(value)
    return ""


def is_truthy(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() not in _FALSE_STRINGS
    return bool(value)


def resolve_generic(payload: Mapping[str, Any], key: str) -> str:
    return first_present(payload, (key, key.replace("_", ""), to_camel_case(key)))


def _resolve_languages(payload: Mapping[str, Any]) -> str:
    return first_present(payload, ("languages",))


def _resolve_assisted_by_agent(payload: Mapping[str, Any]) -> str:
    value = payload.get("assisted_by_agent")
    if value is None:
        value = payload.get("assistedByAgent")
    return "Yes" if is_truthy(value) else "No"


def _resolve_pin_code(payload: Mapping[str, Any]) -> str:
    return first_present(payload, ("pincode", "pin_code"))


def _resolve_whatsapp(payload: Mapping[str, Any]) -> str:
    return first_present(
        payload,
        ("whatsapp_phone", "whatsapp_number", "whatsappPhone", "whatsappNumber"),
    )


def _resolve_form_language(payload: Mapping[str, Any]) -> str:
    return first_present(payload, ("form_language", "language"))


@dataclass(frozen=True)
class FieldResolver:
    """Bespoke lookup for columns whose payload key differs from the label."""
    field_keys: FrozenSet[str]
    resolve: Callable[[Mapping[str, Any]], str]

    def matches(self, key: str) -> bool:
        return key in self.field_keys


SPECIAL_RESOLVERS: Tuple[FieldResolver, ...] = (
    FieldResolver(frozenset({"languages_known", "languages"}), _resolve_languages),
    FieldResolver(frozenset({"assisted_by_agent"}), _resolve_assisted_by_agent),
    FieldResolver(frozenset({"pin_code"}), _resolve_pin_code),
    FieldResolver(frozenset({"whatsapp_phone", "whatsapp_number"}), _resolve_whatsapp),
    FieldResolver(frozenset({"form_language"}), _resolve_form_language),
)


class RowFormatter:
    """Builds sheet rows aligned with a column mapping."""

    def __init__(
        self,
        resolvers: Sequence[FieldResolver] = SPECIAL_RESOLVERS,
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ):
        self.resolvers = tuple(resolvers)
        self._clock = clock

    def format(self, payload: Optional[Mapping[str, Any]], columns: Sequence[str]) -> List[str]:
        """Return one cell per column; missing fields become empty strings."""
        data: Mapping[str, Any] = payload if isinstance(payload, Mapping) else {}
        row: List[str] = []
        for index, column in enumerate(columns):
            if index == 0:
                row.append(self.timestamp())
                continue
            row.append(self.resolve(data, column))
        return row

    def format_fallback(self, payload: Optional[Mapping[str, Any]]) -> List[str]:
        """Two-cell row for unmapped form types: timestamp and the raw payload as JSON."""
        return [self.timestamp(), json.dumps(payload if payload is not None else {}, ensure_ascii=False, default=str)]

    def resolve(self, payload: Mapping[str, Any], column: str) -> str:
        key = field_key(column)
        for resolver in self.resolvers:
            if resolver.matches(key):
                return resolver.resolve(payload)
        return resolve_generic(payload, key)

    def timestamp(self) -> str:
        return utc_timestamp(self._clock())
