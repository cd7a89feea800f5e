# File: crudgen/typemap.py
"""
crudgen - Type Mapper
=====================
Static tables that carry one database column through two target
ecosystems:

    raw column type ──▶ back-end (Go) type ──▶ front-end (TypeScript) type

plus the name-driven inference of form widgets, visibility flags and
validation rules.

Lookup rules:
    - Column types are lower-cased and matched by **longest prefix**, so
      ``datetime`` beats ``date`` and ``tinytext`` beats ``text``.
    - A nullable value type becomes a pointer (``*int64``); strings and
      byte slices are never wrapped.
    - Unknown column types map to ``string``; unknown Go types map to
      ``any`` on the TypeScript side.
"""

from __future__ import annotations

import logging
import re
from typing import Dict, FrozenSet, List, Optional, Tuple

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("crudgen.typemap")

# ---------------------------------------------------------------------------
# Column type → Go type
# ---------------------------------------------------------------------------

COLUMN_TO_GO: Dict[str, str] = {
    # Integers
    "tinyint": "int8",
    "smallint": "int16",
    "mediumint": "int32",
    "int": "int",
    "integer": "int",
    "bigint": "int64",
    # Floats
    "float": "float32",
    "double": "float64",
    "decimal": "float64",
    "numeric": "float64",
    "real": "float64",
    # Booleans
    "bool": "bool",
    "boolean": "bool",
    # Strings
    "char": "string",
    "varchar": "string",
    "text": "string",
    "tinytext": "string",
    "mediumtext": "string",
    "longtext": "string",
    "json": "string",
    # Time
    "date": "time.Time",
    "datetime": "time.Time",
    "timestamp": "time.Time",
    "time": "time.Time",
    "year": "int",
    # Binary
    "blob": "[]byte",
    "tinyblob": "[]byte",
    "mediumblob": "[]byte",
    "longblob": "[]byte",
    # Enumerations
    "enum": "string",
    "set": "string",
}

_PREFIXES_LONGEST_FIRST: Tuple[str, ...] = tuple(
    sorted(COLUMN_TO_GO, key=len, reverse=True)
)

# Go types that stay non-pointer when nullable.
_NEVER_WRAPPED: FrozenSet[str] = frozenset({"string", "[]byte"})

DEFAULT_GO_TYPE: str = "string"

# ---------------------------------------------------------------------------
# Go type → TypeScript type
# ---------------------------------------------------------------------------

GO_TO_TS: Dict[str, str] = {
    "int": "number",
    "int8": "number",
    "int16": "number",
    "int32": "number",
    "int64": "number",
    "uint": "number",
    "uint8": "number",
    "uint16": "number",
    "uint32": "number",
    "uint64": "number",
    "float32": "number",
    "float64": "number",
    "bool": "boolean",
    "string": "string",
    "time.Time": "string",
    "[]byte": "string",
}

DEFAULT_TS_TYPE: str = "any"

# ---------------------------------------------------------------------------
# Form widgets
# ---------------------------------------------------------------------------

FORM_WIDGETS: Tuple[str, ...] = (
    "input",
    "password",
    "email",
    "tel",
    "url",
    "upload",
    "editor",
    "textarea",
    "switch",
    "select",
    "number",
    "date",
    "datetime",
)

FIELD_NAME_TO_WIDGET: Dict[str, str] = {
    "password": "password",
    "email": "email",
    "phone": "tel",
    "url": "url",
    "avatar": "upload",
    "image": "upload",
    "file": "upload",
    "content": "editor",
    "description": "textarea",
    "remark": "textarea",
    "status": "switch",
    "type": "select",
    "category": "select",
    "date": "date",
    "time": "datetime",
    "created_at": "datetime",
    "updated_at": "datetime",
}

SWITCH_PREFIX: str = "is_"
DEFAULT_WIDGET: str = "input"

# ---------------------------------------------------------------------------
# Visibility
# ---------------------------------------------------------------------------

HIDDEN_IN_LIST: FrozenSet[str] = frozenset({"password", "deleted_at"})
HIDDEN_IN_FORM: FrozenSet[str] = frozenset({"id", "created_at", "updated_at", "deleted_at"})

# ---------------------------------------------------------------------------
# Validation rules
# ---------------------------------------------------------------------------

_RULE_RE: re.Pattern[str] = re.compile(r"^(required|email|url|(min|max|len):\d+)$")
_LENGTH_RE: re.Pattern[str] = re.compile(r"\(([^)]*)\)")

_NAME_RULES: Dict[str, str] = {
    "email": "email",
    "phone": "len:11",
    "password": "min:6",
    "url": "url",
}


# ---------------------------------------------------------------------------
# Public functions
# ---------------------------------------------------------------------------


def base_column_type(raw_type: str) -> Optional[str]:
    """Return the table key that *raw_type* starts with, or None."""
    lowered: str = raw_type.strip().lower()
    for prefix in _PREFIXES_LONGEST_FIRST:
        if lowered.startswith(prefix):
            return prefix
    return None


def go_type(raw_type: str, nullable: bool) -> str:
    """
    Map a raw column type to a Go type.

    Examples:
        >>> go_type("bigint unsigned", False)
        'int64'
        >>> go_type("datetime", True)
        '*time.Time'
        >>> go_type("varchar(64)", True)
        'string'
    """
    key: Optional[str] = base_column_type(raw_type)
    mapped: str = COLUMN_TO_GO[key] if key is not None else DEFAULT_GO_TYPE
    if key is None:
        logger.debug("Unknown column type '%s' mapped to %s.", raw_type, mapped)
    if nullable and mapped not in _NEVER_WRAPPED:
        return "*" + mapped
    return mapped


def strip_pointer(type_name: str) -> str:
    return type_name.lstrip("*")


def ts_type(go_type_name: str) -> str:
    """Map a Go type (pointer or not) to its TypeScript type."""
    return GO_TO_TS.get(strip_pointer(go_type_name), DEFAULT_TS_TYPE)


def form_widget(field_name: str) -> str:
    """Exact name match, then the ``is_`` prefix, then ``input``."""
    lowered: str = field_name.lower()
    if lowered in FIELD_NAME_TO_WIDGET:
        return FIELD_NAME_TO_WIDGET[lowered]
    if lowered.startswith(SWITCH_PREFIX):
        return "switch"
    return DEFAULT_WIDGET


def extract_length(raw_type: str) -> Optional[int]:
    """``varchar(200)`` → 200; missing or non-numeric length → None."""
    match: Optional[re.Match[str]] = _LENGTH_RE.search(raw_type)
    if match is None:
        return None
    inner: str = match.group(1).strip()
    if not inner.isdigit():
        return None
    return int(inner)


def infer_validations(
    field_name: str,
    raw_type: str,
    nullable: bool,
    is_primary_key: bool,
    auto_increment: bool,
) -> List[str]:
    """
    Infer the validation rules of a column.

    Only the closed token set is ever produced: ``required``, ``email``,
    ``url``, ``min:<n>``, ``max:<n>``, ``len:<n>``.
    """
    rules: List[str] = []
    if not nullable and not is_primary_key and not auto_increment:
        rules.append("required")

    lowered: str = field_name.lower()
    if lowered in _NAME_RULES:
        rules.append(_NAME_RULES[lowered])

    if base_column_type(raw_type) == "varchar":
        length: Optional[int] = extract_length(raw_type)
        if length:
            rules.append(f"max:{length}")

    return rules


def is_known_rule(token: str) -> bool:
    """True when *token* belongs to the closed rule set."""
    return bool(_RULE_RE.match(token))


def list_visible(field_name: str) -> bool:
    return field_name.lower() not in HIDDEN_IN_LIST


def form_visible(field_name: str, auto_increment: bool) -> bool:
    if auto_increment:
        return False
    return field_name.lower() not in HIDDEN_IN_FORM


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "COLUMN_TO_GO",
    "GO_TO_TS",
    "FORM_WIDGETS",
    "FIELD_NAME_TO_WIDGET",
    "HIDDEN_IN_LIST",
    "HIDDEN_IN_FORM",
    "base_column_type",
    "go_type",
    "strip_pointer",
    "ts_type",
    "form_widget",
    "extract_length",
    "infer_validations",
    "is_known_rule",
    "list_visible",
    "form_visible",
]

logger.debug("crudgen.typemap loaded — %d column types.", len(COLUMN_TO_GO))
