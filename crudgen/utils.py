# File: crudgen/utils.py
"""
crudgen - Name Deriver & File Helpers
=====================================
Pure string functions that every emitted artifact depends on.  All the
paths, type names, URL segments and JSON keys of one entity are derived
from the same table name through these functions, so they must agree
byte for byte across the seven templates and the splicer.

String conversions are decorated with ``@lru_cache(maxsize=None)``; the
template helpers call them once per field per template.

The second half of the module holds the file-system helpers shared by the
write executor, the splicer and the config document writer.
"""

from __future__ import annotations

import functools
import logging
import os
import re
import tempfile
import time
from pathlib import Path
from typing import Dict, FrozenSet, List, Mapping, Optional, Tuple

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("crudgen.utils")

# ---------------------------------------------------------------------------
# Pre-compiled regex patterns (compiled once at module load)
# ---------------------------------------------------------------------------

_CAMEL_TO_SNAKE_RE1: re.Pattern[str] = re.compile(r"([A-Z]+)([A-Z][a-z])")
_CAMEL_TO_SNAKE_RE2: re.Pattern[str] = re.compile(r"([a-z0-9])([A-Z])")
_SEPARATOR_RE: re.Pattern[str] = re.compile(r"[\s\-]+")
_NON_ALPHANUM_RE: re.Pattern[str] = re.compile(r"[^a-zA-Z0-9]")
_MULTI_UNDERSCORE_RE: re.Pattern[str] = re.compile(r"_{2,}")
_LEADING_TRAILING_UNDERSCORE_RE: re.Pattern[str] = re.compile(r"^_+|_+$")
_SPLIT_WORDS_RE: re.Pattern[str] = re.compile(
    r"[A-Z]?[a-z]+|[A-Z]+(?=[A-Z][a-z]|\d|\b)|[A-Z]|\d+"
)

# Admin-style table prefixes, longest first so "tb_" wins over "t_".
TABLE_PREFIXES: Tuple[str, ...] = tuple(
    sorted(("admin_", "user_", "sys_", "tb_", "t_"), key=len, reverse=True)
)

_IRREGULAR_PLURALS: Dict[str, str] = {
    "person": "people",
    "child": "children",
    "man": "men",
    "woman": "women",
    "tooth": "teeth",
    "foot": "feet",
    "mouse": "mice",
    "goose": "geese",
}
_IRREGULAR_SINGULARS: Dict[str, str] = {v: k for k, v in _IRREGULAR_PLURALS.items()}

_VOWELS: FrozenSet[str] = frozenset("aeiou")

# Column names that are searchable regardless of their type.
_SEARCHABLE_NAMES: FrozenSet[str] = frozenset({"id", "name", "title", "email", "phone"})

# Built-in label / title dictionaries. Both are injectable through
# ``CRUDGenerator(labels=..., titles=...)`` and the CRUDGEN_* settings.
DEFAULT_LABELS: Dict[str, str] = {
    "id": "ID",
    "name": "名称",
    "title": "标题",
    "content": "内容",
    "description": "描述",
    "status": "状态",
    "sort": "排序",
    "created_at": "创建时间",
    "updated_at": "更新时间",
    "deleted_at": "删除时间",
}

DEFAULT_TITLES: Dict[str, str] = {
    "Article": "文章管理",
    "User": "用户管理",
    "Category": "分类管理",
    "Tag": "标签管理",
    "Comment": "评论管理",
    "File": "文件管理",
    "Config": "配置管理",
    "Log": "日志管理",
    "Role": "角色管理",
    "Permission": "权限管理",
    "Menu": "菜单管理",
}

TITLE_SUFFIX: str = "管理"


# ---------------------------------------------------------------------------
# Cached string transformation functions
# ---------------------------------------------------------------------------


@functools.lru_cache(maxsize=None)
def to_snake_case(name: str) -> str:
    """
    Convert any identifier to snake_case.

    Examples:
        >>> to_snake_case("HTTPServer")
        'http_server'
        >>> to_snake_case("userProfile")
        'user_profile'
        >>> to_snake_case("order-item")
        'order_item'
    """
    if not name:
        return ""
    s: str = _CAMEL_TO_SNAKE_RE1.sub(r"\1_\2", name)
    s = _CAMEL_TO_SNAKE_RE2.sub(r"\1_\2", s)
    s = _SEPARATOR_RE.sub("_", s)
    s = _NON_ALPHANUM_RE.sub("_", s)
    s = _MULTI_UNDERSCORE_RE.sub("_", s)
    s = _LEADING_TRAILING_UNDERSCORE_RE.sub("", s)
    return s.lower()


@functools.lru_cache(maxsize=None)
def to_pascal_case(name: str) -> str:
    """
    Convert any identifier to PascalCase.

    Every word is capitalised and the rest lower-cased, so acronyms are
    normalised: ``HTTPServer`` becomes ``HttpServer``.
    """
    if not name:
        return ""
    words: Tuple[str, ...] = _extract_words(name)
    return "".join(word.capitalize() for word in words)


@functools.lru_cache(maxsize=None)
def to_camel_case(name: str) -> str:
    """
    Convert any identifier to camelCase.

    Defined as the PascalCase form with its first letter lowered, which
    keeps ``to_camel_case(P) == lcfirst(P)`` for every PascalCase ``P``.
    """
    return lcfirst(to_pascal_case(name))


@functools.lru_cache(maxsize=None)
def to_kebab_case(name: str) -> str:
    """Convert any identifier to kebab-case (CSS class names)."""
    return to_snake_case(name).replace("_", "-")


def lcfirst(value: str) -> str:
    """Lower-case the first character only."""
    if not value:
        return ""
    return value[0].lower() + value[1:]


@functools.lru_cache(maxsize=None)
def _extract_words(name: str) -> Tuple[str, ...]:
    """Split any casing style into a tuple of lower-case words."""
    cleaned: str = _NON_ALPHANUM_RE.sub(" ", name)
    words: List[str] = _SPLIT_WORDS_RE.findall(cleaned)
    return tuple(w.lower() for w in words if w)


def _match_case(source: str, replacement: str) -> str:
    if source and source[0].isupper():
        return replacement[0].upper() + replacement[1:]
    return replacement


@functools.lru_cache(maxsize=None)
def to_plural(name: str) -> str:
    """
    English pluralisation used for resource names.

    The irregular table is consulted first, then the suffix rules in
    order: ``s/x/z/ch/sh`` take ``es``, consonant + ``y`` becomes ``ies``,
    ``f`` and ``fe`` become ``ves``; anything else takes ``s``.
    """
    if not name:
        return ""

    lower: str = name.lower()

    if lower in _IRREGULAR_PLURALS:
        return _match_case(name, _IRREGULAR_PLURALS[lower])

    if lower.endswith(("s", "x", "z", "ch", "sh")):
        return name + "es"
    if lower.endswith("y") and len(name) > 1 and lower[-2] not in _VOWELS:
        return name[:-1] + "ies"
    if lower.endswith("f"):
        return name[:-1] + "ves"
    if lower.endswith("fe"):
        return name[:-2] + "ves"

    return name + "s"


@functools.lru_cache(maxsize=None)
def to_singular(name: str) -> str:
    """Best-effort inverse of ``to_plural`` for table names."""
    if not name:
        return ""

    lower: str = name.lower()

    if lower in _IRREGULAR_SINGULARS:
        return _match_case(name, _IRREGULAR_SINGULARS[lower])
    if lower in _IRREGULAR_PLURALS:
        return name

    if lower.endswith("ies") and len(name) > 3:
        return name[:-3] + "y"
    if lower.endswith("ves") and len(name) > 3:
        return name[:-3] + "f"
    if lower.endswith(("ses", "xes", "zes", "ches", "shes")):
        return name[:-2]
    if lower.endswith("s") and not lower.endswith(("ss", "us", "is")):
        return name[:-1]

    return name


def strip_table_prefix(table_name: str) -> str:
    """Remove at most one admin prefix, longest match first."""
    for prefix in TABLE_PREFIXES:
        if table_name.startswith(prefix) and len(table_name) > len(prefix):
            return table_name[len(prefix):]
    return table_name


@functools.lru_cache(maxsize=None)
def table_to_model_name(table_name: str) -> str:
    """
    Derive the PascalCase model name of a table.

    One admin prefix is stripped and the last word singularised, so the
    plural resource name derived from the model maps back to the table:

        >>> table_to_model_name("articles")
        'Article'
        >>> table_to_model_name("tb_order_items")
        'OrderItem'
    """
    stripped: str = strip_table_prefix(table_name)
    words: List[str] = list(_extract_words(stripped))
    if not words:
        return ""
    words[-1] = to_singular(words[-1])
    return to_pascal_case("_".join(words))


@functools.lru_cache(maxsize=None)
def model_to_resource_name(model_name: str) -> str:
    """URL segment of a model: snake_case plural."""
    return to_plural(to_snake_case(model_name))


# ---------------------------------------------------------------------------
# Labels, titles and field predicates
# ---------------------------------------------------------------------------


def derive_label(
    field_name: str,
    comment: str = "",
    labels: Optional[Mapping[str, str]] = None,
) -> str:
    """Column comment, then the label dictionary, then PascalCase of the name."""
    if comment and comment.strip():
        return comment.strip()
    dictionary: Mapping[str, str] = DEFAULT_LABELS if labels is None else labels
    if field_name in dictionary:
        return dictionary[field_name]
    return to_pascal_case(field_name)


def derive_title(model_name: str, titles: Optional[Mapping[str, str]] = None) -> str:
    dictionary: Mapping[str, str] = DEFAULT_TITLES if titles is None else titles
    return dictionary.get(model_name, model_name + TITLE_SUFFIX)


def is_searchable(field_name: str, raw_type: str) -> bool:
    """Text-like columns and a handful of well-known names are searchable."""
    lowered: str = raw_type.lower()
    if "char" in lowered or "text" in lowered:
        return True
    return field_name in _SEARCHABLE_NAMES


_IDENTIFIER_RE: re.Pattern[str] = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


def is_identifier(value: str) -> bool:
    return bool(value) and bool(_IDENTIFIER_RE.match(value))


# ---------------------------------------------------------------------------
# File I/O helpers
# ---------------------------------------------------------------------------

DIR_MODE: int = 0o755
FILE_MODE: int = 0o644


def ensure_directory(path: Path) -> None:
    """Create *path* and its parents with mode 0755 if missing."""
    path.mkdir(mode=DIR_MODE, parents=True, exist_ok=True)
    logger.debug("Ensured directory exists: %s", path)


def write_file(path: Path, content: str) -> int:
    """
    Write *content* to *path* atomically.

    The bytes go to a temporary sibling first and are renamed over the
    target, so the target is either fully written or untouched.  The
    temporary file is removed on any failure and the error re-raised.

    Returns the number of bytes written.
    """
    ensure_directory(path.parent)

    encoded: bytes = content.encode("utf-8")
    fd: int = -1
    tmp_path: str = ""
    try:
        fd, tmp_path = tempfile.mkstemp(
            dir=str(path.parent),
            prefix=f".{path.name}.",
            suffix=".tmp",
        )
        os.write(fd, encoded)
        os.fsync(fd)
        os.close(fd)
        fd = -1
        os.chmod(tmp_path, FILE_MODE)
        os.replace(tmp_path, str(path))
    except OSError:
        if fd >= 0:
            os.close(fd)
        if tmp_path and os.path.exists(tmp_path):
            os.unlink(tmp_path)
        raise

    logger.debug("Wrote %d bytes to %s", len(encoded), path)
    return len(encoded)


def read_file(path: Path) -> str:
    """Read a UTF-8 text file."""
    return path.read_text(encoding="utf-8")


# ---------------------------------------------------------------------------
# Timer context manager
# ---------------------------------------------------------------------------


class Timer:
    """
    Context-manager timer for the pipeline steps.

    Usage:
        with Timer("render") as t:
            ...
        t.elapsed
    """

    __slots__ = ("label", "start_time", "end_time", "elapsed")

    def __init__(self, label: str = "operation") -> None:
        self.label: str = label
        self.start_time: float = 0.0
        self.end_time: float = 0.0
        self.elapsed: float = 0.0

    def __enter__(self) -> "Timer":
        self.start_time = time.perf_counter()
        return self

    def __exit__(
        self,
        exc_type: Optional[type],
        exc_val: Optional[BaseException],
        exc_tb: Optional[object],
    ) -> None:
        self.end_time = time.perf_counter()
        self.elapsed = self.end_time - self.start_time
        logger.debug("Timer [%s]: %.4f seconds", self.label, self.elapsed)

    def __repr__(self) -> str:
        return f"<Timer {self.label}: {self.elapsed:.4f}s>"


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "TABLE_PREFIXES",
    "DEFAULT_LABELS",
    "DEFAULT_TITLES",
    "to_snake_case",
    "to_pascal_case",
    "to_camel_case",
    "to_kebab_case",
    "lcfirst",
    "to_plural",
    "to_singular",
    "strip_table_prefix",
    "table_to_model_name",
    "model_to_resource_name",
    "derive_label",
    "derive_title",
    "is_searchable",
    "is_identifier",
    "ensure_directory",
    "write_file",
    "read_file",
    "Timer",
]

logger.debug("crudgen.utils loaded — %d public symbols.", len(__all__))
