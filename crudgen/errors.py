# File: crudgen/errors.py
"""
crudgen - Error Taxonomy
========================
Every failure the generator can surface is one of the classes below.

Orchestrator-level errors (``InvalidInput``, ``CatalogUnavailable``,
``NoPrimaryKey``) abort before any file is written.  Per-artifact errors
(``TemplateError``, ``WriteError``) are caught by the write executor and
collected into ``GenerateResult.errors``.  Splicer errors
(``PatternNotFound``) leave the target file untouched;
``AlreadyRegistered`` is reported as a skip, never as a failure.
"""

from __future__ import annotations

import logging
from typing import List, Optional

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("crudgen.errors")


class CrudgenError(Exception):
    """Base class for every error raised by crudgen."""

    code: str = "crudgen_error"

    def __init__(self, message: str, *, path: Optional[str] = None) -> None:
        super().__init__(message)
        self.message: str = message
        self.path: Optional[str] = path

    def __str__(self) -> str:
        if self.path:
            return f"{self.path}: {self.message}"
        return self.message


class InvalidInput(CrudgenError, ValueError):
    """Bad arguments, malformed config document, or an unknown table."""

    code = "invalid_input"


class UnknownTable(InvalidInput):
    """The catalog returned no columns for the requested table."""

    code = "unknown_table"

    def __init__(self, table: str) -> None:
        super().__init__(f"table '{table}' does not exist or has no columns")
        self.table: str = table


class CatalogUnavailable(CrudgenError):
    """Connection, query, or timeout failure while reading the catalog."""

    code = "catalog_unavailable"


class NoPrimaryKey(CrudgenError):
    """The table has no primary-key column and no synthetic key was requested."""

    code = "no_primary_key"

    def __init__(self, table: str) -> None:
        super().__init__(
            f"table '{table}' has no primary key; "
            "declare one or request a synthetic key"
        )
        self.table: str = table


class TemplateError(CrudgenError):
    """A template failed to render."""

    code = "template_error"


class WriteError(CrudgenError):
    """A file-system failure while writing an artifact or splice target."""

    code = "write_error"


class PatternNotFound(CrudgenError):
    """A splice target does not contain the anchor the edit needs."""

    code = "pattern_not_found"


class AlreadyRegistered(CrudgenError):
    """The splice sentinel is already present; the edit is a no-op."""

    code = "already_registered"


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "CrudgenError",
    "InvalidInput",
    "UnknownTable",
    "CatalogUnavailable",
    "NoPrimaryKey",
    "TemplateError",
    "WriteError",
    "PatternNotFound",
    "AlreadyRegistered",
]

logger.debug("crudgen.errors loaded.")
