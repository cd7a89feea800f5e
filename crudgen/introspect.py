# File: crudgen/introspect.py
"""
crudgen - Schema Introspector
=============================
Reads the live catalog through a SQLAlchemy ``Engine`` and produces
``TableInfo`` objects.

MySQL and MariaDB are queried through ``information_schema`` so the raw
column type (``varchar(200)``, ``bigint unsigned``), the key kind
(``PRI/UNI/MUL``), the ``auto_increment`` extra flag and the column
comment come back exactly as the server stores them.  Every other dialect
goes through ``sqlalchemy.inspect()``.

Failures:
    - no columns for the table   → ``UnknownTable``
    - composite primary key      → ``InvalidInput``
    - any driver / I/O / timeout → ``CatalogUnavailable``
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Set, Tuple

from pydantic import ValidationError
from sqlalchemy import create_engine, inspect, text
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.exc import CompileError, NoSuchTableError, SQLAlchemyError

from crudgen.errors import CatalogUnavailable, InvalidInput, UnknownTable
from crudgen.models import ColumnInfo, KeyKind, TableInfo
from crudgen.typemap import base_column_type
from crudgen.utils import Timer

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("crudgen.introspect")

# ---------------------------------------------------------------------------
# Catalog queries (MySQL / MariaDB)
# ---------------------------------------------------------------------------

_MYSQL_LIST_TABLES = text(
    "SELECT TABLE_NAME FROM information_schema.TABLES "
    "WHERE TABLE_SCHEMA = DATABASE() ORDER BY TABLE_NAME"
)

_MYSQL_DESCRIBE_TABLE = text(
    "SELECT COLUMN_NAME, COLUMN_TYPE, IS_NULLABLE, COLUMN_KEY, "
    "COLUMN_DEFAULT, EXTRA, COLUMN_COMMENT "
    "FROM information_schema.COLUMNS "
    "WHERE TABLE_SCHEMA = DATABASE() AND TABLE_NAME = :table "
    "ORDER BY ORDINAL_POSITION"
)

_MYSQL_TABLE_COMMENT = text(
    "SELECT TABLE_COMMENT FROM information_schema.TABLES "
    "WHERE TABLE_SCHEMA = DATABASE() AND TABLE_NAME = :table"
)

_MYSQL_KEY_KINDS: Dict[str, KeyKind] = {
    "PRI": "primary",
    "UNI": "unique",
    "MUL": "indexed",
}

_MYSQL_BACKENDS: Set[str] = {"mysql", "mariadb"}

_INTEGER_TYPES: Set[str] = {"tinyint", "smallint", "mediumint", "int", "integer", "bigint"}


def _connect_args(url: str, timeout: float) -> Dict[str, Any]:
    """Driver-specific connect/read timeouts."""
    parsed = make_url(url)
    backend: str = parsed.get_backend_name()
    if backend == "sqlite":
        return {"timeout": timeout}
    if backend in _MYSQL_BACKENDS:
        return {"connect_timeout": int(timeout), "read_timeout": int(timeout)}
    if backend == "postgresql":
        return {"connect_timeout": int(timeout)}
    return {}


def _unquote(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    stripped: str = str(value).strip()
    if len(stripped) >= 2 and stripped[0] == stripped[-1] and stripped[0] in "'\"":
        return stripped[1:-1]
    return stripped


class SchemaIntrospector:
    """
    Catalog reader bound to one engine.

    Usage::

        introspector = SchemaIntrospector.from_url("mysql+pymysql://...")
        for name in introspector.list_tables():
            print(introspector.describe_table(name))
    """

    def __init__(self, engine: Engine, *, timeout: float = 10.0) -> None:
        self._engine: Engine = engine
        self._timeout: float = timeout

    @classmethod
    def from_url(cls, url: str, *, timeout: float = 10.0) -> "SchemaIntrospector":
        try:
            engine: Engine = create_engine(
                url,
                pool_pre_ping=True,
                connect_args=_connect_args(url, timeout),
            )
        except (SQLAlchemyError, ImportError, ValueError) as exc:
            raise CatalogUnavailable(f"cannot create engine for catalog: {exc}") from exc
        logger.debug("Engine created for %s.", make_url(url).render_as_string(hide_password=True))
        return cls(engine, timeout=timeout)

    @property
    def engine(self) -> Engine:
        return self._engine

    @property
    def is_mysql(self) -> bool:
        return self._engine.dialect.name in _MYSQL_BACKENDS

    def dispose(self) -> None:
        self._engine.dispose()

    # -----------------------------------------------------------------
    # Public: list tables
    # -----------------------------------------------------------------

    def list_tables(self) -> List[str]:
        """Every table of the connected database, sorted by name."""
        with Timer("list_tables"):
            try:
                if self.is_mysql:
                    with self._engine.connect() as conn:
                        rows = conn.execute(_MYSQL_LIST_TABLES).all()
                    tables: List[str] = [str(row[0]) for row in rows]
                else:
                    tables = sorted(inspect(self._engine).get_table_names())
            except (SQLAlchemyError, OSError) as exc:
                raise CatalogUnavailable(f"cannot list tables: {exc}") from exc

        logger.info("Catalog lists %d table(s).", len(tables))
        return tables

    # -----------------------------------------------------------------
    # Public: describe table
    # -----------------------------------------------------------------

    def describe_table(self, name: str) -> TableInfo:
        """Columns of *name* in ordinal order."""
        with Timer(f"describe_table:{name}"):
            try:
                if self.is_mysql:
                    columns, comment = self._describe_mysql(name)
                else:
                    columns, comment = self._describe_generic(name)
            except NoSuchTableError as exc:
                raise UnknownTable(name) from exc
            except (SQLAlchemyError, OSError) as exc:
                raise CatalogUnavailable(f"cannot describe table '{name}': {exc}") from exc

        if not columns:
            raise UnknownTable(name)

        logger.info("Table %s: %d column(s).", name, len(columns))
        try:
            return TableInfo(name=name, comment=comment, columns=columns)
        except ValidationError as exc:
            raise InvalidInput(f"unsupported table '{name}': {exc.errors()[0]['msg']}") from exc

    def _describe_mysql(self, name: str) -> Tuple[List[ColumnInfo], str]:
        with self._engine.connect() as conn:
            rows = conn.execute(_MYSQL_DESCRIBE_TABLE, {"table": name}).all()
            comment_row = conn.execute(_MYSQL_TABLE_COMMENT, {"table": name}).first()

        columns: List[ColumnInfo] = []
        for row in rows:
            col_name, col_type, is_nullable, col_key, col_default, extra, col_comment = row
            columns.append(ColumnInfo(
                name=str(col_name),
                type=str(col_type),
                nullable=str(is_nullable).upper() == "YES",
                key=_MYSQL_KEY_KINDS.get(str(col_key or "").upper(), "none"),
                default=None if col_default is None else str(col_default),
                auto_increment="auto_increment" in str(extra or "").lower(),
                comment=str(col_comment or ""),
            ))
        comment: str = str(comment_row[0] or "") if comment_row else ""
        return columns, comment

    def _describe_generic(self, name: str) -> Tuple[List[ColumnInfo], str]:
        inspector = inspect(self._engine)
        raw_columns: List[Dict[str, Any]] = inspector.get_columns(name)
        pk_columns: List[str] = list(
            (inspector.get_pk_constraint(name) or {}).get("constrained_columns") or []
        )

        unique_columns: Set[str] = set()
        for uc in inspector.get_unique_constraints(name):
            if len(uc.get("column_names") or []) == 1:
                unique_columns.add(uc["column_names"][0])
        indexed_columns: Set[str] = set()
        for ix in inspector.get_indexes(name):
            names: List[str] = [c for c in ix.get("column_names") or [] if c]
            if len(names) == 1 and ix.get("unique"):
                unique_columns.add(names[0])
            indexed_columns.update(names)

        columns: List[ColumnInfo] = []
        for raw in raw_columns:
            col_name: str = raw["name"]
            type_str: str = self._type_string(raw["type"])
            key: KeyKind = "none"
            if col_name in pk_columns:
                key = "primary"
            elif col_name in unique_columns:
                key = "unique"
            elif col_name in indexed_columns:
                key = "indexed"

            autoincrement: Any = raw.get("autoincrement", "auto")
            auto_increment: bool = autoincrement is True or (
                key == "primary"
                and len(pk_columns) == 1
                and autoincrement == "auto"
                and base_column_type(type_str) in _INTEGER_TYPES
            )

            columns.append(ColumnInfo(
                name=col_name,
                type=type_str,
                nullable=bool(raw.get("nullable", True)) and key != "primary",
                key=key,
                default=_unquote(raw.get("default")),
                auto_increment=auto_increment,
                comment=str(raw.get("comment") or ""),
            ))

        try:
            comment: str = str((inspector.get_table_comment(name) or {}).get("text") or "")
        except NotImplementedError:
            comment = ""
        return columns, comment

    def _type_string(self, type_: Any) -> str:
        try:
            return str(type_.compile(dialect=self._engine.dialect)).lower()
        except (CompileError, NotImplementedError, AttributeError):
            return type(type_).__name__.lower()

    def __repr__(self) -> str:
        return f"<SchemaIntrospector {self._engine.dialect.name}>"


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "SchemaIntrospector",
]

logger.debug("crudgen.introspect loaded.")
