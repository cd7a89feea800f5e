# File: crudgen/generator.py
"""
crudgen - Orchestrator
======================
Connects every phase together and backs the CLI:

    catalog ─▶ TableInfo ─▶ CRUDConfig ─▶ plan ─▶ files on disk ─▶ splices

The ``CRUDGenerator`` class is the programmatic API:

    list_tables()                               names in the catalog
    generate_config_from_table(table, module)   derive a CRUDConfig
    save_config(cfg, dir) / load_config(path)   YAML document round trip
    generate_crud(cfg, opts)                    4 or 7 artifacts
    generate_model(cfg, opts)                   the model artifact only
    auto_register(cfg, opts)                    the three splice edits

Error handling strategy:
    - Orchestrator-level errors (InvalidInput, CatalogUnavailable,
      NoPrimaryKey) are raised before any file is written.
    - Per-artifact errors are collected in ``GenerateResult.errors``.
    - Splice failures are returned as ``SpliceResult`` entries and never
      roll back emitted artifacts.
"""

from __future__ import annotations

import logging
import threading
from pathlib import Path
from typing import Dict, List, Mapping, Optional, Union

from crudgen.document import load_config as _load_document
from crudgen.document import save_config as _save_document
from crudgen.errors import InvalidInput, NoPrimaryKey
from crudgen.exporters import PlanExecutor
from crudgen.introspect import SchemaIntrospector
from crudgen.models import (
    AutoRegisterOptions,
    ColumnInfo,
    CRUDConfig,
    Features,
    FieldConfig,
    FrontendConfig,
    GenerateOptions,
    GenerateResult,
    SpliceResult,
    TableInfo,
)
from crudgen.planner import Artifact, find_resource_collisions, plan_crud, plan_model
from crudgen.splicer import SourceSplicer
from crudgen.templates import TemplateData, TemplateEngine
from crudgen.typemap import (
    form_visible,
    form_widget,
    go_type,
    infer_validations,
    list_visible,
    ts_type,
)
from crudgen.utils import (
    DEFAULT_LABELS,
    DEFAULT_TITLES,
    Timer,
    derive_label,
    derive_title,
    is_searchable,
    table_to_model_name,
)
from crudgen.validators import validate_config

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("crudgen.generator")

SYNTHETIC_KEY_NAME: str = "id"
SYNTHETIC_KEY_TYPE: str = "bigint unsigned"
DEFAULT_ICON: str = "Document"


def synthetic_key_column() -> ColumnInfo:
    return ColumnInfo(
        name=SYNTHETIC_KEY_NAME,
        type=SYNTHETIC_KEY_TYPE,
        nullable=False,
        key="primary",
        auto_increment=True,
    )


class CRUDGenerator:
    """
    Master pipeline for one catalog.

    Usage::

        gen = CRUDGenerator("mysql+pymysql://user:pw@localhost/app")
        cfg = gen.generate_config_from_table("articles", "admin")
        result = gen.generate_crud(cfg, GenerateOptions(output_dir="."))
        print(result.summary())

    The catalog is only contacted by ``list_tables`` and
    ``generate_config_from_table``; generating from a loaded document
    needs no database.
    """

    def __init__(
        self,
        database_url: Optional[str] = None,
        *,
        timeout: float = 10.0,
        introspector: Optional[SchemaIntrospector] = None,
        labels: Optional[Mapping[str, str]] = None,
        titles: Optional[Mapping[str, str]] = None,
        engine: Optional[TemplateEngine] = None,
    ) -> None:
        self._database_url: Optional[str] = database_url
        self._timeout: float = timeout
        self._introspector: Optional[SchemaIntrospector] = introspector
        self._labels: Dict[str, str] = dict(DEFAULT_LABELS if labels is None else labels)
        self._titles: Dict[str, str] = dict(DEFAULT_TITLES if titles is None else titles)
        self._engine: TemplateEngine = engine or TemplateEngine()
        self._cancel: threading.Event = threading.Event()
        self._last_output_dir: Optional[Path] = None

    # -----------------------------------------------------------------
    # Catalog
    # -----------------------------------------------------------------

    @property
    def introspector(self) -> SchemaIntrospector:
        if self._introspector is None:
            if not self._database_url:
                raise InvalidInput("no database URL configured; pass --database-url")
            self._introspector = SchemaIntrospector.from_url(
                self._database_url, timeout=self._timeout
            )
        return self._introspector

    def close(self) -> None:
        if self._introspector is not None:
            self._introspector.dispose()

    def list_tables(self) -> List[str]:
        return self.introspector.list_tables()

    # -----------------------------------------------------------------
    # Config derivation
    # -----------------------------------------------------------------

    def build_field(self, column: ColumnInfo) -> FieldConfig:
        """Enrich one catalog column with transport and UI settings."""
        go: str = go_type(column.type, column.nullable)
        return FieldConfig(
            name=column.name,
            type=column.type,
            go_type=go,
            ts_type=ts_type(go),
            nullable=column.nullable,
            is_primary_key=column.is_primary_key,
            auto_increment=column.auto_increment,
            default_value=column.default,
            comment=column.comment,
            validations=infer_validations(
                column.name,
                column.type,
                column.nullable,
                column.is_primary_key,
                column.auto_increment,
            ),
            label=derive_label(column.name, column.comment, self._labels),
            form_type=form_widget(column.name),
            list_visible=list_visible(column.name),
            form_visible=form_visible(column.name, column.auto_increment),
            searchable=is_searchable(column.name, column.type),
            sortable=True,
        )

    def generate_config_from_table(
        self,
        table: str,
        module: str,
        *,
        synthetic_key: bool = False,
    ) -> CRUDConfig:
        """
        Derive a ``CRUDConfig`` from the live catalog.

        Raises:
            UnknownTable: the catalog has no such table.
            CatalogUnavailable: the catalog cannot be queried.
            NoPrimaryKey: no primary key and *synthetic_key* is false.
        """
        with Timer(f"config:{table}"):
            info: TableInfo = self.introspector.describe_table(table)
            columns: List[ColumnInfo] = list(info.columns)

            if info.primary_key is None:
                if not synthetic_key:
                    raise NoPrimaryKey(table)
                if info.has_column(SYNTHETIC_KEY_NAME):
                    raise InvalidInput(
                        f"table '{table}' has a non-key '{SYNTHETIC_KEY_NAME}' column; "
                        "cannot add a synthetic key"
                    )
                logger.warning("Table %s has no primary key; adding synthetic '%s'.", table, SYNTHETIC_KEY_NAME)
                columns.insert(0, synthetic_key_column())

            names: List[str] = [c.name for c in columns]
            model_name: str = table_to_model_name(table)
            cfg: CRUDConfig = CRUDConfig(
                table=table,
                module=module,
                model_name=model_name,
                fields=[self.build_field(c) for c in columns],
                features=Features(
                    soft_delete="deleted_at" in names,
                    timestamps="created_at" in names and "updated_at" in names,
                ),
                frontend=FrontendConfig(
                    title=derive_title(model_name, self._titles),
                    icon=DEFAULT_ICON,
                    show_in_menu=True,
                ),
            )

        validate_config(cfg)
        logger.info(
            "Derived %s from %s: %d field(s), resource '%s'.",
            cfg.model_name,
            table,
            len(cfg.fields),
            cfg.resource_name,
        )
        return cfg

    # -----------------------------------------------------------------
    # Config documents
    # -----------------------------------------------------------------

    @staticmethod
    def save_config(cfg: CRUDConfig, directory: Union[str, Path]) -> Path:
        return _save_document(cfg, directory)

    @staticmethod
    def load_config(path: Union[str, Path]) -> CRUDConfig:
        return _load_document(path)

    # -----------------------------------------------------------------
    # Generation
    # -----------------------------------------------------------------

    def cancel(self) -> None:
        """
        Stop the running generation at the next artifact boundary.

        A cancel issued between runs stops the next run.  Each run consumes
        the request, so the run after it proceeds normally.
        """
        self._cancel.set()

    def generate_crud(
        self,
        cfg: CRUDConfig,
        opts: Optional[GenerateOptions] = None,
        cancel: Optional[threading.Event] = None,
    ) -> GenerateResult:
        """
        Emit the full slice: 4 back-end artifacts, plus 3 front-end ones.

        *cancel* defaults to the event behind ``cancel()``.
        """
        options: GenerateOptions = opts or cfg.options
        plan: List[Artifact] = plan_crud(cfg, options.with_frontend)
        return self._run(cfg, options, plan, cancel)

    def generate_model(
        self,
        cfg: CRUDConfig,
        opts: Optional[GenerateOptions] = None,
        cancel: Optional[threading.Event] = None,
    ) -> GenerateResult:
        options: GenerateOptions = opts or cfg.options
        return self._run(cfg, options, plan_model(cfg), cancel)

    def _run(
        self,
        cfg: CRUDConfig,
        options: GenerateOptions,
        plan: List[Artifact],
        cancel: Optional[threading.Event],
    ) -> GenerateResult:
        # Raises NoPrimaryKey before anything touches the disk.
        data: TemplateData = TemplateData.from_config(cfg)
        output_dir: Path = Path(options.output_dir)

        result: GenerateResult = GenerateResult()
        result.warnings.extend(str(w) for w in validate_config(cfg).warnings)
        result.warnings.extend(find_resource_collisions(cfg, output_dir))

        executor: PlanExecutor = PlanExecutor(
            self._engine,
            output_dir,
            force=options.force,
            dry_run=options.dry_run,
        )
        self._last_output_dir = output_dir
        if cancel is not None:
            return executor.execute(plan, data, result=result, cancel=cancel)
        try:
            return executor.execute(plan, data, result=result, cancel=self._cancel)
        finally:
            self._cancel.clear()

    # -----------------------------------------------------------------
    # Registration
    # -----------------------------------------------------------------

    def auto_register(
        self,
        cfg: CRUDConfig,
        opts: Optional[AutoRegisterOptions] = None,
    ) -> List[SpliceResult]:
        """
        Run the splice edits selected by *opts*.

        Targets resolve against ``opts.project_root``, falling back to the
        output directory of the last generation run, then to the config's
        ``options.output_dir``.
        """
        options: AutoRegisterOptions = opts or AutoRegisterOptions()
        root: Path
        if options.project_root:
            root = Path(options.project_root)
        elif self._last_output_dir is not None:
            root = self._last_output_dir
        else:
            root = Path(cfg.options.output_dir)
        splicer: SourceSplicer = SourceSplicer(root, dry_run=options.dry_run)
        results: List[SpliceResult] = splicer.register(cfg, options)
        failed: int = sum(1 for r in results if not r.ok)
        logger.info(
            "Auto-register %s: %d edit(s), %d failed.", cfg.model_name, len(results), failed
        )
        return results

    def __repr__(self) -> str:
        return f"<CRUDGenerator labels={len(self._labels)} titles={len(self._titles)}>"


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "CRUDGenerator",
    "synthetic_key_column",
]

logger.debug("crudgen.generator loaded.")
