# File: crudgen/__init__.py
"""
crudgen - CRUD Code Generator
=============================

Reads one table definition from a relational catalog (or from an edited
YAML config document) and emits a vertical CRUD slice: a Go back-end
(model, repository, service, handler) and a Vue 3 + TypeScript admin
front-end (API client, list view, form view).  Optionally splices the new
routes and menu entry into the host project.

Architecture overview::

    ┌──────────────┐     ┌────────────────┐     ┌──────────────────┐
    │  CLI / Entry │────▶│  CRUDGenerator │────▶│  TemplateEngine  │
    │   (cli.py)   │     │ (generator.py) │     │  (templates.py)  │
    └──────────────┘     └───────┬────────┘     └──────────────────┘
                                 │
          ┌────────────┬─────────┼─────────┬────────────┐
          ▼            ▼         ▼         ▼            ▼
    ┌───────────┐ ┌──────────┐ ┌───────┐ ┌───────────┐ ┌──────────┐
    │introspect │ │ document │ │planner│ │ exporters │ │ splicer  │
    │   (.py)   │ │  (.py)   │ │ (.py) │ │   (.py)   │ │  (.py)   │
    └───────────┘ └──────────┘ └───────┘ └───────────┘ └──────────┘

Usage::

    # As a library
    from crudgen import CRUDGenerator, GenerateOptions
    gen = CRUDGenerator("sqlite:///app.db")
    cfg = gen.generate_config_from_table("articles", "admin")
    print(gen.generate_crud(cfg, GenerateOptions(output_dir="./out")).summary())

    # From the command line
    crudgen gen:crud --table=articles --auto-register

Public API:
    - CRUDGenerator      Orchestrator
    - CRUDConfig         The editable generation config
    - SchemaIntrospector Catalog reader
    - TemplateEngine     Jinja2 template registry
    - SourceSplicer      Route and menu registration
    - validate_config    Semantic checks
"""

from __future__ import annotations

__version__: str = "1.0.0"
__author__: str = "Diegoproggramer"
__license__: str = "MIT"

from crudgen.errors import (
    AlreadyRegistered,
    CatalogUnavailable,
    CrudgenError,
    InvalidInput,
    NoPrimaryKey,
    PatternNotFound,
    TemplateError,
    UnknownTable,
    WriteError,
)
from crudgen.models import (
    AutoRegisterOptions,
    ColumnInfo,
    CRUDConfig,
    Features,
    FieldConfig,
    FileResult,
    FrontendConfig,
    GenerateOptions,
    GenerateResult,
    Relation,
    SpliceResult,
    TableInfo,
)
from crudgen.document import load_config, save_config
from crudgen.introspect import SchemaIntrospector
from crudgen.templates import TemplateData, TemplateEngine
from crudgen.planner import Artifact, plan_crud, plan_model
from crudgen.exporters import PlanExecutor
from crudgen.splicer import SourceSplicer
from crudgen.validators import ValidationResult, validate_config
from crudgen.generator import CRUDGenerator

# ---------------------------------------------------------------------------
# Public API surface
# ---------------------------------------------------------------------------

__all__: list[str] = [
    # Version info
    "__version__",
    "__author__",
    "__license__",
    # Orchestrator
    "CRUDGenerator",
    # Models
    "ColumnInfo",
    "TableInfo",
    "Relation",
    "FieldConfig",
    "Features",
    "FrontendConfig",
    "GenerateOptions",
    "AutoRegisterOptions",
    "CRUDConfig",
    "FileResult",
    "GenerateResult",
    "SpliceResult",
    # Errors
    "CrudgenError",
    "InvalidInput",
    "UnknownTable",
    "CatalogUnavailable",
    "NoPrimaryKey",
    "TemplateError",
    "WriteError",
    "PatternNotFound",
    "AlreadyRegistered",
    # Pipeline
    "SchemaIntrospector",
    "load_config",
    "save_config",
    "TemplateData",
    "TemplateEngine",
    "Artifact",
    "plan_crud",
    "plan_model",
    "PlanExecutor",
    "SourceSplicer",
    "ValidationResult",
    "validate_config",
]
