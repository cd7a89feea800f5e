# File: crudgen/models.py
"""
crudgen - Core Data Models
==========================
Pydantic V2 models for everything the pipeline persists or validates, and
plain dataclasses for the per-run reports:

    ColumnInfo / TableInfo   ← what the catalog says
    FieldConfig / CRUDConfig ← what the user may edit (the config document)
    GenerateOptions / AutoRegisterOptions ← how a run behaves
    FileResult / GenerateResult / SpliceResult ← what a run did

``CRUDConfig`` is the single source of truth handed to the planner.  It is
built once (from the catalog or from a document) and not mutated after.

Structural invariants live here as validators; cross-field checks that
produce warnings instead of errors live in ``crudgen.validators``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Literal, Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    computed_field,
    field_validator,
    model_validator,
)

from crudgen.errors import NoPrimaryKey
from crudgen.utils import model_to_resource_name, to_camel_case, to_snake_case

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("crudgen.models")

# ---------------------------------------------------------------------------
# Shared model configuration
# ---------------------------------------------------------------------------

# Unknown keys are dropped so hand-edited documents normalise on load.
_SHARED_CONFIG: ConfigDict = ConfigDict(
    strict=False,
    populate_by_name=True,
    use_enum_values=True,
    extra="ignore",
    protected_namespaces=(),
)

KeyKind = Literal["primary", "unique", "indexed", "none"]

FormWidget = Literal[
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
]


# ---------------------------------------------------------------------------
# Catalog view
# ---------------------------------------------------------------------------


class ColumnInfo(BaseModel):
    """One database column as reported by the catalog."""

    model_config = _SHARED_CONFIG

    name: str = Field(..., min_length=1, description="Column name.")
    type: str = Field(..., min_length=1, description="Raw column type, e.g. 'varchar(200)'.")
    nullable: bool = Field(default=True, description="Column accepts NULL.")
    key: KeyKind = Field(default="none", description="Key kind.")
    default: Optional[str] = Field(default=None, description="Default value literal.")
    auto_increment: bool = Field(default=False, description="Auto-increment column.")
    comment: str = Field(default="", description="Column comment.")

    @computed_field  # type: ignore[misc]
    @property
    def is_primary_key(self) -> bool:
        return self.key == "primary"

    def __repr__(self) -> str:
        flags: str = " PK" if self.is_primary_key else ""
        return f"<ColumnInfo {self.name}: {self.type}{flags}>"


class TableInfo(BaseModel):
    """A table with its columns in ordinal order."""

    model_config = _SHARED_CONFIG

    name: str = Field(..., min_length=1)
    comment: str = Field(default="")
    columns: List[ColumnInfo] = Field(..., min_length=1)

    @model_validator(mode="after")
    def _at_most_one_primary_key(self) -> "TableInfo":
        primaries: List[str] = [c.name for c in self.columns if c.is_primary_key]
        if len(primaries) > 1:
            raise ValueError(
                f"table '{self.name}' has a composite primary key "
                f"({', '.join(primaries)}); only single-column keys are supported"
            )
        return self

    @property
    def primary_key(self) -> Optional[ColumnInfo]:
        for column in self.columns:
            if column.is_primary_key:
                return column
        return None

    def has_column(self, name: str) -> bool:
        return any(c.name == name for c in self.columns)

    def __repr__(self) -> str:
        return f"<TableInfo {self.name} ({len(self.columns)} columns)>"


# ---------------------------------------------------------------------------
# Config document
# ---------------------------------------------------------------------------


class Relation(BaseModel):
    """Declared association. Persisted and validated, not rendered."""

    model_config = _SHARED_CONFIG

    type: Literal["belongs_to", "has_many", "has_one"]
    model: str = Field(..., min_length=1)
    foreign_key: str = Field(default="")
    display_field: str = Field(default="")


class FieldConfig(BaseModel):
    """A column enriched with transport and UI settings."""

    model_config = _SHARED_CONFIG

    name: str = Field(..., min_length=1, description="Column name (snake_case).")
    type: str = Field(..., min_length=1, description="Raw column type.")
    go_type: str = Field(..., min_length=1, description="Back-end type.")
    ts_type: str = Field(..., min_length=1, description="Front-end type.")
    nullable: bool = False
    is_primary_key: bool = False
    auto_increment: bool = False
    default_value: str = ""
    comment: str = ""
    validations: List[str] = Field(default_factory=list)
    label: str = ""
    form_type: FormWidget = "input"
    list_visible: bool = True
    form_visible: bool = True
    searchable: bool = False
    sortable: bool = True
    relation: Optional[Relation] = None

    @field_validator("label", "comment", mode="before")
    @classmethod
    def _strip_text(cls, v: Any) -> Any:
        if v is None:
            return ""
        return v.strip() if isinstance(v, str) else v

    @field_validator("default_value", mode="before")
    @classmethod
    def _default_as_text(cls, v: Any) -> str:
        if v is None:
            return ""
        if isinstance(v, bool):
            return "1" if v else "0"
        return str(v)

    @model_validator(mode="before")
    @classmethod
    def _hide_generated_columns(cls, data: Any) -> Any:
        if isinstance(data, dict) and data.get("auto_increment"):
            data = dict(data)
            data["form_visible"] = False
        return data

    def __repr__(self) -> str:
        return f"<FieldConfig {self.name}: {self.go_type}/{self.ts_type}>"


class Features(BaseModel):
    """Feature switches for the emitted slice."""

    model_config = _SHARED_CONFIG

    soft_delete: bool = False
    timestamps: bool = False
    pagination: bool = True
    search: bool = True
    sort: bool = True
    export: bool = False
    import_: bool = Field(default=False, alias="import")
    batch_delete: bool = False


class FrontendConfig(BaseModel):
    """Menu and page settings for the admin UI."""

    model_config = _SHARED_CONFIG

    title: str = ""
    icon: str = "Document"
    show_in_menu: bool = True
    menu_parent: str = ""

    @field_validator("title", "icon", "menu_parent", mode="before")
    @classmethod
    def _strip_text(cls, v: Any) -> Any:
        if v is None:
            return ""
        return v.strip() if isinstance(v, str) else v


class GenerateOptions(BaseModel):
    """How one generation run writes its plan."""

    model_config = _SHARED_CONFIG

    output_dir: str = Field(default=".", description="Root every artifact path is resolved against.")
    with_frontend: bool = True
    force: bool = False
    dry_run: bool = False
    verbose: bool = False


class AutoRegisterOptions(BaseModel):
    """Which splice edits run, and where the targets live."""

    model_config = _SHARED_CONFIG

    register_backend: bool = True
    register_frontend: bool = True
    register_menu: bool = True
    dry_run: bool = False
    verbose: bool = False
    project_root: Optional[str] = Field(
        default=None,
        description="Directory the three targets are resolved against (defaults to output_dir).",
    )


class CRUDConfig(BaseModel):
    """
    Canonical description of one generated entity.

    ``model_name_camel`` is always recomputed from ``model_name`` and is
    never written back to the document.  ``resource_name`` defaults to the
    snake_case plural of the model name when the document omits it.
    """

    model_config = _SHARED_CONFIG

    table: str = Field(..., min_length=1)
    module: str = Field(..., min_length=1)
    model_name: str = Field(..., min_length=1, pattern=r"^[A-Z][A-Za-z0-9]*$")
    model_name_camel: str = Field(default="", exclude=True)
    resource_name: str = Field(default="", pattern=r"^[a-z0-9_]*$")
    fields: List[FieldConfig] = Field(..., min_length=1)
    features: Features = Field(default_factory=Features)
    frontend: FrontendConfig = Field(default_factory=FrontendConfig)
    options: GenerateOptions = Field(default_factory=GenerateOptions)

    @model_validator(mode="before")
    @classmethod
    def _derive_names(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        data = dict(data)
        model_name: Any = data.get("model_name")
        if isinstance(model_name, str) and model_name:
            data["model_name_camel"] = to_camel_case(model_name)
            if not data.get("resource_name"):
                data["resource_name"] = model_to_resource_name(model_name)
        return data

    @field_validator("fields")
    @classmethod
    def _unique_field_names(cls, v: List[FieldConfig]) -> List[FieldConfig]:
        seen: Dict[str, str] = {}
        for fc in v:
            key: str = to_snake_case(fc.name)
            if key in seen:
                raise ValueError(
                    f"duplicate field name '{fc.name}' (clashes with '{seen[key]}')"
                )
            seen[key] = fc.name
        return v

    @model_validator(mode="after")
    def _single_primary_key(self) -> "CRUDConfig":
        keys: List[str] = [f.name for f in self.fields if f.is_primary_key]
        if len(keys) > 1:
            raise ValueError(f"more than one primary-key field: {', '.join(keys)}")
        return self

    # -- Field views --------------------------------------------------------

    @property
    def primary_key(self) -> FieldConfig:
        for fc in self.fields:
            if fc.is_primary_key:
                return fc
        raise NoPrimaryKey(self.table)

    @property
    def create_fields(self) -> List[FieldConfig]:
        return [
            f for f in self.fields
            if f.form_visible and not f.is_primary_key and not f.auto_increment
        ]

    @property
    def searchable_fields(self) -> List[FieldConfig]:
        return [f for f in self.fields if f.searchable]

    def has_field(self, name: str) -> bool:
        return any(f.name == name for f in self.fields)

    def __repr__(self) -> str:
        return f"<CRUDConfig {self.module}/{self.model_name} ({len(self.fields)} fields)>"


# ---------------------------------------------------------------------------
# Run reports
# ---------------------------------------------------------------------------


@dataclass(frozen=False, slots=True)
class FileResult:
    """Outcome of one planned artifact."""

    path: str
    created: bool = False
    skipped: bool = False
    error: Optional[str] = None
    content: Optional[str] = None

    @property
    def status(self) -> str:
        if self.error:
            return "error"
        if self.skipped:
            return "skipped"
        return "created"


@dataclass(frozen=False, slots=True)
class GenerateResult:
    """Every artifact outcome of one run, plus collected errors and warnings."""

    files: List[FileResult] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    cancelled: bool = False

    @property
    def success(self) -> bool:
        return not self.errors and not self.cancelled

    @property
    def created(self) -> List[FileResult]:
        return [f for f in self.files if f.created]

    @property
    def skipped(self) -> List[FileResult]:
        return [f for f in self.files if f.skipped]

    def summary(self) -> str:
        status: str = "OK" if self.success else "FAILED"
        text: str = (
            f"{status}: {len(self.created)} created, "
            f"{len(self.skipped)} skipped, {len(self.errors)} error(s)"
        )
        if self.warnings:
            text += f", {len(self.warnings)} warning(s)"
        if self.cancelled:
            text += ", cancelled"
        return text


@dataclass(frozen=False, slots=True)
class SpliceResult:
    """Outcome of one source-splicer edit."""

    target: str
    path: str
    status: Literal["registered", "skipped", "error"] = "registered"
    message: str = ""

    @property
    def ok(self) -> bool:
        return self.status != "error"


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
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
]

logger.debug("crudgen.models loaded — %d public symbols.", len(__all__))
