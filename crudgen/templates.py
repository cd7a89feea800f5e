# File: crudgen/templates.py
"""
crudgen - Template Engine
=========================
A named-template registry over one Jinja2 ``Environment`` whose helper set
is shared by every template:

    model       → services/{module}-api/internal/model/{snake}.go
    repository  → .../repository/{snake}_repository.go
    service     → .../service/{snake}_service.go
    handler     → .../handler/{snake}_handler.go
    ts_api      → web/admin/src/api/{snake}.ts
    list_view   → web/admin/src/views/{Model}/index.vue
    form_view   → web/admin/src/views/{Model}/Form.vue

**Determinism contract:**
    - Templates only iterate ordered sequences (``fields`` keeps column
      order); no timestamps, no set iteration.
    - ``StrictUndefined``: a missing attribute is a ``TemplateError``, not
      an empty string.

Templates ship as package data under ``crudgen/jinja_templates/*.j2``.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

import jinja2
from jinja2 import Environment, PackageLoader, StrictUndefined

from crudgen.errors import TemplateError
from crudgen.models import CRUDConfig, FieldConfig
from crudgen.typemap import strip_pointer
from crudgen.utils import (
    lcfirst,
    to_camel_case,
    to_kebab_case,
    to_pascal_case,
    to_plural,
    to_snake_case,
)

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("crudgen.templates")

# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------

TEMPLATE_FILES: Dict[str, str] = {
    "model": "model.go.j2",
    "repository": "repository.go.j2",
    "service": "service.go.j2",
    "handler": "handler.go.j2",
    "ts_api": "api.ts.j2",
    "list_view": "list.vue.j2",
    "form_view": "form.vue.j2",
}

TEMPLATE_NAMES: List[str] = list(TEMPLATE_FILES)

SOFT_DELETE_COLUMN: str = "deleted_at"

_RULE_SPLIT_RE: re.Pattern[str] = re.compile(r"^(min|max|len):(\d+)$")


# ---------------------------------------------------------------------------
# Template data
# ---------------------------------------------------------------------------


@dataclass(frozen=False, slots=True)
class TemplateData:
    """Everything a template may read.  Built from a ``CRUDConfig``."""

    table: str
    module: str
    model_name: str
    model_name_camel: str
    resource_name: str
    title: str
    icon: str
    fields: List[FieldConfig] = field(default_factory=list)
    primary_key: Optional[FieldConfig] = None
    has_soft_delete: bool = False
    has_timestamps: bool = False
    has_pagination: bool = True
    has_search: bool = True
    has_sort: bool = True
    has_batch_delete: bool = False

    @classmethod
    def from_config(cls, cfg: CRUDConfig) -> "TemplateData":
        """
        Build template data.

        ``has_search`` is only true when at least one field is searchable,
        so the repository never emits a keyword clause with no columns.

        Raises:
            NoPrimaryKey: *cfg* has no primary-key field.
        """
        return cls(
            table=cfg.table,
            module=cfg.module,
            model_name=cfg.model_name,
            model_name_camel=cfg.model_name_camel or to_camel_case(cfg.model_name),
            resource_name=cfg.resource_name,
            title=cfg.frontend.title or cfg.model_name,
            icon=cfg.frontend.icon,
            fields=list(cfg.fields),
            primary_key=cfg.primary_key,
            has_soft_delete=cfg.features.soft_delete,
            has_timestamps=cfg.features.timestamps,
            has_pagination=cfg.features.pagination,
            has_search=cfg.features.search and bool(cfg.searchable_fields),
            has_sort=cfg.features.sort,
            has_batch_delete=cfg.features.batch_delete,
        )

    # -- Field views used by several templates ------------------------------

    @property
    def snake_name(self) -> str:
        return to_snake_case(self.model_name)

    @property
    def kebab_name(self) -> str:
        return to_kebab_case(self.model_name)

    @property
    def create_fields(self) -> List[FieldConfig]:
        return [
            f for f in self.fields
            if f.form_visible and not f.is_primary_key and not f.auto_increment
        ]

    @property
    def update_fields(self) -> List[FieldConfig]:
        return self.create_fields

    @property
    def list_fields(self) -> List[FieldConfig]:
        return [f for f in self.fields if f.list_visible]

    @property
    def sortable_fields(self) -> List[FieldConfig]:
        return [f for f in self.fields if f.sortable]

    def to_context(self) -> Dict[str, Any]:
        return {"d": self}


# ---------------------------------------------------------------------------
# Helpers: validation rules
# ---------------------------------------------------------------------------


def join_validations(validations: List[str]) -> str:
    """Rule tokens as written in the config document: ``required,max:200``."""
    return ",".join(validations)


def _binding_token(token: str) -> str:
    match: Optional[re.Match[str]] = _RULE_SPLIT_RE.match(token)
    if match:
        return f"{match.group(1)}={match.group(2)}"
    return token.replace(":", "=")


def binding_rules(validations: List[str], partial: bool = False) -> str:
    """
    Request-binding rule string (``required,max=200``).

    Optional fields get a leading ``omitempty`` so an empty value skips the
    remaining rules.  With *partial* (update requests) ``required`` is
    dropped, every field being optional.
    """
    tokens: List[str] = [
        _binding_token(t) for t in validations if not (partial and t == "required")
    ]
    if not tokens:
        return ""
    if "required" not in tokens:
        tokens.insert(0, "omitempty")
    return ",".join(tokens)


def has_rule(validations: List[str], name: str) -> bool:
    return name in validations


def _rule_value(validations: List[str], kind: str) -> Optional[str]:
    for token in validations:
        match: Optional[re.Match[str]] = _RULE_SPLIT_RE.match(token)
        if match and match.group(1) == kind:
            return match.group(2)
    return None


def has_min_length(validations: List[str]) -> bool:
    return _rule_value(validations, "min") is not None


def has_max_length(validations: List[str]) -> bool:
    return _rule_value(validations, "max") is not None


def get_min_length(validations: List[str]) -> str:
    return _rule_value(validations, "min") or "0"


def get_max_length(validations: List[str]) -> str:
    return _rule_value(validations, "max") or "255"


def get_exact_length(validations: List[str]) -> Optional[str]:
    return _rule_value(validations, "len")


# ---------------------------------------------------------------------------
# Helpers: Go tags and types
# ---------------------------------------------------------------------------


def go_field_name(name: str) -> str:
    return to_pascal_case(name)


def is_soft_delete_field(fc: FieldConfig, data: TemplateData) -> bool:
    return data.has_soft_delete and fc.name == SOFT_DELETE_COLUMN


def model_go_type(fc: FieldConfig, data: TemplateData) -> str:
    """Type of *fc* on the entity struct; soft-delete column uses gorm's type."""
    if is_soft_delete_field(fc, data):
        return "gorm.DeletedAt"
    return fc.go_type


def update_go_type(fc: FieldConfig) -> str:
    """Pointer form used by partial-update requests."""
    if fc.go_type.startswith("*") or fc.go_type.startswith("[]"):
        return fc.go_type
    return "*" + fc.go_type


def update_needs_deref(fc: FieldConfig) -> bool:
    """True when the entity field is a value type and the request holds a pointer."""
    return not fc.go_type.startswith("*") and not fc.go_type.startswith("[]")


def gorm_tag(fc: FieldConfig) -> str:
    """
    ``gorm:"column:title;type:varchar(200);not null;default:x"``.

    The default is omitted when empty.  ``;`` inside it is escaped for gorm's
    setting parser, then ``\\`` and ``"`` for the struct-tag quoting.  A
    default containing a backtick cannot sit in a raw string and is dropped.
    """
    parts: List[str] = [f"column:{fc.name}", f"type:{fc.type}"]
    if fc.is_primary_key:
        parts.append("primaryKey")
    if fc.auto_increment:
        parts.append("autoIncrement")
    if not fc.nullable:
        parts.append("not null")
    default: str = fc.default_value
    if default and default != "<nil>":
        if "`" in default:
            logger.warning("Default of %s contains a backtick; left out of the gorm tag.", fc.name)
        else:
            parts.append("default:" + default.replace(";", "\\;"))
    tag: str = ";".join(parts).replace("\\", "\\\\").replace('"', '\\"')
    return 'gorm:"' + tag + '"'


def json_tag(fc: FieldConfig, omitempty: Optional[bool] = None) -> str:
    """``json:"snake"``; nullable fields add ``,omitempty``."""
    name: str = to_snake_case(fc.name)
    if omitempty is None:
        omitempty = fc.nullable
    if omitempty:
        return f'json:"{name},omitempty"'
    return f'json:"{name}"'


def needs_time_import(fields: List[FieldConfig]) -> bool:
    return any(strip_pointer(f.go_type) == "time.Time" for f in fields)


def needs_model_time_import(data: TemplateData) -> bool:
    """The entity file imports ``time`` unless the only time field became gorm.DeletedAt."""
    types: List[str] = [model_go_type(f, data) for f in data.fields]
    types.extend(f.go_type for f in data.create_fields)
    return any(strip_pointer(t) == "time.Time" for t in types)


def uses_deleted_at_type(data: TemplateData) -> bool:
    return any(is_soft_delete_field(f, data) for f in data.fields)


# ---------------------------------------------------------------------------
# Helpers: keys and search
# ---------------------------------------------------------------------------


def primary_key_name(fields: List[FieldConfig]) -> str:
    for fc in fields:
        if fc.is_primary_key:
            return fc.name
    return "id"


def primary_key_snake_name(fields: List[FieldConfig]) -> str:
    return to_snake_case(primary_key_name(fields))


def search_condition(fields: List[FieldConfig]) -> str:
    """``title LIKE ? OR content LIKE ?`` over every searchable field."""
    names: List[str] = [f.name for f in fields if f.searchable]
    if not names:
        return "1=1"
    return " OR ".join(f"{name} LIKE ?" for name in names)


def search_params(fields: List[FieldConfig], placeholder: str = "keyword") -> str:
    """One wildcard argument per searchable field, comma-joined."""
    count: int = sum(1 for f in fields if f.searchable)
    return ", ".join([placeholder] * max(count, 1))


# ---------------------------------------------------------------------------
# Helpers: front end
# ---------------------------------------------------------------------------


def default_value(fc: FieldConfig) -> str:
    """Initial form value, as a TypeScript literal."""
    if fc.ts_type == "number":
        return "0"
    if fc.ts_type == "boolean":
        return "false"
    if fc.ts_type == "string":
        return "''"
    if fc.nullable:
        return "undefined"
    return "''"


def is_time_field(fc: FieldConfig) -> bool:
    return strip_pointer(fc.go_type) == "time.Time"


def one_line(text: str) -> str:
    """Collapse whitespace runs, newlines included, so text fits a ``//`` comment."""
    return " ".join(text.split())


def ts_literal(value: str) -> str:
    """Single-quoted TypeScript string literal."""
    return "'" + value.replace("\\", "\\\\").replace("'", "\\'") + "'"


# ---------------------------------------------------------------------------
# Environment
# ---------------------------------------------------------------------------

_FILTERS: Dict[str, Callable[..., Any]] = {
    "snake": to_snake_case,
    "pascal": to_pascal_case,
    "camel": to_camel_case,
    "kebab": to_kebab_case,
    "plural": to_plural,
    "lcfirst": lcfirst,
    "go_name": go_field_name,
    "gorm_tag": gorm_tag,
    "json_tag": json_tag,
    "join_validations": join_validations,
    "binding_rules": binding_rules,
    "update_go_type": update_go_type,
    "default_value": default_value,
    "ts_literal": ts_literal,
    "one_line": one_line,
}

_GLOBALS: Dict[str, Callable[..., Any]] = {
    "has_rule": has_rule,
    "has_min_length": has_min_length,
    "has_max_length": has_max_length,
    "get_min_length": get_min_length,
    "get_max_length": get_max_length,
    "get_exact_length": get_exact_length,
    "model_go_type": model_go_type,
    "is_soft_delete_field": is_soft_delete_field,
    "update_needs_deref": update_needs_deref,
    "needs_time_import": needs_time_import,
    "needs_model_time_import": needs_model_time_import,
    "uses_deleted_at_type": uses_deleted_at_type,
    "primary_key_name": primary_key_name,
    "primary_key_snake_name": primary_key_snake_name,
    "search_condition": search_condition,
    "search_params": search_params,
    "is_time_field": is_time_field,
}


def create_environment() -> Environment:
    """Jinja2 environment with the shared helper set installed."""
    env: Environment = Environment(
        loader=PackageLoader("crudgen", "jinja_templates"),
        undefined=StrictUndefined,
        autoescape=False,
        trim_blocks=True,
        lstrip_blocks=True,
        keep_trailing_newline=True,
    )
    env.filters.update(_FILTERS)
    env.globals.update(_GLOBALS)
    return env


class TemplateEngine:
    """
    Renders the seven named templates.

    Usage::

        engine = TemplateEngine()
        source = engine.render("model", TemplateData.from_config(cfg))
    """

    def __init__(self, env: Optional[Environment] = None) -> None:
        self._env: Environment = env or create_environment()

    @property
    def names(self) -> List[str]:
        return list(TEMPLATE_NAMES)

    def render(self, name: str, data: TemplateData) -> str:
        """
        Render template *name* with *data*.

        Raises:
            TemplateError: unknown template name, or any Jinja2 failure
                (syntax, undefined attribute, helper error).
        """
        filename: Optional[str] = TEMPLATE_FILES.get(name)
        if filename is None:
            raise TemplateError(f"unknown template '{name}'")
        try:
            template: jinja2.Template = self._env.get_template(filename)
            output: str = template.render(data.to_context())
        except jinja2.TemplateError as exc:
            raise TemplateError(f"template '{name}' failed: {exc}") from exc
        except (TypeError, AttributeError, ValueError) as exc:
            raise TemplateError(f"template '{name}' failed: {exc}") from exc

        logger.debug("Rendered %s for %s (%d chars).", name, data.model_name, len(output))
        return output

    def render_all(self, data: TemplateData) -> Dict[str, str]:
        return {name: self.render(name, data) for name in TEMPLATE_NAMES}


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "TEMPLATE_FILES",
    "TEMPLATE_NAMES",
    "TemplateData",
    "TemplateEngine",
    "create_environment",
    "join_validations",
    "binding_rules",
    "gorm_tag",
    "json_tag",
    "default_value",
    "one_line",
    "needs_time_import",
    "primary_key_name",
    "search_condition",
    "search_params",
]

logger.debug("crudgen.templates loaded.")
