# File: crudgen/validators.py
"""
crudgen - Config Validators
===========================
Semantic checks over a ``CRUDConfig`` that Pydantic's structural
validation cannot express because they produce **warnings**, not
rejections:

    - features that assume columns the table does not have
    - validation-rule tokens outside the closed rule set
    - menu icons that are not identifiers

Hard failures (missing primary key) are reported as errors so callers can
decide whether to abort.  Resource-name collisions need the target tree
and are checked by ``crudgen.planner``.

Usage:
    from crudgen.validators import validate_config
    result = validate_config(cfg)
    for item in result.warnings:
        logger.warning("%s", item)
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from crudgen.models import CRUDConfig
from crudgen.typemap import is_known_rule
from crudgen.utils import is_identifier

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("crudgen.validators")

# ---------------------------------------------------------------------------
# Validation result container
# ---------------------------------------------------------------------------


class ValidationIssue:
    """Lightweight issue descriptor."""

    __slots__ = ("level", "code", "message", "context")

    def __init__(
        self,
        level: str,
        code: str,
        message: str,
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.level: str = level  # "error" | "warning"
        self.code: str = code
        self.message: str = message
        self.context: Dict[str, Any] = context or {}

    @property
    def is_error(self) -> bool:
        return self.level == "error"

    @property
    def is_warning(self) -> bool:
        return self.level == "warning"

    def __repr__(self) -> str:
        return f"[{self.level.upper()}] {self.code}: {self.message}"

    def __str__(self) -> str:
        return self.message


class ValidationResult:
    """Accumulates ``ValidationIssue`` instances produced by the checks."""

    __slots__ = ("_items",)

    def __init__(self) -> None:
        self._items: List[ValidationIssue] = []

    def add_error(
        self,
        code: str,
        message: str,
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        self._items.append(ValidationIssue("error", code, message, context))

    def add_warning(
        self,
        code: str,
        message: str,
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        self._items.append(ValidationIssue("warning", code, message, context))

    def merge(self, other: "ValidationResult") -> None:
        self._items.extend(other._items)

    @property
    def errors(self) -> List[ValidationIssue]:
        return [i for i in self._items if i.is_error]

    @property
    def warnings(self) -> List[ValidationIssue]:
        return [i for i in self._items if i.is_warning]

    @property
    def codes(self) -> List[str]:
        return [i.code for i in self._items]

    @property
    def is_valid(self) -> bool:
        return not any(i.is_error for i in self._items)

    def summary(self) -> str:
        return (
            f"Validation: {len(self.errors)} error(s), "
            f"{len(self.warnings)} warning(s)."
        )

    def __repr__(self) -> str:
        return f"<ValidationResult {self.summary()}>"

    def __bool__(self) -> bool:
        """Truthy when there are no errors."""
        return self.is_valid

    def __len__(self) -> int:
        return len(self._items)


# ---------------------------------------------------------------------------
# Individual checks
# ---------------------------------------------------------------------------


def validate_primary_key(cfg: CRUDConfig) -> ValidationResult:
    result: ValidationResult = ValidationResult()
    if not any(f.is_primary_key for f in cfg.fields):
        result.add_error(
            "no_primary_key",
            f"{cfg.table}: no primary-key field",
            {"table": cfg.table},
        )
    return result


def validate_features(cfg: CRUDConfig) -> ValidationResult:
    """Feature flags that rely on conventional column names."""
    result: ValidationResult = ValidationResult()
    if cfg.features.soft_delete and not cfg.has_field("deleted_at"):
        result.add_warning(
            "soft_delete_without_column",
            f"{cfg.table}: soft_delete is enabled but there is no deleted_at column",
        )
    if cfg.features.timestamps:
        missing: List[str] = [
            name for name in ("created_at", "updated_at") if not cfg.has_field(name)
        ]
        if missing:
            result.add_warning(
                "timestamps_without_columns",
                f"{cfg.table}: timestamps is enabled but {', '.join(missing)} is missing",
                {"missing": missing},
            )
    return result


def validate_rules(cfg: CRUDConfig) -> ValidationResult:
    """Rule tokens outside the closed set are carried through, with a warning."""
    result: ValidationResult = ValidationResult()
    for fc in cfg.fields:
        for token in fc.validations:
            if not is_known_rule(token):
                result.add_warning(
                    "unknown_validation_rule",
                    f"{fc.name}: validation rule '{token}' is not generated by crudgen "
                    "and is passed through unchanged",
                    {"field": fc.name, "rule": token},
                )
    return result


def validate_frontend(cfg: CRUDConfig) -> ValidationResult:
    result: ValidationResult = ValidationResult()
    if cfg.frontend.show_in_menu and not is_identifier(cfg.frontend.icon):
        result.add_warning(
            "invalid_menu_icon",
            f"menu icon '{cfg.frontend.icon}' is not an identifier; "
            "menu registration will fail",
        )
    if not cfg.frontend.title:
        result.add_warning("empty_title", f"{cfg.model_name}: frontend title is empty")
    return result


# ---------------------------------------------------------------------------
# Full pipeline
# ---------------------------------------------------------------------------


def validate_config(cfg: CRUDConfig) -> ValidationResult:
    """Run every check and log the warnings."""
    result: ValidationResult = ValidationResult()
    result.merge(validate_primary_key(cfg))
    result.merge(validate_features(cfg))
    result.merge(validate_rules(cfg))
    result.merge(validate_frontend(cfg))

    for issue in result.warnings:
        logger.warning("%s", issue.message)
    logger.debug(result.summary())
    return result


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "ValidationIssue",
    "ValidationResult",
    "validate_primary_key",
    "validate_features",
    "validate_rules",
    "validate_frontend",
    "validate_config",
]

logger.debug("crudgen.validators loaded.")
