# File: crudgen/document.py
"""
crudgen - Config Document
=========================
Load and save ``CRUDConfig`` as a human-editable YAML document.

Round trip::

    load_config(save_config(cfg, d)) == normalize(cfg)

where ``normalize`` recomputes ``model_name_camel``, strips whitespace from
labels and titles, and drops unknown keys.  ``model_name_camel`` is never
written.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, List, Union

import yaml
from pydantic import ValidationError

from crudgen.errors import InvalidInput, WriteError
from crudgen.models import CRUDConfig
from crudgen.utils import read_file, to_snake_case, write_file

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("crudgen.document")

DOCUMENT_SUFFIX: str = ".yaml"

# Top-level key order of the persisted form.
_TOP_LEVEL_KEYS: List[str] = [
    "table",
    "module",
    "model_name",
    "resource_name",
    "fields",
    "features",
    "frontend",
    "options",
]


def to_document(cfg: CRUDConfig) -> Dict[str, Any]:
    """Plain-dict form of *cfg* in document key order."""
    dumped: Dict[str, Any] = cfg.model_dump(mode="json", by_alias=True)
    for fc in dumped["fields"]:
        if fc.get("relation") is None:
            fc.pop("relation", None)
    return {key: dumped[key] for key in _TOP_LEVEL_KEYS}


def dump_document(cfg: CRUDConfig) -> str:
    return yaml.safe_dump(
        to_document(cfg),
        sort_keys=False,
        allow_unicode=True,
        default_flow_style=False,
    )


def parse_document(data: Any, source: str = "<document>") -> CRUDConfig:
    """Validate a parsed mapping into a ``CRUDConfig``."""
    if not isinstance(data, dict):
        raise InvalidInput(
            f"expected a mapping at top level, got {type(data).__name__}",
            path=source,
        )
    try:
        return CRUDConfig.model_validate(data)
    except ValidationError as exc:
        raise InvalidInput(f"invalid config document: {exc}", path=source) from exc


def normalize(cfg: CRUDConfig) -> CRUDConfig:
    """Idempotent projection applied on every load."""
    return parse_document(to_document(cfg))


def config_filename(cfg: CRUDConfig) -> str:
    return to_snake_case(cfg.model_name) + DOCUMENT_SUFFIX


def save_config(cfg: CRUDConfig, directory: Union[str, Path]) -> Path:
    """
    Write *cfg* to ``<directory>/<snake_model>.yaml`` and return the path.

    Raises:
        WriteError: the directory or file cannot be written.
    """
    target: Path = Path(directory) / config_filename(cfg)
    try:
        write_file(target, dump_document(cfg))
    except OSError as exc:
        raise WriteError(f"cannot save config: {exc}", path=str(target)) from exc
    logger.info("Saved config for %s to %s.", cfg.model_name, target)
    return target


def load_config(path: Union[str, Path]) -> CRUDConfig:
    """
    Read a config document.

    Raises:
        InvalidInput: the file is missing, unreadable, not YAML, or does
            not describe a valid config.
    """
    source: Path = Path(path)
    try:
        text: str = read_file(source)
    except OSError as exc:
        raise InvalidInput(f"cannot read config: {exc.strerror or exc}", path=str(source)) from exc

    try:
        data: Any = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise InvalidInput(f"invalid YAML: {exc}", path=str(source)) from exc

    cfg: CRUDConfig = parse_document(data, str(source))
    logger.info("Loaded config %s from %s.", cfg.model_name, source)
    return cfg


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "to_document",
    "dump_document",
    "parse_document",
    "normalize",
    "config_filename",
    "save_config",
    "load_config",
]

logger.debug("crudgen.document loaded.")
