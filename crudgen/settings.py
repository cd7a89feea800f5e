# File: crudgen/settings.py
"""
crudgen - Ambient Settings
==========================
Process-wide defaults read from ``CRUDGEN_*`` environment variables and an
optional ``.env`` file.  Command-line flags override every value here.

    CRUDGEN_DATABASE_URL     catalog to introspect
    CRUDGEN_CATALOG_TIMEOUT  seconds before a catalog call gives up
    CRUDGEN_DEFAULT_MODULE   module used when --module is omitted
    CRUDGEN_OUTPUT_DIR       root for generated artifacts
    CRUDGEN_CONFIG_DIR       where init:config writes documents
    CRUDGEN_LABEL_OVERRIDES  JSON object merged over the label dictionary
    CRUDGEN_TITLE_OVERRIDES  JSON object merged over the title dictionary
"""

from __future__ import annotations

import logging
from typing import Dict, List

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from crudgen.utils import DEFAULT_LABELS, DEFAULT_TITLES

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("crudgen.settings")


class CrudgenSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="CRUDGEN_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    database_url: str = Field(default="sqlite:///./crudgen.db")
    catalog_timeout: float = Field(default=10.0, gt=0)
    default_module: str = Field(default="admin", min_length=1)
    output_dir: str = Field(default=".")
    config_dir: str = Field(default="./configs/crud")
    label_overrides: Dict[str, str] = Field(default_factory=dict)
    title_overrides: Dict[str, str] = Field(default_factory=dict)

    @property
    def labels(self) -> Dict[str, str]:
        return {**DEFAULT_LABELS, **self.label_overrides}

    @property
    def titles(self) -> Dict[str, str]:
        return {**DEFAULT_TITLES, **self.title_overrides}


def load_settings() -> CrudgenSettings:
    settings: CrudgenSettings = CrudgenSettings()
    logger.debug(
        "Settings loaded: module=%s, timeout=%.1fs.",
        settings.default_module,
        settings.catalog_timeout,
    )
    return settings


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "CrudgenSettings",
    "load_settings",
]

logger.debug("crudgen.settings loaded.")
