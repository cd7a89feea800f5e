# File: crudgen/planner.py
"""
crudgen - Artifact Planner
==========================
Turns a ``CRUDConfig`` into the ordered plan of artifacts one run emits.

    1. model        services/{module}-api/internal/model/{snake}.go
    2. repository   services/{module}-api/internal/repository/{snake}_repository.go
    3. service      services/{module}-api/internal/service/{snake}_service.go
    4. handler      services/{module}-api/internal/handler/{snake}_handler.go
    5. ts_api       web/admin/src/api/{snake}.ts                 (with_frontend)
    6. list_view    web/admin/src/views/{Model}/index.vue        (with_frontend)
    7. form_view    web/admin/src/views/{Model}/Form.vue         (with_frontend)

Paths in a plan are relative; the executor resolves them against
``output_dir``.  The splice targets live here too so every path the tool
touches is defined in one place.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from pathlib import Path, PurePosixPath
from typing import Dict, List, Optional

from crudgen.models import CRUDConfig
from crudgen.utils import to_pascal_case, to_snake_case

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("crudgen.planner")

BACKEND_ARTIFACTS: List[str] = ["model", "repository", "service", "handler"]
FRONTEND_ARTIFACTS: List[str] = ["ts_api", "list_view", "form_view"]

FRONTEND_ROOT: PurePosixPath = PurePosixPath("web/admin/src")


@dataclass(frozen=True, slots=True)
class Artifact:
    """One planned file: which template renders it and where it goes."""

    template: str
    path: PurePosixPath

    def resolve(self, output_dir: Path) -> Path:
        return output_dir.joinpath(*self.path.parts)

    def __str__(self) -> str:
        return str(self.path)


# ---------------------------------------------------------------------------
# Paths
# ---------------------------------------------------------------------------


def backend_root(module: str) -> PurePosixPath:
    return PurePosixPath("services") / f"{module}-api" / "internal"


def backend_router_path(module: str) -> PurePosixPath:
    return backend_root(module) / "router" / "router.go"


def frontend_router_path() -> PurePosixPath:
    return FRONTEND_ROOT / "router" / "index.ts"


def menu_layout_path() -> PurePosixPath:
    return FRONTEND_ROOT / "layout" / "index.vue"


def view_folder(cfg: CRUDConfig) -> str:
    """Folder under ``views/`` holding both pages; the front-end route imports from it."""
    return to_pascal_case(cfg.model_name)


def artifact_path(cfg: CRUDConfig, template: str) -> PurePosixPath:
    snake: str = to_snake_case(cfg.model_name)
    pascal: str = view_folder(cfg)
    backend: PurePosixPath = backend_root(cfg.module)
    paths: Dict[str, PurePosixPath] = {
        "model": backend / "model" / f"{snake}.go",
        "repository": backend / "repository" / f"{snake}_repository.go",
        "service": backend / "service" / f"{snake}_service.go",
        "handler": backend / "handler" / f"{snake}_handler.go",
        "ts_api": FRONTEND_ROOT / "api" / f"{snake}.ts",
        "list_view": FRONTEND_ROOT / "views" / pascal / "index.vue",
        "form_view": FRONTEND_ROOT / "views" / pascal / "Form.vue",
    }
    try:
        return paths[template]
    except KeyError:
        raise ValueError(f"no artifact is rendered by template '{template}'") from None


# ---------------------------------------------------------------------------
# Plans
# ---------------------------------------------------------------------------


def plan_crud(cfg: CRUDConfig, with_frontend: bool = True) -> List[Artifact]:
    """Four back-end artifacts, plus three front-end ones when requested."""
    names: List[str] = list(BACKEND_ARTIFACTS)
    if with_frontend:
        names.extend(FRONTEND_ARTIFACTS)
    plan: List[Artifact] = [Artifact(name, artifact_path(cfg, name)) for name in names]
    logger.debug("Planned %d artifact(s) for %s.", len(plan), cfg.model_name)
    return plan


def plan_model(cfg: CRUDConfig) -> List[Artifact]:
    return [Artifact("model", artifact_path(cfg, "model"))]


# ---------------------------------------------------------------------------
# Resource collisions
# ---------------------------------------------------------------------------

_ROUTE_RE: re.Pattern[str] = re.compile(
    r'\.(?:GET|POST|PUT|DELETE|PATCH)\(\s*"/([A-Za-z0-9_\-]+)(?:/[^"]*)?"\s*,\s*(\w+?)Handler\.'
)
_SWAGGER_ROUTER_RE: re.Pattern[str] = re.compile(r"@Router\s+/api/v1/([\w\-]+)/([\w\-]+)")


def find_resource_collisions(cfg: CRUDConfig, project_root: Path) -> List[str]:
    """
    Warnings for a ``resource_name`` already served by another handler of
    the same module, found in the module router or in an existing handler
    file.  Nothing is rejected; the caller decides what to do.
    """
    warnings: List[str] = []
    internal: Path = project_root.joinpath(*backend_root(cfg.module).parts)

    router_file: Path = internal / "router" / "router.go"
    if router_file.is_file():
        owners: Dict[str, str] = {}
        for resource, handler_var in _ROUTE_RE.findall(
            router_file.read_text(encoding="utf-8", errors="replace")
        ):
            owners.setdefault(resource, handler_var)
        owner: Optional[str] = owners.get(cfg.resource_name)
        if owner is not None and owner.lower() != cfg.model_name_camel.lower():
            warnings.append(
                f"resource '/{cfg.resource_name}' is already routed to "
                f"{owner}Handler in {router_file}"
            )

    handler_dir: Path = internal / "handler"
    own_handler: str = artifact_path(cfg, "handler").name
    if handler_dir.is_dir():
        for path in sorted(handler_dir.glob("*.go")):
            if path.name == own_handler:
                continue
            text: str = path.read_text(encoding="utf-8", errors="replace")
            if (cfg.module, cfg.resource_name) in _SWAGGER_ROUTER_RE.findall(text):
                warnings.append(
                    f"resource '/{cfg.resource_name}' is already served by {path}"
                )

    for message in warnings:
        logger.warning("%s", message)
    return warnings


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "Artifact",
    "BACKEND_ARTIFACTS",
    "FRONTEND_ARTIFACTS",
    "backend_router_path",
    "frontend_router_path",
    "menu_layout_path",
    "view_folder",
    "artifact_path",
    "plan_crud",
    "plan_model",
    "find_resource_collisions",
]

logger.debug("crudgen.planner loaded.")
