"""
tests/test_planner_exporters.py
Tests for the artifact plan (crudgen.planner) and the write executor
(crudgen.exporters): paths, skip / force / dry-run policies, error
continuation, cancellation and resource-collision warnings.
"""

from __future__ import annotations

import pathlib
import stat
import threading
from typing import Callable, Dict, List, Optional

import pytest

from crudgen.errors import TemplateError
from crudgen.exporters import PlanExecutor
from crudgen.models import CRUDConfig
from crudgen.planner import (
    Artifact,
    artifact_path,
    backend_router_path,
    find_resource_collisions,
    frontend_router_path,
    menu_layout_path,
    plan_crud,
    plan_model,
)
from crudgen.templates import TemplateData, TemplateEngine

ARTICLE_PATHS: List[str] = [
    "services/admin-api/internal/model/article.go",
    "services/admin-api/internal/repository/article_repository.go",
    "services/admin-api/internal/service/article_service.go",
    "services/admin-api/internal/handler/article_handler.go",
    "web/admin/src/api/article.ts",
    "web/admin/src/views/Article/index.vue",
    "web/admin/src/views/Article/Form.vue",
]


class FailingEngine(TemplateEngine):
    """Renders normally except for the template names it is told to break."""

    def __init__(self, broken: List[str]) -> None:
        super().__init__()
        self.broken: List[str] = broken

    def render(self, name: str, data: TemplateData) -> str:
        if name in self.broken:
            raise TemplateError(f"template '{name}' failed: boom")
        return super().render(name, data)


class CancellingEngine(TemplateEngine):
    """Sets *event* once the first artifact has been rendered."""

    def __init__(self, event: threading.Event) -> None:
        super().__init__()
        self.event: threading.Event = event

    def render(self, name: str, data: TemplateData) -> str:
        output: str = super().render(name, data)
        self.event.set()
        return output


# ===========================================================================
# Planner
# ===========================================================================


class TestPlan:

    def test_full_plan(self, article_config: CRUDConfig) -> None:
        plan: List[Artifact] = plan_crud(article_config)
        assert [str(a) for a in plan] == ARTICLE_PATHS
        assert [a.template for a in plan] == [
            "model",
            "repository",
            "service",
            "handler",
            "ts_api",
            "list_view",
            "form_view",
        ]

    def test_backend_only(self, article_config: CRUDConfig) -> None:
        plan: List[Artifact] = plan_crud(article_config, with_frontend=False)
        assert [str(a) for a in plan] == ARTICLE_PATHS[:4]

    def test_model_only(self, article_config: CRUDConfig) -> None:
        assert [str(a) for a in plan_model(article_config)] == ARTICLE_PATHS[:1]

    def test_snake_case_file_names(self, article_config: CRUDConfig) -> None:
        cfg = article_config.model_copy(update={"model_name": "OrderItem"})
        assert str(artifact_path(cfg, "service")) == (
            "services/admin-api/internal/service/order_item_service.go"
        )
        assert str(artifact_path(cfg, "list_view")) == "web/admin/src/views/OrderItem/index.vue"

    def test_unknown_template(self, article_config: CRUDConfig) -> None:
        with pytest.raises(ValueError):
            artifact_path(article_config, "migration")

    def test_resolve(self, article_config: CRUDConfig, tmp_path: pathlib.Path) -> None:
        artifact = plan_model(article_config)[0]
        assert artifact.resolve(tmp_path) == tmp_path / "services" / "admin-api" / "internal" / "model" / "article.go"

    def test_splice_target_paths(self) -> None:
        assert str(backend_router_path("admin")) == "services/admin-api/internal/router/router.go"
        assert str(frontend_router_path()) == "web/admin/src/router/index.ts"
        assert str(menu_layout_path()) == "web/admin/src/layout/index.vue"


class TestResourceCollisions:

    def test_no_project_files(self, article_config: CRUDConfig, tmp_path: pathlib.Path) -> None:
        assert find_resource_collisions(article_config, tmp_path) == []

    def test_route_owned_by_another_handler(
        self, article_config: CRUDConfig, project_root: pathlib.Path
    ) -> None:
        cfg = article_config.model_copy(update={"resource_name": "users"})
        warnings: List[str] = find_resource_collisions(cfg, project_root)
        assert len(warnings) == 1
        assert "userHandler" in warnings[0]

    def test_own_route_is_not_a_collision(
        self, user_config: CRUDConfig, project_root: pathlib.Path
    ) -> None:
        assert find_resource_collisions(user_config, project_root) == []

    def test_existing_handler_file(self, article_config: CRUDConfig, tmp_path: pathlib.Path) -> None:
        handler_dir = tmp_path / "services" / "admin-api" / "internal" / "handler"
        handler_dir.mkdir(parents=True)
        (handler_dir / "blog_handler.go").write_text(
            "// @Router /api/v1/admin/articles [get]\n", encoding="utf-8"
        )
        (handler_dir / "article_handler.go").write_text(
            "// @Router /api/v1/admin/articles [get]\n", encoding="utf-8"
        )
        warnings: List[str] = find_resource_collisions(article_config, tmp_path)
        assert len(warnings) == 1
        assert "blog_handler.go" in warnings[0]


# ===========================================================================
# Executor
# ===========================================================================


class TestExecutor:

    def _run(
        self,
        cfg: CRUDConfig,
        output_dir: pathlib.Path,
        engine: Optional[TemplateEngine] = None,
        **policy: bool,
    ):
        executor = PlanExecutor(engine or TemplateEngine(), output_dir, **policy)
        return executor.execute(plan_crud(cfg), TemplateData.from_config(cfg))

    def test_creates_every_file(self, article_config: CRUDConfig, tmp_path: pathlib.Path) -> None:
        result = self._run(article_config, tmp_path)
        assert result.success
        assert len(result.created) == 7
        for rel in ARTICLE_PATHS:
            path = tmp_path / rel
            assert path.is_file()
            assert stat.S_IMODE(path.stat().st_mode) == 0o644
        assert [f.path for f in result.files] == [str(tmp_path / rel) for rel in ARTICLE_PATHS]

    def test_written_matches_render(self, article_config: CRUDConfig, tmp_path: pathlib.Path) -> None:
        self._run(article_config, tmp_path)
        expected: str = TemplateEngine().render("model", TemplateData.from_config(article_config))
        assert (tmp_path / ARTICLE_PATHS[0]).read_text(encoding="utf-8") == expected

    def test_dry_run_writes_nothing(
        self,
        article_config: CRUDConfig,
        tmp_path: pathlib.Path,
        snapshot: Callable[[pathlib.Path], Dict[str, bytes]],
    ) -> None:
        before = snapshot(tmp_path)
        result = self._run(article_config, tmp_path, dry_run=True)
        assert snapshot(tmp_path) == before
        assert len(result.created) == 7
        assert all(f.content for f in result.files)

    def test_existing_file_is_skipped(self, article_config: CRUDConfig, tmp_path: pathlib.Path) -> None:
        existing = tmp_path / ARTICLE_PATHS[0]
        existing.parent.mkdir(parents=True)
        existing.write_text("// hand written\n", encoding="utf-8")

        result = self._run(article_config, tmp_path)
        assert result.success
        assert [f.path for f in result.skipped] == [str(existing)]
        assert len(result.created) == 6
        assert existing.read_text(encoding="utf-8") == "// hand written\n"

    def test_force_overwrites(self, article_config: CRUDConfig, tmp_path: pathlib.Path) -> None:
        existing = tmp_path / ARTICLE_PATHS[0]
        existing.parent.mkdir(parents=True)
        existing.write_text("// hand written\n", encoding="utf-8")

        result = self._run(article_config, tmp_path, force=True)
        assert len(result.created) == 7
        assert existing.read_text(encoding="utf-8").startswith("package model\n")

    def test_render_error_does_not_stop_the_run(
        self, article_config: CRUDConfig, tmp_path: pathlib.Path
    ) -> None:
        result = self._run(article_config, tmp_path, engine=FailingEngine(["service"]))
        assert not result.success
        assert [f.status for f in result.files] == [
            "created",
            "created",
            "error",
            "created",
            "created",
            "created",
            "created",
        ]
        assert not (tmp_path / ARTICLE_PATHS[2]).exists()
        assert len(result.errors) == 1
        assert "boom" in result.errors[0]

    def test_write_error_is_recorded(self, article_config: CRUDConfig, tmp_path: pathlib.Path) -> None:
        blocker = tmp_path / "services" / "admin-api" / "internal" / "repository"
        blocker.parent.mkdir(parents=True)
        blocker.write_text("not a directory", encoding="utf-8")

        result = self._run(article_config, tmp_path)
        assert result.files[1].status == "error"
        assert result.files[1].error.startswith("cannot write file")
        assert len(result.created) == 6

    def test_cancel_between_artifacts(self, article_config: CRUDConfig, tmp_path: pathlib.Path) -> None:
        event = threading.Event()
        executor = PlanExecutor(CancellingEngine(event), tmp_path)
        result = executor.execute(
            plan_crud(article_config), TemplateData.from_config(article_config), cancel=event
        )
        assert result.cancelled
        assert not result.success
        assert len(result.files) == 1
        assert (tmp_path / ARTICLE_PATHS[0]).is_file()
        assert not (tmp_path / ARTICLE_PATHS[1]).exists()
        assert result.summary().endswith("cancelled")

    def test_cancelled_before_start(self, article_config: CRUDConfig, tmp_path: pathlib.Path) -> None:
        event = threading.Event()
        event.set()
        result = PlanExecutor(TemplateEngine(), tmp_path).execute(
            plan_crud(article_config), TemplateData.from_config(article_config), cancel=event
        )
        assert result.cancelled
        assert result.files == []
        assert list(tmp_path.iterdir()) == []
