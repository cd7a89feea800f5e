"""
tests/conftest.py
Shared fixtures for the crudgen test suite.

Catalog-backed fixtures come in two flavours:

- ``StaticCatalog``: an in-memory catalog holding MySQL-style ``TableInfo``
  objects (``bigint unsigned``, ``varchar(200)``, comments), used wherever
  the exact raw column types matter.
- ``sqlite_url``: a real SQLite database built with SQLAlchemy, used by the
  introspector and CLI tests.

No external mocking libraries are used; real file I/O is performed
inside temporary directories managed by pytest's tmp_path fixtures.
"""

from __future__ import annotations

import pathlib
import textwrap
from typing import Callable, Dict, List

import pytest
from sqlalchemy import create_engine, text

from crudgen.errors import UnknownTable
from crudgen.generator import CRUDGenerator
from crudgen.models import ColumnInfo, CRUDConfig, TableInfo


# ---------------------------------------------------------------------------
# In-memory catalog
# ---------------------------------------------------------------------------


class StaticCatalog:
    """Serves fixed ``TableInfo`` objects through the introspector interface."""

    def __init__(self, tables: List[TableInfo]) -> None:
        self._tables: Dict[str, TableInfo] = {t.name: t for t in tables}
        self.disposed: bool = False

    def list_tables(self) -> List[str]:
        return sorted(self._tables)

    def describe_table(self, name: str) -> TableInfo:
        if name not in self._tables:
            raise UnknownTable(name)
        return self._tables[name]

    def dispose(self) -> None:
        self.disposed = True


def _pk(type_: str = "bigint unsigned") -> ColumnInfo:
    return ColumnInfo(name="id", type=type_, nullable=False, key="primary", auto_increment=True)


def _col(name: str, type_: str, nullable: bool = True, **extra) -> ColumnInfo:
    return ColumnInfo(name=name, type=type_, nullable=nullable, **extra)


ARTICLES: TableInfo = TableInfo(
    name="articles",
    columns=[
        _pk("int"),
        _col("title", "varchar(200)", nullable=False),
        _col("content", "text"),
        _col("created_at", "datetime"),
        _col("updated_at", "datetime"),
    ],
)

SOFT_ARTICLES: TableInfo = TableInfo(
    name="posts",
    columns=[
        _pk(),
        _col("title", "varchar(200)", nullable=False),
        _col("content", "text"),
        _col("status", "tinyint(1)", nullable=False, default="1"),
        _col("created_at", "datetime"),
        _col("updated_at", "datetime"),
        _col("deleted_at", "datetime"),
    ],
)

USERS: TableInfo = TableInfo(
    name="users",
    columns=[
        _pk(),
        _col("email", "varchar(100)", nullable=False, key="unique"),
        _col("password", "varchar(255)", nullable=False),
        _col("is_active", "tinyint", nullable=False, default="1"),
        _col("avatar", "varchar(500)"),
        _col("phone", "varchar(11)", comment="手机号"),
        _col("created_at", "datetime"),
    ],
)

AUDIT_LOGS: TableInfo = TableInfo(
    name="audit_logs",
    columns=[
        _col("message", "text"),
        _col("level", "varchar(20)", nullable=False),
    ],
)


@pytest.fixture()
def catalog() -> StaticCatalog:
    return StaticCatalog([ARTICLES, SOFT_ARTICLES, USERS, AUDIT_LOGS])


@pytest.fixture()
def generator(catalog: StaticCatalog) -> CRUDGenerator:
    return CRUDGenerator(introspector=catalog)  # type: ignore[arg-type]


@pytest.fixture()
def article_config(generator: CRUDGenerator) -> CRUDConfig:
    """Scenario 1: id, title, content, created_at, updated_at."""
    return generator.generate_config_from_table("articles", "admin")


@pytest.fixture()
def post_config(generator: CRUDGenerator) -> CRUDConfig:
    """Soft-delete table with a status switch."""
    return generator.generate_config_from_table("posts", "admin")


@pytest.fixture()
def user_config(generator: CRUDGenerator) -> CRUDConfig:
    return generator.generate_config_from_table("users", "admin")


# ---------------------------------------------------------------------------
# SQLite catalog
# ---------------------------------------------------------------------------

SQLITE_DDL: List[str] = [
    """
    CREATE TABLE articles (
        id INTEGER PRIMARY KEY,
        title VARCHAR(200) NOT NULL,
        content TEXT,
        status INTEGER NOT NULL DEFAULT 1,
        created_at DATETIME,
        updated_at DATETIME,
        deleted_at DATETIME
    )
    """,
    """
    CREATE TABLE users (
        id INTEGER PRIMARY KEY,
        email VARCHAR(100) NOT NULL,
        password VARCHAR(255) NOT NULL,
        created_at DATETIME,
        CONSTRAINT uq_users_email UNIQUE (email)
    )
    """,
    """
    CREATE TABLE audit_logs (
        message TEXT,
        level VARCHAR(20) NOT NULL
    )
    """,
]


@pytest.fixture()
def sqlite_url(tmp_path: pathlib.Path) -> str:
    """A file-backed SQLite catalog with articles, users and audit_logs."""
    url: str = f"sqlite:///{tmp_path / 'catalog.db'}"
    engine = create_engine(url)
    with engine.begin() as conn:
        for ddl in SQLITE_DDL:
            conn.execute(text(ddl))
    engine.dispose()
    return url


# ---------------------------------------------------------------------------
# Splice targets
# ---------------------------------------------------------------------------

ROUTER_GO: str = textwrap.dedent(
    """\
    package router

    import (
    \t"github.com/gin-gonic/gin"
    \t"gorm.io/gorm"

    \t"goweb/pkg/logger"
    \t"goweb/services/admin-api/internal/handler"
    \t"goweb/services/admin-api/internal/middleware"
    \t"goweb/services/admin-api/internal/repository"
    \t"goweb/services/admin-api/internal/service"
    )

    func Setup(r *gin.Engine, db *gorm.DB, log logger.Logger) {
    \tuserRepo := repository.NewUserRepository(db)
    \tuserService := service.NewUserService(userRepo, log)
    \tuserHandler := handler.NewUserHandler(userService, log)

    \tapi := r.Group("/api/v1/admin")
    \tauth := api.Group("")
    \tauth.Use(middleware.Auth())
    \t{
    \t\tauth.GET("/users", userHandler.List)
    \t\tauth.GET("/users/:id", userHandler.Get)
    \t\tauth.POST("/users", userHandler.Create)
    \t\tauth.PUT("/users/:id", userHandler.Update)
    \t\tauth.DELETE("/users/:id", userHandler.Delete)
    \t}
    }
    """
)

ROUTER_TS: str = textwrap.dedent(
    """\
    import { createRouter, createWebHistory } from 'vue-router'
    import Layout from '@/layout/index.vue'

    const routes = [
      {
        path: '/login',
        name: 'Login',
        component: () => import('@/views/Login/index.vue')
      },
      {
        path: '/dashboard',
        component: Layout,
        children: [
          {
            path: 'users',
            name: 'UserList',
            component: () => import('@/views/User/index.vue'),
            meta: { title: '用户管理', requiresAuth: true }
          }
        ]
      }
    ]

    export default createRouter({ history: createWebHistory(), routes })
    """
)

LAYOUT_VUE: str = textwrap.dedent(
    """\
    <template>
      <el-container>
        <el-aside width="200px">
          <el-menu router :default-active="$route.path">
            <el-menu-item index="/dashboard/users">
              <el-icon><User /></el-icon>
              <span>用户管理</span>
            </el-menu-item>
          </el-menu>
        </el-aside>
        <el-main><router-view /></el-main>
      </el-container>
    </template>

    <script setup lang="ts">
    import { User } from '@element-plus/icons-vue'
    </script>
    """
)


@pytest.fixture()
def project_root(tmp_path: pathlib.Path) -> pathlib.Path:
    """A host project holding the three splice targets."""
    root: pathlib.Path = tmp_path / "project"
    router_go = root / "services" / "admin-api" / "internal" / "router" / "router.go"
    router_ts = root / "web" / "admin" / "src" / "router" / "index.ts"
    layout = root / "web" / "admin" / "src" / "layout" / "index.vue"
    for path, content in ((router_go, ROUTER_GO), (router_ts, ROUTER_TS), (layout, LAYOUT_VUE)):
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
    return root


def _snapshot(root: pathlib.Path) -> Dict[str, bytes]:
    return {
        str(p.relative_to(root)): p.read_bytes()
        for p in sorted(root.rglob("*"))
        if p.is_file()
    }


@pytest.fixture()
def snapshot() -> Callable[[pathlib.Path], Dict[str, bytes]]:
    """Every file under a directory, keyed by relative path."""
    return _snapshot
