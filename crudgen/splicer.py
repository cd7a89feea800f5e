# File: crudgen/splicer.py
"""
crudgen - Source Splicer
========================
Idempotent insertions into three source files the target project owns:

    services/{module}-api/internal/router/router.go   imports, init block, routes
    web/admin/src/router/index.ts                     dashboard child route
    web/admin/src/layout/index.vue                    menu item, icon import

Edits are driven by textual anchors, not by parsing:

    - last ``xHandler := handler.NewXHandler(...)`` line
    - last ``auth.DELETE(...)`` line
    - the ``children: [...]`` array of the ``dashboard`` route
    - the last ``</el-menu>`` tag and the icon-package import

Every edit first looks for its sentinel (the handler name, the route name,
the menu path).  When present the edit raises ``AlreadyRegistered`` and the
file is left alone.  Every anchor is located before anything is written: a
missing anchor raises ``PatternNotFound`` and the file is untouched.  Text
is only ever inserted.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Callable, List, Optional, Tuple

from crudgen.errors import (
    AlreadyRegistered,
    CrudgenError,
    InvalidInput,
    PatternNotFound,
    WriteError,
)
from crudgen.models import AutoRegisterOptions, CRUDConfig, SpliceResult
from crudgen.planner import (
    backend_router_path,
    frontend_router_path,
    menu_layout_path,
    view_folder,
)
from crudgen.utils import is_identifier, read_file, write_file

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("crudgen.splicer")

# (start, end, replacement) on the original text
Edit = Tuple[int, int, str]

BACKEND_PACKAGES: Tuple[str, ...] = ("handler", "repository", "service")
DEFAULT_MODULE_PATH: str = "goweb"
DEFAULT_DB_VAR: str = "database"
DEFAULT_LOGGER_VAR: str = "log"
ICON_PACKAGE: str = "@element-plus/icons-vue"

_IMPORT_GROUP_RE: re.Pattern[str] = re.compile(r"^import\s*\((.*?)^\)", re.M | re.S)
_HANDLER_LINE_RE: re.Pattern[str] = re.compile(
    r"^([ \t]*)\w+Handler\s*:=\s*handler\.New\w*Handler\(([^)\n]*)\)[^\n]*\n", re.M
)
_REPO_LINE_RE: re.Pattern[str] = re.compile(
    r"^[ \t]*\w+\s*:=\s*repository\.New\w*Repository\(\s*(\w+)\s*\)", re.M
)
_AUTH_DELETE_RE: re.Pattern[str] = re.compile(r"^([ \t]*)auth\.DELETE\([^)]+\)[^\n]*\n", re.M)
_DASHBOARD_RE: re.Pattern[str] = re.compile(r"""path\s*:\s*['"]/?dashboard['"]""")
_CHILDREN_RE: re.Pattern[str] = re.compile(r"children\s*:\s*\[")
_MENU_CLOSE_RE: re.Pattern[str] = re.compile(r"</el-menu>")
_ICON_IMPORT_RE: re.Pattern[str] = re.compile(
    r"""import\s*\{([^}]*)\}\s*from\s*['"]""" + re.escape(ICON_PACKAGE) + r"""['"]"""
)
_SCRIPT_OPEN_RE: re.Pattern[str] = re.compile(r"<script\b[^>]*>[ \t]*\n?")


# ---------------------------------------------------------------------------
# Text helpers
# ---------------------------------------------------------------------------


def _apply(source: str, edits: List[Edit]) -> str:
    """Apply non-overlapping edits, last position first."""
    result: str = source
    for start, end, text in sorted(edits, key=lambda e: e[0], reverse=True):
        result = result[:start] + text + result[end:]
    return result


def _last(pattern: re.Pattern[str], source: str) -> Optional[re.Match[str]]:
    match: Optional[re.Match[str]] = None
    for match in pattern.finditer(source):
        pass
    return match


def _line_indent(source: str, pos: int) -> str:
    line_start: int = source.rfind("\n", 0, pos) + 1
    line: str = source[line_start:]
    return line[: len(line) - len(line.lstrip(" \t"))]


def _matching_bracket(source: str, open_pos: int) -> int:
    """Index of the bracket closing the one at *open_pos*; quotes and comments are skipped."""
    depth: int = 0
    quote: Optional[str] = None
    i: int = open_pos
    while i < len(source):
        ch: str = source[i]
        if quote:
            if ch == "\\":
                i += 2
                continue
            if ch == quote:
                quote = None
        elif ch == "/" and source.startswith("//", i):
            newline: int = source.find("\n", i)
            if newline < 0:
                return -1
            i = newline
            continue
        elif ch == "/" and source.startswith("/*", i):
            comment_end: int = source.find("*/", i + 2)
            if comment_end < 0:
                return -1
            i = comment_end + 2
            continue
        elif ch in "'\"`":
            quote = ch
        elif ch in "[{(":
            depth += 1
        elif ch in "]})":
            depth -= 1
            if depth == 0:
                return i
        i += 1
    return -1


def _enclosing_brace(source: str, pos: int) -> int:
    """Index of the innermost ``{`` still open at *pos*, or -1."""
    depth: int = 0
    for i in range(pos - 1, -1, -1):
        ch: str = source[i]
        if ch in "]})":
            depth += 1
        elif ch in "[{(":
            if depth == 0:
                return i if ch == "{" else -1
            depth -= 1
    return -1


# ---------------------------------------------------------------------------
# Back-end router
# ---------------------------------------------------------------------------


def backend_sentinel(cfg: CRUDConfig) -> re.Pattern[str]:
    return re.compile(
        rf"\b(?:New)?{re.escape(cfg.model_name)}Handler\b|\b{re.escape(cfg.model_name_camel)}Handler\b"
    )


def splice_backend_router(source: str, cfg: CRUDConfig) -> str:
    """
    Return *source* with imports, the init block and the routes of *cfg*.

    Raises:
        AlreadyRegistered: the handler is already referenced.
        PatternNotFound: import group, handler line or ``auth.DELETE`` line missing.
    """
    if backend_sentinel(cfg).search(source):
        raise AlreadyRegistered(f"{cfg.model_name}Handler is already registered")

    group: Optional[re.Match[str]] = _IMPORT_GROUP_RE.search(source)
    if group is None:
        raise PatternNotFound("no import group 'import ( ... )' found")
    handler_line: Optional[re.Match[str]] = _last(_HANDLER_LINE_RE, source)
    if handler_line is None:
        raise PatternNotFound("no 'xHandler := handler.NewXHandler(...)' line found")
    delete_line: Optional[re.Match[str]] = _last(_AUTH_DELETE_RE, source)
    if delete_line is None:
        raise PatternNotFound("no 'auth.DELETE(...)' route found")

    edits: List[Edit] = []

    # Imports
    imports: str = group.group(1)
    prefix_match: Optional[re.Match[str]] = re.search(
        rf'"([^"\s]+)/services/{re.escape(cfg.module)}-api/internal/', imports
    ) or re.search(r'"([^"\s]+)/services/[\w\-]+-api/internal/', imports)
    module_path: str = prefix_match.group(1) if prefix_match else DEFAULT_MODULE_PATH
    missing: List[str] = []
    for pkg in BACKEND_PACKAGES:
        line: str = f'"{module_path}/services/{cfg.module}-api/internal/{pkg}"'
        if line not in imports:
            missing.append(line)
    if missing:
        import_indent: str = "\t"
        for existing in imports.splitlines():
            if existing.strip():
                import_indent = existing[: len(existing) - len(existing.lstrip(" \t"))]
                break
        close: int = group.end(1)
        edits.append((close, close, "".join(f"{import_indent}{m}\n" for m in missing)))

    # Initialization block
    indent: str = handler_line.group(1)
    args: List[str] = [a.strip() for a in handler_line.group(2).split(",") if a.strip()]
    logger_var: str = args[-1] if len(args) > 1 else DEFAULT_LOGGER_VAR
    repo_line: Optional[re.Match[str]] = _last(_REPO_LINE_RE, source)
    db_var: str = repo_line.group(1) if repo_line else DEFAULT_DB_VAR
    camel: str = cfg.model_name_camel
    model: str = cfg.model_name
    init_block: str = (
        f"\n{indent}// 初始化 {model}\n"
        f"{indent}{camel}Repo := repository.New{model}Repository({db_var})\n"
        f"{indent}{camel}Service := service.New{model}Service({camel}Repo, {logger_var})\n"
        f"{indent}{camel}Handler := handler.New{model}Handler({camel}Service, {logger_var})\n"
    )
    edits.append((handler_line.end(), handler_line.end(), init_block))

    # Routes
    route_indent: str = delete_line.group(1)
    res: str = cfg.resource_name
    routes: List[str] = [
        f'auth.GET("/{res}", {camel}Handler.List)',
        f'auth.GET("/{res}/:id", {camel}Handler.Get)',
        f'auth.POST("/{res}", {camel}Handler.Create)',
        f'auth.PUT("/{res}/:id", {camel}Handler.Update)',
        f'auth.DELETE("/{res}/:id", {camel}Handler.Delete)',
    ]
    if cfg.features.batch_delete:
        routes.append(f'auth.POST("/{res}/batch-delete", {camel}Handler.BatchDelete)')
    title: str = cfg.frontend.title or model
    route_block: str = f"\n{route_indent}// {title} 路由\n" + "".join(
        f"{route_indent}{r}\n" for r in routes
    )
    edits.append((delete_line.end(), delete_line.end(), route_block))

    return _apply(source, edits)


# ---------------------------------------------------------------------------
# Front-end router
# ---------------------------------------------------------------------------


def route_name(cfg: CRUDConfig) -> str:
    return f"{cfg.model_name}List"


def splice_frontend_router(source: str, cfg: CRUDConfig) -> str:
    """
    Return *source* with a child route for *cfg* appended to the
    ``dashboard`` route's ``children`` array.

    Raises:
        AlreadyRegistered: the route name is already present.
        PatternNotFound: no ``dashboard`` route, or no ``children`` array inside it.
    """
    name: str = route_name(cfg)
    if re.search(rf"\b{re.escape(name)}\b", source):
        raise AlreadyRegistered(f"route '{name}' is already registered")

    dashboard: Optional[re.Match[str]] = _DASHBOARD_RE.search(source)
    if dashboard is None:
        raise PatternNotFound("no route with path 'dashboard' found")
    route_open: int = _enclosing_brace(source, dashboard.start())
    route_close: int = _matching_bracket(source, route_open) if route_open >= 0 else -1
    if route_close < 0:
        raise PatternNotFound("the 'dashboard' route is not a closed object literal")
    children: Optional[re.Match[str]] = _CHILDREN_RE.search(source, route_open, route_close)
    if children is None:
        raise PatternNotFound("the 'dashboard' route has no children array")
    open_pos: int = children.end() - 1
    close_pos: int = _matching_bracket(source, open_pos)
    if close_pos < 0:
        raise PatternNotFound("the 'dashboard' children array is not closed")

    head: str = source[:close_pos].rstrip()
    separator: str = "" if head.endswith(("[", ",")) else ","
    line_start: int = source.rfind("\n", 0, close_pos) + 1
    if source[line_start:close_pos].strip():
        closing_indent: str = _line_indent(source, children.start())
    else:
        closing_indent = source[line_start:close_pos]
    ind: str = closing_indent + "  "

    title: str = cfg.frontend.title or cfg.model_name
    entry: str = (
        f"\n{ind}// {title}\n"
        f"{ind}{{\n"
        f"{ind}  path: '{cfg.resource_name}',\n"
        f"{ind}  name: '{name}',\n"
        f"{ind}  component: () => import('@/views/{view_folder(cfg)}/index.vue'),\n"
        f"{ind}  meta: {{ title: '{title}', requiresAuth: true }}\n"
        f"{ind}}},\n"
    )
    return head + separator + entry + closing_indent + source[close_pos:]


# ---------------------------------------------------------------------------
# Menu
# ---------------------------------------------------------------------------


def menu_path(cfg: CRUDConfig) -> str:
    return f"/dashboard/{cfg.resource_name}"


def _icon_names(import_list: str) -> List[str]:
    names: List[str] = []
    for item in import_list.split(","):
        item = item.strip()
        if item:
            names.append(item.split(" as ")[-1].strip())
    return names


def splice_menu(source: str, cfg: CRUDConfig) -> str:
    """
    Return *source* with a menu item for *cfg* before the last
    ``</el-menu>`` and its icon imported.

    Raises:
        AlreadyRegistered: the menu path is already present.
        InvalidInput: the icon is not an identifier.
        PatternNotFound: no ``</el-menu>`` tag, or no ``<script>`` block to
            hold a new icon import.
    """
    path: str = menu_path(cfg)
    if re.search(rf"""['"]{re.escape(path)}['"]""", source):
        raise AlreadyRegistered(f"menu item '{path}' is already registered")

    icon: str = cfg.frontend.icon
    if not is_identifier(icon):
        raise InvalidInput(f"menu icon '{icon}' is not a valid component name")

    menu_close: Optional[re.Match[str]] = _last(_MENU_CLOSE_RE, source)
    if menu_close is None:
        raise PatternNotFound("no '</el-menu>' tag found")

    edits: List[Edit] = []

    # Icon import
    icon_import: Optional[re.Match[str]] = _ICON_IMPORT_RE.search(source)
    if icon_import is not None:
        inner: str = icon_import.group(1)
        if icon not in _icon_names(inner):
            body: str = inner.rstrip()
            trailing_comma: bool = body.endswith(",")
            if "\n" in inner:
                last_line: str = body.rsplit("\n", 1)[-1]
                item_indent: str = last_line[: len(last_line) - len(last_line.lstrip(" \t"))]
                addition: str = (
                    f"\n{item_indent}{icon}," if trailing_comma else f",\n{item_indent}{icon}"
                )
            else:
                addition = f" {icon}" if trailing_comma else f", {icon}"
            at: int = icon_import.start(1) + len(body)
            edits.append((at, at, addition))
    else:
        script: Optional[re.Match[str]] = _SCRIPT_OPEN_RE.search(source)
        if script is None:
            raise PatternNotFound(f"no '<script>' block to import {icon} into")
        line: str = f"import {{ {icon} }} from '{ICON_PACKAGE}'\n"
        if not script.group(0).endswith("\n"):
            line = "\n" + line
        edits.append((script.end(), script.end(), line))

    # Menu item
    title: str = cfg.frontend.title or cfg.model_name
    tag_pos: int = menu_close.start()
    line_start: int = source.rfind("\n", 0, tag_pos) + 1
    own_line: bool = not source[line_start:tag_pos].strip()
    closing_indent: str = _line_indent(source, tag_pos)
    ind: str = closing_indent + "  "
    item: str = (
        f"{ind}<!-- {title} -->\n"
        f'{ind}<el-menu-item index="{path}">\n'
        f"{ind}  <el-icon><{icon} /></el-icon>\n"
        f"{ind}  <span>{title}</span>\n"
        f"{ind}</el-menu-item>\n"
    )
    if own_line:
        edits.append((line_start, line_start, item))
    else:
        edits.append((tag_pos, tag_pos, "\n" + item + closing_indent))

    return _apply(source, edits)


# ---------------------------------------------------------------------------
# File-level driver
# ---------------------------------------------------------------------------


class SourceSplicer:
    """
    Runs the three edits against files under *project_root*.

    Usage::

        splicer = SourceSplicer(Path("."))
        for result in splicer.register(cfg, AutoRegisterOptions()):
            print(result.target, result.status, result.message)
    """

    def __init__(self, project_root: Path, *, dry_run: bool = False) -> None:
        self._root: Path = Path(project_root)
        self._dry_run: bool = dry_run

    def register(self, cfg: CRUDConfig, options: AutoRegisterOptions) -> List[SpliceResult]:
        """Run the edits selected by *options*, in back-end, front-end, menu order."""
        results: List[SpliceResult] = []
        if options.register_backend:
            results.append(self.register_backend(cfg))
        if options.register_frontend:
            results.append(self.register_frontend(cfg))
        if options.register_menu and cfg.frontend.show_in_menu:
            results.append(self.register_menu(cfg))
        return results

    def register_backend(self, cfg: CRUDConfig) -> SpliceResult:
        target: Path = self._root.joinpath(*backend_router_path(cfg.module).parts)
        return self._edit("backend", target, lambda text: splice_backend_router(text, cfg))

    def register_frontend(self, cfg: CRUDConfig) -> SpliceResult:
        target: Path = self._root.joinpath(*frontend_router_path().parts)
        return self._edit("frontend", target, lambda text: splice_frontend_router(text, cfg))

    def register_menu(self, cfg: CRUDConfig) -> SpliceResult:
        target: Path = self._root.joinpath(*menu_layout_path().parts)
        return self._edit("menu", target, lambda text: splice_menu(text, cfg))

    def _edit(
        self,
        name: str,
        target: Path,
        transform: Callable[[str], str],
    ) -> SpliceResult:
        display: str = str(target)
        try:
            try:
                source: str = read_file(target)
            except OSError as exc:
                raise PatternNotFound(
                    f"cannot read splice target: {exc.strerror or exc}", path=display
                ) from exc
            updated: str = transform(source)
            if not self._dry_run:
                try:
                    write_file(target, updated)
                except OSError as exc:
                    raise WriteError(
                        f"cannot write splice target: {exc.strerror or exc}", path=display
                    ) from exc
        except AlreadyRegistered as exc:
            logger.info("%s splice skipped: %s", name, exc.message)
            return SpliceResult(
                target=name, path=display, status="skipped", message="already registered, skipped"
            )
        except CrudgenError as exc:
            logger.error("%s splice failed on %s: %s", name, display, exc.message)
            return SpliceResult(target=name, path=display, status="error", message=exc.message)

        message: str = "registered (dry run)" if self._dry_run else "registered"
        logger.info("%s splice %s: %s", name, message, display)
        return SpliceResult(target=name, path=display, status="registered", message=message)


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "SourceSplicer",
    "splice_backend_router",
    "splice_frontend_router",
    "splice_menu",
    "backend_sentinel",
    "route_name",
    "menu_path",
]

logger.debug("crudgen.splicer loaded.")
