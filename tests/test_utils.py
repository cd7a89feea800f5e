"""
tests/test_utils.py
Unit tests for crudgen.utils: case conversion, pluralisation, model and
resource naming, labels and titles, and the atomic file writer.
"""

from __future__ import annotations

import os
import pathlib

import pytest

from crudgen.utils import (
    DEFAULT_TITLES,
    Timer,
    derive_label,
    derive_title,
    is_identifier,
    is_searchable,
    lcfirst,
    model_to_resource_name,
    read_file,
    strip_table_prefix,
    table_to_model_name,
    to_camel_case,
    to_kebab_case,
    to_pascal_case,
    to_plural,
    to_singular,
    to_snake_case,
    write_file,
)


# ===========================================================================
# Case conversion
# ===========================================================================


class TestCaseConversion:

    @pytest.mark.parametrize(
        "value, expected",
        [
            ("HTTPServer", "http_server"),
            ("userProfile", "user_profile"),
            ("order-item", "order_item"),
            ("created_at", "created_at"),
            ("", ""),
        ],
    )
    def test_snake_case(self, value: str, expected: str) -> None:
        assert to_snake_case(value) == expected

    @pytest.mark.parametrize(
        "value, expected",
        [
            ("user_profile", "UserProfile"),
            ("order-item", "OrderItem"),
            ("id", "Id"),
            ("created_at", "CreatedAt"),
        ],
    )
    def test_pascal_case(self, value: str, expected: str) -> None:
        assert to_pascal_case(value) == expected

    def test_camel_case(self) -> None:
        assert to_camel_case("user_profile") == "userProfile"
        assert to_camel_case("Article") == "article"

    def test_kebab_case(self) -> None:
        assert to_kebab_case("OrderItem") == "order-item"

    def test_lcfirst(self) -> None:
        assert lcfirst("Article") == "article"
        assert lcfirst("") == ""

    @pytest.mark.parametrize("raw", ["article", "order_item", "HTTP_server", "user-profile", "x9_y"])
    def test_camel_of_pascal_is_lcfirst(self, raw: str) -> None:
        pascal: str = to_pascal_case(raw)
        assert to_camel_case(pascal) == lcfirst(pascal)

    @pytest.mark.parametrize("raw", ["article", "OrderItem", "HTTPServer", "userProfile"])
    def test_snake_of_pascal_is_lower(self, raw: str) -> None:
        snake: str = to_snake_case(to_pascal_case(raw))
        assert snake == snake.lower()


# ===========================================================================
# Pluralisation
# ===========================================================================


class TestPluralisation:

    @pytest.mark.parametrize(
        "single, plural",
        [
            ("person", "people"),
            ("child", "children"),
            ("man", "men"),
            ("woman", "women"),
            ("tooth", "teeth"),
            ("foot", "feet"),
            ("mouse", "mice"),
            ("goose", "geese"),
        ],
    )
    def test_irregulars(self, single: str, plural: str) -> None:
        assert to_plural(single) == plural

    @pytest.mark.parametrize(
        "single, plural",
        [
            ("article", "articles"),
            ("box", "boxes"),
            ("status", "statuses"),
            ("branch", "branches"),
            ("category", "categories"),
            ("day", "days"),
            ("leaf", "leaves"),
            ("knife", "knives"),
        ],
    )
    def test_suffix_rules(self, single: str, plural: str) -> None:
        assert to_plural(single) == plural

    def test_irregular_keeps_capital(self) -> None:
        assert to_plural("Person") == "People"

    def test_plural_is_pure(self) -> None:
        assert to_plural("category") == to_plural("category")

    @pytest.mark.parametrize(
        "plural, single",
        [
            ("articles", "article"),
            ("categories", "category"),
            ("boxes", "box"),
            ("people", "person"),
            ("status", "status"),
            ("address", "address"),
        ],
    )
    def test_singular(self, plural: str, single: str) -> None:
        assert to_singular(plural) == single


# ===========================================================================
# Model and resource names
# ===========================================================================


class TestModelNames:

    @pytest.mark.parametrize(
        "table, model",
        [
            ("articles", "Article"),
            ("tb_categories", "Category"),
            ("sys_users", "User"),
            ("tb_order_items", "OrderItem"),
            ("t_news_tags", "NewsTag"),
        ],
    )
    def test_table_to_model_name(self, table: str, model: str) -> None:
        assert table_to_model_name(table) == model

    def test_strip_only_one_prefix(self) -> None:
        assert strip_table_prefix("sys_tb_menus") == "tb_menus"

    def test_prefix_alone_is_kept(self) -> None:
        assert strip_table_prefix("tb_") == "tb_"

    @pytest.mark.parametrize(
        "model, resource",
        [
            ("Article", "articles"),
            ("OrderItem", "order_items"),
            ("Category", "categories"),
        ],
    )
    def test_model_to_resource_name(self, model: str, resource: str) -> None:
        assert model_to_resource_name(model) == resource

    def test_resource_round_trips_to_table(self) -> None:
        assert model_to_resource_name(table_to_model_name("articles")) == "articles"


# ===========================================================================
# Labels, titles, predicates
# ===========================================================================


class TestLabelsAndTitles:

    def test_comment_wins(self) -> None:
        assert derive_label("title", "文章标题") == "文章标题"

    def test_dictionary_then_pascal(self) -> None:
        assert derive_label("title") == "标题"
        assert derive_label("view_count") == "ViewCount"

    def test_injected_dictionary(self) -> None:
        assert derive_label("title", labels={"title": "Title"}) == "Title"
        assert derive_label("status", labels={}) == "Status"

    def test_title_lookup_and_fallback(self) -> None:
        assert derive_title("Article") == DEFAULT_TITLES["Article"]
        assert derive_title("Invoice") == "Invoice管理"
        assert derive_title("Article", {"Article": "Posts"}) == "Posts"

    @pytest.mark.parametrize(
        "name, raw_type, expected",
        [
            ("title", "varchar(200)", True),
            ("content", "longtext", True),
            ("name", "int", True),
            ("views", "int", False),
        ],
    )
    def test_is_searchable(self, name: str, raw_type: str, expected: bool) -> None:
        assert is_searchable(name, raw_type) is expected

    def test_is_identifier(self) -> None:
        assert is_identifier("Document")
        assert not is_identifier("My Icon")
        assert not is_identifier("")


# ===========================================================================
# File I/O
# ===========================================================================


class TestWriteFile:

    def test_creates_parents_and_returns_size(self, tmp_path: pathlib.Path) -> None:
        target = tmp_path / "a" / "b" / "file.go"
        size = write_file(target, "package model\n")
        assert size == len("package model\n".encode("utf-8"))
        assert read_file(target) == "package model\n"

    def test_utf8_content(self, tmp_path: pathlib.Path) -> None:
        target = tmp_path / "zh.ts"
        write_file(target, "// 文章管理\n")
        assert target.read_bytes() == "// 文章管理\n".encode("utf-8")

    def test_overwrite_leaves_no_temp_files(self, tmp_path: pathlib.Path) -> None:
        target = tmp_path / "file.txt"
        write_file(target, "one")
        write_file(target, "two")
        assert target.read_text(encoding="utf-8") == "two"
        assert sorted(p.name for p in tmp_path.iterdir()) == ["file.txt"]

    def test_mode_is_0644(self, tmp_path: pathlib.Path) -> None:
        target = tmp_path / "mode.txt"
        write_file(target, "x")
        assert (os.stat(target).st_mode & 0o777) == 0o644

    def test_failure_leaves_target_absent(self, tmp_path: pathlib.Path) -> None:
        # A directory in the way makes the final rename fail.
        target = tmp_path / "blocked"
        target.mkdir()
        (target / "child").write_text("keep", encoding="utf-8")
        with pytest.raises(OSError):
            write_file(target, "content")
        assert target.is_dir()
        assert [p.name for p in tmp_path.iterdir()] == ["blocked"]


class TestTimer:

    def test_elapsed_is_recorded(self) -> None:
        with Timer("unit") as t:
            sum(range(100))
        assert t.elapsed >= 0.0
        assert "unit" in repr(t)
