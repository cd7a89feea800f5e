"""
tests/test_document.py
Tests for the config model (crudgen.models) and its YAML document form
(crudgen.document): derived names, structural invariants, round trip and
normalisation on load.
"""

from __future__ import annotations

import pathlib
from typing import Any, Dict

import pytest
import yaml

from crudgen.document import (
    config_filename,
    dump_document,
    load_config,
    normalize,
    parse_document,
    save_config,
    to_document,
)
from crudgen.errors import InvalidInput, NoPrimaryKey
from crudgen.models import CRUDConfig, FieldConfig, Relation


def _minimal_document() -> Dict[str, Any]:
    return {
        "table": "tags",
        "module": "admin",
        "model_name": "Tag",
        "fields": [
            {
                "name": "id",
                "type": "int",
                "go_type": "int",
                "ts_type": "number",
                "is_primary_key": True,
                "auto_increment": True,
            },
            {
                "name": "name",
                "type": "varchar(50)",
                "go_type": "string",
                "ts_type": "string",
                "validations": ["required", "max:50"],
                "label": "  名称  ",
            },
        ],
    }


# ===========================================================================
# Model invariants
# ===========================================================================


class TestCRUDConfigModel:

    def test_derived_names(self) -> None:
        cfg = CRUDConfig.model_validate(_minimal_document())
        assert cfg.model_name_camel == "tag"
        assert cfg.resource_name == "tags"

    def test_explicit_resource_name_kept(self) -> None:
        doc = _minimal_document()
        doc["resource_name"] = "labels"
        assert CRUDConfig.model_validate(doc).resource_name == "labels"

    def test_camel_recomputed_from_model_name(self) -> None:
        doc = _minimal_document()
        doc["model_name_camel"] = "somethingElse"
        assert CRUDConfig.model_validate(doc).model_name_camel == "tag"

    def test_defaults(self) -> None:
        cfg = CRUDConfig.model_validate(_minimal_document())
        assert cfg.features.pagination and cfg.features.search and cfg.features.sort
        assert not cfg.features.export and not cfg.features.import_
        assert not cfg.features.batch_delete
        assert cfg.frontend.icon == "Document"
        assert cfg.options.with_frontend is True

    def test_auto_increment_is_never_form_visible(self) -> None:
        doc = _minimal_document()
        doc["fields"][0]["form_visible"] = True
        cfg = CRUDConfig.model_validate(doc)
        assert cfg.fields[0].form_visible is False
        assert [f.name for f in cfg.create_fields] == ["name"]

    def test_duplicate_field_names_rejected(self) -> None:
        doc = _minimal_document()
        doc["fields"].append(dict(doc["fields"][1], name="Name"))
        with pytest.raises(ValueError):
            CRUDConfig.model_validate(doc)

    def test_names_with_same_snake_case_rejected(self) -> None:
        doc = _minimal_document()
        doc["fields"].append(dict(doc["fields"][1], name="userName"))
        doc["fields"].append(dict(doc["fields"][1], name="user_name"))
        with pytest.raises(ValueError, match="'user_name' \\(clashes with 'userName'\\)"):
            CRUDConfig.model_validate(doc)

    def test_two_primary_keys_rejected(self) -> None:
        doc = _minimal_document()
        doc["fields"][1]["is_primary_key"] = True
        with pytest.raises(ValueError):
            CRUDConfig.model_validate(doc)

    def test_missing_primary_key_raises_on_access(self) -> None:
        doc = _minimal_document()
        doc["fields"][0]["is_primary_key"] = False
        cfg = CRUDConfig.model_validate(doc)
        with pytest.raises(NoPrimaryKey):
            cfg.primary_key

    def test_model_name_must_be_pascal(self) -> None:
        doc = _minimal_document()
        doc["model_name"] = "tag"
        with pytest.raises(ValueError):
            CRUDConfig.model_validate(doc)

    def test_relation_persisted(self) -> None:
        fc = FieldConfig(
            name="category_id",
            type="bigint unsigned",
            go_type="int64",
            ts_type="number",
            relation=Relation(type="belongs_to", model="Category", display_field="name"),
        )
        assert fc.relation is not None
        assert fc.relation.type == "belongs_to"


# ===========================================================================
# Document round trip
# ===========================================================================


class TestDocumentRoundTrip:

    def test_save_then_load_equals_normalize(
        self, article_config: CRUDConfig, tmp_path: pathlib.Path
    ) -> None:
        path = save_config(article_config, tmp_path)
        assert path == tmp_path / "article.yaml"
        assert load_config(path) == normalize(article_config)

    def test_normalize_is_idempotent(self, user_config: CRUDConfig) -> None:
        once = normalize(user_config)
        assert normalize(once) == once

    def test_key_order_and_no_camel(self, article_config: CRUDConfig) -> None:
        doc = to_document(article_config)
        assert list(doc) == [
            "table",
            "module",
            "model_name",
            "resource_name",
            "fields",
            "features",
            "frontend",
            "options",
        ]
        assert "model_name_camel" not in dump_document(article_config)

    def test_import_flag_uses_alias(self, article_config: CRUDConfig) -> None:
        features = to_document(article_config)["features"]
        assert "import" in features
        assert "import_" not in features

    def test_unicode_is_written_verbatim(self, article_config: CRUDConfig) -> None:
        assert "文章管理" in dump_document(article_config)

    def test_filename(self, user_config: CRUDConfig) -> None:
        assert config_filename(user_config) == "user.yaml"


class TestNormalizeOnLoad:

    def test_unknown_keys_dropped_and_text_stripped(self, tmp_path: pathlib.Path) -> None:
        doc = _minimal_document()
        doc["legacy_option"] = True
        doc["fields"][1]["widget_hint"] = "big"
        doc["frontend"] = {"title": "  标签管理 ", "icon": "PriceTag"}
        path = tmp_path / "tag.yaml"
        path.write_text(yaml.safe_dump(doc, allow_unicode=True), encoding="utf-8")

        cfg = load_config(path)
        assert cfg.fields[1].label == "名称"
        assert cfg.frontend.title == "标签管理"
        assert "legacy_option" not in to_document(cfg)
        assert "widget_hint" not in to_document(cfg)["fields"][1]

    def test_missing_file(self, tmp_path: pathlib.Path) -> None:
        with pytest.raises(InvalidInput):
            load_config(tmp_path / "nope.yaml")

    def test_malformed_yaml(self, tmp_path: pathlib.Path) -> None:
        path = tmp_path / "bad.yaml"
        path.write_text("table: [unclosed\n", encoding="utf-8")
        with pytest.raises(InvalidInput):
            load_config(path)

    def test_not_a_mapping(self) -> None:
        with pytest.raises(InvalidInput):
            parse_document(["table", "articles"])

    def test_schema_violation(self) -> None:
        doc = _minimal_document()
        del doc["fields"]
        with pytest.raises(InvalidInput) as exc_info:
            parse_document(doc, "tag.yaml")
        assert exc_info.value.path == "tag.yaml"
