"""Unit tests for the data models (code_architect.models).

Tests cover:
- FileRecord validation
- Blueprint helpers and camelCase serialisation
- HistoryItem round trip through JSON
- ExportedArchive.size
"""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from code_architect.models import (
    Blueprint,
    ExportedArchive,
    FileRecord,
    GenerationStage,
    HistoryItem,
)


class TestFileRecord:
    @pytest.mark.unit
    def test_defaults(self):
        record = FileRecord(path="README")
        assert record.content == ""
        assert record.language == "plaintext"

    @pytest.mark.unit
    def test_empty_path_rejected(self):
        with pytest.raises(ValidationError):
            FileRecord(path="")

    @pytest.mark.unit
    def test_null_byte_rejected(self):
        with pytest.raises(ValidationError, match="null byte"):
            FileRecord(path="a.txt", content="abc\x00def")


class TestBlueprint:
    @pytest.mark.unit
    def test_paths_keep_order(self, sample_blueprint):
        assert sample_blueprint.paths() == ["index.html", "src/app.js", ".env.example"]

    @pytest.mark.unit
    def test_get_file_ignores_leading_slash(self, sample_blueprint):
        assert sample_blueprint.get_file("/src/app.js").language == "javascript"
        assert sample_blueprint.get_file("src/missing.js") is None

    @pytest.mark.unit
    def test_language_counts(self):
        blueprint = Blueprint(
            project_name="x",
            files=[
                FileRecord(path="a.ts", language="typescript"),
                FileRecord(path="b.css", language="css"),
                FileRecord(path="c.ts", language="typescript"),
            ],
        )
        assert blueprint.language_counts() == {"typescript": 2, "css": 1}
        assert list(blueprint.language_counts()) == ["typescript", "css"]

    @pytest.mark.unit
    def test_dumps_camel_case(self, sample_blueprint):
        dumped = sample_blueprint.model_dump(by_alias=True)
        assert dumped["projectName"] == "Todo App"
        assert "project_name" not in dumped

    @pytest.mark.unit
    def test_accepts_alias_or_field_name(self):
        assert Blueprint.model_validate({"projectName": "A"}).project_name == "A"
        assert Blueprint.model_validate({"project_name": "B"}).project_name == "B"


class TestHistoryItem:
    @pytest.mark.unit
    def test_json_round_trip(self, sample_blueprint):
        item = HistoryItem(
            id="1700000000000",
            timestamp=1700000000000,
            project_name=sample_blueprint.project_name,
            blueprint=sample_blueprint,
        )
        raw = item.model_dump_json(by_alias=True)
        assert '"projectName":"Todo App"' in raw
        assert HistoryItem.model_validate_json(raw) == item


class TestMisc:
    @pytest.mark.unit
    def test_exported_archive_size(self):
        assert ExportedArchive(filename="x.zip", data=b"12345").size == 5

    @pytest.mark.unit
    def test_stage_values(self):
        assert GenerationStage.AWAITING_PROVIDER.value == "awaiting_provider"
        assert GenerationStage("failed") is GenerationStage.FAILED
