"""Tests for jbdoc.schema: deriving OpenAPI metadata from annotations."""

import json
from pathlib import Path

import pytest
from typer.testing import CliRunner

from jbdoc.annotation import parse_annotation
from jbdoc.operation import OperationAttributes, OperationBlock
from jbdoc.schema import (
    app,
    coerce_example,
    derive_schema,
    object_schema,
    operation_schema,
    property_schema,
)

runner = CliRunner()

TEMPLATE = """\
=begin
  @openapi_operation
    summary:"Show user"
    tags:[Users, Public]
    response_description:"The user"
=end
# @openapi id:integer required:true example:"42"
json.id user.id
# @openapi email:string format:email description:"Login address"
json.email user.email
json.nickname user.nickname
"""


# ---------------------------------------------------------------------------
# Building blocks
# ---------------------------------------------------------------------------


class TestCoerceExample:
    @pytest.mark.parametrize(
        "raw,type_name,expected",
        [
            ("42", "integer", 42),
            ("4.5", "number", 4.5),
            ("true", "boolean", True),
            ("False", "boolean", False),
            ("abc", "integer", "abc"),
            ("maybe", "boolean", "maybe"),
            ("42", "string", "42"),
            ("x", None, "x"),
        ],
    )
    def test_coercion(self, raw: str, type_name: str | None, expected: object) -> None:
        assert coerce_example(raw, type_name) == expected


class TestObjectSchema:
    def test_property_fields(self) -> None:
        ann = parse_annotation(0, 'at:string format:date-time description:"When" example:"now"')
        assert property_schema(ann) == {
            "type": "string",
            "format": "date-time",
            "description": "When",
            "example": "now",
        }

    def test_required_and_first_wins(self) -> None:
        anns = [
            parse_annotation(0, "id:integer required:true"),
            parse_annotation(1, "name:string"),
            parse_annotation(2, "id:string"),
            parse_annotation(3, "untyped"),
        ]
        schema = object_schema(anns)
        assert schema["properties"] == {"id": {"type": "integer"}, "name": {"type": "string"}}
        assert schema["required"] == ["id"]

    def test_no_required_key_when_empty(self) -> None:
        schema = object_schema([parse_annotation(0, "id:integer")])
        assert "required" not in schema

    def test_empty(self) -> None:
        assert object_schema([]) == {"type": "object", "properties": {}}


class TestOperationSchema:
    def test_without_block(self) -> None:
        op = operation_schema(None, {"type": "object"})
        assert op == {
            "responses": {
                "200": {
                    "description": "Successful response",
                    "content": {"application/json": {"schema": {"type": "object"}}},
                }
            }
        }

    def test_with_block(self) -> None:
        block = OperationBlock(
            0,
            3,
            OperationAttributes(summary="List", tags=("A",), response_description="Items"),
        )
        op = operation_schema(block, {})
        assert op["summary"] == "List"
        assert op["tags"] == ["A"]
        assert "description" not in op
        assert op["responses"]["200"]["description"] == "Items"


# ---------------------------------------------------------------------------
# derive_schema
# ---------------------------------------------------------------------------


class TestDeriveSchema:
    def test_full_template(self) -> None:
        data = derive_schema(TEMPLATE)
        assert data["operation"]["summary"] == "Show user"
        assert data["operation"]["tags"] == ["Users", "Public"]
        assert data["operation"]["responses"]["200"]["description"] == "The user"
        assert data["schema"]["properties"]["id"] == {"type": "integer", "example": 42}
        assert data["schema"]["properties"]["email"]["format"] == "email"
        assert data["schema"]["required"] == ["id"]
        assert data["undocumented"] == ["nickname"]
        assert len(data["operations"]) == 1

    def test_plain_template(self) -> None:
        data = derive_schema("json.b 1\njson.a 2")
        assert data["undocumented"] == ["a", "b"]
        assert data["operations"] == []
        assert "summary" not in data["operation"]

    def test_result_is_json_serialisable(self) -> None:
        json.dumps(derive_schema(TEMPLATE))


# ---------------------------------------------------------------------------
# CLI
# ---------------------------------------------------------------------------


class TestSchemaCli:
    def test_prints_json(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.chdir(tmp_path)
        src = tmp_path / "show.json.jbuilder"
        src.write_text(TEMPLATE, encoding="utf-8")
        result = runner.invoke(app, [str(src)])
        assert result.exit_code == 0, result.output
        data = json.loads(result.stdout)
        assert data["undocumented"] == ["nickname"]

    def test_writes_output_file(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.chdir(tmp_path)
        src = tmp_path / "show.json.jbuilder"
        src.write_text(TEMPLATE, encoding="utf-8")
        out = tmp_path / "docs" / "show.json"
        result = runner.invoke(app, ["--output", str(out), str(src)])
        assert result.exit_code == 0, result.output
        assert json.loads(out.read_text())["schema"]["required"] == ["id"]

    def test_uses_configured_prefix(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        (tmp_path / "jbdoc.toml").write_text('[project]\nfield_prefix = "builder"\n')
        monkeypatch.chdir(tmp_path)
        src = tmp_path / "show.json.jbuilder"
        src.write_text("builder.total 1\njson.ignored 2\n", encoding="utf-8")
        result = runner.invoke(app, [str(src)])
        assert result.exit_code == 0, result.output
        assert json.loads(result.stdout)["undocumented"] == ["total"]

    def test_unwritable_output(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.chdir(tmp_path)
        src = tmp_path / "show.json.jbuilder"
        src.write_text(TEMPLATE, encoding="utf-8")
        blocker = tmp_path / "docs"
        blocker.write_text("a file, not a directory")
        result = runner.invoke(app, ["--output", str(blocker / "show.json"), str(src)])
        assert result.exit_code == 1
        assert isinstance(result.exception, SystemExit)
        assert "Cannot write" in result.output

    def test_missing_template(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.chdir(tmp_path)
        result = runner.invoke(app, [str(tmp_path / "nope.jbuilder")])
        assert result.exit_code == 1
