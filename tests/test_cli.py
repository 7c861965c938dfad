"""Tests for the shared CLI helpers in jbdoc.cli."""

import json
from pathlib import Path

import pytest
import typer

from jbdoc.cli import error_exit, get_config, iter_templates, json_print, rel_display_path
from jbdoc.config import ProjectConfig

# ---------------------------------------------------------------------------
# error_exit()
# ---------------------------------------------------------------------------


class TestErrorExit:
    def test_plain_stderr_and_exit(self, capsys: pytest.CaptureFixture[str]) -> None:
        with pytest.raises(typer.Exit) as exc_info:
            error_exit("something broke")
        assert exc_info.value.exit_code == 1
        captured = capsys.readouterr()
        assert "something broke" in captured.err
        assert captured.out == ""

    def test_custom_exit_code(self, capsys: pytest.CaptureFixture[str]) -> None:
        with pytest.raises(typer.Exit) as exc_info:
            error_exit("fatal", code=2)
        assert exc_info.value.exit_code == 2

    def test_brackets_printed_literally(self, capsys: pytest.CaptureFixture[str]) -> None:
        with pytest.raises(typer.Exit):
            error_exit("File not found: [/link]/a")
        assert "[/link]/a" in capsys.readouterr().err

    def test_json_mode_stdout(self, capsys: pytest.CaptureFixture[str]) -> None:
        with pytest.raises(typer.Exit):
            error_exit("bad input", json_mode=True)
        captured = capsys.readouterr()
        assert json.loads(captured.out) == {"error": "bad input"}
        assert captured.err == ""


# ---------------------------------------------------------------------------
# json_print()
# ---------------------------------------------------------------------------


class TestJsonPrint:
    def test_dict_output(self, capsys: pytest.CaptureFixture[str]) -> None:
        json_print({"key": "value", "n": 1})
        assert json.loads(capsys.readouterr().out) == {"key": "value", "n": 1}

    def test_list_output(self, capsys: pytest.CaptureFixture[str]) -> None:
        json_print([1, 2])
        assert json.loads(capsys.readouterr().out) == [1, 2]

    def test_pretty_printed(self, capsys: pytest.CaptureFixture[str]) -> None:
        json_print({"a": 1})
        assert "\n" in capsys.readouterr().out.strip()


# ---------------------------------------------------------------------------
# get_config()
# ---------------------------------------------------------------------------


class TestGetConfig:
    def test_optional_falls_back_to_default(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.chdir(tmp_path)
        cfg = get_config(optional=True)
        assert cfg.root == tmp_path.resolve()

    def test_required_missing_exits(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
    ) -> None:
        monkeypatch.chdir(tmp_path)
        with pytest.raises(typer.Exit):
            get_config()
        assert "jbdoc.toml" in capsys.readouterr().err

    def test_explicit_path_must_exist(self, tmp_path: Path) -> None:
        with pytest.raises(typer.Exit):
            get_config(tmp_path / "nope.toml", optional=True)

    def test_invalid_config_exits(
        self, tmp_path: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        toml = tmp_path / "jbdoc.toml"
        toml.write_text("[project]\nlookback = -2\n")
        with pytest.raises(typer.Exit):
            get_config(toml)
        assert "Invalid config" in capsys.readouterr().err

    def test_non_table_section_exits(
        self, tmp_path: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        toml = tmp_path / "jbdoc.toml"
        toml.write_text("project = 1\n")
        with pytest.raises(typer.Exit):
            get_config(toml)
        err = capsys.readouterr().err
        assert "Invalid config" in err
        assert "[project]" in err


# ---------------------------------------------------------------------------
# Paths
# ---------------------------------------------------------------------------


class TestPaths:
    def test_rel_display_path(self, tmp_path: Path) -> None:
        p = tmp_path / "app" / "show.json.jbuilder"
        assert rel_display_path(p, tmp_path) == str(Path("app") / "show.json.jbuilder")

    def test_rel_display_path_outside_base(self, tmp_path: Path) -> None:
        p = Path("/elsewhere/show.json.jbuilder")
        assert rel_display_path(p, tmp_path) == str(p)
        assert rel_display_path(p) == str(p)

    def test_iter_templates(self, tmp_path: Path) -> None:
        (tmp_path / "users").mkdir()
        (tmp_path / "users" / "show.json.jbuilder").write_text("")
        (tmp_path / "users" / "index.json.jbuilder").write_text("")
        (tmp_path / "helper.rb").write_text("")
        (tmp_path / "README.md").write_text("")
        cfg = ProjectConfig.default(tmp_path)
        found = [p.relative_to(tmp_path).as_posix() for p in iter_templates(tmp_path, cfg)]
        assert found == ["helper.rb", "users/index.json.jbuilder", "users/show.json.jbuilder"]

    def test_iter_templates_respects_config(self, tmp_path: Path) -> None:
        (tmp_path / "show.json.jbuilder").write_text("")
        (tmp_path / "helper.rb").write_text("")
        cfg = ProjectConfig.default(tmp_path)
        cfg.languages = []
        assert [p.name for p in iter_templates(tmp_path, cfg)] == ["show.json.jbuilder"]
