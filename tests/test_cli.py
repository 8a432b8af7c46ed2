import logging
import textwrap
from pathlib import Path

from hafr.functions import default_registry


def write(path: Path, text: str) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    return path


def people(tmp_path: Path) -> Path:
    return write(tmp_path / "person.yaml", textwrap.dedent("""
        firstName: Tore Olav
        lastName: Kristiansen
        nickname: null
        tags: [admin, staff]
    """).lstrip())


def test_render_with_set(run_cli):
    cp = run_cli("render", "{name | upper}", "--set", "name=tore")
    assert cp.returncode == 0, cp.stderr
    assert cp.stdout == "TORE\n"


def test_render_with_data_file(run_cli, tmp_path):
    data = people(tmp_path)
    cp = run_cli(
        "render",
        "{firstName | split(' ') | take(1) | upper}{lastName | take(1) | upper}\n{tags | upper}\n{nickname}",
        "--data", str(data),
    )
    assert cp.returncode == 0, cp.stderr
    assert cp.stdout.splitlines() == ["TOREK", "ADMIN STAFF", "<null>"]


def test_render_json_data_file(run_cli, tmp_path):
    data = write(tmp_path / "data.json", '{"name": "kjøs", "count": 3}')
    cp = run_cli("render", "{name | upper} {count}", "--data", str(data))
    assert cp.returncode == 0, cp.stderr
    assert cp.stdout == "KJØS 3\n"


def test_set_overrides_data_ignoring_case(run_cli, tmp_path):
    data = people(tmp_path)
    cp = run_cli("render", "{firstName}", "--data", str(data), "--set", "FIRSTNAME=Peder")
    assert cp.returncode == 0, cp.stderr
    assert cp.stdout == "Peder\n"


def test_render_options(run_cli, tmp_path):
    data = people(tmp_path)
    cp = run_cli(
        "render", "{nickname}|{tags}",
        "--data", str(data), "--null-text", "-", "--separator", ",",
    )
    assert cp.returncode == 0, cp.stderr
    assert cp.stdout == "-|admin,staff\n"


def test_template_from_file(run_cli, tmp_path):
    template = write(tmp_path / "t.txt", "{a}\n{a | reverse}\n")
    cp = run_cli("render", f"@{template}", "--set", "a=abc")
    assert cp.returncode == 0, cp.stderr
    assert cp.stdout == "abc\ncba\n"


def test_render_evaluation_error(run_cli):
    cp = run_cli("render", "{missing}", "--set", "name=x")
    assert cp.returncode == 3
    assert "Unknown property 'missing'. Available properties: name" in cp.stderr
    assert "{missing}\n ^" in cp.stderr


def test_render_syntax_error_points_at_position(run_cli):
    cp = run_cli("render", "{a}\n{a b}")
    assert cp.returncode == 2
    assert "line 2, column 4" in cp.stderr
    assert "{a b}\n   ^" in cp.stderr


def test_report_ok(run_cli):
    cp = run_cli("report", "{a}\n{a | upper}", "--set", "a=x")
    assert cp.returncode == 0, cp.stderr
    assert cp.json() == {"ok": True, "lines": ["x", "X"], "error": None}


def test_report_keeps_non_ascii_text(run_cli):
    cp = run_cli("report", "{a | upper}", "--set", "a=kjøs")
    assert cp.returncode == 0, cp.stderr
    assert cp.stdout == '{"ok": true, "lines": ["KJØS"], "error": null}\n'


def test_report_evaluation_error(run_cli):
    cp = run_cli("report", "{unknown}", "--set", "a=x")
    assert cp.returncode == 3
    data = cp.json()
    assert data["ok"] is False
    assert data["lines"] == []
    assert data["error"]["stage"] == "evaluate"
    assert data["error"]["kind"] == "unknown-property"
    assert data["error"]["position"] == {"offset": 1, "line": 1, "column": 2}


def test_report_parse_error(run_cli):
    cp = run_cli("report", "{firstName}\n{firstName}\r\n{")
    assert cp.returncode == 2
    error = cp.json()["error"]
    assert error["stage"] == "parse"
    assert error["kind"] == "lexical"
    assert error["position"] == {"offset": 26, "line": 3, "column": 2}


def test_check_prints_normalized_template(run_cli):
    cp = run_cli("check", "{ a|upper }\r\nb")
    assert cp.returncode == 0, cp.stderr
    assert cp.stdout == "{a | upper}\nb\n"


def test_check_reports_syntax_error(run_cli):
    cp = run_cli("check", "{}")
    assert cp.returncode == 2
    assert "unexpected '}'" in cp.stderr


def test_list_functions(run_cli):
    cp = run_cli("list", "functions")
    assert cp.returncode == 0, cp.stderr
    assert cp.json()["functions"] == default_registry().names()


def test_invalid_set_format(run_cli):
    cp = run_cli("render", "{a}", "--set", "novalue")
    assert cp.returncode == 2
    assert "Expected 'NAME=VALUE'" in cp.stderr


def test_data_file_must_be_mapping(run_cli, tmp_path):
    data = write(tmp_path / "list.yaml", "- a\n- b\n")
    cp = run_cli("render", "{a}", "--data", str(data))
    assert cp.returncode == 2
    assert "must contain a mapping" in cp.stderr


def test_missing_data_file(run_cli, tmp_path):
    cp = run_cli("render", "{a}", "--data", str(tmp_path / "nope.yaml"))
    assert cp.returncode == 2
    assert "Data file not found" in cp.stderr


def test_debug_env_enables_debug_logging(run_cli, monkeypatch):
    log = logging.getLogger("hafr")
    monkeypatch.setattr(log, "level", log.level)

    monkeypatch.delenv("HAFR_DEBUG", raising=False)
    run_cli("check", "{a}")
    assert log.level == logging.WARNING

    monkeypatch.setenv("HAFR_DEBUG", "1")
    run_cli("check", "{a}")
    assert log.level == logging.DEBUG
