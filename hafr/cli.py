from __future__ import annotations

import argparse
import json
import logging
import os
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

from ruamel.yaml import YAML
from ruamel.yaml.error import YAMLError

from .errors import TemplateError, TemplateSyntaxError, caret_line
from .evaluator import TemplateEvaluator
from .functions import default_registry
from .parser import parse_template
from .report import build_report
from .types import RenderOptions
from .version import tool_version

_yaml = YAML(typ="safe")

EXIT_OK = 0
EXIT_SYNTAX = 2
EXIT_EVALUATION = 3


def _setup_logging(debug: bool) -> None:
    log = logging.getLogger("hafr")
    level = logging.DEBUG if debug or os.environ.get("HAFR_DEBUG") else logging.WARNING
    log.setLevel(level)
    if not log.handlers:
        h = logging.StreamHandler()
        h.setFormatter(logging.Formatter("[%(levelname)s] %(message)s"))
        log.addHandler(h)


def _build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="hafr",
        description="hafr expression templates",
        add_help=True,
    )
    p.add_argument("-v", "--version", action="version", version=f"%(prog)s {tool_version()}")
    p.add_argument("--debug", action="store_true", help="debug logging to stderr (same as HAFR_DEBUG=1)")
    sub = p.add_subparsers(dest="cmd", required=True)

    def add_template(sp: argparse.ArgumentParser) -> None:
        sp.add_argument(
            "template",
            metavar="TEXT|@FILE|-",
            help="template text: a literal string, @file to read from a file, or - for stdin",
        )

    # Common arguments for render/report
    def add_common(sp: argparse.ArgumentParser) -> None:
        add_template(sp)
        sp.add_argument(
            "--data",
            metavar="FILE",
            help="YAML or JSON file with a mapping of named values",
        )
        sp.add_argument(
            "--set",
            action="append",
            metavar="NAME=VALUE",
            help="named string value (repeatable, overrides --data)",
        )
        sp.add_argument("--null-text", default=RenderOptions.null_text, help="output for null values")
        sp.add_argument("--empty-text", default=RenderOptions.empty_text, help="output for empty values")
        sp.add_argument("--separator", default=RenderOptions.sequence_separator, help="joins sequence values")

    sp_render = sub.add_parser("render", help="Render the template, one output line per template line")
    add_common(sp_render)

    sp_report = sub.add_parser("report", help="JSON report: rendered lines or error with position")
    add_common(sp_report)

    sp_check = sub.add_parser("check", help="Parse only and print the normalized template")
    add_template(sp_check)

    sp_list = sub.add_parser("list", help="Registered entities (JSON)")
    sp_list.add_argument("what", choices=["functions"], help="what to list")

    return p


def _read_template(arg: str) -> str:
    """
    Reads the template argument.

    Supports three forms:
    - literal text
    - @path/to/file
    - "-" for stdin
    """
    if arg == "-":
        return sys.stdin.read().rstrip("\r\n")

    if arg.startswith("@"):
        file_path = Path(arg[1:])
        if not file_path.exists():
            raise ValueError(f"Template file not found: {file_path}")
        return file_path.read_text(encoding="utf-8").rstrip("\r\n")

    return arg


def _load_data(path: Optional[str]) -> Dict[str, Any]:
    """Loads named values from a YAML/JSON file; a missing argument means no values."""
    if not path:
        return {}

    file_path = Path(path)
    if not file_path.exists():
        raise ValueError(f"Data file not found: {file_path}")

    try:
        with file_path.open(encoding="utf-8") as f:
            raw = _yaml.load(f)
    except YAMLError as e:
        raise ValueError(f"Failed to parse data file {file_path}: {e}")

    if raw is None:
        return {}
    if not isinstance(raw, dict):
        raise ValueError(f"Data file {file_path} must contain a mapping at the top level")
    return {str(k): v for k, v in raw.items()}


def _apply_sets(values: Dict[str, Any], pairs: Optional[List[str]]) -> Dict[str, Any]:
    """Applies NAME=VALUE pairs; a pair replaces any key equal ignoring case."""
    for pair in pairs or []:
        if "=" not in pair:
            raise ValueError(f"Invalid value format '{pair}'. Expected 'NAME=VALUE'")
        name, value = pair.split("=", 1)
        name = name.strip()
        if not name:
            raise ValueError(f"Invalid value format '{pair}'. Name must not be empty")
        for key in [k for k in values if k.casefold() == name.casefold()]:
            del values[key]
        values[name] = value
    return values


def _evaluator(ns: argparse.Namespace) -> TemplateEvaluator:
    return TemplateEvaluator(options=RenderOptions(
        null_text=ns.null_text,
        empty_text=ns.empty_text,
        sequence_separator=ns.separator,
    ))


def _write_json(payload: Any) -> None:
    # one document per line, non-ASCII text kept readable
    sys.stdout.write(json.dumps(payload, ensure_ascii=False) + "\n")


def _write_error(text: str, e: TemplateError) -> None:
    sys.stderr.write(e.describe() + "\n")
    caret = caret_line(text, e.position)
    if caret:
        sys.stderr.write(caret + "\n")


def main(argv: list[str] | None = None) -> int:
    ns = _build_parser().parse_args(argv)
    _setup_logging(ns.debug)

    try:
        if ns.cmd == "list":
            if ns.what == "functions":
                _write_json({"functions": default_registry().names()})
                return EXIT_OK
            raise ValueError(f"Unknown list target: {ns.what}")

        text = _read_template(ns.template)

        if ns.cmd == "check":
            template = parse_template(text)
            sys.stdout.write(str(template) + "\n")
            return EXIT_OK

        values = _apply_sets(_load_data(ns.data), ns.set)

        if ns.cmd == "report":
            report = build_report(text, values, _evaluator(ns))
            _write_json(report.model_dump(mode="json"))
            if report.ok:
                return EXIT_OK
            return EXIT_SYNTAX if report.error.stage == "parse" else EXIT_EVALUATION

        if ns.cmd == "render":
            template = parse_template(text)
            # Lines are written as they are produced; a failing line stops the output
            for line in _evaluator(ns).evaluate_properties(template, values):
                sys.stdout.write(line + "\n")
            return EXIT_OK

    except TemplateSyntaxError as e:
        _write_error(text, e)
        return EXIT_SYNTAX
    except TemplateError as e:
        _write_error(text, e)
        return EXIT_EVALUATION
    except ValueError as e:
        sys.stderr.write(str(e).rstrip() + "\n")
        return EXIT_SYNTAX

    return EXIT_SYNTAX


if __name__ == "__main__":
    raise SystemExit(main())
