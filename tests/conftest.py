from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Callable

import pytest

from hafr.cli import main
from hafr.evaluator import TemplateEvaluator
from hafr.functions import builtin_functions


@dataclass
class Person:
    # camelCase mirrors the member names used in templates
    firstName: str
    lastName: str


@dataclass
class CliResult:
    returncode: int
    stdout: str
    stderr: str

    def json(self) -> Any:
        return json.loads(self.stdout)


@pytest.fixture
def person() -> Person:
    return Person("Tore Olav", "Kristiansen")


@pytest.fixture
def evaluator() -> TemplateEvaluator:
    """Evaluator with a private copy of the builtin functions."""
    return TemplateEvaluator(builtin_functions())


@pytest.fixture
def run_cli(capsys) -> Callable[..., CliResult]:
    def run(*args: str) -> CliResult:
        code = main(list(args))
        captured = capsys.readouterr()
        return CliResult(code, captured.out, captured.err)
    return run
