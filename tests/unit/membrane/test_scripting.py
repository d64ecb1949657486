"""
crossrealm — unit tests for compiling code into a domain

File: tests/unit/membrane/test_scripting.py
Last updated: 2026-02-12

Purpose
- Validate that compiled code runs inside its domain with that domain's builtins.

What this test file should cover
- ``eval`` and ``exec`` modes, scope marshaling, and argument validation.
- Missing escape builtins inside the domain.
- Host exports and errors surfacing in the calling domain.

Functional requirements
- Offline operation.

Non-functional requirements
- Deterministic.
"""

from __future__ import annotations

import pytest

from crossrealm import Domain, Marshal, compile_in_domain


class _Config:
    def __init__(self) -> None:
        self.retries = 3


def test_eval_mode_returns_the_expression_value(sandbox: Domain) -> None:
    program = compile_in_domain("1 + 2", sandbox, mode="eval")

    assert Marshal.get_marshalled_domain(program) is sandbox
    assert program() == 3


def test_exec_mode_returns_the_namespace(sandbox: Domain) -> None:
    namespace = compile_in_domain("total = sum(range(4))\n", sandbox)()

    assert Marshal.is_marshalled(namespace)
    assert namespace["total"] == 6


def test_code_runs_inside_the_domain(sandbox: Domain) -> None:
    program = compile_in_domain(
        "Domain.current.name", sandbox, mode="eval", scope={"Domain": Domain}
    )

    assert program() == sandbox.name


def test_scope_values_are_marshaled_into_the_domain(sandbox: Domain) -> None:
    config = _Config()

    program = compile_in_domain(
        "config.retries = config.retries + 1\n", sandbox, scope={"config": config}
    )
    program()

    assert config.retries == 4


def test_escape_builtins_are_missing(sandbox: Domain) -> None:
    with pytest.raises(NameError):
        compile_in_domain("open('x')", sandbox, mode="eval")()
    with pytest.raises(ImportError):
        compile_in_domain("import os\n", sandbox)()


def test_host_exports_are_callable(sandbox: Domain, capsys: pytest.CaptureFixture[str]) -> None:
    compile_in_domain("print('from sandbox', 7)\n", sandbox)()

    assert "from sandbox 7" in capsys.readouterr().out.splitlines()


def test_errors_surface_in_the_caller(sandbox: Domain) -> None:
    program = compile_in_domain("{}['missing']", sandbox, mode="eval")

    with pytest.raises(KeyError, match="missing"):
        program()


def test_instances_of_sandbox_classes_belong_to_the_sandbox(sandbox: Domain) -> None:
    namespace = compile_in_domain(
        "class Widget(Object):\n    pass\n\nwidget = Widget()\n", sandbox
    )()
    widget = namespace["widget"]

    assert sandbox.is_from(widget)
    assert not Domain.top.is_from(widget)


def test_syntax_errors_raise_at_compile_time(sandbox: Domain) -> None:
    with pytest.raises(SyntaxError):
        compile_in_domain("def broken(:\n", sandbox)


def test_arguments_are_validated(sandbox: Domain) -> None:
    with pytest.raises(ValueError, match="mode"):
        compile_in_domain("1", sandbox, mode="single")
    with pytest.raises(TypeError):
        compile_in_domain("1", "sandbox")  # type: ignore[arg-type]