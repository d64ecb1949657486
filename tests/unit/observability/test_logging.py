"""
crossrealm — unit tests for observability logging

File: tests/unit/observability/test_logging.py
Last updated: 2026-02-12

Purpose
- Validate structured JSON/console logging of membrane events through structlog.

What this test file should cover
- JSON line validity and event fields for denials, proxy creation, and domain creation.
- Level filtering driven by the ``[observability]`` config section.
- Inline-trap warnings toggled by membrane config.
- Handle lifecycle and argument validation.

Functional requirements
- Offline operation.

Non-functional requirements
- Deterministic and non-flaky; object contents never reach log lines.
"""

from __future__ import annotations

import io
import json
import logging

import pytest

from crossrealm import AccessDeniedError, Domain, IsolatedRealmFactory, Marshal, Rule
from crossrealm.config import configure, default_config, merge_config
from crossrealm.observability import (
    LoggingConfig,
    get_active_logging_handle,
    setup_logging,
    setup_structured_logging,
    shutdown_logging,
)


class _Secret:
    def __init__(self) -> None:
        self.token = "s3cret-token"

    def __repr__(self) -> str:
        return f"_Secret({self.token})"


def _json_lines(stream: io.StringIO) -> list[dict[str, object]]:
    return [json.loads(line) for line in stream.getvalue().splitlines() if line.strip()]


def _events(stream: io.StringIO) -> list[object]:
    return [line["event"] for line in _json_lines(stream)]


def _trigger_denial(sandbox: Domain) -> None:
    secret = _Secret()
    Marshal.set_rule(secret, Rule())
    proxy = Marshal.marshal(secret, sandbox)
    with pytest.raises(AccessDeniedError):
        Marshal.trap_domain(sandbox, lambda: proxy.token)


def test_access_denials_are_logged_as_json_lines(sandbox: Domain) -> None:
    stream = io.StringIO()
    setup_logging({"log_level": "INFO", "log_format": "json"}, stream=stream)

    _trigger_denial(sandbox)

    denials = [line for line in _json_lines(stream) if line["event"] == "membrane_access_denied"]
    assert len(denials) == 1
    denial = denials[0]
    assert denial["level"] == "info"
    assert denial["logger"] == "crossrealm.marshal"
    assert denial["action"] == "READ"
    assert denial["source"] == "top"
    assert denial["target"] == sandbox.name
    assert denial["object_type"] == "_Secret"
    assert "timestamp" in denial
    assert "s3cret" not in stream.getvalue()


def test_level_filtering_follows_config(sandbox: Domain) -> None:
    stream = io.StringIO()
    setup_logging(default_config()["observability"], stream=stream)

    _trigger_denial(sandbox)

    assert stream.getvalue() == ""


def test_debug_level_records_proxy_and_domain_creation() -> None:
    stream = io.StringIO()
    setup_logging({"log_level": "DEBUG"}, stream=stream)

    domain = Domain.create(IsolatedRealmFactory(), name="logged")
    Marshal.marshal(_Secret(), domain)

    lines = _json_lines(stream)
    created = [line for line in lines if line["event"] == "domain_created"]
    proxies = [line for line in lines if line["event"] == "membrane_proxy_created"]
    assert created[0]["domain"] == "logged"
    assert created[0]["caller"] == "top"
    assert {"source": "top", "target": "logged", "object_type": "_Secret"}.items() <= (
        proxies[-1].items()
    )


def test_inline_traps_warn_when_configured() -> None:
    configure(merge_config(default_config(), {"membrane": {"warn_inline_traps": True}}))
    stream = io.StringIO()
    setup_logging({"log_level": "WARNING"}, stream=stream)

    Marshal.trap_domain(Domain.top, lambda: None)

    assert _events(stream) == ["membrane_trap_inline"]
    assert _json_lines(stream)[0]["level"] == "warning"


def test_inline_traps_are_quiet_by_default() -> None:
    stream = io.StringIO()
    setup_logging({"log_level": "WARNING"}, stream=stream)

    Marshal.trap_domain(Domain.top, lambda: None)

    assert stream.getvalue() == ""


def test_console_format_renders_plain_lines(sandbox: Domain) -> None:
    stream = io.StringIO()
    setup_logging({"log_level": "INFO", "log_format": "console"}, stream=stream)

    _trigger_denial(sandbox)

    output = stream.getvalue()
    assert "membrane_access_denied" in output
    assert "action=READ" in output
    assert not output.lstrip().startswith("{")


def test_setup_replaces_the_previous_handle() -> None:
    first_stream = io.StringIO()
    second_stream = io.StringIO()
    first = setup_structured_logging(LoggingConfig(level="INFO", stream=first_stream))
    second = setup_structured_logging(LoggingConfig(level="INFO", stream=second_stream))

    assert first.is_shutdown
    assert get_active_logging_handle() is second
    assert len(logging.getLogger("crossrealm").handlers) == 1


def test_shutdown_detaches_the_handler() -> None:
    handle = setup_structured_logging(LoggingConfig(level="INFO", stream=io.StringIO()))

    shutdown_logging()

    assert handle.is_shutdown
    assert get_active_logging_handle() is None
    assert logging.getLogger("crossrealm").handlers == []
    shutdown_logging()


@pytest.mark.parametrize(
    ("config", "message"),
    [
        (LoggingConfig(fmt="xml"), "unsupported log format"),
        (LoggingConfig(level="LOUD"), "unsupported logging level"),
        (LoggingConfig(level=True), "got bool"),
        (LoggingConfig(logger_name="  "), "must not be empty"),
    ],
)
def test_invalid_logging_config_is_rejected(config: LoggingConfig, message: str) -> None:
    with pytest.raises(ValueError, match=message):
        setup_structured_logging(config)
