"""Shared fixtures for membrane tests: isolated domains and process-state hygiene."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from crossrealm import Domain, IsolatedRealmFactory
from crossrealm.config import reset_config
from crossrealm.domain import _stack_depth
from crossrealm.monitor import started_monitors
from crossrealm.observability import shutdown_logging

if TYPE_CHECKING:
    from collections.abc import Iterator


@pytest.fixture(autouse=True)
def _membrane_hygiene() -> Iterator[None]:
    reset_config()
    yield
    for monitor in started_monitors():
        monitor.stop()
    shutdown_logging()
    reset_config()
    assert _stack_depth() == 0
    assert Domain.current is Domain.top


@pytest.fixture
def sandbox() -> Domain:
    return Domain.create(IsolatedRealmFactory())


@pytest.fixture
def other_sandbox() -> Domain:
    return Domain.create(IsolatedRealmFactory())
