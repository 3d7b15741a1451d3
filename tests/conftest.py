"""
Pytest configuration and shared fixtures.
"""

import pytest

from storage_agent.dependencies import reset_singletons
from storage_agent.services.process import ProcessProbe
from tests.fakes import FakeProcessRunner, make_settings


@pytest.fixture(autouse=True)
def clean_singletons():
    """Automatically reset singletons before each test."""
    reset_singletons()
    yield
    reset_singletons()


@pytest.fixture
def settings():
    return make_settings()


@pytest.fixture
def runner():
    return FakeProcessRunner()


@pytest.fixture
def probe(runner):
    return ProcessProbe(runner, poll_interval=0.01)
