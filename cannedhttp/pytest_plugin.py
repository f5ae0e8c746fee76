"""Pytest fixtures for cannedhttp.

Enable with ``pytest_plugins = ["cannedhttp.pytest_plugin"]`` in a conftest
to make ``mock_server`` available to the tests below it. Needs pytest, which
the ``pytest`` extra installs (``pip install cannedhttp[pytest]``).
"""

from typing import Iterator

import pytest

from .core.config import MockServerConfig
from .mock.server import MockServer


@pytest.fixture(scope="session")
def mock_server_config() -> MockServerConfig:
    """Listener configuration. Override in a conftest to change it."""
    return MockServerConfig()


@pytest.fixture(scope="session")
def mock_server_session(mock_server_config: MockServerConfig) -> Iterator[MockServer]:
    """One open mock server shared by the whole session."""
    server = MockServer(config=mock_server_config)
    server.open()
    yield server
    server.close()


@pytest.fixture()
def mock_server(mock_server_session: MockServer) -> MockServer:
    """The shared mock server, reset so no earlier test leaks into this one."""
    mock_server_session.reset()
    return mock_server_session
