"""Shared fixtures for the cannedhttp test suite."""

import pytest

from cannedhttp.mock.server import MockServer

pytest_plugins = ["cannedhttp.pytest_plugin"]


@pytest.fixture()
def server():
    """A fresh mock server that is never opened."""
    return MockServer()


@pytest.fixture()
def client(server):
    """Flask test client driving the server's request handler."""
    return server.app.test_client()


@pytest.fixture()
def live_server():
    """A fresh mock server listening on an ephemeral port."""
    server = MockServer()
    server.open()
    yield server
    server.close()
