"""
Pytest configuration and fixtures for naisd tests.
"""

import json
from pathlib import Path

import httpx
import pytest

from naisd.deploy.models import DeploymentRequest


TESTDATA = Path(__file__).parent / "testdata"


@pytest.fixture
def load_testdata():
    """Return a loader for JSON fixtures under tests/testdata."""
    def _load(name: str) -> dict:
        return json.loads((TESTDATA / name).read_text())
    return _load


@pytest.fixture
def make_http_client():
    """
    Build an httpx.AsyncClient whose requests are answered by ``handler``.

    The handler receives an httpx.Request and returns an httpx.Response
    (or an awaitable of one).
    """
    def _make(handler) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return _make


@pytest.fixture
def valid_request() -> DeploymentRequest:
    return DeploymentRequest(
        application="appname",
        version="123",
        environment="namespace",
        appConfigUrl="http://repo.com/app",
        zone="fss",
        namespace="namespace",
        username="user",
        password="pass",
    )
