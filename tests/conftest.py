"""
Pytest configuration and fixtures for EdgeGrid tests.

Provides credential sets, temporary .edgerc files and mock transports
shared by the unit and integration suites.
"""

import tempfile
from pathlib import Path
from typing import Callable, Generator

import httpx
import pytest

from tests.vectors import CREDENTIALS


# ============================================================================
# Credential Fixtures
# ============================================================================


@pytest.fixture
def credentials():
    """Reference credential set with X-Test1..3 configured for signing."""
    return CREDENTIALS


@pytest.fixture
def temp_config_dir() -> Generator[Path, None, None]:
    """
    Create a temporary directory for credential files.

    Yields:
        Path to temporary directory
    """
    with tempfile.TemporaryDirectory(prefix="edgegrid_test_") as tmpdir:
        yield Path(tmpdir)


EDGERC_CONTENT = """\
[default]
client_secret = xxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxx=
host = xxxx-xxxxxxxxxxxxxxxx-xxxxxxxxxxxxxxxx.luna.akamaiapis.net
access_token = xxxx-xxxxxxxxxxxxxxxx-xxxxxxxxxxxxxxxx
client_token = xxxx-xxxxxxxxxxxxxxxx-xxxxxxxxxxxxxxxx

[test]
client_secret = xxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxx=
host = test-xxxxxxxxxxxxxxxx-xxxxxxxxxxxxxxxx.luna.akamaiapis.net
access_token = xxxx-xxxxxxxxxxxxxxxx-xxxxxxxxxxxxxxxx
client_token = xxxx-xxxxxxxxxxxxxxxx-xxxxxxxxxxxxxxxx
max_body = 2048
account_key = 1-ABCDE

[headers]
client_secret = xxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxx=
host = xxxx-xxxxxxxxxxxxxxxx-xxxxxxxxxxxxxxxx.luna.akamaiapis.net
access_token = xxxx-xxxxxxxxxxxxxxxx-xxxxxxxxxxxxxxxx
client_token = xxxx-xxxxxxxxxxxxxxxx-xxxxxxxxxxxxxxxx
headers_to_sign = X-MyThing1, X-MyThing2

[broken]
client_secret = xxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxx=
host = xxxx-xxxxxxxxxxxxxxxx-xxxxxxxxxxxxxxxx.luna.akamaiapis.net
access_token = xxxx-xxxxxxxxxxxxxxxx-xxxxxxxxxxxxxxxx
client_token = xxxx-xxxxxxxxxxxxxxxx-xxxxxxxxxxxxxxxx
max_body = 0

[dashes]
client-secret = xxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxx=
host = xxxx-xxxxxxxxxxxxxxxx-xxxxxxxxxxxxxxxx.luna.akamaiapis.net
access-token = xxxx-xxxxxxxxxxxxxxxx-xxxxxxxxxxxxxxxx
client-token = xxxx-xxxxxxxxxxxxxxxx-xxxxxxxxxxxxxxxx

[missing-host]
client_secret = xxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxx=
access_token = xxxx-xxxxxxxxxxxxxxxx-xxxxxxxxxxxxxxxx
client_token = xxxx-xxxxxxxxxxxxxxxx-xxxxxxxxxxxxxxxx

[bad-max-body]
client_secret = xxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxx=
host = xxxx-xxxxxxxxxxxxxxxx-xxxxxxxxxxxxxxxx.luna.akamaiapis.net
access_token = xxxx-xxxxxxxxxxxxxxxx-xxxxxxxxxxxxxxxx
client_token = xxxx-xxxxxxxxxxxxxxxx-xxxxxxxxxxxxxxxx
max_body = lots
"""


@pytest.fixture
def edgerc_file(temp_config_dir: Path) -> Path:
    """
    Create a temporary .edgerc file with several sections.

    Returns:
        Path to the file
    """
    path = temp_config_dir / ".edgerc"
    path.write_text(EDGERC_CONTENT)
    return path


# ============================================================================
# Environment Fixtures
# ============================================================================


@pytest.fixture
def clean_environment(monkeypatch) -> None:
    """
    Remove AKAMAI_* variables that might affect tests.
    """
    import os

    for var in list(os.environ):
        if var.startswith("AKAMAI"):
            monkeypatch.delenv(var, raising=False)


# ============================================================================
# Mock Transport Fixtures
# ============================================================================


@pytest.fixture
def recorded_requests() -> list:
    """List that mock transports append every received request to."""
    return []


@pytest.fixture
def make_transport(recorded_requests: list) -> Callable[..., httpx.MockTransport]:
    """
    Build a MockTransport that records requests and returns a fixed response.

    Returns:
        Factory taking (status_code, json=None, content=None)
    """

    def factory(status_code: int = 200, json=None, content=None) -> httpx.MockTransport:
        def handler(request: httpx.Request) -> httpx.Response:
            request.read()
            recorded_requests.append(request)
            if json is not None:
                return httpx.Response(status_code, json=json)
            return httpx.Response(status_code, content=content or b"")

        return httpx.MockTransport(handler)

    return factory
