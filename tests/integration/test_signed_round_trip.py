"""
Integration tests for the signed request round trip.

A mock server recomputes the EdgeGrid signature from what it receives,
the way the server-side verifier does, and rejects mismatches.
"""

import httpx
import pytest

from edgegrid.config import from_edgerc
from edgegrid.session import AsyncSession, AuthenticationError, Session
from edgegrid.signer import (
    canonicalize_headers,
    content_hash,
    create_signature,
    signing_data,
    signing_key,
)


def parse_authorization(value: str) -> dict:
    """Split an Authorization header into its fields."""
    algorithm, _, rest = value.partition(" ")
    fields = dict(item.split("=", 1) for item in rest.split(";"))
    fields["algorithm"] = algorithm
    return fields


def make_verifier(config, received: list):
    """Build a handler that verifies EdgeGrid signatures."""

    def handler(request: httpx.Request) -> httpx.Response:
        body = request.read()
        received.append(request)
        fields = parse_authorization(request.headers["Authorization"])

        unsigned = request.headers["Authorization"].rsplit("signature=", 1)[0]
        spelling = {name.lower(): name for name in config.headers_to_sign}
        headers = {spelling.get(name, name): value for name, value in request.headers.items()}
        path = request.url.raw_path.decode().split("?", 1)[0]
        data = signing_data(
            request.method,
            request.url.scheme,
            request.url.netloc.decode(),
            path + request.url.query.decode(),
            canonicalize_headers(headers, config.headers_to_sign),
            content_hash(request.method, body, config.max_body),
            unsigned,
        )
        expected = create_signature(data, signing_key(config.client_secret, fields["timestamp"]))

        if fields["algorithm"] != "EG1-HMAC-SHA256" or fields["signature"] != expected:
            return httpx.Response(401, json={"title": "Unauthorized", "detail": "Invalid signature"})
        return httpx.Response(200, json={"echo": body.decode(), "method": request.method})

    return handler


class TestSignedRoundTrip:
    """End-to-end signing against a verifying mock server."""

    @pytest.fixture
    def config(self, edgerc_file):
        return from_edgerc(edgerc_file, "headers").with_overrides(max_body=16)

    def test_get_verified(self, config):
        """A signed GET with signed headers verifies."""
        received = []
        transport = httpx.MockTransport(make_verifier(config, received))

        with Session(config, transport=transport) as session:
            result = session.get(
                "/papi/v1/groups",
                params={"contractId": "ctr_1"},
                headers={"X-MyThing1": "  Some   Value ", "X-MyThing2": "two"},
            )

        assert result["method"] == "GET"
        assert received[0].headers["X-MyThing1"] == "  Some   Value "

    def test_large_post_verified(self, config):
        """A POST larger than max_body verifies and arrives in full."""
        received = []
        transport = httpx.MockTransport(make_verifier(config, received))
        payload = {"description": "x" * 200}

        with Session(config, transport=transport) as session:
            result = session.post("/papi/v1/properties", json=payload)

        assert len(received[0].content) > config.max_body
        assert '"description"' in result["echo"]

    def test_wrong_secret_rejected(self, config):
        """A signature made with another secret is rejected."""
        server_config = config.with_overrides(client_secret="another-secret")
        transport = httpx.MockTransport(make_verifier(server_config, []))

        with Session(config, transport=transport) as session:
            with pytest.raises(AuthenticationError) as exc_info:
                session.get("/papi/v1/groups")

        assert exc_info.value.detail == "Invalid signature"

    def test_independent_sessions(self, config):
        """Sessions with different credentials do not interfere."""
        other = config.with_overrides(client_token="other-token", client_secret="other-secret")
        received_a, received_b = [], []

        with Session(config, transport=httpx.MockTransport(make_verifier(config, received_a))) as a, \
                Session(other, transport=httpx.MockTransport(make_verifier(other, received_b))) as b:
            a.get("/a")
            b.get("/b")

        assert "client_token=other-token;" in received_b[0].headers["Authorization"]
        assert "client_token=other-token;" not in received_a[0].headers["Authorization"]

    @pytest.mark.asyncio
    async def test_async_post_verified(self, config):
        """The async session produces verifiable signatures too."""
        received = []
        transport = httpx.MockTransport(make_verifier(config, received))

        async with AsyncSession(config, transport=transport) as session:
            result = await session.post("/papi/v1/properties", json={"name": "async"})

        assert result["method"] == "POST"
