"""
EdgeGrid request signing.

Implements the EG1-HMAC-SHA256 authentication scheme used by Akamai OPEN
APIs. A request is signed by canonicalizing the configured headers,
hashing the body, assembling a tab-separated signing string and signing
it with a per-timestamp key derived from the client secret.

The resulting Authorization header has the exact grammar:

    EG1-HMAC-SHA256 client_token=<t>;access_token=<t>;timestamp=<ts>;nonce=<n>;signature=<b64>

Field names, order and separators are a wire-format contract with the
server-side verifier.
"""

import base64
import hashlib
import hmac
import logging
import re
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Generator, Iterable, Mapping, Optional

import httpx

if TYPE_CHECKING:
    from edgegrid.config import EdgeGridConfig

logger = logging.getLogger(__name__)


# ============================================================================
# Constants
# ============================================================================

ALGORITHM = "EG1-HMAC-SHA256"
TIMESTAMP_FORMAT = "%Y%m%dT%H:%M:%S+0000"

# Only POST bodies are covered by the content hash
HASHED_METHOD = "POST"

_WHITESPACE_RE = re.compile(r"\s+")


# ============================================================================
# Exceptions
# ============================================================================


class SigningError(Exception):
    """Base exception for request signing failures."""

    pass


class CredentialsError(SigningError):
    """Raised when a required credential is missing at signing time."""

    pass


# ============================================================================
# Signing Context
# ============================================================================


def make_timestamp(now: Optional[datetime] = None) -> str:
    """
    Format a signing timestamp.

    Args:
        now: Time to format (defaults to the current time)

    Returns:
        Timestamp in ``yyyyMMddTHH:mm:ss+0000`` form, always UTC
    """
    if now is None:
        now = datetime.now(timezone.utc)
    elif now.tzinfo is not None:
        now = now.astimezone(timezone.utc)
    return now.strftime(TIMESTAMP_FORMAT)


def make_nonce() -> str:
    """Generate a single-use nonce for replay detection."""
    return str(uuid.uuid4())


@dataclass(frozen=True)
class SigningContext:
    """
    Per-request signing inputs.

    The same timestamp and nonce are embedded in the header and fed into
    the signature, so a context must never be shared between requests.
    """

    timestamp: str
    nonce: str

    @classmethod
    def create(cls) -> "SigningContext":
        """Create a context with a fresh timestamp and nonce."""
        timestamp = make_timestamp()
        nonce = make_nonce()
        return cls(timestamp=timestamp, nonce=nonce)


# ============================================================================
# Canonical Headers
# ============================================================================


def minify(value: str) -> str:
    """Trim a header value and collapse inner whitespace runs to one space."""
    return _WHITESPACE_RE.sub(" ", value.strip())


def canonicalize_headers(
    headers: Mapping[str, str],
    headers_to_sign: Iterable[str],
) -> str:
    """
    Build the canonical header string covered by the signature.

    Header names are sorted by codepoint, matched exactly against
    ``headers_to_sign``, and emitted as lower-cased ``name:value`` pairs
    joined by tabs.

    Args:
        headers: Request headers (name -> single value)
        headers_to_sign: Header names selected for signing

    Returns:
        Canonical header string, empty when nothing matches
    """
    allowed = list(headers_to_sign)
    pairs = []
    for name in sorted(headers):
        for candidate in allowed:
            if candidate == name:
                value = minify(headers[name])
                pairs.append(f"{name.lower()}:{value.lower()}")
    return "\t".join(pairs)


# ============================================================================
# Content Hash
# ============================================================================


def content_hash(method: str, body: bytes, max_body: int) -> str:
    """
    Hash the request body.

    Only POST bodies are hashed; every other method contributes an empty
    field. Bodies longer than ``max_body`` are truncated before hashing.

    Args:
        method: HTTP method
        body: Full request body
        max_body: Maximum number of body bytes to hash

    Returns:
        Base64 SHA-256 digest, or an empty string
    """
    if method != HASHED_METHOD or not body:
        return ""

    if len(body) > max_body:
        logger.debug(
            "Body length %d exceeds maximum %d, truncating for hash",
            len(body),
            max_body,
        )
        body = body[:max_body]

    digest = hashlib.sha256(body).digest()
    return base64.b64encode(digest).decode("ascii")


# ============================================================================
# Signing String and HMAC
# ============================================================================


def signing_data(
    method: str,
    scheme: str,
    host: str,
    path_and_query: str,
    canonical_headers: str,
    body_hash: str,
    auth_header: str,
) -> str:
    """
    Assemble the tab-separated data to sign.

    All seven fields are always present, even when empty.
    """
    return "\t".join(
        [
            method,
            scheme,
            host,
            path_and_query,
            canonical_headers,
            body_hash,
            auth_header,
        ]
    )


def create_signature(message: str, key: str) -> str:
    """Base64 HMAC-SHA256 of ``message`` keyed with the UTF-8 bytes of ``key``."""
    mac = hmac.new(
        key.encode("utf-8"),
        message.encode("utf-8", errors="surrogateescape"),
        hashlib.sha256,
    )
    return base64.b64encode(mac.digest()).decode("ascii")


def signing_key(client_secret: str, timestamp: str) -> str:
    """Derive the per-timestamp signing key from the client secret."""
    return create_signature(timestamp, client_secret)


# ============================================================================
# Authorization Header
# ============================================================================


def unsigned_auth_header(
    client_token: str,
    access_token: str,
    context: SigningContext,
) -> str:
    """Build the Authorization value up to and including ``nonce=...;``."""
    return (
        f"{ALGORITHM} "
        f"client_token={client_token};"
        f"access_token={access_token};"
        f"timestamp={context.timestamp};"
        f"nonce={context.nonce};"
    )


def _request_headers(
    request: httpx.Request,
    headers_to_sign: Iterable[str],
) -> dict[str, str]:
    """
    Collect request headers as a name -> value mapping.

    Names that match a configured header case-insensitively take the
    configured spelling. The first value wins for repeated headers.

    Raw bytes are decoded as UTF-8 with ``surrogateescape`` so the
    canonical string encodes back to the bytes sent on the wire.
    """
    spelling = {name.lower(): name for name in headers_to_sign}
    headers: dict[str, str] = {}
    seen = set()
    for raw_name, raw_value in request.headers.raw:
        name = raw_name.decode("utf-8", errors="surrogateescape")
        if name.lower() in seen:
            continue
        seen.add(name.lower())
        value = raw_value.decode("utf-8", errors="surrogateescape")
        headers[spelling.get(name.lower(), name)] = value
    return headers


def _path_and_query(url: httpx.URL) -> str:
    path = url.raw_path.decode("ascii").split("?", 1)[0]
    return path + url.query.decode("ascii")


def _read_body(request: httpx.Request) -> bytes:
    # ByteStream is both sync and async; a pure async stream cannot be read here
    if not isinstance(request.stream, httpx.SyncByteStream):
        raise SigningError(
            "Cannot read an async request body while signing; "
            "await request.aread() first"
        )
    try:
        return request.read()
    except Exception as e:
        raise SigningError(f"Failed to read request body: {e}") from e


def _check_credentials(credentials: "EdgeGridConfig") -> None:
    for field in ("client_token", "client_secret", "access_token"):
        if not getattr(credentials, field):
            raise CredentialsError(f"Missing required credential: {field}")


def create_auth_header(
    credentials: "EdgeGridConfig",
    request: httpx.Request,
    context: SigningContext,
) -> str:
    """
    Compute the complete Authorization header value for a request.

    Args:
        credentials: Credential set to sign with
        request: Outgoing request (not modified)
        context: Timestamp and nonce for this signing operation

    Returns:
        Signed Authorization header value

    Raises:
        CredentialsError: If a required credential is empty
        SigningError: If the request body cannot be read
    """
    _check_credentials(credentials)

    auth_header = unsigned_auth_header(
        credentials.client_token, credentials.access_token, context
    )
    logger.debug("Unsigned authorization header: '%s'", auth_header)

    body = _read_body(request) if request.method == HASHED_METHOD else b""
    body_hash = content_hash(request.method, body, credentials.max_body)
    logger.debug("Content hash is '%s'", body_hash)

    data = signing_data(
        request.method,
        request.url.scheme,
        request.url.netloc.decode("ascii"),
        _path_and_query(request.url),
        canonicalize_headers(
            _request_headers(request, credentials.headers_to_sign),
            credentials.headers_to_sign,
        ),
        body_hash,
        auth_header,
    )
    logger.debug("Data to sign: '%s'", data)

    key = signing_key(credentials.client_secret, context.timestamp)
    signature = create_signature(data, key)
    return f"{auth_header}signature={signature}"


def sign_request(
    credentials: "EdgeGridConfig",
    request: httpx.Request,
    context: Optional[SigningContext] = None,
) -> httpx.Request:
    """
    Sign an outgoing request in place.

    Sets ``Content-Type: application/json`` (always, even for non-JSON
    bodies) and the ``Authorization`` header. No header is changed when
    signing fails. Performs no network I/O.

    Args:
        credentials: Credential set to sign with
        request: Request to sign
        context: Signing context (a fresh one is created when omitted)

    Returns:
        The same request, now signed

    Raises:
        CredentialsError: If a required credential is empty
        SigningError: If the request body cannot be read
    """
    if context is None:
        context = SigningContext.create()

    previous = request.headers.get("Content-Type")
    request.headers["Content-Type"] = "application/json"
    try:
        authorization = create_auth_header(credentials, request, context)
    except BaseException:
        if previous is None:
            del request.headers["Content-Type"]
        else:
            request.headers["Content-Type"] = previous
        raise

    request.headers["Authorization"] = authorization
    return request


# ============================================================================
# httpx Integration
# ============================================================================


class EdgeGridAuth(httpx.Auth):
    """
    httpx authentication flow that signs every request with EdgeGrid.

    Works with both ``httpx.Client`` and ``httpx.AsyncClient``. The body
    is buffered by httpx before signing, so the request stays readable.

    Attributes:
        credentials: Credential set used for signing
    """

    requires_request_body = True

    def __init__(self, credentials: "EdgeGridConfig"):
        self.credentials = credentials

    def auth_flow(
        self, request: httpx.Request
    ) -> Generator[httpx.Request, httpx.Response, None]:
        yield sign_request(self.credentials, request)
