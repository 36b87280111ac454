"""
EdgeGrid - Akamai OPEN API client toolkit.

Signs HTTP requests with the EG1-HMAC-SHA256 scheme and provides
explicitly constructed sessions for calling Akamai OPEN APIs.

Key modules:
- signer: EdgeGrid request signing and the httpx auth flow
- config: Credential loading from .edgerc, environment, or YAML
- session: Signed sync/async HTTP sessions
- cli: Command line interface
"""

import os
from importlib.metadata import PackageNotFoundError, version


def _get_version() -> str:
    """
    Get version with priority: EDGEGRID_VERSION env var > installed metadata > fallback.
    """
    env_version = os.environ.get("EDGEGRID_VERSION")
    if env_version:
        return env_version

    try:
        return version("edgegrid-sdk")
    except PackageNotFoundError:
        return "0.0.0.dev0"


__version__ = _get_version()

from edgegrid.config import EdgeGridConfig, load_config  # noqa: E402
from edgegrid.session import AsyncSession, Session  # noqa: E402
from edgegrid.signer import EdgeGridAuth, SigningContext, sign_request  # noqa: E402

__all__ = [
    "__version__",
    "AsyncSession",
    "EdgeGridAuth",
    "EdgeGridConfig",
    "Session",
    "SigningContext",
    "load_config",
    "sign_request",
]
