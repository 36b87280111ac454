"""
EdgeGrid credential configuration.

Loads the credential set used to sign requests from an ``.edgerc`` INI
file, from ``AKAMAI_*`` environment variables, or from a legacy YAML
credential file. The loaded ``EdgeGridConfig`` is immutable and can be
shared by concurrent sessions.
"""

import configparser
import dataclasses
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional, Union

import yaml

logger = logging.getLogger(__name__)


# ============================================================================
# Constants
# ============================================================================

DEFAULT_CONFIG_FILE = "~/.edgerc"
DEFAULT_SECTION = "default"

# Maximum number of body bytes covered by the content hash
MAX_BODY_SIZE = 131072

ENV_PREFIX = "AKAMAI"

REQUIRED_OPTIONS = ("host", "client_token", "client_secret", "access_token")

_TRUE_VALUES = ("1", "true", "yes", "on")


# ============================================================================
# Exceptions
# ============================================================================


class ConfigError(Exception):
    """Base exception for configuration errors."""

    pass


class ConfigLoadError(ConfigError):
    """Raised when a configuration file cannot be read or parsed."""

    pass


class SectionNotFoundError(ConfigError):
    """Raised when the requested section does not exist."""

    pass


class MissingOptionError(ConfigError):
    """Raised when a required option is missing."""

    pass


# ============================================================================
# EdgeGridConfig
# ============================================================================


@dataclass(frozen=True)
class EdgeGridConfig:
    """
    Credential set for EdgeGrid signing.

    Attributes:
        host: API hostname (without scheme)
        client_token: Client token issued for the API client
        client_secret: Shared secret used to derive signing keys
        access_token: Access token issued for the API client
        account_key: Optional account switch key for multi-account access
        headers_to_sign: Header names covered by the signature
        max_body: Maximum number of body bytes hashed for POST requests
        debug: Enable debug logging of the signing steps
    """

    host: str = ""
    client_token: str = ""
    client_secret: str = ""
    access_token: str = ""
    account_key: str = ""
    headers_to_sign: tuple[str, ...] = ()
    max_body: int = MAX_BODY_SIZE
    debug: bool = False

    def __repr__(self) -> str:
        return (
            f"EdgeGridConfig(host={self.host!r}, "
            f"client_token={self.client_token!r}, "
            f"access_token={self.access_token!r}, "
            f"headers_to_sign={self.headers_to_sign!r}, "
            f"max_body={self.max_body!r})"
        )

    @property
    def base_url(self) -> str:
        """HTTPS base URL for the configured host."""
        host = self.host.rstrip("/")
        if host.startswith(("http://", "https://")):
            return host
        return f"https://{host}"

    def with_overrides(self, **changes: Any) -> "EdgeGridConfig":
        """Return a copy with the given fields replaced."""
        return dataclasses.replace(self, **changes)

    def validate(self) -> None:
        """
        Validate that all required options are set.

        Raises:
            MissingOptionError: If a required option is empty
        """
        for option in REQUIRED_OPTIONS:
            if not getattr(self, option):
                raise MissingOptionError(f"required option {option!r} is empty")
        if self.max_body <= 0:
            raise ConfigError(f"max_body must be positive, got: {self.max_body}")


# ============================================================================
# Helper Functions
# ============================================================================


def _parse_max_body(value: Any, source: str) -> int:
    if value in (None, ""):
        return MAX_BODY_SIZE
    try:
        max_body = int(value)
    except (TypeError, ValueError):
        raise ConfigLoadError(f"invalid max_body {value!r} in {source}")
    return max_body if max_body > 0 else MAX_BODY_SIZE


def _parse_headers(value: Any) -> tuple[str, ...]:
    if not value:
        return ()
    if isinstance(value, str):
        value = value.split(",")
    return tuple(str(name).strip() for name in value if str(name).strip())


def _parse_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in _TRUE_VALUES


def _from_mapping(values: dict[str, Any], source: str) -> EdgeGridConfig:
    for option in REQUIRED_OPTIONS:
        if option not in values:
            raise MissingOptionError(
                f"required option {option!r} is missing from {source}"
            )

    return EdgeGridConfig(
        host=str(values["host"]),
        client_token=str(values["client_token"]),
        client_secret=str(values["client_secret"]),
        access_token=str(values["access_token"]),
        account_key=str(values.get("account_key") or ""),
        headers_to_sign=_parse_headers(values.get("headers_to_sign")),
        max_body=_parse_max_body(values.get("max_body"), source),
        debug=_parse_bool(values.get("debug", False)),
    )


# ============================================================================
# Loaders
# ============================================================================


def from_edgerc(
    path: Union[str, Path] = DEFAULT_CONFIG_FILE,
    section: str = DEFAULT_SECTION,
) -> EdgeGridConfig:
    """
    Load credentials from an ``.edgerc`` INI file.

    Args:
        path: Path to the file (``~`` is expanded)
        section: Section to read

    Returns:
        Loaded configuration

    Raises:
        ConfigLoadError: If the file is missing or cannot be parsed
        SectionNotFoundError: If the section does not exist
        MissingOptionError: If a required option is missing
    """
    config_path = Path(path).expanduser()
    parser = configparser.ConfigParser(interpolation=None, strict=False)

    try:
        with open(config_path, encoding="utf-8") as f:
            parser.read_file(f)
    except OSError as e:
        raise ConfigLoadError(f"could not load config file {config_path}: {e}") from e
    except configparser.Error as e:
        raise ConfigLoadError(f"could not parse config file {config_path}: {e}") from e

    if not parser.has_section(section):
        raise SectionNotFoundError(
            f"section {section!r} does not exist in {config_path}"
        )

    values = dict(parser.items(section))
    logger.debug("Loaded section '%s' from %s", section, config_path)
    return _from_mapping(values, f"edgerc section {section!r}")


def _env_prefix(section: str) -> str:
    if section.lower() == DEFAULT_SECTION:
        return ENV_PREFIX
    return f"{ENV_PREFIX}_{section.upper()}"


def from_env(section: str = DEFAULT_SECTION) -> EdgeGridConfig:
    """
    Load credentials from environment variables.

    Uses ``AKAMAI_HOST``, ``AKAMAI_CLIENT_TOKEN``, ``AKAMAI_CLIENT_SECRET``,
    ``AKAMAI_ACCESS_TOKEN`` and optionally ``AKAMAI_MAX_BODY`` and
    ``AKAMAI_ACCOUNT_KEY``. A non-default section changes the prefix,
    e.g. ``ccu`` reads ``AKAMAI_CCU_HOST``.

    Raises:
        MissingOptionError: If a required variable is not set
    """
    prefix = _env_prefix(section)
    values: dict[str, Any] = {}

    for option in REQUIRED_OPTIONS:
        key = f"{prefix}_{option.upper()}"
        value = os.environ.get(key)
        if value is None:
            raise MissingOptionError(f"required option {key!r} is missing from env")
        values[option] = value

    max_body = os.environ.get(f"{prefix}_MAX_BODY", "")
    try:
        values["max_body"] = int(max_body)
    except ValueError:
        values["max_body"] = MAX_BODY_SIZE

    values["account_key"] = os.environ.get(f"{prefix}_ACCOUNT_KEY", "")
    return _from_mapping(values, "env")


def from_yaml(path: Union[str, Path]) -> EdgeGridConfig:
    """
    Load credentials from a legacy YAML credential file.

    The file holds the same keys as an ``.edgerc`` section at the top
    level; ``headers_to_sign`` may be a list or a comma-separated string.

    Raises:
        ConfigLoadError: If the file is missing or cannot be parsed
        MissingOptionError: If a required option is missing
    """
    config_path = Path(path).expanduser()
    try:
        with open(config_path, encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except OSError as e:
        raise ConfigLoadError(f"could not load config file {config_path}: {e}") from e
    except yaml.YAMLError as e:
        raise ConfigLoadError(f"Failed to parse config file: {e}") from e

    if not isinstance(data, dict):
        raise ConfigLoadError(f"config file {config_path} must contain a mapping")

    return _from_mapping(data, f"yaml file {config_path}")


def load_config(
    file: Optional[Union[str, Path]] = None,
    section: str = DEFAULT_SECTION,
    env: bool = False,
) -> EdgeGridConfig:
    """
    Load credentials from the environment and/or an ``.edgerc`` file.

    When ``env`` is true the environment is tried first and the file is
    used as a fallback. Files ending in ``.yaml`` or ``.yml`` are read as
    legacy YAML credential files.

    Args:
        file: Path to the config file (defaults to ``~/.edgerc``)
        section: Section name for both sources
        env: Try environment variables first

    Returns:
        Loaded configuration

    Raises:
        ConfigError: If no source yields a complete configuration
    """
    if env:
        try:
            return from_env(section)
        except MissingOptionError as e:
            logger.debug("Environment config incomplete, falling back to file: %s", e)

    path = Path(file or DEFAULT_CONFIG_FILE)
    try:
        if path.suffix in (".yaml", ".yml"):
            return from_yaml(path)
        return from_edgerc(path, section)
    except ConfigError as e:
        raise ConfigError(
            f"Unable to load config from environment or .edgerc file: {e}"
        ) from e
