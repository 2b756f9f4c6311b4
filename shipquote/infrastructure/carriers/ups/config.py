"""UPS adapter configuration."""

import logging
from dataclasses import dataclass
from typing import Optional

from shipquote.infrastructure.config.settings import get_config

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://onlinetools.ups.com"
DEFAULT_OAUTH_URL = "https://onlinetools.ups.com/security/v1/oauth/token"
DEFAULT_API_VERSION = "v2403"
DEFAULT_TRANSACTION_SRC = "carrier-integration-service"


@dataclass(frozen=True)
class UpsConfig:
    client_id: Optional[str] = None
    client_secret: Optional[str] = None
    account_number: Optional[str] = None
    base_url: str = DEFAULT_BASE_URL
    oauth_url: str = DEFAULT_OAUTH_URL
    api_version: str = DEFAULT_API_VERSION
    transaction_src: str = DEFAULT_TRANSACTION_SRC
    mock_mode: bool = False

    @property
    def has_credentials(self) -> bool:
        return bool(self.client_id and self.client_secret and self.account_number)

    def __repr__(self) -> str:
        # Keep the secret out of logs
        return (
            f"UpsConfig(client_id={self.client_id!r}, account_number={self.account_number!r}, "
            f"base_url={self.base_url!r}, api_version={self.api_version!r}, mock_mode={self.mock_mode})"
        )


def _text(*keys: str, default: Optional[str] = None) -> Optional[str]:
    # Raw strings keep leading zeros in account numbers and secrets
    for key in keys:
        value = get_config(key, coerce=False)
        if value is not None and value != "":
            return str(value)
    return default


def _flag(*keys: str) -> bool:
    for key in keys:
        value = get_config(key)
        if value is None:
            continue
        if isinstance(value, str):
            return value.strip().lower() in ("1", "true", "yes", "on")
        return bool(value)
    return False


def get_ups_config() -> UpsConfig:
    """Builds the UPS configuration from environment, .env and YAML settings.

    Mock mode is enabled when requested explicitly or when any of the three
    credentials is missing.
    """
    client_id = _text("UPS_CLIENT_ID", "ups.client_id")
    client_secret = _text("UPS_CLIENT_SECRET", "ups.client_secret")
    account_number = _text("UPS_ACCOUNT_NUMBER", "ups.account_number")
    mock_requested = _flag("UPS_MOCK_MODE", "ups.mock_mode")
    mock_mode = mock_requested or not (client_id and client_secret and account_number)
    if mock_mode and not mock_requested:
        logger.warning("UPS credentials incomplete; running in mock mode with fixture rates.")

    config = UpsConfig(
        client_id=client_id,
        client_secret=client_secret,
        account_number=account_number,
        base_url=_text("UPS_BASE_URL", "ups.base_url", default=DEFAULT_BASE_URL).rstrip("/"),
        oauth_url=_text("UPS_OAUTH_URL", "ups.oauth_url", default=DEFAULT_OAUTH_URL),
        api_version=_text("UPS_API_VERSION", "ups.api_version", default=DEFAULT_API_VERSION),
        transaction_src=_text("UPS_TRANSACTION_SRC", "ups.transaction_src", default=DEFAULT_TRANSACTION_SRC),
        mock_mode=mock_mode,
    )
    logger.debug(f"Loaded {config!r}")
    return config
