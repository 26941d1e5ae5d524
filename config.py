"""
Configuration module for environment variable validation and type-safe config.

This module reads the gateway settings from the environment and provides a
type-safe configuration object. Explorer and signing settings are optional
at start-up; they are checked when a request needs them.
"""
import os
from dataclasses import dataclass
from typing import List, Optional


VALID_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


def _int_from_env(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None or raw == "":
        return default
    try:
        value = int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got: {raw}")
    if value <= 0:
        raise ValueError(f"{name} must be positive, got: {raw}")
    return value


@dataclass
class Config:
    """Type-safe configuration object with validated environment variables."""

    port: int = 3000
    environment: str = ""
    log_level: str = "INFO"
    mantle_explorer_url: Optional[str] = None
    mantle_explorer_api_key: Optional[str] = None
    base_sepolia_explorer_url: Optional[str] = None
    base_sepolia_explorer_api_key: Optional[str] = None
    explorer_timeout: int = 30
    ethereum_private_key: Optional[str] = None
    private_key_secret_name: Optional[str] = None
    chain_to_send_tx_on: Optional[str] = None
    chain_rpc_url: Optional[str] = None
    lit_network: str = "datil"
    lit_pkp_public_key: Optional[str] = None
    lit_capacity_credit_token_id: Optional[str] = None
    aws_region: str = "us-east-1"

    @classmethod
    def from_env(cls) -> "Config":
        """
        Create Config instance from environment variables.

        Raises:
            ValueError: If an environment variable holds an invalid value.
        """
        log_level = os.environ.get("LOG_LEVEL", "INFO").upper()
        if log_level not in VALID_LOG_LEVELS:
            raise ValueError(
                f"LOG_LEVEL must be one of {VALID_LOG_LEVELS}, got: {log_level}"
            )

        return cls(
            port=_int_from_env("PORT", 3000),
            environment=os.environ.get("NODE_ENV", ""),
            log_level=log_level,
            mantle_explorer_url=os.environ.get("MANTLE_EXPLORER_API_BASE_URL"),
            mantle_explorer_api_key=os.environ.get("MANTLE_EXPLORER_API_KEY"),
            base_sepolia_explorer_url=os.environ.get("BASE_SEPOLIA_EXPLORER_URL"),
            base_sepolia_explorer_api_key=os.environ.get(
                "BASE_SEPOLIA_EXPLORER_API_KEY"
            ),
            explorer_timeout=_int_from_env("EXPLORER_TIMEOUT", 30),
            ethereum_private_key=os.environ.get("ETHEREUM_PRIVATE_KEY") or None,
            private_key_secret_name=(
                os.environ.get("ETHEREUM_PRIVATE_KEY_SECRET_NAME") or None
            ),
            chain_to_send_tx_on=os.environ.get("CHAIN_TO_SEND_TX_ON") or None,
            chain_rpc_url=os.environ.get("CHAIN_RPC_URL") or None,
            lit_network=os.environ.get("LIT_NETWORK", "datil"),
            lit_pkp_public_key=os.environ.get("LIT_PKP_PUBLIC_KEY") or None,
            lit_capacity_credit_token_id=(
                os.environ.get("LIT_CAPACITY_CREDIT_TOKEN_ID") or None
            ),
            aws_region=os.environ.get("AWS_REGION", "us-east-1"),
        )

    @property
    def is_development(self) -> bool:
        return self.environment == "development"

    def missing_signing_settings(self) -> List[str]:
        """
        List the names of signing settings that are not configured.

        The private key counts as configured when either the raw key or a
        Secrets Manager secret name is present.
        """
        missing = []
        if not (self.ethereum_private_key or self.private_key_secret_name):
            missing.append("ETHEREUM_PRIVATE_KEY")
        if not self.chain_to_send_tx_on:
            missing.append("CHAIN_TO_SEND_TX_ON")
        return missing


_config: Optional[Config] = None


def get_config() -> Config:
    """
    Get the global configuration instance.

    Returns:
        Config: The validated configuration object

    Raises:
        ValueError: If an environment variable holds an invalid value.
    """
    global _config
    if _config is None:
        _config = Config.from_env()
    return _config
