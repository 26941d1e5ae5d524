"""
Secrets service for resolving the operator wallet's private key.
"""
import json
import boto3
from typing import Any, Optional
from logger_config import get_logger

logger = get_logger(__name__)


class SecretsService:
    """Resolve the operator private key from Secrets Manager or the environment."""

    def __init__(self, region_name: str = 'us-east-1') -> None:
        self.region_name = region_name
        self._client: Optional[Any] = None

    @property
    def client(self) -> Any:
        """Lazy initialization of the Secrets Manager client."""
        if self._client is None:
            self._client = boto3.client('secretsmanager', region_name=self.region_name)
        return self._client

    def get_secret_private_key(self, secret_name: str) -> Optional[str]:
        """
        Read a private key from Secrets Manager.

        The secret is either the raw key or a JSON object with a
        "private_key" member.

        Returns:
            The private key, or None if the secret holds no key
        """
        response = self.client.get_secret_value(SecretId=secret_name)
        secret_string = response.get('SecretString') or ''

        try:
            secret_data = json.loads(secret_string)
        except ValueError:
            return secret_string.strip() or None

        if isinstance(secret_data, dict):
            return secret_data.get('private_key') or None
        if isinstance(secret_data, str):
            return secret_data.strip() or None
        return None

    def get_private_key(
        self,
        secret_name: Optional[str],
        fallback: Optional[str]
    ) -> str:
        """
        Retrieve the operator private key from Secrets Manager with fallback
        to the environment value.

        Args:
            secret_name: Secrets Manager secret id, if configured
            fallback: ETHEREUM_PRIVATE_KEY value, if configured

        Returns:
            The private key

        Raises:
            ValueError: If neither source provides a key.
        """
        if secret_name:
            try:
                private_key = self.get_secret_private_key(secret_name)
                if private_key:
                    logger.info(f'Retrieved operator key from Secrets Manager: {secret_name}')
                    return private_key
                logger.warning(
                    f'Secrets Manager secret {secret_name} exists but holds no '
                    f'private key, falling back to ETHEREUM_PRIVATE_KEY'
                )
            except Exception as e:
                logger.warning(
                    f'Failed to retrieve operator key from Secrets Manager '
                    f'({secret_name}): {str(e)}. Falling back to ETHEREUM_PRIVATE_KEY.'
                )

        if fallback:
            logger.info('Using operator key from ETHEREUM_PRIVATE_KEY')
            return fallback

        error_msg = (
            'Operator private key not found in Secrets Manager or '
            f'environment variables. Secret name: {secret_name or "not configured"}'
        )
        logger.error(error_msg)
        raise ValueError(error_msg)
