"""
Custom exception classes for HTTP handlers and services.
"""
from typing import Optional, Dict, Any


class ExplorerAPIError(Exception):
    """Exception raised for block explorer API errors."""

    def __init__(
        self,
        message: str,
        network: Optional[str] = None,
        status_code: Optional[int] = None,
        response_data: Optional[Dict[str, Any]] = None
    ):
        """
        Initialize explorer API error.

        Args:
            message: Error message
            network: Display name of the explorer network if available
            status_code: HTTP status code if available
            response_data: Response data if available
        """
        if network:
            message = f"{network} Explorer API Error: {message}"
        super().__init__(message)
        self.message = message
        self.network = network
        self.status_code = status_code
        self.response_data = response_data


class ValidationError(Exception):
    """Exception raised for request validation errors."""

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        value: Any = None
    ):
        """
        Initialize validation error.

        Args:
            message: Error message
            field: Field name that failed validation if available
            value: Invalid value if available
        """
        super().__init__(message)
        self.message = message
        self.field = field
        self.value = value


class ChainConfigurationError(Exception):
    """Raised when the signing chain or its settings are not usable."""

    def __init__(self, message: str, chain: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.chain = chain


class SigningError(Exception):
    """Exception raised when a step of the signing flow fails."""

    def __init__(self, message: str, stage: Optional[str] = None):
        """
        Initialize signing error.

        Args:
            message: Error message
            stage: Name of the orchestration step that failed if available
        """
        super().__init__(message)
        self.message = message
        self.stage = stage
