"""
Endpoint decorators for error handling, logging, and response formatting.
"""
import functools
import uuid
import traceback
from datetime import datetime, timezone
from typing import Callable, Any, Dict, Optional

from flask import Response, g, jsonify, request

from config import get_config
from logger_config import get_logger
from utils.exceptions import ValidationError

logger = get_logger(__name__)

CORRELATION_HEADER = 'X-Correlation-ID'


def utc_timestamp() -> str:
    """ISO-8601 timestamp in UTC with millisecond precision."""
    now = datetime.now(timezone.utc)
    return now.isoformat(timespec='milliseconds').replace('+00:00', 'Z')


def error_body(message: str, stack: Optional[str] = None) -> Dict[str, Any]:
    """
    Build the JSON body returned for a failed request.

    The stack trace is only included when running in development.
    """
    body = {
        'success': False,
        'error': message,
        'timestamp': utc_timestamp(),
    }
    if stack and get_config().is_development:
        body['stack'] = stack
    return body


def api_endpoint(func: Callable[..., Any]) -> Callable[..., Response]:
    """
    Decorator for Flask view functions.

    Provides:
    - Request correlation IDs for logging and the X-Correlation-ID header
    - Success envelope: {"success": true, "data": ..., "timestamp": ...}
    - ValidationError -> 400, any other exception -> 500

    A view may return a ready Flask response to bypass the envelope.

    Args:
        func: The view function to decorate

    Returns:
        Decorated view function
    """
    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> Response:
        correlation_id = str(uuid.uuid4())
        g.correlation_id = correlation_id

        logger.info(f"{request.method} {request.path} -> {func.__name__}")

        try:
            result = func(*args, **kwargs)

            if isinstance(result, Response):
                response = result
            else:
                response = jsonify({
                    'success': True,
                    'data': result,
                    'timestamp': utc_timestamp(),
                })

            logger.info(f"{func.__name__} completed with status {response.status_code}")

        except ValidationError as e:
            logger.warning(f"{func.__name__} validation error: {e.message}")
            response = jsonify(error_body(e.message))
            response.status_code = 400

        except Exception as e:
            error_traceback = traceback.format_exc()
            logger.error(f"{func.__name__} failed: {str(e)}", exc_info=True)
            response = jsonify(error_body(str(e) or 'Internal server error', error_traceback))
            response.status_code = 500

        response.headers[CORRELATION_HEADER] = correlation_id
        return response

    return wrapper
