"""
Decorators wrapping Lambda handlers in the standard response envelope.
"""

import logging
from functools import wraps
from typing import Any, Callable, Dict

from pydantic import ValidationError

from hoa_import.utils.lambda_utils import create_response

logger = logging.getLogger(__name__)

# Malformed invocation payloads
CLIENT_ERRORS = (ValidationError, ValueError, KeyError)


def request_id_of(context: Any) -> str:
    return getattr(context, 'aws_request_id', None) or 'local'


def standard_error_handling(func: Callable) -> Callable:
    """
    Decorator giving a ``(event, context)`` handler the standard response envelope.

    - A returned dict carrying ``statusCode`` is passed through as is
    - Any other return value becomes the body of a 200 response
    - ValidationError, ValueError and KeyError become 400 with the error message
    - Anything else becomes 500 with a generic message; details are logged only
    """
    @wraps(func)
    def wrapper(event: Dict[str, Any], context: Any) -> Dict[str, Any]:
        request_id = request_id_of(context)
        try:
            result = func(event, context)
        except CLIENT_ERRORS as e:
            logger.warning(f"Rejected request in {func.__name__}: {str(e)}", extra={'request_id': request_id})
            return create_response(400, {"message": str(e)})
        except Exception as e:
            logger.error(f"Unexpected error in {func.__name__}: {str(e)}", exc_info=True,
                         extra={'request_id': request_id})
            return create_response(500, {"message": f"Error in {func.__name__.replace('_handler', '')}"})

        if isinstance(result, dict) and "statusCode" in result:
            return result
        return create_response(200, result)

    return wrapper
