import json
from datetime import date
from decimal import Decimal
from typing import Any, Dict


class DecimalEncoder(json.JSONEncoder):
    def default(self, obj):
        if isinstance(obj, Decimal):
            # String form keeps precision
            return str(obj)
        if isinstance(obj, date):
            return obj.isoformat()
        return super(DecimalEncoder, self).default(obj)


def create_response(status_code: int, body: Dict[str, Any]) -> Dict[str, Any]:
    """Create a standardized API response."""
    return {
        "statusCode": status_code,
        "headers": {
            "Content-Type": "application/json",
            "Access-Control-Allow-Origin": "*",
            "Access-Control-Allow-Headers": "Content-Type,Authorization",
            "Access-Control-Allow-Methods": "POST,OPTIONS"
        },
        "body": json.dumps(body, cls=DecimalEncoder)
    }


def parse_event_body(event: Dict[str, Any]) -> Dict[str, Any]:
    """
    Return the request body as a dict.

    API Gateway events carry a JSON string under ``body``; direct invocations
    may pass the payload itself, as a dict under ``body`` or as the event.
    """
    body = event.get('body', event)
    if body is None:
        return {}
    if isinstance(body, (str, bytes)):
        body = json.loads(body or '{}')
    if not isinstance(body, dict):
        raise ValueError("Request body must be a JSON object")
    return body
