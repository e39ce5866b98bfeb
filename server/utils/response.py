# Unified API response envelope

from datetime import datetime, timezone
from typing import Any, Dict


def _timestamp() -> str:
    return datetime.now(timezone.utc).strftime('%Y-%m-%dT%H:%M:%S.%fZ')


def create_success_response(
    data: Any = None,
    message: str = "OK"
) -> Dict[str, Any]:
    """
    Build a success response

    Args:
        data: response payload
        message: human-readable message
    """
    return {
        "success": True,
        "data": data,
        "message": message,
        "timestamp": _timestamp()
    }


def create_error_response(
    error: str,
    data: Any = None
) -> Dict[str, Any]:
    """
    Build an error response

    Args:
        error: human-readable error description
        data: optional error payload (e.g. the error kind)
    """
    return {
        "success": False,
        "error": error,
        "data": data,
        "timestamp": _timestamp()
    }
