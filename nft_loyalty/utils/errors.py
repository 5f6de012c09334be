"""
Standardized error response utilities for the loyalty API.

Provides consistent error response format across all endpoints:
{
    "error": {
        "message": "User-friendly error message",
        "code": "ERROR_CODE",
        "kind": "invalid_input"
    }
}

Usage:
    from nft_loyalty.utils.errors import error_response, ErrorCode

    return error_response("User not found", ErrorCode.USER_NOT_FOUND, 404)
"""
import logging
from enum import Enum
from flask import jsonify
from typing import Optional

from .exceptions import (
    LoyaltyError,
    INVALID_INPUT,
    NOT_FOUND,
    TRANSIENT,
    CONFIGURATION,
)

logger = logging.getLogger(__name__)


class ErrorCode(str, Enum):
    """Standardized error codes for API responses."""

    # Validation Errors (400)
    INVALID_REQUEST = "INVALID_REQUEST"
    MISSING_FIELD = "MISSING_FIELD"
    INVALID_FIELD = "INVALID_FIELD"

    # Not Found (404)
    NOT_FOUND = "NOT_FOUND"
    USER_NOT_FOUND = "USER_NOT_FOUND"
    BRAND_NOT_FOUND = "BRAND_NOT_FOUND"

    # Server Errors (500, 503)
    INTERNAL_ERROR = "INTERNAL_ERROR"
    TRANSIENT_FAILURE = "TRANSIENT_FAILURE"
    CONFIGURATION_ERROR = "CONFIGURATION_ERROR"


# Kind tag -> HTTP status
KIND_STATUS = {
    INVALID_INPUT: 400,
    NOT_FOUND: 404,
    TRANSIENT: 503,
    CONFIGURATION: 500,
}


def error_response(
    message: str,
    code: ErrorCode = ErrorCode.INTERNAL_ERROR,
    status_code: int = 500,
    log_error: bool = True,
    details: Optional[dict] = None,
    kind: Optional[str] = None
) -> tuple:
    """
    Create a standardized error response.

    Args:
        message: User-friendly error message
        code: Error code from ErrorCode enum (or a raw string code)
        status_code: HTTP status code
        log_error: Whether to log the error
        details: Optional additional details (only logged, not returned to user)
        kind: Optional error kind tag

    Returns:
        Tuple of (response, status_code) for Flask
    """
    if log_error and status_code >= 500:
        logger.error(f"API Error [{code}]: {message}", extra={"details": details})
    elif log_error and status_code >= 400:
        logger.warning(f"API Error [{code}]: {message}", extra={"details": details})

    error = {
        "message": message,
        "code": code.value if isinstance(code, ErrorCode) else code
    }
    if kind:
        error["kind"] = kind

    return jsonify({"error": error}), status_code


def loyalty_error_response(error: LoyaltyError) -> tuple:
    """Render a LoyaltyError using its kind tag to pick the status code."""
    status_code = KIND_STATUS.get(error.kind, 500)
    return error_response(
        error.message,
        error.code,
        status_code,
        log_error=True,
        kind=error.kind
    )


# Convenience functions for common error types
def bad_request(message: str, code: ErrorCode = ErrorCode.INVALID_REQUEST) -> tuple:
    """400 Bad Request error."""
    return error_response(message, code, 400, log_error=False, kind=INVALID_INPUT)


def not_found(message: str, code: ErrorCode = ErrorCode.NOT_FOUND) -> tuple:
    """404 Not Found error."""
    return error_response(message, code, 404, log_error=False, kind=NOT_FOUND)


def internal_error(message: str = "An unexpected error occurred", details: Optional[dict] = None) -> tuple:
    """500 Internal Server Error."""
    return error_response(message, ErrorCode.INTERNAL_ERROR, 500, log_error=True, details=details)
