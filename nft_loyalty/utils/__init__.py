"""
Utility modules for the loyalty service.
"""
from .logging_config import setup_logging
from .errors import (
    ErrorCode,
    error_response,
    loyalty_error_response,
    bad_request,
    not_found,
    internal_error
)
from .exceptions import (
    LoyaltyError,
    InvalidInputError,
    UnknownActionTypeError,
    NotFoundError,
    UserNotFoundError,
    DuplicateError,
    TransientError,
    ConfigurationError
)
