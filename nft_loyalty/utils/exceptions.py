"""
Custom exceptions for the loyalty engine.

Every exception carries a ``kind`` tag so callers can tell the four failure
families apart without inspecting messages:

- invalid_input: rejected synchronously, nothing was written
- not_found: the referenced user has no attribute vector yet
- transient: storage conflict or unavailability after bounded retries
- configuration: a static table is missing an entry (deployment error)
"""

INVALID_INPUT = 'invalid_input'
NOT_FOUND = 'not_found'
TRANSIENT = 'transient'
CONFIGURATION = 'configuration'


class LoyaltyError(Exception):
    """Base exception for all loyalty engine errors."""

    kind = CONFIGURATION

    def __init__(self, message: str, code: str = "LOYALTY_ERROR"):
        self.message = message
        self.code = code
        super().__init__(message)


class InvalidInputError(LoyaltyError):
    """Invalid action, payload field or perk condition."""

    kind = INVALID_INPUT

    def __init__(self, message: str, field: str = None):
        self.field = field
        code = f"INVALID_{field.upper()}" if field else "INVALID_INPUT"
        super().__init__(message, code)


class UnknownActionTypeError(InvalidInputError):
    """Action type is not in the point table."""

    def __init__(self, action_type, valid_types):
        self.action_type = action_type
        message = (
            f"Unknown action type '{action_type}'. "
            f"Valid types: {', '.join(sorted(valid_types))}"
        )
        super().__init__(message, 'action_type')


class NotFoundError(LoyaltyError):
    """Resource not found."""

    kind = NOT_FOUND

    def __init__(self, resource: str, identifier=None):
        message = f"{resource} not found"
        if identifier:
            message = f"{resource} with ID {identifier} not found"
        super().__init__(message, f"{resource.upper()}_NOT_FOUND")


class UserNotFoundError(NotFoundError):
    """No attribute vector exists for this user."""

    def __init__(self, identifier=None):
        super().__init__("User", identifier)


class DuplicateError(LoyaltyError):
    """Resource already exists."""

    kind = INVALID_INPUT

    def __init__(self, resource: str, identifier=None):
        message = f"{resource} already exists"
        if identifier:
            message = f"{resource} with {identifier} already exists"
        super().__init__(message, "DUPLICATE_ENTRY")


class TransientError(LoyaltyError):
    """Storage conflict or outage that survived the local retries."""

    kind = TRANSIENT

    def __init__(self, message: str, attempts: int = None, original_error: Exception = None):
        self.attempts = attempts
        self.original_error = original_error
        super().__init__(message, "TRANSIENT_FAILURE")


class ConfigurationError(LoyaltyError):
    """Static rule table or collaborator configuration error."""

    kind = CONFIGURATION

    def __init__(self, message: str):
        super().__init__(message, "CONFIGURATION_ERROR")
