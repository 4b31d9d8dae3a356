# music_combinators/core/errors.py
from fastapi import HTTPException, status


class AppError(HTTPException):
    """
    Base class for domain errors raised by services.

    Subclasses fix the HTTP status so services only pass a message.
    Rendering into the `{success, error}` envelope happens in main.py.
    """

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str):
        super().__init__(status_code=self.status_code, detail=message)
        self.message = message


class ValidationError(AppError):
    """Malformed or out-of-range input."""

    status_code = status.HTTP_400_BAD_REQUEST


class AuthenticationError(AppError):
    """Missing or invalid bearer credential."""

    status_code = status.HTTP_401_UNAUTHORIZED


class AuthorizationError(AppError):
    """Valid credential but insufficient role or account status."""

    status_code = status.HTTP_403_FORBIDDEN


class NotFoundError(AppError):
    """
    Entity absent, or not in the state required by the transition.

    Both cases share one error so callers cannot probe which applies.
    """

    status_code = status.HTTP_404_NOT_FOUND


class ConflictError(AppError):
    """Uniqueness or state invariant violation."""

    status_code = status.HTTP_409_CONFLICT


def first_error_message(errors) -> str:
    """
    Human-readable message from a pydantic error list.

    Custom validators raise ValueError; pydantic prefixes those with
    "Value error, " which is stripped here.
    """
    if not errors:
        return "Invalid request"
    error = errors[0]
    message = str(error.get("msg", "Invalid request"))
    if message.startswith("Value error, "):
        return message[len("Value error, "):]
    field = ".".join(str(part) for part in error.get("loc", ()) if part != "body")
    return f"{field}: {message}" if field else message
