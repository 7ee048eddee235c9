"""Error taxonomy shared by the store, the gateway and the HTTP layer.

Each error carries the HTTP status it maps to; ``backend.main`` renders
them as ``{"error": message}``.
"""

from fastapi import status


class AuthError(Exception):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "Internal server error"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(AuthError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Invalid input"


class Unauthenticated(AuthError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Unauthorized"


class InvalidCredentials(AuthError):
    # Covers both unknown email and wrong password.
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Invalid credentials"


class Forbidden(AuthError):
    status_code = status.HTTP_403_FORBIDDEN
    default_message = "Forbidden"


class NotFound(AuthError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Not found"


class Conflict(AuthError):
    status_code = status.HTTP_409_CONFLICT
    default_message = "Conflict"


class DuplicateEmail(Conflict):
    default_message = "User already exists with this email"


class Internal(AuthError):
    pass


class MailDeliveryError(Internal):
    default_message = "Failed to send email"
