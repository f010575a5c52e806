"""Authentication failures raised by the auth service.

Every error carries one fixed public message. The message never depends on
which sub-case triggered it, so callers cannot tell an unknown user from a
wrong password, or an expired code from a used one.
"""

from fastapi import status


class AuthError(Exception):
    message: str = "Authentication failed"
    status_code: int = status.HTTP_401_UNAUTHORIZED

    def __init__(self, message: str | None = None):
        super().__init__(message or self.message)


class InvalidCredentials(AuthError):
    message = "Invalid credentials"
    status_code = status.HTTP_401_UNAUTHORIZED


class NoPendingChallenge(AuthError):
    message = "No pending authentication"
    status_code = status.HTTP_400_BAD_REQUEST


class InvalidOrExpiredCode(AuthError):
    message = "Invalid or expired code"
    status_code = status.HTTP_401_UNAUTHORIZED


class NotificationDeliveryFailed(AuthError):
    """The code was issued but could not be delivered.

    ``session`` holds the session state the caller should still persist; the
    credential check is not rolled back.
    """

    message = "Unable to send verification code. Please try again later."
    status_code = status.HTTP_502_BAD_GATEWAY

    def __init__(self, session=None):
        super().__init__()
        self.session = session
