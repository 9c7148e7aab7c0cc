from fastapi import status


class AuthError(Exception):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Authentication failed"

    def __init__(self, message: str | None = None, status_code: int | None = None) -> None:
        self.message = message or self.default_message
        if status_code is not None:
            self.status_code = status_code
        super().__init__(self.message)


class AccountDisabled(AuthError):
    default_message = "This account has been deactivated. Please contact support."


class UserNotFound(AuthError):
    default_message = "User not found. Please sign up first."


class InvalidOrExpiredOtp(AuthError):
    default_message = "Invalid or expired OTP"


class Unauthenticated(AuthError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Login to access this route..."


class SessionExpired(AuthError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Session expired. Please log in again."


class NotVerified(AuthError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = (
        "Your account is not verified. Please verify your phone number first."
    )


class SmsSendError(RuntimeError):
    pass


class TokenError(ValueError):
    pass
