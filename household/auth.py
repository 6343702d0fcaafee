"""
Authentication Error Messages

Sign-in and sign-up are handled by Firebase Authentication. This module
turns its error codes into messages a person can act on and wraps the
few admin calls the sign-in screen needs.
"""

from enum import Enum
from typing import Any, Optional

from firebase_admin import auth as firebase_auth

from household.models.account import AccountContext


class AuthErrorCode(str, Enum):
    """Identity provider error codes we have a message for."""
    EMAIL_ALREADY_IN_USE = "auth/email-already-in-use"
    WEAK_PASSWORD = "auth/weak-password"
    USER_NOT_FOUND = "auth/user-not-found"
    WRONG_PASSWORD = "auth/wrong-password"
    INVALID_EMAIL = "auth/invalid-email"


AUTH_ERROR_MESSAGES: dict[AuthErrorCode, str] = {
    AuthErrorCode.EMAIL_ALREADY_IN_USE: "Email already in use. Try signing in instead.",
    AuthErrorCode.WEAK_PASSWORD: "Password should be at least 6 characters.",
    AuthErrorCode.USER_NOT_FOUND: "Email not found. Create a new account.",
    AuthErrorCode.WRONG_PASSWORD: "Incorrect password.",
    AuthErrorCode.INVALID_EMAIL: "Invalid email address.",
}

DEFAULT_AUTH_ERROR = "Authentication failed"


def describe_auth_error(code: Optional[str], message: Optional[str] = None) -> str:
    """
    User-facing message for an authentication failure.

    Known codes map to fixed messages; anything else falls back to the
    provider's own message, then to a generic one.
    """
    try:
        return AUTH_ERROR_MESSAGES[AuthErrorCode(code)]
    except ValueError:
        return message or DEFAULT_AUTH_ERROR


class AuthError(Exception):
    """Sign-in or sign-up failed; `code` is an identity provider error code."""

    def __init__(self, code: Optional[str], message: Optional[str] = None):
        self.code = code
        super().__init__(describe_auth_error(code, message))


MIN_PASSWORD_LENGTH = 6


class FirebaseIdentity:
    """
    Account lookup and creation through Firebase Authentication.

    Password verification happens in the client SDK; on the server side we
    resolve an email to its account id and create new accounts.
    """

    def __init__(self, app: Any = None):
        self._app = app

    def account_for_email(self, email: str) -> AccountContext:
        """
        Raises:
            AuthError: If no account uses this email or it is malformed
        """
        try:
            user = firebase_auth.get_user_by_email(email.strip(), app=self._app)
        except firebase_auth.UserNotFoundError as e:
            raise AuthError(AuthErrorCode.USER_NOT_FOUND.value, str(e)) from e
        except ValueError as e:
            raise AuthError(AuthErrorCode.INVALID_EMAIL.value, str(e)) from e
        return AccountContext(account_id=user.uid)

    def sign_up(self, email: str, password: str) -> AccountContext:
        """
        Create an account and return its context.

        Raises:
            AuthError: On a taken or malformed email, or a weak password
        """
        if len(password or "") < MIN_PASSWORD_LENGTH:
            raise AuthError(AuthErrorCode.WEAK_PASSWORD.value)
        try:
            user = firebase_auth.create_user(
                email=email.strip(), password=password, app=self._app,
            )
        except firebase_auth.EmailAlreadyExistsError as e:
            raise AuthError(AuthErrorCode.EMAIL_ALREADY_IN_USE.value, str(e)) from e
        except ValueError as e:
            raise AuthError(AuthErrorCode.INVALID_EMAIL.value, str(e)) from e
        return AccountContext(account_id=user.uid)
