"""
Auth operations: signup, login, profile reads and updates, password reset
and avatar reference updates.

Each call is independent. Protected operations take the caller id the
request gate already resolved and never look at the token themselves.
"""

import logging
from dataclasses import dataclass
from typing import Optional
from email_validator import EmailNotValidError, validate_email
from sqlalchemy.orm import Session
from booking_auth.core.errors import (
    DuplicateEmail,
    InvalidCredentials,
    InvalidCurrentPassword,
    NoFileProvided,
    NotFound,
    ValidationError,
)
from booking_auth.core.security import TokenService, password_problem, token_service
from booking_auth.models.user import User
from booking_auth.services.credential_store import CredentialStore, credential_store

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 6


@dataclass
class AuthSession:
    """Result of signup/login: a fresh token and the user it belongs to"""
    token: str
    user: User


def _is_valid_email(email: Optional[str]) -> bool:
    if not email:
        return False
    try:
        validate_email(email, check_deliverability=False)
    except EmailNotValidError:
        return False
    return True


def _raise_if_any(errors: list[dict]) -> None:
    if errors:
        raise ValidationError(errors)


class AuthService:
    def __init__(self, store: CredentialStore = credential_store,
                 tokens: TokenService = token_service):
        self.store = store
        self.tokens = tokens

    def signup(self, db: Session, full_name: Optional[str], email: Optional[str],
               password: Optional[str]) -> AuthSession:
        """Register a new user and sign them in"""
        errors = []
        if not full_name or not full_name.strip():
            errors.append({"field": "fullName", "message": "Name is required"})
        if not _is_valid_email(email):
            errors.append({"field": "email", "message": "Please include a valid email"})
        if not password or len(password) < MIN_PASSWORD_LENGTH:
            errors.append({
                "field": "password",
                "message": "Please enter a password with 6 or more characters",
            })
        elif password_problem(password):
            errors.append({"field": "password", "message": password_problem(password)})
        _raise_if_any(errors)

        # Explicit check gives the common case a clean answer; the unique
        # index in create() still catches concurrent signups
        if self.store.find_by_email(db, email) is not None:
            logger.info("Signup rejected: email already registered")
            raise DuplicateEmail()

        user = self.store.create(db, full_name.strip(), email, password)
        token = self.tokens.issue(user.id)
        logger.info("Signup succeeded for user %s", user.id)
        return AuthSession(token=token, user=user)

    def login(self, db: Session, email: Optional[str], password: Optional[str]) -> AuthSession:
        """Check credentials and issue a token"""
        errors = []
        if not _is_valid_email(email):
            errors.append({"field": "email", "message": "Please include a valid email"})
        if not password:
            errors.append({"field": "password", "message": "Password is required"})
        _raise_if_any(errors)

        user = self.store.find_by_email(db, email)
        # Verify even when user is None so both failures take as long
        password_ok = self.store.verify_password(user, password)
        # Unknown email and wrong password must look the same to the client
        if user is None or not password_ok:
            logger.info("Login rejected: invalid credentials")
            raise InvalidCredentials()

        token = self.tokens.issue(user.id)
        logger.info("Login succeeded for user %s", user.id)
        return AuthSession(token=token, user=user)

    def get_profile(self, db: Session, caller_id: int) -> User:
        return self._get_user(db, caller_id)

    def update_profile(self, db: Session, caller_id: int, full_name: Optional[str]) -> User:
        if not full_name or not full_name.strip():
            raise ValidationError([{"field": "fullName", "message": "Name is required"}])

        user = self._get_user(db, caller_id)
        user = self.store.update_full_name(db, user, full_name.strip())
        logger.info("Profile updated for user %s", user.id)
        return user

    def reset_password(self, db: Session, caller_id: int, current_password: Optional[str],
                       new_password: Optional[str]) -> None:
        """
        Replace the caller's password after re-checking the current one.

        The token used for this request is neither reissued nor revoked.
        """
        errors = []
        if not current_password:
            errors.append({"field": "currentPassword", "message": "Current password is required"})
        if not new_password or len(new_password) < MIN_PASSWORD_LENGTH:
            errors.append({
                "field": "newPassword",
                "message": "New password must be 6 or more characters",
            })
        elif password_problem(new_password):
            errors.append({"field": "newPassword", "message": password_problem(new_password)})
        _raise_if_any(errors)

        user = self._get_user(db, caller_id)
        if not self.store.verify_password(user, current_password):
            logger.info("Password reset rejected for user %s: wrong current password", user.id)
            raise InvalidCurrentPassword()

        self.store.update_password(db, user, new_password)
        logger.info("Password reset for user %s", user.id)

    def update_avatar_reference(self, db: Session, caller_id: int,
                                uploaded_file_ref: Optional[str]) -> str:
        """Point the caller's profile image at an already uploaded file"""
        if not uploaded_file_ref:
            raise NoFileProvided()

        user = self._get_user(db, caller_id)
        user = self.store.update_profile_image_reference(db, user, uploaded_file_ref)
        logger.info("Avatar updated for user %s", user.id)
        return user.profile_image

    def _get_user(self, db: Session, caller_id: int) -> User:
        user = self.store.find_by_id(db, caller_id)
        if user is None:
            # A valid token whose user is gone
            logger.warning("No user record for authenticated caller %s", caller_id)
            raise NotFound()
        return user


auth_service = AuthService()
