import logging
from typing import Optional
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session
from booking_auth.core.errors import DuplicateEmail
from booking_auth.core.security import get_password_hash, verify_password
from booking_auth.models.user import User

logger = logging.getLogger(__name__)


class CredentialStore:
    """Persistence for user identity records. Owns password hashing."""

    @staticmethod
    def create(db: Session, full_name: str, email: str, password: str) -> User:
        """
        Store a new user with a freshly salted hash of password.

        The unique index on users.email decides races: if another request
        inserted the same email first, the commit fails and DuplicateEmail
        is raised.
        """
        user = User(
            full_name=full_name,
            email=email,
            hashed_password=get_password_hash(password),
        )
        db.add(user)
        try:
            db.commit()
        except IntegrityError:
            db.rollback()
            logger.info("Rejected duplicate email on insert")
            raise DuplicateEmail()
        except SQLAlchemyError:
            db.rollback()
            raise
        db.refresh(user)
        return user

    @staticmethod
    def find_by_email(db: Session, email: str) -> Optional[User]:
        return db.query(User).filter(User.email == email).first()

    @staticmethod
    def find_by_id(db: Session, user_id: int) -> Optional[User]:
        return db.query(User).filter(User.id == user_id).first()

    @staticmethod
    def verify_password(user: Optional[User], password: str) -> bool:
        # A missing user still pays for one bcrypt round trip
        return verify_password(password, user.hashed_password if user else None)

    @staticmethod
    def update_password(db: Session, user: User, new_password: str) -> User:
        """Replace the stored hash. Tokens already issued stay valid."""
        user.hashed_password = get_password_hash(new_password)
        return CredentialStore._save(db, user)

    @staticmethod
    def update_full_name(db: Session, user: User, full_name: str) -> User:
        user.full_name = full_name
        return CredentialStore._save(db, user)

    @staticmethod
    def update_profile_image_reference(db: Session, user: User, reference: str) -> User:
        user.profile_image = reference
        return CredentialStore._save(db, user)

    @staticmethod
    def _save(db: Session, user: User) -> User:
        try:
            db.commit()
        except SQLAlchemyError:
            db.rollback()
            raise
        db.refresh(user)
        return user


credential_store = CredentialStore()
