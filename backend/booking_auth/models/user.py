from sqlalchemy import Column, Integer, String, DateTime
from sqlalchemy.sql import func
from booking_auth.core.database import Base


class User(Base):
    """
    User model representing app customers.

    Stores authentication credentials and profile information.
    Passwords are stored as bcrypt hashes (never plaintext).
    """
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    full_name = Column(String, nullable=False)
    # Unique index is the race guard for concurrent signups with one email
    email = Column(String, unique=True, index=True, nullable=False)
    hashed_password = Column(String, nullable=False)
    # URL returned by the media host for the current avatar
    profile_image = Column(String, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())
