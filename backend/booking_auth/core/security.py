from datetime import datetime, timedelta, timezone
from typing import Optional
from jose import JWTError, jwt
from passlib.context import CryptContext
from booking_auth.core.config import settings
from booking_auth.core.errors import ConfigurationError, ExpiredToken, InvalidToken

# CryptContext handles password hashing using bcrypt
# bcrypt generates a fresh salt per hash and embeds it with the cost factor
pwd_context = CryptContext(
    schemes=["bcrypt"],
    deprecated="auto",
    bcrypt__rounds=settings.BCRYPT_ROUNDS,
)


# bcrypt ignores everything past this many bytes
MAX_PASSWORD_BYTES = 72


def password_problem(password: str) -> Optional[str]:
    """Why bcrypt cannot faithfully hash password, or None if it can"""
    if "\x00" in password:
        return "Password must not contain NUL characters"
    if len(password.encode("utf-8")) > MAX_PASSWORD_BYTES:
        return f"Password must be at most {MAX_PASSWORD_BYTES} bytes"
    return None


def verify_password(plain_password: str, hashed_password: Optional[str]) -> bool:
    """Verify a password against a hash using constant-time comparison.

    With no hash to compare against, or a password no stored hash could
    have come from, a dummy verification still runs so the failure costs
    the same time as a wrong password.
    """
    if not hashed_password or password_problem(plain_password) is not None:
        pwd_context.dummy_verify()
        return False
    return pwd_context.verify(plain_password, hashed_password)


def get_password_hash(password: str) -> str:
    """Hash a password using bcrypt. Callers validate with password_problem() first."""
    problem = password_problem(password)
    if problem is not None:
        raise ValueError(problem)
    return pwd_context.hash(password)


class TokenService:
    """
    Issues and verifies signed session tokens.

    Tokens are HS256 JWTs carrying the user id in 'sub' plus 'iat'/'exp'.
    Nothing is stored server-side: a token stays valid until it expires or
    the secret is rotated.
    """

    def __init__(self, secret_key: str, algorithm: str = "HS256",
                 expires_delta: timedelta = timedelta(days=7)):
        if not secret_key:
            raise ConfigurationError("A signing secret is required to issue tokens")
        self._secret_key = secret_key
        self._algorithm = algorithm
        self.expires_delta = expires_delta

    @classmethod
    def from_settings(cls, config=settings) -> "TokenService":
        return cls(
            secret_key=config.SECRET_KEY,
            algorithm=config.ALGORITHM,
            expires_delta=timedelta(minutes=config.ACCESS_TOKEN_EXPIRE_MINUTES),
        )

    def issue(self, user_id: int, now: Optional[datetime] = None) -> str:
        """Create a token for user_id that expires expires_delta from now"""
        issued_at = now or datetime.now(timezone.utc)
        expire = issued_at + self.expires_delta
        payload = {
            "sub": str(user_id),
            "iat": int(issued_at.timestamp()),
            "exp": int(expire.timestamp()),
        }
        return jwt.encode(payload, self._secret_key, algorithm=self._algorithm)

    def verify(self, token: str, now: Optional[datetime] = None) -> int:
        """
        Return the user id a token was issued for.

        Raises InvalidToken for malformed, tampered or foreign tokens and
        ExpiredToken once the expiry instant is reached. The signature is
        checked before the expiry, so a forged token never reports as
        merely expired.
        """
        try:
            # Expiry is checked below against our own clock
            payload = jwt.decode(
                token,
                self._secret_key,
                algorithms=[self._algorithm],
                options={"verify_exp": False},
            )
        except JWTError as exc:
            raise InvalidToken("Token signature or format is invalid") from exc

        expires_at = payload.get("exp")
        if not isinstance(expires_at, (int, float)):
            raise InvalidToken("Token has no expiry")

        current = now or datetime.now(timezone.utc)
        if current.timestamp() >= expires_at:
            raise ExpiredToken("Token has expired")

        try:
            return int(payload.get("sub"))
        except (TypeError, ValueError) as exc:
            raise InvalidToken("Token subject is not a user id") from exc


# Built once at import: a missing secret stops the app from starting
token_service = TokenService.from_settings()
