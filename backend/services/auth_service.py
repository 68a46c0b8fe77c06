"""Password login, bearer tokens and the admin token guard."""

from __future__ import annotations

import secrets
from datetime import datetime, timedelta, timezone
from typing import Optional

from jose import JWTError, jwt
from passlib.context import CryptContext

from backend.domain.models import User
from backend.repository.booking_repository import BookingRepository
from backend.utils.config import Settings, get_settings


class AuthenticationError(Exception):
    """Base authentication failure."""


class InvalidCredentialsError(AuthenticationError):
    """Raised when username or password does not match."""


class InvalidTokenError(AuthenticationError):
    """Raised when a bearer token cannot be verified."""


class MissingAdminTokenError(AuthenticationError):
    """Raised when the admin header is absent while the guard is enabled."""


class InvalidAdminTokenError(AuthenticationError):
    """Raised when provided admin token is invalid."""


class AuthService:
    """Verifies credentials and supplies the user id the booking core trusts."""

    def __init__(
        self,
        repository: Optional[BookingRepository] = None,
        settings: Optional[Settings] = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._repository = repository or BookingRepository(self._settings)
        self._pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")

    @property
    def admin_guard_enabled(self) -> bool:
        return bool(self._settings.admin_token)

    def hash_password(self, password: str) -> str:
        return self._pwd_context.hash(password)

    def default_admin_password_hash(self) -> str:
        return self.hash_password(self._settings.default_admin_password)

    def verify_password(self, password: str, password_hash: str) -> bool:
        return self._pwd_context.verify(password, password_hash)

    def authenticate(self, username: str, password: str) -> User:
        user = self._repository.get_user_by_username(username)
        if user is None or not self.verify_password(password, user.password_hash):
            raise InvalidCredentialsError("Invalid credentials")
        return user

    def issue_token(self, user: User) -> str:
        expires_at = datetime.now(timezone.utc) + timedelta(hours=self._settings.jwt_expiry_hours)
        claims = {
            "sub": str(user.user_id),
            "username": user.username,
            "exp": expires_at,
        }
        return jwt.encode(
            claims,
            self._settings.jwt_secret,
            algorithm=self._settings.jwt_algorithm,
        )

    def decode_token(self, token: str) -> int:
        """Return the user id carried by a valid token."""
        try:
            payload = jwt.decode(
                token,
                self._settings.jwt_secret,
                algorithms=[self._settings.jwt_algorithm],
            )
            return int(payload["sub"])
        except (JWTError, KeyError, ValueError) as exc:
            raise InvalidTokenError("Invalid token") from exc

    def validate_admin_token(self, provided_token: Optional[str]) -> None:
        if not self.admin_guard_enabled:
            return
        if not provided_token:
            raise MissingAdminTokenError("X-Admin-Token header is required")
        if not secrets.compare_digest(provided_token, self._settings.admin_token):
            raise InvalidAdminTokenError("Invalid admin token")
