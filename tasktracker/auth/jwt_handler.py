from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

import jwt

from tasktracker.core import config
from tasktracker.core.errors import ConfigurationError


@dataclass(frozen=True)
class TokenClaims:
    user_id: int
    email: str
    expires_at: datetime


class TokenService:
    """Issues and verifies stateless HS256 bearer tokens."""

    def __init__(
        self,
        secret_key: str,
        algorithm: str = "HS256",
        expires_minutes: int = 24 * 60,
    ) -> None:
        if not secret_key:
            raise ConfigurationError("A token signing secret is required.")
        self._secret_key = secret_key
        self.algorithm = algorithm
        self.expires_minutes = expires_minutes

    @classmethod
    def from_config(cls) -> "TokenService":
        return cls(
            secret_key=config.JWT_SECRET_KEY,
            algorithm=config.JWT_ALGORITHM,
            expires_minutes=config.JWT_EXPIRES_MINUTES,
        )

    def issue(self, user_id: int, email: str, now: datetime | None = None) -> str:
        issued_at = now or datetime.now(timezone.utc)
        expire = issued_at + timedelta(minutes=self.expires_minutes)
        payload = {
            "sub": str(user_id),
            "user_id": user_id,
            "email": email,
            "iat": issued_at,
            "exp": expire,
        }
        return jwt.encode(payload, self._secret_key, algorithm=self.algorithm)

    def verify(self, token: str, now: datetime | None = None) -> TokenClaims | None:
        """Return the token's claims, or None for anything malformed, tampered or expired."""
        try:
            payload = jwt.decode(
                token,
                self._secret_key,
                algorithms=[self.algorithm],
                options={"require": ["sub", "exp", "iat"], "verify_exp": now is None},
            )
            user_id = int(payload["sub"])
            expires_at = datetime.fromtimestamp(payload["exp"], tz=timezone.utc)
        except (jwt.PyJWTError, ValueError, TypeError, OverflowError):
            return None

        if now is not None and now >= expires_at:
            return None
        return TokenClaims(user_id=user_id, email=payload.get("email", ""), expires_at=expires_at)
