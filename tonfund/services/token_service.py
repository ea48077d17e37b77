"""Access token issuing and verification."""

from __future__ import annotations

from dataclasses import dataclass

import jwt

from tonfund.config import Settings
from tonfund.utils.errors import ConfigurationError, UnauthorizedError
from tonfund.utils.time import unix_now

ALGORITHM = "HS256"


@dataclass(frozen=True)
class TokenConfig:
    """Signing secret and lifetime for session tokens."""

    secret: str
    expire_minutes: int = 15

    def __post_init__(self) -> None:
        if not self.secret:
            raise ConfigurationError("SECRET")

    @classmethod
    def from_settings(cls, config: Settings) -> TokenConfig:
        return cls(secret=config.secret, expire_minutes=config.access_token_expire_minutes)


class AccessTokenIssuer:
    """Sign and check short-lived HS256 tokens whose subject is a wallet."""

    def __init__(self, config: TokenConfig) -> None:
        self.config = config

    @property
    def max_age_seconds(self) -> int:
        return self.config.expire_minutes * 60

    def issue(self, address: str, now: int | None = None) -> str:
        """Return a token for ``address`` expiring after the configured lifetime."""
        issued_at = unix_now() if now is None else now
        claims = {
            "sub": address,
            "iat": issued_at,
            "exp": issued_at + self.max_age_seconds,
        }
        return jwt.encode(claims, self.config.secret, algorithm=ALGORITHM)

    def verify(self, token: str) -> str:
        """Return the wallet address carried by a valid token."""
        try:
            claims = jwt.decode(
                token,
                self.config.secret,
                algorithms=[ALGORITHM],
                options={"require": ["exp", "sub"]},
            )
        except jwt.ExpiredSignatureError as exc:
            raise UnauthorizedError("Access token expired", code="TOKEN_EXPIRED") from exc
        except jwt.InvalidTokenError as exc:
            raise UnauthorizedError("Invalid or expired token") from exc
        return str(claims["sub"])
