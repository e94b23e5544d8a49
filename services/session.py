"""
Bearer-token verification for tokens issued by the hosted identity provider.

Sign-out revokes a token in process memory until the token expires; the
provider remains the authority on everything else.
"""
from __future__ import annotations

import hashlib
import logging
from datetime import datetime, timezone
from typing import Optional

import jwt
from pydantic import BaseModel

from config import settings
from exceptions import AuthenticationError

logger = logging.getLogger(__name__)


class SessionUser(BaseModel):
    user_id: str
    email: Optional[str] = None
    role: Optional[str] = None
    expires_at: Optional[datetime] = None


def _fingerprint(token: str) -> str:
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


class SessionVerifier:
    def __init__(
        self,
        secret: Optional[str] = None,
        algorithm: Optional[str] = None,
        audience: Optional[str] = None,
    ) -> None:
        self.secret = secret or settings.jwt_secret
        self.algorithm = algorithm or settings.jwt_algorithm
        self.audience = audience or settings.jwt_audience
        # fingerprint -> token expiry
        self._revoked: dict[str, datetime] = {}

    def verify(self, token: str) -> SessionUser:
        if _fingerprint(token) in self._revoked:
            raise AuthenticationError("Session has been signed out")
        try:
            claims = jwt.decode(
                token,
                self.secret,
                algorithms=[self.algorithm],
                audience=self.audience,
                options={"require": ["sub", "exp"]},
            )
        except jwt.ExpiredSignatureError as e:
            raise AuthenticationError("Session expired") from e
        except jwt.InvalidTokenError as e:
            raise AuthenticationError(f"Invalid session token: {e}") from e
        return SessionUser(
            user_id=str(claims["sub"]),
            email=claims.get("email"),
            role=claims.get("role"),
            expires_at=datetime.fromtimestamp(claims["exp"], tz=timezone.utc),
        )

    @property
    def revoked_count(self) -> int:
        return len(self._revoked)

    def prune_revoked(self, now: Optional[datetime] = None) -> None:
        """Forget revoked tokens that have expired; the exp check rejects them anyway."""
        now = now or datetime.now(timezone.utc)
        self._revoked = {fp: exp for fp, exp in self._revoked.items() if exp > now}

    def sign_out(self, token: str) -> SessionUser:
        user = self.verify(token)
        self.prune_revoked()
        self._revoked[_fingerprint(token)] = user.expires_at
        logger.info("User %s signed out", user.user_id)
        return user


session_verifier = SessionVerifier()
