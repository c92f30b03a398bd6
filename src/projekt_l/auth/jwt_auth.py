"""JWT access and refresh tokens for user sessions."""

import jwt
from datetime import datetime, timezone, timedelta
from typing import Dict, Any, Optional, Tuple
from uuid import UUID, uuid4

from fastapi import HTTPException, status

from ..config import get_config


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


class JWTTokenManager:
    """Issues and verifies HS256 access/refresh token pairs."""

    def __init__(self):
        config = get_config()
        self.secret_key = config.app.jwt_secret_key
        self.algorithm = "HS256"
        self.access_token_expires_minutes = config.app.jwt_access_token_expires_minutes
        self.refresh_token_expires_days = config.app.jwt_refresh_token_expires_days

    def _encode(
        self, user_id: UUID, email: str, token_type: str, jti: str, expires_at: datetime, now: datetime
    ) -> str:
        payload = {
            "sub": str(user_id),
            "email": email,
            "iat": now,
            "exp": expires_at,
            "jti": jti,
            "type": token_type,
        }
        return jwt.encode(payload, self.secret_key, algorithm=self.algorithm)

    def create_tokens(
        self, user_id: UUID, email: str
    ) -> Tuple[str, str, datetime, datetime]:
        """
        Create access and refresh token pair.

        Returns:
            Tuple of (access_token, refresh_token, access_expires_at, refresh_expires_at)
        """
        now = datetime.now(timezone.utc)
        jti = str(uuid4())

        access_expires_at = now + timedelta(minutes=self.access_token_expires_minutes)
        refresh_expires_at = now + timedelta(days=self.refresh_token_expires_days)

        access_token = self._encode(user_id, email, "access", jti, access_expires_at, now)
        refresh_token = self._encode(user_id, email, "refresh", jti, refresh_expires_at, now)
        return access_token, refresh_token, access_expires_at, refresh_expires_at

    def _verify(self, token: str, expected_type: str) -> Dict[str, Any]:
        label = expected_type.capitalize()
        try:
            payload = jwt.decode(token, self.secret_key, algorithms=[self.algorithm])
        except jwt.ExpiredSignatureError:
            raise _unauthorized(f"{label} token has expired")
        except jwt.InvalidTokenError:
            raise _unauthorized(f"Invalid {expected_type} token")

        if payload.get("type") != expected_type:
            raise _unauthorized("Invalid token type")
        return payload

    def verify_access_token(self, token: str) -> Dict[str, Any]:
        """
        Verify and decode access token.

        Raises:
            HTTPException: If token is invalid, expired, or wrong type
        """
        return self._verify(token, "access")

    def verify_refresh_token(self, token: str) -> Dict[str, Any]:
        """
        Verify and decode refresh token.

        Raises:
            HTTPException: If token is invalid, expired, or wrong type
        """
        return self._verify(token, "refresh")

    def refresh_access_token(self, refresh_token: str) -> Tuple[str, datetime]:
        """Create a new access token from a valid refresh token (same jti)."""
        payload = self.verify_refresh_token(refresh_token)

        now = datetime.now(timezone.utc)
        expires_at = now + timedelta(minutes=self.access_token_expires_minutes)
        access_token = self._encode(
            UUID(payload["sub"]), payload.get("email", ""), "access", payload["jti"], expires_at, now
        )
        return access_token, expires_at

    def extract_user_id(self, token: str) -> UUID:
        payload = self.verify_access_token(token)
        try:
            return UUID(payload["sub"])
        except (KeyError, ValueError):
            raise _unauthorized("Invalid access token")


_jwt_manager: Optional[JWTTokenManager] = None


def get_jwt_manager() -> JWTTokenManager:
    global _jwt_manager
    if _jwt_manager is None:
        _jwt_manager = JWTTokenManager()
    return _jwt_manager
