"""Authentication helpers: signed JWTs, password hashing and the bearer dependency.

Three token kinds are issued, each signed with its own secret:

    access   short-lived, returned in response bodies, sent back as
             ``Authorization: Bearer <token>``
    refresh  long-lived, carried in the ``refreshToken`` HTTP-only cookie
    email    very short-lived, embedded in the verification link

A token is valid when its signature checks out against the secret for its kind
and it has not expired. There is no server-side revocation list.
"""
from __future__ import annotations

import re
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Annotated, Optional

import bcrypt
import structlog
from fastapi import Depends, HTTPException, Request, status
from jose import JWTError, jwt
from pydantic import BaseModel, ValidationError, field_validator

from settings import Settings, get_settings

logger = structlog.get_logger(__name__)

_EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")

PASSWORD_POLICY_MESSAGE = (
    "Password must be at least 10 characters, contain one uppercase letter, "
    "one lowercase letter, one number, and one special character"
)


class TokenKind(str, Enum):
    ACCESS = "access"
    REFRESH = "refresh"
    EMAIL = "email"


class TokenPayload(BaseModel):
    sub: str
    exp: int

    @field_validator("sub")
    @classmethod
    def _sub_is_user_id(cls, value: str) -> str:
        if not value.isdigit():
            raise ValueError("sub must be a user id")
        return value

    @property
    def user_id(self) -> int:
        return int(self.sub)


class InvalidTokenError(Exception):
    """Raised when a token is malformed, forged, expired or of the wrong kind."""


class AuthService:
    """Issues and verifies the three token kinds with injected secrets."""

    def __init__(
        self,
        secrets: dict[TokenKind, str],
        lifetimes: dict[TokenKind, timedelta],
        algorithm: str = "HS256",
    ) -> None:
        self._secrets = secrets
        self._lifetimes = lifetimes
        self._algorithm = algorithm

    @classmethod
    def from_settings(cls, settings: Settings) -> "AuthService":
        secrets = {
            TokenKind.ACCESS: settings.access_token_secret,
            TokenKind.REFRESH: settings.refresh_token_secret,
            TokenKind.EMAIL: settings.email_token_secret,
        }
        missing = [kind.value for kind, secret in secrets.items() if not secret]
        if missing:
            raise RuntimeError(f"Token secrets not configured: {', '.join(missing)}")
        lifetimes = {
            TokenKind.ACCESS: timedelta(minutes=settings.access_token_expire_minutes),
            TokenKind.REFRESH: timedelta(days=settings.refresh_token_expire_days),
            TokenKind.EMAIL: timedelta(minutes=settings.email_token_expire_minutes),
        }
        return cls(secrets, lifetimes, algorithm=settings.jwt_algorithm)

    def _issue(self, kind: TokenKind, user_id: int) -> str:
        expires_at = datetime.now(timezone.utc) + self._lifetimes[kind]
        claims = {"sub": str(user_id), "exp": int(expires_at.timestamp())}
        return jwt.encode(claims, self._secrets[kind], algorithm=self._algorithm)

    def issue_access(self, user_id: int) -> str:
        return self._issue(TokenKind.ACCESS, user_id)

    def issue_refresh(self, user_id: int) -> str:
        return self._issue(TokenKind.REFRESH, user_id)

    def issue_email_verify(self, user_id: int) -> str:
        return self._issue(TokenKind.EMAIL, user_id)

    def verify(self, token: str, kind: TokenKind) -> TokenPayload:
        """Check signature and expiry for ``kind`` and return the payload.

        Raises InvalidTokenError on any failure.
        """
        try:
            claims = jwt.decode(token, self._secrets[kind], algorithms=[self._algorithm])
            return TokenPayload.model_validate(claims)
        except (JWTError, ValidationError) as exc:
            logger.warning("JWT verification failed", token_kind=kind.value, exc=str(exc))
            raise InvalidTokenError(str(exc)) from exc


# --- Passwords & emails ---
def is_valid_email(email: str) -> bool:
    return bool(_EMAIL_RE.match(email))


def is_valid_password(password: str) -> bool:
    return (
        len(password) >= 10
        and re.search(r"[a-z]", password) is not None
        and re.search(r"[A-Z]", password) is not None
        and re.search(r"[0-9]", password) is not None
        and re.search(r"[^a-zA-Z0-9]", password) is not None
    )


def hash_password(password: str, rounds: int = 11) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt(rounds=rounds)).decode("utf-8")


def verify_password(password: str, hashed_password: str) -> bool:
    return bcrypt.checkpw(password.encode("utf-8"), hashed_password.encode("utf-8"))


# --- FastAPI dependencies ---
def get_auth_service(settings: Settings = Depends(get_settings)) -> AuthService:
    try:
        return AuthService.from_settings(settings)
    except RuntimeError as exc:
        logger.error("Auth service misconfigured", exc=str(exc))
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Token secrets not configured",
        )


# Helper to extract Authorization header (works with FastAPI DI)
def _get_authorization_header(request: Request) -> Optional[str]:
    return request.headers.get("Authorization")


def get_current_user_id(
    authorization: Annotated[Optional[str], Depends(_get_authorization_header)],
    auth_service: AuthService = Depends(get_auth_service),
) -> int:
    """Resolve the user id from ``Authorization: Bearer <access token>``."""
    if not authorization:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Access token missing")

    parts = authorization.split(" ")
    token = parts[1] if len(parts) > 1 else ""
    try:
        payload = auth_service.verify(token, TokenKind.ACCESS)
    except InvalidTokenError:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Invalid access token")
    return payload.user_id
