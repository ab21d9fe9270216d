"""
Identity and admin authentication.

Member sessions arrive as bearer JWTs (Authorization header or `token` cookie)
issued by the identity provider; admin endpoints use an API key.
"""
import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

from fastapi import HTTPException, Header, Query, Request, status
from jose import JWTError
from jose import jwt as jose_jwt

from petshop.core.config import settings
from petshop.core.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class Identity:
    user_id: Optional[int] = None
    email: Optional[str] = None
    full_name: Optional[str] = None
    phone: Optional[str] = None
    is_admin: bool = False

    @property
    def is_authenticated(self) -> bool:
        return self.user_id is not None


ANONYMOUS = Identity()


def create_access_token(
    member_id: int,
    *,
    email: Optional[str] = None,
    full_name: Optional[str] = None,
    phone: Optional[str] = None,
    role: str = "user",
    expires_delta: Optional[timedelta] = None,
) -> str:
    """Create a signed member token. Used by the identity provider integration and tests."""
    expire = datetime.now(timezone.utc) + (
        expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    )
    to_encode: Dict[str, Any] = {"sub": str(member_id), "role": role, "exp": expire}
    if email:
        to_encode["email"] = email.lower()
    if full_name:
        to_encode["name"] = full_name
    if phone:
        to_encode["phone"] = phone
    return jose_jwt.encode(to_encode, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


def decode_access_token(token: str) -> Identity:
    """Verify a member token. Raises JWTError or ValueError when it is unusable."""
    payload = jose_jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.JWT_ALGORITHM])
    sub = payload.get("sub")
    if sub is None:
        raise ValueError("token has no subject")
    return Identity(
        user_id=int(sub),
        email=payload.get("email"),
        full_name=payload.get("name"),
        phone=payload.get("phone"),
        is_admin=payload.get("role") == "admin",
    )


def _token_from_request(request: Request) -> Optional[str]:
    auth = request.headers.get("Authorization", "")
    if auth.lower().startswith("bearer "):
        return auth[7:].strip() or None
    return request.cookies.get("token")


def get_optional_identity(request: Request) -> Identity:
    """Identity for routes where signing in is optional. Bad tokens fall back to anonymous."""
    token = _token_from_request(request)
    if not token:
        return ANONYMOUS
    try:
        return decode_access_token(token)
    except (JWTError, ValueError) as e:
        logger.warning("invalid_token_ignored", error=str(e))
        return ANONYMOUS


def get_current_identity(request: Request) -> Identity:
    token = _token_from_request(request)
    if not token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required",
            headers={"WWW-Authenticate": "Bearer"},
        )
    try:
        return decode_access_token(token)
    except (JWTError, ValueError) as e:
        logger.warning("invalid_token_rejected", error=str(e))
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"},
        )


def require_admin_key(
    x_api_key: Optional[str] = Header(None, alias="X-API-Key"),
    api_key: Optional[str] = Query(None, description="Admin API key"),
) -> str:
    """
    Require the admin API key via the X-API-Key header (preferred) or the
    api_key query parameter. Admin routes stay closed while ADMIN_API_KEY is unset.
    """
    provided_key = x_api_key or api_key
    expected = settings.ADMIN_API_KEY

    if not provided_key:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={
                "error": "API key required",
                "message": "Provide the admin key via 'X-API-Key' header or 'api_key' query parameter",
            },
        )

    if not expected or not secrets.compare_digest(provided_key, expected):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={"error": "Invalid API key", "message": "The provided API key is not valid"},
        )

    return provided_key
