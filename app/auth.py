"""
JWT bearer authentication.

Tokens are issued elsewhere; this service only verifies them.  The
``sub`` claim is the owner identity every transaction is scoped to.
``create_access_token`` exists for the seed script and the test suite.
"""
from datetime import datetime, timedelta, timezone

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt

from app.config import settings

_bearer = HTTPBearer(auto_error=False)

# Reusable 401 with the WWW-Authenticate header bearer clients expect.
_CREDENTIALS_EXCEPTION = HTTPException(
    status_code=status.HTTP_401_UNAUTHORIZED,
    detail="Invalid or expired token",
    headers={"WWW-Authenticate": "Bearer"},
)


def create_access_token(owner: str, expires_in: timedelta | None = None) -> str:
    now = datetime.now(timezone.utc)
    expire = now + (expires_in or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES))
    payload = {"sub": owner, "iat": now, "exp": expire}
    return jwt.encode(payload, settings.SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


def decode_owner(token: str) -> str:
    """Return the owner identity carried by *token*, or raise 401."""
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.JWT_ALGORITHM])
    except JWTError:
        raise _CREDENTIALS_EXCEPTION from None
    owner = payload.get("sub")
    if not isinstance(owner, str) or not owner.strip():
        raise _CREDENTIALS_EXCEPTION
    return owner


async def get_current_owner(
    credentials: HTTPAuthorizationCredentials | None = Depends(_bearer),
) -> str:
    """FastAPI dependency resolving the authenticated owner identity."""
    if credentials is None or credentials.scheme.lower() != "bearer":
        raise _CREDENTIALS_EXCEPTION
    return decode_owner(credentials.credentials)
