import secrets
from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import HTTPException, status
from jose import JWTError, jwt
from pydantic import BaseModel

from swipeology.config import settings


class TokenData(BaseModel):
    """Claims extracted from a verified access token."""
    user_id: str


def create_access_token(user_id: str, expires_delta: Optional[timedelta] = None) -> str:
    """Create a signed access token for a user id."""
    expire = datetime.now(timezone.utc) + (
        expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    )
    payload = {"sub": str(user_id), "exp": expire, "type": "access"}
    return jwt.encode(payload, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def verify_access_token(token: str) -> TokenData:
    """Verify an access token and return its claims."""
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except JWTError:
        raise credentials_exception

    user_id = payload.get("sub")
    if not user_id or payload.get("type") != "access":
        raise credentials_exception
    return TokenData(user_id=user_id)


def generate_otp(length: int = 6) -> str:
    """Random numeric phone verification code."""
    return "".join(secrets.choice("0123456789") for _ in range(length))
