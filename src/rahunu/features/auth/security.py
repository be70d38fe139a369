"""JWT access tokens and the role-gated FastAPI dependencies built on them.

Three gates protect the API: any active user may read (reports included),
ADMIN and DATA_ENTRY may write entries, and only ADMIN manages users and
restores deleted entries.
"""
import logging
from datetime import datetime, timedelta, timezone
from typing import Annotated, Callable, Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError, jwt

from ...core.config import ACCESS_TOKEN_EXPIRE_MINUTES, ALGORITHM, SECRET_KEY
from . import service as auth_service
from .models import Role, User

logger = logging.getLogger(__name__)

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/auth/token")


def create_access_token(subject: str, expires_delta: Optional[timedelta] = None) -> str:
    expire = datetime.now(timezone.utc) + (expires_delta or timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES))
    return jwt.encode({"sub": subject, "exp": expire}, SECRET_KEY, algorithm=ALGORITHM)

def decode_access_token(token: str) -> Optional[str]:
    """Returns the token's subject, or None when the token is invalid or expired."""
    try:
        payload = jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
    except JWTError as e:
        logger.warning(f"Rejected access token: {e}")
        return None
    return payload.get("sub")


def can_read(role: Optional[Role]) -> bool:
    return role in (Role.ADMIN, Role.DATA_ENTRY, Role.VIEWER)

def can_write(role: Optional[Role]) -> bool:
    return role in (Role.ADMIN, Role.DATA_ENTRY)

def is_admin(role: Optional[Role]) -> bool:
    return role == Role.ADMIN


async def get_current_user(token: Annotated[str, Depends(oauth2_scheme)]) -> User:
    username = decode_access_token(token)
    user = await auth_service.get_user_by_username(username) if username else None
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )
    if not user.is_active:
        logger.warning(f"Inactive user {username} presented a token")
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Inactive user")
    return user


def _role_gate(allowed: Callable[[Optional[Role]], bool], status_code: int, detail: str):
    async def dependency(current_user: Annotated[User, Depends(get_current_user)]) -> User:
        if not allowed(current_user.role):
            raise HTTPException(status_code=status_code, detail=detail)
        return current_user
    return dependency


get_current_reader = _role_gate(can_read, status.HTTP_401_UNAUTHORIZED, "Unauthorized")
get_current_writer = _role_gate(can_write, status.HTTP_403_FORBIDDEN, "Operation not permitted for this user role.")
get_current_active_admin_user = _role_gate(is_admin, status.HTTP_403_FORBIDDEN, "The user doesn't have enough privileges")
