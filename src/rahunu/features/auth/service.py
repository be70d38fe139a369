"""Business logic for user accounts: passwords, sign-in, creation and admin updates.

Every change is written to the audit trail together with the acting user,
when there is one (CLI commands run without an actor).
"""
import logging
from typing import List, Optional

import bcrypt
from fastapi import HTTPException, status
from tortoise.transactions import in_transaction

from ..audit.models import AuditAction
from ..audit.service import record_audit
from .models import User
from .schemas import UserCreate, UserUpdate

logger = logging.getLogger(__name__)


def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")

def verify_password(plain_password: str, hashed_password: str) -> bool:
    return bcrypt.checkpw(plain_password.encode("utf-8"), hashed_password.encode("utf-8"))


async def get_user_by_username(username: str) -> Optional[User]:
    return await User.get_or_none(username=username)

async def _get_user_or_404(**lookup) -> User:
    user = await User.get_or_none(**lookup)
    if user is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found.")
    return user

async def get_user_by_public_id(public_id: str) -> User:
    return await _get_user_or_404(public_id=public_id)

async def get_user_by_username_or_404(username: str) -> User:
    return await _get_user_or_404(username=username)

async def list_users() -> List[User]:
    return await User.all()


async def authenticate_user(username: str, password: str) -> User:
    """Checks credentials and records the sign-in.

    Raises:
        HTTPException: 401 for an unknown user or wrong password, 400 when
            the account is disabled.
    """
    user = await get_user_by_username(username)
    if user is None or not verify_password(password, user.hashed_password):
        logger.info(f"Failed sign-in for {username!r}")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect username or password",
            headers={"WWW-Authenticate": "Bearer"},
        )
    if not user.is_active:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Inactive user")
    await record_audit(AuditAction.USER_SIGNED_IN, actor_id=user.id, target_user_id=user.id)
    return user


async def create_user(user_in: UserCreate, actor: Optional[User] = None) -> User:
    """Creates a user account with a bcrypt-hashed password.

    Args:
        user_in: Validated account data, including the plain password.
        actor: The administrator creating the account, if any.

    Returns:
        The newly created User.

    Raises:
        HTTPException: 400 when the username or email is already registered.
    """
    if await User.exists(username=user_in.username):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Username already registered")
    if await User.exists(email=user_in.email):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Email already registered")

    async with in_transaction() as conn:
        user = await User.create(
            **user_in.model_dump(exclude={"password"}),
            hashed_password=hash_password(user_in.password),
            using_db=conn,
        )
        await record_audit(
            AuditAction.USER_CREATED,
            actor_id=actor.id if actor else None,
            target_user_id=user.id,
            details={"email": user.email, "role": user.role.value},
            using_db=conn,
        )
    logger.info(f"User {user.username} ({user.role.value}) created")
    return user


async def update_user(user: User, changes: UserUpdate, actor: Optional[User] = None) -> User:
    """Applies role, status and password changes, one audit row per kind of change.

    Administrators cannot demote or disable their own account.
    """
    if actor is not None and actor.id == user.id:
        if (changes.role is not None and changes.role != user.role) or changes.is_active is False:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Administrators cannot demote or disable themselves.",
            )

    audit_rows = []
    if changes.role is not None and changes.role != user.role:
        audit_rows.append((AuditAction.USER_ROLE_CHANGED, {"from": user.role.value, "to": changes.role.value}))
        user.role = changes.role
    if changes.is_active is not None and changes.is_active != user.is_active:
        audit_rows.append((AuditAction.USER_STATUS_CHANGED, {"is_active": changes.is_active}))
        user.is_active = changes.is_active
    if changes.reset_password:
        audit_rows.append((AuditAction.USER_PASSWORD_RESET, None))
        user.hashed_password = hash_password(changes.reset_password)

    if not audit_rows:
        return user

    async with in_transaction() as conn:
        await user.save(using_db=conn, update_fields=["role", "is_active", "hashed_password", "updated_at"])
        for action, details in audit_rows:
            await record_audit(
                action,
                actor_id=actor.id if actor else None,
                target_user_id=user.id,
                details=details,
                using_db=conn,
            )
    logger.info(f"User {user.username} updated: {', '.join(action.value for action, _ in audit_rows)}")
    return user
