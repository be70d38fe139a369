"""Token issuing and administrator-managed user accounts (no self-registration)."""
import logging
from typing import Annotated, List

from fastapi import APIRouter, Depends, status
from fastapi.security import OAuth2PasswordRequestForm

from . import service as auth_service
from .models import User
from .schemas import Token, UserCreate, UserResponse, UserUpdate
from .security import create_access_token, get_current_active_admin_user, get_current_reader

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Authentication"])

AdminUser = Annotated[User, Depends(get_current_active_admin_user)]


@router.post("/token", response_model=Token)
async def login_for_access_token(form_data: Annotated[OAuth2PasswordRequestForm, Depends()]):
    user = await auth_service.authenticate_user(form_data.username, form_data.password)
    return Token(access_token=create_access_token(user.username))

@router.get("/me", response_model=UserResponse)
async def read_current_user(current_user: Annotated[User, Depends(get_current_reader)]):
    return current_user

@router.get("/users", response_model=List[UserResponse])
async def list_user_accounts(current_admin: AdminUser):
    return await auth_service.list_users()

@router.post("/users", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def create_user_account(user_in: UserCreate, current_admin: AdminUser):
    return await auth_service.create_user(user_in, actor=current_admin)

@router.patch("/users/{user_public_id}", response_model=UserResponse)
async def update_user_account(user_public_id: str, changes: UserUpdate, current_admin: AdminUser):
    user = await auth_service.get_user_by_public_id(user_public_id)
    return await auth_service.update_user(user, changes, actor=current_admin)
