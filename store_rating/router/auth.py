from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from ..models.user import User, UserRead, UserRegister, UserLoginInput, UserRole, ChangePasswordInput
from ..db import get_session
from ..core.errors import AuthenticationError, ValidationError
from ..services import accounts
from ..utils.auth import create_access_token, get_current_user, get_settings

router = APIRouter()

@router.post("/login")
async def login(
    request: Request,
    user_input: UserLoginInput,
    session: AsyncSession = Depends(get_session)
):
    if not user_input.email or not user_input.password:
        raise ValidationError("Email and password are required")

    user = await accounts.authenticate_user(session, user_input.email, user_input.password)
    if not user:
        raise AuthenticationError("Invalid credentials")

    token = create_access_token(user, get_settings(request))
    return {
        "token": token,
        "user": {
            "id": user.id,
            "name": user.name,
            "email": user.email,
            "role": user.role,
            "address": user.address,
        },
    }

@router.post("/register", status_code=status.HTTP_201_CREATED)
async def register(
    user_input: UserRegister,
    session: AsyncSession = Depends(get_session)
):
    user = await accounts.create_user(session, user_input, user_input.password, UserRole.normal_user)
    return {"message": "User registered successfully", "user": UserRead.model_validate(user, from_attributes=True)}

@router.post("/change-password")
async def change_password(
    password_input: ChangePasswordInput,
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session)
):
    await accounts.change_password(
        session,
        current_user,
        password_input.oldPassword,
        password_input.newPassword,
        password_input.confirmPassword,
    )
    return {"message": "Password changed successfully"}
