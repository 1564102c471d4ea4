from fastapi import APIRouter, Depends, HTTPException, Response, status
from fastapi.security import OAuth2PasswordRequestForm
from pydantic import BaseModel, EmailStr
from typing import Optional

from edconnect.api.security import get_current_user, session_cookie_name
from edconnect.core.exceptions import AuthenticationError, ValidationError
from edconnect.core.models import User
from edconnect.core.services.auth import AuthService, get_auth_service, user_to_dict
from edconnect.core.services.settings_config_service import get_settings_service

# Models


class UserRegister(BaseModel):
    username: str
    email: EmailStr
    password: str
    first_name: str
    last_name: str
    role: str = "student"
    school_id: Optional[int] = None
    grade: Optional[int] = None


class Token(BaseModel):
    access_token: str
    token_type: str
    user: dict


class UserResponse(BaseModel):
    id: int
    username: str
    email: str
    role: Optional[str] = None
    first_name: str
    last_name: str
    district_id: Optional[int] = None
    school_id: Optional[int] = None
    department_id: Optional[int] = None
    admin_level: Optional[str] = None
    active: bool = True
    created_at: Optional[str] = None
    last_login: Optional[str] = None


class ProfileUpdate(BaseModel):
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    email: Optional[EmailStr] = None


router = APIRouter(prefix="/api", tags=["auth"])


def _set_session_cookie(response: Response, token: str, max_age: int) -> None:
    production = get_settings_service().is_production()
    response.set_cookie(
        key=session_cookie_name(),
        value=token,
        max_age=max_age,
        httponly=True,
        secure=production,
        samesite="none" if production else "lax",
    )


@router.post("/register", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
def register(
    user_data: UserRegister,
    auth_service: AuthService = Depends(get_auth_service),
):
    try:
        return auth_service.register_user(
            username=user_data.username,
            email=str(user_data.email),
            password=user_data.password,
            first_name=user_data.first_name,
            last_name=user_data.last_name,
            role=user_data.role,
            school_id=user_data.school_id,
            grade=user_data.grade,
        )
    except AuthenticationError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.post("/login", response_model=Token)
def login(
    response: Response,
    form_data: OAuth2PasswordRequestForm = Depends(),
    auth_service: AuthService = Depends(get_auth_service),
):
    # Compatible with OAuth2 standard form data
    try:
        result = auth_service.login_user(form_data.username, form_data.password)
    except AuthenticationError as e:
        raise HTTPException(status_code=401, detail=str(e))

    _set_session_cookie(
        response, result["token"], auth_service.token_expiry_minutes * 60
    )
    return {
        "access_token": result["token"],
        "token_type": "bearer",
        "user": result["user"],
    }


@router.post("/logout")
def logout(
    response: Response,
    current_user: User = Depends(get_current_user),
    auth_service: AuthService = Depends(get_auth_service),
):
    auth_service.logout_user(current_user)
    response.delete_cookie(session_cookie_name())
    return {"message": "Logged out"}


@router.get("/user", response_model=UserResponse)
def read_current_user(current_user: User = Depends(get_current_user)):
    return user_to_dict(current_user)


@router.patch("/user", response_model=UserResponse)
def update_profile(
    profile_data: ProfileUpdate,
    current_user: User = Depends(get_current_user),
    auth_service: AuthService = Depends(get_auth_service),
):
    """Update current user's profile"""
    try:
        return auth_service.update_profile(
            user_id=current_user.id,
            first_name=profile_data.first_name,
            last_name=profile_data.last_name,
            email=str(profile_data.email) if profile_data.email else None,
        )
    except (AuthenticationError, ValidationError) as e:
        raise HTTPException(status_code=400, detail=str(e))
