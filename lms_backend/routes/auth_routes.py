from fastapi import APIRouter, Depends
from pydantic import BaseModel, field_validator
from sqlalchemy.orm import Session

from lms_backend.auth.dependencies import get_current_user
from lms_backend.core.choices import UserType
from lms_backend.database import get_db
from lms_backend.models.user import User
from lms_backend.schemas.common import Envelope, MessageResponse, ok
from lms_backend.schemas.user import UserResponse
from lms_backend.services.auth_service import AuthService

router = APIRouter(tags=['auth'])


class LoginRequest(BaseModel):
    email: str
    password: str
    user_type: UserType

    @field_validator('email')
    @classmethod
    def normalize_email(cls, value: str) -> str:
        normalized = value.strip().lower()
        if not normalized:
            raise ValueError('Email is required.')
        return normalized


class RefreshRequest(BaseModel):
    refresh_token: str


class TokenResponse(BaseModel):
    success: bool = True
    access_token: str
    refresh_token: str
    expires_in: int
    token_type: str = 'bearer'


class LoginResponse(TokenResponse):
    user: UserResponse
    user_type: UserType


@router.post('/login', response_model=LoginResponse)
def login(data: LoginRequest, db: Session = Depends(get_db)):
    return AuthService(db).login(data.email, data.password, data.user_type)


@router.post('/refresh', response_model=TokenResponse)
def refresh(data: RefreshRequest, db: Session = Depends(get_db)):
    return AuthService(db).refresh_token(data.refresh_token)


@router.get('/profile', response_model=Envelope[UserResponse])
def profile(current_user: User = Depends(get_current_user)):
    return ok(UserResponse.model_validate(current_user))


@router.post('/logout', response_model=MessageResponse, dependencies=[Depends(get_current_user)])
def logout():
    # tokens are stateless; the client discards them
    return MessageResponse(message='Logged out successfully')
