import logging

import jwt
from fastapi import HTTPException, status
from sqlalchemy.orm import Session

from lms_backend.auth import jwt_handler
from lms_backend.auth.passwords import verify_password
from lms_backend.core.choices import UserType
from lms_backend.core.errors import unauthorized
from lms_backend.models.user import User
from lms_backend.schemas.user import UserResponse

logger = logging.getLogger(__name__)


class AuthService:
    def __init__(self, db: Session):
        self.db = db

    def login(self, email: str, password: str, user_type: UserType | str) -> dict:
        email = (email or '').strip().lower()
        if not email or not password or not user_type:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail='Email, password, and user_type are required.',
            )

        try:
            user_type = UserType(user_type)
        except ValueError as exc:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail='user_type must be "student" or "coordinator".',
            ) from exc

        role = user_type.role
        user = self.db.query(User).filter(User.email == email, User.role == role).first()
        if user is None or not user.hashed_password:
            raise unauthorized('Invalid credentials')
        if not verify_password(password, user.hashed_password):
            raise unauthorized('Invalid credentials')

        logger.info('User %s logged in as %s', user.id, role.value)
        return {
            'success': True,
            'user': UserResponse.model_validate(user),
            'user_type': user_type,
            **self.generate_tokens(user),
        }

    def generate_tokens(self, user: User) -> dict:
        claims = {
            'sub': user.id,
            'email': user.email,
            'role': user.role.value,
            'first_name': user.first_name,
            'last_name': user.last_name,
        }
        return {
            'access_token': jwt_handler.create_access_token(claims),
            'refresh_token': jwt_handler.create_refresh_token(user.id),
            'expires_in': jwt_handler.access_token_lifetime_seconds(),
            'token_type': 'bearer',
        }

    def refresh_token(self, token: str) -> dict:
        try:
            payload = jwt_handler.decode_token(token)
        except jwt.InvalidTokenError as exc:
            raise unauthorized('Invalid refresh token') from exc

        if payload.get('type') != jwt_handler.REFRESH_TOKEN_TYPE:
            raise unauthorized('Invalid token type')

        user = self.validate_user(payload['sub'])
        if user is None:
            raise unauthorized('User not found')

        return {'success': True, **self.generate_tokens(user)}

    def validate_user(self, user_id: str) -> User | None:
        return self.db.query(User).filter(User.id == user_id).first()
