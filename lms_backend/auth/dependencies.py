import logging

import jwt
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from lms_backend.auth import jwt_handler
from lms_backend.core.choices import Role
from lms_backend.core.errors import unauthorized
from lms_backend.database import get_db
from lms_backend.models.user import User
from lms_backend.services.auth_service import AuthService

logger = logging.getLogger(__name__)

# missing credentials are reported as 401 by get_current_user, not 403 by HTTPBearer
security = HTTPBearer(auto_error=False)


def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
    db: Session = Depends(get_db),
) -> User:
    if credentials is None:
        raise unauthorized('Not authenticated')

    try:
        payload = jwt_handler.decode_token(credentials.credentials)
    except jwt.ExpiredSignatureError as exc:
        raise unauthorized('Token expired') from exc
    except jwt.InvalidTokenError as exc:
        raise unauthorized('Invalid token') from exc

    if payload.get('type') != jwt_handler.ACCESS_TOKEN_TYPE:
        raise unauthorized('Invalid token type')

    user = AuthService(db).validate_user(payload['sub'])
    if user is None:
        raise unauthorized('User not found')
    return user


def require_roles(*roles: Role):
    """Build a dependency that admits only callers whose role is in ``roles``."""
    allowed = frozenset(roles)

    def role_guard(current_user: User = Depends(get_current_user)) -> User:
        if current_user.role not in allowed:
            logger.warning(
                'Access denied: user %s with role %s requires one of %s',
                current_user.id,
                current_user.role.value,
                sorted(role.value for role in allowed),
            )
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail='Insufficient permissions',
            )
        return current_user

    return role_guard


require_coordinator = require_roles(Role.COORDINATOR)
require_student = require_roles(Role.STUDENT)


def ensure_self_or_coordinator(current_user: User, student_id: str) -> None:
    if current_user.role == Role.COORDINATOR or current_user.id == student_id:
        return
    logger.warning('Access denied: user %s attempted to read student %s', current_user.id, student_id)
    raise HTTPException(
        status_code=status.HTTP_403_FORBIDDEN,
        detail='Students can only access their own records.',
    )
