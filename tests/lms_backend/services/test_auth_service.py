import pytest
from fastapi import HTTPException

from lms_backend.auth import jwt_handler
from lms_backend.core.choices import Role, UserType
from lms_backend.services.auth_service import AuthService

PASSWORD = 'password123'


def test_login_issues_tokens_for_the_user(db, seeded) -> None:
    result = AuthService(db).login(' Alice@Example.edu ', PASSWORD, 'student')

    assert result['success'] is True
    assert result['user_type'] == UserType.STUDENT
    assert result['user'].id == seeded.student_id
    assert result['token_type'] == 'bearer'
    assert result['expires_in'] == 30 * 60

    access = jwt_handler.decode_token(result['access_token'])
    refresh = jwt_handler.decode_token(result['refresh_token'])
    assert access['sub'] == seeded.student_id
    assert access['type'] == jwt_handler.ACCESS_TOKEN_TYPE
    assert access['role'] == Role.STUDENT.value
    assert access['iss'] == 'final-project-be'
    assert access['aud'] == 'final-project-fe'
    assert refresh['sub'] == seeded.student_id
    assert refresh['type'] == jwt_handler.REFRESH_TOKEN_TYPE


def test_login_rejects_wrong_user_type(db, seeded) -> None:
    with pytest.raises(HTTPException) as exception_info:
        AuthService(db).login('alice@example.edu', PASSWORD, 'coordinator')

    assert exception_info.value.status_code == 401
    assert exception_info.value.detail == 'Invalid credentials'


def test_login_rejects_wrong_password(db, seeded) -> None:
    with pytest.raises(HTTPException) as exception_info:
        AuthService(db).login('alice@example.edu', 'not-the-password', 'student')

    assert exception_info.value.status_code == 401


@pytest.mark.parametrize(
    ('email', 'password', 'user_type'),
    [
        ('', PASSWORD, 'student'),
        ('alice@example.edu', '', 'student'),
        ('alice@example.edu', PASSWORD, 'admin'),
    ],
)
def test_login_rejects_incomplete_requests(db, seeded, email: str, password: str, user_type: str) -> None:
    with pytest.raises(HTTPException) as exception_info:
        AuthService(db).login(email, password, user_type)

    assert exception_info.value.status_code == 400


def test_refresh_token_issues_a_new_pair(db, seeded) -> None:
    service = AuthService(db)
    tokens = service.login('carol@example.edu', PASSWORD, 'coordinator')

    refreshed = service.refresh_token(tokens['refresh_token'])

    assert refreshed['success'] is True
    assert jwt_handler.decode_token(refreshed['access_token'])['sub'] == seeded.coordinator_id


def test_refresh_token_rejects_access_tokens(db, seeded) -> None:
    service = AuthService(db)
    tokens = service.login('carol@example.edu', PASSWORD, 'coordinator')

    with pytest.raises(HTTPException) as exception_info:
        service.refresh_token(tokens['access_token'])

    assert exception_info.value.status_code == 401
    assert exception_info.value.detail == 'Invalid token type'


def test_refresh_token_rejects_garbage(db, seeded) -> None:
    with pytest.raises(HTTPException) as exception_info:
        AuthService(db).refresh_token('not-a-jwt')

    assert exception_info.value.status_code == 401


def test_refresh_token_rejects_deleted_user(db, seeded) -> None:
    token = jwt_handler.create_refresh_token('ghost')

    with pytest.raises(HTTPException) as exception_info:
        AuthService(db).refresh_token(token)

    assert exception_info.value.detail == 'User not found'
