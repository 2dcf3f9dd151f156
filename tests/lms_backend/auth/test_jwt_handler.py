import jwt
import pytest

from lms_backend.auth import jwt_handler
from lms_backend.auth.passwords import hash_password, verify_password


def test_access_token_round_trip_keeps_claims() -> None:
    token = jwt_handler.create_access_token({'sub': 'user-1', 'role': 'STUDENT'})

    payload = jwt_handler.decode_token(token)

    assert payload['sub'] == 'user-1'
    assert payload['role'] == 'STUDENT'
    assert payload['type'] == jwt_handler.ACCESS_TOKEN_TYPE
    assert payload['exp'] - payload['iat'] == jwt_handler.access_token_lifetime_seconds()


def test_decode_token_rejects_expired_tokens() -> None:
    token = jwt_handler.create_access_token({'sub': 'user-1'}, expires_minutes=-1)

    with pytest.raises(jwt.ExpiredSignatureError):
        jwt_handler.decode_token(token)


def test_decode_token_rejects_foreign_audience() -> None:
    token = jwt.encode(
        {'sub': 'user-1', 'aud': 'someone-else', 'iss': 'final-project-be', 'exp': 4102444800, 'iat': 0},
        'test-secret-that-is-at-least-32-characters-long',
        algorithm='HS256',
    )

    with pytest.raises(jwt.InvalidTokenError):
        jwt_handler.decode_token(token)


def test_passwords_hash_and_verify() -> None:
    hashed = hash_password('correct horse')

    assert hashed != 'correct horse'
    assert verify_password('correct horse', hashed)
    assert not verify_password('wrong horse', hashed)
    assert not verify_password('correct horse', 'not-a-bcrypt-hash')
