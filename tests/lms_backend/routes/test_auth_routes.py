from lms_backend.auth import jwt_handler

PASSWORD = 'password123'


def test_root_reports_health(client) -> None:
    response = client.get('/')

    assert response.status_code == 200
    assert response.json() == {'status': 'LMS API Running'}


def test_login_returns_tokens_and_user(client, seeded) -> None:
    response = client.post(
        '/auth/login',
        json={'email': 'alice@example.edu', 'password': PASSWORD, 'user_type': 'student'},
    )

    assert response.status_code == 200
    body = response.json()
    assert body['success'] is True
    assert body['user_type'] == 'student'
    assert body['user']['id'] == seeded.student_id
    assert 'hashed_password' not in body['user']
    assert jwt_handler.decode_token(body['access_token'])['sub'] == seeded.student_id


def test_login_with_wrong_user_type_is_unauthorized(client, seeded) -> None:
    response = client.post(
        '/auth/login',
        json={'email': 'alice@example.edu', 'password': PASSWORD, 'user_type': 'coordinator'},
    )

    assert response.status_code == 401
    assert response.json() == {'success': False, 'data': None, 'error': 'Invalid credentials'}


def test_login_with_unknown_user_type_is_a_bad_request(client, seeded) -> None:
    response = client.post(
        '/auth/login',
        json={'email': 'alice@example.edu', 'password': PASSWORD, 'user_type': 'admin'},
    )

    assert response.status_code == 400
    assert response.json()['success'] is False


def test_profile_requires_a_token(client, seeded) -> None:
    response = client.get('/auth/profile')

    assert response.status_code == 401
    assert response.json()['error'] == 'Not authenticated'
    assert response.headers['www-authenticate'] == 'Bearer'


def test_profile_rejects_refresh_tokens(client, seeded) -> None:
    token = jwt_handler.create_refresh_token(seeded.student_id)

    response = client.get('/auth/profile', headers={'Authorization': f'Bearer {token}'})

    assert response.status_code == 401
    assert response.json()['error'] == 'Invalid token type'


def test_profile_rejects_tokens_for_deleted_users(client, seeded) -> None:
    token = jwt_handler.create_access_token({'sub': 'ghost'})

    response = client.get('/auth/profile', headers={'Authorization': f'Bearer {token}'})

    assert response.status_code == 401


def test_profile_returns_current_user(client, student_headers, seeded) -> None:
    response = client.get('/auth/profile', headers=student_headers)

    assert response.status_code == 200
    assert response.json()['data']['email'] == 'alice@example.edu'
    assert response.json()['data']['role'] == 'STUDENT'


def test_refresh_exchanges_refresh_token(client, seeded) -> None:
    login = client.post(
        '/auth/login',
        json={'email': 'carol@example.edu', 'password': PASSWORD, 'user_type': 'coordinator'},
    ).json()

    response = client.post('/auth/refresh', json={'refresh_token': login['refresh_token']})
    rejected = client.post('/auth/refresh', json={'refresh_token': login['access_token']})

    assert response.status_code == 200
    assert jwt_handler.decode_token(response.json()['access_token'])['sub'] == seeded.coordinator_id
    assert rejected.status_code == 401


def test_logout_acknowledges(client, student_headers) -> None:
    response = client.post('/auth/logout', headers=student_headers)

    assert response.json() == {'success': True, 'message': 'Logged out successfully'}
