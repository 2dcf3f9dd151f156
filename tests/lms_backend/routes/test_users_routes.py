def test_me_includes_student_records(client, student_headers) -> None:
    response = client.get('/users/me', headers=student_headers)

    data = response.json()['data']
    assert response.status_code == 200
    assert data['user_type'] == 'student'
    assert [row['assignment_id'] for row in data['assignments']] == ['a-1', 'a-2']
    assert data['assignments'][0]['assignment']['unit']['course']['code'] == 'CS'
    assert [row['unit_code'] for row in data['progress']] == ['CS101']


def test_me_for_coordinator_omits_student_records(client, coordinator_headers) -> None:
    data = client.get('/users/me', headers=coordinator_headers).json()['data']

    assert data['user_type'] == 'coordinator'
    assert data['user']['course_managed'] == ['CS']
    assert data['assignments'] is None


def test_update_profile_only_changes_allowed_fields(client, student_headers) -> None:
    response = client.put(
        '/users/profile',
        headers=student_headers,
        json={'first_name': ' Alicia ', 'email': 'hacker@example.edu', 'role': 'COORDINATOR'},
    )

    data = response.json()['data']
    assert response.status_code == 200
    assert data['first_name'] == 'Alicia'
    assert data['email'] == 'alice@example.edu'
    assert data['role'] == 'STUDENT'


def test_update_profile_rejects_blank_first_name(client, student_headers) -> None:
    response = client.put('/users/profile', headers=student_headers, json={'first_name': '   '})

    assert response.status_code == 400
