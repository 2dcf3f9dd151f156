def test_student_progress_is_self_or_coordinator(client, student_headers, coordinator_headers) -> None:
    own = client.get('/student-progress/student/stu-1', headers=student_headers)
    other = client.get('/student-progress/student/stu-2', headers=student_headers)
    coordinator = client.get('/student-progress/student/stu-2', headers=coordinator_headers)

    assert own.status_code == 200
    assert own.json()['data'][0]['unit']['course']['code'] == 'CS'
    assert other.status_code == 403
    assert coordinator.json()['data'] == []


def test_missing_unit_progress_is_not_found(client, student_headers) -> None:
    assert client.get('/student-progress/student/stu-1/unit/CS102', headers=student_headers).status_code == 404


def test_progress_percentage(client, student_headers) -> None:
    existing = client.get('/student-progress/student/stu-1/unit/CS101/percentage', headers=student_headers)
    missing = client.get('/student-progress/student/stu-1/unit/CS102/percentage', headers=student_headers)

    assert existing.json()['data'] == {'percentage': 50}
    assert missing.json()['data'] == {'percentage': 0}


def test_create_progress_is_idempotent(client, student_headers) -> None:
    first = client.post('/student-progress', headers=student_headers, json={'student_id': 'stu-1', 'unit_code': 'CS102'})
    second = client.post('/student-progress', headers=student_headers, json={'student_id': 'stu-1', 'unit_code': 'CS102'})

    assert first.status_code == 201
    assert second.status_code == 201
    assert first.json()['data']['id'] == second.json()['data']['id']
    assert first.json()['data']['week1_material'] == 'NOT_DONE'


def test_update_progress_records_updater(client, coordinator_headers, seeded) -> None:
    response = client.put(
        '/student-progress/student/stu-1/unit/CS101',
        headers=coordinator_headers,
        json={'week3_material': 'DONE', 'week4_material': 'DONE'},
    )

    data = response.json()['data']
    assert response.status_code == 200
    assert [data[f'week{week}_material'] for week in range(1, 5)] == ['DONE'] * 4
    assert data['updated_by'] == seeded.coordinator_id


def test_update_progress_rejects_unknown_status(client, student_headers) -> None:
    response = client.put(
        '/student-progress/student/stu-1/unit/CS101',
        headers=student_headers,
        json={'week1_material': 'HALF_DONE'},
    )

    assert response.status_code == 400


def test_initialize_and_summarise_unit(client, coordinator_headers) -> None:
    first = client.post('/student-progress/unit/CS101/initialize', headers=coordinator_headers)
    second = client.post('/student-progress/unit/CS101/initialize', headers=coordinator_headers)
    summary = client.get('/student-progress/unit/CS101', headers=coordinator_headers).json()['data']

    assert first.json()['data'] == {'message': 'Initialized progress for 1 students', 'records_created': 1}
    assert second.json()['data']['records_created'] == 0
    assert [(row['student']['first_name'], row['progress_percentage']) for row in summary] == [
        ('Alice', 50),
        ('Bob', 0),
    ]
    assert summary[0]['completed_weeks'] == 2


def test_initialize_is_coordinator_only(client, student_headers) -> None:
    assert client.post('/student-progress/unit/CS101/initialize', headers=student_headers).status_code == 403
