from datetime import datetime, timedelta, timezone

from fastapi.testclient import TestClient

from tasktracker.auth.jwt_handler import TokenService


def _register(client: TestClient, email: str = 'alice@example.com', password: str = 'secret1') -> dict:
    response = client.post('/auth/register', json={'email': email, 'password': password})
    assert response.status_code == 201
    return response.json()


def _auth_headers(token: str) -> dict:
    return {'Authorization': f'Bearer {token}'}


def test_healthcheck_is_public(client: TestClient) -> None:
    response = client.get('/healthcheck')

    assert response.status_code == 200
    body = response.json()
    assert body['status'] == 'ok'
    assert datetime.fromisoformat(body['timestamp']).tzinfo is not None


def test_register_login_and_profile_flow(client: TestClient) -> None:
    registered = _register(client)

    assert set(registered['user']) == {'id', 'email', 'created_at', 'updated_at'}
    assert len(registered['token'].split('.')) == 3

    login_response = client.post('/auth/login', json={'email': 'alice@example.com', 'password': 'secret1'})
    assert login_response.status_code == 200
    token = login_response.json()['token']

    profile = client.get('/auth/me', headers=_auth_headers(token))
    assert profile.status_code == 200
    assert profile.json()['email'] == 'alice@example.com'
    assert 'password_hash' not in profile.json()


def test_duplicate_registration_returns_conflict(client: TestClient) -> None:
    _register(client)

    response = client.post('/auth/register', json={'email': 'alice@example.com', 'password': 'different'})

    assert response.status_code == 409
    assert response.json()['error'] == 'DUPLICATE_EMAIL'


def test_login_errors_are_uniform(client: TestClient) -> None:
    _register(client)

    wrong_password = client.post('/auth/login', json={'email': 'alice@example.com', 'password': 'nope123'})
    unknown_email = client.post('/auth/login', json={'email': 'bob@example.com', 'password': 'secret1'})

    assert wrong_password.status_code == unknown_email.status_code == 401
    assert wrong_password.json() == unknown_email.json()
    assert wrong_password.json()['error'] == 'INVALID_CREDENTIALS'


def test_register_validation_error_has_stable_kind(client: TestClient) -> None:
    response = client.post('/auth/register', json={'email': 'alice@example.com', 'password': '123'})

    assert response.status_code == 422
    assert response.json()['error'] == 'VALIDATION_ERROR'


def test_protected_operations_reject_anonymous_callers(client: TestClient) -> None:
    calls = [
        client.get('/auth/me'),
        client.get('/tasks'),
        client.post('/tasks', json={'title': 'Write spec'}),
        client.patch('/tasks/1', json={'completed': True}),
        client.delete('/tasks/1'),
    ]

    for response in calls:
        assert response.status_code == 401
        assert response.json()['error'] == 'UNAUTHORIZED'
        assert response.headers['www-authenticate'] == 'Bearer'


def test_invalid_and_expired_tokens_are_unauthorized(client: TestClient, token_service: TokenService) -> None:
    registered = _register(client)
    user_id = registered['user']['id']
    expired = token_service.issue(user_id, 'alice@example.com', now=datetime.now(timezone.utc) - timedelta(days=2))
    foreign = TokenService(secret_key='another-secret').issue(user_id, 'alice@example.com')

    for headers in (
        _auth_headers(expired),
        _auth_headers(foreign),
        _auth_headers('garbage'),
        {'Authorization': f'Basic {registered["token"]}'},
    ):
        response = client.get('/tasks', headers=headers)
        assert response.status_code == 401
        assert response.json()['error'] == 'UNAUTHORIZED'


def test_profile_for_vanished_user_is_not_found(client: TestClient, token_service: TokenService) -> None:
    token = token_service.issue(999, 'ghost@example.com')

    response = client.get('/auth/me', headers=_auth_headers(token))

    assert response.status_code == 404
    assert response.json()['error'] == 'NOT_FOUND'


def test_task_lifecycle_over_http(client: TestClient) -> None:
    headers = _auth_headers(_register(client)['token'])

    created = client.post('/tasks', json={'title': 'Write spec', 'priority': 'high'}, headers=headers)
    assert created.status_code == 201
    task = created.json()
    assert task['completed'] is False
    assert task['priority'] == 'high'
    assert task['description'] is None

    listed = client.get('/tasks', headers=headers).json()
    assert [item['title'] for item in listed] == ['Write spec']

    updated = client.patch(f'/tasks/{task["id"]}', json={'completed': True}, headers=headers)
    assert updated.status_code == 200
    assert updated.json()['completed'] is True
    assert updated.json()['priority'] == 'high'

    completed = client.get('/tasks', params={'completed': 'true'}, headers=headers).json()
    assert [item['id'] for item in completed] == [task['id']]

    deleted = client.delete(f'/tasks/{task["id"]}', headers=headers)
    assert deleted.json() == {'success': True}
    assert client.get('/tasks', headers=headers).json() == []


def test_create_task_with_blank_title_is_validation_error(client: TestClient) -> None:
    headers = _auth_headers(_register(client)['token'])

    response = client.post('/tasks', json={'title': '  '}, headers=headers)

    assert response.status_code == 422
    assert response.json()['error'] == 'VALIDATION_ERROR'


def test_update_of_foreign_task_is_not_found_or_forbidden(client: TestClient) -> None:
    alice_headers = _auth_headers(_register(client, 'alice@example.com')['token'])
    bob_headers = _auth_headers(_register(client, 'bob@example.com')['token'])
    bob_task = client.post('/tasks', json={'title': 'Bob task'}, headers=bob_headers).json()

    update_response = client.patch(f'/tasks/{bob_task["id"]}', json={'title': 'Mine now'}, headers=alice_headers)
    delete_response = client.delete(f'/tasks/{bob_task["id"]}', headers=alice_headers)

    assert update_response.status_code == 404
    assert update_response.json()['error'] == 'NOT_FOUND_OR_FORBIDDEN'
    assert delete_response.json() == {'success': False}
    assert client.get('/tasks', headers=alice_headers).json() == []
    assert [item['title'] for item in client.get('/tasks', headers=bob_headers).json()] == ['Bob task']


def test_due_date_offset_survives_round_trip(client: TestClient) -> None:
    headers = _auth_headers(_register(client)['token'])

    created = client.post(
        '/tasks',
        json={'title': 'Call Karachi office', 'due_date': '2025-01-01T10:00:00+05:00'},
        headers=headers,
    ).json()
    listed = client.get('/tasks', headers=headers).json()[0]

    expected = datetime(2025, 1, 1, 5, 0, tzinfo=timezone.utc)
    assert datetime.fromisoformat(created['due_date']) == expected
    assert datetime.fromisoformat(listed['due_date']) == expected
    assert datetime.fromisoformat(listed['created_at']).tzinfo is not None


def test_oversized_task_id_is_treated_as_missing(client: TestClient) -> None:
    headers = _auth_headers(_register(client)['token'])

    delete_response = client.delete('/tasks/99999999999999999999', headers=headers)
    update_response = client.patch('/tasks/99999999999999999999', json={'completed': True}, headers=headers)

    assert delete_response.status_code == 200
    assert delete_response.json() == {'success': False}
    assert update_response.status_code == 404
    assert update_response.json()['error'] == 'NOT_FOUND_OR_FORBIDDEN'
