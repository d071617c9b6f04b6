import uuid

from fastapi.testclient import TestClient

from taskboard.main import app

client = TestClient(app)


def _email():
    return f"users-{uuid.uuid4().hex[:10]}@example.com"


def test_user_crud_and_soft_delete(auth_headers):
    email = _email()
    r = client.post('/users', json={'name': 'Bob', 'email': email}, headers=auth_headers)
    assert r.status_code == 201
    user = r.json()
    assert user['name'] == 'Bob'
    assert user['created_by'] == user['updated_by']
    assert user['created_by'] != user['id']

    r = client.put(f"/users/{user['id']}", json={'name': 'Robert'}, headers=auth_headers)
    assert r.status_code == 200
    assert r.json()['name'] == 'Robert'
    # partial update keeps the email
    assert r.json()['email'] == email

    listed = client.get('/users', headers=auth_headers).json()
    assert user['id'] in [u['id'] for u in listed]

    assert client.delete(f"/users/{user['id']}", headers=auth_headers).status_code == 204
    assert client.get(f"/users/{user['id']}", headers=auth_headers).status_code == 404
    assert client.put(f"/users/{user['id']}", json={'name': 'x'}, headers=auth_headers).status_code == 404
    assert client.delete(f"/users/{user['id']}", headers=auth_headers).status_code == 404
    listed = client.get('/users', headers=auth_headers).json()
    assert user['id'] not in [u['id'] for u in listed]


def test_user_without_password_cannot_login(auth_headers):
    email = _email()
    client.post('/users', json={'name': 'NoPass', 'email': email}, headers=auth_headers)
    r = client.post('/auth/login', json={'email': email, 'password': ''})
    assert r.status_code == 401


def test_email_unique_among_live_users(auth_headers):
    email = _email()
    first = client.post('/users', json={'name': 'A', 'email': email}, headers=auth_headers).json()
    assert client.post('/users', json={'name': 'B', 'email': email}, headers=auth_headers).status_code == 409

    other = client.post('/users', json={'name': 'C', 'email': _email()}, headers=auth_headers).json()
    r = client.put(f"/users/{other['id']}", json={'email': email}, headers=auth_headers)
    assert r.status_code == 409

    # once the holder is deleted the address is free again
    client.delete(f"/users/{first['id']}", headers=auth_headers)
    r = client.put(f"/users/{other['id']}", json={'email': email}, headers=auth_headers)
    assert r.status_code == 200
    assert r.json()['email'] == email


def test_unknown_and_malformed_ids(auth_headers):
    assert client.get('/users/999999', headers=auth_headers).status_code == 404
    assert client.get('/users/abc', headers=auth_headers).status_code == 422


def test_out_of_range_ids_rejected(auth_headers):
    too_big = 2**64
    for path in (f'/users/{too_big}', '/users/0', '/users/-1'):
        assert client.get(path, headers=auth_headers).status_code == 422
    r = client.put(f'/users/{too_big}', json={'name': 'x'}, headers=auth_headers)
    assert r.status_code == 422
    assert client.delete(f'/users/{too_big}', headers=auth_headers).status_code == 422
