"""
test_auth.py: Tests for session login / logout.
Run: pytest test_auth.py -v
"""
import pytest

from fitstock import create_app, db
from fitstock.auth.models import User


@pytest.fixture
def client():
    app = create_app('testing')
    with app.app_context():
        db.create_all()
        user = User(username='admin', name='Admin')
        user.set_password('admin123')
        db.session.add(user)
        db.session.commit()
        yield app.test_client()
        db.session.remove()
        db.drop_all()


def test_password_is_hashed():
    user = User(username='x', name='X')
    user.set_password('secret')
    assert user.password_hash != 'secret'
    assert user.check_password('secret')
    assert not user.check_password('nope')


def test_login_and_logout(client):
    assert client.get('/').status_code == 401

    resp = client.post('/auth/login', json={'username': 'admin', 'password': 'admin123'})
    assert resp.status_code == 200
    assert resp.get_json()['name'] == 'Admin'
    assert client.get('/').status_code == 200

    client.post('/auth/logout')
    assert client.get('/').status_code == 401


def test_login_with_form_data(client):
    resp = client.post('/auth/login', data={'username': 'admin', 'password': 'admin123'})
    assert resp.status_code == 200


@pytest.mark.parametrize('payload, status', [
    ({'username': 'admin', 'password': 'wrong'}, 401),
    ({'username': 'ghost', 'password': 'admin123'}, 401),
    ({'username': '', 'password': ''}, 400),
])
def test_login_failures(client, payload, status):
    resp = client.post('/auth/login', json=payload)
    assert resp.status_code == status
    assert client.get('/').status_code == 401
