import datetime
import pytest
from unittest.mock import patch
from flask_jwt_extended import create_access_token
from reels.models import User

def test_register(client, db):
    """Test user registration."""
    response = client.post('/auth/register', json={
        "email": "newuser@example.com",
        "password": "password123"
    })
    assert response.status_code == 201
    assert response.get_json()['msg'] == "User registered successfully"

    user = User.query.filter_by(email="newuser@example.com").first()
    assert user is not None

def test_register_hashes_password(client, db):
    """The stored password is a hash, never the plaintext."""
    client.post('/auth/register', json={"email": "hash@example.com", "password": "s3cret-pass"})
    user = User.query.filter_by(email="hash@example.com").first()
    assert user.password_hash != "s3cret-pass"
    assert "s3cret-pass" not in user.password_hash
    assert user.check_password("s3cret-pass")
    assert not user.check_password("wrong")

def test_register_normalizes_email(client, db):
    """Emails are stored trimmed and lower-cased."""
    response = client.post('/auth/register', json={"email": "  Mixed.Case@Example.COM ", "password": "pw"})
    assert response.status_code == 201
    assert User.query.filter_by(email="mixed.case@example.com").first() is not None

def test_register_duplicate_email(client, db):
    """Test registering an email that already exists, in any case."""
    client.post('/auth/register', json={"email": "original@example.com", "password": "password123"})
    response = client.post('/auth/register', json={"email": "ORIGINAL@example.com", "password": "password456"})
    assert response.status_code == 409
    assert response.get_json()['msg'] == "Email is already registered"
    assert User.query.count() == 1

@pytest.mark.parametrize("body", [
    {"email": "someone@example.com"},
    {"password": "password123"},
    {"email": "   ", "password": "password123"},
    {},
])
def test_register_missing_fields(client, db, body):
    """Test registration with missing fields."""
    response = client.post('/auth/register', json=body)
    assert response.status_code == 400
    assert response.get_json()['msg'] == "Email and password are required"
    assert User.query.count() == 0

def test_login(client, db):
    """Test user login."""
    client.post('/auth/register', json={"email": "login@example.com", "password": "password123"})

    response = client.post('/auth/login', json={"email": "login@example.com", "password": "password123"})
    assert response.status_code == 200
    json_data = response.get_json()
    assert "access_token" in json_data
    assert json_data['user']['email'] == "login@example.com"

def test_login_wrong_password(client, db):
    """Test login with an incorrect password."""
    client.post('/auth/register', json={"email": "wrongpass@example.com", "password": "correctpassword"})

    response = client.post('/auth/login', json={"email": "wrongpass@example.com", "password": "incorrectpassword"})
    assert response.status_code == 401
    assert response.get_json()['msg'] == "Invalid email or password"

def test_login_nonexistent_user(client, db):
    """Test login for a user that does not exist."""
    response = client.post('/auth/login', json={"email": "nosuchuser@example.com", "password": "password123"})
    assert response.status_code == 401
    assert response.get_json()['msg'] == "Invalid email or password"

def test_login_missing_fields(client):
    """Test login with missing password."""
    response = client.post('/auth/login', json={"email": "someuser@example.com"})
    assert response.status_code == 400
    assert response.get_json()['msg'] == "Email and password are required"

def test_session_requires_auth(client, db):
    """Without cookie or token there is no session."""
    response = client.get('/auth/session')
    assert response.status_code == 401
    assert response.get_json()['msg'] == "Unauthorized"

def test_session_with_cookie(auth_data):
    """Login leaves a cookie session on the client."""
    client, _, user_info = auth_data
    response = client.get('/auth/session')
    assert response.status_code == 200
    assert response.get_json()['user'] == {'id': user_info['id'], 'email': user_info['email']}

def test_session_with_bearer_token(app, auth_data):
    """A fresh client presenting only the access token has a session."""
    _, access_token, user_info = auth_data
    other_client = app.test_client()
    response = other_client.get('/auth/session', headers={"Authorization": f"Bearer {access_token}"})
    assert response.status_code == 200
    assert response.get_json()['user']['id'] == user_info['id']

def test_invalid_token(client, db):
    """Test a request with an invalid bearer token."""
    response = client.get('/auth/session', headers={
        "Authorization": "Bearer invalidtoken123"
    })
    assert response.status_code == 401
    json_data = response.get_json()
    assert json_data['sub_status'] == 43
    assert "Invalid token" in json_data['msg']

def test_logout_ends_session(auth_data):
    """After logout the cookie session is gone."""
    client, _, _ = auth_data
    response = client.post('/auth/logout')
    assert response.status_code == 200
    assert client.get('/auth/session').status_code == 401

def test_non_bearer_authorization_is_unauthorized(client, db, video_payload):
    """A header that is not a bearer token counts as no session at all."""
    response = client.post('/videos', json=video_payload, headers={"Authorization": "Basic abc"})
    assert response.status_code == 401
    assert response.get_json() == {"msg": "Unauthorized"}

def test_expired_token(client, db, video_payload):
    """Test writing with an expired access token."""
    client.post('/auth/register', json={"email": "exp@example.com", "password": "password"})
    user = User.query.filter_by(email="exp@example.com").first()
    access_token = create_access_token(identity=str(user.id), expires_delta=datetime.timedelta(seconds=-1))

    response = client.post('/videos', json=video_payload, headers={"Authorization": f"Bearer {access_token}"})
    assert response.status_code == 401
    json_data = response.get_json()
    assert json_data['sub_status'] == 42
    assert json_data['msg'] == "The token has expired"

def test_token_for_deleted_user(client, db, video_payload):
    """A valid token whose user no longer exists is rejected."""
    client.post('/auth/register', json={"email": "gone@example.com", "password": "password"})
    user = User.query.filter_by(email="gone@example.com").first()
    access_token = create_access_token(identity=str(user.id))
    db.session.delete(user)
    db.session.commit()

    response = client.post('/videos', json=video_payload, headers={"Authorization": f"Bearer {access_token}"})
    assert response.status_code == 401
    json_data = response.get_json()
    assert json_data['sub_status'] == 45
    assert json_data['msg'] == "User not found for token"

@pytest.mark.parametrize("remember,expected", [
    (True, True),
    ("false", False),
    ("true", False),
    (None, False),
])
def test_login_remember_cookie(client, db, remember, expected):
    """Only a JSON true asks for a remember-me cookie."""
    client.post('/auth/register', json={"email": "remember@example.com", "password": "password"})
    response = client.post('/auth/login', json={
        "email": "remember@example.com", "password": "password", "remember": remember,
    })
    assert response.status_code == 200
    cookies = " ".join(response.headers.getlist('Set-Cookie'))
    assert ("remember_token=" in cookies) is expected

def test_register_concurrent_duplicate(client, db):
    """A duplicate that slips past the lookup still gets a 409 from the unique constraint."""
    client.post('/auth/register', json={"email": "race@example.com", "password": "password"})
    with patch('reels.auth.User.query') as mock_query:
        mock_query.filter_by.return_value.first.return_value = None
        response = client.post('/auth/register', json={"email": "race@example.com", "password": "password"})
    assert response.status_code == 409
    assert response.get_json()['msg'] == "Email is already registered"
    assert User.query.count() == 1
