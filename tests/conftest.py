import os
import pytest
from reels import create_app, db as _db

# Override the DATABASE_URL for testing
os.environ['DATABASE_URL'] = 'sqlite:///./test_app.db'
os.environ['JWT_SECRET_KEY'] = 'test-jwt-secret-key'
os.environ['SECRET_KEY'] = 'test-secret-key'
os.environ['IMAGEKIT_PUBLIC_KEY'] = 'public_test_key'
os.environ['IMAGEKIT_PRIVATE_KEY'] = 'private_test_key'
os.environ['IMAGEKIT_URL_ENDPOINT'] = 'https://ik.imagekit.io/test'


@pytest.fixture(scope='session')
def app():
    """Session-wide test `Flask` application."""
    app = create_app({'TESTING': True})

    with app.app_context():
        _db.create_all()

    yield app

    # Clean up database after test session
    with app.app_context():
        _db.session.remove()
        _db.drop_all()

    if os.path.exists('test_app.db'):
        os.remove('test_app.db')


@pytest.fixture
def client(app):
    """A test client for the app."""
    return app.test_client()


@pytest.fixture(scope='function')
def db(app):
    """Fresh tables for every test function."""
    with app.app_context():
        yield _db
        _db.session.remove()
        _db.drop_all()
        _db.create_all()


@pytest.fixture
def auth_data(client, db):
    """Provides a logged-in client, its access token, and user info."""
    from reels.models import User

    signup_data = {
        "email": "test@example.com",
        "password": "password123"
    }
    signup_response = client.post('/auth/register', json=signup_data)
    assert signup_response.status_code == 201, f"Register failed in auth_data fixture. Status: {signup_response.status_code}, Response: {signup_response.data}"

    login_response = client.post('/auth/login', json=signup_data)
    assert login_response.status_code == 200, f"Login failed in auth_data fixture. Status: {login_response.status_code}, Response: {login_response.data}"
    access_token = login_response.get_json().get('access_token')
    assert access_token is not None, "Access token is None in auth_data fixture"

    user = User.query.filter_by(email="test@example.com").first()
    assert user is not None, "User not found in DB after register in auth_data fixture"

    user_info = {'email': user.email, 'id': user.id}

    return client, access_token, user_info


@pytest.fixture
def video_payload():
    return {
        "title": "Sunset timelapse",
        "description": "Clouds rolling over the bay.",
        "videoUrl": "https://ik.imagekit.io/test/videos/sunset.mp4",
        "thumbnailUrl": "https://ik.imagekit.io/test/videos/sunset.mp4/ik-thumbnail.jpg",
    }
