import logging
import requests

logger = logging.getLogger(__name__)


class ApiError(Exception):
    """Non-2xx response from the reels HTTP API."""

    def __init__(self, status_code, message):
        super().__init__(f"Request failed with status {status_code}: {message}")
        self.status_code = status_code
        self.message = message


class RegistrationError(Exception):
    """Registration form rejected locally, before any request was sent."""


class ApiClient:
    """Thin client over the reels JSON API.

    Holds one ``requests.Session`` so the cookie session issued by
    ``/auth/login`` is reused, and sends the bearer token once logged in.
    """

    def __init__(self, base_url, session=None, access_token=None, timeout=30):
        self.base_url = base_url.rstrip('/')
        self.session = session or requests.Session()
        self.timeout = timeout
        self.access_token = None
        if access_token:
            self.set_access_token(access_token)

    def set_access_token(self, access_token):
        self.access_token = access_token
        self.session.headers['Authorization'] = f"Bearer {access_token}"

    def _request(self, method, path, **kwargs):
        kwargs.setdefault('timeout', self.timeout)
        response = self.session.request(method, f"{self.base_url}{path}", **kwargs)
        if not response.ok:
            raise ApiError(response.status_code, _error_message(response))
        return response

    def get_videos(self):
        payload = self._request('GET', '/videos').json()
        # Older servers answer an empty store with the string "No videos found"
        if not isinstance(payload, list):
            return []
        return payload

    def get_video(self, video_id):
        return self._request('GET', f'/videos/{video_id}').json()

    def create_video(self, video_data):
        return self._request('POST', '/videos', json=video_data).json()

    def get_upload_auth(self):
        data = self._request('GET', '/upload-auth').json()
        return {key: data[key] for key in ('signature', 'expire', 'token', 'publicKey')}

    def register(self, email, password, confirm_password):
        if password != confirm_password:
            raise RegistrationError("Passwords do not match")
        email = email.strip().lower()
        return self._request('POST', '/auth/register', json={"email": email, "password": password}).json()

    def login(self, email, password, remember=False):
        data = self._request(
            'POST', '/auth/login',
            json={"email": email.strip().lower(), "password": password, "remember": remember},
        ).json()
        self.set_access_token(data['access_token'])
        return data

    def logout(self):
        self._request('POST', '/auth/logout')
        self.access_token = None
        self.session.headers.pop('Authorization', None)


def _error_message(response):
    try:
        data = response.json()
    except ValueError:
        return response.text
    if isinstance(data, dict):
        return data.get('msg') or response.text
    if isinstance(data, str):
        return data
    return response.text
