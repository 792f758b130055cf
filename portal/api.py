import logging
from typing import Any, Callable, Dict, Optional

import requests
from django.conf import settings

logger = logging.getLogger(__name__)

DEFAULT_ERROR_MESSAGE = 'Something went wrong. Please try again.'
CONNECTION_ERROR_MESSAGE = 'Unable to connect to server. Please check your internet connection.'
TIMEOUT_ERROR_MESSAGE = 'The server took too long to respond. Please try again.'


class ApiError(Exception):
    """A backend call that did not succeed.

    ``status`` is None when no response came back at all.
    """

    def __init__(self, message: str, status: Optional[int] = None, payload: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.status = status
        self.payload = payload or {}


class Unauthorized(Exception):
    """The backend rejected the stored credentials (HTTP 401).

    Not an ApiError: views let it through to ApiAuthMiddleware.
    """

    def __init__(self, message: str = 'Unauthorized', payload: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.payload = payload or {}


def error_message(error: Exception, fallback: str = DEFAULT_ERROR_MESSAGE) -> str:
    payload = getattr(error, 'payload', None) or {}
    message = payload.get('message') if isinstance(payload, dict) else None
    if message:
        return str(message)
    if isinstance(error, ApiError) and error.status is None:
        return error.message
    return fallback


def _decode(response) -> Dict[str, Any]:
    if not response.content:
        return {}
    try:
        data = response.json()
    except ValueError:
        return {}
    return data if isinstance(data, dict) else {'data': data}


class ApiClient:
    """Thin wrapper over the REST backend.

    Attaches the bearer token, decodes JSON and applies the status policy:
    401 clears credentials and raises Unauthorized, 403 and 5xx are logged,
    every failure is raised for the caller to turn into a message.
    """

    session_factory = requests.Session

    def __init__(
        self,
        token: Optional[str] = None,
        base_url: Optional[str] = None,
        on_unauthorized: Optional[Callable[[], None]] = None,
        timeout: Optional[int] = None,
    ):
        self.token = token
        self.base_url = (base_url or settings.API_URL).rstrip('/')
        self.on_unauthorized = on_unauthorized
        self.timeout = timeout or settings.API_TIMEOUT
        self.http = self.session_factory()

    @classmethod
    def for_request(cls, request) -> 'ApiClient':
        from portal.auth import AuthSession

        auth = AuthSession(request)
        return cls(token=auth.token, on_unauthorized=auth.logout)

    def url(self, path: str) -> str:
        return f"{self.base_url}/{path.lstrip('/')}"

    def request(self, method: str, path: str, *, json=None, params=None, files=None) -> Dict[str, Any]:
        headers = {}
        if self.token:
            headers['Authorization'] = f'Bearer {self.token}'

        try:
            response = self.http.request(
                method,
                self.url(path),
                json=json,
                params=params,
                files=files,
                headers=headers,
                timeout=self.timeout,
            )
        except requests.exceptions.Timeout as exc:
            logger.error("Backend timeout: %s %s", method, path)
            raise ApiError(TIMEOUT_ERROR_MESSAGE) from exc
        except requests.exceptions.ConnectionError as exc:
            logger.error("Backend unreachable: %s %s", method, path)
            raise ApiError(CONNECTION_ERROR_MESSAGE) from exc

        payload = _decode(response)
        status = response.status_code

        if status == 401:
            logger.info("Backend answered 401 for %s %s, clearing credentials", method, path)
            if self.on_unauthorized:
                self.on_unauthorized()
            raise Unauthorized(payload.get('message') or 'Unauthorized', payload)

        if status == 403:
            logger.warning("Access forbidden - insufficient permissions: %s %s", method, path)

        if status >= 500:
            logger.error("Server error occurred: %s %s (%s)", method, path, status)

        if status >= 400:
            raise ApiError(payload.get('message') or DEFAULT_ERROR_MESSAGE, status, payload)

        return payload

    def get(self, path: str, params=None) -> Dict[str, Any]:
        return self.request('GET', path, params=params)

    def post(self, path: str, json=None, files=None) -> Dict[str, Any]:
        return self.request('POST', path, json=json, files=files)

    def put(self, path: str, json=None) -> Dict[str, Any]:
        return self.request('PUT', path, json=json)

    def patch(self, path: str, json=None) -> Dict[str, Any]:
        return self.request('PATCH', path, json=json)

    def delete(self, path: str, json=None) -> Dict[str, Any]:
        return self.request('DELETE', path, json=json)
