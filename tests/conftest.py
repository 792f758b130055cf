import json
import os
from datetime import datetime, timedelta, timezone
from types import SimpleNamespace

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'mentaro.settings')
os.environ['API_URL'] = 'http://backend.test/api'

import django

django.setup()

from django.test.utils import setup_test_environment

setup_test_environment()

import jwt
import pytest
from django.conf import settings
from django.test import Client

from portal.api import ApiClient

SIGNING_KEY = 'portal-test-signing-key-0123456789abcdef'


class FakeResponse:
    def __init__(self, status_code=200, payload=None):
        self.status_code = status_code
        self._payload = payload
        self.content = b'' if payload is None else json.dumps(payload).encode()

    def json(self):
        return self._payload


class FakeBackend:
    """Stands in for requests.Session; answers from canned routes and records every call."""

    def __init__(self):
        self.routes = {}
        self.calls = []

    def on(self, method, path, payload=None, status=200):
        self.routes.setdefault((method, path), []).append(FakeResponse(status, payload))
        return self

    def fail(self, method, path, exc):
        self.routes.setdefault((method, path), []).append(exc)
        return self

    def request(self, method, url, json=None, params=None, files=None, headers=None, timeout=None):
        path = url.split('/api/', 1)[1]
        self.calls.append(SimpleNamespace(
            method=method, path=path, json=json, params=params, files=files, headers=headers or {},
        ))
        queue = self.routes.get((method, path))
        if not queue:
            return FakeResponse(404, {'message': f'No route for {method} {path}'})
        answer = queue.pop(0) if len(queue) > 1 else queue[0]
        if isinstance(answer, Exception):
            raise answer
        return answer

    def called(self, method, path):
        return [call for call in self.calls if call.method == method and call.path == path]

    def paths(self, method=None):
        return [call.path for call in self.calls if method is None or call.method == method]


def make_token(expires_in=timedelta(hours=1)):
    return jwt.encode({'id': 'user-1', 'exp': datetime.now(timezone.utc) + expires_in}, SIGNING_KEY, algorithm='HS256')


def user_payload(role='student', **extra):
    data = {
        '_id': f'{role}-1',
        'firstName': 'Test',
        'lastName': role.title(),
        'email': f'{role}@example.com',
        'role': role,
    }
    data.update(extra)
    return data


def login_as(client, role='student', token=None):
    session = client.session
    session['token'] = token or make_token()
    session['user'] = json.dumps(user_payload(role))
    session.save()
    client.cookies[settings.SESSION_COOKIE_NAME] = session.session_key
    return client


def session_of(client):
    return client.session


def course_payload(course_id, price=50, title=None, **extra):
    data = {'_id': course_id, 'title': title or f'Course {course_id}', 'price': price, 'status': 'approved'}
    data.update(extra)
    return data


@pytest.fixture
def backend(monkeypatch):
    fake = FakeBackend()
    monkeypatch.setattr(ApiClient, 'session_factory', staticmethod(lambda: fake))
    return fake


@pytest.fixture
def client():
    return Client()


@pytest.fixture
def student_client(client):
    return login_as(client, 'student')


@pytest.fixture
def instructor_client(client):
    return login_as(client, 'instructor')


@pytest.fixture
def admin_client(client):
    return login_as(client, 'admin')
