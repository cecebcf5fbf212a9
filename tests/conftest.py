"""Shared fixtures for the Clarizen timesheet tests."""

from typing import Any, Callable, Iterable, List
from unittest.mock import MagicMock

import arrow
import pytest

from clarizen import Clarizen, Task

API_URL = 'https://api.clarizen.test/v2.0/services'
RESOURCE = '/User/u-42'
# a Wednesday
TODAY = arrow.get('2026-10-21')


def make_response(status_code: int = 200, payload: Any = None, reason: str = 'OK') -> MagicMock:
    """Build a stand-in for ``requests.Response``."""
    response = MagicMock()
    response.status_code = status_code
    response.ok = status_code < 400
    response.reason = reason
    if payload is None:
        response.content = b''
        response.json.side_effect = ValueError('No JSON object could be decoded')
    else:
        response.content = b'{}'
        response.json.return_value = payload
    return response


def entities(*items: dict) -> MagicMock:
    return make_response(payload={'entities': list(items), 'paging': {'hasMore': False}})


def feed_input(monkeypatch: pytest.MonkeyPatch, answers: Iterable[str]) -> List[str]:
    """Answer ``input()`` calls from a script; returns the prompts seen."""
    remaining = iter(answers)
    prompts = []

    def fake_input(prompt: str = '') -> str:
        prompts.append(prompt)
        return next(remaining)

    monkeypatch.setattr('builtins.input', fake_input)
    return prompts


@pytest.fixture
def http_session() -> MagicMock:
    session = MagicMock()
    session.headers = {}
    return session


@pytest.fixture
def client(http_session: MagicMock) -> Clarizen:
    return Clarizen(API_URL, session=http_session)


@pytest.fixture
def logged_in_client(client: Clarizen, http_session: MagicMock) -> Clarizen:
    http_session.headers['Authorization'] = 'Session abc'
    client.resource = RESOURCE
    return client


@pytest.fixture
def fake_clarizen() -> MagicMock:
    """A Clarizen client whose API calls are all mocked out."""
    fake = MagicMock(spec=Clarizen)
    fake.find_timesheets.return_value = []
    return fake


@pytest.fixture
def task() -> Task:
    return Task(id='/Task/t-1', name='Platform upgrade')


@pytest.fixture
def route_requests(http_session: MagicMock) -> Callable[[Callable], None]:
    """Install a function deciding the response for each (method, uri, kwargs)."""
    def install(router: Callable) -> None:
        http_session.request.side_effect = router
    return install
