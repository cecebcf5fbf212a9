# -*- coding: utf-8 -*-
# SPDX-License-Identifier: FAFOL
# pylint: disable=logging-fstring-interpolation

"""Wrapper for the REST API for Clarizen timesheets"""

import configparser
import logging
from dataclasses import dataclass
from enum import Enum
from os.path import isfile
from typing import Any, Dict, List, Optional

import arrow
import requests
from rich.console import Console, ConsoleOptions, RenderResult
from rich.logging import RichHandler


API_DATE_FORMAT = 'YYYY-MM-DD'
UNSUBMITTED_STATE = 'Un Submitted'

TASKS_QUERY = ("SELECT Name FROM Task "
               "WHERE State = 'Active' AND ResourceLinks.Resource = '{resource}'")
TIMESHEETS_QUERY = ("SELECT Duration, ReportedDate FROM Timesheet "
                    "WHERE WorkItem = '{task}' AND ReportedBy = '{resource}' "
                    "AND ReportedDate = '{date}' AND State = '{state}'")

FORMAT = "%(message)s"


def setup_logging(level: str = 'INFO') -> None:
    """Send logging through `rich`, keeping the HTTP libraries quiet."""
    logging.basicConfig(
        level=level,
        format=FORMAT,
        datefmt="[%X]",
        handlers=[RichHandler(rich_tracebacks=True,
                              tracebacks_suppress=[requests])]
    )
    logging.getLogger("requests").setLevel(logging.WARNING)
    logging.getLogger("urllib3").setLevel(logging.WARNING)


def load_secrets(path: str = 'secrets.ini') -> configparser.ConfigParser:
    """Read the secrets file holding the API location and user details."""
    if not isfile(path):
        raise FileNotFoundError(
            'Please copy secrets.ini.example to secrets.ini and configure per the comments')
    secrets = configparser.ConfigParser()
    secrets.optionxform = lambda option: option  # return case-sensitive keys
    secrets.read(path)
    return secrets


def format_date(day: arrow.Arrow) -> str:
    return day.format(API_DATE_FORMAT)


class ErrorKind(Enum):
    """What went wrong talking to Clarizen."""
    AUTH = 'auth'
    VALIDATION = 'validation'
    NETWORK = 'network'
    NOT_FOUND = 'not found'
    API = 'api'


_STATUS_KINDS = {
    400: ErrorKind.VALIDATION,
    401: ErrorKind.AUTH,
    403: ErrorKind.AUTH,
    404: ErrorKind.NOT_FOUND,
}


class ClarizenError(Exception):
    """An error from the Clarizen API, tagged with its `ErrorKind`."""

    def __init__(self, kind: ErrorKind, message: str) -> None:
        super().__init__(message)
        self.kind = kind
        self.message = message

    def __str__(self) -> str:
        return f'{self.kind.value} error: {self.message}'


@dataclass(frozen=True)
class Task:
    """A work item time can be charged against."""
    id: str
    name: str

    @classmethod
    def from_entity(cls, entity: Dict[str, Any]) -> 'Task':
        return cls(id=entity['id'], name=entity['Name'])

    def __str__(self) -> str:
        return self.name

    def __rich_console__(self, console: Console, options: ConsoleOptions) -> RenderResult:
        # pylint: disable=unused-argument
        yield f"[b]Task:[/b] {self.name} ({self.id})"


class Clarizen:
    """Wrapper for the REST API for Clarizen"""
    resource: Optional[str]

    def __init__(self, api_url: str, session: requests.Session = None) -> None:
        self.logger = logging.getLogger('Clarizen')
        self.api_url = api_url.rstrip('/')
        self.logger.debug(f'API URI: {self.api_url}')
        self.resource = None
        self._session = session if session is not None else requests.Session()
        self._session.headers.update({
            'accept': 'application/json',
            'content-type': 'application/json',
        })

    @classmethod
    def from_secrets(cls, secrets: configparser.ConfigParser) -> 'Clarizen':
        """Build a client pointed at the API named in `secrets.ini`."""
        host = secrets['uri']['host']
        page = secrets['uri'].get('page', 'v2.0/services')
        return cls(api_url=f'https://{host}/{page}')

    @property
    def logged_in(self) -> bool:
        return 'Authorization' in self._session.headers

    def _request(self, method: str, path: str, **kwargs) -> Dict[str, Any]:
        """
        Send one request to the API and decode the JSON answer

        Args:
            method (str): HTTP verb
            path (str): path below the API root

        Raises:
            ClarizenError: on transport failure or a non-2xx response

        Returns:
            dict[str, Any]: the decoded body, empty if there was none
        """
        uri = f'{self.api_url}/{path.lstrip("/")}'
        self.logger.debug(f'{method} {uri}')
        try:
            response = self._session.request(method, uri, **kwargs)
        except requests.RequestException as exc:
            self.logger.error(f'Could not reach {uri}: {exc}')
            raise ClarizenError(ErrorKind.NETWORK, f'Could not reach {uri}: {exc}') from exc

        if not response.ok:
            kind = _STATUS_KINDS.get(response.status_code, ErrorKind.API)
            message = f'Bad response: {response.status_code} - {response.reason}'
            detail = self._error_detail(response)
            if detail:
                message = f'{message} ({detail})'
            self.logger.error(f'{method} {uri} failed: {message}')
            raise ClarizenError(kind, message)

        if not response.content:
            return {}
        try:
            return response.json()
        except ValueError as exc:
            raise ClarizenError(ErrorKind.API, f'Malformed response from {uri}') from exc

    @staticmethod
    def _error_detail(response: requests.Response) -> str:
        """Pull the server's own message out of an error body, if it sent one."""
        try:
            body = response.json()
        except ValueError:
            return ''
        if isinstance(body, dict):
            return body.get('message') or body.get('errorCode') or ''
        return ''

    def login(self, username: str, password: str) -> str:
        """
        Log in and attach the session header to every later request

        Args:
            username (str): Clarizen user name
            password (str): Clarizen password

        Raises:
            ClarizenError: on bad credentials or an unusable answer

        Returns:
            str: the `Authorization` header value
        """
        self.logger.debug(f'Logging into Clarizen with user {username}')
        data = self._request('POST', 'authentication/login',
                             json={'userName': username, 'password': password})
        try:
            session_id = data['sessionId']
            user_id = str(data['userId'])
        except KeyError as exc:
            raise ClarizenError(ErrorKind.AUTH,
                                f'Login answer is missing {exc.args[0]}') from exc

        header = f'Session {session_id}'
        self._session.headers.update({'Authorization': header})
        self.resource = user_id if user_id.startswith('/') else f'/User/{user_id}'
        self.logger.info(f'Logged in as {username} ({self.resource})')
        return header

    def logout(self) -> None:
        """Close the server-side session and forget the header."""
        if not self.logged_in:
            return
        try:
            self._request('POST', 'authentication/logout')
        finally:
            self._session.headers.pop('Authorization', None)
        self.logger.debug('Logged out of Clarizen')

    def query(self, czql: str) -> List[Dict[str, Any]]:
        """Run one CZQL query and return the matching entities."""
        self.logger.debug(f'Query: {czql}')
        data = self._request('GET', 'data/query', params={'q': czql})
        if 'entities' not in data:
            raise ClarizenError(ErrorKind.API, f'Query answer has no entities: {data}')
        return data['entities']

    def _require_resource(self, resource: Optional[str]) -> str:
        resource = resource or self.resource
        if resource is None:
            raise ClarizenError(ErrorKind.AUTH, 'Not logged in, no resource to query for')
        return resource

    def get_active_tasks(self, resource: str = None) -> List[Task]:
        """
        Fetch the active tasks the resource is linked to

        Args:
            resource (str): the user reference (default None, for the logged-in user)

        Returns:
            list[Task]: the tasks, in the order the server sent them
        """
        resource = self._require_resource(resource)
        entities = self.query(TASKS_QUERY.format(resource=resource))
        tasks = [Task.from_entity(entity) for entity in entities]
        self.logger.debug(f'{resource} has {len(tasks)} active tasks')
        return tasks

    def find_timesheets(self, task: Task, day: arrow.Arrow,
                        resource: str = None) -> List[Dict[str, Any]]:
        """Fetch the un-submitted timesheets for one task on one day."""
        resource = self._require_resource(resource)
        return self.query(TIMESHEETS_QUERY.format(task=task.id,
                                                  resource=resource,
                                                  date=format_date(day),
                                                  state=UNSUBMITTED_STATE))

    def create_timesheet(self, task: Task, duration: str, day: arrow.Arrow) -> Dict[str, Any]:
        payload = {
            'WorkItem': task.id,
            'Duration': duration,
            'ReportedDate': format_date(day),
        }
        result = self._request('PUT', 'data/objects/Timesheet', json=payload)
        self.logger.debug(f'Created timesheet {result.get("id")} for {task} on {format_date(day)}')
        return result

    def update_timesheet(self, timesheet_id: str, duration: str,
                         day: arrow.Arrow) -> Dict[str, Any]:
        payload = {
            'id': timesheet_id,
            'Duration': duration,
            'ReportedDate': format_date(day),
        }
        result = self._request('POST', f'data/objects/{timesheet_id.lstrip("/")}', json=payload)
        self.logger.debug(f'Updated timesheet {timesheet_id} on {format_date(day)}')
        return result
