"""Row sources the graph engine traverses: the local database or the REST API."""

from __future__ import annotations

import sqlite3
from typing import Protocol

import requests

from caselink import queries
from caselink.api_client import CaseLinkClient
from caselink.db import LinkDatabase
from caselink.errors import FetchError


class GraphSource(Protocol):
    def get_case(self, case_id: str) -> dict | None: ...

    def get_person(self, person_id: str) -> dict | None: ...

    def case_samples(self, case_id: str) -> list[dict]: ...

    def case_persons(self, case_id: str) -> list[dict]: ...

    def case_links(self, case_id: str) -> list[dict]: ...

    def person_cases(self, person_id: str) -> list[dict]: ...


class DatabaseSource:
    """Reads straight from a :class:`LinkDatabase` through the query layer."""

    def __init__(self, db: LinkDatabase):
        self.db = db

    def _run(self, query, key: str):
        try:
            return query(self.db, key)
        except sqlite3.Error as e:
            raise FetchError(f"{query.__name__}({key}) failed: {e}") from e

    def get_case(self, case_id: str) -> dict | None:
        return self._run(queries.get_case, case_id)

    def get_person(self, person_id: str) -> dict | None:
        return self._run(queries.get_person, person_id)

    def case_samples(self, case_id: str) -> list[dict]:
        return self._run(queries.case_samples, case_id)

    def case_persons(self, case_id: str) -> list[dict]:
        return self._run(queries.case_persons, case_id)

    def case_links(self, case_id: str) -> list[dict]:
        return self._run(queries.case_links, case_id)

    def person_cases(self, person_id: str) -> list[dict]:
        return self._run(queries.person_cases, person_id)


class ApiSource:
    """Reads through the REST API, one sequential request per fetch."""

    def __init__(self, client: CaseLinkClient):
        self.client = client

    def _run(self, method, key: str):
        try:
            return method(key)
        except requests.RequestException as e:
            raise FetchError(f"{method.__name__}({key}) failed: {e}") from e

    def get_case(self, case_id: str) -> dict | None:
        return self._run(self.client.get_case, case_id)

    def get_person(self, person_id: str) -> dict | None:
        return self._run(self.client.get_person, person_id)

    def case_samples(self, case_id: str) -> list[dict]:
        return self._run(self.client.case_samples, case_id)

    def case_persons(self, case_id: str) -> list[dict]:
        return self._run(self.client.case_persons, case_id)

    def case_links(self, case_id: str) -> list[dict]:
        return self._run(self.client.case_links, case_id)

    def person_cases(self, person_id: str) -> list[dict]:
        return self._run(self.client.person_cases, person_id)
