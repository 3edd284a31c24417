"""HTTP client for the caselink REST API.

This module provides a thin wrapper over the ``/api/v1`` endpoints so the
graph engine and the CLI can run against a remote deployment instead of a
local database file.
"""

from typing import Any, Dict, List, Optional
from urllib.parse import quote

import requests

from caselink.state import API_URL

USER_AGENT = "caselink graph client"
DEFAULT_TIMEOUT = 30


class CaseLinkClient:
    """Client for a running caselink API."""

    def __init__(self, base_url: str = API_URL, timeout: int = DEFAULT_TIMEOUT,
                 session: Optional[requests.Session] = None):
        """Initialize the client.

        Args:
            base_url: API root including the version prefix
            timeout: Request timeout in seconds (default: 30)
            session: Optional pre-configured session
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update({
            "User-Agent": USER_AGENT,
            "Accept": "application/json",
        })

    def _get(self, path: str, params: Optional[Dict] = None) -> Any:
        response = self.session.get(
            f"{self.base_url}{path}", params=params, timeout=self.timeout
        )
        response.raise_for_status()
        return response.json().get("data")

    def _get_optional(self, path: str) -> Optional[Dict]:
        """GET a single entity, returning None when the API answers 404."""
        try:
            return self._get(path)
        except requests.HTTPError as e:
            if e.response is not None and e.response.status_code == 404:
                return None
            raise

    def get_case(self, case_id: str) -> Optional[Dict]:
        return self._get_optional(f"/cases/{quote(str(case_id), safe='')}")

    def get_person(self, person_id: str) -> Optional[Dict]:
        return self._get_optional(f"/persons/{quote(str(person_id), safe='')}")

    def case_samples(self, case_id: str) -> List[Dict]:
        return self._get(f"/cases/{quote(str(case_id), safe='')}/samples") or []

    def case_persons(self, case_id: str) -> List[Dict]:
        return self._get(f"/cases/{quote(str(case_id), safe='')}/persons") or []

    def case_links(self, case_id: str) -> List[Dict]:
        return self._get(f"/cases/{quote(str(case_id), safe='')}/links") or []

    def person_cases(self, person_id: str) -> List[Dict]:
        return self._get(f"/persons/{quote(str(person_id), safe='')}/cases") or []

    def overview(self) -> Dict:
        return self._get("/stats/overview")

    def close(self):
        """Close the HTTP session."""
        self.session.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
