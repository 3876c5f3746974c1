"""Paginated access to the Jira issue search API."""

import logging
from dataclasses import dataclass
from typing import Iterator, Optional
import requests

from services.errors import JiraSearchError
from services.settings import DEFAULT_PAGE_SIZE, DEFAULT_TIMEOUT

logger = logging.getLogger(__name__)

SEARCH_ENDPOINT = "/rest/api/2/search"


def epic_link_jql(epic_name: str) -> str:
    """JQL selecting every issue linked to the named epic."""
    escaped = epic_name.replace("\\", "\\\\").replace('"', '\\"')
    return f'"Epic Link"="{escaped}"'


@dataclass
class SearchPage:
    start_at: int
    max_results: int
    total: int
    issues: list

    @property
    def next_start_at(self) -> int:
        return self.start_at + len(self.issues)

    @property
    def is_last(self) -> bool:
        # Remote total minus what has been fetched so far
        return not self.issues or self.total - self.next_start_at <= 0


class JiraSearchClient:
    """Client for the Jira search endpoint."""

    def __init__(self, server: str, email: str, token: str,
                 page_size: int = DEFAULT_PAGE_SIZE,
                 timeout: float = DEFAULT_TIMEOUT):
        self.server = server.rstrip("/")
        self.email = email
        self.token = token
        self.page_size = page_size
        self.timeout = timeout

    def _request(self, endpoint: str, params: Optional[dict] = None) -> dict:
        """Make authenticated request to Jira API."""
        try:
            response = requests.get(
                f"{self.server}{endpoint}",
                auth=(self.email, self.token),
                headers={"Accept": "application/json"},
                params=params,
                timeout=self.timeout
            )
            response.raise_for_status()
        except requests.exceptions.HTTPError as e:
            status = e.response.status_code if e.response is not None else None
            raise JiraSearchError(f"Jira API error: {status}", status_code=status) from e
        except requests.exceptions.RequestException as e:
            raise JiraSearchError(f"Failed to connect to Jira: {e}") from e

        try:
            return response.json()
        except ValueError as e:
            raise JiraSearchError("Jira returned a non-JSON response") from e

    def search_page(self, jql: str, fields: list, start_at: int = 0) -> SearchPage:
        """Fetch a single page of search results starting at start_at."""
        data = self._request(
            SEARCH_ENDPOINT,
            params={
                "jql": jql,
                "startAt": start_at,
                "maxResults": self.page_size,
                "fields": ",".join(fields)
            }
        )

        if not isinstance(data, dict) or "total" not in data or "issues" not in data:
            raise JiraSearchError("Malformed search response: missing total or issues")

        try:
            total = int(data["total"])
        except (TypeError, ValueError) as e:
            raise JiraSearchError(f"Malformed search total: {data['total']!r}") from e

        issues = data["issues"]
        if not isinstance(issues, list):
            raise JiraSearchError("Malformed search response: issues is not a list")

        return SearchPage(
            start_at=start_at,
            max_results=int(data.get("maxResults", self.page_size)),
            total=total,
            issues=issues
        )

    def iter_pages(self, jql: str, fields: list, start_at: int = 0) -> Iterator[SearchPage]:
        """Yield result pages lazily until the remote total is exhausted.

        Pass start_at to resume from a previously returned next_start_at.
        """
        while True:
            page = self.search_page(jql, fields, start_at)
            logger.debug(
                f"Fetched {len(page.issues)} issues at {page.start_at} of {page.total} for {jql}"
            )
            yield page

            if page.is_last:
                break

            start_at = page.next_start_at
