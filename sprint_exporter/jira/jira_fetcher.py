"""Fetch sprint issues and their subtasks from JIRA REST API"""

from urllib.parse import quote

import requests

from sprint_exporter.config import (
    JIRA_API_TOKEN,
    JIRA_BASE_URL,
    JIRA_EMAIL,
    REQUEST_TIMEOUT,
    SEARCH_ENDPOINT,
    SEARCH_EXPAND,
    SEARCH_FIELDS,
    SEARCH_MAX_RESULTS,
    SPRINT_ENDPOINT,
    SPRINT_ISSUES_ENDPOINT,
)
from sprint_exporter.errors import ConfigurationError, UpstreamError


class JiraClient:
    """JIRA REST API client with Basic Auth"""

    def __init__(self, base_url: str, email: str, api_token: str,
                 timeout: float = REQUEST_TIMEOUT):
        """
        Initialize JIRA client

        Args:
            base_url: JIRA instance URL (e.g., https://your-domain.atlassian.net)
            email: JIRA account email
            api_token: JIRA API token
            timeout: Seconds to wait for each response
        """
        self.base_url = base_url.rstrip("/")
        self.auth = (email, api_token)
        self.timeout = timeout
        self.headers = {
            "Accept": "application/json",
            "Content-Type": "application/json"
        }

    @classmethod
    def from_env(cls) -> "JiraClient":
        """Build a client from JIRA_BASE_URL, JIRA_EMAIL and JIRA_API_TOKEN"""
        if not JIRA_EMAIL or not JIRA_API_TOKEN:
            raise ConfigurationError("JIRA_EMAIL and JIRA_API_TOKEN environment variables must be set")

        if not JIRA_BASE_URL:
            raise ConfigurationError("JIRA_BASE_URL not configured")

        return cls(JIRA_BASE_URL, JIRA_EMAIL, JIRA_API_TOKEN)

    def get(self, endpoint: str, params: dict = None) -> dict:
        """
        Make a GET request to JIRA API

        Args:
            endpoint: API endpoint (e.g., /rest/agile/1.0/sprint/1/issue)
            params: Query parameters

        Returns:
            JSON response as dictionary
        """
        url = f"{self.base_url}{endpoint}"
        try:
            response = requests.get(
                url,
                auth=self.auth,
                headers=self.headers,
                params=params,
                timeout=self.timeout
            )
        except requests.exceptions.RequestException as e:
            raise UpstreamError(f"GET {endpoint} failed: {e}", call=endpoint) from e
        return self._parse(response, "GET", endpoint)

    def post(self, endpoint: str, payload: dict) -> dict:
        """
        Make a POST request to JIRA API

        Args:
            endpoint: API endpoint (e.g., /rest/api/3/search/jql)
            payload: JSON request body

        Returns:
            JSON response as dictionary
        """
        url = f"{self.base_url}{endpoint}"
        try:
            response = requests.post(
                url,
                auth=self.auth,
                headers=self.headers,
                json=payload,
                timeout=self.timeout
            )
        except requests.exceptions.RequestException as e:
            raise UpstreamError(f"POST {endpoint} failed: {e}", call=endpoint) from e
        return self._parse(response, "POST", endpoint)

    def _parse(self, response: requests.Response, method: str, endpoint: str) -> dict:
        """Raise UpstreamError for error statuses and non-JSON bodies"""
        try:
            response.raise_for_status()
        except requests.exceptions.HTTPError as e:
            raise UpstreamError(
                f"{method} {endpoint} returned HTTP {response.status_code}",
                call=endpoint
            ) from e

        try:
            data = response.json()
        except ValueError as e:
            raise UpstreamError(f"{method} {endpoint} returned malformed JSON", call=endpoint) from e

        if not isinstance(data, dict):
            raise UpstreamError(f"{method} {endpoint} returned unexpected body", call=endpoint)
        return data


def path_segment(sprint_id) -> str:
    """Escape a sprint id for use as a single URL path segment"""
    return quote(str(sprint_id), safe="")


def build_jql(issue_keys: list) -> str:
    """
    Build a query selecting the given issues and every issue whose parent is one of them

    Args:
        issue_keys: Issue keys (e.g., ["PROJ-1", "PROJ-2"])

    Returns:
        JQL query string
    """
    keys = ",".join(issue_keys)
    return f"key IN ({keys}) OR parent IN ({keys})"


class SprintFetcher:
    """Fetches the issues of a sprint in two reads: keys, then details"""

    def __init__(self, client: JiraClient):
        self.client = client

    def get_sprint(self, sprint_id) -> dict:
        """
        Fetch sprint details

        Returns:
            Dictionary with sprint id, name and state
        """
        call = "get_sprint"
        try:
            data = self.client.get(SPRINT_ENDPOINT.format(sprint_id=path_segment(sprint_id)))
        except UpstreamError as e:
            raise UpstreamError(e.message, call=call) from e

        return {
            "id": data.get("id", sprint_id),
            "name": data.get("name"),
            "state": data.get("state")
        }

    def list_sprint_issue_keys(self, sprint_id) -> list:
        """
        Fetch the keys of all issues in a sprint

        Args:
            sprint_id: JIRA sprint id

        Returns:
            List of issue keys in the order JIRA returned them
        """
        call = "list_sprint_issue_keys"
        print(f"  Fetching issues for sprint {sprint_id}...")

        try:
            data = self.client.get(
                SPRINT_ISSUES_ENDPOINT.format(sprint_id=path_segment(sprint_id)),
                params={"fields": "key"}
            )
        except UpstreamError as e:
            raise UpstreamError(e.message, call=call) from e

        issues = data.get("issues")
        if not isinstance(issues, list):
            raise UpstreamError("Sprint issue response has no issues list", call=call)

        keys = []
        for issue in issues:
            key = issue.get("key") if isinstance(issue, dict) else None
            if not key:
                raise UpstreamError("Sprint issue response contains an issue without a key", call=call)
            keys.append(key)

        print(f"    Found {len(keys)} issues in sprint {sprint_id}")
        return keys

    def search_issues_with_subtasks(self, issue_keys: list) -> list:
        """
        Fetch summary, parent and subtasks for the given issues and their subtasks

        Subtasks are selected through their parent, so they are included even
        when they are not in the sprint themselves. Results are capped at
        SEARCH_MAX_RESULTS.

        Args:
            issue_keys: Keys returned by list_sprint_issue_keys

        Returns:
            List of raw issue dictionaries
        """
        call = "search_issues_with_subtasks"
        if not issue_keys:
            return []

        payload = {
            "jql": build_jql(issue_keys),
            "fields": SEARCH_FIELDS,
            "expand": ",".join(SEARCH_EXPAND),
            "maxResults": SEARCH_MAX_RESULTS
        }

        try:
            data = self.client.post(SEARCH_ENDPOINT, payload)
        except UpstreamError as e:
            raise UpstreamError(e.message, call=call) from e

        issues = data.get("issues")
        if not isinstance(issues, list):
            raise UpstreamError("Search response has no issues list", call=call)

        if data.get("nextPageToken") or data.get("isLast") is False:
            print(f"    Warning: search capped at {SEARCH_MAX_RESULTS} issues, remaining issues were not exported")

        print(f"    Retrieved {len(issues)} issues with subtasks")
        return issues
