"""Tests for JIRA client and sprint fetcher"""

import unittest
from unittest import mock

import requests

from sprint_exporter.errors import ConfigurationError, UpstreamError
from sprint_exporter.jira import jira_fetcher
from sprint_exporter.jira.jira_fetcher import JiraClient, SprintFetcher, build_jql, path_segment


def fake_response(status_code=200, payload=None, json_error=False):
    response = mock.Mock(spec=requests.Response)
    response.status_code = status_code
    if status_code >= 400:
        response.raise_for_status.side_effect = requests.exceptions.HTTPError(f"{status_code} Error")
    if json_error:
        response.json.side_effect = ValueError("Expecting value")
    else:
        response.json.return_value = payload
    return response


class TestJiraClient(unittest.TestCase):
    """Test HTTP transport and error classification"""

    def setUp(self):
        self.client = JiraClient("https://x.atlassian.net/", "me@example.com", "token", timeout=5)

    @mock.patch("sprint_exporter.jira.jira_fetcher.requests.get")
    def test_get_returns_json(self, get):
        get.return_value = fake_response(payload={"issues": []})

        result = self.client.get("/rest/agile/1.0/sprint/1/issue", params={"fields": "key"})

        self.assertEqual(result, {"issues": []})
        get.assert_called_once_with(
            "https://x.atlassian.net/rest/agile/1.0/sprint/1/issue",
            auth=("me@example.com", "token"),
            headers=self.client.headers,
            params={"fields": "key"},
            timeout=5
        )

    @mock.patch("sprint_exporter.jira.jira_fetcher.requests.get")
    def test_error_status_raises_upstream_error(self, get):
        get.return_value = fake_response(status_code=404)

        with self.assertRaises(UpstreamError) as ctx:
            self.client.get("/rest/agile/1.0/sprint/1/issue")

        self.assertIn("404", ctx.exception.message)
        self.assertEqual(ctx.exception.call, "/rest/agile/1.0/sprint/1/issue")

    @mock.patch("sprint_exporter.jira.jira_fetcher.requests.post")
    def test_malformed_json_raises_upstream_error(self, post):
        post.return_value = fake_response(json_error=True)

        with self.assertRaises(UpstreamError):
            self.client.post("/rest/api/3/search/jql", {"jql": "key IN (A-1)"})

    @mock.patch("sprint_exporter.jira.jira_fetcher.requests.post")
    def test_connection_error_raises_upstream_error(self, post):
        post.side_effect = requests.exceptions.ConnectionError("refused")

        with self.assertRaises(UpstreamError):
            self.client.post("/rest/api/3/search/jql", {})

    def test_from_env_requires_credentials(self):
        with mock.patch.object(jira_fetcher, "JIRA_EMAIL", None):
            with self.assertRaises(ConfigurationError):
                JiraClient.from_env()

    def test_from_env_builds_client(self):
        with mock.patch.multiple(
            jira_fetcher,
            JIRA_BASE_URL="https://x.atlassian.net",
            JIRA_EMAIL="me@example.com",
            JIRA_API_TOKEN="token"
        ):
            client = JiraClient.from_env()

        self.assertEqual(client.base_url, "https://x.atlassian.net")
        self.assertEqual(client.auth, ("me@example.com", "token"))


class TestSprintFetcher(unittest.TestCase):
    """Test the two-stage sprint fetch"""

    def setUp(self):
        self.client = mock.Mock(spec=JiraClient)
        self.fetcher = SprintFetcher(self.client)

    def test_build_jql(self):
        self.assertEqual(build_jql(["A-1", "A-2"]), "key IN (A-1,A-2) OR parent IN (A-1,A-2)")

    def test_list_sprint_issue_keys(self):
        self.client.get.return_value = {"issues": [{"key": "A-1"}, {"key": "A-2"}]}

        keys = self.fetcher.list_sprint_issue_keys(42)

        self.assertEqual(keys, ["A-1", "A-2"])
        self.client.get.assert_called_once_with("/rest/agile/1.0/sprint/42/issue", params={"fields": "key"})

    def test_list_sprint_issue_keys_malformed_body(self):
        self.client.get.return_value = {"values": []}

        with self.assertRaises(UpstreamError) as ctx:
            self.fetcher.list_sprint_issue_keys(42)

        self.assertEqual(ctx.exception.call, "list_sprint_issue_keys")

    def test_list_sprint_issue_keys_identifies_failed_call(self):
        self.client.get.side_effect = UpstreamError("GET failed", call="/rest/agile/1.0/sprint/42/issue")

        with self.assertRaises(UpstreamError) as ctx:
            self.fetcher.list_sprint_issue_keys(42)

        self.assertEqual(ctx.exception.call, "list_sprint_issue_keys")

    def test_search_skips_request_for_no_keys(self):
        self.assertEqual(self.fetcher.search_issues_with_subtasks([]), [])
        self.client.post.assert_not_called()

    def test_search_issues_with_subtasks(self):
        issues = [{"key": "A-1", "self": "https://x.atlassian.net/rest/api/3/issue/1", "fields": {}}]
        self.client.post.return_value = {"issues": issues}

        result = self.fetcher.search_issues_with_subtasks(["A-1"])

        self.assertEqual(result, issues)
        self.client.post.assert_called_once_with("/rest/api/3/search/jql", {
            "jql": "key IN (A-1) OR parent IN (A-1)",
            "fields": ["summary", "parent"],
            "expand": "subtasks",
            "maxResults": 100
        })

    def test_search_truncated_results_are_returned(self):
        self.client.post.return_value = {"issues": [{"key": "A-1"}], "nextPageToken": "abc"}

        with mock.patch("builtins.print") as printed:
            result = self.fetcher.search_issues_with_subtasks(["A-1"])

        self.assertEqual(len(result), 1)
        self.client.post.assert_called_once()
        messages = [" ".join(str(arg) for arg in call.args) for call in printed.call_args_list]
        self.assertTrue(any("capped at 100" in message for message in messages))

    def test_search_complete_results_print_no_warning(self):
        self.client.post.return_value = {"issues": [{"key": "A-1"}], "isLast": True}

        with mock.patch("builtins.print") as printed:
            self.fetcher.search_issues_with_subtasks(["A-1"])

        messages = [" ".join(str(arg) for arg in call.args) for call in printed.call_args_list]
        self.assertFalse(any("capped" in message for message in messages))

    def test_sprint_id_is_escaped_as_one_path_segment(self):
        self.client.get.return_value = {"issues": []}

        self.fetcher.list_sprint_issue_keys('1/../../../api/3/myself?x="y')

        endpoint = self.client.get.call_args.args[0]
        self.assertEqual(endpoint, "/rest/agile/1.0/sprint/1%2F..%2F..%2F..%2Fapi%2F3%2Fmyself%3Fx%3D%22y/issue")

    def test_path_segment(self):
        self.assertEqual(path_segment(42), "42")
        self.assertEqual(path_segment("a/b?c"), "a%2Fb%3Fc")

    def test_search_malformed_body(self):
        self.client.post.return_value = {"errorMessages": ["bad jql"]}

        with self.assertRaises(UpstreamError) as ctx:
            self.fetcher.search_issues_with_subtasks(["A-1"])

        self.assertEqual(ctx.exception.call, "search_issues_with_subtasks")

    def test_get_sprint(self):
        self.client.get.return_value = {"id": 42, "name": "Sprint 7", "state": "active", "goal": ""}

        sprint = self.fetcher.get_sprint(42)

        self.assertEqual(sprint, {"id": 42, "name": "Sprint 7", "state": "active"})
        self.client.get.assert_called_once_with("/rest/agile/1.0/sprint/42")


if __name__ == "__main__":
    unittest.main()
