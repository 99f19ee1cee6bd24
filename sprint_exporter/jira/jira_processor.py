"""Flatten JIRA issues and their subtasks into CSV rows"""

import csv
import io
import re

from sprint_exporter.config import API_PATH_MARKER, CSV_HEADER, EXPORT_FILENAME


def browse_url(self_url: str, key: str) -> str:
    """
    Derive the browsable URL of an issue from its REST "self" link

    Args:
        self_url: e.g. https://x.atlassian.net/rest/api/3/issue/10001
        key: Issue key (e.g., PROJ-1)

    Returns:
        e.g. https://x.atlassian.net/browse/PROJ-1
    """
    index = self_url.find(API_PATH_MARKER)
    prefix = self_url[:index] if index >= 0 else self_url
    return f"{prefix}/browse/{key}"


def _require(raw: dict, name: str):
    """Return a required issue attribute, raising ValueError when it is absent"""
    value = raw.get(name)
    if not value:
        raise ValueError(f"Issue is missing '{name}': {raw!r}")
    return value


def parse_issue(raw: dict) -> dict:
    """
    Transform a raw search result into a simplified issue record

    Args:
        raw: Issue from the JIRA search API

    Returns:
        Dictionary with key, summary, parent_key, self_url and subtasks
    """
    fields = raw.get("fields") or {}
    parent = fields.get("parent") or {}

    subtasks = []
    for subtask in fields.get("subtasks") or []:
        subtask_fields = subtask.get("fields") or {}
        subtasks.append({
            "key": _require(subtask, "key"),
            "summary": subtask_fields.get("summary") or "",
            "self_url": _require(subtask, "self")
        })

    return {
        "key": _require(raw, "key"),
        "summary": fields.get("summary") or "",
        "parent_key": parent.get("key"),
        "self_url": _require(raw, "self"),
        "subtasks": subtasks
    }


def flatten_issues(issues: list) -> list:
    """
    Flatten issue records into rows, each issue followed by its subtasks

    Issues that are already listed as a subtask of another issue in the set
    are only emitted under that parent.

    Args:
        issues: Issue records from parse_issue

    Returns:
        List of tuples: (ticket_id, parent_ticket_id, url, title)
    """
    nested_keys = {subtask["key"] for issue in issues for subtask in issue["subtasks"]}

    rows = []
    for issue in issues:
        if issue["key"] in nested_keys:
            continue

        rows.append((
            issue["key"],
            "",
            browse_url(issue["self_url"], issue["key"]),
            issue["summary"]
        ))

        for subtask in issue["subtasks"]:
            rows.append((
                subtask["key"],
                issue["key"],
                browse_url(subtask["self_url"], subtask["key"]),
                subtask["summary"]
            ))

    return rows


def render_csv(rows: list) -> str:
    """
    Render rows as CSV text

    The header is written as-is; every data field is quoted, with embedded
    double quotes doubled. Each line ends with a newline.
    """
    output = io.StringIO()
    output.write(",".join(CSV_HEADER) + "\n")

    writer = csv.writer(output, quoting=csv.QUOTE_ALL, lineterminator="\n")
    writer.writerows(rows)

    return output.getvalue()


def issues_to_csv(raw_issues: list) -> str:
    """Convert raw search results into CSV text"""
    issues = [parse_issue(raw) for raw in raw_issues]
    return render_csv(flatten_issues(issues))


def sprint_issue_rows(raw_issues: list) -> list:
    """Convert raw search results into row dictionaries for JSON responses"""
    issues = [parse_issue(raw) for raw in raw_issues]
    return [
        {
            "ticket_id": ticket_id,
            "parent_ticket_id": parent_ticket_id,
            "url": url,
            "title": title
        }
        for ticket_id, parent_ticket_id, url, title in flatten_issues(issues)
    ]


def build_filename(sprint_id) -> str:
    """Suggested download filename for a sprint export, with unsafe id characters replaced"""
    safe_id = re.sub(r"[^A-Za-z0-9_-]", "_", str(sprint_id))
    return EXPORT_FILENAME.format(sprint_id=safe_id)
