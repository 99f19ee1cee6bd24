"""Export sprint issues to CSV for download or to disk"""

import argparse
import contextlib
import sys
from pathlib import Path

from sprint_exporter.config import CSV_CONTENT_TYPE, EXPORTS_DIR
from sprint_exporter.errors import (
    MISSING_INPUT,
    UNKNOWN,
    UPSTREAM_ERROR,
    ExportError,
    MissingInputError,
    UpstreamError,
)
from sprint_exporter.jira.jira_fetcher import JiraClient, SprintFetcher
from sprint_exporter.jira.jira_processor import build_filename, issues_to_csv

ERROR_STATUS = {
    MISSING_INPUT: 400,
    UPSTREAM_ERROR: 502,
    UNKNOWN: 500,
}


def is_missing(sprint_id) -> bool:
    return sprint_id is None or str(sprint_id).strip() == ""


def convert_search_results(convert, raw_issues: list):
    """
    Apply a processor function to search results

    Search records without a key or self link are reported as an upstream
    failure of the search.
    """
    try:
        return convert(raw_issues)
    except ValueError as e:
        raise UpstreamError(
            f"Search response contains an unusable issue: {e}",
            call="search_issues_with_subtasks"
        ) from e


def fetch_sprint_csv(sprint_id, client: JiraClient = None) -> str:
    """
    Run the two JIRA reads for a sprint and return the CSV text

    Raises:
        ExportError: on missing input or upstream failure
    """
    if is_missing(sprint_id):
        raise MissingInputError("No sprint ID supplied")

    if client is None:
        client = JiraClient.from_env()

    fetcher = SprintFetcher(client)
    issue_keys = fetcher.list_sprint_issue_keys(sprint_id)
    raw_issues = fetcher.search_issues_with_subtasks(issue_keys)
    return convert_search_results(issues_to_csv, raw_issues)


def export_sprint(sprint_id, client: JiraClient = None) -> dict:
    """
    Export a sprint as a CSV download, never raising

    Args:
        sprint_id: JIRA sprint id
        client: JiraClient to use (built from the environment when omitted)

    Returns:
        {"body", "headers", "status"} on success,
        {"error": {"message", "kind", "call"}, "status"} on failure
    """
    try:
        body = fetch_sprint_csv(sprint_id, client)
    except ExportError as e:
        print(f"Error exporting sprint {sprint_id} ({e.kind}): {e.message}")
        return {"error": e.to_dict(), "status": ERROR_STATUS[e.kind]}
    except Exception as e:
        print(f"Error exporting sprint {sprint_id} ({UNKNOWN}): {e!r}")
        return {
            "error": {"message": str(e) or "Unknown error", "kind": UNKNOWN, "call": None},
            "status": ERROR_STATUS[UNKNOWN]
        }

    print(f"Exported sprint {sprint_id}")
    return {
        "body": body,
        "headers": {
            "Content-Type": CSV_CONTENT_TYPE,
            "Content-Disposition": f'attachment; filename="{build_filename(sprint_id)}"'
        },
        "status": 200
    }


def export_to_file(sprint_id, client: JiraClient = None, output_dir: Path = EXPORTS_DIR) -> Path:
    """
    Export a sprint to a CSV file

    Args:
        sprint_id: JIRA sprint id
        client: JiraClient to use (built from the environment when omitted)
        output_dir: Directory to write into

    Returns:
        Path to exported file
    """
    body = fetch_sprint_csv(sprint_id, client)

    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)
    filename = output_dir / build_filename(sprint_id)

    with open(filename, 'w', encoding='utf-8', newline='') as f:
        f.write(body)

    print(f"Exported CSV to {filename}")
    return filename


def main():
    parser = argparse.ArgumentParser(description="Export JIRA sprint issues to CSV")
    parser.add_argument("--sprint", "-s", required=True, help="JIRA sprint id")
    parser.add_argument("--output", "-o", help="Output directory (defaults to data/exports/sprints)")
    parser.add_argument("--stdout", action="store_true", help="Write CSV to stdout instead of a file")
    args = parser.parse_args()

    output_dir = Path(args.output) if args.output else EXPORTS_DIR
    try:
        if args.stdout:
            # Progress lines go to stderr so stdout carries only the CSV
            with contextlib.redirect_stdout(sys.stderr):
                body = fetch_sprint_csv(args.sprint)
            sys.stdout.write(body)
        else:
            export_to_file(args.sprint, output_dir=output_dir)
    except ExportError as e:
        print(f"Export failed ({e.kind}): {e.message}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
