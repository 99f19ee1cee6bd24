"""Sprint export API endpoints"""

from flask import Blueprint, Response, current_app, jsonify, request

from sprint_exporter.errors import ExportError, UNKNOWN
from sprint_exporter.exporter import ERROR_STATUS, convert_search_results, export_sprint, is_missing
from sprint_exporter.jira.jira_fetcher import JiraClient, SprintFetcher
from sprint_exporter.jira.jira_processor import sprint_issue_rows

sprint_bp = Blueprint('sprint', __name__, url_prefix='/api/sprint')


def get_client():
    """Injected client from app config, or None to build one from the environment"""
    return current_app.config.get("JIRA_CLIENT")


def csv_response(sprint_id):
    """Turn an export result into a CSV download or a JSON error"""
    result = export_sprint(sprint_id, get_client())

    if "error" in result:
        error = result["error"]
        return jsonify({
            "error": error["message"],
            "kind": error["kind"],
            "call": error["call"]
        }), result["status"]

    return Response(result["body"], status=result["status"], headers=result["headers"])


@sprint_bp.route("/<sprint_id>/export")
def export_sprint_csv(sprint_id):
    """Download sprint issues and subtasks as CSV"""
    return csv_response(sprint_id)


@sprint_bp.route("/export")
def export_sprint_csv_by_query():
    """Download sprint issues as CSV, sprint given as ?sprintId="""
    return csv_response(request.args.get("sprintId"))


@sprint_bp.route("/<sprint_id>/issues")
def get_sprint_issues(sprint_id):
    """Get sprint details and its flattened issue rows as JSON"""
    if is_missing(sprint_id):
        return jsonify({"error": "sprint id required", "kind": "MissingInput", "call": None}), 400

    try:
        client = get_client() or JiraClient.from_env()
        fetcher = SprintFetcher(client)
        sprint = fetcher.get_sprint(sprint_id)
        issue_keys = fetcher.list_sprint_issue_keys(sprint_id)
        rows = convert_search_results(sprint_issue_rows, fetcher.search_issues_with_subtasks(issue_keys))
    except ExportError as e:
        return jsonify({"error": e.message, "kind": e.kind, "call": e.call}), ERROR_STATUS[e.kind]
    except Exception as e:
        return jsonify({"error": str(e), "kind": UNKNOWN, "call": None}), ERROR_STATUS[UNKNOWN]

    return jsonify({"sprint": sprint, "issues": rows})
