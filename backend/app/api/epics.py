"""Epic release burndown API endpoints."""

from flask import Blueprint, current_app, request, jsonify

from services.epic_summary import EpicSummaryService
from services.errors import JiraSearchError
from services.jira_search import JiraSearchClient, epic_link_jql
from services.models import Epic, Project
from services.settings import JiraSettings

bp = Blueprint("epics", __name__, url_prefix="/api/epics")


def get_jira_credentials():
    """Extract Jira credentials from request headers."""
    server = request.headers.get("X-Jira-Server", "").rstrip("/")
    email = request.headers.get("X-Jira-Email")
    token = request.headers.get("X-Jira-Token")

    if not all([server, email, token]):
        return None, None, None

    return server, email, token


def get_jira_settings() -> JiraSettings:
    return current_app.config.get("JIRA_SETTINGS") or JiraSettings()


def make_search_client(server, email, token) -> JiraSearchClient:
    settings = get_jira_settings()
    return JiraSearchClient(
        server, email, token,
        page_size=settings.page_size,
        timeout=settings.timeout
    )


@bp.route("/summary", methods=["POST"])
def epic_summary():
    """Compute release burndown totals for an epic.

    Requires headers:
        - X-Jira-Server: Jira server URL
        - X-Jira-Email: User's Jira email
        - X-Jira-Token: Jira API token

    Expects JSON body with:
        - epic: { name, key? }
        - project: { key?, release: { startDate, endDate }, versions: [{ name }] }

    Returns the epic with its totals, unestimated issues and completion ratio.
    """
    server, email, token = get_jira_credentials()

    if not server:
        return jsonify({"error": "Missing Jira credentials in headers"}), 401

    data = request.get_json(silent=True)

    if not data:
        return jsonify({"error": "Missing request body"}), 400

    if not isinstance(data, dict):
        return jsonify({"error": "Request body must be a JSON object"}), 400

    try:
        project = Project.from_dict(data.get("project") or {})
        epic = Epic.from_dict(data.get("epic") or {}, project)
    except (ValueError, TypeError, AttributeError) as e:
        return jsonify({"error": f"Invalid request: {e}"}), 400

    service = EpicSummaryService(make_search_client(server, email, token), get_jira_settings())
    result = service.update_epic_details(epic)

    if not result.ok:
        return jsonify({"error": result.error, "data": result.epic.to_dict()}), 502

    return jsonify({"data": result.epic.to_dict()})


@bp.route("/<path:epic_name>/issues", methods=["GET"])
def get_epic_issues(epic_name):
    """Get one page of issues linked to an epic.

    Query params:
        - start_at: Cursor to resume from (default: 0)

    Returns the raw issues plus the cursor for the next page.
    """
    server, email, token = get_jira_credentials()

    if not server:
        return jsonify({"error": "Missing Jira credentials in headers"}), 401

    start_at = request.args.get("start_at", 0, type=int)
    if start_at < 0:
        return jsonify({"error": "start_at must not be negative"}), 400

    client = make_search_client(server, email, token)

    try:
        page = client.search_page(
            epic_link_jql(epic_name),
            get_jira_settings().search_fields(),
            start_at
        )
    except JiraSearchError as e:
        return jsonify({"error": str(e)}), 502

    return jsonify({
        "data": {
            "issues": page.issues,
            "startAt": page.start_at,
            "maxResults": page.max_results,
            "total": page.total,
            "nextStartAt": None if page.is_last else page.next_start_at,
            "isLast": page.is_last
        }
    })
