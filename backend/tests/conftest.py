"""Shared fixtures for Release Vitals tests."""

import pytest
from datetime import datetime, timezone
import sys
import os

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from services.models import Epic, Project, Release, Version


@pytest.fixture
def mock_jira_credentials():
    """Mock Jira credentials for testing."""
    return {
        "server": "https://test.atlassian.net",
        "email": "test@example.com",
        "token": "test-token-123"
    }


@pytest.fixture
def jira_headers(mock_jira_credentials):
    """Credential headers as sent by the frontend."""
    return {
        "X-Jira-Server": mock_jira_credentials["server"],
        "X-Jira-Email": mock_jira_credentials["email"],
        "X-Jira-Token": mock_jira_credentials["token"]
    }


@pytest.fixture
def sample_release():
    """Release window covering Q1 2024."""
    return Release(
        start_date=datetime(2024, 1, 1, tzinfo=timezone.utc),
        end_date=datetime(2024, 3, 31, tzinfo=timezone.utc)
    )


@pytest.fixture
def sample_project(sample_release):
    """Project with two release versions."""
    return Project(
        release=sample_release,
        versions=[Version(name="5.7"), Version(name="5.7.1")],
        key="MGNL"
    )


@pytest.fixture
def sample_epic(sample_project):
    """Epic with no totals accumulated yet."""
    return Epic(name="Release Vitals", project=sample_project)


@pytest.fixture
def make_issue():
    """Factory for Jira search result issues."""
    def _make_issue(key, fix_versions=("5.7",), estimate=None, status="Open",
                    resolution=None, resolutiondate=None, epic_key="MGNL-100"):
        fields = {
            "fixVersions": [{"name": name} for name in fix_versions],
            "project": {"key": "MGNL"},
            "customfield_10246": epic_key,
            "status": {"name": status},
            "resolution": {"name": resolution} if resolution else None,
            "resolutiondate": resolutiondate
        }
        if estimate is not None:
            fields["customfield_10242"] = estimate
        return {"key": key, "fields": fields}

    return _make_issue


@pytest.fixture
def search_response():
    """Factory for Jira search API response bodies."""
    def _search_response(issues, total=None, start_at=0, max_results=50):
        return {
            "startAt": start_at,
            "maxResults": max_results,
            "total": len(issues) if total is None else total,
            "issues": issues
        }

    return _search_response


@pytest.fixture
def sample_issue_closed(make_issue):
    """Estimated issue closed and fixed inside the release window."""
    return make_issue(
        "MGNL-101", estimate=5.0, status="Closed", resolution="Fixed",
        resolutiondate="2024-02-10T11:51:43.000+0100"
    )


@pytest.fixture
def sample_issue_open(make_issue):
    """Estimated issue still open."""
    return make_issue("MGNL-102", estimate=3.0, status="In Progress")


@pytest.fixture
def sample_issue_unestimated(make_issue):
    """Unestimated issue resolved inside the release window."""
    return make_issue(
        "MGNL-103", status="Resolved", resolution="Done",
        resolutiondate="2024-03-01T09:00:00.000+0000"
    )


@pytest.fixture
def sample_issue_other_release(make_issue):
    """Issue targeting a version outside the project."""
    return make_issue(
        "MGNL-104", fix_versions=("6.0",), estimate=8.0, status="Closed",
        resolution="Fixed", resolutiondate="2024-02-01T10:00:00.000+0000"
    )


@pytest.fixture
def app(tmp_path):
    """Create Flask test app."""
    from app import create_app
    app = create_app(config_path=str(tmp_path / "jira-config.json"))
    app.config['TESTING'] = True
    return app


@pytest.fixture
def client(app):
    """Create Flask test client."""
    return app.test_client()
