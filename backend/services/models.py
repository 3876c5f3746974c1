"""Domain objects for epic release burndown.

Built from the camelCase JSON the API accepts and rendered back to it.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional


def parse_jira_date(date_str: Optional[str]) -> Optional[datetime]:
    """Parse a Jira or ISO date string into a timezone-aware datetime.

    Jira formats: "2018-11-15T11:51:43.000+0100" or "2024-10-31T12:11:56.289Z".
    Values without an offset are taken as UTC.

    Returns None for empty input, raises ValueError when nothing matches.
    """
    if not date_str:
        return None

    value = date_str.strip()
    if value.endswith("Z"):
        value = value[:-1] + "+0000"

    formats = [
        "%Y-%m-%dT%H:%M:%S.%f%z",  # With milliseconds and timezone
        "%Y-%m-%dT%H:%M:%S%z",      # Without milliseconds, with timezone
        "%Y-%m-%dT%H:%M:%S.%f",     # With milliseconds, no timezone
        "%Y-%m-%dT%H:%M:%S",        # Basic ISO format
        "%Y-%m-%d"                   # Date only
    ]

    for fmt in formats:
        try:
            parsed = datetime.strptime(value, fmt)
        except ValueError:
            continue
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=timezone.utc)
        return parsed

    raise ValueError(f"Unrecognized date format: {date_str!r}")


def _require(data: dict, key: str):
    value = data.get(key)
    if value is None or value == "":
        raise ValueError(f"Missing required field: {key}")
    return value


@dataclass
class Release:
    start_date: datetime
    end_date: datetime

    def contains(self, moment: datetime) -> bool:
        """True when moment falls strictly between start and end."""
        return self.start_date < moment < self.end_date

    @classmethod
    def from_dict(cls, data: dict) -> "Release":
        start = parse_jira_date(_require(data, "startDate"))
        end = parse_jira_date(_require(data, "endDate"))
        if end < start:
            raise ValueError("Release endDate is before startDate")
        return cls(start_date=start, end_date=end)

    def to_dict(self) -> dict:
        return {
            "startDate": self.start_date.isoformat(),
            "endDate": self.end_date.isoformat()
        }


@dataclass
class Version:
    name: str


@dataclass
class Project:
    release: Release
    versions: list = field(default_factory=list)
    key: Optional[str] = None

    def matching_versions(self, name: Optional[str]) -> list:
        """Project versions whose names match name, ignoring case."""
        if not name:
            return []
        wanted = name.lower()
        return [version for version in self.versions if version.name.lower() == wanted]

    def has_version(self, name: Optional[str]) -> bool:
        return bool(self.matching_versions(name))

    @classmethod
    def from_dict(cls, data: dict) -> "Project":
        versions = []
        for entry in data.get("versions", []):
            # Versions may be sent as plain names or as {"name": ...}
            name = entry if isinstance(entry, str) else _require(entry, "name")
            versions.append(Version(name=str(name)))

        return cls(
            release=Release.from_dict(_require(data, "release")),
            versions=versions,
            key=data.get("key")
        )

    def to_dict(self) -> dict:
        return {
            "key": self.key,
            "release": self.release.to_dict(),
            "versions": [{"name": v.name} for v in self.versions]
        }


@dataclass
class Issue:
    key: str
    estimate: Optional[float] = None

    def to_dict(self) -> dict:
        return {"key": self.key, "estimate": self.estimate}


@dataclass
class Epic:
    """An epic and its running release totals."""

    name: str
    project: Project
    key: Optional[str] = None
    total_issue_count: int = 0
    total_story_points: float = 0.0
    remaining_story_points: float = 0.0
    story_points_completed: float = 0.0
    unestimated_issues: dict = field(default_factory=dict)
    percentage_completed: Optional[float] = None
    browser_url: Optional[str] = None

    def add_to_total_story_points(self, points: float):
        self.total_story_points += points

    def add_to_total_issue_count(self, count: int):
        self.total_issue_count += count

    def add_to_remaining_story_points(self, points: float):
        self.remaining_story_points += points

    def add_to_story_points_completed(self, points: float):
        self.story_points_completed += points

    def add_unestimated_issue(self, issue: Issue):
        # Keyed by issue key, so repeat matches keep one entry
        self.unestimated_issues.setdefault(issue.key, issue)

    def reset_totals(self):
        self.total_issue_count = 0
        self.total_story_points = 0.0
        self.remaining_story_points = 0.0
        self.story_points_completed = 0.0
        self.unestimated_issues = {}
        self.percentage_completed = None

    @classmethod
    def from_dict(cls, data: dict, project: Project) -> "Epic":
        return cls(
            name=str(_require(data, "name")),
            project=project,
            key=data.get("key")
        )

    def to_dict(self) -> dict:
        return {
            "key": self.key,
            "name": self.name,
            "project": self.project.to_dict(),
            "totalIssueCount": self.total_issue_count,
            "totalStoryPoints": self.total_story_points,
            "remainingStoryPoints": self.remaining_story_points,
            "storyPointsCompleted": self.story_points_completed,
            "percentageCompleted": self.percentage_completed,
            "unestimatedIssues": [i.key for i in self.unestimated_issues.values()],
            "epicBrowserUrl": self.browser_url
        }
