"""Jira field and paging settings."""

from dataclasses import dataclass

DEFAULT_STORY_POINTS_FIELD = "customfield_10242"
DEFAULT_EPIC_KEY_FIELD = "customfield_10246"
DEFAULT_PAGE_SIZE = 50
DEFAULT_TIMEOUT = 30


@dataclass
class JiraSettings:
    story_points_field: str = DEFAULT_STORY_POINTS_FIELD
    epic_key_field: str = DEFAULT_EPIC_KEY_FIELD
    page_size: int = DEFAULT_PAGE_SIZE
    timeout: float = DEFAULT_TIMEOUT

    @classmethod
    def from_dict(cls, data: dict) -> "JiraSettings":
        """Build settings from the camelCase config file contents.

        Unknown keys are ignored, missing ones keep their defaults.
        """
        page_size = int(data.get("pageSize", DEFAULT_PAGE_SIZE))
        if page_size <= 0:
            raise ValueError("pageSize must be positive")

        return cls(
            story_points_field=data.get("storyPointsField", DEFAULT_STORY_POINTS_FIELD),
            epic_key_field=data.get("epicKeyField", DEFAULT_EPIC_KEY_FIELD),
            page_size=page_size,
            timeout=float(data.get("timeout", DEFAULT_TIMEOUT))
        )

    def search_fields(self) -> list:
        """Fields requested for every issue linked to an epic."""
        return [
            self.story_points_field, "fixVersions", "project",
            self.epic_key_field, "status", "resolutiondate", "resolution"
        ]
