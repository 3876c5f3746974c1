"""Epic release burndown calculation from Jira search results."""

import logging
import math
from dataclasses import dataclass
from typing import Optional

from services.errors import EpicSummaryError, ReleaseVitalsError
from services.jira_search import JiraSearchClient, epic_link_jql
from services.models import Epic, Issue, parse_jira_date
from services.settings import JiraSettings

logger = logging.getLogger(__name__)

COMPLETED_STATUSES = {"closed", "resolved"}
COMPLETED_RESOLUTIONS = {"done", "fixed"}


@dataclass
class EpicSummaryResult:
    epic: Epic
    error: Optional[str] = None
    pages_fetched: int = 0

    @property
    def ok(self) -> bool:
        return self.error is None


class EpicSummaryService:
    """Accumulates story point totals for an epic against its project release."""

    def __init__(self, client: JiraSearchClient, settings: Optional[JiraSettings] = None):
        self.client = client
        self.settings = settings or JiraSettings()

    def _get_fields(self, issue) -> dict:
        """Return the issue's fields object, rejecting malformed issues."""
        if not isinstance(issue, dict):
            raise EpicSummaryError(f"Malformed issue in search results: {issue!r}")

        fields = issue.get("fields")
        if fields is None:
            return {}
        if not isinstance(fields, dict):
            raise EpicSummaryError(f"Issue {issue.get('key')} has malformed fields: {fields!r}")
        return fields

    def _get_object(self, issue: dict, name: str) -> Optional[dict]:
        """Return an optional object-valued field such as status or resolution."""
        value = self._get_fields(issue).get(name)
        if value is None:
            return None
        if not isinstance(value, dict):
            raise EpicSummaryError(f"Issue {issue.get('key')} has malformed {name}: {value!r}")
        return value

    def _get_fix_version_names(self, issue: dict) -> list:
        fix_versions = self._get_fields(issue).get("fixVersions") or []
        if not isinstance(fix_versions, list):
            raise EpicSummaryError(
                f"Issue {issue.get('key')} has malformed fixVersions: {fix_versions!r}"
            )

        names = []
        for fix_version in fix_versions:
            if not isinstance(fix_version, dict) or not isinstance(fix_version.get("name"), str):
                raise EpicSummaryError(
                    f"Issue {issue.get('key')} has malformed fix version: {fix_version!r}"
                )
            names.append(fix_version["name"])
        return names

    def _get_estimate(self, issue: dict) -> Optional[float]:
        """Extract story points from an issue, None when unestimated."""
        points = self._get_fields(issue).get(self.settings.story_points_field)
        if points is None:
            return None

        if isinstance(points, bool):
            estimate = None
        else:
            try:
                estimate = float(points)
            except (TypeError, ValueError):
                estimate = None

        if estimate is None or not math.isfinite(estimate):
            raise EpicSummaryError(
                f"Issue {issue.get('key')} has a non-numeric estimate: {points!r}"
            )
        return estimate

    def _get_resolution_date(self, issue: dict):
        resolution_date = self._get_fields(issue).get("resolutiondate")
        if resolution_date is not None and not isinstance(resolution_date, str):
            raise EpicSummaryError(
                f"Issue {issue.get('key')} has a malformed resolution date: {resolution_date!r}"
            )

        try:
            return parse_jira_date(resolution_date)
        except ValueError as e:
            raise EpicSummaryError(
                f"Issue {issue.get('key')} has an unparseable resolution date: {resolution_date!r}"
            ) from e

    def _get_name(self, issue: dict, name: str) -> str:
        obj = self._get_object(issue, name)
        value = obj.get("name") if obj else None
        if value is not None and not isinstance(value, str):
            raise EpicSummaryError(f"Issue {issue.get('key')} has malformed {name} name: {value!r}")
        return (value or "").lower()

    def _is_completed(self, issue: dict) -> bool:
        """Check if a resolved issue counts as completed work.

        Requires a resolution, and then either a Closed/Resolved status or a
        Done/Fixed resolution.
        """
        if not self._get_object(issue, "resolution"):
            return False

        status_name = self._get_name(issue, "status")
        resolution_name = self._get_name(issue, "resolution")

        return status_name in COMPLETED_STATUSES or resolution_name in COMPLETED_RESOLUTIONS

    def _apply_issue(self, epic: Epic, issue: dict):
        """Add one search result to the epic totals.

        Every field is read before any total changes, so a malformed issue
        leaves the epic untouched.
        """
        fields = self._get_fields(issue)
        key = issue.get("key")
        release = epic.project.release

        matches = []
        for fix_name in self._get_fix_version_names(issue):
            matching = epic.project.matching_versions(fix_name)
            if not matching:
                logger.debug(f"{key} fix version {fix_name} is not in the release scope")
            matches.extend(matching)

        if matches:
            estimate = self._get_estimate(issue)
            resolved_at = self._get_resolution_date(issue)
            completed = self._is_completed(issue)
            in_release = resolved_at is not None and release.contains(resolved_at)

            # One count per matching fix version
            for _version in matches:
                if estimate is None:
                    epic.add_unestimated_issue(Issue(key=key))

                points = estimate or 0.0
                if in_release:
                    epic.add_to_total_story_points(points)
                    epic.add_to_total_issue_count(1)

                    if completed:
                        epic.add_to_story_points_completed(points)

                # TODO: stop counting completed issues as remaining once the
                # release dashboard owners confirm the intended burndown figure
                epic.add_to_remaining_story_points(points)

        epic_key = fields.get(self.settings.epic_key_field)
        if epic_key:
            epic.key = str(epic_key)

    def epic_summary(self, epic: Epic, start_at: int = 0) -> int:
        """Accumulate totals for every issue linked to the epic.

        Walks the search pages from start_at and returns how many pages were
        read. Raises ReleaseVitalsError subclasses on remote or data errors;
        totals accumulated before the failure stay on the epic.
        """
        jql = epic_link_jql(epic.name)
        pages = 0

        for page in self.client.iter_pages(jql, self.settings.search_fields(), start_at):
            pages += 1
            for issue in page.issues:
                self._apply_issue(epic, issue)

        return pages

    def update_epic_details(self, epic: Epic) -> EpicSummaryResult:
        """Recompute the epic's release totals from Jira."""
        logger.debug(f"Request to update Jira details for epic {epic.name}")
        epic.reset_totals()
        result = EpicSummaryResult(epic=epic)

        try:
            result.pages_fetched = self.epic_summary(epic)
        except ReleaseVitalsError as e:
            logger.warning(f"Epic summary for {epic.name} failed: {e}")
            result.error = str(e)
            return result

        if epic.key:
            epic.browser_url = f"{self.client.server}/browse/{epic.key}"

        if epic.total_story_points > 0:
            epic.percentage_completed = epic.story_points_completed / epic.total_story_points
        else:
            epic.percentage_completed = 0.0

        logger.info(
            f"Epic {epic.key or epic.name}: {epic.total_issue_count} issues, "
            f"{epic.total_story_points} total points, "
            f"{epic.remaining_story_points} remaining, "
            f"{epic.story_points_completed} completed, "
            f"{len(epic.unestimated_issues)} unestimated"
        )
        if epic.unestimated_issues:
            logger.info(f"Unestimated issues: {', '.join(str(k) for k in epic.unestimated_issues)}")

        return result
