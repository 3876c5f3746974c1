"""Exceptions raised while talking to Jira or aggregating its data."""

from typing import Optional


class ReleaseVitalsError(Exception):
    """Base class for release vitals failures."""


class JiraSearchError(ReleaseVitalsError):
    """The Jira search API could not be reached or returned bad data."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class EpicSummaryError(ReleaseVitalsError):
    """An issue returned by Jira could not be aggregated."""
