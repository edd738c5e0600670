"""
Error conditions raised by the ranking engine and its store adapters.

  ViewerNotFound      — the profile store has no such viewer; callers fall
                        back to an unpersonalized ranking.
  ProfileUnavailable  — the profile store could not be reached; same fallback.
  InvalidPagination   — page / page_size rejected before any work starts.
"""
from typing import Optional


class FeedError(Exception):
    """Base class for every error the feed pipeline raises on purpose."""


class ViewerNotFound(FeedError):
    def __init__(self, viewer_id: str) -> None:
        super().__init__(f"Viewer {viewer_id} not found")
        self.viewer_id = viewer_id


class ProfileUnavailable(FeedError):
    def __init__(self, viewer_id: str, detail: Optional[str] = None) -> None:
        message = f"Profile for viewer {viewer_id} is unavailable"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)
        self.viewer_id = viewer_id


class InvalidPagination(FeedError, ValueError):
    pass
