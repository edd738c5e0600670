import os

# Keep the test process from exporting spans to a collector that isn't there.
os.environ.setdefault("OTEL_ENABLED", "false")

from datetime import datetime, timedelta, timezone  # noqa: E402

import pytest  # noqa: E402

from feedrank.ranking.types import ContentItem, ViewerProfile  # noqa: E402

NOW = datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def make_item():
    """Factory for ContentItems created `hours_ago` before NOW."""

    def _make(item_id, author_id="author-x", hours_ago=10.0, **fields):
        fields.setdefault("visibility", "public")
        fields.setdefault("moderation_status", "approved")
        created_at = fields.pop("created_at", NOW - timedelta(hours=hours_ago))
        return ContentItem(
            item_id=item_id,
            author_id=author_id,
            created_at=created_at,
            **fields,
        )

    return _make


@pytest.fixture
def viewer():
    return ViewerProfile.build(
        "viewer-1",
        following=["author-a"],
        skills=["Python", "  Machine Learning "],
        expertise_topics=["Kubernetes", None, ""],
        saved=["saved-post"],
    )
