"""
Deterministic ordering and offset pagination of scored candidates.

Order: score desc → created_at desc → item id asc. The last key only
matters for items with equal score and equal creation time; with it the
order is total, so repeated calls over the same snapshot page identically.
"""
import math
from dataclasses import dataclass
from typing import Iterable, Sequence

from feedrank.errors import InvalidPagination
from feedrank.ranking.types import ScoredCandidate


@dataclass(frozen=True)
class Pagination:
    page: int
    page_size: int

    def __post_init__(self) -> None:
        for name in ("page", "page_size"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int):
                raise InvalidPagination(f"{name} must be an integer, got {value!r}")
            if value < 1:
                raise InvalidPagination(f"{name} must be >= 1, got {value}")

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.page_size


def ranking_key(candidate: ScoredCandidate) -> tuple:
    created_ts = candidate.item.created_ts
    return (
        -candidate.score,
        -created_ts if created_ts is not None else math.inf,
        str(candidate.item.item_id),
    )


class Ranker:
    def rank(self, candidates: Iterable[ScoredCandidate]) -> list[ScoredCandidate]:
        return sorted(candidates, key=ranking_key)

    def paginate(
        self,
        ranked: Sequence[ScoredCandidate],
        pagination: Pagination,
    ) -> list[ScoredCandidate]:
        start = pagination.offset
        return list(ranked[start : start + pagination.page_size])
