"""
Khet Mitra - Search & Ranking Engine
Filters a worker pool against farmer criteria and ranks the survivors.

FILTERS (a worker must pass all):
    - Query: case-insensitive substring of name, location or any skill
    - Skills: holds at least one of the requested skills
    - Price: daily rate inside [price_min, price_max]
    - Rating: rating >= min_rating
    - Distance: distance <= max_distance (workers without a distance pass)
    - Availability: is_available flag, when available_only is set

RANKING:
    Stable sort on one key (rating, price, experience, distance), so equal
    keys keep pool order and repeated searches return the same sequence.
"""

from dataclasses import dataclass, replace
from enum import Enum
from typing import Iterable, List, Sequence, Tuple
import logging

from app.models.domain import WorkerProfile

logger = logging.getLogger(__name__)

# Reset values of the farmer's filter panel
DEFAULT_PRICE_RANGE: Tuple[float, float] = (0, 1000)
DEFAULT_MAX_DISTANCE_KM = 50


class SortKey(str, Enum):
    RATING = "rating"
    PRICE = "price"
    EXPERIENCE = "experience"
    DISTANCE = "distance"


class SortOrder(str, Enum):
    ASC = "asc"
    DESC = "desc"


@dataclass(frozen=True)
class SearchCriteria:
    """One search session's filters. Replace wholesale, never mutate."""
    query: str = ""
    skills: Tuple[str, ...] = ()
    price_min: float = DEFAULT_PRICE_RANGE[0]
    price_max: float = DEFAULT_PRICE_RANGE[1]
    min_rating: float = 0
    max_distance: float = DEFAULT_MAX_DISTANCE_KM
    available_only: bool = False
    sort_by: SortKey = SortKey.RATING
    sort_order: SortOrder = SortOrder.DESC

    @classmethod
    def empty(cls) -> "SearchCriteria":
        return cls()

    def with_changes(self, **changes) -> "SearchCriteria":
        return replace(self, **changes)


def _normalize(tag: str) -> str:
    return tag.strip().lower()


def _matches_query(worker: WorkerProfile, query: str) -> bool:
    q = query.strip().lower()
    if not q:
        return True
    return (
        q in worker.name.lower()
        or q in worker.location.lower()
        or any(q in skill.lower() for skill in worker.skills)
    )


def _has_any_skill(worker: WorkerProfile, skills: Sequence[str]) -> bool:
    if not skills:
        return True
    wanted = {_normalize(s) for s in skills}
    return any(_normalize(s) in wanted for s in worker.skills)


def matches(worker: WorkerProfile, criteria: SearchCriteria) -> bool:
    """Filter predicate: True iff the worker passes every active filter."""
    if not _matches_query(worker, criteria.query):
        return False
    if not _has_any_skill(worker, criteria.skills):
        return False
    if not criteria.price_min <= worker.daily_rate <= criteria.price_max:
        return False
    if worker.rating < criteria.min_rating:
        return False
    if worker.distance_km is not None and worker.distance_km > criteria.max_distance:
        return False
    if criteria.available_only and not worker.is_available:
        return False
    return True


def _sort_value(worker: WorkerProfile, key: SortKey) -> float:
    if key == SortKey.RATING:
        return worker.rating
    if key == SortKey.PRICE:
        return worker.daily_rate
    if key == SortKey.EXPERIENCE:
        return worker.experience_years
    return worker.distance_km or 0


def search(pool: Iterable[WorkerProfile], criteria: SearchCriteria) -> List[WorkerProfile]:
    """
    Filter and rank a worker pool.

    The pool is never modified; a new list is returned.
    """
    key = SortKey(criteria.sort_by)
    descending = SortOrder(criteria.sort_order) == SortOrder.DESC

    survivors = [w for w in pool if matches(w, criteria)]
    # sorted() is stable in both directions
    ranked = sorted(survivors, key=lambda w: _sort_value(w, key), reverse=descending)

    logger.debug(
        f"Search '{criteria.query}' kept {len(ranked)} workers "
        f"sorted by {key.value} {'desc' if descending else 'asc'}"
    )
    return ranked
