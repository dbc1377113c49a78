"""
Khet Mitra - Search Service
Loads the worker pool, adds distance from the searching farmer and runs
the ranking engine.
"""

from dataclasses import replace
from sqlalchemy.orm import Session
from typing import List, Optional, Tuple
import logging

from app.models.domain import WorkerProfile
from app.repositories import WorkerRepository
from app.services.geospatial_service import GeospatialService
from app.services.search_engine import SearchCriteria, search

logger = logging.getLogger(__name__)


class SearchService:
    """
    Worker search for farmers.

    When the farmer's position is known, each worker with coordinates gets a
    geodesic distance before filtering; workers without coordinates keep
    distance unset and are never excluded by the distance filter.
    """

    def __init__(self, db: Session):
        self.db = db
        self.workers = WorkerRepository(db)
        self.geo_service = GeospatialService()

    def with_distances(
        self,
        pool: List[WorkerProfile],
        origin: Optional[Tuple[float, float]]
    ) -> List[WorkerProfile]:
        if origin is None:
            return pool
        return [
            replace(w, distance_km=self.geo_service.distance_to_worker(origin, w))
            for w in pool
        ]

    def search(
        self,
        criteria: SearchCriteria,
        origin: Optional[Tuple[float, float]] = None
    ) -> Tuple[List[WorkerProfile], int]:
        """Returns (ranked workers, size of the pool searched)."""
        pool = self.with_distances(self.workers.list(), origin)
        results = search(pool, criteria)
        logger.info(f"Worker search matched {len(results)} of {len(pool)} workers")
        return results, len(pool)
