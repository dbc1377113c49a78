"""
Khet Mitra - Geospatial Service
Distance between a searching farmer and a worker's home location.
"""

from geopy.distance import geodesic
import logging
from typing import Optional, Tuple

from app.models.domain import WorkerProfile

logger = logging.getLogger(__name__)


class GeospatialService:

    def calculate_distance(self, loc1: Tuple[float, float], loc2: Tuple[float, float]) -> float:
        """
        Calculate geodesic distance (in km) between two (lat, lon) tuples.
        """
        try:
            # geodesic((lat1, lon1), (lat2, lon2)).km
            return geodesic(loc1, loc2).km
        except ValueError as e:
            logger.error(f"Distance calculation error: {e}")
            return float('inf')  # Return infinite distance on error

    def distance_to_worker(
        self,
        origin: Tuple[float, float],
        worker: WorkerProfile
    ) -> Optional[float]:
        """Rounded km from `origin` to the worker, or None without coordinates."""
        if worker.latitude is None or worker.longitude is None:
            return None
        distance = self.calculate_distance(origin, (worker.latitude, worker.longitude))
        return round(distance, 1)
