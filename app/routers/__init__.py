# Khet Mitra - Routers Package
from app.routers import health, workers, farmers, bookings, reviews

__all__ = ["health", "workers", "farmers", "bookings", "reviews"]
