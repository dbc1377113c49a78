"""
Khet Mitra - FastAPI Application Entry Point
Booking and matching engine connecting farmers with farm workers
"""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager
import logging

from app.config import get_settings
from app.database import init_db
from app.routers import health, workers, farmers, bookings, reviews

settings = get_settings()

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s"
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.
    Runs startup and shutdown logic.
    """
    # Startup
    logger.info(f"🚀 Starting {settings.app_name} v{settings.app_version}")
    logger.info(f"📍 Environment: {settings.app_env}")
    init_db()
    yield
    # Shutdown
    logger.info("👋 Shutting down Khet Mitra API")


# Create FastAPI app
app = FastAPI(
    title=settings.app_name,
    description="""
## Khet Mitra API

Connects farmers who need agricultural labour with workers who offer it.

### Modules

- **Search & Ranking** - Filter and sort workers by skill, price, rating and distance
- **Pricing** - Daily and hourly quotes, group totals
- **Bookings** - Request → confirm → complete lifecycle, group bookings
- **Reviews** - One review per completed booking, one worker response per review
- **Payments** - UPI / PhonePe / Google Pay payment intents

### Key Features

- 🔒 Compare-and-swap status updates, so racing writers get a clear `stale_state`
- 🧾 Hash-chained booking history for every lifecycle event
    """,
    version=settings.app_version,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan
)

# CORS middleware for cross-origin requests
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins.split(","),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Register API routers
app.include_router(health.router, tags=["Health"])
app.include_router(
    workers.router,
    prefix=settings.api_prefix,
    tags=["Workers, Search & Quotes"]
)
app.include_router(
    farmers.router,
    prefix=settings.api_prefix,
    tags=["Farmers"]
)
app.include_router(
    bookings.router,
    prefix=settings.api_prefix,
    tags=["Bookings & Group Bookings"]
)
app.include_router(
    reviews.router,
    prefix=settings.api_prefix,
    tags=["Reviews & Ratings"]
)


@app.get("/", tags=["Root"])
async def root():
    """
    Welcome endpoint with API information.
    """
    return {
        "message": "🙏 Welcome to Khet Mitra API",
        "tagline": "The right hands for every field",
        "version": settings.app_version,
        "docs": "/docs",
        "health": "/health"
    }
