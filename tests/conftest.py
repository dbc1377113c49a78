import os

# Point settings at an in-memory store before the app modules are imported
os.environ.setdefault("DATABASE_URL", "sqlite://")

from datetime import datetime, timedelta, timezone
import uuid

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker

from app.database import Base, build_engine, get_db, init_db
from app.main import app
from app.models.domain import WorkerProfile
from app.models.models import Farmer
from app.repositories import FarmerRepository, WorkerRepository

engine = build_engine("sqlite://")
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


# --------------------------------------------------------------------
# ⚙️ Fixtures
# --------------------------------------------------------------------
@pytest.fixture
def today():
    return datetime.now(timezone.utc).date()


@pytest.fixture
def future_days(today):
    """Seven open days starting tomorrow."""
    return tuple(today + timedelta(days=n) for n in range(1, 8))


@pytest.fixture
def db_session():
    init_db(bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def client(db_session):
    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def make_worker(db_session, future_days):
    """Store a worker open on every day of `future_days` unless told otherwise."""
    def _make(**overrides):
        fields = dict(
            id=str(uuid.uuid4()),
            name="Ravi Kumar",
            phone=f"+91 9{uuid.uuid4().int % 10**9:09d}",
            location="Mandya, Karnataka",
            skills=("Ploughing", "Harvesting"),
            experience_years=8,
            daily_rate=600,
            hourly_rate=75,
            rating=4.8,
            total_reviews=24,
            availability=future_days,
        )
        fields.update(overrides)
        worker = WorkerProfile(**fields)
        WorkerRepository(db_session).save(worker)
        db_session.commit()
        return worker
    return _make


@pytest.fixture
def farmer(db_session):
    record = Farmer(name="Suresh Farmer", phone="9876543210", location="Mandya, Karnataka")
    FarmerRepository(db_session).save(record)
    db_session.commit()
    return record
