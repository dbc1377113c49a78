import sys
import os

# Add the project root to the python path
sys.path.append(os.getcwd())

from datetime import date, timedelta
from app.database import SessionLocal, init_db
from app.models.domain import WorkerProfile
from app.models.models import Farmer, Worker
from app.repositories import WorkerRepository
import logging
import uuid

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger("Seeder")


def seed_data():
    logger.info("creating tables...")
    init_db()
    
    db = SessionLocal()
    try:
        # Check if data exists
        if db.query(Worker).count() > 0:
            logger.info("Data already exists. Skipping seed.")
            return

        today = date.today()

        def days(*offsets):
            return tuple(today + timedelta(days=n) for n in offsets)

        logger.info("Seeding Workers...")
        # Workers around Mandya / Mysore / Hassan / Tumkur (Karnataka)
        workers = [
            WorkerProfile(
                id=str(uuid.uuid4()), name="Ravi Kumar", phone="+91 98765 43210",
                location="Mandya, Karnataka",
                skills=("Ploughing", "Harvesting", "Irrigation", "Seeding"),
                experience_years=8, daily_rate=600, hourly_rate=75, rating=4.8, total_reviews=24,
                bio="Experienced agricultural worker with 8 years of expertise in various farming activities.",
                availability=days(0, 1), is_available=True,
                languages=("Kannada", "Hindi", "English"),
                latitude=12.5218, longitude=76.8951,
            ),
            WorkerProfile(
                id=str(uuid.uuid4()), name="Suresh Patil", phone="+91 87654 32109",
                location="Mysore, Karnataka",
                skills=("Harvesting", "Pest Control", "Machinery Operation"),
                experience_years=12, daily_rate=750, hourly_rate=90, rating=4.9, total_reviews=38,
                bio="Specialized in modern farming equipment and pest management techniques.",
                availability=days(1, 2), is_available=True,
                languages=("Kannada", "English"),
                latitude=12.2958, longitude=76.6394,
            ),
            WorkerProfile(
                id=str(uuid.uuid4()), name="Lakshmi Devi", phone="+91 76543 21098",
                location="Hassan, Karnataka",
                skills=("Weeding", "Seeding", "Fertilizer Application", "Crop Monitoring"),
                experience_years=6, daily_rate=500, hourly_rate=65, rating=4.7, total_reviews=19,
                bio="Expert in organic farming practices and crop care.",
                availability=days(0, 3), is_available=True,
                languages=("Kannada", "Hindi"),
                latitude=13.0072, longitude=76.0962,
            ),
            WorkerProfile(
                id=str(uuid.uuid4()), name="Manjunath Gowda", phone="+91 65432 10987",
                location="Tumkur, Karnataka",
                skills=("Livestock Care", "Dairy Management", "Irrigation"),
                experience_years=15, daily_rate=800, hourly_rate=100, rating=4.6, total_reviews=42,
                bio="Specialized in livestock management and dairy operations.",
                availability=days(1), is_available=False,
                languages=("Kannada", "English", "Hindi"),
                latitude=13.3379, longitude=77.1173,
            ),
        ]
        repo = WorkerRepository(db)
        for worker in workers:
            repo.save(worker)
        db.commit()

        logger.info("Seeding Farmers...")
        farmer = Farmer(name="Suresh Farmer", phone="9876543210", location="Mandya, Karnataka")
        db.add(farmer)
        db.commit()
        
        logger.info(f"Seeding Complete! {len(workers)} workers, farmer ID: {farmer.id}")

    except Exception as e:
        logger.error(f"Seeding failed: {e}")
        db.rollback()
        raise
    finally:
        db.close()

if __name__ == "__main__":
    seed_data()
