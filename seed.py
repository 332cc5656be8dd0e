"""
Seed script -- populates the database with sample drivers for reviewers.

Run after migrations:
    python seed.py

Creates:
  - 3 verified drivers around Lagos (status record written, offline)
  - 2 unverified drivers, one of them halfway through the wizard
"""

import asyncio
from datetime import datetime, timezone

from sqlalchemy import text

from driver_onboarding.config import settings
from driver_onboarding.domain.entities import Location, VerificationStatus, WizardProgress
from driver_onboarding.infrastructure.database import async_session_factory, engine
from driver_onboarding.infrastructure.models import DriverModel
from driver_onboarding.infrastructure.repositories import (
    DriverRepository,
    VerificationRepository,
)


DRIVERS = [
    # Verified
    {"name": "Adebayo Ogundimu", "email": "adebayo@speed.ng", "phone": "+234 803 123 4567",
     "rating": 4.8, "lat": 6.5244, "lng": 3.3792, "verified": True},   # Victoria Island
    {"name": "Fatima Abdullahi", "email": "fatima@speed.ng", "phone": "+234 805 987 6543",
     "rating": 4.9, "lat": 6.4698, "lng": 3.6002, "verified": True},   # Lekki
    {"name": "Chinedu Okeke", "email": "chinedu@speed.ng", "phone": "+234 807 555 1212",
     "rating": 4.7, "lat": 6.6018, "lng": 3.3515, "verified": True},   # Ikeja
    # Unverified
    {"name": "Ngozi Eze", "email": "ngozi@speed.ng", "phone": "+234 809 222 3344",
     "rating": 5.0, "lat": None, "lng": None, "verified": False},
    {"name": "Tunde Bakare", "email": "tunde@speed.ng", "phone": "+234 802 777 8899",
     "rating": 5.0, "lat": None, "lng": None, "verified": False},
]


async def seed():
    async with async_session_factory() as session:
        # Check if already seeded
        result = await session.execute(text("SELECT count(*) FROM drivers"))
        if result.scalar() > 0:
            print("Database already seeded. Skipping.")
            return

        # ── Drivers ───────────────────────────────────────────────────
        driver_models = []
        for d in DRIVERS:
            m = DriverModel(
                name=d["name"], email=d["email"], phone=d["phone"], rating=d["rating"]
            )
            session.add(m)
            driver_models.append(m)
        await session.commit()
        print(f"  Created {len(driver_models)} drivers")

        roster = DriverRepository(session)
        store = VerificationRepository(session)
        now = datetime.now(timezone.utc)

        # ── Locations + verification status ───────────────────────────
        for d, m in zip(DRIVERS, driver_models):
            if d["lat"] is not None:
                await roster.set_location(m.id, Location(d["lat"], d["lng"]))
            if d["verified"]:
                await store.finalize(VerificationStatus.approved(m.id, submitted_at=now))
        print(f"  Verified {sum(d['verified'] for d in DRIVERS)} drivers "
              f"(h3 resolution {settings.h3_resolution})")

        # ── Wizard progress (one driver stopped at the documents step) ─
        halfway = driver_models[3]
        progress = WizardProgress.fresh(halfway.id, halfway.name, halfway.phone)
        progress.form_data.set_text("address", "12 Allen Avenue, Ikeja")
        progress.form_data.set_text("date_of_birth", "1990-04-12")
        progress.advance()
        for name, value in {
            "make": "Toyota",
            "model": "Corolla",
            "year": "2020",
            "color": "Silver",
            "license_plate": "LAG 456 AB",
        }.items():
            progress.form_data.set_text(name, value)
        progress.advance()
        await store.save_progress(progress)
        print("  Saved in-progress verification for 1 driver")

        print("\nSeed complete!")


async def main():
    print("Seeding database...")
    await seed()
    await engine.dispose()


if __name__ == "__main__":
    asyncio.run(main())
