"""
SQLAlchemy ORM models  (maps to PostgreSQL + PostGIS).

Tables
------
* ``drivers``              -- driver roster: profile, online flag, live location
* ``wizard_progress``      -- one in-progress verification snapshot per driver
* ``verification_status``  -- final verification outcome, written once

Indexes
-------
* **GIST** on ``drivers.current_location`` for spatial queries.
* **B-Tree** on ``is_online`` and ``h3_cell`` for the nearby-drivers lookup.
"""

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    func,
)
from geoalchemy2 import Geometry

from .database import Base


class DriverModel(Base):
    __tablename__ = "drivers"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(120), nullable=False)
    email = Column(String(255), unique=True, nullable=False)
    phone = Column(String(32), nullable=True)
    rating = Column(Float, default=5.0)

    is_online = Column(Boolean, default=False, nullable=False)
    current_location = Column(Geometry("POINT", srid=4326), nullable=True)
    # Plain floats for fast reads (avoids ST_X / ST_Y)
    current_lat = Column(Float, nullable=True)
    current_lng = Column(Float, nullable=True)
    h3_cell = Column(String(20), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    __table_args__ = (
        Index("idx_drivers_location", "current_location", postgresql_using="gist"),
        Index("idx_drivers_online", "is_online"),
        Index("idx_drivers_cell", "h3_cell"),
    )


class WizardProgressModel(Base):
    __tablename__ = "wizard_progress"

    driver_id = Column(Integer, ForeignKey("drivers.id"), primary_key=True)
    schema_version = Column(Integer, nullable=False)
    payload = Column(JSON, nullable=False)
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    # Refetch updated_at on flush; async sessions cannot lazy-load it later.
    __mapper_args__ = {"eager_defaults": True}


class VerificationStatusModel(Base):
    __tablename__ = "verification_status"

    driver_id = Column(Integer, ForeignKey("drivers.id"), primary_key=True)
    schema_version = Column(Integer, nullable=False)
    is_verified = Column(Boolean, default=False, nullable=False)
    completed_steps = Column(JSON, nullable=False)
    submitted_at = Column(DateTime(timezone=True), nullable=True)
    completed_at = Column(DateTime(timezone=True), nullable=True)
