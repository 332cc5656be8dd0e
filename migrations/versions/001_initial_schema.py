"""Initial schema: PostGIS extension, driver roster and verification tables.

Revision ID: 001
Create Date: 2026-10-19
"""

from alembic import op
import sqlalchemy as sa
from geoalchemy2 import Geometry


revision = "001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    # Enable PostGIS extension
    op.execute("CREATE EXTENSION IF NOT EXISTS postgis")

    # ── drivers ───────────────────────────────────────────────────────
    op.create_table(
        "drivers",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(120), nullable=False),
        sa.Column("email", sa.String(255), unique=True, nullable=False),
        sa.Column("phone", sa.String(32), nullable=True),
        sa.Column("rating", sa.Float, default=5.0),
        sa.Column("is_online", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column(
            "current_location", Geometry("POINT", srid=4326), nullable=True
        ),
        sa.Column("current_lat", sa.Float, nullable=True),
        sa.Column("current_lng", sa.Float, nullable=True),
        sa.Column("h3_cell", sa.String(20), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
        ),
    )
    op.create_index(
        "idx_drivers_location",
        "drivers",
        ["current_location"],
        postgresql_using="gist",
    )
    op.create_index("idx_drivers_online", "drivers", ["is_online"])
    op.create_index("idx_drivers_cell", "drivers", ["h3_cell"])

    # ── wizard_progress ───────────────────────────────────────────────
    op.create_table(
        "wizard_progress",
        sa.Column(
            "driver_id",
            sa.Integer,
            sa.ForeignKey("drivers.id"),
            primary_key=True,
        ),
        sa.Column("schema_version", sa.Integer, nullable=False),
        sa.Column("payload", sa.JSON, nullable=False),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
        ),
    )

    # ── verification_status ───────────────────────────────────────────
    op.create_table(
        "verification_status",
        sa.Column(
            "driver_id",
            sa.Integer,
            sa.ForeignKey("drivers.id"),
            primary_key=True,
        ),
        sa.Column("schema_version", sa.Integer, nullable=False),
        sa.Column("is_verified", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("completed_steps", sa.JSON, nullable=False),
        sa.Column("submitted_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
    )


def downgrade() -> None:
    op.drop_table("verification_status")
    op.drop_table("wizard_progress")
    op.drop_table("drivers")
