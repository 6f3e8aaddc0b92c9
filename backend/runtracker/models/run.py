"""
Run Model

Stores completed runs with their derived statistics and raw route.
"""

from datetime import datetime
from sqlalchemy import Column, String, DateTime, Float, Integer, Text, JSON
import uuid

from runtracker.models.base import Base


class Run(Base):
    """
    Model for a completed run.

    Statistics are stored alongside the route so history screens do not
    have to recompute them; they are always derived from the route.
    """

    __tablename__ = "runs"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))

    # Session start instant (UTC)
    date = Column(DateTime(timezone=True), nullable=False, index=True)

    # Derived statistics
    duration_seconds = Column(Integer, nullable=False, default=0)
    distance_km = Column(Float, nullable=False, default=0.0)
    avg_pace_sec_per_km = Column(Float, nullable=False, default=0.0)
    max_speed_kmh = Column(Float, nullable=False, default=0.0)
    splits = Column(JSON, nullable=False, default=list)
    elevation = Column(JSON, nullable=True)  # {"ascent_m", "descent_m"} or null

    # Raw samples
    route = Column(JSON, nullable=False, default=list)

    # User details
    name = Column(String(255), nullable=True)
    notes = Column(Text, nullable=True)
    unit_system = Column(String(10), nullable=False, default="metric")

    # Timestamps
    created_at = Column(DateTime, default=datetime.utcnow)

    def __repr__(self):
        return f"<Run {self.id} ({self.distance_km:.2f} km)>"
