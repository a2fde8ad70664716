# sleeptrack/models/sleep.py

from datetime import datetime

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String

from sleeptrack.core.db import Base


class SleepEntry(Base):
    """
    One night's (or nap's) sleep for a user, entered manually or
    reconstructed from a health export.

    (user_id, start_time, end_time) identifies an imported session, but this
    is only checked by query before insert; there is no unique constraint.
    """

    __tablename__ = "sleep_entries"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    # Naive UTC
    start_time = Column(DateTime, nullable=False, index=True)
    end_time = Column(DateTime, nullable=False)

    quality = Column(Integer, nullable=False)  # 1-5
    notes = Column(String(1024))

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    @property
    def duration(self) -> float:
        """Sleep duration in hours."""
        return (self.end_time - self.start_time).total_seconds() / 3600.0
