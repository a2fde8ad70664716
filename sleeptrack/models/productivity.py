from datetime import datetime

from sqlalchemy import (
    Column,
    Integer,
    Float,
    Date,
    DateTime,
    String,
    ForeignKey,
    UniqueConstraint,
)

from sleeptrack.core.db import Base


class ProductivityEntry(Base):
    __tablename__ = "productivity_entries"
    __table_args__ = (UniqueConstraint("user_id", "date", name="uq_productivity_user_date"),)

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    date = Column(Date, nullable=False)

    productivity_rating = Column(Integer, nullable=False)  # 1-5
    tasks_completed = Column(Integer, nullable=False)
    focus_quality = Column(Integer, nullable=False)  # 1-5
    energy_level = Column(Integer, nullable=False)  # 1-5
    work_hours = Column(Float, nullable=False)  # 0-24

    notes = Column(String(1024))

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    @property
    def efficiency_score(self) -> float:
        if not self.work_hours:
            return 0.0
        return (self.productivity_rating * self.focus_quality) / self.work_hours * 10

    @property
    def performance_score(self) -> float:
        return (self.productivity_rating + self.focus_quality + self.energy_level) / 3
