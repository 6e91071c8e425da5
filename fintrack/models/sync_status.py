"""Per-job health record written at the end of every sync run."""

import enum

from sqlalchemy import JSON, Column, DateTime, Enum, String, Text

from fintrack.models import Base


class SyncOutcome(str, enum.Enum):
    SUCCESS = "success"
    ERROR = "error"


class SyncStatus(Base):
    __tablename__ = "sync_status"

    job_name = Column(String(64), primary_key=True)
    last_run_at = Column(DateTime(timezone=True), nullable=False)
    status = Column(
        Enum(SyncOutcome, values_callable=lambda e: [m.value for m in e]),
        nullable=False,
    )
    error = Column(Text, nullable=True)
    stats = Column(JSON, nullable=True)
