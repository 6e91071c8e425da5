"""System status schemas."""

from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import BaseModel

from fintrack.models.sync_status import SyncOutcome


class SyncStatusResponse(BaseModel):
    job_name: str
    last_run_at: datetime
    status: SyncOutcome
    error: Optional[str] = None
    stats: Optional[Dict[str, Any]] = None

    class Config:
        from_attributes = True
