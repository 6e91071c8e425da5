"""System status endpoints."""

from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from fintrack.core.database import get_db
from fintrack.schemas.system import SyncStatusResponse
from fintrack.services.sync_status_service import get_sync_statuses

router = APIRouter()


@router.get("/sync-status", response_model=List[SyncStatusResponse])
async def list_sync_status(db: AsyncSession = Depends(get_db)) -> List[SyncStatusResponse]:
    """Last run of every sync job."""
    statuses = await get_sync_statuses(db)
    return [SyncStatusResponse.model_validate(s) for s in statuses]
