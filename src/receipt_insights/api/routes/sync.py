from typing import Annotated

from fastapi import APIRouter, Depends

from receipt_insights.api.dependencies import get_sync
from receipt_insights.logger import get_logger
from receipt_insights.models import SyncStatus
from receipt_insights.services.sync import SyncController

logger = get_logger(__name__)

router = APIRouter(prefix="/api")


@router.get("/sync", response_model=SyncStatus)
async def get_sync_status(
    sync: Annotated[SyncController, Depends(get_sync)],
) -> SyncStatus:
    return sync.status


@router.post("/sync/retry", response_model=SyncStatus)
async def retry_sync(
    sync: Annotated[SyncController, Depends(get_sync)],
) -> SyncStatus:
    logger.info("[SYNC] Retry requested by user.")
    return await sync.retry()
