from fastapi import HTTPException, Request

from receipt_insights.services.dashboard import DashboardService
from receipt_insights.services.receipt_store import ReceiptStore
from receipt_insights.services.sync import SyncController


def _require(request: Request, name: str, detail: str):
    value = getattr(request.app.state, name, None)
    if value is None:
        raise HTTPException(status_code=500, detail=detail)
    return value


def get_store(request: Request) -> ReceiptStore:
    return _require(request, "store", "Service not initialized")


def get_sync(request: Request) -> SyncController:
    return _require(request, "sync", "Service not initialized")


def get_dashboard(request: Request) -> DashboardService:
    return _require(request, "dashboard", "Service not initialized")
