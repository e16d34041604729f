from typing import Annotated

from fastapi import APIRouter, Depends

from receipt_insights.api.dependencies import get_dashboard
from receipt_insights.api.schemas import CurrencyOption, filter_spec_params
from receipt_insights.domain.currency import describe, supported_currencies
from receipt_insights.models import DashboardView, Receipt, ReceiptFilterSpec
from receipt_insights.services.dashboard import DashboardService

router = APIRouter(prefix="/api")


@router.get("/dashboard", response_model=DashboardView)
async def get_dashboard_view(
    dashboard: Annotated[DashboardService, Depends(get_dashboard)],
    spec: Annotated[ReceiptFilterSpec, Depends(filter_spec_params)],
    currency: str | None = None,
) -> DashboardView:
    await dashboard.ensure_account(spec.account)
    return dashboard.build_view(spec, currency=currency)


@router.get("/receipts", response_model=list[Receipt])
async def get_receipts(
    dashboard: Annotated[DashboardService, Depends(get_dashboard)],
    spec: Annotated[ReceiptFilterSpec, Depends(filter_spec_params)],
) -> list[Receipt]:
    await dashboard.ensure_account(spec.account)
    return dashboard.filtered(spec)


@router.get("/currencies", response_model=list[CurrencyOption])
async def get_currencies() -> list[CurrencyOption]:
    return [CurrencyOption(code=code, description=describe(code)) for code in supported_currencies()]
