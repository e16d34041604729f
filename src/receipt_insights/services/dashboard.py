from datetime import datetime

from receipt_insights.domain.analytics import (
    available_categories,
    build_activity,
    build_category_slices,
    build_summary,
    build_time_series,
)
from receipt_insights.domain.anomalies import detect_anomalies
from receipt_insights.domain.currency import DEFAULT_CURRENCY, is_supported, make_projector
from receipt_insights.domain.filters import apply_filters
from receipt_insights.logger import get_logger
from receipt_insights.models import DashboardView, Receipt, ReceiptFilterSpec
from receipt_insights.services.receipt_store import ReceiptStore
from receipt_insights.services.sync import SyncController

logger = get_logger(__name__)


class DashboardService:
    def __init__(
        self,
        store: ReceiptStore,
        sync: SyncController,
        display_currency: str = DEFAULT_CURRENCY,
    ) -> None:
        self.store = store
        self.sync = sync
        self.display_currency = self._resolve_currency(display_currency)

    def _resolve_currency(self, code: str | None) -> str:
        candidate = (code or "").upper()
        if is_supported(candidate):
            return candidate
        if code:
            logger.warning("[DASHBOARD] Unsupported currency '%s', falling back to %s.", code, DEFAULT_CURRENCY)
        return DEFAULT_CURRENCY

    async def ensure_account(self, account: str | None) -> None:
        """Point the store at ``account`` and load it if it changed."""
        if not account or account == self.store.account:
            return
        self.store.set_account(account)
        await self.store.refresh()

    def filtered(self, spec: ReceiptFilterSpec, now: datetime | None = None) -> list[Receipt]:
        return apply_filters(self.store.receipts, spec, now)

    def build_view(
        self,
        spec: ReceiptFilterSpec,
        currency: str | None = None,
        now: datetime | None = None,
    ) -> DashboardView:
        display_currency = self._resolve_currency(currency) if currency else self.display_currency
        projector = make_projector(display_currency)
        all_receipts = self.store.receipts
        filtered = apply_filters(all_receipts, spec, now)

        return DashboardView(
            currency=display_currency,
            receipts=filtered,
            summary=build_summary(filtered, projector),
            series=build_time_series(filtered, projector),
            categories=build_category_slices(filtered, projector),
            anomalies=detect_anomalies(filtered, projector),
            available_categories=available_categories(filtered),
            activity=build_activity(all_receipts, self.store.account or spec.account or None),
            sync=self.sync.status,
        )
