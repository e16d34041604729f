import asyncio
from collections.abc import Callable
from dataclasses import dataclass, replace
from time import perf_counter

from receipt_insights.domain.categories import clean_categories
from receipt_insights.domain.receipts import normalize_receipts
from receipt_insights.domain.timefmt import format_duration
from receipt_insights.integration.receipts_api import ReceiptsApiClient, ReceiptsApiError
from receipt_insights.logger import get_logger
from receipt_insights.models import Receipt

logger = get_logger(__name__)

Listener = Callable[[], None]


@dataclass(frozen=True)
class StoreSnapshot:
    account: str | None = None
    receipts: tuple[Receipt, ...] = ()
    loading: bool = False
    error: str | None = None


class ReceiptStore:
    """Receipt collection for one account plus its loading and error signals.

    State is held in a single immutable snapshot that is replaced wholesale,
    so listeners never observe a half-applied change. Each fetch is tagged
    with a generation number; a response belonging to an older generation is
    dropped without touching state.
    """

    def __init__(self, api: ReceiptsApiClient, account: str | None = None) -> None:
        self.api = api
        self._snapshot = StoreSnapshot(account=account or None)
        self._generation = 0
        self._listeners: list[Listener] = []

    @property
    def snapshot(self) -> StoreSnapshot:
        return self._snapshot

    @property
    def account(self) -> str | None:
        return self._snapshot.account

    @property
    def receipts(self) -> list[Receipt]:
        return list(self._snapshot.receipts)

    @property
    def loading(self) -> bool:
        return self._snapshot.loading

    @property
    def error(self) -> str | None:
        return self._snapshot.error

    def get(self, receipt_id: str) -> Receipt | None:
        for receipt in self._snapshot.receipts:
            if receipt.id == receipt_id:
                return receipt
        return None

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _publish(self, snapshot: StoreSnapshot) -> None:
        self._snapshot = snapshot
        for listener in list(self._listeners):
            listener()

    def set_account(self, account: str | None) -> None:
        account = (account or "").strip() or None
        if account == self._snapshot.account:
            return
        # Anything still in flight belongs to the previous account.
        self._generation += 1
        logger.info("[FETCH] Switching account to %s.", account or "<none>")
        self._publish(StoreSnapshot(account=account))

    async def refresh(self) -> bool:
        """Reload receipts for the current account.

        Returns True when at least one receipt was loaded.
        """
        account = self._snapshot.account
        self._generation += 1
        generation = self._generation

        if not account:
            self._publish(StoreSnapshot())
            return False

        self._publish(replace(self._snapshot, loading=True, error=None))
        start = perf_counter()
        try:
            raw_receipts = await self.api.fetch_receipts(account)
        except asyncio.CancelledError:
            if generation == self._generation:
                self._publish(replace(self._snapshot, loading=False))
            logger.debug("[FETCH] Fetch for %s cancelled.", account)
            raise
        except ReceiptsApiError as exc:
            if generation != self._generation:
                logger.debug("[FETCH] Dropping stale failure for %s: %s", account, exc.message)
                return False
            logger.warning("[FETCH] Could not load receipts for %s: %s", account, exc.message)
            self._publish(replace(self._snapshot, loading=False, error=exc.message))
            return False

        if generation != self._generation:
            logger.debug("[FETCH] Dropping superseded response for %s.", account)
            return False

        receipts = normalize_receipts(raw_receipts, account)
        self._publish(StoreSnapshot(account=account, receipts=tuple(receipts)))
        logger.info(
            "[FETCH] Loaded %d receipts for %s in %s.",
            len(receipts),
            account,
            format_duration(perf_counter() - start),
        )
        return bool(receipts)

    async def update_categories(self, receipt_id: str, categories: list[str]) -> bool:
        """Apply a category edit locally, then confirm it remotely.

        On remote failure the edit is rolled back and False is returned.
        """
        original = self.get(receipt_id)
        if original is None:
            logger.warning("[CATEGORIES] Unknown receipt %s.", receipt_id)
            return False

        next_categories = clean_categories(categories)
        before = self._snapshot.receipts
        optimistic = tuple(
            r.with_categories(next_categories) if r.id == receipt_id else r for r in before
        )
        self._publish(replace(self._snapshot, receipts=optimistic))

        try:
            await self.api.update_categories(receipt_id, next_categories)
        except ReceiptsApiError as exc:
            logger.warning("[CATEGORIES] Save failed for %s, rolling back: %s", receipt_id, exc.message)
            self._rollback(receipt_id, next_categories, optimistic, before, original)
            return False

        logger.info("[CATEGORIES] Saved %d categories for %s.", len(next_categories), receipt_id)
        return True

    def _rollback(
        self,
        receipt_id: str,
        next_categories: list[str],
        optimistic: tuple[Receipt, ...],
        before: tuple[Receipt, ...],
        original: Receipt,
    ) -> None:
        current = self._snapshot.receipts
        if current is optimistic:
            restored = before
        else:
            # A refresh landed meanwhile; categories it brought in take precedence.
            restored = tuple(
                r.with_categories(original.categories)
                if r.id == receipt_id and r.categories == next_categories
                else r
                for r in current
            )
        self._publish(replace(self._snapshot, receipts=restored))
