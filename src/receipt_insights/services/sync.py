import asyncio
from dataclasses import dataclass
from datetime import datetime

from receipt_insights.domain.timefmt import epoch_to_datetime, utc_now
from receipt_insights.integration.receipts_api import ReceiptsApiClient
from receipt_insights.logger import get_logger
from receipt_insights.models import SyncState, SyncStatus
from receipt_insights.services.receipt_store import ReceiptStore

logger = get_logger(__name__)

CONNECT_MESSAGE = "Connect Gmail to start ingesting receipts."
NO_ACCOUNT_MESSAGE = "No account available for sync."
NO_RECEIPTS_MESSAGE = "No receipts found."


@dataclass(frozen=True)
class SyncInputs:
    account: str | None
    profile_last_synced: float | None
    loading: bool
    error: str | None
    receipt_count: int


def syncing_message(account: str) -> str:
    return f"Syncing Gmail for {account}…"


def initial_status(account: str | None, profile_last_synced: float | None = None) -> SyncStatus:
    return SyncStatus(
        state=SyncState.IDLE,
        last_synced=epoch_to_datetime(profile_last_synced),
        message=f"Waiting for Gmail ingest for {account}" if account else CONNECT_MESSAGE,
    )


def reconcile_status(
    previous: SyncStatus,
    inputs: SyncInputs,
    now: datetime | None = None,
) -> SyncStatus:
    """Derive the next status from the current inputs. First matching rule wins."""
    profile_synced = epoch_to_datetime(inputs.profile_last_synced)

    if not inputs.account:
        return initial_status(None)

    if inputs.loading:
        return SyncStatus(
            state=SyncState.SYNCING,
            last_synced=previous.last_synced,
            message=syncing_message(inputs.account),
        )

    if inputs.error:
        return SyncStatus(
            state=SyncState.ERROR,
            last_synced=previous.last_synced,
            message=f"Couldn't load receipts for {inputs.account}: {inputs.error}",
        )

    if inputs.receipt_count:
        return SyncStatus(
            state=SyncState.SUCCESS,
            last_synced=previous.last_synced or profile_synced or now or utc_now(),
            message=f"Loaded {inputs.receipt_count} receipts",
        )

    return SyncStatus(
        state=SyncState.IDLE,
        last_synced=profile_synced,
        message=NO_RECEIPTS_MESSAGE,
    )


class SyncController:
    """Owns the sync status shown to the user.

    The status only changes through :meth:`reconcile` (driven by the receipt
    store) and :meth:`retry`. Each retry takes a generation number and only
    the most recent retry may publish its outcome, so a slow earlier retry
    cannot overwrite a newer one.
    """

    def __init__(
        self,
        store: ReceiptStore,
        api: ReceiptsApiClient,
        profile_last_synced: float | None = None,
    ) -> None:
        self.store = store
        self.api = api
        self._profile_last_synced = profile_last_synced
        self._status = initial_status(store.account, profile_last_synced)
        self._retry_generation = 0
        self._retry_in_flight = 0
        self._unsubscribe = store.subscribe(self.reconcile)

    @property
    def status(self) -> SyncStatus:
        return self._status

    @property
    def retry_in_flight(self) -> bool:
        return self._retry_in_flight > 0

    def close(self) -> None:
        self._unsubscribe()

    def set_profile_last_synced(self, value: float | None) -> SyncStatus:
        self._profile_last_synced = value
        return self.reconcile()

    def _inputs(self) -> SyncInputs:
        snapshot = self.store.snapshot
        return SyncInputs(
            account=snapshot.account,
            profile_last_synced=self._profile_last_synced,
            loading=snapshot.loading,
            error=snapshot.error,
            receipt_count=len(snapshot.receipts),
        )

    def _publish(self, status: SyncStatus) -> SyncStatus:
        if status != self._status:
            logger.debug("[SYNC] %s -> %s: %s", self._status.state.value, status.state.value, status.message)
        self._status = status
        return status

    def reconcile(self) -> SyncStatus:
        return self._publish(reconcile_status(self._status, self._inputs()))

    async def retry(self) -> SyncStatus:
        account = self.store.account
        profile_synced = epoch_to_datetime(self._profile_last_synced)

        if not account:
            logger.warning("[SYNC] Retry requested without an account.")
            return self._publish(SyncStatus(
                state=SyncState.ERROR,
                last_synced=profile_synced,
                message=NO_ACCOUNT_MESSAGE,
            ))

        self._retry_generation += 1
        generation = self._retry_generation
        if self._retry_in_flight:
            logger.info("[SYNC] Retry %d supersedes a retry still in flight.", generation)
        self._retry_in_flight += 1

        self._publish(SyncStatus(
            state=SyncState.SYNCING,
            last_synced=profile_synced,
            message=syncing_message(account),
        ))

        try:
            await self.api.trigger_sync(account, self._profile_last_synced)
            await self.store.refresh()
        except asyncio.CancelledError:
            logger.info("[SYNC] Retry for %s cancelled.", account)
            if generation == self._retry_generation:
                self.reconcile()
            raise
        except Exception as exc:
            message = str(exc) or exc.__class__.__name__
            logger.error("[SYNC] Retry for %s failed: %s", account, message)
            if generation != self._retry_generation:
                return self._status
            if self.store.account != account:
                return self.reconcile()
            return self._publish(SyncStatus(
                state=SyncState.ERROR,
                last_synced=profile_synced,
                message=message,
            ))
        finally:
            self._retry_in_flight -= 1

        if generation != self._retry_generation:
            logger.info("[SYNC] Ignoring outcome of superseded retry %d.", generation)
            return self._status

        if self.store.account != account:
            logger.info("[SYNC] Account changed during retry for %s, ignoring outcome.", account)
            return self.reconcile()

        if self.store.error:
            return self._publish(SyncStatus(
                state=SyncState.ERROR,
                last_synced=profile_synced,
                message=self.store.error,
            ))

        logger.info("[SYNC] Triggered ingest for %s.", account)
        return self._publish(SyncStatus(
            state=SyncState.SUCCESS,
            last_synced=utc_now(),
            message=f"Triggered ingest for {account}",
        ))
