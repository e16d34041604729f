from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from receipt_insights.api.routes import dashboard, receipts, sync
from receipt_insights.core import settings
from receipt_insights.integration.receipts_api import ReceiptsApiClient
from receipt_insights.logger import get_logger, setup_logging
from receipt_insights.services.dashboard import DashboardService
from receipt_insights.services.receipt_store import ReceiptStore
from receipt_insights.services.sync import SyncController

logger = get_logger(__name__)


def create_app() -> FastAPI:
    setup_logging()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        logger.info("Initializing services...")
        settings.log_environment()

        account = settings.get_env_str("RECEIPTS_ACCOUNT")
        if not account:
            logger.warning("RECEIPTS_ACCOUNT not set. Dashboard stays idle until an account is requested.")

        api_client = ReceiptsApiClient()
        store = ReceiptStore(api_client, account=account)
        sync_controller = SyncController(
            store,
            api_client,
            profile_last_synced=settings.profile_last_synced(),
        )
        dashboard_service = DashboardService(
            store,
            sync_controller,
            display_currency=settings.DISPLAY_CURRENCY,
        )

        app.state.api_client = api_client
        app.state.store = store
        app.state.sync = sync_controller
        app.state.dashboard = dashboard_service

        if account:
            await store.refresh()

        logger.info("Services initialized.")
        yield
        logger.info("Service shutting down.")
        sync_controller.close()
        await api_client.aclose()

    app = FastAPI(title="Receipt Insights", lifespan=lifespan)

    app.include_router(dashboard.router)
    app.include_router(receipts.router)
    app.include_router(sync.router)

    return app


app = create_app()
