import asyncio
from typing import Any
from urllib.parse import quote

import httpx
from pydantic import ValidationError

from receipt_insights.core import settings
from receipt_insights.logger import get_logger
from receipt_insights.models import ApiEnvelope, RawReceipt

logger = get_logger(__name__)

UNAUTHORIZED_STATUSES = {401, 403}


class ReceiptsApiError(Exception):
    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code


def _error_message(response: httpx.Response) -> str:
    body = response.text
    if body:
        try:
            payload = response.json()
        except ValueError:
            payload = None
        if isinstance(payload, dict) and payload.get("error"):
            return str(payload["error"])
        return body
    return response.reason_phrase or f"Request failed with status {response.status_code}"


def _parse_transactions(data: Any) -> list[RawReceipt]:
    if isinstance(data, dict):
        items = data.get("transactions") or []
    elif isinstance(data, list):
        items = data
    else:
        items = []
    return [RawReceipt.from_wire(item) for item in items if isinstance(item, dict)]


class ReceiptsApiClient:
    def __init__(
        self,
        base_url: str | None = None,
        token: str | None = None,
        client: httpx.AsyncClient | None = None,
        timeout: float | None = None,
    ):
        self.base_url = (base_url or settings.api_base_url()).rstrip("/")
        self.token = token if token is not None else settings.get_env_str("RECEIPTS_API_TOKEN")
        self.timeout = timeout if timeout is not None else settings.request_timeout()
        self._client = client
        self._client_lock = asyncio.Lock()

    @property
    def headers(self) -> dict[str, str]:
        headers = {
            "Content-Type": "application/json",
            "Accept": "application/json",
        }
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    async def aclose(self) -> None:
        if self._client and not self._client.is_closed:
            await self._client.aclose()

    async def _get_client(self) -> httpx.AsyncClient:
        client = self._client
        if client is not None and not client.is_closed:
            return client

        async with self._client_lock:
            client = self._client
            if client is None or client.is_closed:
                client = httpx.AsyncClient()
                self._client = client
            return client

    async def _send(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        client = await self._get_client()
        try:
            return await client.request(
                method,
                f"{self.base_url}{path}",
                headers=self.headers,
                timeout=self.timeout,
                **kwargs,
            )
        except httpx.HTTPError as exc:
            message = str(exc) or exc.__class__.__name__
            logger.error("[API] %s %s failed: %s", method, path, message)
            raise ReceiptsApiError(message) from exc

    def _unwrap(self, response: httpx.Response, method: str, path: str) -> Any:
        if response.is_error:
            message = _error_message(response)
            logger.error("[API] %s %s returned %s: %s", method, path, response.status_code, message)
            raise ReceiptsApiError(message, response.status_code)
        try:
            envelope = ApiEnvelope[Any].model_validate(response.json())
        except (ValueError, ValidationError) as exc:
            raise ReceiptsApiError(f"Malformed response from {path}", response.status_code) from exc
        if not envelope.success:
            message = envelope.error or f"Request to {path} was not successful"
            logger.error("[API] %s %s reported failure: %s", method, path, message)
            raise ReceiptsApiError(message, response.status_code)
        return envelope.data

    async def fetch_receipts(self, account: str) -> list[RawReceipt]:
        """GET /receipts/{account}. Unauthorized is reported as no receipts."""
        path = f"/receipts/{quote(account, safe='@')}"
        response = await self._send("GET", path)
        if response.status_code in UNAUTHORIZED_STATUSES:
            logger.info("[FETCH] Not authorized to read receipts for %s (%s).", account, response.status_code)
            return []
        data = self._unwrap(response, "GET", path)
        receipts = _parse_transactions(data)
        logger.debug("[FETCH] Received %d raw receipts for %s.", len(receipts), account)
        return receipts

    async def update_categories(self, receipt_id: str, categories: list[str]) -> Any:
        path = f"/receipts/{quote(receipt_id, safe='')}/categories"
        response = await self._send("PUT", path, json={"categories": categories})
        return self._unwrap(response, "PUT", path)

    async def trigger_sync(self, account: str, last_synced: float | None = None) -> list[RawReceipt]:
        payload: dict[str, Any] = {"account": account}
        if last_synced is not None:
            payload["last_synced"] = last_synced
        response = await self._send("POST", "/sync", json=payload)
        data = self._unwrap(response, "POST", "/sync")
        return _parse_transactions(data)
