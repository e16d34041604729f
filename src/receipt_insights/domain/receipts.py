from __future__ import annotations

import math
from collections.abc import Iterable
from datetime import datetime
from typing import Any

from receipt_insights.domain.categories import clean_categories
from receipt_insights.domain.currency import DEFAULT_CURRENCY, is_supported
from receipt_insights.domain.timefmt import epoch_to_datetime, utc_now
from receipt_insights.logger import get_logger
from receipt_insights.models import RawReceipt, Receipt

logger = get_logger(__name__)

DEFAULT_OWNER = "unknown@receipts.local"
DEFAULT_MERCHANT = "Unknown merchant"


def _clean_text(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def resolve_currency(value: Any) -> str:
    code = _clean_text(value)
    if code is None:
        return DEFAULT_CURRENCY
    code = code.upper()
    if len(code) != 3 or not code.isalpha() or not is_supported(code):
        logger.debug("[NORMALIZE] Unsupported currency '%s', using %s.", value, DEFAULT_CURRENCY)
        return DEFAULT_CURRENCY
    return code


def resolve_amount(value: Any) -> float:
    if value is None or isinstance(value, bool):
        return 0.0
    try:
        amount = float(value)
    except (TypeError, ValueError):
        return 0.0
    if not math.isfinite(amount):
        return 0.0
    return amount


def resolve_timestamp(value: Any, now: datetime | None = None) -> datetime:
    parsed = epoch_to_datetime(value)
    if parsed is not None:
        return parsed
    return now or utc_now()


def build_receipt(
    raw: RawReceipt,
    index: int,
    *,
    owner_fallback: str,
    now: datetime | None = None,
    seen_ids: set[str] | None = None,
) -> Receipt:
    owner = _clean_text(raw.owner) or owner_fallback
    issuer = _clean_text(raw.issuer)
    merchant = _clean_text(raw.merchant) or issuer or DEFAULT_MERCHANT
    timestamp = resolve_timestamp(raw.timestamp, now)
    msg_id = _clean_text(raw.msg_id)

    receipt_id = msg_id or f"{owner}:{merchant}:{int(round(timestamp.timestamp() * 1000))}"
    if seen_ids is not None:
        if receipt_id in seen_ids:
            logger.debug("[NORMALIZE] Duplicate id '%s' at index %s, using positional id.", receipt_id, index)
            receipt_id = f"receipt-{index}"
        seen_ids.add(receipt_id)

    return Receipt(
        id=receipt_id,
        msg_id=msg_id,
        owner=owner,
        issuer=issuer,
        merchant=merchant,
        amount=resolve_amount(raw.amount),
        currency=resolve_currency(raw.currency),
        categories=clean_categories(raw.categories),
        timestamp=timestamp,
        notes=_clean_text(raw.notes),
    )


def normalize_receipts(
    records: Iterable[RawReceipt | dict[str, Any]] | None,
    fallback_owner: str | None = None,
) -> list[Receipt]:
    """Map untrusted backend records onto canonical receipts.

    Never raises on record shape: anything unusable is defaulted. ``now`` is
    sampled once per batch so records without a timestamp share one instant.
    """
    owner_fallback = _clean_text(fallback_owner) or DEFAULT_OWNER
    now = utc_now()
    seen_ids: set[str] = set()
    receipts: list[Receipt] = []
    for index, record in enumerate(records or []):
        raw = record if isinstance(record, RawReceipt) else RawReceipt.from_wire(record)
        receipts.append(build_receipt(
            raw,
            index,
            owner_fallback=owner_fallback,
            now=now,
            seen_ids=seen_ids,
        ))
    logger.info("[NORMALIZE] Normalized %d receipts.", len(receipts))
    return receipts
