"""Rollups over a receipt set.

Every builder takes an optional projector mapping a receipt to the amount that
should be counted, which is how totals are expressed in a display currency.

Category slices are computed over non-exclusive tags: a receipt carrying two
categories contributes its full amount to both, so the slice values can add up
to more than the summary total.
"""

from collections.abc import Sequence

from receipt_insights.domain.categories import distinct_categories
from receipt_insights.domain.currency import Projector, format_amount, raw_amount
from receipt_insights.domain.timefmt import day_key, utc_now
from receipt_insights.models import (
    ActivityEvent,
    CategorySlice,
    InsightSummary,
    Receipt,
    TimeSeriesPoint,
    TopMerchant,
)

ACTIVITY_LIMIT = 6


def build_summary(receipts: Sequence[Receipt], projector: Projector | None = None) -> InsightSummary:
    project = projector or raw_amount
    tx_count = len(receipts)
    total_spend = 0.0
    merchant_totals: dict[str, float] = {}
    for receipt in receipts:
        amount = project(receipt)
        total_spend += amount
        merchant_totals[receipt.merchant] = merchant_totals.get(receipt.merchant, 0.0) + amount

    top_merchant = None
    for name, total in merchant_totals.items():
        # Strict comparison keeps the first-seen merchant on ties.
        if top_merchant is None or total > top_merchant.total:
            top_merchant = TopMerchant(name=name, total=total)

    return InsightSummary(
        total_spend=total_spend,
        avg_ticket=total_spend / tx_count if tx_count else 0.0,
        tx_count=tx_count,
        top_merchant=top_merchant,
    )


def build_time_series(receipts: Sequence[Receipt], projector: Projector | None = None) -> list[TimeSeriesPoint]:
    project = projector or raw_amount
    buckets: dict[str, float] = {}
    for receipt in receipts:
        key = day_key(receipt.timestamp)
        buckets[key] = buckets.get(key, 0.0) + project(receipt)
    return [TimeSeriesPoint(date=key, total=buckets[key]) for key in sorted(buckets)]


def build_category_slices(receipts: Sequence[Receipt], projector: Projector | None = None) -> list[CategorySlice]:
    project = projector or raw_amount
    totals: dict[str, float] = {}
    for receipt in receipts:
        amount = project(receipt)
        for label in receipt.categories:
            totals[label] = totals.get(label, 0.0) + amount

    grand_total = sum(totals.values())
    ordered = sorted(totals.items(), key=lambda item: item[1], reverse=True)
    return [
        CategorySlice(
            label=label,
            value=value,
            percent=(value / grand_total * 100) if grand_total else 0.0,
        )
        for label, value in ordered
    ]


def available_categories(receipts: Sequence[Receipt]) -> list[str]:
    return distinct_categories(receipt.categories for receipt in receipts)


def build_activity(receipts: Sequence[Receipt], account: str | None = None) -> list[ActivityEvent]:
    if not receipts:
        if not account:
            return []
        return [ActivityEvent(
            id="activity-placeholder",
            title="Awaiting Gmail sync",
            detail=f"No receipts ingested yet for {account}.",
            timestamp=utc_now(),
        )]

    recent = sorted(receipts, key=lambda r: r.timestamp, reverse=True)[:ACTIVITY_LIMIT]
    return [
        ActivityEvent(
            id=receipt.id,
            title=f"Processed {receipt.merchant}",
            detail=(
                f"{receipt.owner} via {receipt.issuer or 'Gmail'} · "
                f"{format_amount(receipt.amount, receipt.currency)}"
            ),
            timestamp=receipt.timestamp,
        )
        for receipt in recent
    ]

