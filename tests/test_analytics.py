from datetime import datetime, timedelta, timezone

import pytest

from receipt_insights.domain.analytics import (
    ACTIVITY_LIMIT,
    available_categories,
    build_activity,
    build_category_slices,
    build_summary,
    build_time_series,
)
from receipt_insights.domain.currency import make_projector


def test_summary_of_empty_set_has_no_division_by_zero():
    summary = build_summary([])
    assert summary.total_spend == 0
    assert summary.avg_ticket == 0
    assert summary.tx_count == 0
    assert summary.top_merchant is None


def test_summary_totals_and_top_merchant(make_receipt):
    receipts = [
        make_receipt(merchant="Cafe", amount=5.0),
        make_receipt(merchant="Grocer", amount=40.0),
        make_receipt(merchant="Cafe", amount=7.0),
    ]
    summary = build_summary(receipts)

    assert summary.total_spend == pytest.approx(52.0)
    assert summary.avg_ticket == pytest.approx(52.0 / 3)
    assert summary.tx_count == 3
    assert summary.top_merchant.name == "Grocer"
    assert summary.top_merchant.total == pytest.approx(40.0)


def test_top_merchant_tie_goes_to_first_seen(make_receipt):
    receipts = [
        make_receipt(merchant="Alpha", amount=10.0),
        make_receipt(merchant="Beta", amount=10.0),
    ]
    assert build_summary(receipts).top_merchant.name == "Alpha"


def test_summary_uses_projector(make_receipt):
    receipts = [make_receipt(amount=100.0, currency="EUR"), make_receipt(amount=8.0, currency="USD")]
    summary = build_summary(receipts, make_projector("USD"))
    assert summary.total_spend == pytest.approx(116.0)


def test_time_series_is_sparse_sorted_and_utc_bucketed(make_receipt):
    late_evening_new_york = datetime(2024, 3, 2, 23, 30, tzinfo=timezone(timedelta(hours=-5)))
    receipts = [
        make_receipt(amount=3.0, timestamp=datetime(2024, 3, 5, 9, tzinfo=timezone.utc)),
        make_receipt(amount=2.0, timestamp=datetime(2024, 3, 1, 9, tzinfo=timezone.utc)),
        make_receipt(amount=4.0, timestamp=datetime(2024, 3, 5, 22, tzinfo=timezone.utc)),
        make_receipt(amount=1.0, timestamp=late_evening_new_york),
    ]
    series = build_time_series(receipts)

    assert [(p.date, p.total) for p in series] == [
        ("2024-03-01", 2.0),
        ("2024-03-03", 1.0),
        ("2024-03-05", 7.0),
    ]


def test_category_slices_are_non_exclusive(make_receipt):
    receipts = [
        make_receipt(amount=30.0, categories=["Food", "Travel"]),
        make_receipt(amount=10.0, categories=["Food"]),
    ]
    slices = build_category_slices(receipts)
    total = build_summary(receipts).total_spend

    assert [(s.label, s.value) for s in slices] == [("Food", 40.0), ("Travel", 30.0)]
    assert sum(s.value for s in slices) > total
    assert slices[0].percent == pytest.approx(40.0 / 70.0 * 100)
    assert sum(s.percent for s in slices) == pytest.approx(100.0)


def test_single_category_slices_sum_to_total(make_receipt):
    receipts = [
        make_receipt(amount=12.0, categories=["Food"]),
        make_receipt(amount=8.0, categories=["Fuel"]),
        make_receipt(amount=5.0, categories=["Food"]),
    ]
    slices = build_category_slices(receipts)
    assert sum(s.value for s in slices) == pytest.approx(build_summary(receipts).total_spend)


def test_category_slices_with_zero_total_have_zero_percent(make_receipt):
    slices = build_category_slices([make_receipt(amount=0.0, categories=["Food"])])
    assert slices[0].percent == 0.0


def test_uncategorized_receipts_produce_no_slices(make_receipt):
    assert build_category_slices([make_receipt(categories=[])]) == []


def test_available_categories_in_first_seen_order(make_receipt):
    receipts = [
        make_receipt(categories=["Travel", "Food"]),
        make_receipt(categories=["Food", "Fuel"]),
    ]
    assert available_categories(receipts) == ["Travel", "Food", "Fuel"]


def test_activity_lists_most_recent_receipts(make_receipt):
    base = datetime(2024, 3, 1, tzinfo=timezone.utc)
    receipts = [
        make_receipt(id=f"r{day}", merchant=f"Shop {day}", timestamp=base + timedelta(days=day))
        for day in range(8)
    ]
    activity = build_activity(receipts, "alex@example.com")

    assert len(activity) == ACTIVITY_LIMIT
    assert [event.id for event in activity] == ["r7", "r6", "r5", "r4", "r3", "r2"]
    assert activity[0].title == "Processed Shop 7"
    assert activity[0].detail == "alex@example.com via Visa · $10.00"


def test_activity_names_gmail_when_issuer_missing(make_receipt):
    [event] = build_activity([make_receipt(issuer=None, amount=5.0, currency="EUR")])
    assert event.detail.endswith("via Gmail · €5.00")


def test_activity_placeholder_when_account_has_no_receipts():
    [event] = build_activity([], "alex@example.com")
    assert event.title == "Awaiting Gmail sync"
    assert "alex@example.com" in event.detail

    assert build_activity([], None) == []
