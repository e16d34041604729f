from datetime import datetime, timezone

import pytest

from receipt_insights.domain.receipts import (
    DEFAULT_MERCHANT,
    DEFAULT_OWNER,
    normalize_receipts,
    resolve_currency,
)
from receipt_insights.models import RawReceipt


def test_seconds_timestamp_is_scaled_to_millis():
    [receipt] = normalize_receipts([{"amount": 42, "timestamp": 1700000000}])

    assert receipt.timestamp_ms == 1700000000 * 1000
    assert receipt.currency == "USD"
    assert receipt.amount == 42.0


def test_millisecond_timestamp_is_kept():
    [receipt] = normalize_receipts([{"timestamp": 1700000000123}])
    assert receipt.timestamp_ms == 1700000000123


def test_missing_timestamp_uses_current_time():
    before = datetime.now(timezone.utc)
    [receipt] = normalize_receipts([{"merchant": "Shop"}])
    after = datetime.now(timezone.utc)

    assert before <= receipt.timestamp <= after


def test_owner_falls_back_to_batch_owner_then_placeholder():
    receipts = normalize_receipts([{"owner": "  "}, {"owner": " sam@example.com "}], "alex@example.com")
    assert [r.owner for r in receipts] == ["alex@example.com", "sam@example.com"]

    [anonymous] = normalize_receipts([{}])
    assert anonymous.owner == DEFAULT_OWNER


def test_merchant_falls_back_to_issuer_then_placeholder():
    receipts = normalize_receipts([
        {"merchant": " Blue Bottle ", "issuer": "Visa"},
        {"merchant": "   ", "issuer": " Amex "},
        {"merchant": None},
    ])

    assert [r.merchant for r in receipts] == ["Blue Bottle", "Amex", DEFAULT_MERCHANT]
    assert receipts[2].issuer is None


@pytest.mark.parametrize(
    "raw,expected",
    [
        ("eur", "EUR"),
        (" gbp ", "GBP"),
        ("EURO", "USD"),
        ("XYZ", "USD"),
        ("1$A", "USD"),
        (None, "USD"),
    ],
)
def test_currency_is_sanitized(raw, expected):
    assert resolve_currency(raw) == expected


def test_categories_are_trimmed_and_blank_entries_dropped():
    [receipt] = normalize_receipts([{"categories": [" Food ", None, "", "  ", "Travel", "Food"]}])
    assert receipt.categories == ["Food", "Travel", "Food"]


def test_identity_prefers_message_id():
    [receipt] = normalize_receipts([{"msg_id": "abc-123", "merchant": "Shop", "timestamp": 1700000000}])
    assert receipt.id == "abc-123"
    assert receipt.msg_id == "abc-123"


def test_identity_is_synthesized_from_owner_merchant_and_time():
    [receipt] = normalize_receipts(
        [{"merchant": "Shop", "timestamp": 1700000000}],
        "alex@example.com",
    )
    assert receipt.id == "alex@example.com:Shop:1700000000000"
    assert receipt.msg_id is None


def test_colliding_synthesized_ids_fall_back_to_position():
    record = {"merchant": "Shop", "timestamp": 1700000000}
    receipts = normalize_receipts([record, dict(record)], "alex@example.com")

    assert receipts[0].id == "alex@example.com:Shop:1700000000000"
    assert receipts[1].id == "receipt-1"


@pytest.mark.parametrize("amount,expected", [("12.5", 12.5), ("abc", 0.0), (None, 0.0), (float("inf"), 0.0)])
def test_amount_is_coerced_or_defaulted(amount, expected):
    [receipt] = normalize_receipts([{"amount": amount}])
    assert receipt.amount == expected


def test_unparseable_fields_do_not_break_the_record():
    [receipt] = normalize_receipts([{"merchant": "Shop", "timestamp": "yesterday", "categories": "Food"}])
    assert receipt.merchant == "Shop"
    assert receipt.categories == []


def test_accepts_validated_raw_receipts():
    raw = RawReceipt(msg_id="m1", merchant="Shop", amount=3.5, currency="eur", timestamp=1700000000)
    [receipt] = normalize_receipts([raw])
    assert receipt.id == "m1"
    assert receipt.currency == "EUR"


def test_empty_or_missing_batch():
    assert normalize_receipts(None) == []
    assert normalize_receipts([]) == []
