import pytest

from receipt_insights.domain.anomalies import detect_anomalies
from receipt_insights.domain.currency import make_projector


def test_outlier_is_flagged(make_receipt):
    receipts = [make_receipt(amount=10.0) for _ in range(3)]
    receipts.append(make_receipt(id="big", merchant="Apple Store", amount=100.0))

    [anomaly] = detect_anomalies(receipts)

    assert anomaly.id == "anom-big"
    assert anomaly.merchant == "Apple Store"
    assert anomaly.delta == pytest.approx(67.5)
    assert anomaly.description == "Apple Store spend is 207% above average"


@pytest.mark.parametrize("amount", [25.0, 0.0, -12.0])
def test_uniform_amounts_are_never_flagged(make_receipt, amount):
    receipts = [make_receipt(amount=amount) for _ in range(5)]
    assert detect_anomalies(receipts) == []


@pytest.mark.parametrize("amount", [50.0, -50.0])
def test_single_receipt_is_never_flagged(make_receipt, amount):
    assert detect_anomalies([make_receipt(amount=amount)]) == []


def test_empty_input():
    assert detect_anomalies([]) == []


def test_detection_uses_projected_amounts(make_receipt):
    receipts = [
        make_receipt(amount=10.0, currency="USD"),
        make_receipt(amount=10.0, currency="USD"),
        make_receipt(id="yen", amount=3000.0, currency="JPY"),
        make_receipt(id="pound", amount=30.0, currency="GBP"),
    ]
    flagged = detect_anomalies(receipts, make_projector("USD"))
    assert [a.id for a in flagged] == ["anom-pound"]
    assert [a.id for a in detect_anomalies(receipts)] == ["anom-yen"]


def test_threshold_is_strictly_above_one_and_a_half_times_mean(make_receipt):
    # mean = 20, threshold = 30
    receipts = [make_receipt(amount=10.0), make_receipt(amount=20.0), make_receipt(id="edge", amount=30.0)]
    assert detect_anomalies(receipts) == []
