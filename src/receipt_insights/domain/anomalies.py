from collections.abc import Sequence

from receipt_insights.domain.currency import Projector, raw_amount
from receipt_insights.logger import get_logger
from receipt_insights.models import Anomaly, Receipt

logger = get_logger(__name__)

ANOMALY_FACTOR = 1.5


def _describe(merchant: str, delta: float, mean: float) -> str:
    if mean == 0:
        return f"{merchant} spend is {delta:.2f} above average"
    percent = int(delta / abs(mean) * 100)
    return f"{merchant} spend is {percent}% above average"


def detect_anomalies(receipts: Sequence[Receipt], projector: Projector | None = None) -> list[Anomaly]:
    """Flag receipts whose projected amount exceeds 1.5x the set's mean.

    The mean is recomputed from ``receipts`` on every call, so what counts as
    anomalous follows whatever filter produced the set.
    """
    project = projector or raw_amount
    amounts = [project(receipt) for receipt in receipts]
    mean = sum(amounts) / max(1, len(amounts))
    # Equals mean * 1.5 for positive means; keeps a uniform negative set unflagged.
    threshold = mean + (ANOMALY_FACTOR - 1) * abs(mean)

    anomalies = [
        Anomaly(
            id=f"anom-{receipt.id}",
            merchant=receipt.merchant,
            delta=amount - mean,
            description=_describe(receipt.merchant, amount - mean, mean),
        )
        for receipt, amount in zip(receipts, amounts)
        if amount > threshold
    ]
    if anomalies:
        logger.debug("[ANOMALY] Flagged %d of %d receipts (mean %.2f).", len(anomalies), len(amounts), mean)
    return anomalies
