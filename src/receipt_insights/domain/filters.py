from collections.abc import Callable, Iterable
from datetime import datetime, timedelta

from receipt_insights.domain.categories import matches_category
from receipt_insights.domain.timefmt import utc_now
from receipt_insights.models import DateRange, Receipt, ReceiptFilterSpec

RANGE_DAYS: dict[DateRange, int] = {
    DateRange.LAST_7_DAYS: 7,
    DateRange.LAST_30_DAYS: 30,
    DateRange.LAST_90_DAYS: 90,
    DateRange.LAST_365_DAYS: 365,
    DateRange.CUSTOM: 90,
}

Predicate = Callable[[Receipt], bool]


def cutoff_for(date_range: DateRange, now: datetime | None = None) -> datetime:
    days = RANGE_DAYS.get(date_range, 30)
    return (now or utc_now()) - timedelta(days=days)


def _text(value: str | None) -> str | None:
    if value is None:
        return None
    return value if value.strip() else None


def _contains(haystack: str | None, needle: str) -> bool:
    return haystack is not None and needle in haystack.lower()


def matches_search(receipt: Receipt, term: str) -> bool:
    needle = term.lower()
    return (
        _contains(receipt.merchant, needle)
        or _contains(receipt.issuer, needle)
        or any(_contains(label, needle) for label in receipt.categories)
        or _contains(receipt.notes, needle)
    )


def build_predicates(spec: ReceiptFilterSpec, now: datetime | None = None) -> list[Predicate]:
    cutoff = cutoff_for(spec.range, now)
    predicates: list[Predicate] = [lambda r: r.timestamp >= cutoff]

    category = _text(spec.category)
    if category:
        predicates.append(lambda r: matches_category(r.categories, category))

    merchant = _text(spec.merchant)
    if merchant:
        needle = merchant.lower()
        predicates.append(lambda r: needle in r.merchant.lower())

    if spec.min_amount is not None:
        min_amount = spec.min_amount
        predicates.append(lambda r: r.amount >= min_amount)

    if spec.max_amount is not None:
        max_amount = spec.max_amount
        predicates.append(lambda r: r.amount <= max_amount)

    search = _text(spec.search)
    if search:
        predicates.append(lambda r: matches_search(r, search))

    return predicates


def apply_filters(
    receipts: Iterable[Receipt],
    spec: ReceiptFilterSpec,
    now: datetime | None = None,
) -> list[Receipt]:
    """Return the receipts matching every constraint of ``spec``, in input order.

    The date cutoff is taken from the wall clock at call time unless ``now``
    is supplied.
    """
    predicates = build_predicates(spec, now)
    return [receipt for receipt in receipts if all(check(receipt) for check in predicates)]
