from typing import Optional

from pydantic import BaseModel

from receipt_insights.models import DateRange, Receipt, ReceiptFilterSpec


class CategoryUpdateRequest(BaseModel):
    categories: list[str]


class CategoryUpdateResponse(BaseModel):
    success: bool
    receipt: Optional[Receipt] = None
    error: Optional[str] = None


class CurrencyOption(BaseModel):
    code: str
    description: str


def filter_spec_params(
    account: str = "",
    range: DateRange = DateRange.LAST_30_DAYS,
    category: str | None = None,
    merchant: str | None = None,
    min_amount: float | None = None,
    max_amount: float | None = None,
    search: str | None = None,
) -> ReceiptFilterSpec:
    return ReceiptFilterSpec(
        account=account,
        range=range,
        category=category,
        merchant=merchant,
        min_amount=min_amount,
        max_amount=max_amount,
        search=search,
    )
