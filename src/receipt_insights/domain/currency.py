"""Static currency table, conversion and display formatting.

Rates are expressed as the USD value of one unit of each currency, so a
conversion is ``amount * rate[from] / rate[to]``. Unknown codes convert at a
rate of 1 and format with the bare code as prefix; nothing here raises.
"""

import math
from collections.abc import Callable
from dataclasses import dataclass

from receipt_insights.logger import get_logger
from receipt_insights.models import Receipt

logger = get_logger(__name__)


@dataclass(frozen=True)
class CurrencyInfo:
    code: str
    rate: float
    symbol: str
    label: str
    decimals: int = 2


DEFAULT_CURRENCY = "USD"

_CURRENCIES: tuple[CurrencyInfo, ...] = (
    CurrencyInfo("USD", 1.0, "$", "US Dollar"),
    CurrencyInfo("EUR", 1.08, "€", "Euro"),
    CurrencyInfo("GBP", 1.27, "£", "British Pound"),
    CurrencyInfo("INR", 0.012, "₹", "Indian Rupee"),
    CurrencyInfo("CAD", 0.74, "CA$", "Canadian Dollar"),
    CurrencyInfo("AUD", 0.66, "A$", "Australian Dollar"),
    CurrencyInfo("JPY", 0.0067, "¥", "Japanese Yen", decimals=0),
    CurrencyInfo("SGD", 0.74, "S$", "Singapore Dollar"),
)

CURRENCIES: dict[str, CurrencyInfo] = {info.code: info for info in _CURRENCIES}

Projector = Callable[[Receipt], float]


def supported_currencies() -> list[str]:
    return list(CURRENCIES)


def is_supported(code: str | None) -> bool:
    return bool(code) and code in CURRENCIES


def rate_for(code: str | None) -> float:
    info = CURRENCIES.get(code or "")
    return info.rate if info else 1.0


def convert(amount: float, from_code: str | None, to_code: str | None) -> float:
    return amount * rate_for(from_code) / rate_for(to_code)


def format_amount(amount: float, code: str | None = DEFAULT_CURRENCY) -> str:
    info = CURRENCIES.get((code or "").upper())
    decimals = info.decimals if info else 2
    if not math.isfinite(amount):
        amount = 0.0
    body = f"{abs(amount):,.{decimals}f}"
    sign = "-" if amount < 0 and body.strip("0.,") else ""
    if info:
        return f"{sign}{info.symbol}{body}"
    return f"{sign}{(code or '').upper() or DEFAULT_CURRENCY} {body}"


def describe(code: str) -> str:
    info = CURRENCIES.get(code)
    if not info:
        return code
    return f"{info.symbol} {info.label}"


def raw_amount(receipt: Receipt) -> float:
    return receipt.amount


def make_projector(display_code: str | None) -> Projector:
    """Build a projector that expresses every receipt in ``display_code``.

    ``None`` keeps raw receipt amounts. A receipt whose own currency is not in
    the table is read as the default currency.
    """
    if not display_code:
        return raw_amount
    target = display_code.upper()
    if not is_supported(target):
        logger.warning("[CURRENCY] Unsupported display currency '%s', using %s.", target, DEFAULT_CURRENCY)
        target = DEFAULT_CURRENCY

    def project(receipt: Receipt) -> float:
        source = receipt.currency if is_supported(receipt.currency) else DEFAULT_CURRENCY
        return convert(receipt.amount, source, target)

    return project
