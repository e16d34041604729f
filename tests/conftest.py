import itertools
from collections.abc import Callable
from datetime import datetime, timedelta, timezone
from typing import Any

import pytest

from receipt_insights.models import Receipt


@pytest.fixture
def make_receipt() -> Callable[..., Receipt]:
    counter = itertools.count(1)

    def factory(**overrides: Any) -> Receipt:
        index = next(counter)
        data: dict[str, Any] = {
            "id": f"r{index}",
            "owner": "alex@example.com",
            "issuer": "Visa",
            "merchant": "Corner Cafe",
            "amount": 10.0,
            "currency": "USD",
            "categories": ["Food"],
            "timestamp": datetime.now(timezone.utc) - timedelta(days=1),
        }
        data.update(overrides)
        return Receipt(**data)

    return factory


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"
