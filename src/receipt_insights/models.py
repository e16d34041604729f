from collections.abc import Mapping
from datetime import datetime
from enum import Enum
from typing import Any, Generic, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

T = TypeVar("T")


class RawReceipt(BaseModel):
    """Receipt as delivered by the ingestion backend. Nothing is guaranteed."""

    model_config = ConfigDict(extra="ignore")

    msg_id: Optional[str] = None
    owner: Optional[str] = None
    issuer: Optional[str] = None
    merchant: Optional[str] = None
    amount: Optional[float] = None
    currency: Optional[str] = None
    categories: Optional[list[Optional[str]]] = None
    timestamp: Optional[float] = None
    notes: Optional[str] = None

    @field_validator("categories", mode="before")
    @classmethod
    def _stringify_categories(cls, value: Any) -> Any:
        if isinstance(value, (list, tuple)):
            return [None if item is None else str(item) for item in value]
        return value

    @classmethod
    def from_wire(cls, payload: Any) -> "RawReceipt":
        """Validate a wire dict, dropping any field that fails to parse."""
        data = dict(payload) if isinstance(payload, Mapping) else {}
        try:
            return cls.model_validate(data)
        except ValidationError as exc:
            bad_fields = {err["loc"][0] for err in exc.errors() if err.get("loc")}
            cleaned = {key: value for key, value in data.items() if key not in bad_fields}
            return cls.model_validate(cleaned)


class Receipt(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    msg_id: Optional[str] = None
    owner: str
    issuer: Optional[str] = None
    merchant: str
    amount: float
    currency: str
    categories: list[str] = Field(default_factory=list)
    timestamp: datetime
    notes: Optional[str] = None

    @property
    def timestamp_ms(self) -> int:
        return int(round(self.timestamp.timestamp() * 1000))

    def with_categories(self, categories: list[str]) -> "Receipt":
        return self.model_copy(update={"categories": list(categories)})


class DateRange(str, Enum):
    LAST_7_DAYS = "7d"
    LAST_30_DAYS = "30d"
    LAST_90_DAYS = "90d"
    LAST_365_DAYS = "365d"
    CUSTOM = "custom"


class ReceiptFilterSpec(BaseModel):
    account: str = ""
    range: DateRange = DateRange.LAST_30_DAYS
    category: Optional[str] = None
    merchant: Optional[str] = None
    min_amount: Optional[float] = None
    max_amount: Optional[float] = None
    search: Optional[str] = None


class TopMerchant(BaseModel):
    name: str
    total: float


class InsightSummary(BaseModel):
    total_spend: float
    avg_ticket: float
    tx_count: int
    top_merchant: Optional[TopMerchant] = None


class TimeSeriesPoint(BaseModel):
    date: str  # YYYY-MM-DD, UTC
    total: float


class CategorySlice(BaseModel):
    label: str
    value: float
    percent: float


class Anomaly(BaseModel):
    id: str
    merchant: str
    delta: float
    description: str


class SyncState(str, Enum):
    IDLE = "idle"
    SYNCING = "syncing"
    SUCCESS = "success"
    ERROR = "error"


class SyncStatus(BaseModel):
    model_config = ConfigDict(frozen=True)

    state: SyncState
    last_synced: Optional[datetime] = None
    message: str = ""


class ActivityEvent(BaseModel):
    id: str
    title: str
    detail: str
    timestamp: datetime


class ApiEnvelope(BaseModel, Generic[T]):
    success: bool
    data: Optional[T] = None
    error: Optional[str] = None


class DashboardView(BaseModel):
    currency: str
    receipts: list[Receipt]
    summary: InsightSummary
    series: list[TimeSeriesPoint]
    categories: list[CategorySlice]
    anomalies: list[Anomaly]
    available_categories: list[str]
    activity: list[ActivityEvent]
    sync: SyncStatus
