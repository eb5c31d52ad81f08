import re
from dataclasses import dataclass
from datetime import datetime, timezone
from pydantic import BaseModel, Field, ConfigDict, field_validator


class Transaction(BaseModel):
    payer: str = Field(..., min_length=1, description="Sponsoring payer")
    points: int = Field(..., description="Positive grant or negative clawback")
    timestamp: datetime

    model_config = ConfigDict(from_attributes=True, json_schema_extra={
        "example": {
            "payer": "DANNON",
            "points": 1000,
            "timestamp": "2020-11-02T14:00:00Z"
        }
    })

    @field_validator("timestamp")
    @classmethod
    def assume_utc(cls, value: datetime) -> datetime:
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value


POINTS_PATTERN = re.compile(r"[+-]?[0-9]+")
RFC3339_PATTERN = re.compile(
    r"[0-9]{4}-[0-9]{2}-[0-9]{2}T[0-9]{2}:[0-9]{2}:[0-9]{2}(\.[0-9]+)?(Z|[+-][0-9]{2}:[0-9]{2})"
)


class CsvTransaction(Transaction):
    """A transaction read from a CSV cell triple; only exact text formats are accepted."""

    @field_validator("points", mode="before")
    @classmethod
    def plain_integer(cls, value):
        if not isinstance(value, str) or not POINTS_PATTERN.fullmatch(value):
            raise ValueError(f"points must be a plain integer, got {value!r}")
        return value

    @field_validator("timestamp", mode="before")
    @classmethod
    def rfc3339(cls, value):
        if not isinstance(value, str) or not RFC3339_PATTERN.fullmatch(value):
            raise ValueError(f"timestamp must be RFC 3339, got {value!r}")
        return value


@dataclass(frozen=True)
class Event:
    """A transaction in the order it was read, ready for chronological sorting."""
    payer: str
    points: int
    timestamp: datetime
    sequence: int

    @classmethod
    def from_transaction(cls, transaction: Transaction, sequence: int) -> "Event":
        return cls(
            payer=transaction.payer, points=transaction.points,
            timestamp=transaction.timestamp, sequence=sequence,
        )

    @property
    def sort_key(self) -> tuple[datetime, int]:
        return (self.timestamp, self.sequence)


@dataclass(eq=False)
class PointEntry:
    """One positive grant. `points` shrinks as deductions consume it."""
    payer: str
    points: int
    timestamp: datetime

    @property
    def is_spent(self) -> bool:
        return self.points == 0


class SpendRequest(BaseModel):
    points: int = Field(..., ge=0, description="Points the user wants to spend")
    transactions: list[Transaction]

    model_config = ConfigDict(json_schema_extra={
        "example": {
            "points": 5000,
            "transactions": [
                {"payer": "DANNON", "points": 300, "timestamp": "2020-10-31T10:00:00Z"},
                {"payer": "UNILEVER", "points": 200, "timestamp": "2020-10-31T11:00:00Z"},
                {"payer": "DANNON", "points": -200, "timestamp": "2020-10-31T15:00:00Z"},
                {"payer": "MILLER COORS", "points": 10000, "timestamp": "2020-11-01T14:00:00Z"},
                {"payer": "DANNON", "points": 1000, "timestamp": "2020-11-02T14:00:00Z"}
            ]
        }
    })


class BalanceRequest(BaseModel):
    transactions: list[Transaction]


class SpendResponse(BaseModel):
    balances: dict[str, int]
    spent: dict[str, int] = Field(default_factory=dict)
    total_points: int
    message: str
