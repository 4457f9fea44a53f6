"""Market data models: one observation per asset per day."""

from __future__ import annotations

from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict, Field

# All observations for a calendar day are stamped at this UTC hour.
OBSERVATION_HOUR_UTC = 12


def normalize_timestamp(ts: datetime) -> datetime:
    """Map an instant to 12:00 UTC of its calendar day.

    Naive datetimes are treated as UTC.
    """
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    else:
        ts = ts.astimezone(timezone.utc)
    return ts.replace(hour=OBSERVATION_HOUR_UTC, minute=0, second=0, microsecond=0)


class PriceObservation(BaseModel):
    """Price and market cap of one asset at one normalized timestamp."""

    model_config = ConfigDict(frozen=True)

    symbol: str
    price: float = Field(gt=0)
    market_cap: float = Field(ge=0)
    ts: datetime
    name: str | None = None
    volume_24h: float | None = None
    change_24h: float | None = None
    change_7d: float | None = None
    change_30d: float | None = None
