from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, List, Optional, Sequence

from zone01_profile.core import ChartPoint, TransactionRecord


XP_SCALE = 1000  # raw amount -> kB display unit

_Q0 = Decimal("1")
_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def _ts_key(record: TransactionRecord) -> datetime:
    return record.created_at or _EPOCH


def _round_units(x: Decimal) -> int:
    """ROUND_HALF_UP once at the end, like a human reading a kB badge."""
    return int(x.quantize(_Q0, rounding=ROUND_HALF_UP))


def total_xp(records: Iterable[TransactionRecord], *, scale: int = XP_SCALE) -> int:
    raw = sum((r.amount for r in records), 0)
    if not raw:
        return 0
    return _round_units(Decimal(raw) / Decimal(scale))


def activity_units(amount: int, *, scale: int = XP_SCALE) -> int:
    """Per-transaction badge value (always rounded up)."""
    return math.ceil(amount / scale)


def recent_activity(records: Iterable[TransactionRecord], n: int = 3) -> List[TransactionRecord]:
    if n <= 0:
        return []
    ordered = sorted(records, key=_ts_key, reverse=True)
    return ordered[:n]


def cumulative_series(records: Iterable[TransactionRecord], *, scale: int = XP_SCALE) -> List[ChartPoint]:
    running = 0
    out: List[ChartPoint] = []
    for r in sorted(records, key=_ts_key):
        running += r.amount
        out.append(
            ChartPoint(
                timestamp=_ts_key(r),
                value=running / scale,
                label=r.label,
                amount=r.amount,
            )
        )
    return out


@dataclass(frozen=True)
class XPSummary:
    total: int
    transactions: int
    first: Optional[datetime]
    last: Optional[datetime]


def summarize(records: Sequence[TransactionRecord], *, scale: int = XP_SCALE) -> XPSummary:
    stamps = [r.created_at for r in records if r.created_at is not None]
    return XPSummary(
        total=total_xp(records, scale=scale),
        transactions=len(records),
        first=min(stamps) if stamps else None,
        last=max(stamps) if stamps else None,
    )
