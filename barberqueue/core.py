# barberqueue/core.py
"""Pure helpers: no session, no I/O. Services and routers build on these."""

import math
from datetime import datetime, timezone
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, List, Optional, Sequence, Tuple

EARTH_RADIUS_KM = 6371

# booking status -> statuses it may move to
TRANSITIONS = {
    "waiting": {"in_progress", "cancelled", "no_show"},
    "in_progress": {"completed", "cancelled"},
    "completed": set(),
    "cancelled": set(),
    "no_show": set(),
}


def utcnow() -> datetime:
    # naive UTC, the way every timestamp column is stored
    return datetime.now(timezone.utc).replace(tzinfo=None)


def can_transition(current: str, new: str) -> bool:
    return new in TRANSITIONS.get(current, set())


def sequence_queue(entries: Iterable[Tuple[datetime, int]], avg_duration: Optional[int]) -> List[Tuple[int, int, int]]:
    """
    Order waiting entries first-in first-out and number them.

    entries: (joined_at, id) pairs. Equal join times fall back to id, which
    is the insertion sequence.
    Returns (id, position, estimated_wait) triples, positions 1..N, where the
    wait of position p is (p - 1) * avg_duration. A missing duration counts as 0.
    """
    duration = avg_duration or 0
    ordered = sorted(entries, key=lambda e: (e[0], e[1]))
    return [
        (entry_id, position, (position - 1) * duration)
        for position, (_, entry_id) in enumerate(ordered, start=1)
    ]


def rating_aggregate(ratings: Sequence[int]) -> Tuple[float, int]:
    """Mean rounded half-up to 2 places, and count. No ratings gives (0, 0)."""
    count = len(ratings)
    if count == 0:
        return 0.0, 0
    mean = Decimal(sum(ratings)) / Decimal(count)
    return float(mean.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)), count


def haversine_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    d_lat = math.radians(lat2 - lat1)
    d_lon = math.radians(lon2 - lon1)
    a = (
        math.sin(d_lat / 2) ** 2
        + math.cos(math.radians(lat1)) * math.cos(math.radians(lat2)) * math.sin(d_lon / 2) ** 2
    )
    return EARTH_RADIUS_KM * 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
