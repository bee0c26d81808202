from datetime import datetime
from typing import Dict, Iterable, List, Optional, Sequence, Set
import logging
import time

from models import PlayEvent, TrendingEntry

logger = logging.getLogger(__name__)

DAY_MS = 24 * 60 * 60 * 1000
DEFAULT_WINDOW_MS = 7 * DAY_MS

# Score weights
WEIGHT_PLAYS = 0.7
WEIGHT_UNIQUE_LISTENERS = 0.3
RECENCY_SCALE = 10.0


def now_ms() -> int:
    return int(time.time() * 1000)


def events_in_window(events: Iterable[PlayEvent], token_id: int, window_ms: int, now: int) -> List[PlayEvent]:
    window_start = now - window_ms
    return [e for e in events if e.token_id == token_id and window_start <= e.timestamp <= now]


def unique_listeners(events: Iterable[PlayEvent], token_id: Optional[int] = None) -> Set[str]:
    return {e.listener.lower() for e in events if token_id is None or e.token_id == token_id}


def _score(window_events: Sequence[PlayEvent], window_ms: int, now: int) -> float:
    if not window_events:
        return 0.0
    window_start = now - window_ms
    play_count = len(window_events)
    listeners = len(unique_listeners(window_events))
    avg_timestamp = sum(e.timestamp for e in window_events) / play_count
    recency_boost = (avg_timestamp - window_start) / window_ms * RECENCY_SCALE
    return play_count * WEIGHT_PLAYS + listeners * WEIGHT_UNIQUE_LISTENERS + recency_boost


def calculate_trending_score(
    token_id: int,
    events: Iterable[PlayEvent],
    window_ms: int = DEFAULT_WINDOW_MS,
    now: Optional[int] = None,
) -> float:
    """Trending score of one item over the trailing window.

    Formula: plays * 0.7 + unique_listeners * 0.3 + recency_boost, where the
    recency boost is 0-10 depending on how close the average play is to now.
    """
    now = now_ms() if now is None else now
    return _score(events_in_window(events, token_id, window_ms, now), window_ms, now)


def get_trending(
    events: Iterable[PlayEvent],
    candidates: Iterable[int],
    limit: int = 10,
    window_ms: int = DEFAULT_WINDOW_MS,
    now: Optional[int] = None,
) -> List[TrendingEntry]:
    """Rank candidates by trending score, highest first.

    The event stream is trusted to be deduplicated already; no per-day play
    filtering happens here.
    """
    now = now_ms() if now is None else now
    events = list(events)
    entries = []
    for token_id in dict.fromkeys(candidates):
        window_events = events_in_window(events, token_id, window_ms, now)
        entries.append(TrendingEntry(
            token_id=token_id,
            score=_score(window_events, window_ms, now),
            plays=len(window_events),
            unique_listeners=len(unique_listeners(window_events)),
        ))

    entries.sort(key=lambda e: (-e.score, e.token_id))
    logger.debug(f"Trending computed for {len(entries)} candidates, returning {min(limit, len(entries))}")
    return entries[:limit]


def local_midnight_ms(now: int) -> int:
    """Start of the local calendar day containing ``now``."""
    local = datetime.fromtimestamp(now / 1000)
    midnight = local.replace(hour=0, minute=0, second=0, microsecond=0)
    return int(midnight.timestamp() * 1000)


def has_played_today(
    events: Iterable[PlayEvent],
    token_id: int,
    listener: str,
    now: Optional[int] = None,
) -> bool:
    """Whether this listener already has a play of this item since local midnight.

    Used when deciding whether to record a new play at all.
    """
    now = now_ms() if now is None else now
    since = local_midnight_ms(now)
    listener_key = listener.lower()
    return any(
        e.token_id == token_id and e.listener.lower() == listener_key and e.timestamp >= since
        for e in events
    )


def aggregate_play_counts(events: Iterable[PlayEvent]) -> Dict[int, int]:
    counts: Dict[int, int] = {}
    for event in events:
        counts[event.token_id] = counts.get(event.token_id, 0) + 1
    return counts


def best_in_album(events: Iterable[PlayEvent], token_ids: Sequence[int]) -> Optional[Dict[str, int]]:
    """The album track with the most plays; the earliest listed track wins ties."""
    if not token_ids:
        return None
    album = set(token_ids)
    counts = aggregate_play_counts(e for e in events if e.token_id in album)
    best = None
    for token_id in token_ids:
        plays = counts.get(token_id, 0)
        if best is None or plays > best["play_count"]:
            best = {"token_id": token_id, "play_count": plays}
    return best
