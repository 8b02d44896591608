"""
Commit activity transforms used by the dashboard chart and the iOS widget.

- bucket_commits: irregular commit timestamps -> fixed-length histogram over a
  bounded window (repo creation clamped to a look-back limit).
- momentum_curve: per-day commit counts -> decayed cumulative "momentum" series.

Both are pure functions: no I/O, no shared state, inputs are never mutated.
"""

from __future__ import annotations

import datetime as dt
import math
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple, Union

DEFAULT_NUM_BUCKETS = 96
DEFAULT_LOOKBACK = dt.timedelta(days=180)
DEFAULT_DECAY_RATE = 0.95

_ONE_DAY = dt.timedelta(days=1)


# -----------------------------
# Entities
# -----------------------------
@dataclass(frozen=True)
class CommitEvent:
    """One observation of commit activity: a raw commit (count=1) or a daily total."""

    timestamp: dt.datetime
    count: int = 1

    def __post_init__(self):
        if isinstance(self.count, bool) or not isinstance(self.count, int) or self.count < 0:
            raise ValueError(f"Commit count must be an integer >= 0, got {self.count!r}.")


@dataclass(frozen=True)
class TimeWindow:
    start: dt.datetime
    end: dt.datetime

    @property
    def span(self) -> dt.timedelta:
        return self.end - self.start

    def __contains__(self, moment: dt.datetime) -> bool:
        return self.start <= moment < self.end


@dataclass(frozen=True)
class HistogramBucket:
    bucket_start: dt.datetime
    count: int


CommitLike = Union[CommitEvent, dt.datetime]
DayLike = Union[CommitEvent, int, float]


# -----------------------------
# Helpers
# -----------------------------
def _as_utc(moment: dt.datetime) -> dt.datetime:
    """
    Naive datetimes are taken to be UTC; aware ones are converted to UTC.
    """
    if moment.tzinfo is None:
        return moment.replace(tzinfo=dt.timezone.utc)
    return moment.astimezone(dt.timezone.utc)


def _as_event(item: Any) -> Optional[CommitEvent]:
    """
    None for anything without a usable datetime timestamp.
    """
    if isinstance(item, CommitEvent):
        return item if isinstance(item.timestamp, dt.datetime) else None
    if isinstance(item, dt.datetime):
        return CommitEvent(timestamp=item)
    return None


def _day_count(day: DayLike) -> float:
    count = day.count if isinstance(day, CommitEvent) else day
    if isinstance(count, bool) or not isinstance(count, (int, float)) or not math.isfinite(count):
        raise ValueError(f"Commit count must be a finite number, got {count!r}.")
    if count < 0:
        raise ValueError(f"Commit count must be >= 0, got {count}.")
    return float(count)


def isoformat_z(moment: dt.datetime) -> str:
    """
    ISO-8601 in UTC with millisecond precision and a trailing 'Z' (2024-05-01T12:00:00.000Z).
    """
    return _as_utc(moment).isoformat(timespec="milliseconds").replace("+00:00", "Z")


# -----------------------------
# Commit bucketer
# -----------------------------
def time_window(
    repo_created_at: dt.datetime,
    now: dt.datetime,
    lookback: dt.timedelta = DEFAULT_LOOKBACK,
) -> TimeWindow:
    """
    Window ending at `now`, starting at the later of `now - lookback` and repo creation.
    A repo "created" after `now` collapses to the empty window [now, now).
    """
    if lookback < dt.timedelta(0):
        raise ValueError("lookback must not be negative.")
    now = _as_utc(now)
    start = max(now - lookback, _as_utc(repo_created_at))
    if start > now:
        start = now
    return TimeWindow(start=start, end=now)


def bucket_commits(
    commits: Iterable[CommitLike],
    repo_created_at: dt.datetime,
    now: dt.datetime,
    lookback: dt.timedelta = DEFAULT_LOOKBACK,
    num_buckets: int = DEFAULT_NUM_BUCKETS,
) -> Tuple[HistogramBucket, ...]:
    """
    Build an evenly spaced histogram of commit activity.

    The window is split into `num_buckets` half-open intervals of equal width;
    a commit lands in bucket floor((ts - start) / width), so a timestamp on a
    boundary belongs to the later bucket. Commits outside [start, end) and
    items without a datetime timestamp are ignored. An empty window yields
    `num_buckets` zero buckets starting at `now`.
    """
    if isinstance(num_buckets, bool) or not isinstance(num_buckets, int) or num_buckets < 1:
        raise ValueError(f"num_buckets must be a positive integer, got {num_buckets!r}.")

    window = time_window(repo_created_at, now, lookback)
    width = window.span / num_buckets
    counts = [0] * num_buckets

    last = num_buckets - 1
    for item in commits:
        event = _as_event(item)
        if event is None:
            continue
        ts = _as_utc(event.timestamp)
        if ts not in window:
            continue
        # width is rounded to whole microseconds, so the final bucket absorbs
        # the sub-microsecond remainder of the window
        index = min((ts - window.start) // width, last) if width else last
        if 0 <= index < num_buckets:
            counts[index] += event.count

    return tuple(
        HistogramBucket(bucket_start=window.start + i * width, count=c) for i, c in enumerate(counts)
    )


def buckets_to_json(buckets: Sequence[HistogramBucket]) -> List[Dict[str, Any]]:
    return [{"date": isoformat_z(b.bucket_start), "count": int(b.count)} for b in buckets]


# -----------------------------
# Daily aggregation
# -----------------------------
def daily_counts(commits: Iterable[CommitLike], start: dt.date, end: dt.date) -> Tuple[CommitEvent, ...]:
    """
    One CommitEvent per UTC calendar day from start to end (inclusive), oldest first.
    Days without commits are present with count 0; commits outside the range are dropped.
    """
    per_day: Dict[dt.date, int] = {}
    for item in commits:
        event = _as_event(item)
        if event is None:
            continue
        day = _as_utc(event.timestamp).date()
        if start <= day <= end:
            per_day[day] = per_day.get(day, 0) + event.count

    out: List[CommitEvent] = []
    d = start
    while d <= end:
        midnight = dt.datetime(d.year, d.month, d.day, tzinfo=dt.timezone.utc)
        out.append(CommitEvent(timestamp=midnight, count=per_day.get(d, 0)))
        d += _ONE_DAY
    return tuple(out)


# -----------------------------
# Momentum curve
# -----------------------------
def _check_decay_rate(decay_rate: Any) -> float:
    if isinstance(decay_rate, bool) or not isinstance(decay_rate, (int, float)):
        raise ValueError(f"decay_rate must be a number, got {decay_rate!r}.")
    if not 0.0 < decay_rate < 1.0:
        raise ValueError(f"decay_rate must be in the open interval (0, 1), got {decay_rate}.")
    return float(decay_rate)


def momentum_curve(days: Iterable[DayLike], decay_rate: float = DEFAULT_DECAY_RATE) -> Tuple[float, ...]:
    """
    Decayed cumulative commit momentum, one value per day.

    Each day's count is added before the value is recorded, and the decay is
    applied afterwards to carry momentum into the next day:

        m += count; emit m; m *= decay_rate

    so [1, 1, 1] at 0.95 gives (1.0, 1.95, 2.8525). The series is not
    normalised and can fall on quiet days.
    """
    rate = _check_decay_rate(decay_rate)
    counts = [_day_count(day) for day in days]

    out: List[float] = []
    m = 0.0
    for count in counts:
        m += count
        out.append(m)
        m *= rate
    return tuple(out)


def normalize_series(values: Sequence[float], peak: Optional[float] = None) -> Tuple[float, ...]:
    """
    Scale values into 0..1 by the series maximum (or `peak`); an all-zero series stays zero.
    """
    top = max(values, default=0.0) if peak is None else peak
    if top <= 0:
        return tuple(0.0 for _ in values)
    return tuple(float(v) / top for v in values)
