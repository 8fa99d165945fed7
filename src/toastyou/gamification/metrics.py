"""Badge metrics: a closed set of metric kinds, each a pure function of a snapshot."""

from __future__ import annotations

import re
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from enum import Enum
from zoneinfo import ZoneInfo

from toastyou.activity.service import NOTE_CREATE, REACTION_RECEIVED, TOAST_GENERATED, TOAST_SHARE
from toastyou.toasts.week_utils import local_date


class MetricKind(str, Enum):
    """What a badge requirement measures."""

    FIRST_NOTE = "first_note"
    NOTES = "notes"
    STREAK = "streak"
    TOASTS = "toasts"
    SHARES = "shares"
    REACTIONS = "reactions"


_SUFFIX = re.compile(r"_\d+$")


def parse_requirement(requirement: str) -> MetricKind:
    """Map a requirement key such as 'streak_7' or 'first_note' onto its MetricKind.

    Raises ValueError for keys outside the closed set.
    """
    key = requirement.strip().lower()
    try:
        return MetricKind(key)
    except ValueError:
        pass
    return MetricKind(_SUFFIX.sub("", key))


@dataclass
class ActivitySnapshot:
    """Everything a metric function may look at for one user at one instant."""

    today: date
    tz: ZoneInfo
    note_times: list[datetime] = field(default_factory=list)
    toast_count: int = 0
    share_count: int = 0
    reaction_count: int = 0

    @property
    def note_count(self) -> int:
        return len(self.note_times)


def compute_streak(note_times: Iterable[datetime], tz: ZoneInfo, today: date) -> int:
    """Consecutive local calendar days with at least one note, walking back from today.

    A day with no note breaks the streak; no note today means a streak of 0.
    """
    days = {local_date(t, tz) for t in note_times}
    streak = 0
    day = today
    while day in days:
        streak += 1
        day -= timedelta(days=1)
    return streak


def _first_note(s: ActivitySnapshot) -> int:
    return min(s.note_count, 1)


def _notes(s: ActivitySnapshot) -> int:
    return s.note_count


def _streak(s: ActivitySnapshot) -> int:
    return compute_streak(s.note_times, s.tz, s.today)


def _toasts(s: ActivitySnapshot) -> int:
    return s.toast_count


def _shares(s: ActivitySnapshot) -> int:
    return s.share_count


def _reactions(s: ActivitySnapshot) -> int:
    return s.reaction_count


METRIC_FUNCTIONS: dict[MetricKind, Callable[[ActivitySnapshot], int]] = {
    MetricKind.FIRST_NOTE: _first_note,
    MetricKind.NOTES: _notes,
    MetricKind.STREAK: _streak,
    MetricKind.TOASTS: _toasts,
    MetricKind.SHARES: _shares,
    MetricKind.REACTIONS: _reactions,
}

ACTIVITY_METRICS: dict[str, frozenset[MetricKind]] = {
    NOTE_CREATE: frozenset({MetricKind.FIRST_NOTE, MetricKind.NOTES, MetricKind.STREAK}),
    TOAST_GENERATED: frozenset({MetricKind.TOASTS}),
    TOAST_SHARE: frozenset({MetricKind.SHARES}),
    REACTION_RECEIVED: frozenset({MetricKind.REACTIONS}),
}


def metrics_for_activity(activity_type: str | None) -> frozenset[MetricKind]:
    """Metrics that can change after an activity; unknown types re-check everything."""
    if activity_type is None:
        return frozenset(MetricKind)
    return ACTIVITY_METRICS.get(activity_type, frozenset(MetricKind))


def compute_metric(kind: MetricKind, snapshot: ActivitySnapshot) -> int:
    return METRIC_FUNCTIONS[kind](snapshot)
