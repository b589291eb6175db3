"""
Interval value objects shared by slot generation and admission control.

All comparisons in the scheduler go through ``TimeRange.overlaps`` so that the
half-open convention ``[start, end)`` is applied in exactly one place.
"""

from dataclasses import dataclass, field
from datetime import datetime, time, timedelta
from typing import Optional


@dataclass(frozen=True)
class TimeRange:
    """A half-open interval ``[start, end)`` of timezone-aware datetimes."""

    start: datetime
    end: datetime

    def __str__(self) -> str:
        return f"{self.start.isoformat()} - {self.end.isoformat()}"

    def overlaps(self, other: "TimeRange") -> bool:
        """
        Check whether two half-open ranges share at least one instant.

        Ranges that merely touch (``a.end == b.start``) do not overlap.
        """
        return self.start < other.end and other.start < self.end

    def contains_range(self, other: "TimeRange") -> bool:
        """Check if this range fully contains another range."""
        return self.start <= other.start and other.end <= self.end

    def padded(self, before_minutes: int = 0, after_minutes: int = 0) -> "TimeRange":
        """Return the range widened by the given buffers."""
        return TimeRange(
            self.start - timedelta(minutes=before_minutes),
            self.end + timedelta(minutes=after_minutes),
        )

    @property
    def duration_minutes(self) -> float:
        return (self.end - self.start).total_seconds() / 60


def conflicts_with_buffers(
    candidate: TimeRange,
    busy: TimeRange,
    buffer_before: int = 0,
    buffer_after: int = 0,
) -> bool:
    """
    Check if a candidate meeting clashes with a busy interval once buffers apply.

    The candidate needs ``buffer_before`` free minutes before it and
    ``buffer_after`` free minutes after it, and the busy interval is surrounded
    by the same padding, so neighbouring meetings never abut without the
    configured breathing room on either side.
    """
    if candidate.padded(buffer_before, buffer_after).overlaps(busy):
        return True
    return candidate.overlaps(busy.padded(buffer_before, buffer_after))


@dataclass(frozen=True)
class WindowSpec:
    """
    One recurring weekly opening, detached from storage.

    ``weekday`` follows ``date.weekday()`` (Monday = 0).
    """

    weekday: int
    start_time: time
    end_time: time
    timezone: str
    meeting_type_id: Optional[str] = None
    window_id: Optional[str] = None

    @property
    def is_well_formed(self) -> bool:
        return 0 <= self.weekday <= 6 and self.start_time < self.end_time


@dataclass(frozen=True)
class BusyInterval:
    """An active booking or blocked period that removes time from a host."""

    start_utc: datetime
    end_utc: datetime
    host_id: Optional[str] = None
    source: str = "booking"
    source_id: Optional[str] = None

    @property
    def range(self) -> TimeRange:
        return TimeRange(self.start_utc, self.end_utc)


@dataclass(frozen=True)
class MeetingRules:
    """Scheduling parameters of a meeting type, frozen for one generation call."""

    duration: int
    buffer_before: int = 0
    buffer_after: int = 0
    min_notice_minutes: int = 0
    max_advance_days: Optional[int] = None

    def __post_init__(self):
        if self.duration <= 0:
            raise ValueError("duration must be positive")
        if self.buffer_before < 0 or self.buffer_after < 0:
            raise ValueError("buffers must not be negative")
        if self.min_notice_minutes < 0:
            raise ValueError("min_notice_minutes must not be negative")


@dataclass(frozen=True, order=True)
class CandidateSlot:
    """An ephemeral, unreserved slot offered to a guest."""

    start_utc: datetime
    end_utc: datetime
    start_local: datetime = field(compare=False)
    end_local: datetime = field(compare=False)

    @property
    def range(self) -> TimeRange:
        return TimeRange(self.start_utc, self.end_utc)

    def to_dict(self):
        return {
            "start_utc": self.start_utc.isoformat(),
            "end_utc": self.end_utc.isoformat(),
            "start_local": self.start_local.isoformat(),
            "end_local": self.end_local.isoformat(),
        }
