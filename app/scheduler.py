"""
Daily Capacity Scheduler
Packs ranked work items into consecutive working days without exceeding a daily hour budget

The scheduler is a pure function over an in-memory list:
- Items are consumed in the order given (ranking happens upstream)
- Each day is filled greedily until the next item no longer fits
- Weekends can be skipped entirely
- An item longer than the daily capacity gets a day of its own
"""

import logging
import math
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from numbers import Real
from typing import Any, Dict, Iterable, List, Optional, Tuple

from app.errors import InvalidConfiguration, MalformedInput

logger = logging.getLogger(__name__)

DEFAULT_CAPACITY_HOURS = 8.0
DEFAULT_DAY_START_HOUR = 9

# Day totals are rounded to this many decimal places before the capacity check
_HOURS_PRECISION = 9


# ============================================================================
# Data Model
# ============================================================================

@dataclass(frozen=True)
class WorkItem:
    """A unit of schedulable work with an estimated duration"""
    id: str
    duration_hours: float
    rank: float = 0
    annotation: str = ''


@dataclass(frozen=True)
class Assignment:
    """A work item placed on a day, as hour offsets from the day start"""
    task_id: str
    start_offset_hours: float
    end_offset_hours: float
    start_time: str
    end_time: str
    annotation: str = ''

    def to_dict(self) -> Dict[str, Any]:
        return {
            'task_id': self.task_id,
            'start_time': self.start_time,
            'end_time': self.end_time,
            'start_offset_hours': self.start_offset_hours,
            'end_offset_hours': self.end_offset_hours,
            'notes': self.annotation,
        }


@dataclass(frozen=True)
class ScheduleDay:
    """
    One calendar day of the schedule; never emitted empty

    total_hours is the sum of the assigned durations rounded to 9 decimal
    places. It never exceeds capacity unless the day holds a single
    oversized item.
    """
    date: date
    assignments: Tuple[Assignment, ...]
    total_hours: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            'date': self.date.isoformat(),
            'assignments': [a.to_dict() for a in self.assignments],
            'total_hours': self.total_hours,
        }


@dataclass(frozen=True)
class ScheduleSummary:
    total_items: int = 0
    total_hours: float = 0.0
    total_days: int = 0
    average_hours_per_day: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            'total_items': self.total_items,
            'total_hours': self.total_hours,
            'total_days': self.total_days,
            'average_hours_per_day': self.average_hours_per_day,
        }


@dataclass(frozen=True)
class ScheduleResult:
    days: Tuple[ScheduleDay, ...] = ()
    summary: ScheduleSummary = field(default_factory=ScheduleSummary)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to the plain mapping handed to downstream agents"""
        return {
            'days': [day.to_dict() for day in self.days],
            'summary': self.summary.to_dict(),
        }


class ScheduleObserver:
    """
    Hooks invoked by the scheduler at day-flush and completion boundaries

    The base class does nothing. Subclass it to print progress, emit
    telemetry events, etc.
    """

    def on_day_flushed(self, day: ScheduleDay) -> None:
        pass

    def on_complete(self, result: ScheduleResult) -> None:
        pass


# ============================================================================
# Date / Time Helpers
# ============================================================================

def is_weekend(day: date) -> bool:
    return day.weekday() >= 5


def next_working_day(day: date) -> date:
    """Return `day` itself if it is a weekday, otherwise the following Monday"""
    while is_weekend(day):
        day += timedelta(days=1)
    return day


def format_time_of_day(offset_hours: float, day_start_hour: int = DEFAULT_DAY_START_HOUR) -> str:
    """
    Convert an hour offset from the day start into an HH:MM label

    Example:
        >>> format_time_of_day(2.5)
        '11:30'
    """
    hours = math.floor(day_start_hour + offset_hours)
    minutes = math.floor((offset_hours % 1) * 60 + 0.5)
    if minutes == 60:
        hours += 1
        minutes = 0
    return f"{hours:02d}:{minutes:02d}"


# ============================================================================
# Validation
# ============================================================================

def _is_positive_number(value: Any) -> bool:
    if isinstance(value, bool) or not isinstance(value, Real):
        return False
    return not math.isnan(value) and value > 0


def _validate_items(items: List[WorkItem]) -> None:
    seen = set()
    for item in items:
        if not _is_positive_number(item.duration_hours) or math.isinf(item.duration_hours):
            raise MalformedInput(
                f"Work item '{item.id}' has an invalid duration: {item.duration_hours!r}",
                item_id=item.id
            )
        if item.id in seen:
            raise MalformedInput(f"Duplicate work item id '{item.id}'", item_id=item.id)
        seen.add(item.id)


# ============================================================================
# Scheduling
# ============================================================================

def _day_total(durations: List[float]) -> float:
    # 0.1 + 0.2 counts as 0.3, so decimal durations fill a day exactly
    return round(math.fsum(durations), _HOURS_PRECISION)


class _DayBuilder:
    """Accumulates assignments for the day currently being filled"""

    def __init__(self, day: date):
        self.date = day
        self.durations: List[float] = []
        self.assignments: List[Assignment] = []

    @property
    def hours(self) -> float:
        return _day_total(self.durations)

    def is_empty(self) -> bool:
        return not self.assignments

    def fits(self, item: WorkItem, capacity: float) -> bool:
        # An empty day always accepts, otherwise oversized items never place
        if self.is_empty():
            return True
        return _day_total(self.durations + [item.duration_hours]) <= capacity

    def add(self, item: WorkItem, day_start_hour: int) -> None:
        start = self.hours
        self.durations.append(item.duration_hours)
        end = self.hours
        self.assignments.append(Assignment(
            task_id=item.id,
            start_offset_hours=start,
            end_offset_hours=end,
            start_time=format_time_of_day(start, day_start_hour),
            end_time=format_time_of_day(end, day_start_hour),
            annotation=item.annotation,
        ))

    def build(self) -> ScheduleDay:
        return ScheduleDay(
            date=self.date,
            assignments=tuple(self.assignments),
            total_hours=self.hours,
        )


def schedule_work_items(
    items: Iterable[WorkItem],
    start_date: date,
    capacity_hours_per_day: float = DEFAULT_CAPACITY_HOURS,
    skip_weekends: bool = True,
    day_start_hour: int = DEFAULT_DAY_START_HOUR,
    observer: Optional[ScheduleObserver] = None
) -> ScheduleResult:
    """
    Greedy first-fit packing of work items into days

    Args:
        items: Work items, already sorted by descending rank (not re-sorted here)
        start_date: First calendar day to fill
        capacity_hours_per_day: Maximum hours per day (must be > 0)
        skip_weekends: Never place work on Saturday or Sunday
        day_start_hour: Wall-clock hour that offset 0 maps to (labels only)
        observer: Optional hooks called on each day flush and on completion

    Returns:
        ScheduleResult with chronologically ordered, non-empty days

    Raises:
        InvalidConfiguration: capacity is not a positive number, or start_date is not a date
        MalformedInput: an item has a non-positive/non-numeric duration or a duplicate id
    """
    if not _is_positive_number(capacity_hours_per_day):
        raise InvalidConfiguration(
            f"capacity_hours_per_day must be a positive number, got {capacity_hours_per_day!r}"
        )
    if isinstance(start_date, datetime):
        start_date = start_date.date()
    if not isinstance(start_date, date):
        raise InvalidConfiguration(f"start_date must be a date, got {start_date!r}")

    items = list(items)
    _validate_items(items)
    observer = observer or ScheduleObserver()

    days: List[ScheduleDay] = []

    def flush(builder: _DayBuilder) -> None:
        day = builder.build()
        days.append(day)
        logger.debug("Flushed %s with %d item(s), %.2fh", day.date, len(day.assignments), day.total_hours)
        observer.on_day_flushed(day)

    current = _DayBuilder(start_date)

    for item in items:
        if skip_weekends and current.is_empty():
            current.date = next_working_day(current.date)

        if not current.fits(item, capacity_hours_per_day):
            flush(current)
            next_day = current.date + timedelta(days=1)
            current = _DayBuilder(next_working_day(next_day) if skip_weekends else next_day)

        current.add(item, day_start_hour)

    if not current.is_empty():
        flush(current)

    total_hours = math.fsum(item.duration_hours for item in items)
    summary = ScheduleSummary(
        total_items=len(items),
        total_hours=total_hours,
        total_days=len(days),
        average_hours_per_day=total_hours / len(days) if days else 0.0,
    )
    result = ScheduleResult(days=tuple(days), summary=summary)
    observer.on_complete(result)
    return result
