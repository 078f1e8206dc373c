"""Event and occurrence domain logic - no I/O dependencies."""

from collections import defaultdict
from dataclasses import dataclass, field, replace
from datetime import date, datetime, time, timedelta
from enum import Enum

from .errors import EventValidationError
from .recurrence import DEFAULT_HORIZON_YEARS, RecurrencePattern


class EventKind(Enum):
    """The four shapes an event can take."""

    SINGLE = "single"
    ALL_DAY = "all_day"
    RECURRING = "recurring"
    RECURRING_ALL_DAY = "recurring_all_day"


def strip_quotes(text: str) -> str:
    """Drop one enclosing pair of double quotes, if present."""
    if len(text) >= 2 and text.startswith('"') and text.endswith('"'):
        return text[1:-1]
    return text


def subjects_match(stored: str, query: str) -> bool:
    """Quote-insensitive subject comparison."""
    return strip_quotes(stored) == strip_quotes(query)


def start_of_day(value: date | datetime) -> datetime:
    if isinstance(value, datetime):
        return datetime.combine(value.date(), time())
    return datetime.combine(value, time())


@dataclass(frozen=True)
class Occurrence:
    """One concrete occurrence of an event, as handed to presenters and exporters."""

    subject: str
    start: datetime
    end: datetime | None
    description: str = ""
    location: str = ""
    is_public: bool = True
    source: "Event | None" = field(default=None, compare=False, repr=False)

    @property
    def all_day(self) -> bool:
        return self.end is None

    @property
    def last_day(self) -> date:
        """Last calendar date this occurrence occupies (end is exclusive)."""
        if self.end is None:
            return self.start.date()
        return max(self.start.date(), (self.end - timedelta(microseconds=1)).date())

    def conflicts_with(self, other: "Occurrence") -> bool:
        """
        All-day occurrences conflict by date; timed ones by half-open overlap.

        Touching boundaries (one ends exactly when the other starts) do not
        conflict.
        """
        if self.all_day or other.all_day:
            return self.start.date() == other.start.date()
        return self.start < other.end and other.start < self.end

    def covers(self, at: datetime) -> bool:
        """Check if this occurrence is in progress at `at`."""
        if self.all_day:
            return self.start.date() == at.date()
        return self.start <= at < self.end

    def intersects(self, first: date, last: date) -> bool:
        """Check if this occurrence touches any date in [first, last]."""
        return self.start.date() <= last and self.last_day >= first

    def sort_key(self) -> tuple:
        """Date ascending, all-day before timed, then start time."""
        return (self.start.date(), not self.all_day, self.start)

    def to_row(self) -> dict:
        """Flat record for export collaborators."""
        return {
            "subject": self.subject,
            "start_date": self.start.date(),
            "start_time": None if self.all_day else self.start.time(),
            "end_date": self.start.date() if self.all_day else self.end.date(),
            "end_time": None if self.all_day else self.end.time(),
            "all_day": self.all_day,
            "description": self.description,
            "location": self.location,
            "private": not self.is_public,
        }


@dataclass
class Event:
    """
    A calendar event: a single occurrence or a recurring template.

    The shape is determined by which fields are set:

        SINGLE              start + end
        ALL_DAY             start only
        RECURRING           start + end on one day + recurrence
        RECURRING_ALL_DAY   start only + recurrence

    Times are naive wall-clock values in the owning calendar's zone.
    Invalid combinations raise EventValidationError on construction (and
    therefore on dataclasses.replace).
    """

    subject: str
    start: datetime
    end: datetime | None = None
    description: str = ""
    location: str = ""
    is_public: bool = True
    recurrence: RecurrencePattern | None = None

    def __post_init__(self):
        if not isinstance(self.subject, str) or not self.subject.strip():
            raise EventValidationError("Event subject must not be empty")
        if self.start is None:
            raise EventValidationError("Event start is required")
        if self.description is None:
            self.description = ""
        if self.location is None:
            self.location = ""

        if self.end is None:
            self.start = start_of_day(self.start)
            return

        if not isinstance(self.start, datetime):
            raise EventValidationError("Timed events need a start time")
        if self.end <= self.start:
            raise EventValidationError(
                f"Event must end after it starts ({self.start} -> {self.end})"
            )
        if self.recurrence is not None and self.end.date() != self.start.date():
            raise EventValidationError("Recurring events must start and end on the same day")

    @property
    def all_day(self) -> bool:
        return self.end is None

    @property
    def is_recurring(self) -> bool:
        return self.recurrence is not None

    @property
    def kind(self) -> EventKind:
        if self.recurrence is None:
            return EventKind.ALL_DAY if self.all_day else EventKind.SINGLE
        return EventKind.RECURRING_ALL_DAY if self.all_day else EventKind.RECURRING

    @property
    def duration(self) -> timedelta | None:
        if self.end is None:
            return None
        return self.end - self.start

    def with_changes(self, **changes) -> "Event":
        """Validated copy with some fields replaced."""
        return replace(self, **changes)

    def occurrence_at(self, start: datetime) -> Occurrence:
        end = None if self.end is None else start + self.duration
        return Occurrence(
            subject=self.subject,
            start=start,
            end=end,
            description=self.description,
            location=self.location,
            is_public=self.is_public,
            source=self,
        )

    def occurrence_starts(self, horizon_years: int = DEFAULT_HORIZON_YEARS) -> list[datetime]:
        if self.recurrence is None:
            return [self.start]
        return self.recurrence.calculate_recurrences(self.start, horizon_years)

    def occurrences(self, horizon_years: int = DEFAULT_HORIZON_YEARS) -> list[Occurrence]:
        """Expand to concrete occurrences (one for non-recurring events)."""
        return [self.occurrence_at(s) for s in self.occurrence_starts(horizon_years)]

    def conflicts_with(
        self, other: "Event", horizon_years: int = DEFAULT_HORIZON_YEARS
    ) -> bool:
        """Check if any occurrence of this event conflicts with any of `other`'s."""
        return any_conflict(self.occurrences(horizon_years), other.occurrences(horizon_years))

    def matches_subject(self, query: str) -> bool:
        return subjects_match(self.subject, query)

    def format_time(self) -> str:
        """Format the event time for display."""
        if self.all_day:
            return "All day"
        return self.start.strftime("%H:%M")

    def describe(self) -> str:
        """One-line human-readable summary."""
        text = f"{self.subject} - {self.start:%Y-%m-%d}"
        if self.all_day:
            text += " All Day"
        elif self.start.date() == self.end.date():
            text += f" {self.start:%H:%M} to {self.end:%H:%M}"
        else:
            text += f" {self.start:%H:%M} to {self.end:%Y-%m-%d %H:%M}"
        if self.location:
            text += f" at {self.location}"
        if self.recurrence is not None:
            text += f" ({self.recurrence.describe()})"
        return text


def any_conflict(left: list[Occurrence], right: list[Occurrence]) -> bool:
    """
    Check if any occurrence in `left` conflicts with any in `right`.

    Occurrences on the right are bucketed by start date so recurring series
    do not degrade into a full pairwise scan.
    """
    if not left or not right:
        return False

    by_day: dict[date, list[Occurrence]] = defaultdict(list)
    max_span = 0
    for occ in right:
        by_day[occ.start.date()].append(occ)
        if not occ.all_day:
            max_span = max(max_span, (occ.end.date() - occ.start.date()).days)

    for occ in left:
        day = occ.start.date()
        if occ.all_day:
            if by_day.get(day):
                return True
            continue

        if any(other.all_day for other in by_day.get(day, ())):
            return True

        # A timed occurrence on the right may have started up to max_span days earlier
        d = day - timedelta(days=max_span)
        last = occ.end.date()
        while d <= last:
            for other in by_day.get(d, ()):
                if not other.all_day and occ.conflicts_with(other):
                    return True
            d += timedelta(days=1)

    return False


def expand_occurrences(
    events: list[Event], horizon_years: int = DEFAULT_HORIZON_YEARS
) -> list[Occurrence]:
    """Flatten events into occurrences, sorted for presentation."""
    occurrences = [occ for e in events for occ in e.occurrences(horizon_years)]
    return sorted(occurrences, key=Occurrence.sort_key)
