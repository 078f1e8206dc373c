"""Weekly recurrence patterns - pure date arithmetic, no I/O."""

from dataclasses import dataclass, replace
from datetime import date, datetime, timedelta

from .errors import RecurrenceError

# Single-letter weekday codes, mapped to date.weekday() numbers
WEEKDAY_CODES = {"M": 0, "T": 1, "W": 2, "R": 3, "F": 4, "S": 5, "U": 6}
WEEKDAY_NAMES = ["Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun"]

# Last-resort bound on enumeration when `until` is far away
DEFAULT_HORIZON_YEARS = 5

# Sentinel count meaning "no count, use until"
NO_COUNT = -1


def parse_weekdays(codes: str) -> frozenset[int]:
    """Parse a code string like "MWF" into weekday numbers."""
    if not codes:
        raise RecurrenceError("No weekdays given")
    days = set()
    for c in codes:
        if c not in WEEKDAY_CODES:
            raise RecurrenceError(f"Invalid weekday character: {c!r}")
        days.add(WEEKDAY_CODES[c])
    return frozenset(days)


def add_years(d: date, years: int) -> date:
    """Same month/day `years` later; Feb 29 falls back to Feb 28."""
    try:
        return d.replace(year=d.year + years)
    except ValueError:
        return d.replace(year=d.year + years, day=28)


@dataclass(frozen=True)
class RecurrencePattern:
    """
    A weekday set plus exactly one terminator.

    The pattern stores no anchor: occurrences are always computed from the
    start instant of the event that owns it.
    """

    weekdays: frozenset[int]
    count: int | None = None
    until: date | None = None

    def __post_init__(self):
        if not self.weekdays:
            raise RecurrenceError("Recurrence needs at least one weekday")
        if any(d not in range(7) for d in self.weekdays):
            raise RecurrenceError(f"Weekday numbers out of range: {sorted(self.weekdays)}")
        if isinstance(self.until, datetime):
            object.__setattr__(self, "until", self.until.date())
        if self.count is None and self.until is None:
            raise RecurrenceError("Recurrence needs an occurrence count or an end date")
        if self.count is not None and self.until is not None:
            raise RecurrenceError("Recurrence takes either a count or an end date, not both")
        if self.count is not None and self.count < 1:
            raise RecurrenceError(f"Occurrence count must be positive, got {self.count}")

    @classmethod
    def parse(
        cls,
        codes: str,
        count: int | None = NO_COUNT,
        until: date | datetime | None = None,
    ) -> "RecurrencePattern":
        """Build a pattern from weekday codes and a count (-1 = unset) or end date."""
        if count == NO_COUNT:
            count = None
        return cls(weekdays=parse_weekdays(codes), count=count, until=until)

    @property
    def is_counted(self) -> bool:
        return self.count is not None

    def codes(self) -> str:
        """Weekday codes in canonical MTWRFSU order."""
        return "".join(c for c, n in WEEKDAY_CODES.items() if n in self.weekdays)

    def describe(self) -> str:
        days = ",".join(WEEKDAY_NAMES[n] for n in sorted(self.weekdays))
        if self.count is not None:
            return f"Repeats on: {days} for {self.count} times"
        return f"Repeats on: {days} until {self.until.isoformat()}"

    def with_count(self, count: int) -> "RecurrencePattern":
        return replace(self, count=count, until=None)

    def with_until(self, until: date) -> "RecurrencePattern":
        return replace(self, count=None, until=until)

    def shifted(self, days: int) -> "RecurrencePattern":
        """Rotate every weekday by `days` (used when an anchor crosses midnight)."""
        if days % 7 == 0:
            return self
        return replace(self, weekdays=frozenset((d + days) % 7 for d in self.weekdays))

    def calculate_recurrences(
        self,
        anchor: datetime,
        horizon_years: int = DEFAULT_HORIZON_YEARS,
    ) -> list[datetime]:
        """
        Occurrence start instants for a series anchored at `anchor`.

        Scans forward one day at a time from the anchor (inclusive), keeping
        the anchor's time of day. Stops after `count` occurrences, after the
        `until` date (inclusive), or past the horizon, whichever comes first.

        Pure function - no side effects.
        """
        limit = add_years(anchor.date(), horizon_years)
        if self.until is not None and self.until < limit:
            limit = self.until

        dates: list[datetime] = []
        current = anchor
        while current.date() <= limit:
            if self.count is not None and len(dates) >= self.count:
                break
            if current.weekday() in self.weekdays:
                dates.append(current)
            current += timedelta(days=1)
        return dates
