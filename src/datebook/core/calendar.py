"""A single calendar: event creation, conflict checks, queries and edits.

Pure domain logic - no I/O. Every public operation returns an Outcome and
leaves the event list untouched when it fails.
"""

import logging
from datetime import date, datetime, time, timedelta
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from .errors import CalendarError, DatebookError, EventValidationError
from .event import Event, Occurrence, any_conflict, start_of_day
from .outcome import Outcome
from .recurrence import DEFAULT_HORIZON_YEARS, NO_COUNT, RecurrencePattern

logger = logging.getLogger(__name__)

EDITABLE_PROPERTIES = {
    "name",
    "subject",
    "description",
    "location",
    "public",
    "starttime",
    "endtime",
    "startdate",
    "enddate",
}
TIME_PROPERTIES = {"starttime", "endtime", "startdate", "enddate"}


def resolve_zone(zone: str | ZoneInfo) -> ZoneInfo:
    """Turn a zone id like "America/New_York" into a ZoneInfo."""
    if isinstance(zone, ZoneInfo):
        return zone
    if not isinstance(zone, str) or not zone.strip():
        raise CalendarError(f"Invalid time zone: {zone!r}")
    try:
        return ZoneInfo(zone.strip())
    except (ZoneInfoNotFoundError, ValueError, OSError) as e:
        raise CalendarError(f"Unknown time zone: {zone}") from e


def convert_wall_time(dt: datetime, source: ZoneInfo, target: ZoneInfo) -> datetime:
    """Same instant, expressed as naive wall-clock time in `target`."""
    return dt.replace(tzinfo=source).astimezone(target).replace(tzinfo=None)


def as_date(value: date | datetime) -> date:
    return value.date() if isinstance(value, datetime) else value


def _parse_time_value(value: str, current: datetime) -> datetime:
    """"HH:MM" keeps the current date; a full ISO datetime replaces both."""
    value = value.strip()
    try:
        return datetime.combine(current.date(), time.fromisoformat(value))
    except ValueError:
        pass
    try:
        return datetime.fromisoformat(value)
    except ValueError as e:
        raise EventValidationError(f"Invalid time value: {value!r}") from e


def _parse_date_value(value: str) -> date:
    value = value.strip()
    try:
        return date.fromisoformat(value)
    except ValueError:
        pass
    try:
        return datetime.fromisoformat(value).date()
    except ValueError as e:
        raise EventValidationError(f"Invalid date value: {value!r}") from e


def apply_property(event: Event, prop: str, value: str) -> Event:
    """
    Return a validated copy of `event` with one property changed.

    starttime/endtime take "HH:MM" (same date) or an ISO datetime. startdate
    moves the whole event to another date, keeping time of day and duration.
    enddate moves only the end.
    """
    if value is None:
        raise EventValidationError("Missing new value")

    match prop.lower():
        case "name" | "subject":
            return event.with_changes(subject=value)
        case "description":
            return event.with_changes(description=value)
        case "location":
            return event.with_changes(location=value)
        case "public":
            flag = value.strip().lower()
            if flag not in ("true", "false"):
                raise EventValidationError(f"public must be true or false, got {value!r}")
            return event.with_changes(is_public=flag == "true")
        case "starttime":
            if event.all_day:
                raise EventValidationError("All-day events have no start time")
            return event.with_changes(start=_parse_time_value(value, event.start))
        case "endtime":
            if event.all_day:
                raise EventValidationError("All-day events have no end time")
            return event.with_changes(end=_parse_time_value(value, event.end))
        case "startdate":
            delta = datetime.combine(_parse_date_value(value), event.start.time()) - event.start
            end = None if event.end is None else event.end + delta
            return event.with_changes(start=event.start + delta, end=end)
        case "enddate":
            if event.all_day:
                raise EventValidationError("All-day events have no end date")
            new_end = datetime.combine(_parse_date_value(value), event.end.time())
            return event.with_changes(end=new_end)
        case _:
            raise EventValidationError(f"Unknown property: {prop}")


class Calendar:
    """A named, zoned collection of events."""

    def __init__(
        self,
        name: str,
        timezone: str | ZoneInfo,
        horizon_years: int = DEFAULT_HORIZON_YEARS,
    ):
        if not isinstance(name, str) or not name.strip():
            raise CalendarError("Calendar name must not be empty")
        self.name = name
        self.timezone = resolve_zone(timezone)
        self.horizon_years = horizon_years
        self._events: list[Event] = []

    def __repr__(self) -> str:
        return f"Calendar({self.name!r}, {self.timezone.key!r}, {len(self._events)} events)"

    def __len__(self) -> int:
        return len(self._events)

    # --- Creation ---

    def create_event(
        self,
        subject: str,
        start: datetime,
        end: datetime,
        auto_decline: bool = False,
        description: str = "",
        location: str = "",
        is_public: bool = True,
    ) -> Outcome:
        """Create a single timed event."""
        if end is None:
            return self._reject(subject, "Timed events need an end time")
        return self._create(
            auto_decline,
            subject=subject,
            start=start,
            end=end,
            description=description,
            location=location,
            is_public=is_public,
        )

    def create_all_day_event(
        self,
        subject: str,
        day: date | datetime,
        auto_decline: bool = False,
        description: str = "",
        location: str = "",
        is_public: bool = True,
    ) -> Outcome:
        """Create an all-day event on `day`."""
        return self._create(
            auto_decline,
            subject=subject,
            start=day,
            description=description,
            location=location,
            is_public=is_public,
        )

    def create_recurring_event(
        self,
        subject: str,
        start: datetime,
        end: datetime,
        weekdays: str,
        count: int | None = NO_COUNT,
        until: date | datetime | None = None,
        auto_decline: bool = False,
        description: str = "",
        location: str = "",
        is_public: bool = True,
    ) -> Outcome:
        """Create a timed series; the template must fit within one day."""
        if end is None:
            return self._reject(subject, "Timed events need an end time")
        try:
            pattern = RecurrencePattern.parse(weekdays, count, until)
        except DatebookError as e:
            return self._reject(subject, str(e))
        return self._create(
            auto_decline,
            subject=subject,
            start=start,
            end=end,
            description=description,
            location=location,
            is_public=is_public,
            recurrence=pattern,
        )

    def create_recurring_all_day_event(
        self,
        subject: str,
        day: date | datetime,
        weekdays: str,
        count: int | None = NO_COUNT,
        until: date | datetime | None = None,
        auto_decline: bool = False,
        description: str = "",
        location: str = "",
        is_public: bool = True,
    ) -> Outcome:
        """Create an all-day series starting on `day`."""
        try:
            pattern = RecurrencePattern.parse(weekdays, count, until)
        except DatebookError as e:
            return self._reject(subject, str(e))
        return self._create(
            auto_decline,
            subject=subject,
            start=day,
            description=description,
            location=location,
            is_public=is_public,
            recurrence=pattern,
        )

    def add_event(self, event: Event, auto_decline: bool = False) -> Outcome:
        """Insert an already-built event (used by copies and imports)."""
        occurrences = event.occurrences(self.horizon_years)
        if not occurrences:
            return self._reject(event.subject, "Recurrence produces no occurrences")
        if auto_decline and any_conflict(occurrences, self._existing_occurrences()):
            return self._reject(event.subject, "Conflicts with an existing event")
        self._events.append(event)
        logger.debug(f"Added {event.kind.value} event {event.subject!r} to {self.name}")
        return Outcome.success(event)

    def _create(self, auto_decline: bool, **fields) -> Outcome:
        try:
            event = Event(**fields)
        except DatebookError as e:
            return self._reject(fields.get("subject"), str(e))
        return self.add_event(event, auto_decline)

    def _reject(self, subject, reason: str) -> Outcome:
        logger.debug(f"Rejected {subject!r} in {self.name}: {reason}")
        return Outcome.failure(reason)

    def _existing_occurrences(self, exclude: tuple[Event, ...] = ()) -> list[Occurrence]:
        return [
            occ
            for e in self._events
            if not any(e is x for x in exclude)
            for occ in e.occurrences(self.horizon_years)
        ]

    # --- Queries ---

    def get_all_events(self) -> list[Event]:
        return list(self._events)

    def get_events_on(self, day: date | datetime) -> list[Event]:
        """Events with at least one occurrence touching `day`."""
        return self.get_events_from(day, day)

    def get_events_from(self, start: date | datetime, end: date | datetime) -> list[Event]:
        """
        Events with at least one occurrence touching [start, end] (dates, inclusive).

        A recurring event appears once, positioned by its first occurrence in
        the range.
        """
        first, last = as_date(start), as_date(end)
        matched = []
        for event in self._events:
            hits = [occ for occ in event.occurrences(self.horizon_years) if occ.intersects(first, last)]
            if hits:
                matched.append((hits[0].sort_key(), event))
        matched.sort(key=lambda pair: pair[0])
        return [event for _, event in matched]

    def occurrences_on(self, day: date | datetime) -> list[Occurrence]:
        return self.occurrences_between(day, day)

    def occurrences_between(self, start: date | datetime, end: date | datetime) -> list[Occurrence]:
        """Every concrete occurrence touching [start, end], sorted for display."""
        first, last = as_date(start), as_date(end)
        hits = [
            occ
            for event in self._events
            for occ in event.occurrences(self.horizon_years)
            if occ.intersects(first, last)
        ]
        return sorted(hits, key=Occurrence.sort_key)

    def is_busy(self, at: datetime) -> bool:
        """Check if any occurrence is in progress at `at`."""
        return any(occ.covers(at) for occ in self._existing_occurrences())

    def find_event(
        self, subject: str, start: date | datetime, end: datetime | None = None
    ) -> Event | None:
        """
        Locate one event by quote-insensitive subject and exact start.

        Stored start times are tried first; failing that, any occurrence of a
        recurring series with that start selects the series.
        """
        start = start if isinstance(start, datetime) else start_of_day(start)
        for event in self._events:
            if event.matches_subject(subject) and event.start == start:
                if end is None or event.end == end:
                    return event
        for event in self._events:
            if not event.is_recurring or not event.matches_subject(subject):
                continue
            for occ in event.occurrences(self.horizon_years):
                if occ.start == start and (end is None or occ.end == end):
                    return event
        return None

    # --- Edits ---

    def edit_event(
        self,
        prop: str,
        subject: str,
        start: date | datetime,
        end: datetime | None,
        new_value: str,
    ) -> Outcome:
        """
        Edit the one event matching subject and start (and end, if given).

        Matching a later occurrence of a series edits the whole series, so
        startdate is only accepted through the series' own start.
        """
        if prop.lower() not in EDITABLE_PROPERTIES:
            return self._reject(subject, f"Unknown property: {prop}")
        target = self.find_event(subject, start, end)
        if target is None:
            return self._reject(subject, f"No event found starting at {start}")
        matched = start if isinstance(start, datetime) else start_of_day(start)
        if prop.lower() == "startdate" and target.is_recurring and target.start != matched:
            return self._reject(
                subject, "startdate moves a whole series; select it by its first start"
            )
        try:
            edited = self._edited(target, prop, new_value)
        except DatebookError as e:
            return self._reject(subject, str(e))
        return self._apply(prop, [(target, [(target, edited)])])

    def edit_all_events(self, prop: str, subject: str, new_value: str) -> Outcome:
        """Edit every event with a matching subject; all or nothing."""
        if prop.lower() not in EDITABLE_PROPERTIES:
            return self._reject(subject, f"Unknown property: {prop}")
        matches = [e for e in self._events if e.matches_subject(subject)]
        if not matches:
            return self._reject(subject, "No matching events")
        plan = []
        for event in matches:
            try:
                edited = self._edited(event, prop, new_value)
            except DatebookError as e:
                return self._reject(subject, str(e))
            plan.append((event, [(event, edited)]))
        return self._apply(prop, plan)

    def edit_events_from(
        self,
        prop: str,
        subject: str,
        cutover: date | datetime,
        new_value: str,
    ) -> Outcome:
        """
        Edit matching events at or after `cutover`.

        A recurring series straddling the cutover is split: occurrences
        before it stay in the original (re-terminated) series, the rest
        become a new series carrying the change.
        """
        if prop.lower() not in EDITABLE_PROPERTIES:
            return self._reject(subject, f"Unknown property: {prop}")
        cutover = cutover if isinstance(cutover, datetime) else start_of_day(cutover)

        plan = []
        for event in self._events:
            if not event.matches_subject(subject):
                continue
            try:
                if not event.is_recurring:
                    if event.start >= cutover:
                        plan.append((event, [(event, self._edited(event, prop, new_value))]))
                    continue
                starts = event.occurrence_starts(self.horizon_years)
                head = [s for s in starts if s < cutover]
                tail = [s for s in starts if s >= cutover]
                if tail:
                    plan.append((event, self._split_series(event, head, tail, prop, new_value)))
            except DatebookError as e:
                return self._reject(subject, str(e))

        if not plan:
            return self._reject(subject, f"No matching events on or after {cutover}")
        return self._apply(prop, plan)

    def _edited(self, event: Event, prop: str, new_value: str) -> Event:
        edited = apply_property(event, prop, new_value)
        if edited.is_recurring and not edited.occurrence_starts(self.horizon_years):
            raise EventValidationError("Edited series would have no occurrences")
        return edited

    def _split_series(
        self,
        event: Event,
        head: list[datetime],
        tail: list[datetime],
        prop: str,
        new_value: str,
    ) -> list[tuple[Event, Event]]:
        """Replacement (before, after) pairs for a series cut ahead of `tail[0]`."""
        pattern = event.recurrence
        replacements = []
        if head:
            if pattern.is_counted:
                head_pattern = pattern.with_count(len(head))
            else:
                head_pattern = pattern.with_until(head[-1].date())
            head_event = event.with_changes(recurrence=head_pattern)
            replacements.append((head_event, head_event))

        anchor = tail[0]
        tail_event = event.with_changes(
            start=anchor,
            end=None if event.all_day else anchor + event.duration,
            recurrence=pattern.with_count(len(tail)) if pattern.is_counted else pattern,
        )
        replacements.append((tail_event, self._edited(tail_event, prop, new_value)))
        return replacements

    def _apply(self, prop: str, plan: list[tuple[Event, list[tuple[Event, Event]]]]) -> Outcome:
        """
        Commit a set of replacements unless they create a new conflict.

        `plan` maps each stored event to the (before, after) pairs replacing
        it; `before` is what the replacement looked like prior to the edit.
        """
        replaced = {id(original): pairs for original, pairs in plan}
        pairs: list[tuple[Event, Event]] = []
        changed: list[int] = []
        for event in self._events:
            for before, after in replaced.get(id(event), [(event, event)]):
                if before is not after:
                    changed.append(len(pairs))
                pairs.append((before, after))

        if prop.lower() in TIME_PROPERTIES and self._introduces_conflict(pairs, changed):
            return self._reject(plan[0][0].subject, "Edit would conflict with another event")

        self._events = [after for _, after in pairs]
        edited = [pairs[i][1] for i in changed]
        logger.debug(f"Edited {prop} on {len(edited)} event(s) in {self.name}")
        return Outcome.success(*edited)

    def _introduces_conflict(self, pairs: list[tuple[Event, Event]], changed: list[int]) -> bool:
        """Check if an edited event conflicts with something it did not conflict with before."""
        cache: dict[int, list[Occurrence]] = {}

        def occurrences(event: Event) -> list[Occurrence]:
            if id(event) not in cache:
                cache[id(event)] = event.occurrences(self.horizon_years)
            return cache[id(event)]

        for i in changed:
            before_i, after_i = pairs[i]
            for j, (before_j, after_j) in enumerate(pairs):
                if j == i:
                    continue
                if any_conflict(occurrences(after_i), occurrences(after_j)) and not any_conflict(
                    occurrences(before_i), occurrences(before_j)
                ):
                    return True
        return False

    # --- Calendar properties ---

    def rename(self, name: str) -> None:
        if not isinstance(name, str) or not name.strip():
            raise CalendarError("Calendar name must not be empty")
        self.name = name

    def change_timezone(self, zone: str | ZoneInfo) -> Outcome:
        """
        Re-express every timed event in a new zone, keeping its instant.

        All-day events keep their dates. A recurring series whose anchor
        crosses midnight has its weekdays (and end date) shifted with it.

        Only a series' anchor keeps its instant. Later occurrences keep the
        anchor's new wall-clock time, so across a DST change in either zone
        they land an hour away from their original instant.
        """
        try:
            new_zone = resolve_zone(zone)
            converted = [self._reproject(e, self.timezone, new_zone) for e in self._events]
        except DatebookError as e:
            logger.debug(f"Time zone change for {self.name} rejected: {e}")
            return Outcome.failure(str(e))

        old_zone = self.timezone
        self._events = converted
        self.timezone = new_zone
        logger.info(f"Calendar {self.name} moved from {old_zone.key} to {new_zone.key}")
        return Outcome.success(*converted)

    @staticmethod
    def _reproject(event: Event, source: ZoneInfo, target: ZoneInfo) -> Event:
        if event.all_day:
            return event
        start = convert_wall_time(event.start, source, target)
        end = convert_wall_time(event.end, source, target)
        pattern = event.recurrence
        if pattern is not None:
            day_shift = (start.date() - event.start.date()).days
            pattern = pattern.shifted(day_shift)
            if pattern.until is not None and day_shift:
                pattern = pattern.with_until(pattern.until + timedelta(days=day_shift))
        return event.with_changes(start=start, end=end, recurrence=pattern)
