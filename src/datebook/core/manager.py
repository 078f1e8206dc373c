"""Registry of named calendars and cross-calendar copying."""

import logging
from datetime import date, datetime, timedelta

from .calendar import Calendar, as_date, convert_wall_time
from .errors import DatebookError
from .event import Event, Occurrence, start_of_day
from .outcome import Outcome
from .recurrence import DEFAULT_HORIZON_YEARS

logger = logging.getLogger(__name__)


class CalendarManager:
    """
    Named calendars plus the "current calendar" selection.

    The selection is kept as a name and looked up on every access, so
    renaming a calendar can never leave it pointing at a stale object.
    """

    def __init__(
        self,
        default_timezone: str = "America/New_York",
        horizon_years: int = DEFAULT_HORIZON_YEARS,
    ):
        self.default_timezone = default_timezone
        self.horizon_years = horizon_years
        self.calendars: dict[str, Calendar] = {}
        self._current_name: str | None = None

    # --- Registry ---

    @property
    def current(self) -> Calendar | None:
        if self._current_name is None:
            return None
        return self.calendars.get(self._current_name)

    def calendar_names(self) -> list[str]:
        return list(self.calendars)

    def calendar_exists(self, name: str) -> bool:
        return name in self.calendars

    def get_calendar(self, name: str) -> Calendar | None:
        return self.calendars.get(name)

    def create_calendar(self, name: str, zone: str | None = None) -> Outcome:
        """Create a calendar; fails if the name is taken or the zone is unknown."""
        if name in self.calendars:
            return Outcome.failure(f"Calendar {name!r} already exists")
        try:
            calendar = Calendar(name, zone or self.default_timezone, self.horizon_years)
        except DatebookError as e:
            logger.debug(f"Calendar {name!r} not created: {e}")
            return Outcome.failure(str(e))
        self.calendars[name] = calendar
        logger.info(f"Created calendar {name!r} in {calendar.timezone.key}")
        return Outcome.success()

    def use_calendar(self, name: str) -> bool:
        """Select the current calendar; returns False if it does not exist."""
        if name not in self.calendars:
            return False
        self._current_name = name
        return True

    def edit_calendar(self, name: str, prop: str, value: str) -> Outcome:
        """Rename a calendar or move it to another time zone."""
        calendar = self.calendars.get(name)
        if calendar is None:
            return Outcome.failure(f"No calendar named {name!r}")

        match prop.lower():
            case "name":
                if value in self.calendars:
                    return Outcome.failure(f"Calendar {value!r} already exists")
                try:
                    calendar.rename(value)
                except DatebookError as e:
                    return Outcome.failure(str(e))
                del self.calendars[name]
                self.calendars[value] = calendar
                if self._current_name == name:
                    self._current_name = value
                logger.info(f"Renamed calendar {name!r} to {value!r}")
                return Outcome.success()
            case "timezone":
                return calendar.change_timezone(value)
            case _:
                return Outcome.failure(f"Unknown calendar property: {prop}")

    def _copy_endpoints(self, target_name: str) -> tuple[Calendar, Calendar] | str:
        """Source and target calendars, or the reason they are unavailable."""
        source = self.current
        if source is None:
            return "No calendar in use"
        target = self.calendars.get(target_name)
        if target is None:
            return f"No calendar named {target_name!r}"
        return source, target

    # --- Copying ---

    def copy_event(
        self,
        subject: str,
        source_start: date | datetime,
        target_name: str,
        target_start: date | datetime,
    ) -> Outcome:
        """
        Copy one event from the current calendar.

        `target_start` is taken literally as wall-clock time in the target
        calendar's zone. A recurring event is copied as a whole series
        re-anchored at `target_start`. Copies never auto-decline.
        """
        endpoints = self._copy_endpoints(target_name)
        if isinstance(endpoints, str):
            return Outcome.failure(endpoints)
        source, target = endpoints

        event = source.find_event(subject, source_start)
        if event is None:
            return Outcome.failure(f"No event {subject!r} at {source_start} in {source.name}")

        try:
            copy = relocate_event(event, target_start)
        except DatebookError as e:
            logger.debug(f"Copy of {subject!r} rejected: {e}")
            return Outcome.failure(str(e))
        return target.add_event(copy)

    def copy_events_on_day(
        self,
        source_day: date | datetime,
        target_name: str,
        target_day: date | datetime,
    ) -> Outcome:
        """Copy every occurrence on `source_day` onto `target_day` in another calendar."""
        endpoints = self._copy_endpoints(target_name)
        if isinstance(endpoints, str):
            return Outcome.failure(endpoints)
        source, target = endpoints

        occurrences = source.occurrences_on(source_day)
        if not occurrences:
            return Outcome.failure(f"No events on {as_date(source_day)} in {source.name}")
        shift = as_date(target_day) - as_date(source_day)
        return self._copy_occurrences(occurrences, source, target, shift)

    def copy_events_in_range(
        self,
        range_start: date | datetime,
        range_end: date | datetime,
        target_name: str,
        target_start: date | datetime,
    ) -> Outcome:
        """
        Copy every occurrence in [range_start, range_end].

        Each copy keeps its offset in days from `range_start`, measured from
        `target_start`.
        """
        endpoints = self._copy_endpoints(target_name)
        if isinstance(endpoints, str):
            return Outcome.failure(endpoints)
        source, target = endpoints

        occurrences = source.occurrences_between(range_start, range_end)
        if not occurrences:
            return Outcome.failure(
                f"No events between {as_date(range_start)} and {as_date(range_end)} in {source.name}"
            )
        shift = as_date(target_start) - as_date(range_start)
        return self._copy_occurrences(occurrences, source, target, shift)

    def _copy_occurrences(
        self,
        occurrences: list[Occurrence],
        source: Calendar,
        target: Calendar,
        shift: timedelta,
    ) -> Outcome:
        try:
            copies = [translate_occurrence(occ, source, target, shift) for occ in occurrences]
        except DatebookError as e:
            logger.debug(f"Bulk copy to {target.name} rejected: {e}")
            return Outcome.failure(str(e))

        for copy in copies:
            target.add_event(copy)
        logger.debug(f"Copied {len(copies)} event(s) from {source.name} to {target.name}")
        return Outcome.success(*copies)


def relocate_event(event: Event, target_start: date | datetime) -> Event:
    """
    Copy of `event` starting at `target_start`, keeping duration and details.

    A series keeps its weekdays and count; an end date moves by the same
    number of days as the anchor.
    """
    if event.all_day:
        start, end = start_of_day(target_start), None
    else:
        if not isinstance(target_start, datetime):
            target_start = datetime.combine(target_start, event.start.time())
        start, end = target_start, target_start + event.duration

    pattern = event.recurrence
    if pattern is not None and pattern.until is not None:
        shift = start.date() - event.start.date()
        pattern = pattern.with_until(pattern.until + shift)
    return event.with_changes(start=start, end=end, recurrence=pattern)


def translate_occurrence(
    occ: Occurrence, source: Calendar, target: Calendar, shift: timedelta
) -> Event:
    """
    Single event in `target` for one occurrence in `source`.

    Timed occurrences keep their instant (re-expressed in the target zone)
    and are then moved by `shift` whole days; all-day ones just move by
    `shift`.
    """
    if occ.all_day:
        start, end = occ.start + shift, None
    else:
        start = convert_wall_time(occ.start, source.timezone, target.timezone) + shift
        end = convert_wall_time(occ.end, source.timezone, target.timezone) + shift
    return Event(
        subject=occ.subject,
        start=start,
        end=end,
        description=occ.description,
        location=occ.location,
        is_public=occ.is_public,
    )
