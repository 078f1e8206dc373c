"""Success/failure result returned by every core operation."""

from dataclasses import dataclass, field

from .event import Event


@dataclass
class Outcome:
    """
    Result of a create/edit/copy/registry operation.

    Truthy iff the operation succeeded. On success `events` holds the
    created or edited events; on failure `reason` says why and nothing was
    changed.
    """

    ok: bool
    events: list[Event] = field(default_factory=list)
    reason: str = ""

    def __bool__(self) -> bool:
        return self.ok

    @classmethod
    def success(cls, *events: Event) -> "Outcome":
        return cls(ok=True, events=list(events))

    @classmethod
    def failure(cls, reason: str) -> "Outcome":
        return cls(ok=False, reason=reason)

    @property
    def event(self) -> Event | None:
        """The first affected event, if any."""
        return self.events[0] if self.events else None
