from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, List, Protocol


class FatalInputError(Exception):
    """Raised by a handler when its raw input cannot be interpreted at all.

    This is not a business failure: the router turns it into a FATAL event
    instead of one of the command's declared output events.
    """


@dataclass(frozen=True)
class EventDef:
    """Static schema tag of an event, used by the engine for routing."""
    name: str


FATAL_EVENT_DEF = EventDef(name="FATAL")


class EventPayload(Protocol):
    def to_dict(self) -> dict: ...


@dataclass(frozen=True)
class Event:
    event_def: EventDef
    payload: EventPayload


HandlerFunc = Callable[[Any], Awaitable[Event]]


@dataclass
class Command:
    name: str
    handler: HandlerFunc
    output_events: List[EventDef] = field(default_factory=list)
    version: int = 1

    def declares(self, event_def: EventDef) -> bool:
        return event_def in self.output_events
