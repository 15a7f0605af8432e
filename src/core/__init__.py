"""Core simulation components."""

from .event_bus import EventBus, EventType, Event
from .state import SimulationState
from .clock import SimulationClock
from .environment import Environment, TickOptions

__all__ = [
    "EventBus",
    "EventType",
    "Event",
    "SimulationState",
    "SimulationClock",
    "Environment",
    "TickOptions",
]
