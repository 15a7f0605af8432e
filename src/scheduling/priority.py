"""Priority-queue activation policy for discrete-event simulation."""

import logging
from typing import Dict, List, Optional, Tuple, TYPE_CHECKING

from config.constants import TICK_AT_KEY
from src.utils.priority_queue import PriorityQueue
from .base import ScheduleEntry, Scheduler

if TYPE_CHECKING:
    from src.entities.agent import Agent

logger = logging.getLogger(__name__)


def _compare_entries(a: ScheduleEntry, b: ScheduleEntry) -> float:
    if a.time != b.time:
        return a.time - b.time
    return a.sequence - b.sequence


class PriorityScheduler(Scheduler):
    """
    Discrete-event scheduler.

    Agents are bound to explicit future times and the environment can
    jump straight to the next one, skipping empty steps. Each agent has
    at most one pending entry; rescheduling replaces it. Popped agents are
    not rescheduled automatically, so an agent that wants to run again
    must schedule itself, typically via ``agent.schedule_in(delay)``.

    Agents due at the same time activate in the order they were scheduled.
    """

    event_driven = True

    def __init__(self) -> None:
        self._queue: PriorityQueue[ScheduleEntry] = PriorityQueue(_compare_entries)
        self._agent_entries: Dict["Agent", ScheduleEntry] = {}

    @property
    def name(self) -> str:
        return "priority"

    def schedule(self, agent: "Agent", time: float) -> None:
        """Schedule an agent at ``time``, replacing any existing entry."""
        self.unschedule(agent)

        entry = ScheduleEntry(agent=agent, time=time)
        self._queue.insert(entry)
        self._agent_entries[agent] = entry

    def unschedule(self, agent: "Agent") -> None:
        existing = self._agent_entries.pop(agent, None)
        if existing is not None:
            self._queue.remove(existing)

    def get_agents_for_tick(self, time: float) -> List["Agent"]:
        """Pop every entry due exactly at ``time`` and return their agents."""
        result: List["Agent"] = []

        while True:
            head = self._queue.peek()
            if head is None or head.time != time:
                break
            entry = self._queue.pop()
            del self._agent_entries[entry.agent]
            result.append(entry.agent)

        return result

    def next_scheduled_time(self) -> Optional[float]:
        head = self._queue.peek()
        return head.time if head is not None else None

    def is_scheduled(self, agent: "Agent") -> bool:
        """Check if an agent has a pending entry."""
        return agent in self._agent_entries

    def get_scheduled_time(self, agent: "Agent") -> Optional[float]:
        """Pending time for an agent, or None if it is not scheduled."""
        entry = self._agent_entries.get(agent)
        return entry.time if entry is not None else None

    @property
    def size(self) -> int:
        """Number of pending entries."""
        return self._queue.size

    def __len__(self) -> int:
        return self._queue.size

    def on_agent_added(self, agent: "Agent", time: float) -> None:
        tick_at = agent.get(TICK_AT_KEY)
        if isinstance(tick_at, (list, tuple)) and tick_at:
            first_time = next((t for t in tick_at if t >= time), None)
            if first_time is not None:
                self.schedule(agent, first_time)
            else:
                logger.debug(f"Agent {agent.id} has no {TICK_AT_KEY} time at or after {time}")
        else:
            self.schedule(agent, time + 1)

    def on_agent_removed(self, agent: "Agent") -> None:
        self.unschedule(agent)

    def reset(self) -> None:
        self._queue.clear()
        self._agent_entries.clear()

    def get_schedule(self) -> List[Tuple["Agent", float]]:
        """All pending ``(agent, time)`` pairs in activation order."""
        entries = sorted(self._queue.to_array(), key=lambda e: (e.time, e.sequence))
        return [(entry.agent, entry.time) for entry in entries]
