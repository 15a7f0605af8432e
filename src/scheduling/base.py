"""Base scheduler interface that all activation policies implement."""

import itertools
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import List, Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from src.entities.agent import Agent

_entry_sequence = itertools.count()


@dataclass(eq=False)
class ScheduleEntry:
    """
    A pending activation of one agent.

    Entries order by time, then by creation sequence so agents due at the
    same time come out in the order they were scheduled. Equality is
    identity, which is what cancellation relies on.
    """

    agent: "Agent"
    time: float
    sequence: int = field(default_factory=lambda: next(_entry_sequence))


class Scheduler(ABC):
    """
    Abstract base class for activation policies.

    A scheduler decides which agents activate at a given time. It holds
    only associations between agents and times, never agent data.
    """

    # Whether next_scheduled_time() reports discrete event times
    event_driven: bool = False

    @property
    @abstractmethod
    def name(self) -> str:
        """Policy name for identification."""
        pass

    @abstractmethod
    def schedule(self, agent: "Agent", time: float) -> None:
        """
        Bind (or rebind) an agent to an activation time.

        Args:
            agent: The agent to schedule
            time: The time at which the agent should activate
        """
        pass

    @abstractmethod
    def unschedule(self, agent: "Agent") -> None:
        """Remove any pending binding for an agent. No-op if absent."""
        pass

    @abstractmethod
    def get_agents_for_tick(self, time: float) -> List["Agent"]:
        """
        Get all agents due exactly at ``time``.

        Args:
            time: The current environment time

        Returns:
            Agents to activate, in activation order
        """
        pass

    @abstractmethod
    def next_scheduled_time(self) -> Optional[float]:
        """Earliest pending time, or None if nothing is pending or the policy has no next time."""
        pass

    @abstractmethod
    def on_agent_added(self, agent: "Agent", time: float) -> None:
        """
        Called when an agent is added to the environment.

        Args:
            agent: The newly added agent
            time: Current environment time
        """
        pass

    @abstractmethod
    def on_agent_removed(self, agent: "Agent") -> None:
        """Called when an agent is removed from the environment."""
        pass

    @abstractmethod
    def reset(self) -> None:
        """Drop all scheduler state."""
        pass

    def schedule_in(self, agent: "Agent", delay: float, current_time: float) -> None:
        """Schedule an agent ``delay`` time units after ``current_time``."""
        self.schedule(agent, current_time + delay)

    def set_seed(self, seed: int) -> None:
        """Seed any randomness the policy uses. No-op by default."""
        pass

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}()"
