"""Simulation state container: agent collection and per-tick memo cache."""

from dataclasses import dataclass, field
from typing import Any, Dict, Hashable, List, Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from src.entities.agent import Agent


@dataclass
class CacheEntry:
    """A memoized value and the time it was computed at."""

    value: Any
    time: float


@dataclass
class SimulationState:
    """
    Agents owned by an environment, plus values memoized within one tick.

    Agents are kept in insertion order and indexed by id.
    """

    agents: Dict[int, "Agent"] = field(default_factory=dict)
    cache: Dict[Hashable, CacheEntry] = field(default_factory=dict)

    def add_agent(self, agent: "Agent") -> None:
        """Append an agent to the collection."""
        self.agents[agent.id] = agent

    def remove_agent(self, agent_id: int) -> "Agent | None":
        """Remove and return an agent from the collection."""
        return self.agents.pop(agent_id, None)

    def get_agent(self, agent_id: int) -> "Agent | None":
        """Get an agent by id."""
        return self.agents.get(agent_id)

    def get_agents(self) -> List["Agent"]:
        """All agents in insertion order."""
        return list(self.agents.values())

    def __len__(self) -> int:
        return len(self.agents)

    def __contains__(self, agent: "Agent") -> bool:
        return self.agents.get(agent.id) is agent

    def cached(self, fingerprint: Hashable, time: float) -> Optional[CacheEntry]:
        """Cache entry for ``fingerprint`` if it was stored at ``time``."""
        entry = self.cache.get(fingerprint)
        if entry is not None and entry.time == time:
            return entry
        return None

    def store(self, fingerprint: Hashable, value: Any, time: float) -> Any:
        """Store a memoized value stamped with ``time``."""
        self.cache[fingerprint] = CacheEntry(value=value, time=time)
        return value

    def reset(self) -> None:
        """Drop all agents and cached values."""
        self.agents.clear()
        self.cache.clear()
