"""Interval-based activation policy."""

import logging
import math
from dataclasses import dataclass
from typing import Dict, List, Optional, TYPE_CHECKING

import numpy as np

from config.constants import TICK_INTERVAL_KEY, TICK_OFFSET_KEY, TICK_PROBABILITY_KEY
from .base import Scheduler

if TYPE_CHECKING:
    from src.entities.agent import Agent

logger = logging.getLogger(__name__)


@dataclass
class AgentScheduleConfig:
    """Per-agent interval schedule."""

    interval: int = 1  # Activate every N environment ticks
    offset: float = 0  # Staggers agents that share an interval
    probability: float = 1.0  # Chance to activate on an eligible tick


def _clamp_interval(interval: float) -> int:
    return max(1, int(math.floor(interval)))


def _clamp_probability(probability: float) -> float:
    return max(0.0, min(1.0, float(probability)))


class DefaultScheduler(Scheduler):
    """
    Interval scheduler.

    An agent activates at time ``t`` when ``(t - offset) % interval == 0``
    and a uniform draw succeeds against its probability. Agents read
    their hints from the ``tick_interval``, ``tick_probability`` and
    ``tick_offset`` data keys when added to an environment.

    There is no discrete "next event": ``next_scheduled_time`` is always
    None and callers advance tick by tick.
    """

    event_driven = False

    def __init__(self, seed: Optional[int] = None) -> None:
        self._configs: Dict["Agent", AgentScheduleConfig] = {}
        self._rng = np.random.default_rng(seed)

    @property
    def name(self) -> str:
        return "default"

    def set_seed(self, seed: int) -> None:
        """Seed the probability draws."""
        self._rng = np.random.default_rng(seed)

    def schedule(self, agent: "Agent", time: float) -> None:
        """For interval scheduling, ``time`` becomes the agent's offset."""
        existing = self._configs.get(agent)
        if existing:
            existing.offset = time
        else:
            self._configs[agent] = AgentScheduleConfig(offset=time)

    def set_interval(self, agent: "Agent", interval: float) -> None:
        """Configure an agent's tick interval (floored, at least 1)."""
        config = self._configs.get(agent)
        if config:
            config.interval = _clamp_interval(interval)

    def set_probability(self, agent: "Agent", probability: float) -> None:
        """Configure an agent's tick probability (clamped to [0, 1])."""
        config = self._configs.get(agent)
        if config:
            config.probability = _clamp_probability(probability)

    def get_config(self, agent: "Agent") -> Optional[AgentScheduleConfig]:
        """Get an agent's current schedule configuration."""
        return self._configs.get(agent)

    def unschedule(self, agent: "Agent") -> None:
        self._configs.pop(agent, None)

    def get_agents_for_tick(self, time: float) -> List["Agent"]:
        result: List["Agent"] = []

        for agent, config in self._configs.items():
            if (time - config.offset) % config.interval != 0:
                continue

            # Skip the draw at probability 1 so full-rate agents are deterministic
            if config.probability < 1 and self._rng.random() >= config.probability:
                continue

            result.append(agent)

        return result

    def next_scheduled_time(self) -> Optional[float]:
        return None

    def on_agent_added(self, agent: "Agent", time: float) -> None:
        interval = agent.get(TICK_INTERVAL_KEY)
        probability = agent.get(TICK_PROBABILITY_KEY)
        offset = agent.get(TICK_OFFSET_KEY)

        self._configs[agent] = AgentScheduleConfig(
            interval=_clamp_interval(1 if interval is None else interval),
            offset=time if offset is None else offset,
            probability=_clamp_probability(1 if probability is None else probability),
        )
        logger.debug(f"Agent {agent.id} scheduled with {self._configs[agent]}")

    def on_agent_removed(self, agent: "Agent") -> None:
        self._configs.pop(agent, None)

    def reset(self) -> None:
        self._configs.clear()

    def __len__(self) -> int:
        return len(self._configs)
