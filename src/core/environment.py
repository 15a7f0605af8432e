"""Environment tick driver."""

import logging
import random
from contextlib import contextmanager
from dataclasses import dataclass, field, fields, replace
from typing import Any, Callable, Dict, Hashable, Iterator, List, Optional, TYPE_CHECKING

import numpy as np

from config.constants import ACTIVATION_RANDOM, ACTIVATION_UNIFORM
from config.settings import EnvironmentSettings, Settings, get_settings
from src.scheduling.base import Scheduler
from src.scheduling.registry import create_scheduler
from .clock import SimulationClock
from .event_bus import EventBus, EventType, Unsubscribe
from .state import SimulationState

if TYPE_CHECKING:
    from src.entities.agent import Agent
    from src.visualization.renderer import Renderer

logger = logging.getLogger(__name__)

_ACTIVATIONS = (ACTIVATION_UNIFORM, ACTIVATION_RANDOM)


@dataclass
class TickOptions:
    """Options for one call to ``Environment.tick``."""

    activation: str = ACTIVATION_UNIFORM
    activation_count: int = 1
    count: int = 1
    randomize_order: Optional[bool] = None  # None means "unspecified"

    def __post_init__(self) -> None:
        if self.activation not in _ACTIVATIONS:
            raise ValueError(
                f"Unknown activation '{self.activation}', expected one of {_ACTIVATIONS}"
            )

    @classmethod
    def from_value(
        cls,
        opts: "int | TickOptions | Dict[str, Any] | None",
        defaults: EnvironmentSettings,
        **overrides: Any,
    ) -> "TickOptions":
        """
        Normalize the forms ``tick`` accepts into a TickOptions.

        Args:
            opts: A cycle count, a TickOptions, a dict of option fields, or None
            defaults: Environment settings supplying unset fields
            **overrides: Option fields given as keyword arguments

        Returns:
            Resolved options
        """
        options = cls(
            activation=defaults.activation,
            activation_count=defaults.activation_count,
            randomize_order=defaults.randomize_order,
        )

        if isinstance(opts, TickOptions):
            options = replace(opts)
        elif isinstance(opts, dict):
            overrides = {**opts, **overrides}
        elif isinstance(opts, int) and not isinstance(opts, bool):
            overrides = {"count": opts, **overrides}
        elif opts is not None:
            raise TypeError(f"Unsupported tick options: {opts!r}")

        if overrides:
            known = {f.name for f in fields(cls)}
            unknown = set(overrides) - known
            if unknown:
                raise TypeError(f"Unknown tick options: {sorted(unknown)}")
            options = replace(options, **overrides)

        return options


@dataclass(eq=False)
class Environment:
    """
    Owns agents and advances them through discrete logical time.

    Each tick runs every active agent's rules, then every active agent's
    deferred operations, so a rule can read its neighbors' state before
    anyone's deferred update lands. An optional scheduler decides which
    agents are active; an optional event bus announces tick boundaries and
    agent lifecycle.

    The driver is not re-entrant: ticking from inside a rule raises
    RuntimeError.
    """

    scheduler: Optional[Scheduler] = None
    event_bus: Optional[EventBus] = None
    settings: Settings = field(default_factory=get_settings)
    state: SimulationState = field(default_factory=SimulationState)
    clock: SimulationClock = field(default_factory=SimulationClock)

    renderers: List["Renderer"] = field(default_factory=list, init=False)
    helpers: List[Any] = field(default_factory=list, init=False)

    _ticking: bool = field(default=False, init=False)
    _warned_randomize_order: bool = field(default=False, init=False)
    _seed: Optional[int] = field(default=None, init=False)
    _rng: np.random.Generator = field(default_factory=np.random.default_rng, init=False)

    def __post_init__(self) -> None:
        """Bind the event bus and apply the configured seed."""
        if self.event_bus is not None:
            self.event_bus.set_environment(self)

        if self.settings.environment.seed is not None:
            self.set_seed(self.settings.environment.seed)

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> "Environment":
        """Build an environment whose scheduler and event bus come from settings."""
        settings = settings or get_settings()
        return cls(
            scheduler=create_scheduler(settings.scheduler.kind),
            event_bus=EventBus(history_limit=settings.events.history_limit),
            settings=settings,
        )

    @property
    def time(self) -> float:
        """Current logical time."""
        return self.clock.time

    @time.setter
    def time(self, value: float) -> None:
        self.clock.jump_to(value)

    @property
    def is_playing(self) -> bool:
        """Whether ``tick`` currently advances the simulation."""
        return not self.clock.is_paused

    def pause(self) -> None:
        """Stop ``tick`` from advancing until resumed."""
        self.clock.pause()
        self._emit(EventType.ENVIRONMENT_PAUSED, {"time": self.time})

    def resume(self) -> None:
        """Let ``tick`` advance again."""
        self.clock.resume()
        self._emit(EventType.ENVIRONMENT_RESUMED, {"time": self.time})

    def toggle(self) -> bool:
        """Toggle between playing and paused. Returns whether now playing."""
        if self.clock.is_paused:
            self.resume()
        else:
            self.pause()
        return self.is_playing

    def set_seed(self, seed: int) -> None:
        """
        Set random seed for reproducibility.

        Seeds Python's random module, the activation RNG and the scheduler.

        Args:
            seed: Random seed value
        """
        self._seed = seed
        random.seed(seed)
        self._rng = np.random.default_rng(seed)

        if self.scheduler is not None:
            self.scheduler.set_seed(seed)

        logger.debug(f"Environment random seed set to {seed}")

    def get_seed(self) -> Optional[int]:
        """Get the current random seed, if set."""
        return self._seed

    def add_agent(self, agent: "Agent") -> None:
        """
        Add an agent and take ownership of it.

        Registers the agent with the scheduler and emits ``agent:added``.

        Raises:
            ValueError: If a different agent with the same id is already here
        """
        if agent in self.state:
            logger.warning(f"Agent {agent.id} is already in this environment")
            return
        if self.state.get_agent(agent.id) is not None:
            raise ValueError(f"Another agent with id {agent.id} is already in this environment")
        if agent.environment is not None:
            agent.environment.remove_agent(agent)

        agent.environment = self
        self.state.add_agent(agent)

        if self.scheduler is not None:
            self.scheduler.on_agent_added(agent, self.time)

        self._emit(EventType.AGENT_ADDED, {"agent": agent})

    def remove_agent(self, agent: "Agent") -> bool:
        """
        Remove an agent.

        ``agent:removed`` is emitted before anything changes, so handlers
        still see the agent in place.

        Returns:
            True if the agent was removed, False if it was not here
        """
        if agent not in self.state:
            logger.warning(f"Agent {agent.id} is not in this environment")
            return False

        self._emit(EventType.AGENT_REMOVED, {"agent": agent})

        agent.clear_subscriptions()
        if self.scheduler is not None:
            self.scheduler.on_agent_removed(agent)
        agent.environment = None
        self.state.remove_agent(agent.id)
        return True

    def remove_agent_by_id(self, agent_id: int) -> bool:
        """Remove the agent with the given id, if present."""
        agent = self.state.get_agent(agent_id)
        if agent is None:
            logger.warning(f"No agent with id {agent_id}")
            return False
        return self.remove_agent(agent)

    def get_agent(self, agent_id: int) -> "Agent | None":
        """Get an agent by id."""
        return self.state.get_agent(agent_id)

    def get_agents(self) -> List["Agent"]:
        """All agents in insertion order."""
        return self.state.get_agents()

    @property
    def agents(self) -> List["Agent"]:
        """All agents in insertion order, as a new list."""
        return self.state.get_agents()

    def use(self, helper: Any) -> None:
        """Register a helper. Its ``rebalance()`` runs after every cycle, if it has one."""
        if helper not in self.helpers:
            self.helpers.append(helper)

    def add_renderer(self, renderer: "Renderer") -> None:
        """Attach a renderer, redrawn once per completed tick call."""
        renderer.mount(self)
        self.renderers.append(renderer)

    def tick(self, opts: "int | TickOptions | Dict[str, Any] | None" = None, **kwargs: Any) -> None:
        """
        Advance the simulation.

        No-op while paused. With a scheduler attached, the scheduler picks
        the active agents and the activation options are ignored.

        Args:
            opts: Number of cycles, a TickOptions, or a dict of option fields
            **kwargs: Option fields (activation, activation_count, count, randomize_order)
        """
        if self.clock.is_paused:
            return

        options = TickOptions.from_value(opts, self.settings.environment, **kwargs)

        with self._cycle_guard():
            for cycle in range(max(1, options.count)):
                # A rule may pause the environment mid-batch
                if cycle and self.clock.is_paused:
                    break
                self._run_cycle(options)

        self._render()

    def step(self, opts: "int | TickOptions | Dict[str, Any] | None" = None, **kwargs: Any) -> None:
        """Tick once even while paused, then restore the play state."""
        was_paused = self.clock.is_paused
        self.clock.resume()
        try:
            self.tick(opts, **kwargs)
        finally:
            if was_paused:
                self.clock.pause()

    def tick_next(self) -> Optional[float]:
        """
        Jump to the scheduler's next event time and run that cycle.

        Time does not advance past the event: the cycle runs *at* the
        jumped-to time. Without a scheduler this is a plain ``tick``.

        Returns:
            The new time, or None if nothing is scheduled or the environment is paused
        """
        if self.scheduler is None:
            self.tick()
            return self.time

        if self.clock.is_paused:
            logger.warning("tick_next called while paused")
            return None

        next_time = self.scheduler.next_scheduled_time()
        if next_time is None:
            return None

        with self._cycle_guard():
            if next_time < self.time:
                logger.warning(
                    f"Activating agents scheduled for past time {next_time} at time {self.time}"
                )
            else:
                self.clock.jump_to(next_time)
            self._run_cycle(due_time=next_time, advance=False)

        self._render()
        return self.time

    def tick_until(self, target_time: float, max_iterations: Optional[int] = None) -> float:
        """
        Tick until ``time >= target_time``.

        Event-driven schedulers are stepped event by event with
        ``tick_next`` and stop early once nothing is scheduled. The
        iteration cap ends runaway event chains without raising.

        Returns:
            The time reached
        """
        if max_iterations is None:
            max_iterations = self.settings.environment.max_iterations

        if self.clock.is_paused:
            logger.warning("tick_until called while paused")
            return self.time

        event_driven = self.scheduler is not None and self.scheduler.event_driven
        iterations = 0

        while self.time < target_time and iterations < max_iterations:
            if self.clock.is_paused:
                logger.debug(f"tick_until stopped by pause at time {self.time}")
                break
            if event_driven:
                if self.tick_next() is None:
                    break
            else:
                self.tick()
            iterations += 1

        if iterations >= max_iterations and self.time < target_time:
            logger.warning(
                f"tick_until stopped after {max_iterations} iterations at time {self.time}"
            )

        return self.time

    def schedule_action(self, time: float, action: Callable[[], Any]) -> Unsubscribe:
        """
        Run ``action`` once, at the end of the first tick reaching ``time``.

        Requires an event bus.

        Returns:
            A callable that cancels the action
        """
        if self.event_bus is None:
            logger.warning("schedule_action requires an event bus; action ignored")
            return lambda: None

        def on_tick_end(event) -> None:
            if self.time >= time:
                unsubscribe()
                action()

        unsubscribe = self.event_bus.on(EventType.TICK_END, on_tick_end)
        return unsubscribe

    def schedule_action_in(self, delay: float, action: Callable[[], Any]) -> Unsubscribe:
        """Run ``action`` once, ``delay`` time units from now."""
        return self.schedule_action(self.time + delay, action)

    def memo(self, fn: Callable[[], Any], key: Optional[Hashable] = None) -> Any:
        """
        Compute ``fn()`` at most once per tick.

        The cache fingerprint is ``key`` combined with the function's code,
        so lambdas written at one call site share an entry. Pass a key when
        one call site computes different things.
        """
        code = getattr(fn, "__code__", fn)
        fingerprint = (key, code) if key is not None else code

        entry = self.state.cached(fingerprint, self.time)
        if entry is not None:
            return entry.value
        return self.state.store(fingerprint, fn(), self.time)

    def stat(self, key: str, use_cache: bool = True) -> List[Any]:
        """The value of data ``key`` for every agent, in insertion order."""

        def collect() -> List[Any]:
            return [agent.get(key) for agent in self.state.get_agents()]

        if not use_cache:
            return collect()
        return self.memo(collect, key=("stat", key))

    def reset(self) -> None:
        """Remove every agent and return time to 0."""
        for agent in self.state.get_agents():
            agent.clear_subscriptions()
            agent.environment = None
        if self.scheduler is not None:
            self.scheduler.reset()
        self.state.reset()
        self.clock.reset()
        self._warned_randomize_order = False

    @contextmanager
    def _cycle_guard(self) -> Iterator[None]:
        if self._ticking:
            raise RuntimeError("Environment cannot tick from inside its own tick cycle")
        self._ticking = True
        try:
            yield
        finally:
            self._ticking = False

    def _run_cycle(
        self,
        options: Optional[TickOptions] = None,
        due_time: Optional[float] = None,
        advance: bool = True,
    ) -> None:
        """Run one cycle: announce, activate in two phases, advance, announce."""
        self._emit(EventType.TICK_START, {"time": self.time})

        active = self._select_agents(options, self.time if due_time is None else due_time)

        for agent in active:
            if agent.environment is self:
                agent.execute_rules()

        for agent in active:
            if agent.environment is self:
                agent.execute_enqueued_rules()

        for helper in self.helpers:
            rebalance = getattr(helper, "rebalance", None)
            if callable(rebalance):
                rebalance()

        if advance:
            self.clock.advance()

        self._emit(EventType.TICK_END, {"time": self.time})

    def _select_agents(self, options: Optional[TickOptions], time: float) -> List["Agent"]:
        if self.scheduler is not None:
            return self.scheduler.get_agents_for_tick(time)

        options = options or TickOptions.from_value(None, self.settings.environment)
        agents = self.state.get_agents()
        if not agents:
            return []

        if options.activation == ACTIVATION_UNIFORM:
            randomize = options.randomize_order
            if randomize is None:
                if not self._warned_randomize_order:
                    logger.warning(
                        "tick called without randomize_order; it currently defaults to "
                        "False but will default to True in a future version. Pass "
                        "randomize_order explicitly to silence this warning."
                    )
                    self._warned_randomize_order = True
                randomize = False
            if randomize:
                return [agents[i] for i in self._rng.permutation(len(agents))]
            return agents

        count = options.activation_count
        if count <= 0:
            logger.warning(f"activation_count must be at least 1, got {count}; no agents activated")
            return []
        if count == 1:
            return [agents[int(self._rng.integers(len(agents)))]]

        size = min(count, len(agents))
        return [agents[i] for i in self._rng.choice(len(agents), size=size, replace=False)]

    def _emit(self, event_type: EventType, data: Dict[str, Any]) -> None:
        if self.event_bus is not None:
            self.event_bus.emit(event_type, data, self)

    def _render(self) -> None:
        for renderer in self.renderers:
            renderer.render()
