"""Agent entity: a keyed data bag with rules and deferred operations."""

import itertools
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Tuple, TYPE_CHECKING

if TYPE_CHECKING:
    from src.core.environment import Environment
    from src.core.event_bus import Event

logger = logging.getLogger(__name__)

_agent_ids = itertools.count()

# Data key holding the agent's primary rule
TICK_RULE_KEY = "tick"

AgentHandler = Callable[["Agent", "Event"], None]


@dataclass
class RuleEntry:
    """A rule callable plus the extra arguments bound to it."""
    rule: Callable[..., Any]
    args: Tuple[Any, ...] = ()

    def __call__(self, agent: "Agent") -> Any:
        return self.rule(agent, *self.args)


@dataclass(eq=False)
class Agent:
    """
    An autonomous entity in a simulation.

    Rules run on every activation, in registration order. Operations
    enqueued with ``enqueue`` run once, after every active agent has run
    its rules for the tick, then are cleared.

    A callable stored under the ``tick`` data key runs before the
    registered rules.
    """

    data: Dict[str, Any] = field(default_factory=dict)
    id: int = field(default_factory=lambda: next(_agent_ids))

    rules: List[RuleEntry] = field(default_factory=list, init=False)
    queue: List[RuleEntry] = field(default_factory=list, init=False)

    # Owning environment (non-owning back reference)
    environment: "Environment | None" = field(default=None, init=False, repr=False)
    _subscriptions: List[Callable[[], None]] = field(default_factory=list, init=False, repr=False)

    def get(self, key: str) -> Any:
        """Get a data value, or None if unset."""
        return self.data.get(key)

    def get_data(self) -> Dict[str, Any]:
        """Get all data associated with this agent."""
        return self.data

    def set(self, key: str | Dict[str, Any], value: Any = None) -> None:
        """Set one data value, or merge a dict of values."""
        if isinstance(key, dict):
            self.data.update(key)
        else:
            self.data[key] = value

    def increment(self, key: str, n: float = 1) -> None:
        """Increment a numeric value. Unset values start at 0."""
        self.data[key] = (self.data.get(key) or 0) + n

    def decrement(self, key: str, n: float = 1) -> None:
        """Decrement a numeric value. Unset values start at 0."""
        self.increment(key, -n)

    def add_rule(self, rule: Callable[..., Any], *args: Any) -> None:
        """Register a rule run with ``(agent, *args)`` on every activation."""
        self.rules.append(RuleEntry(rule, args))

    def enqueue(self, rule: Callable[..., Any], *args: Any) -> None:
        """Defer an operation until every active agent has run its rules this tick."""
        self.queue.append(RuleEntry(rule, args))

    def execute_rules(self) -> None:
        """Run the primary tick rule and every registered rule."""
        tick_rule = self.data.get(TICK_RULE_KEY)
        if callable(tick_rule):
            tick_rule(self)

        for entry in list(self.rules):
            entry(self)

    def execute_enqueued_rules(self) -> None:
        """Drain the deferred queue in FIFO order, then clear it."""
        # Operations enqueued while draining run in this same pass
        index = 0
        while index < len(self.queue):
            self.queue[index](self)
            index += 1
        self.queue.clear()

    def schedule(self, time: float) -> None:
        """Ask the environment's scheduler to activate this agent at ``time``."""
        scheduler = self._scheduler()
        if scheduler is not None:
            scheduler.schedule(self, time)

    def schedule_in(self, delay: float) -> None:
        """Ask the environment's scheduler to activate this agent ``delay`` from now."""
        scheduler = self._scheduler()
        if scheduler is not None:
            scheduler.schedule_in(self, delay, self.environment.time)

    def unschedule(self) -> None:
        """Cancel any pending activation of this agent."""
        scheduler = self._scheduler()
        if scheduler is not None:
            scheduler.unschedule(self)

    def _scheduler(self):
        if self.environment is None or self.environment.scheduler is None:
            logger.warning(f"Agent {self.id} has no scheduler to schedule with")
            return None
        return self.environment.scheduler

    def on(self, event_type: str, handler: AgentHandler) -> Callable[[], None]:
        """
        Subscribe to an event on the environment's bus.

        The handler receives ``(agent, event)``. Subscriptions are dropped
        when the agent leaves the environment.
        """
        events = self.environment.event_bus if self.environment is not None else None
        if events is None:
            logger.warning(f"Agent {self.id} cannot subscribe to '{event_type}' without an event bus")
            return lambda: None

        unsubscribe = events.on(event_type, lambda event: handler(self, event))
        self._subscriptions.append(unsubscribe)
        return unsubscribe

    def emit(self, event_type: str, data: Any = None) -> None:
        """Emit an event with this agent as its source."""
        events = self.environment.event_bus if self.environment is not None else None
        if events is None:
            logger.warning(f"Agent {self.id} cannot emit '{event_type}' without an event bus")
            return
        events.emit(event_type, data, self)

    def clear_subscriptions(self) -> None:
        """Unsubscribe every handler registered through ``on``."""
        for unsubscribe in self._subscriptions:
            unsubscribe()
        self._subscriptions.clear()
