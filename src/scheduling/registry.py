"""Pick an activation policy by the name used in ``scheduler.kind``."""

from typing import Dict, List, Optional, Type

from .base import Scheduler
from .default import DefaultScheduler
from .priority import PriorityScheduler

BUILTIN_SCHEDULERS: Dict[str, Type[Scheduler]] = {
    "default": DefaultScheduler,
    "interval": DefaultScheduler,
    "priority": PriorityScheduler,
}

_schedulers: Dict[str, Type[Scheduler]] = dict(BUILTIN_SCHEDULERS)


def register_scheduler(name: str, scheduler_class: Type[Scheduler]) -> None:
    """Make ``scheduler_class`` selectable as ``scheduler.kind: <name>``."""
    _schedulers[name] = scheduler_class


def available_schedulers() -> List[str]:
    """Names accepted by ``create_scheduler``, sorted."""
    return sorted(_schedulers)


def reset_schedulers() -> None:
    """Forget custom registrations and keep only the built-in policies."""
    _schedulers.clear()
    _schedulers.update(BUILTIN_SCHEDULERS)


def create_scheduler(name: Optional[str]) -> Optional[Scheduler]:
    """
    Build the scheduler configured under ``name``.

    ``None`` means agents are activated by the environment's own uniform or
    random activation, so no scheduler is built.

    Raises:
        ValueError: If no policy is registered under ``name``
    """
    if name is None:
        return None
    try:
        scheduler_class = _schedulers[name]
    except KeyError:
        raise ValueError(
            f"Unknown scheduler '{name}', expected one of {available_schedulers()}"
        ) from None

    return scheduler_class()
