"""Agent activation policies."""

from .base import Scheduler, ScheduleEntry
from .default import DefaultScheduler, AgentScheduleConfig
from .priority import PriorityScheduler
from .registry import available_schedulers, create_scheduler, register_scheduler, reset_schedulers

__all__ = [
    "Scheduler",
    "ScheduleEntry",
    "DefaultScheduler",
    "AgentScheduleConfig",
    "PriorityScheduler",
    "create_scheduler",
    "available_schedulers",
    "register_scheduler",
    "reset_schedulers",
]
