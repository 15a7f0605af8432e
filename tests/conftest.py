"""Shared fixtures for the simulation engine tests."""

import pytest

from config.settings import Settings
from src.core.environment import Environment
from src.core.event_bus import EventBus
from src.scheduling.default import DefaultScheduler
from src.scheduling.priority import PriorityScheduler


@pytest.fixture
def settings() -> Settings:
    """Fresh default settings, independent of the packaged YAML."""
    return Settings()


@pytest.fixture
def event_bus() -> EventBus:
    return EventBus()


@pytest.fixture
def env(settings: Settings, event_bus: EventBus) -> Environment:
    """Environment with an event bus and no scheduler."""
    return Environment(event_bus=event_bus, settings=settings)


@pytest.fixture
def interval_env(settings: Settings, event_bus: EventBus) -> Environment:
    return Environment(scheduler=DefaultScheduler(), event_bus=event_bus, settings=settings)


@pytest.fixture
def priority_env(settings: Settings, event_bus: EventBus) -> Environment:
    return Environment(scheduler=PriorityScheduler(), event_bus=event_bus, settings=settings)
