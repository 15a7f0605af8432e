"""Centralized constants for the simulation engine."""

# Lifecycle event names
TICK_START = "tick:start"
TICK_END = "tick:end"
AGENT_ADDED = "agent:added"
AGENT_REMOVED = "agent:removed"
ENVIRONMENT_PAUSED = "environment:paused"
ENVIRONMENT_RESUMED = "environment:resumed"

# Tick activation modes
ACTIVATION_UNIFORM = "uniform"
ACTIVATION_RANDOM = "random"

# Guard against logically infinite event chains in tick_until
DEFAULT_MAX_ITERATIONS = 1_000_000

# Event bus history retention
EVENT_HISTORY_LIMIT = 1000

# Agent data keys read by the schedulers
TICK_INTERVAL_KEY = "tick_interval"
TICK_PROBABILITY_KEY = "tick_probability"
TICK_OFFSET_KEY = "tick_offset"
TICK_AT_KEY = "tick_at"
