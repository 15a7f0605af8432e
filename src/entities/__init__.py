"""Simulation entities."""

from .agent import Agent, RuleEntry

__all__ = [
    "Agent",
    "RuleEntry",
]
