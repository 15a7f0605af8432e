#!/usr/bin/env python3
"""
AgentSim - agent-based simulation engine

Runs a small headless demonstration model and prints the agents' state.

Run with: python main.py --scheduler priority --until 50
"""

import sys
import argparse
import copy
import logging
import random
from pathlib import Path

# Add project root to path for imports
sys.path.insert(0, str(Path(__file__).parent))

from config.settings import Settings, get_settings
from src.core.environment import Environment
from src.core.event_bus import EventType
from src.entities.agent import Agent
from src.visualization.renderer import TableRenderer


def build_interval_model(env: Environment, n_agents: int) -> None:
    """Agents that count activations at staggered intervals."""
    for i in range(n_agents):
        agent = Agent({"activations": 0, "tick_interval": 1 + i % 3})
        agent.add_rule(lambda a: a.increment("activations"))
        env.add_agent(agent)


def build_event_model(env: Environment, n_agents: int) -> None:
    """Agents that wake up after a random delay and reschedule themselves."""

    def wake(agent: Agent) -> None:
        agent.increment("activations")
        agent.set("last_wake", env.time)
        agent.schedule_in(random.randint(1, agent.get("max_delay")))

    for i in range(n_agents):
        agent = Agent({"activations": 0, "last_wake": None, "max_delay": 2 + i})
        agent.add_rule(wake)
        env.add_agent(agent)


def parse_args() -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="AgentSim - run a headless demonstration model"
    )

    parser.add_argument(
        "-c", "--config",
        type=str,
        help="Path to simulation configuration YAML file"
    )

    parser.add_argument(
        "-s", "--scheduler",
        type=str,
        choices=["none", "default", "interval", "priority"],
        default=None,
        help="Activation policy (default: from config)"
    )

    parser.add_argument(
        "-n", "--agents",
        type=int,
        default=5,
        help="Number of agents"
    )

    parser.add_argument(
        "-u", "--until",
        type=int,
        default=20,
        help="Simulation time to run until"
    )

    parser.add_argument(
        "--seed",
        type=int,
        default=None,
        help="Random seed"
    )

    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable verbose logging"
    )

    return parser.parse_args()


def main() -> None:
    """Main entry point."""
    args = parse_args()

    log_level = logging.DEBUG if args.verbose else logging.INFO
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )
    logger = logging.getLogger(__name__)

    settings = Settings.load(Path(args.config)) if args.config else copy.deepcopy(get_settings())
    if args.scheduler is not None:
        settings.scheduler.kind = None if args.scheduler == "none" else args.scheduler
    if args.seed is not None:
        settings.environment.seed = args.seed

    env = Environment.from_settings(settings)

    if env.scheduler is not None and env.scheduler.event_driven:
        build_event_model(env, args.agents)
    else:
        build_interval_model(env, args.agents)

    env.event_bus.on(
        EventType.TICK_END,
        lambda event: logger.debug(f"Tick finished at time {event.data['time']}"),
    )

    env.tick_until(args.until)
    logger.info(f"Reached time {env.time} with {len(env.get_agents())} agents")

    renderer = TableRenderer(["activations", "last_wake", "tick_interval"])
    env.add_renderer(renderer)
    renderer.render()


if __name__ == "__main__":
    try:
        main()
    except KeyboardInterrupt:
        print("\nExiting...")
