"""Renderers that read agent state after each completed tick call."""

import sys
from abc import ABC, abstractmethod
from typing import List, Optional, TextIO, TYPE_CHECKING

import pandas as pd

if TYPE_CHECKING:
    from src.core.environment import Environment


class Renderer(ABC):
    """
    Abstract base class for renderers.

    The environment calls ``render`` once after every completed ``tick``
    call, however many cycles it ran.
    """

    def __init__(self) -> None:
        self.environment: Optional["Environment"] = None
        self.render_count = 0

    def mount(self, environment: "Environment") -> None:
        """Attach to the environment whose agents are drawn."""
        self.environment = environment

    @abstractmethod
    def render(self) -> None:
        """Draw the current state."""
        pass


class TableRenderer(Renderer):
    """Writes one row per agent, with one column per data key."""

    def __init__(
        self,
        columns: List[str],
        stream: TextIO | None = None,
        limit: int | None = None,
    ) -> None:
        super().__init__()
        self.columns = columns
        self.stream = stream or sys.stdout
        self.limit = limit

    def to_frame(self) -> pd.DataFrame:
        """Agent data as a DataFrame indexed by agent id."""
        if self.environment is None:
            return pd.DataFrame(columns=self.columns)

        agents = self.environment.get_agents()
        if self.limit is not None:
            agents = agents[:self.limit]

        rows = {agent.id: [agent.get(column) for column in self.columns] for agent in agents}
        frame = pd.DataFrame.from_dict(rows, orient="index", columns=self.columns)
        frame.index.name = "id"
        return frame

    def render(self) -> None:
        """Write the table, headed by the current time."""
        if self.environment is None:
            return

        self.render_count += 1
        self.stream.write(f"time {self.environment.time}\n")
        self.stream.write(self.to_frame().to_string())
        self.stream.write("\n")
