"""Logical simulation time and play/pause state."""

from dataclasses import dataclass, field


@dataclass
class SimulationClock:
    """
    Discrete logical clock.

    Time starts at 0 and never decreases. It advances by one per tick, or
    jumps forward to the next scheduled event in discrete-event mode.
    """

    _time: float = field(default=0, init=False)
    _paused: bool = field(default=False, init=False)

    @property
    def time(self) -> float:
        """Current simulation time."""
        return self._time

    @property
    def is_paused(self) -> bool:
        """Whether the simulation is paused."""
        return self._paused

    def advance(self, n: int = 1) -> float:
        """Advance time by ``n`` ticks. Returns the new time."""
        self._time += n
        return self._time

    def jump_to(self, time: float) -> float:
        """
        Move time forward to ``time``.

        Raises:
            ValueError: If ``time`` is earlier than the current time
        """
        if time < self._time:
            raise ValueError(f"Cannot move time backwards from {self._time} to {time}")
        self._time = time
        return self._time

    def pause(self) -> None:
        """Pause the simulation."""
        self._paused = True

    def resume(self) -> None:
        """Resume the simulation."""
        self._paused = False

    def reset(self) -> None:
        """Reset clock to initial state."""
        self._time = 0
        self._paused = False
