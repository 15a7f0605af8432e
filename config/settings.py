"""Global settings for the simulation engine."""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional
import yaml

from .constants import ACTIVATION_UNIFORM, DEFAULT_MAX_ITERATIONS, EVENT_HISTORY_LIMIT


@dataclass
class EnvironmentSettings:
    """Tick driver defaults."""
    activation: str = ACTIVATION_UNIFORM
    activation_count: int = 1
    randomize_order: Optional[bool] = None  # None warns once, then behaves as False
    max_iterations: int = DEFAULT_MAX_ITERATIONS
    seed: Optional[int] = None


@dataclass
class SchedulerSettings:
    """Activation policy selection."""
    kind: Optional[str] = None  # None, "default"/"interval" or "priority"


@dataclass
class EventSettings:
    """Event bus parameters."""
    history_limit: int = EVENT_HISTORY_LIMIT


@dataclass
class Settings:
    """Main settings container."""
    environment: EnvironmentSettings = field(default_factory=EnvironmentSettings)
    scheduler: SchedulerSettings = field(default_factory=SchedulerSettings)
    events: EventSettings = field(default_factory=EventSettings)

    @classmethod
    def load(cls, config_path: Path | None = None) -> "Settings":
        """Load settings from YAML file, falling back to defaults."""
        settings = cls()

        if config_path and config_path.exists():
            with open(config_path) as f:
                data = yaml.safe_load(f) or {}

            for section_name in ["environment", "scheduler", "events"]:
                section = getattr(settings, section_name)
                for key, value in (data.get(section_name) or {}).items():
                    if hasattr(section, key):
                        setattr(section, key, value)

        return settings

    def save(self, config_path: Path) -> None:
        """Save current settings to YAML file."""
        data = {
            "environment": {
                "activation": self.environment.activation,
                "activation_count": self.environment.activation_count,
                "randomize_order": self.environment.randomize_order,
                "max_iterations": self.environment.max_iterations,
                "seed": self.environment.seed,
            },
            "scheduler": {
                "kind": self.scheduler.kind,
            },
            "events": {
                "history_limit": self.events.history_limit,
            },
        }

        config_path.parent.mkdir(parents=True, exist_ok=True)
        with open(config_path, "w") as f:
            yaml.dump(data, f, default_flow_style=False, sort_keys=False)

_settings: Settings | None = None

def get_settings() -> Settings:
    """Get global settings instance."""
    global _settings
    if _settings is None:
        config_path = Path(__file__).parent / "simulation.yaml"
        _settings = Settings.load(config_path)
    return _settings

def reset_settings() -> None:
    """Drop the cached settings (for testing)."""
    global _settings
    _settings = None
