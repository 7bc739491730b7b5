import json
import dataclasses
from dataclasses import dataclass, asdict
from typing import Any, Dict

from maze_race.core.errors import ConfigError


@dataclass(frozen=True)
class MazeConfig:
    """
    Tuning knobs for MazeGenerator.

    braid_chance: probability that a qualifying wall is removed while braiding
    water_chance: fraction of open cells turned into water
    mud_chance:   fraction of open cells turned into mud
    seal_chance:  probability that the goal gets walled in
    """
    braid_chance: float = 0.18
    water_chance: float = 0.08
    mud_chance: float = 0.14
    seal_chance: float = 0.30

    def __post_init__(self):
        self.validate()

    def validate(self):
        for field in dataclasses.fields(self):
            value = getattr(self, field.name)
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise ConfigError(f"{field.name} must be a number, got {value!r}")
            if not 0.0 <= value <= 1.0:
                raise ConfigError(f"{field.name} must be within [0, 1], got {value}")
        if self.water_chance + self.mud_chance > 1.0:
            raise ConfigError(
                f"water_chance + mud_chance must not exceed 1 "
                f"(got {self.water_chance} + {self.mud_chance})"
            )

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "MazeConfig":
        known = {f.name for f in dataclasses.fields(cls)}
        unknown = set(data) - known
        if unknown:
            raise ConfigError(f"Unknown config option(s): {', '.join(sorted(unknown))}")
        return cls(**data)

    @classmethod
    def from_file(cls, filepath: str) -> "MazeConfig":
        with open(filepath, "r", encoding="utf-8") as f:
            try:
                data = json.load(f)
            except json.JSONDecodeError as e:
                raise ConfigError(f"Invalid config file {filepath}: {e}") from e
        if not isinstance(data, dict):
            raise ConfigError(f"Config file {filepath} must hold a JSON object")
        return cls.from_dict(data)

    def to_dict(self) -> Dict[str, float]:
        return asdict(self)

    def replace(self, **overrides) -> "MazeConfig":
        # None means "keep current", so CLI flags can be passed straight through
        changes = {k: v for k, v in overrides.items() if v is not None}
        return dataclasses.replace(self, **changes)
