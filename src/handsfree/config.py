"""Engine configuration — defaults, validation and YAML files."""

from __future__ import annotations

import dataclasses
import math
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any

import yaml


class ConfigurationError(ValueError):
    """Raised when engine options are invalid. The engine keeps its old config."""


@dataclass(frozen=True)
class EngineConfig:
    """All tunables for a GestureEngine.

    hold_threshold: consecutive matching frames needed to confirm a gesture
        (30 frames at ~10 fps is about three seconds).
    cooldown_ms: quiet period after a confirmed gesture.
    required_confidence: frames scored below this are treated as "no hand".

    The rest tune the frame classifier.
    """
    hold_threshold: int = 30
    cooldown_ms: float = 1000.0
    required_confidence: float = 0.8
    thumb_margin: float = 30.0
    stretch_ratio: float = 0.2
    stop_fingers: tuple[str, ...] = ("index_finger", "middle_finger")
    min_stop_fingers: int = 2
    mirrored: bool = True

    def __post_init__(self):
        # YAML hands us lists
        if isinstance(self.stop_fingers, str) or not isinstance(self.stop_fingers, (list, tuple)):
            raise ConfigurationError(
                f"stop_fingers must be a list of finger names, got {self.stop_fingers!r}"
            )
        if not isinstance(self.stop_fingers, tuple):
            object.__setattr__(self, "stop_fingers", tuple(self.stop_fingers))
        self.validate()

    def validate(self):
        for name in ("hold_threshold", "min_stop_fingers"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int):
                raise ConfigurationError(f"{name} must be an integer, got {value!r}")
        for name in ("cooldown_ms", "required_confidence", "thumb_margin", "stretch_ratio"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, (int, float)) or math.isnan(value):
                raise ConfigurationError(f"{name} must be a number, got {value!r}")

        if self.hold_threshold <= 0:
            raise ConfigurationError(
                f"hold_threshold must be positive, got {self.hold_threshold}"
            )
        if self.cooldown_ms < 0:
            raise ConfigurationError(
                f"cooldown_ms must be non-negative, got {self.cooldown_ms}"
            )
        if not 0.0 <= self.required_confidence <= 1.0:
            raise ConfigurationError(
                f"required_confidence must be in [0, 1], got {self.required_confidence}"
            )
        if self.stretch_ratio <= 0:
            raise ConfigurationError(
                f"stretch_ratio must be positive, got {self.stretch_ratio}"
            )
        if self.min_stop_fingers <= 0:
            raise ConfigurationError(
                f"min_stop_fingers must be positive, got {self.min_stop_fingers}"
            )
        if not self.stop_fingers:
            raise ConfigurationError("stop_fingers must name at least one finger")

    @property
    def cooldown_seconds(self) -> float:
        return self.cooldown_ms / 1000.0

    def replace(self, **changes: Any) -> EngineConfig:
        """Return a copy with ``changes`` applied, validated."""
        unknown = set(changes) - _field_names()
        if unknown:
            raise ConfigurationError(f"unknown option(s): {', '.join(sorted(unknown))}")
        return dataclasses.replace(self, **changes)

    def to_dict(self) -> dict:
        data = asdict(self)
        data["stop_fingers"] = list(self.stop_fingers)
        return data

    @classmethod
    def from_dict(cls, data: dict) -> EngineConfig:
        """Build a config from a flat mapping, or one nested under ``engine``."""
        if "engine" in data and isinstance(data["engine"], dict):
            data = data["engine"]
        return cls().replace(**data)

    @classmethod
    def from_yaml(cls, path: str | Path) -> EngineConfig:
        with open(path) as f:
            data = yaml.safe_load(f) or {}
        if not isinstance(data, dict):
            raise ConfigurationError(f"{path}: expected a mapping of options")
        return cls.from_dict(data)

    def to_yaml(self, path: str | Path):
        with open(path, "w") as f:
            yaml.dump({"engine": self.to_dict()}, f, default_flow_style=False, sort_keys=False)

    def dump(self) -> str:
        return yaml.dump({"engine": self.to_dict()}, default_flow_style=False, sort_keys=False)


def _field_names() -> set[str]:
    return {f.name for f in dataclasses.fields(EngineConfig)}
