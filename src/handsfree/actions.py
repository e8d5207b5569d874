"""Gesture-to-command mapping.

Confirmed gestures are translated into named host commands (``next_step``,
``ai_help``...) and dispatched to whatever handlers the host registered for
those commands. Mappings can be loaded from YAML:

    mappings:
      - trigger: point_right
        command: next_step
        min_confidence: 0.85
      - trigger: stop
        command: pause
        enabled: false
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Callable, Optional

import yaml

from handsfree.classifier import GestureLabel
from handsfree.confirmation import GestureEvent

if TYPE_CHECKING:
    from handsfree.engine import GestureEngine

logger = logging.getLogger("handsfree.actions")

CommandHandler = Callable[[GestureEvent], object]

# Cooking-mode bindings: navigate steps, ask for help, confirm, pause
DEFAULT_COMMANDS = {
    GestureLabel.POINT_RIGHT: ("next_step", "Navigate to next step"),
    GestureLabel.POINT_LEFT: ("previous_step", "Go to previous step"),
    GestureLabel.HAND_RAISE: ("ai_help", "Ask for AI help"),
    GestureLabel.THUMBS_UP: ("confirm", "Confirm action"),
    GestureLabel.STOP: ("pause", "Pause cooking"),
}


@dataclass
class GestureMapping:
    """Binds a gesture label to a host command."""
    trigger: GestureLabel
    command: str
    min_confidence: float = 0.0
    enabled: bool = True
    description: str = ""

    def to_dict(self) -> dict:
        return {
            "trigger": self.trigger.value,
            "command": self.command,
            "min_confidence": self.min_confidence,
            "enabled": self.enabled,
            "description": self.description,
        }

    @classmethod
    def from_dict(cls, data: dict) -> GestureMapping:
        return cls(
            trigger=GestureLabel(data["trigger"]),
            command=data["command"],
            min_confidence=data.get("min_confidence", 0.0),
            enabled=data.get("enabled", True),
            description=data.get("description", ""),
        )


class ActionMapper:
    """Manages gesture-to-command mappings and dispatches confirmed events.

    Usage:
        mapper = ActionMapper.with_defaults()
        mapper.on("next_step", lambda event: viewer.next())
        mapper.bind(engine)
    """

    def __init__(self):
        self._mappings: dict[GestureLabel, GestureMapping] = {}
        self._handlers: dict[str, list[CommandHandler]] = {}

    def add_mapping(self, mapping: GestureMapping):
        self._mappings[mapping.trigger] = mapping

    def get_mapping(self, label: GestureLabel) -> Optional[GestureMapping]:
        return self._mappings.get(label)

    def on(self, command: str, handler: CommandHandler) -> Callable[[], None]:
        """Register a handler for a command. Returns a function that removes it."""
        self._handlers.setdefault(command, []).append(handler)

        def remove():
            handlers = self._handlers.get(command, [])
            if handler in handlers:
                handlers.remove(handler)

        return remove

    def dispatch(self, event: GestureEvent) -> list[bool]:
        """Run the handlers bound to ``event``'s command. Returns success per handler."""
        mapping = self._mappings.get(event.label)
        if not mapping or not mapping.enabled:
            return []

        if event.confidence < mapping.min_confidence:
            logger.debug(
                "Skipping %s: confidence %.2f below %.2f",
                mapping.command, event.confidence, mapping.min_confidence,
            )
            return []

        handlers = self._handlers.get(mapping.command, [])
        if not handlers:
            logger.debug("No handler for command %s", mapping.command)

        results = []
        for handler in list(handlers):
            try:
                handler(event)
                results.append(True)
            except Exception as e:
                logger.error("Command %s failed: %s", mapping.command, e)
                results.append(False)
        return results

    def bind(self, engine: GestureEngine) -> Callable[[], None]:
        """Subscribe to an engine's confirmed gestures."""
        return engine.subscribe(self.dispatch)

    def command_for(self, label: GestureLabel) -> Optional[str]:
        mapping = self._mappings.get(label)
        return mapping.command if mapping else None

    @classmethod
    def with_defaults(cls) -> ActionMapper:
        mapper = cls()
        for label, (command, description) in DEFAULT_COMMANDS.items():
            mapper.add_mapping(GestureMapping(
                trigger=label, command=command, description=description,
            ))
        return mapper

    @classmethod
    def from_yaml(cls, path: str | Path) -> ActionMapper:
        """Load mappings from a YAML config file."""
        with open(path) as f:
            config = yaml.safe_load(f) or {}

        mapper = cls()
        for entry in config.get("mappings", []):
            mapper.add_mapping(GestureMapping.from_dict(entry))
        return mapper

    def to_yaml(self, path: str | Path):
        """Save current mappings to YAML."""
        entries = [m.to_dict() for m in self._mappings.values()]
        with open(path, "w") as f:
            yaml.dump({"mappings": entries}, f, default_flow_style=False, sort_keys=False)

    @property
    def triggers(self) -> list[GestureLabel]:
        return list(self._mappings.keys())

    @property
    def commands(self) -> list[str]:
        return [m.command for m in self._mappings.values()]
