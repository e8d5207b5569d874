"""Hold-to-confirm state machine with a global cooldown.

Per-frame candidates are noisy, so a gesture only becomes an event after the
same label has been seen for ``hold_threshold`` consecutive frames. Only one
label can be in progress at a time: any other label (or no hand) throws the
progress away. After an event fires, every candidate is ignored until the
cooldown window has elapsed.

There is no internal timer. Time only moves when the caller passes ``now``
to ``submit``, which keeps the machine deterministic under synthetic clocks.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from handsfree.classifier import GestureCandidate, GestureLabel
from handsfree.config import ConfigurationError

logger = logging.getLogger("handsfree.confirmation")


class MachineState(Enum):
    IDLE = "idle"
    ACCUMULATING = "accumulating"
    COOLDOWN = "cooldown"


@dataclass(frozen=True)
class GestureEvent:
    """A confirmed gesture, delivered once to subscribers."""
    label: GestureLabel
    confidence: float
    fired_at: float


class ConfirmationStateMachine:
    """Turns a stream of per-frame candidates into confirmed GestureEvents."""

    def __init__(self, hold_threshold: int = 30, cooldown_ms: float = 1000.0):
        if hold_threshold <= 0:
            raise ConfigurationError(f"hold_threshold must be positive, got {hold_threshold}")
        if cooldown_ms < 0:
            raise ConfigurationError(f"cooldown_ms must be non-negative, got {cooldown_ms}")

        self.hold_threshold = hold_threshold
        self.cooldown_ms = cooldown_ms
        self._counters: dict[GestureLabel, int] = {label: 0 for label in GestureLabel}
        self._active: Optional[GestureLabel] = None
        self._active_until: Optional[float] = None
        self._last_fired_at: Optional[float] = None

    def submit(self, candidate: GestureCandidate, now: float) -> Optional[GestureEvent]:
        """Feed one frame's candidate. Returns an event on confirmation."""
        if self._in_cooldown(now):
            self._clear_counters()
            logger.debug("Cooldown active, ignoring %s", candidate.label)
            return None

        label = candidate.label
        if label is None:
            self._clear_counters()
            return None

        if label is not self._active:
            if self._active is not None:
                logger.debug("Switching %s -> %s", self._active.value, label.value)
            self._clear_counters()
            self._active = label

        self._counters[label] += 1

        if self._counters[label] < self.hold_threshold:
            return None

        event = GestureEvent(label=label, confidence=candidate.confidence, fired_at=now)
        self._clear_counters()
        self._last_fired_at = now
        self._active_until = now + self.cooldown_ms / 1000.0
        logger.info("Gesture confirmed: %s (confidence %.2f)", label.value, candidate.confidence)
        return event

    def _in_cooldown(self, now: float) -> bool:
        if self._active_until is None:
            return False

        if self._last_fired_at is not None and now < self._last_fired_at:
            logger.warning(
                "Clock went backwards (now=%.3f < fired_at=%.3f), ending cooldown",
                now, self._last_fired_at,
            )
            self._active_until = None
            return False

        if now >= self._active_until:
            self._active_until = None
            return False
        return True

    def _clear_counters(self):
        for label in self._counters:
            self._counters[label] = 0
        self._active = None

    def cooldown_remaining(self, now: float) -> float:
        """Seconds of cooldown left at ``now``, never negative."""
        if self._active_until is None:
            return 0.0
        if self._last_fired_at is not None and now < self._last_fired_at:
            return 0.0
        return max(0.0, self._active_until - now)

    def reset(self):
        """Forget all progress and any open cooldown window."""
        self._clear_counters()
        self._active_until = None
        self._last_fired_at = None

    def clear_progress(self):
        """Drop hold progress but keep an open cooldown window."""
        self._clear_counters()

    @property
    def counters(self) -> dict[GestureLabel, int]:
        return dict(self._counters)

    @property
    def active_label(self) -> Optional[GestureLabel]:
        return self._active

    @property
    def progress(self) -> float:
        """Fraction of the hold threshold reached by the active label."""
        if self._active is None:
            return 0.0
        return min(1.0, self._counters[self._active] / self.hold_threshold)

    @property
    def state(self) -> MachineState:
        # Cooldown expiry is evaluated lazily on submit
        if self._active_until is not None:
            return MachineState.COOLDOWN
        if self._active is not None:
            return MachineState.ACCUMULATING
        return MachineState.IDLE
