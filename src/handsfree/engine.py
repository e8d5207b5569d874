"""Gesture engine — landmark frames in, confirmed gesture events out."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Callable, Optional

from handsfree.classifier import FrameClassifier, GestureCandidate
from handsfree.config import ConfigurationError, EngineConfig
from handsfree.confirmation import ConfirmationStateMachine, GestureEvent
from handsfree.landmarks import LandmarkFrame
from handsfree.metrics import MetricsCollector
from handsfree.sources import FrameSource

logger = logging.getLogger("handsfree.engine")

GestureHandler = Callable[[GestureEvent], None]


@dataclass
class EngineStats:
    """Running totals since construction or the last reset."""
    total_frames: int = 0
    frames_with_hand: int = 0
    total_gestures: int = 0


class GestureEngine:
    """End-to-end engine: frame → classifier → confirmation → subscribers.

    Features:
    - Fixed-priority single-frame classification
    - Hold-to-confirm with mutually exclusive counters
    - Global cooldown after every confirmed gesture
    - Confidence gating of low-quality detections
    - Synchronous fan-out to any number of subscribers

    Frames must be submitted in arrival order from a single thread. The
    engine owns all of its state; separate instances share nothing.
    """

    def __init__(
        self,
        config: Optional[EngineConfig] = None,
        *,
        classifier: Optional[FrameClassifier] = None,
        metrics: Optional[MetricsCollector] = None,
        **options,
    ):
        base = config or EngineConfig()
        self._config = base.replace(**options) if options else base
        self._custom_classifier = classifier is not None
        self.classifier = classifier or FrameClassifier.from_config(self._config)
        self.machine = ConfirmationStateMachine(
            hold_threshold=self._config.hold_threshold,
            cooldown_ms=self._config.cooldown_ms,
        )
        self.metrics = metrics
        self._subscribers: list[GestureHandler] = []
        self._stats = EngineStats()

    @property
    def config(self) -> EngineConfig:
        return self._config

    def configure(self, config: Optional[EngineConfig] = None, **options) -> EngineConfig:
        """Apply new options. Invalid options raise and change nothing.

        Hold progress is dropped since counts against the old threshold
        aren't meaningful; an open cooldown window is kept.
        """
        base = config or self._config
        try:
            new_config = base.replace(**options) if options else base
        except ConfigurationError:
            logger.warning("Rejected configuration: %s", options)
            raise

        self._config = new_config
        if not self._custom_classifier:
            self.classifier = FrameClassifier.from_config(new_config)
        self.machine.hold_threshold = new_config.hold_threshold
        self.machine.cooldown_ms = new_config.cooldown_ms
        self.machine.clear_progress()
        logger.debug("Engine reconfigured: %s", new_config)
        return new_config

    def subscribe(self, handler: GestureHandler) -> Callable[[], None]:
        """Register a callback for confirmed gestures. Returns an unsubscriber."""
        self._subscribers.append(handler)

        def unsubscribe():
            if handler in self._subscribers:
                self._subscribers.remove(handler)

        return unsubscribe

    def submit_frame(
        self, frame: Optional[LandmarkFrame], now: Optional[float] = None
    ) -> Optional[GestureEvent]:
        """Process one detection result (``None`` when no hand was seen)."""
        t_start = time.perf_counter()
        if now is None:
            now = time.monotonic()

        self._stats.total_frames += 1
        if frame is not None:
            self._stats.frames_with_hand += 1

        candidate = self.classifier.classify(frame)
        if candidate.label is not None and candidate.confidence < self._config.required_confidence:
            candidate = GestureCandidate.none(candidate.confidence)

        in_cooldown = self.machine.cooldown_remaining(now) > 0
        event = self.machine.submit(candidate, now)

        if self.metrics is not None:
            self.metrics.record_frame(
                time.perf_counter() - t_start, hand_detected=frame is not None
            )
            if candidate.label is not None:
                self.metrics.record_candidate(candidate.label.value)
                if in_cooldown:
                    self.metrics.record_suppressed()

        if event is None:
            return None

        self._stats.total_gestures += 1
        if self.metrics is not None:
            self.metrics.record_gesture(event.label.value)
        self._dispatch(event)
        return event

    def _dispatch(self, event: GestureEvent):
        for handler in list(self._subscribers):
            try:
                handler(event)
            except Exception as e:
                logger.error("Gesture handler %r failed: %s", handler, e)

    def attach(self, source: FrameSource) -> Callable[[], None]:
        """Let ``source`` push frames straight into this engine."""
        return source.on_frame(self.submit_frame)

    def reset(self):
        """Clear hold progress and cooldown, e.g. when detection is disabled."""
        self.machine.reset()
        logger.debug("Engine reset")

    @property
    def stats(self) -> EngineStats:
        return EngineStats(
            total_frames=self._stats.total_frames,
            frames_with_hand=self._stats.frames_with_hand,
            total_gestures=self._stats.total_gestures,
        )

    @property
    def progress(self) -> float:
        return self.machine.progress

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)
