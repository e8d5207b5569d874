"""Single-frame gesture classification with fixed priority tie-breaking."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Sequence

from handsfree.geometry import (
    DEFAULT_STRETCH_RATIO,
    OPEN_HAND_FINGERS,
    finger_horizontal_direction,
    finger_points_up,
    is_finger_stretched,
    is_hand_open,
)
from handsfree.landmarks import LandmarkFrame


class GestureLabel(str, Enum):
    POINT_RIGHT = "point_right"
    POINT_LEFT = "point_left"
    HAND_RAISE = "hand_raise"
    THUMBS_UP = "thumbs_up"
    STOP = "stop"


@dataclass(frozen=True)
class GestureCandidate:
    """The classifier's best guess for one frame, before confirmation."""
    label: Optional[GestureLabel]
    confidence: float = 0.0

    @classmethod
    def none(cls, confidence: float = 0.0) -> GestureCandidate:
        return cls(label=None, confidence=confidence)


DEFAULT_STOP_FINGERS = ("index_finger", "middle_finger")
DEFAULT_THUMB_MARGIN = 30.0

# Fingers that must be curled for an index point to count
_NON_POINTING_FINGERS = ("middle_finger", "ring_finger", "pinky_finger")


class FrameClassifier:
    """Maps a landmark frame to at most one gesture label.

    Checks run in strict priority order and the first match wins:

    1. hand_raise — open hand with at least one finger pointing up
    2. point_left / point_right — lone stretched index finger
    3. stop — enough of ``stop_fingers`` stretched and pointing up
    4. thumbs_up — thumb tip well above the wrist

    Confidence is the frame's detector score, passed through unchanged.
    """

    def __init__(
        self,
        thumb_margin: float = DEFAULT_THUMB_MARGIN,
        stretch_ratio: float = DEFAULT_STRETCH_RATIO,
        stop_fingers: Sequence[str] = DEFAULT_STOP_FINGERS,
        min_stop_fingers: int = 2,
        mirrored: bool = True,
    ):
        self.thumb_margin = thumb_margin
        self.stretch_ratio = stretch_ratio
        self.stop_fingers = tuple(stop_fingers)
        self.min_stop_fingers = min_stop_fingers
        self.mirrored = mirrored

    @classmethod
    def from_config(cls, config) -> FrameClassifier:
        return cls(
            thumb_margin=config.thumb_margin,
            stretch_ratio=config.stretch_ratio,
            stop_fingers=config.stop_fingers,
            min_stop_fingers=config.min_stop_fingers,
            mirrored=config.mirrored,
        )

    def classify(self, frame: Optional[LandmarkFrame]) -> GestureCandidate:
        """Classify one frame. ``None`` (no hand) yields an empty candidate."""
        if frame is None:
            return GestureCandidate.none()

        confidence = frame.confidence_score
        if not frame.has("wrist", "index_finger_tip", "index_finger_mcp"):
            return GestureCandidate.none(confidence)

        label = self._match(frame)
        return GestureCandidate(label=label, confidence=confidence)

    def _match(self, frame: LandmarkFrame) -> Optional[GestureLabel]:
        hand_open = is_hand_open(frame, self.stretch_ratio)

        if hand_open and any(finger_points_up(frame, f) for f in OPEN_HAND_FINGERS):
            return GestureLabel.HAND_RAISE

        if self._is_pointing(frame, hand_open):
            direction = finger_horizontal_direction(frame, "index_finger", self.mirrored)
            if direction == "left":
                return GestureLabel.POINT_LEFT
            if direction == "right":
                return GestureLabel.POINT_RIGHT
            # A lone index finger with no horizontal component is no gesture
            return None

        if self._count_raised(frame, self.stop_fingers) >= self.min_stop_fingers:
            return GestureLabel.STOP

        thumb = frame.get("thumb_tip")
        wrist = frame.get("wrist")
        if thumb is not None and wrist is not None and thumb.y < wrist.y - self.thumb_margin:
            return GestureLabel.THUMBS_UP

        return None

    def _is_pointing(self, frame: LandmarkFrame, hand_open: bool) -> bool:
        if hand_open or not is_finger_stretched(frame, "index_finger", self.stretch_ratio):
            return False
        return not any(
            is_finger_stretched(frame, f, self.stretch_ratio)
            for f in _NON_POINTING_FINGERS
        )

    def _count_raised(self, frame: LandmarkFrame, fingers: Sequence[str]) -> int:
        return sum(
            1 for f in fingers
            if is_finger_stretched(frame, f, self.stretch_ratio) and finger_points_up(frame, f)
        )
