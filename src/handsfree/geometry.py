"""Geometric finger predicates over a single landmark frame.

All functions here are pure and never raise on incomplete frames: a missing
keypoint makes the predicate answer conservatively (False or "unknown").
Coordinates follow image convention, so smaller y means higher up.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

import numpy as np

from handsfree.landmarks import Keypoint, LandmarkFrame

Direction = Literal["left", "right", "unknown"]

OPEN_HAND_FINGERS = ("index_finger", "middle_finger", "ring_finger")

DEFAULT_STRETCH_RATIO = 0.2


@dataclass(frozen=True)
class FingerPredicates:
    """Derived state of one finger in one frame."""
    is_stretched: bool
    points_up: bool
    horizontal_direction: Direction


def _distance(a: Keypoint, b: Keypoint) -> float:
    return float(np.linalg.norm(np.array([a.x - b.x, a.y - b.y])))


def is_finger_stretched(
    frame: LandmarkFrame,
    finger: str,
    stretch_ratio: float = DEFAULT_STRETCH_RATIO,
) -> bool:
    """Check whether a finger extends upward without folding.

    The tip must be further than ``stretch_ratio`` hand-lengths from the MCP
    joint (hand length being the wrist→MCP distance), and the joints must be
    strictly ordered tip above DIP above PIP above MCP.
    """
    tip = frame.get(f"{finger}_tip")
    dip = frame.get(f"{finger}_dip")
    pip = frame.get(f"{finger}_pip")
    mcp = frame.get(f"{finger}_mcp")
    wrist = frame.get("wrist")

    if tip is None or dip is None or pip is None or mcp is None or wrist is None:
        return False

    hand_length = _distance(wrist, mcp)
    stretch_distance = _distance(tip, mcp)
    far_enough = stretch_distance > hand_length * stretch_ratio

    return far_enough and tip.y < dip.y < pip.y < mcp.y


def finger_points_up(frame: LandmarkFrame, finger: str) -> bool:
    tip = frame.get(f"{finger}_tip")
    mcp = frame.get(f"{finger}_mcp")
    if tip is None or mcp is None:
        return False
    return tip.y < mcp.y


def finger_horizontal_direction(
    frame: LandmarkFrame,
    finger: str,
    mirrored: bool = True,
) -> Direction:
    """Which way the finger points, in the user's frame of reference.

    A front-facing camera sees the user mirrored: a tip to the right of the
    MCP in image space is the user's left. Pass ``mirrored=False`` when the
    keypoints were already flipped into selfie view.
    """
    tip = frame.get(f"{finger}_tip")
    mcp = frame.get(f"{finger}_mcp")
    if tip is None or mcp is None or tip.x == mcp.x:
        return "unknown"

    image_right = tip.x > mcp.x
    if mirrored:
        return "left" if image_right else "right"
    return "right" if image_right else "left"


def is_hand_open(
    frame: LandmarkFrame,
    stretch_ratio: float = DEFAULT_STRETCH_RATIO,
) -> bool:
    """Index, middle and ring fingers all stretched."""
    return all(
        is_finger_stretched(frame, finger, stretch_ratio)
        for finger in OPEN_HAND_FINGERS
    )


def finger_predicates(
    frame: LandmarkFrame,
    finger: str,
    stretch_ratio: float = DEFAULT_STRETCH_RATIO,
    mirrored: bool = True,
) -> FingerPredicates:
    return FingerPredicates(
        is_stretched=is_finger_stretched(frame, finger, stretch_ratio),
        points_up=finger_points_up(frame, finger),
        horizontal_direction=finger_horizontal_direction(frame, finger, mirrored),
    )
