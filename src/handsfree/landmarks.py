"""Landmark frames — one hand detection result as named keypoints."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Optional

import numpy as np

# Hand landmark names in MediaPipe / ml5 handPose index order
KEYPOINT_NAMES = [
    "wrist",
    "thumb_cmc", "thumb_mcp", "thumb_ip", "thumb_tip",
    "index_finger_mcp", "index_finger_pip", "index_finger_dip", "index_finger_tip",
    "middle_finger_mcp", "middle_finger_pip", "middle_finger_dip", "middle_finger_tip",
    "ring_finger_mcp", "ring_finger_pip", "ring_finger_dip", "ring_finger_tip",
    "pinky_finger_mcp", "pinky_finger_pip", "pinky_finger_dip", "pinky_finger_tip",
]

NUM_KEYPOINTS = len(KEYPOINT_NAMES)


@dataclass(frozen=True)
class Keypoint:
    """A named hand landmark in the detector's pixel space."""
    id: str
    x: float
    y: float
    z: Optional[float] = None

    def to_dict(self) -> dict:
        data = {"id": self.id, "x": self.x, "y": self.y}
        if self.z is not None:
            data["z"] = self.z
        return data

    @classmethod
    def from_dict(cls, data: dict) -> Keypoint:
        # ml5 reports the landmark name under "name"
        kid = data.get("id", data.get("name"))
        if kid is None:
            raise ValueError("keypoint has no id")
        z = data.get("z")
        return cls(
            id=str(kid),
            x=float(data["x"]),
            y=float(data["y"]),
            z=float(z) if z is not None else None,
        )


@dataclass
class LandmarkFrame:
    """A single hand detection: ordered keypoints plus the detector's score.

    Keypoint ids must be unique and the score must lie in [0, 1].
    """
    keypoints: list[Keypoint]
    confidence_score: float = 1.0
    _index: dict[str, Keypoint] = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        self.keypoints = list(self.keypoints)
        index: dict[str, Keypoint] = {}
        for kp in self.keypoints:
            if kp.id in index:
                raise ValueError(f"duplicate keypoint id: {kp.id}")
            index[kp.id] = kp
        self._index = index

        if not 0.0 <= self.confidence_score <= 1.0:
            raise ValueError(
                f"confidence_score must be in [0, 1], got {self.confidence_score}"
            )

    def get(self, kid: str) -> Optional[Keypoint]:
        """Look up a keypoint by id, or None if the detector didn't report it."""
        return self._index.get(kid)

    def has(self, *kids: str) -> bool:
        return all(k in self._index for k in kids)

    def __contains__(self, kid: str) -> bool:
        return kid in self._index

    def __len__(self) -> int:
        return len(self.keypoints)

    @property
    def ids(self) -> list[str]:
        return [kp.id for kp in self.keypoints]

    def to_dict(self) -> dict:
        return {
            "keypoints": [kp.to_dict() for kp in self.keypoints],
            "confidence_score": self.confidence_score,
        }

    @classmethod
    def from_dict(cls, data: dict) -> LandmarkFrame:
        """Build a frame from a JSON-style dict.

        Accepts both our own ``confidence_score`` key and the ``score`` key
        that ml5/TF.js hand detectors emit.
        """
        score = data.get("confidence_score", data.get("score", 1.0))
        return cls(
            keypoints=[Keypoint.from_dict(k) for k in data.get("keypoints", [])],
            confidence_score=float(score),
        )

    @classmethod
    def from_array(
        cls,
        points: np.ndarray,
        score: float = 1.0,
        width: float = 1.0,
        height: float = 1.0,
        names: Optional[Iterable[str]] = None,
    ) -> LandmarkFrame:
        """Convert a (21, 2) or (21, 3) landmark array to a named frame.

        Args:
            points: Landmarks in MediaPipe order, x/y normalized to [0, 1].
            score: Detector confidence for the hand.
            width: Image width in pixels, used to scale x.
            height: Image height in pixels, used to scale y.
            names: Override landmark names (defaults to KEYPOINT_NAMES).

        Returns:
            LandmarkFrame with pixel-space coordinates.
        """
        points = np.asarray(points, dtype=np.float64)
        if points.ndim != 2 or points.shape[1] not in (2, 3):
            raise ValueError(f"expected shape (N, 2) or (N, 3), got {points.shape}")

        names = list(names) if names is not None else KEYPOINT_NAMES
        if len(names) != points.shape[0]:
            raise ValueError(
                f"got {points.shape[0]} landmarks but {len(names)} names"
            )

        scaled = points.copy()
        scaled[:, 0] *= width
        scaled[:, 1] *= height

        keypoints = []
        for name, row in zip(names, scaled):
            z = float(row[2]) if row.shape[0] == 3 else None
            keypoints.append(Keypoint(id=name, x=float(row[0]), y=float(row[1]), z=z))

        return cls(keypoints=keypoints, confidence_score=float(score))
