"""Live hand landmark source backed by MediaPipe Hands."""

from __future__ import annotations

import time
from typing import Optional

import numpy as np

from handsfree.landmarks import LandmarkFrame
from handsfree.sources import FrameSource

try:
    import mediapipe as mp
except ImportError:
    mp = None


class MediaPipeSource(FrameSource):
    """Detects one hand per RGB frame and pushes it as a LandmarkFrame.

    Keypoints are reported in pixel space of the raw camera image, which is
    what the classifier's default ``mirrored=True`` expects. With
    ``flip_horizontal`` the x axis is flipped into selfie view; pair that
    with ``mirrored=False`` in the engine config.
    """

    def __init__(
        self,
        min_detection_confidence: float = 0.8,
        min_tracking_confidence: float = 0.8,
        flip_horizontal: bool = False,
        static_image_mode: bool = False,
    ):
        if mp is None:
            raise ImportError(
                "mediapipe is required. Install with: pip install 'handsfree[camera]'"
            )

        super().__init__()
        self.flip_horizontal = flip_horizontal
        self._hands = mp.solutions.hands.Hands(
            static_image_mode=static_image_mode,
            max_num_hands=1,
            min_detection_confidence=min_detection_confidence,
            min_tracking_confidence=min_tracking_confidence,
        )

    def detect(self, frame_rgb: np.ndarray) -> Optional[LandmarkFrame]:
        """Detect a hand in an RGB image (H, W, 3), uint8.

        Returns:
            LandmarkFrame in pixel coordinates, or None if no hand is visible.
        """
        results = self._hands.process(frame_rgb)

        if not results.multi_hand_landmarks:
            return None

        hand_landmarks = results.multi_hand_landmarks[0]
        points = np.array(
            [[lm.x, lm.y, lm.z] for lm in hand_landmarks.landmark],
            dtype=np.float64,
        )
        if self.flip_horizontal:
            points[:, 0] = 1.0 - points[:, 0]

        score = 1.0
        if results.multi_handedness:
            score = float(results.multi_handedness[0].classification[0].score)

        height, width = frame_rgb.shape[:2]
        return LandmarkFrame.from_array(points, score=score, width=width, height=height)

    def process(self, frame_rgb: np.ndarray, now: Optional[float] = None) -> Optional[LandmarkFrame]:
        """Detect and push the result to every registered callback."""
        if now is None:
            now = time.monotonic()
        frame = self.detect(frame_rgb)
        self.emit(frame, now)
        return frame

    def close(self):
        """Release MediaPipe resources."""
        self._hands.close()

    def __enter__(self):
        return self

    def __exit__(self, *args):
        self.close()
