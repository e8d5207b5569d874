"""Session recording and replay — capture landmark frames to disk.

Record real sessions for:
- Reproducible engine runs without a camera
- Tuning hold thresholds and cooldowns against the same input
- Regression fixtures that replay deterministically
"""

from __future__ import annotations

import json
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator, Optional

from handsfree.landmarks import LandmarkFrame
from handsfree.sources import FrameSource

FORMAT_VERSION = 1


@dataclass
class RecordedFrame:
    """A single frame in a recording. ``frame`` is None when no hand was seen."""
    timestamp: float  # seconds from recording start
    frame: Optional[LandmarkFrame]

    def to_dict(self) -> dict:
        return {
            "timestamp": self.timestamp,
            "frame": self.frame.to_dict() if self.frame is not None else None,
        }

    @classmethod
    def from_dict(cls, data: dict) -> RecordedFrame:
        raw = data.get("frame")
        return cls(
            timestamp=float(data["timestamp"]),
            frame=LandmarkFrame.from_dict(raw) if raw is not None else None,
        )


class SessionRecorder:
    """Records landmark frames to a JSON file.

    Usage:
        recorder = SessionRecorder()
        recorder.start()
        # In your detection callback:
        recorder.add_frame(frame)
        # When done:
        recorder.save("session.json")
    """

    def __init__(self):
        self._frames: list[RecordedFrame] = []
        self._start_time: Optional[float] = None
        self._recording = False

    def start(self, now: Optional[float] = None):
        """Begin a new recording session."""
        self._frames = []
        self._start_time = time.monotonic() if now is None else now
        self._recording = True

    def stop(self) -> int:
        """Stop recording. Returns number of frames captured."""
        self._recording = False
        return len(self._frames)

    @property
    def is_recording(self) -> bool:
        return self._recording

    @property
    def frame_count(self) -> int:
        return len(self._frames)

    @property
    def duration(self) -> float:
        if not self._frames:
            return 0.0
        return self._frames[-1].timestamp

    def add_frame(self, frame: Optional[LandmarkFrame], now: Optional[float] = None):
        """Add a frame; ignored unless recording. Usable as a FrameSource callback."""
        if not self._recording:
            return

        if now is None:
            now = time.monotonic()
        self._frames.append(RecordedFrame(timestamp=now - self._start_time, frame=frame))

    def save(self, path: str | Path):
        """Save recording to JSON file."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)

        data = {
            "version": FORMAT_VERSION,
            "frame_count": len(self._frames),
            "duration": self.duration,
            "frames": [f.to_dict() for f in self._frames],
        }

        with open(path, "w") as f:
            json.dump(data, f)


class SessionPlayer(FrameSource):
    """Plays back a recorded session.

    Iterate with ``play()``, or attach to an engine and call ``run()`` to
    push every frame with its recorded timestamp.
    """

    def __init__(self, frames: list[RecordedFrame]):
        super().__init__()
        self._frames = frames

    @classmethod
    def load(cls, path: str | Path) -> SessionPlayer:
        """Load a recording from a JSON file."""
        with open(path) as f:
            data = json.load(f)

        version = data.get("version", FORMAT_VERSION)
        if version != FORMAT_VERSION:
            raise ValueError(f"unsupported recording version: {version}")

        return cls([RecordedFrame.from_dict(d) for d in data.get("frames", [])])

    @property
    def frame_count(self) -> int:
        return len(self._frames)

    @property
    def duration(self) -> float:
        if not self._frames:
            return 0.0
        return self._frames[-1].timestamp

    def play(self) -> Iterator[RecordedFrame]:
        """Yield frames as fast as possible."""
        yield from self._frames

    def play_realtime(self, speed: float = 1.0) -> Iterator[RecordedFrame]:
        """Yield frames with original timing (adjusted by speed multiplier)."""
        if not self._frames:
            return

        start = time.monotonic()
        for frame in self._frames:
            target = frame.timestamp / speed
            elapsed = time.monotonic() - start
            if target > elapsed:
                time.sleep(target - elapsed)
            yield frame

    def run(self, realtime: bool = False, speed: float = 1.0) -> int:
        """Push every frame to registered callbacks. Returns frames pushed."""
        frames = self.play_realtime(speed) if realtime else self.play()
        count = 0
        for recorded in frames:
            self.emit(recorded.frame, recorded.timestamp)
            count += 1
        return count
