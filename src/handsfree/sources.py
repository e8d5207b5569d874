"""Frame sources — anything that pushes landmark frames to a callback.

The engine never constructs a hand tracker itself. Hosts create a source
(live camera, recorded session, test fixture) and hand it to
``GestureEngine.attach``, which registers ``submit_frame`` through
``on_frame``.
"""

from __future__ import annotations

from typing import Callable, Optional

from handsfree.landmarks import LandmarkFrame


FrameCallback = Callable[[Optional[LandmarkFrame], float], object]


class FrameSource:
    """Base class for frame producers.

    Subclasses call ``emit(frame, now)`` once per detection, with ``None``
    when no hand was visible.
    """

    def __init__(self):
        self._callbacks: list[FrameCallback] = []

    def on_frame(self, callback: FrameCallback) -> Callable[[], None]:
        """Register a push callback. Returns a function that removes it."""
        self._callbacks.append(callback)

        def remove():
            if callback in self._callbacks:
                self._callbacks.remove(callback)

        return remove

    def emit(self, frame: Optional[LandmarkFrame], now: float):
        for cb in list(self._callbacks):
            cb(frame, now)

    @property
    def listener_count(self) -> int:
        return len(self._callbacks)
