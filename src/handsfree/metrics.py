"""Prometheus-compatible metrics for the gesture engine.

No external dependencies — generates the text exposition format directly.

Tracked metrics:
- handsfree_frames_total (counter)
- handsfree_hands_detected_total (counter)
- handsfree_candidates_total (counter, by gesture label)
- handsfree_gestures_total (counter, by gesture label)
- handsfree_cooldown_suppressed_total (counter)
- handsfree_frame_latency_seconds (histogram)
- handsfree_hand_detection_rate (gauge)
"""

from __future__ import annotations

import threading
import time
from collections import Counter


class _Histogram:
    """Simple histogram with configurable buckets."""

    def __init__(self, buckets: list[float]):
        self.buckets = sorted(buckets)
        self.bucket_counts = [0] * len(self.buckets)
        self.count = 0
        self.sum = 0.0
        self._lock = threading.Lock()

    def observe(self, value: float):
        with self._lock:
            self.count += 1
            self.sum += value
            for i, b in enumerate(self.buckets):
                if value <= b:
                    self.bucket_counts[i] += 1
                    break

    def render(self, name: str, help_text: str) -> str:
        lines = [
            f"# HELP {name} {help_text}",
            f"# TYPE {name} histogram",
        ]
        with self._lock:
            cumulative = 0
            for i, b in enumerate(self.buckets):
                cumulative += self.bucket_counts[i]
                lines.append(f'{name}_bucket{{le="{b}"}} {cumulative}')
            lines.append(f'{name}_bucket{{le="+Inf"}} {self.count}')
            lines.append(f"{name}_sum {self.sum:.6f}")
            lines.append(f"{name}_count {self.count}")
        return "\n".join(lines)


class MetricsCollector:
    """Collects engine metrics; pass one to GestureEngine(metrics=...)."""

    def __init__(self):
        self._candidate_counts: Counter = Counter()
        self._gesture_counts: Counter = Counter()
        self._frames_total = 0
        self._hands_total = 0
        self._suppressed_total = 0
        self._hand_detection_rate = 0.0
        self._lock = threading.Lock()

        # Classification is pure Python, so buckets start well under a millisecond
        self._latency = _Histogram(
            [0.0001, 0.0005, 0.001, 0.002, 0.005, 0.010, 0.050]
        )
        self._start_time = time.time()

    def record_frame(self, latency_seconds: float, hand_detected: bool):
        with self._lock:
            self._frames_total += 1
            if hand_detected:
                self._hands_total += 1
            rate = 1.0 if hand_detected else 0.0
            self._hand_detection_rate = 0.95 * self._hand_detection_rate + 0.05 * rate
        self._latency.observe(latency_seconds)

    def record_candidate(self, label: str):
        with self._lock:
            self._candidate_counts[label] += 1

    def record_gesture(self, label: str):
        with self._lock:
            self._gesture_counts[label] += 1

    def record_suppressed(self):
        with self._lock:
            self._suppressed_total += 1

    def _render_counter(self, lines: list[str], name: str, help_text: str, key: str, counts: Counter):
        lines.append(f"# HELP {name} {help_text}")
        lines.append(f"# TYPE {name} counter")
        for label, count in sorted(counts.items()):
            lines.append(f'{name}{{{key}="{label}"}} {count}')
        lines.append("")

    def render(self) -> str:
        """Render all metrics in Prometheus text exposition format."""
        lines: list[str] = []

        uptime = time.time() - self._start_time
        lines.append("# HELP handsfree_uptime_seconds Time since the collector was created")
        lines.append("# TYPE handsfree_uptime_seconds gauge")
        lines.append(f"handsfree_uptime_seconds {uptime:.1f}")
        lines.append("")

        with self._lock:
            lines.append("# HELP handsfree_frames_total Total frames processed")
            lines.append("# TYPE handsfree_frames_total counter")
            lines.append(f"handsfree_frames_total {self._frames_total}")
            lines.append("")

            lines.append("# HELP handsfree_hands_detected_total Frames that contained a hand")
            lines.append("# TYPE handsfree_hands_detected_total counter")
            lines.append(f"handsfree_hands_detected_total {self._hands_total}")
            lines.append("")

            self._render_counter(
                lines, "handsfree_candidates_total",
                "Per-frame gesture candidates by label", "gesture", self._candidate_counts,
            )
            self._render_counter(
                lines, "handsfree_gestures_total",
                "Confirmed gestures by label", "gesture", self._gesture_counts,
            )

            lines.append("# HELP handsfree_cooldown_suppressed_total Candidates ignored during cooldown")
            lines.append("# TYPE handsfree_cooldown_suppressed_total counter")
            lines.append(f"handsfree_cooldown_suppressed_total {self._suppressed_total}")
            lines.append("")

            lines.append("# HELP handsfree_hand_detection_rate Exponential moving average of hand detection")
            lines.append("# TYPE handsfree_hand_detection_rate gauge")
            lines.append(f"handsfree_hand_detection_rate {self._hand_detection_rate:.4f}")
            lines.append("")

        lines.append(self._latency.render(
            "handsfree_frame_latency_seconds",
            "Frame processing latency in seconds",
        ))
        lines.append("")

        return "\n".join(lines) + "\n"

    @property
    def gesture_counts(self) -> dict[str, int]:
        with self._lock:
            return dict(self._gesture_counts)

    @property
    def candidate_counts(self) -> dict[str, int]:
        with self._lock:
            return dict(self._candidate_counts)

    @property
    def frames_total(self) -> int:
        return self._frames_total

    @property
    def hands_total(self) -> int:
        return self._hands_total

    @property
    def suppressed_total(self) -> int:
        return self._suppressed_total

    @property
    def hand_detection_rate(self) -> float:
        return self._hand_detection_rate
