"""Tests for the gesture engine composition root."""

import logging

import pytest

from handsfree.classifier import FrameClassifier, GestureLabel
from handsfree.config import ConfigurationError, EngineConfig
from handsfree.confirmation import MachineState
from handsfree.engine import GestureEngine
from handsfree.metrics import MetricsCollector
from handsfree.sources import FrameSource

from hands import fist, open_hand, pointing, thumbs_up, two_fingers


def run(engine, frame, n, start=0.0, step=0.1):
    """Submit the same frame ``n`` times. Returns (results, next time)."""
    results = []
    t = start
    for _ in range(n):
        results.append(engine.submit_frame(frame, t))
        t += step
    return results, t


class TestSubmitFrame:
    def test_point_right_scenario(self):
        engine = GestureEngine()
        results, t = run(engine, pointing("right", score=0.9), 29)
        assert results == [None] * 29

        event = engine.submit_frame(pointing("right", score=0.9), t)
        assert event.label == GestureLabel.POINT_RIGHT
        assert event.confidence == 0.9
        assert event.fired_at == t

        assert engine.submit_frame(pointing("right", score=0.9), t + 0.1) is None

    def test_each_gesture_confirms(self):
        frames = {
            GestureLabel.HAND_RAISE: open_hand(),
            GestureLabel.POINT_LEFT: pointing("left"),
            GestureLabel.POINT_RIGHT: pointing("right"),
            GestureLabel.STOP: two_fingers(),
            GestureLabel.THUMBS_UP: thumbs_up(),
        }
        for label, frame in frames.items():
            engine = GestureEngine(hold_threshold=5)
            results, _ = run(engine, frame, 5)
            assert results[-1] is not None
            assert results[-1].label == label

    def test_switch_mid_hold(self):
        engine = GestureEngine()
        _, t = run(engine, open_hand(), 15)
        assert engine.submit_frame(pointing("left"), t) is None
        counters = engine.machine.counters
        assert counters[GestureLabel.POINT_LEFT] == 1
        assert counters[GestureLabel.HAND_RAISE] == 0

    def test_no_hand_resets(self):
        engine = GestureEngine(hold_threshold=10)
        _, t = run(engine, two_fingers(), 9)
        engine.submit_frame(None, t)
        results, _ = run(engine, two_fingers(), 9, start=t + 0.1)
        assert results == [None] * 9

    def test_unrecognized_pose_resets(self):
        engine = GestureEngine(hold_threshold=10)
        _, t = run(engine, two_fingers(), 9)
        engine.submit_frame(fist(), t)
        assert engine.machine.state == MachineState.IDLE

    def test_low_confidence_is_no_hand(self):
        engine = GestureEngine(hold_threshold=10, required_confidence=0.8)
        _, t = run(engine, thumbs_up(score=0.9), 9)
        assert engine.submit_frame(thumbs_up(score=0.5), t) is None
        assert engine.machine.state == MachineState.IDLE

    def test_confidence_threshold_inclusive(self):
        engine = GestureEngine(hold_threshold=1, required_confidence=0.8)
        assert engine.submit_frame(thumbs_up(score=0.8), 0.0) is not None

    def test_default_clock(self):
        engine = GestureEngine(hold_threshold=1)
        event = engine.submit_frame(thumbs_up())
        assert event is not None
        assert event.fired_at > 0

    def test_cooldown_blocks_other_gestures(self):
        engine = GestureEngine(hold_threshold=2, cooldown_ms=1000)
        _, t = run(engine, thumbs_up(), 2)
        results, _ = run(engine, open_hand(), 5, start=t)
        assert results == [None] * 5


class TestSubscribers:
    def test_fan_out(self):
        engine = GestureEngine(hold_threshold=1)
        a, b = [], []
        engine.subscribe(a.append)
        engine.subscribe(b.append)
        event = engine.submit_frame(two_fingers(), 0.0)
        assert a == [event]
        assert b == [event]

    def test_unsubscribe(self):
        engine = GestureEngine(hold_threshold=1, cooldown_ms=0)
        received = []
        unsubscribe = engine.subscribe(received.append)
        engine.submit_frame(two_fingers(), 0.0)
        unsubscribe()
        unsubscribe()  # idempotent
        engine.submit_frame(two_fingers(), 1.0)
        assert len(received) == 1
        assert engine.subscriber_count == 0

    def test_no_events_without_confirmation(self):
        engine = GestureEngine()
        received = []
        engine.subscribe(received.append)
        run(engine, two_fingers(), 29)
        assert received == []

    def test_failing_handler_is_isolated(self, caplog):
        engine = GestureEngine(hold_threshold=1)
        received = []

        def broken(event):
            raise RuntimeError("boom")

        engine.subscribe(broken)
        engine.subscribe(received.append)

        with caplog.at_level(logging.ERROR, logger="handsfree.engine"):
            event = engine.submit_frame(thumbs_up(), 0.0)

        assert event is not None
        assert received == [event]
        assert "boom" in caplog.text
        assert engine.machine.state == MachineState.COOLDOWN

    def test_handler_can_unsubscribe_itself(self):
        engine = GestureEngine(hold_threshold=1, cooldown_ms=0)
        received = []
        unsubscribe = None

        def once(event):
            received.append(event)
            unsubscribe()

        unsubscribe = engine.subscribe(once)
        engine.submit_frame(thumbs_up(), 0.0)
        engine.submit_frame(thumbs_up(), 1.0)
        assert len(received) == 1


class TestReset:
    def test_reset_clears_cooldown(self):
        engine = GestureEngine(hold_threshold=1, cooldown_ms=60_000)
        engine.submit_frame(thumbs_up(), 0.0)
        assert engine.submit_frame(thumbs_up(), 0.1) is None
        engine.reset()
        assert engine.submit_frame(thumbs_up(), 0.2) is not None

    def test_reset_clears_progress(self):
        engine = GestureEngine(hold_threshold=5)
        run(engine, open_hand(), 4)
        engine.reset()
        assert engine.progress == 0.0


class TestConfigure:
    def test_defaults(self):
        config = GestureEngine().config
        assert config.hold_threshold == 30
        assert config.cooldown_ms == 1000
        assert config.required_confidence == 0.8

    def test_configure_options(self):
        engine = GestureEngine()
        engine.configure(hold_threshold=3, cooldown_ms=0)
        results, _ = run(engine, two_fingers(), 3)
        assert results[-1] is not None

    def test_configure_with_config_object(self):
        engine = GestureEngine()
        engine.configure(EngineConfig(hold_threshold=2))
        assert engine.machine.hold_threshold == 2

    @pytest.mark.parametrize("options", [
        {"hold_threshold": 0},
        {"hold_threshold": -3},
        {"cooldown_ms": -1},
        {"required_confidence": 1.5},
        {"cooldown_ms": "fast"},
        {"bogus": 1},
    ])
    def test_invalid_keeps_last_config(self, options):
        engine = GestureEngine(hold_threshold=7)
        with pytest.raises(ConfigurationError):
            engine.configure(**options)
        assert engine.config.hold_threshold == 7
        assert engine.machine.hold_threshold == 7

    def test_invalid_constructor_options(self):
        with pytest.raises(ConfigurationError):
            GestureEngine(cooldown_ms=-5)

    def test_configure_drops_progress_keeps_cooldown(self):
        engine = GestureEngine(hold_threshold=1, cooldown_ms=1000)
        engine.submit_frame(thumbs_up(), 0.0)
        engine.configure(hold_threshold=2)
        assert engine.machine.state == MachineState.COOLDOWN
        assert engine.submit_frame(thumbs_up(), 0.5) is None

    def test_configure_rebuilds_classifier(self):
        engine = GestureEngine(hold_threshold=1)
        engine.configure(mirrored=False)
        event = engine.submit_frame(pointing("right"), 0.0)
        assert event.label == GestureLabel.POINT_LEFT

    def test_custom_classifier_kept(self):
        classifier = FrameClassifier(mirrored=False)
        engine = GestureEngine(classifier=classifier)
        engine.configure(hold_threshold=4)
        assert engine.classifier is classifier


class TestIndependence:
    def test_instances_share_nothing(self):
        a = GestureEngine(hold_threshold=3)
        b = GestureEngine(hold_threshold=3)
        run(a, open_hand(), 2)
        assert b.machine.state == MachineState.IDLE
        assert a.submit_frame(open_hand(), 0.5) is not None
        assert b.submit_frame(open_hand(), 0.5) is None


class TestAttach:
    def test_source_pushes_frames(self):
        engine = GestureEngine(hold_threshold=3)
        source = FrameSource()
        received = []
        engine.subscribe(received.append)
        detach = engine.attach(source)

        for i in range(3):
            source.emit(thumbs_up(), i * 0.1)
        assert [e.label for e in received] == [GestureLabel.THUMBS_UP]

        detach()
        assert source.listener_count == 0


class TestStatsAndMetrics:
    def test_stats(self):
        engine = GestureEngine(hold_threshold=2)
        engine.submit_frame(None, 0.0)
        engine.submit_frame(thumbs_up(), 0.1)
        engine.submit_frame(thumbs_up(), 0.2)
        stats = engine.stats
        assert stats.total_frames == 3
        assert stats.frames_with_hand == 2
        assert stats.total_gestures == 1

    def test_metrics_recorded(self):
        metrics = MetricsCollector()
        engine = GestureEngine(hold_threshold=2, cooldown_ms=1000, metrics=metrics)
        run(engine, two_fingers(), 4)
        engine.submit_frame(None, 0.5)

        assert metrics.frames_total == 5
        assert metrics.hands_total == 4
        assert metrics.candidate_counts == {"stop": 4}
        assert metrics.gesture_counts == {"stop": 1}
        assert metrics.suppressed_total == 2
