"""Tests for single-frame gesture classification."""

import pytest

from handsfree.classifier import FrameClassifier, GestureCandidate, GestureLabel
from handsfree.config import EngineConfig
from handsfree.geometry import is_hand_open
from handsfree.landmarks import Keypoint, LandmarkFrame

from hands import fist, make_hand, open_hand, pointing, thumbs_up, two_fingers


class TestClassification:
    def test_hand_raise(self):
        result = FrameClassifier().classify(open_hand())
        assert result.label == GestureLabel.HAND_RAISE

    def test_point_right(self):
        assert FrameClassifier().classify(pointing("right")).label == GestureLabel.POINT_RIGHT

    def test_point_left(self):
        assert FrameClassifier().classify(pointing("left")).label == GestureLabel.POINT_LEFT

    def test_unmirrored_swaps_direction(self):
        classifier = FrameClassifier(mirrored=False)
        assert classifier.classify(pointing("right")).label == GestureLabel.POINT_LEFT

    def test_stop(self):
        assert FrameClassifier().classify(two_fingers()).label == GestureLabel.STOP

    def test_thumbs_up(self):
        assert FrameClassifier().classify(thumbs_up()).label == GestureLabel.THUMBS_UP

    def test_fist_is_nothing(self):
        assert FrameClassifier().classify(fist()).label is None

    def test_vertical_index_is_nothing(self):
        # Pointing shape but no horizontal direction: no fallback to later checks
        frame = make_hand(index="up", thumb="up")
        assert FrameClassifier().classify(frame).label is None

    def test_no_hand(self):
        result = FrameClassifier().classify(None)
        assert result == GestureCandidate(label=None, confidence=0.0)


class TestPriority:
    def test_open_hand_beats_stop(self):
        frame = open_hand()
        assert is_hand_open(frame)
        # Two stop fingers are up as well, but hand raise wins
        result = FrameClassifier().classify(frame)
        assert result.label == GestureLabel.HAND_RAISE

    def test_open_hand_beats_thumbs_up(self):
        frame = open_hand(thumb="up")
        assert FrameClassifier().classify(frame).label == GestureLabel.HAND_RAISE

    def test_pointing_beats_thumbs_up(self):
        frame = pointing("left", thumb="up")
        assert FrameClassifier().classify(frame).label == GestureLabel.POINT_LEFT

    def test_stop_beats_thumbs_up(self):
        frame = two_fingers(thumb="up")
        assert FrameClassifier().classify(frame).label == GestureLabel.STOP

    def test_stretched_pinky_blocks_pointing(self):
        frame = make_hand(index="point", pinky="up", point_dx=-60.0)
        assert FrameClassifier().classify(frame).label is None


class TestConfidence:
    def test_passes_score_through(self):
        result = FrameClassifier().classify(pointing("right", score=0.42))
        assert result.confidence == 0.42

    def test_no_match_keeps_score(self):
        result = FrameClassifier().classify(fist(score=0.7))
        assert result.label is None
        assert result.confidence == 0.7


class TestMissingLandmarks:
    @pytest.mark.parametrize("missing", ["wrist", "index_finger_tip", "index_finger_mcp"])
    def test_required_keypoints(self, missing):
        for frame in (open_hand(drop=(missing,)), thumbs_up(drop=(missing,)), two_fingers(drop=(missing,))):
            assert FrameClassifier().classify(frame).label is None

    def test_empty_frame(self):
        assert FrameClassifier().classify(LandmarkFrame([])).label is None

    def test_only_wrist_and_thumb(self):
        frame = LandmarkFrame([Keypoint("wrist", 0, 100), Keypoint("thumb_tip", 0, 0)])
        assert FrameClassifier().classify(frame).label is None

    def test_thumbs_up_without_finger_joints(self):
        frame = LandmarkFrame([
            Keypoint("wrist", 320, 400),
            Keypoint("index_finger_mcp", 280, 300),
            Keypoint("index_finger_tip", 280, 320),
            Keypoint("thumb_tip", 300, 300),
        ])
        assert FrameClassifier().classify(frame).label == GestureLabel.THUMBS_UP


class TestTuning:
    def test_thumb_margin(self):
        # thumb tip is 100 px above the wrist
        assert FrameClassifier(thumb_margin=150).classify(thumbs_up()).label is None

    def test_extended_stop_fingers(self):
        classifier = FrameClassifier(
            stop_fingers=("index_finger", "middle_finger", "ring_finger"),
            min_stop_fingers=3,
        )
        assert classifier.classify(two_fingers()).label is None

    def test_min_stop_fingers(self):
        classifier = FrameClassifier(min_stop_fingers=3)
        assert classifier.classify(two_fingers()).label is None

    def test_from_config(self):
        config = EngineConfig(thumb_margin=5.0, mirrored=False, min_stop_fingers=1)
        classifier = FrameClassifier.from_config(config)
        assert classifier.thumb_margin == 5.0
        assert classifier.mirrored is False
        assert classifier.min_stop_fingers == 1
        assert classifier.stop_fingers == ("index_finger", "middle_finger")


class TestLabels:
    def test_label_values(self):
        assert {label.value for label in GestureLabel} == {
            "point_right", "point_left", "hand_raise", "thumbs_up", "stop",
        }

    def test_label_from_string(self):
        assert GestureLabel("stop") is GestureLabel.STOP
