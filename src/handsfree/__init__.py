"""handsfree - Debounced hand gesture control events from landmark streams."""

__version__ = "0.1.0"

from handsfree.landmarks import Keypoint, LandmarkFrame
from handsfree.geometry import FingerPredicates
from handsfree.classifier import FrameClassifier, GestureCandidate, GestureLabel
from handsfree.confirmation import ConfirmationStateMachine, GestureEvent, MachineState
from handsfree.config import ConfigurationError, EngineConfig
from handsfree.engine import EngineStats, GestureEngine
from handsfree.sources import FrameSource
from handsfree.recorder import SessionRecorder, SessionPlayer
from handsfree.actions import ActionMapper, GestureMapping
from handsfree.metrics import MetricsCollector
