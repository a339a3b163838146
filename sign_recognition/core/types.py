"""
Shared domain types for the sign recognition core.

Centralizes the gesture taxonomy, landmark topology and result/threshold
containers used by both classifiers so that the rule engine and the
network resolve to the same id space.
"""

import json
from dataclasses import dataclass
from enum import IntEnum
from typing import NamedTuple, Optional


# =============================================================================
# Landmark topology
# =============================================================================

LANDMARK_COUNT = 21


class LandmarkIndex(IntEnum):
    """Hand landmark indices following the MediaPipe convention."""
    WRIST = 0
    THUMB_CMC = 1
    THUMB_MCP = 2
    THUMB_IP = 3
    THUMB_TIP = 4
    INDEX_MCP = 5
    INDEX_PIP = 6
    INDEX_DIP = 7
    INDEX_TIP = 8
    MIDDLE_MCP = 9
    MIDDLE_PIP = 10
    MIDDLE_DIP = 11
    MIDDLE_TIP = 12
    RING_MCP = 13
    RING_PIP = 14
    RING_DIP = 15
    RING_TIP = 16
    PINKY_MCP = 17
    PINKY_PIP = 18
    PINKY_DIP = 19
    PINKY_TIP = 20


FINGER_NAMES = ("thumb", "index", "middle", "ring", "pinky")

# Joint chains: (base, pip, dip, tip). The thumb's chain is CMC, MCP, IP, TIP.
FINGER_JOINTS = {
    "thumb":  (LandmarkIndex.THUMB_CMC, LandmarkIndex.THUMB_MCP,
               LandmarkIndex.THUMB_IP, LandmarkIndex.THUMB_TIP),
    "index":  (LandmarkIndex.INDEX_MCP, LandmarkIndex.INDEX_PIP,
               LandmarkIndex.INDEX_DIP, LandmarkIndex.INDEX_TIP),
    "middle": (LandmarkIndex.MIDDLE_MCP, LandmarkIndex.MIDDLE_PIP,
               LandmarkIndex.MIDDLE_DIP, LandmarkIndex.MIDDLE_TIP),
    "ring":   (LandmarkIndex.RING_MCP, LandmarkIndex.RING_PIP,
               LandmarkIndex.RING_DIP, LandmarkIndex.RING_TIP),
    "pinky":  (LandmarkIndex.PINKY_MCP, LandmarkIndex.PINKY_PIP,
               LandmarkIndex.PINKY_DIP, LandmarkIndex.PINKY_TIP),
}


class Landmark(NamedTuple):
    """A single landmark point with normalized coordinates."""
    x: float  # 0.0 to 1.0, normalized by image width
    y: float  # 0.0 to 1.0, normalized by image height, grows downward
    z: float = 0.0  # Depth relative to wrist


# =============================================================================
# Gesture taxonomy
# =============================================================================

class GestureLabel(IntEnum):
    """Recognized gestures with their stable integer ids."""
    UNKNOWN = 0
    HELLO = 1
    THANKS = 2
    YES = 3
    V = 4
    OK = 5

    @property
    def display_name(self) -> str:
        return _DISPLAY_NAMES[self]

    @classmethod
    def from_id(cls, gesture_id: int) -> 'GestureLabel':
        """Convert an integer id to a GestureLabel, safely."""
        try:
            return cls(int(gesture_id))
        except (TypeError, ValueError):
            return cls.UNKNOWN


_DISPLAY_NAMES = {
    GestureLabel.UNKNOWN: "Unknown",
    GestureLabel.HELLO: "Hello",
    GestureLabel.THANKS: "Thanks",
    GestureLabel.YES: "Yes",
    GestureLabel.V: "V",
    GestureLabel.OK: "OK",
}

# Network output index -> label (must match the label order of the weights)
NETWORK_CLASSES = (
    GestureLabel.UNKNOWN,
    GestureLabel.HELLO,
    GestureLabel.THANKS,
    GestureLabel.YES,
    GestureLabel.V,
)


# =============================================================================
# Data containers
# =============================================================================

class RecognitionResult:
    """Container for a single-frame recognition outcome.

    ``source`` tells which path produced the result ("network", "rules"
    or "none") and is not part of the serialized form.
    """

    __slots__ = ("gesture", "confidence", "source")

    def __init__(self, gesture: GestureLabel, confidence: float,
                 source: str = "none"):
        self.gesture = GestureLabel(gesture)
        self.confidence = float(confidence)
        self.source = source

    @staticmethod
    def none() -> "RecognitionResult":
        """Create the empty "no gesture this frame" result."""
        return RecognitionResult(GestureLabel.UNKNOWN, 0.0)

    @property
    def name(self) -> str:
        return self.gesture.display_name

    @property
    def id(self) -> int:
        return int(self.gesture)

    @property
    def is_valid(self) -> bool:
        return self.gesture != GestureLabel.UNKNOWN and self.confidence > 0.0

    def to_dict(self) -> dict:
        return {
            "gesture": self.name,
            "confidence": self.confidence,
            "id": self.id,
        }

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), ensure_ascii=False)

    def __eq__(self, other):
        if not isinstance(other, RecognitionResult):
            return NotImplemented
        return (self.gesture == other.gesture
                and self.confidence == other.confidence)

    def __hash__(self):
        return hash((self.gesture, self.confidence))

    def __repr__(self):
        return f"RecognitionResult({self.name}, conf={self.confidence:.2f}, id={self.id})"


@dataclass
class ThresholdConfig:
    """Thresholds used by the hybrid decision policy."""
    # Minimum upstream hand-tracking confidence to attempt recognition
    detection_threshold: float = 0.5
    # Network results at or above this confidence are accepted directly
    recognition_threshold: float = 0.7

    @classmethod
    def from_dict(cls, config: Optional[dict]) -> "ThresholdConfig":
        """Create config from dictionary."""
        config = config or {}
        return cls(
            detection_threshold=float(config.get("detection_threshold", 0.5)),
            recognition_threshold=float(config.get("recognition_threshold", 0.7)),
        )
