"""
Rule-based gesture classifier driven by finger-extension tests.

Assumes a normalized image frame (y grows downward) with the palm
facing the camera:
    - finger extended  <=>  tip.y < pip.y < mcp.y
    - thumb extended   <=>  |tip.x - wrist.x| > |ip.x - wrist.x|

The resulting five booleans are matched against a fixed table; the
first matching rule wins.
"""

import logging
from collections import OrderedDict
from typing import Dict, Mapping

import numpy as np

from sign_recognition.core.landmarks import to_landmark_array
from sign_recognition.core.types import (
    FINGER_JOINTS, FINGER_NAMES, GestureLabel, LandmarkIndex, RecognitionResult,
)

logger = logging.getLogger(__name__)

# (thumb, index, middle, ring, pinky) -> (gesture, confidence), in match order
GESTURE_RULES = (
    ((False, True, False, False, False), GestureLabel.YES, 0.85),
    ((True, True, True, True, True), GestureLabel.HELLO, 0.80),
    ((False, False, False, False, False), GestureLabel.THANKS, 0.75),
    ((False, True, True, False, False), GestureLabel.V, 0.70),
    ((False, True, True, True, False), GestureLabel.OK, 0.70),
)


class RuleClassifier:
    """Geometric classifier over finger-extension booleans.

    Example:
        >>> classifier = RuleClassifier()
        >>> result = classifier.classify(landmarks)
        >>> result.to_dict()
        {'gesture': 'Hello', 'confidence': 0.8, 'id': 1}
    """

    def __init__(self, rules=GESTURE_RULES):
        self._rules = tuple(rules)

    @property
    def rules(self):
        return self._rules

    def classify(self, landmarks) -> RecognitionResult:
        """Classify a hand; invalid input yields the empty result."""
        points = to_landmark_array(landmarks)
        if points is None:
            return RecognitionResult.none()
        return self.classify_points(points)

    def classify_points(self, points: np.ndarray) -> RecognitionResult:
        """Classify an already validated (21, 3) array."""
        return self.classify_states(self.finger_states(points))

    def classify_states(self, states: Mapping[str, bool]) -> RecognitionResult:
        pattern = tuple(bool(states.get(name, False)) for name in FINGER_NAMES)
        for rule_pattern, gesture, confidence in self._rules:
            if pattern == rule_pattern:
                return RecognitionResult(gesture, confidence, source="rules")
        return RecognitionResult(GestureLabel.UNKNOWN, 0.0, source="rules")

    def finger_states(self, points: np.ndarray) -> Dict[str, bool]:
        """Extension state per finger, ordered thumb to pinky."""
        states = OrderedDict()
        wrist_x = points[LandmarkIndex.WRIST, 0]
        for name in FINGER_NAMES:
            mcp, pip, _dip, tip = FINGER_JOINTS[name]
            if name == "thumb":
                # For the thumb the IP joint plays the role of the PIP
                states[name] = bool(
                    abs(points[tip, 0] - wrist_x)
                    > abs(points[LandmarkIndex.THUMB_IP, 0] - wrist_x)
                )
            else:
                states[name] = bool(
                    points[tip, 1] < points[pip, 1] < points[mcp, 1]
                )
        return states
