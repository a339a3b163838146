"""
Core types and landmark handling shared by all classifiers.
"""

from sign_recognition.core.types import (
    LANDMARK_COUNT,
    NETWORK_CLASSES,
    GestureLabel,
    Landmark,
    LandmarkIndex,
    RecognitionResult,
    ThresholdConfig,
)
from sign_recognition.core.landmarks import from_flat, is_valid_hand, to_landmark_array

__all__ = [
    "LANDMARK_COUNT",
    "NETWORK_CLASSES",
    "GestureLabel",
    "Landmark",
    "LandmarkIndex",
    "RecognitionResult",
    "ThresholdConfig",
    "from_flat",
    "is_valid_hand",
    "to_landmark_array",
]
