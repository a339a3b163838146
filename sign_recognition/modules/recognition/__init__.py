"""Gesture recognition module."""
from .gesture_classifier import GESTURE_RULES, RuleClassifier

__all__ = [
    "GESTURE_RULES",
    "RuleClassifier",
]
