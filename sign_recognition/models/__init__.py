"""
ML models package for gesture classification.

Provides:
    - GestureFeatureExtractor: Landmark → normalized 256-dim feature vector
    - NetworkParameters / FeedForwardNetwork: pluggable-weight MLP inference
    - FeatureScaler: per-feature (mean, scale) normalization
    - HybridClassifier: network-first classifier with rule-based arbitration
    - ScaledMLPClassifier: scaler-fed fixed 3-layer MLP (arg-max only)
"""

from sign_recognition.models.feature_extractor import FEATURE_DIM, GestureFeatureExtractor
from sign_recognition.models.gesture_net import FeedForwardNetwork, NetworkParameters, softmax
from sign_recognition.models.scaler import FeatureScaler
from sign_recognition.models.hybrid_classifier import HybridClassifier
from sign_recognition.models.scaled_mlp import ScaledMLPClassifier

__all__ = [
    "FEATURE_DIM",
    "GestureFeatureExtractor",
    "FeedForwardNetwork",
    "NetworkParameters",
    "softmax",
    "FeatureScaler",
    "HybridClassifier",
    "ScaledMLPClassifier",
]
