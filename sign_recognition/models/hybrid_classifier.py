"""
HybridClassifier: network-first gesture classifier with rule-based arbitration.

Decision policy for one frame:
    1. Fewer or more than 21 landmarks            -> Unknown / 0.0
    2. Network confidence >= recognition threshold -> network result
    3. Otherwise the higher-confidence of network and rule results,
       ties resolved in favour of the network.

Without a network the classifier runs rules-only.
"""

import math
import logging

import numpy as np

from sign_recognition import __version__
from sign_recognition.core.landmarks import from_flat, to_landmark_array
from sign_recognition.core.types import (
    NETWORK_CLASSES, GestureLabel, RecognitionResult, ThresholdConfig,
)
from sign_recognition.models.feature_extractor import GestureFeatureExtractor
from sign_recognition.models.gesture_net import FeedForwardNetwork, NetworkParameters
from sign_recognition.modules.recognition.gesture_classifier import RuleClassifier
from sign_recognition.modules.utils.logger import log_timing

logger = logging.getLogger(__name__)


def _clamp_threshold(name, value, current):
    try:
        value = float(value)
    except (TypeError, ValueError, OverflowError):
        logger.warning("Ignoring non-numeric %s: %r", name, value)
        return current
    if math.isnan(value):
        logger.warning("Ignoring NaN %s", name)
        return current
    clamped = min(1.0, max(0.0, value))
    if clamped != value:
        logger.warning("%s %.3f outside [0, 1], clamped to %.1f", name, value, clamped)
    return clamped


class HybridClassifier:
    """Network-first gesture classifier with rule-based arbitration.

    Usage::

        hybrid = HybridClassifier(NetworkParameters.load("gesture_net.npz"))
        result = hybrid.recognize(landmarks)
        print(result.to_json())
    """

    def __init__(self, network=None, rule_classifier=None, thresholds=None,
                 feature_extractor=None, class_labels=NETWORK_CLASSES):
        """
        Args:
            network: NetworkParameters or FeedForwardNetwork; None runs
                     rules-only.
            rule_classifier: RuleClassifier used for arbitration.
            thresholds: ThresholdConfig (copied, so later edits to the
                        caller's object have no effect).
            feature_extractor: GestureFeatureExtractor feeding the network.
            class_labels: network output index -> GestureLabel.

        Raises:
            ValueError: if the network does not fit the extractor width or
                        the number of class labels.
        """
        self._rule_classifier = rule_classifier or RuleClassifier()
        self._feature_extractor = feature_extractor or GestureFeatureExtractor()
        self._class_labels = tuple(GestureLabel(label) for label in class_labels)

        thresholds = thresholds or ThresholdConfig()
        self._thresholds = ThresholdConfig(
            detection_threshold=thresholds.detection_threshold,
            recognition_threshold=thresholds.recognition_threshold,
        )

        if isinstance(network, NetworkParameters):
            network = FeedForwardNetwork(network)
        self._network = network

        if self._network is not None:
            if self._network.input_dim != self._feature_extractor.feature_dim:
                raise ValueError(
                    "Network input width %d does not match feature width %d"
                    % (self._network.input_dim, self._feature_extractor.feature_dim)
                )
            if self._network.output_dim != len(self._class_labels):
                raise ValueError(
                    "Network output width %d does not match %d class labels"
                    % (self._network.output_dim, len(self._class_labels))
                )
            logger.info("Hybrid classifier: network %s + rules",
                        "→".join(str(s) for s in self._network.layer_sizes))
        else:
            logger.info("Hybrid classifier: rules only (no network weights)")

        # Reused every frame
        self._features = np.zeros(self._feature_extractor.feature_dim, dtype=np.float64)

        # Stats
        self._network_accepted = 0
        self._rule_preferred = 0
        self._rejected = 0

    @classmethod
    def from_config(cls, recognition_config=None, network_config=None):
        """Build from the ``recognition`` and ``network`` config sections.

        ``network.weights_path`` selects the weights file. Without it the
        network is built from ``layer_sizes``/``seed`` placeholder weights
        when ``use_placeholder`` is true, and skipped otherwise.
        """
        recognition_config = recognition_config or {}
        network_config = network_config or {}

        params = None
        weights_path = network_config.get("weights_path")
        if weights_path:
            params = NetworkParameters.load(weights_path)
        elif network_config.get("use_placeholder", False):
            layer_sizes = network_config.get("layer_sizes", [256, 128, 64, 32, 5])
            logger.warning("No network weights configured; using placeholder weights %s",
                           list(layer_sizes))
            params = NetworkParameters.random(layer_sizes, seed=network_config.get("seed", 0))

        return cls(network=params, thresholds=ThresholdConfig.from_dict(recognition_config))

    # ------------------------------------------------------------------
    # Properties / configuration
    # ------------------------------------------------------------------

    @property
    def version(self) -> str:
        return __version__

    @property
    def has_network(self) -> bool:
        return self._network is not None

    @property
    def thresholds(self) -> ThresholdConfig:
        return ThresholdConfig(
            detection_threshold=self._thresholds.detection_threshold,
            recognition_threshold=self._thresholds.recognition_threshold,
        )

    def set_detection_threshold(self, threshold):
        self._thresholds.detection_threshold = _clamp_threshold(
            "detection threshold", threshold, self._thresholds.detection_threshold)

    def set_recognition_threshold(self, threshold):
        self._thresholds.recognition_threshold = _clamp_threshold(
            "recognition threshold", threshold, self._thresholds.recognition_threshold)

    @property
    def stats(self):
        """Decision statistics."""
        total = self._network_accepted + self._rule_preferred + self._rejected
        return {
            "backend": "hybrid" if self.has_network else "rules",
            "network_accepted": self._network_accepted,
            "rule_preferred": self._rule_preferred,
            "rejected": self._rejected,
            "total": total,
        }

    def reset_stats(self):
        self._network_accepted = 0
        self._rule_preferred = 0
        self._rejected = 0

    # ------------------------------------------------------------------
    # Main classification API
    # ------------------------------------------------------------------

    @log_timing
    def recognize(self, landmarks, hand_confidence=None) -> RecognitionResult:
        """Recognize a gesture from 21 hand landmarks.

        Args:
            landmarks: 21 landmark records (see ``to_landmark_array``)
            hand_confidence: optional upstream tracking confidence; below
                             the detection threshold the frame is skipped.

        Returns:
            RecognitionResult; ``RecognitionResult.none()`` for unusable input
        """
        if hand_confidence is not None:
            try:
                hand_confidence = float(hand_confidence)
            except (TypeError, ValueError, OverflowError):
                hand_confidence = math.nan
            if not math.isfinite(hand_confidence):
                logger.debug("Unusable hand confidence; frame skipped")
                self._rejected += 1
                return RecognitionResult.none()
            if hand_confidence < self._thresholds.detection_threshold:
                logger.debug("Hand confidence %.3f < detection threshold %.3f",
                             hand_confidence, self._thresholds.detection_threshold)
                self._rejected += 1
                return RecognitionResult.none()

        points = to_landmark_array(landmarks)
        if points is None:
            self._rejected += 1
            return RecognitionResult.none()

        return self._decide(points)

    def recognize_flat(self, values, stride=None, hand_confidence=None) -> RecognitionResult:
        """Recognize from a flat buffer of 42 (x, y) or 63 (x, y, z) values."""
        points = from_flat(values, stride=stride)
        if points is None:
            self._rejected += 1
            return RecognitionResult.none()
        return self.recognize(points, hand_confidence=hand_confidence)

    def recognize_json(self, landmarks, hand_confidence=None) -> str:
        """``recognize()`` serialized as {"gesture", "confidence", "id"}."""
        return self.recognize(landmarks, hand_confidence=hand_confidence).to_json()

    def classify_network(self, features) -> RecognitionResult:
        """Softmax-confidence classification of a feature vector."""
        idx, confidence = self._network.classify(features)
        label = self._class_labels[idx]
        return RecognitionResult(label, confidence, source="network")

    def _decide(self, points) -> RecognitionResult:
        if self._network is None:
            self._rule_preferred += 1
            return self._rule_classifier.classify_points(points)

        self._feature_extractor.extract(points, out=self._features)
        network_result = self.classify_network(self._features)

        if network_result.confidence >= self._thresholds.recognition_threshold:
            self._network_accepted += 1
            return network_result

        rule_result = self._rule_classifier.classify_points(points)
        if network_result.confidence >= rule_result.confidence:
            self._network_accepted += 1
            return network_result

        logger.debug("Network %.3f below threshold %.3f; rules win with %s",
                     network_result.confidence,
                     self._thresholds.recognition_threshold, rule_result)
        self._rule_preferred += 1
        return rule_result
