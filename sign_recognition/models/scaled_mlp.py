"""
ScaledMLPClassifier: scaler-fed fixed 3-layer MLP.

A second, independent pipeline next to the hybrid classifier:

    features -> FeatureScaler -> Linear+ReLU -> Linear+ReLU -> Linear -> argmax

It returns a bare class index (no confidence) and -1 for inputs of the
wrong width. Reference shape: 126 → 128 → 64 → 4, where the 126 inputs
hold a left-hand slot (0..62) and a right-hand slot (63..125).
"""

import logging

import numpy as np

from sign_recognition.core.landmarks import HAND_VECTOR_DIM, hand_vector, to_landmark_array
from sign_recognition.models.gesture_net import FeedForwardNetwork, NetworkParameters
from sign_recognition.models.scaler import FeatureScaler

logger = logging.getLogger(__name__)

MLP_LAYER_COUNT = 3
DEFAULT_LAYER_SIZES = (2 * HAND_VECTOR_DIM, 128, 64, 4)


class ScaledMLPClassifier:
    """Usage::

        mlp = ScaledMLPClassifier(NetworkParameters.load("mlp.npz"))
        mlp.set_scaler(mean, scale)
        class_idx = mlp.predict(features)
    """

    def __init__(self, parameters: NetworkParameters, scaler: FeatureScaler = None):
        if len(parameters) != MLP_LAYER_COUNT:
            raise ValueError("Scaled MLP needs exactly %d layers, got %d"
                             % (MLP_LAYER_COUNT, len(parameters)))
        self._network = FeedForwardNetwork(parameters)

        if scaler is None:
            scaler = FeatureScaler(self._network.input_dim)
        elif scaler.input_dim != self._network.input_dim:
            raise ValueError("Scaler width %d does not match network input width %d"
                             % (scaler.input_dim, self._network.input_dim))
        self._scaler = scaler
        self._scaled = np.zeros(self._network.input_dim, dtype=np.float64)

    @classmethod
    def from_config(cls, config: dict) -> "ScaledMLPClassifier":
        """Build from the ``mlp`` config section.

        Keys: ``weights_path`` (optional, placeholder weights otherwise),
        ``layer_sizes``, ``seed``, ``scaler_path`` (optional).
        """
        weights_path = config.get("weights_path")
        if weights_path:
            params = NetworkParameters.load(weights_path)
        else:
            layer_sizes = config.get("layer_sizes", DEFAULT_LAYER_SIZES)
            logger.warning("No MLP weights configured; using placeholder weights %s",
                           list(layer_sizes))
            params = NetworkParameters.random(layer_sizes, seed=config.get("seed", 0))

        scaler = None
        scaler_path = config.get("scaler_path")
        if scaler_path:
            scaler = FeatureScaler.load(params.input_dim, scaler_path)
        return cls(params, scaler)

    @property
    def input_dim(self) -> int:
        return self._network.input_dim

    @property
    def num_classes(self) -> int:
        return self._network.output_dim

    @property
    def scaler(self) -> FeatureScaler:
        return self._scaler

    def set_scaler(self, mean, scale) -> bool:
        """Replace scaler values; mismatched arrays are ignored."""
        return self._scaler.set(mean, scale)

    def predict(self, features) -> int:
        """Arg-max class index, or -1 if ``features`` has the wrong width."""
        if not self._network.accepts(features):
            logger.debug("predict(): expected %d features, got %s",
                         self.input_dim, np.shape(features))
            return -1
        try:
            self._scaler.transform(np.asarray(features, dtype=np.float64), out=self._scaled)
        except (TypeError, ValueError, OverflowError):
            return -1
        return self._network.predict(self._scaled)

    def predict_landmarks(self, landmarks, handedness: str = "Right") -> int:
        """Predict from one hand placed in its handedness slot.

        A 126-wide network gets the hand's 63 normalized values in the
        left (0..62) or right (63..125) slot, the other slot zero. A
        63-wide network gets the hand vector directly.
        """
        points = to_landmark_array(landmarks)
        if points is None:
            return -1

        vec = hand_vector(points)
        if self.input_dim == HAND_VECTOR_DIM:
            return self.predict(vec)
        if self.input_dim != 2 * HAND_VECTOR_DIM:
            logger.debug("predict_landmarks(): no hand layout for input width %d",
                         self.input_dim)
            return -1

        features = np.zeros(self.input_dim, dtype=np.float64)
        if str(handedness).lower() == "left":
            features[:HAND_VECTOR_DIM] = vec
        else:
            features[HAND_VECTOR_DIM:] = vec
        return self.predict(features)
