"""
Per-feature affine normalization applied before network inference.

    x[i] = (feature[i] - mean[i]) / scale[i]

Values usually come from a StandardScaler fitted offline and exported
as JSON ``{"mean": [...], "scale": [...]}``.
"""

import json
import logging
import os

import numpy as np

logger = logging.getLogger(__name__)


class FeatureScaler:
    """Holds (mean, scale) for a fixed feature width.

    Starts as the identity transform. ``set()`` only accepts arrays of
    the configured width; anything else is ignored and the previous
    values stay in place.
    """

    def __init__(self, input_dim: int, mean=None, scale=None):
        self._input_dim = int(input_dim)
        self._mean = np.zeros(self._input_dim, dtype=np.float64)
        self._scale = np.ones(self._input_dim, dtype=np.float64)
        if mean is not None or scale is not None:
            self.set(mean, scale)

    @property
    def input_dim(self) -> int:
        return self._input_dim

    @property
    def mean(self) -> np.ndarray:
        return self._mean.copy()

    @property
    def scale(self) -> np.ndarray:
        return self._scale.copy()

    def set(self, mean, scale) -> bool:
        """Replace the scaler values.

        Returns:
            True if applied, False if the arrays were rejected.
        """
        try:
            new_mean = np.asarray(mean, dtype=np.float64).ravel()
            new_scale = np.asarray(scale, dtype=np.float64).ravel()
        except (TypeError, ValueError, OverflowError):
            logger.warning("Scaler arrays are not numeric; keeping previous values")
            return False

        if new_mean.size != self._input_dim or new_scale.size != self._input_dim:
            logger.warning(
                "Scaler length mismatch (mean=%d, scale=%d, expected=%d); keeping previous values",
                new_mean.size, new_scale.size, self._input_dim,
            )
            return False
        if not (np.all(np.isfinite(new_mean)) and np.all(np.isfinite(new_scale))):
            logger.warning("Scaler arrays contain non-finite values; keeping previous values")
            return False

        # Constant features have scale 0; divide by 1 like StandardScaler does
        new_scale = np.where(new_scale == 0.0, 1.0, new_scale)

        self._mean = new_mean.copy()
        self._scale = new_scale
        logger.debug("Scaler updated (%d features)", self._input_dim)
        return True

    def transform(self, features, out=None):
        """Apply (x - mean) / scale; ``out`` may be a reusable buffer."""
        if out is None:
            out = np.empty(self._input_dim, dtype=np.float64)
        np.subtract(features, self._mean, out=out)
        np.divide(out, self._scale, out=out)
        return out

    def to_dict(self) -> dict:
        return {"mean": self._mean.tolist(), "scale": self._scale.tolist()}

    @classmethod
    def from_dict(cls, input_dim: int, data: dict) -> "FeatureScaler":
        return cls(input_dim, mean=data.get("mean"), scale=data.get("scale"))

    @classmethod
    def load(cls, input_dim: int, path) -> "FeatureScaler":
        """Load scaler values from a JSON file."""
        if not os.path.isfile(path):
            raise FileNotFoundError("Scaler file not found: %s" % path)
        with open(path, "r") as f:
            data = json.load(f)
        logger.info("Loaded scaler from %s", path)
        return cls.from_dict(input_dim, data)
