"""
Landmark validation and marshaling.

Everything that crosses into the classifiers passes through here and
comes out as a (21, 3) float64 array, or as ``None`` when the input is
not a usable hand. ``None`` is a normal outcome under bad upstream
tracking and maps to the "no gesture" result, never to an exception.
"""

import logging
from collections.abc import Mapping
from typing import Optional

import numpy as np

from sign_recognition.core.types import LANDMARK_COUNT, LandmarkIndex

logger = logging.getLogger(__name__)

# Flat buffer lengths accepted by from_flat(): x/y pairs or x/y/z triples
_FLAT_STRIDES = {LANDMARK_COUNT * 2: 2, LANDMARK_COUNT * 3: 3}

HAND_VECTOR_DIM = LANDMARK_COUNT * 3


def _point_to_xyz(point):
    """Read one landmark record as an (x, y, z) tuple of floats."""
    if isinstance(point, Mapping):
        return float(point["x"]), float(point["y"]), float(point.get("z", 0.0))
    if hasattr(point, "x") and hasattr(point, "y"):
        return float(point.x), float(point.y), float(getattr(point, "z", 0.0))
    values = list(point)
    if len(values) == 2:
        return float(values[0]), float(values[1]), 0.0
    if len(values) == 3:
        return float(values[0]), float(values[1]), float(values[2])
    raise ValueError("landmark must have 2 or 3 coordinates, got %d" % len(values))


def to_landmark_array(landmarks) -> Optional[np.ndarray]:
    """Validate a hand and convert it to a (21, 3) float64 array.

    Accepts a sequence of ``Landmark`` tuples, objects with ``.x/.y/.z``
    attributes (e.g. MediaPipe ``NormalizedLandmark``), mappings with
    ``"x"/"y"/"z"`` keys, plain coordinate sequences, or an (N, 2|3)
    array.

    Returns:
        np.ndarray of shape (21, 3), or None if the input does not hold
        exactly 21 readable, finite points.
    """
    if landmarks is None:
        return None

    if isinstance(landmarks, np.ndarray):
        if landmarks.ndim != 2 or landmarks.shape[0] != LANDMARK_COUNT \
                or landmarks.shape[1] not in (2, 3):
            logger.debug("Rejected landmark array of shape %s", landmarks.shape)
            return None
        points = np.zeros((LANDMARK_COUNT, 3), dtype=np.float64)
        try:
            points[:, :landmarks.shape[1]] = landmarks
        except (TypeError, ValueError, OverflowError):
            return None
    else:
        try:
            count = len(landmarks)
        except TypeError:
            return None
        if count != LANDMARK_COUNT:
            logger.debug("Rejected hand with %d landmarks", count)
            return None
        try:
            points = np.array([_point_to_xyz(p) for p in landmarks], dtype=np.float64)
        except (TypeError, ValueError, KeyError, OverflowError) as e:
            logger.debug("Unreadable landmark record: %s", e)
            return None

    if not np.all(np.isfinite(points)):
        logger.debug("Rejected hand with non-finite coordinates")
        return None
    return points


def is_valid_hand(landmarks) -> bool:
    return to_landmark_array(landmarks) is not None


def from_flat(values, stride: Optional[int] = None) -> Optional[np.ndarray]:
    """Unpack a flat coordinate buffer into a (21, 3) array.

    The buffer holds either 42 values (x, y pairs, z taken as 0) or 63
    values (x, y, z triples). When ``stride`` is given it must agree
    with the buffer length.
    """
    try:
        flat = np.asarray(values, dtype=np.float64).ravel()
    except (TypeError, ValueError, OverflowError):
        return None

    expected = _FLAT_STRIDES.get(flat.size)
    if expected is None or (stride is not None and stride != expected):
        logger.debug("Rejected flat landmark buffer of %d values (stride=%s)",
                     flat.size, stride)
        return None

    return to_landmark_array(flat.reshape(LANDMARK_COUNT, expected))


def normalize_hand(points: np.ndarray) -> np.ndarray:
    """Translate to the wrist and scale by the wrist -> middle MCP length.

    Args:
        points: validated (21, 3) array

    Returns:
        np.ndarray of shape (21, 3); the wrist is at the origin.
    """
    centred = points - points[LandmarkIndex.WRIST]
    scale = float(np.linalg.norm(centred[LandmarkIndex.MIDDLE_MCP]))
    if scale == 0.0:
        scale = 1.0
    return centred / scale


def hand_vector(points: np.ndarray) -> np.ndarray:
    """Flattened normalized hand: 63 values ordered x0, y0, z0, x1, ..."""
    return normalize_hand(points).ravel()
