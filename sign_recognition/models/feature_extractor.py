"""
Feature extraction pipeline: 21-point hand landmarks -> 256-dim vector.

Feature layout (256 dimensions):
    [0:210]    Pairwise distances between all landmarks (i < j, lexicographic)
    [210:230]  Wrist-to-landmark distances (landmarks 1..20)
    [230:235]  PIP joint angles in degrees (thumb, index, middle, ring, pinky)
    [235:237]  Palm reference point (mean x, mean y of landmarks 0-4)
    [237:256]  Local curvature angles at landmarks 1..19, in degrees

The whole vector is then z-scored against its own mean and standard
deviation, unless the deviation is below 1e-6.
"""

import numpy as np

from sign_recognition.core.types import FINGER_JOINTS, FINGER_NAMES, LANDMARK_COUNT, LandmarkIndex

NUM_PAIRS = LANDMARK_COUNT * (LANDMARK_COUNT - 1) // 2     # 210
NUM_WRIST = LANDMARK_COUNT - 1                             # 20
NUM_ANGLES = len(FINGER_NAMES)                             # 5
NUM_CENTROID = 2
NUM_CURVATURE = LANDMARK_COUNT - 2                         # 19

FEATURE_DIM = NUM_PAIRS + NUM_WRIST + NUM_ANGLES + NUM_CENTROID + NUM_CURVATURE

_PAIRS_END = NUM_PAIRS
_WRIST_END = _PAIRS_END + NUM_WRIST
_ANGLES_END = _WRIST_END + NUM_ANGLES
_CENTROID_END = _ANGLES_END + NUM_CENTROID

_PAIR_I, _PAIR_J = np.triu_indices(LANDMARK_COUNT, k=1)

# (vertex, a, b) triplets: angle at vertex between vertex->a and vertex->b
_FINGER_VERTEX = np.array([FINGER_JOINTS[n][1] for n in FINGER_NAMES])
_FINGER_A = np.array([FINGER_JOINTS[n][3] for n in FINGER_NAMES])
_FINGER_B = np.array([FINGER_JOINTS[n][0] for n in FINGER_NAMES])

_CURVE_VERTEX = np.arange(1, LANDMARK_COUNT - 1)
_CURVE_A = _CURVE_VERTEX - 1
_CURVE_B = _CURVE_VERTEX + 1

_PALM_POINTS = slice(LandmarkIndex.WRIST, LandmarkIndex.THUMB_TIP + 1)

NORMALIZE_MIN_STD = 1e-6


def _angles_deg(points, vertex, a, b):
    """Vectorised angle at ``vertex`` between vertex->a and vertex->b.

    Zero-length vectors give an angle of 0 instead of NaN.
    """
    va = points[a] - points[vertex]
    vb = points[b] - points[vertex]
    norms = np.linalg.norm(va, axis=1) * np.linalg.norm(vb, axis=1)
    dots = np.einsum("ij,ij->i", va, vb)
    valid = norms > 0.0
    cos = np.zeros_like(dots)
    np.divide(dots, norms, out=cos, where=valid)
    angles = np.degrees(np.arccos(np.clip(cos, -1.0, 1.0)))
    angles[~valid] = 0.0
    return angles


def joint_angle(a, b, c) -> float:
    """Angle at b in the chain a-b-c, in degrees (0 if degenerate)."""
    pts = np.array([a, b, c], dtype=np.float64)
    return float(_angles_deg(pts, np.array([1]), np.array([0]), np.array([2]))[0])


class GestureFeatureExtractor:
    """Converts validated hand landmarks to a fixed-size feature vector.

    Distances and angles are used so the vector does not depend on where
    the hand sits in the frame; the final z-score removes overall scale.
    """

    def __init__(self):
        self._feature_dim = FEATURE_DIM

    @property
    def feature_dim(self):
        return self._feature_dim

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def extract(self, landmarks, out=None):
        """Convert (21, 3) landmarks -> (256,) feature vector.

        Args:
            landmarks: np.ndarray of shape (21, 3) (a (21, 2) array is
                       accepted with z taken as 0).
            out: optional float64 buffer of shape (256,) to write into,
                 so per-frame callers can avoid reallocating.

        Returns:
            np.ndarray of shape (256,), dtype float64 (``out`` if given)
        """
        points = np.asarray(landmarks, dtype=np.float64)
        if points.shape == (LANDMARK_COUNT, 2):
            points = np.hstack([points, np.zeros((LANDMARK_COUNT, 1))])
        if points.shape != (LANDMARK_COUNT, 3):
            raise ValueError("Expected (21, 3) landmarks, got %s" % str(points.shape))

        if out is None:
            features = np.empty(self._feature_dim, dtype=np.float64)
        else:
            if out.shape != (self._feature_dim,) or out.dtype != np.float64:
                raise ValueError("Output buffer must be float64 of shape (%d,)"
                                 % self._feature_dim)
            features = out

        # --- Pairwise distances (210 dims) ----------------------------
        features[:_PAIRS_END] = np.linalg.norm(points[_PAIR_I] - points[_PAIR_J], axis=1)

        # --- Wrist distances (20 dims) --------------------------------
        features[_PAIRS_END:_WRIST_END] = np.linalg.norm(
            points[1:] - points[LandmarkIndex.WRIST], axis=1
        )

        # --- PIP angles (5 dims) --------------------------------------
        features[_WRIST_END:_ANGLES_END] = _angles_deg(
            points, _FINGER_VERTEX, _FINGER_A, _FINGER_B
        )

        # --- Palm reference point (2 dims) ----------------------------
        features[_ANGLES_END:_CENTROID_END] = points[_PALM_POINTS, :2].mean(axis=0)

        # --- Curvature (19 dims) --------------------------------------
        features[_CENTROID_END:] = _angles_deg(points, _CURVE_VERTEX, _CURVE_A, _CURVE_B)

        self.normalize(features)
        return features

    def extract_batch(self, landmarks_batch):
        """Extraction for a batch of samples.

        Args:
            landmarks_batch: np.ndarray of shape (N, 21, 3)

        Returns:
            np.ndarray of shape (N, 256)
        """
        landmarks_batch = np.asarray(landmarks_batch, dtype=np.float64)
        out = np.zeros((landmarks_batch.shape[0], self._feature_dim), dtype=np.float64)
        for i in range(landmarks_batch.shape[0]):
            self.extract(landmarks_batch[i], out=out[i])
        return out

    @staticmethod
    def normalize(features):
        """Z-score ``features`` in place; no-op when std < 1e-6."""
        std = float(features.std())
        if std < NORMALIZE_MIN_STD:
            return features
        features -= features.mean()
        features /= std
        return features
