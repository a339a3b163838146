"""
Tests for landmark validation and marshaling
"""

import math
from types import SimpleNamespace

import numpy as np
import pytest

from sign_recognition.core.landmarks import (
    HAND_VECTOR_DIM, from_flat, hand_vector, is_valid_hand, normalize_hand,
    to_landmark_array,
)
from sign_recognition.core.types import LandmarkIndex

from landmark_factory import make_hand, make_points


class TestToLandmarkArray:

    def test_landmark_tuples(self):
        points = to_landmark_array(make_hand(index=True))
        assert points.shape == (21, 3)
        np.testing.assert_array_equal(points, make_points(index=True))

    def test_attribute_objects(self):
        """MediaPipe-style objects with .x/.y/.z attributes."""
        hand = [SimpleNamespace(x=p[0], y=p[1], z=p[2]) for p in make_points()]
        np.testing.assert_array_equal(to_landmark_array(hand), make_points())

    def test_mappings_default_z(self):
        hand = [{"x": p[0], "y": p[1]} for p in make_points()]
        points = to_landmark_array(hand)
        assert np.all(points[:, 2] == 0.0)

    def test_pairs_and_triples(self):
        pairs = [[0.1 * i, 0.2] for i in range(21)]
        assert to_landmark_array(pairs)[5].tolist() == pytest.approx([0.5, 0.2, 0.0])
        assert is_valid_hand(make_points().tolist())

    def test_two_column_array(self):
        points = to_landmark_array(make_points()[:, :2])
        assert points.shape == (21, 3)
        assert np.all(points[:, 2] == 0.0)

    @pytest.mark.parametrize("landmarks", [
        None, [], 42, make_hand()[:20], make_hand() + make_hand()[:1],
        np.zeros((20, 3)), np.zeros((21, 4)), np.zeros(63),
    ])
    def test_rejects_wrong_shape(self, landmarks):
        assert to_landmark_array(landmarks) is None
        assert not is_valid_hand(landmarks)

    def test_rejects_unreadable_record(self):
        hand = make_points().tolist()
        hand[3] = [0.1, 0.2, 0.3, 0.4]
        assert to_landmark_array(hand) is None
        hand[3] = {"y": 0.1}
        assert to_landmark_array(hand) is None
        hand[3] = "abc"
        assert to_landmark_array(hand) is None

    @pytest.mark.parametrize("value", [math.nan, math.inf, -math.inf])
    def test_rejects_non_finite(self, value):
        points = make_points()
        points[10, 0] = value
        assert to_landmark_array(points) is None

    def test_rejects_out_of_range_integers(self):
        """Integers beyond float range (possible from JSON) are invalid input."""
        hand = make_points().tolist()
        hand[0][0] = 10 ** 400
        assert to_landmark_array(hand) is None

        records = [{"x": p[0], "y": p[1]} for p in make_points()]
        records[5]["y"] = -10 ** 400
        assert to_landmark_array(records) is None

        as_objects = np.array(hand, dtype=object)
        assert to_landmark_array(as_objects) is None
        assert from_flat([10 ** 400] * 63) is None


class TestFromFlat:

    def test_xyz_triples(self):
        points = make_points(ring=True)
        np.testing.assert_array_equal(from_flat(points.ravel()), points)

    def test_xy_pairs(self):
        points = make_points(ring=True)
        out = from_flat(list(points[:, :2].ravel()))
        np.testing.assert_array_equal(out[:, :2], points[:, :2])
        assert np.all(out[:, 2] == 0.0)

    @pytest.mark.parametrize("size", [0, 41, 43, 62, 64])
    def test_bad_length(self, size):
        assert from_flat(np.zeros(size)) is None

    def test_stride_must_agree(self):
        assert from_flat(np.zeros(63), stride=3) is not None
        assert from_flat(np.zeros(63), stride=2) is None
        assert from_flat(np.zeros(42), stride=3) is None

    def test_not_numeric(self):
        assert from_flat(["a"] * 63) is None


class TestNormalization:

    def test_wrist_at_origin_unit_palm(self):
        normalized = normalize_hand(make_points(True, True, True, True, True))
        np.testing.assert_allclose(normalized[LandmarkIndex.WRIST], [0.0, 0.0, 0.0])
        assert np.linalg.norm(normalized[LandmarkIndex.MIDDLE_MCP]) == pytest.approx(1.0)

    def test_scale_invariant(self):
        points = make_points(index=True)
        scaled = points * 2.5 + 0.1
        np.testing.assert_allclose(hand_vector(points), hand_vector(scaled), atol=1e-12)

    def test_degenerate_hand(self):
        np.testing.assert_array_equal(normalize_hand(np.zeros((21, 3))), np.zeros((21, 3)))

    def test_hand_vector_layout(self):
        points = make_points()
        vec = hand_vector(points)
        assert vec.shape == (HAND_VECTOR_DIM,)
        np.testing.assert_array_equal(vec[3:6], normalize_hand(points)[1])


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
