"""
Tests for the command-line entry point
"""

import json
import logging

import numpy as np
import pytest

import main
from sign_recognition.models.gesture_net import NetworkParameters
from sign_recognition.models.scaled_mlp import ScaledMLPClassifier
from sign_recognition.modules.utils.config import Config

from landmark_factory import constant_network, make_points


@pytest.fixture(autouse=True)
def isolated_runtime():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    Config.reset()
    yield
    Config.reset()
    root.handlers[:] = handlers
    root.setLevel(level)


def _write_json(tmp_path, name, data):
    path = tmp_path / name
    path.write_text(json.dumps(data))
    return str(path)


def _output_lines(capsys):
    return [json.loads(line) for line in capsys.readouterr().out.splitlines() if line]


class TestLoadFrames:

    def test_single_hand(self, tmp_path):
        path = _write_json(tmp_path, "hand.json", make_points().tolist())
        frames = main.load_frames(path)
        assert len(frames) == 1
        assert len(frames[0]["landmarks"]) == 21

    def test_list_of_hands(self, tmp_path):
        hand = make_points().tolist()
        frames = main.load_frames(_write_json(tmp_path, "hands.json", [hand, hand[:5]]))
        assert [len(f["landmarks"]) for f in frames] == [21, 5]

    def test_frame_objects(self, tmp_path):
        frame = {"landmarks": make_points().tolist(), "confidence": 0.9}
        assert main.load_frames(_write_json(tmp_path, "one.json", frame)) == [frame]

    def test_dict_records(self, tmp_path):
        hand = [{"x": p[0], "y": p[1], "z": p[2]} for p in make_points()]
        frames = main.load_frames(_write_json(tmp_path, "dicts.json", hand))
        assert frames == [{"landmarks": hand}]

    def test_twenty_one_frames_stay_separate(self, tmp_path):
        """A list of 21 frame objects is 21 frames, not one hand."""
        frame = {"landmarks": make_points(index=True).tolist()}
        frames = main.load_frames(_write_json(tmp_path, "frames.json", [frame] * 21))
        assert len(frames) == 21
        assert all(f == frame for f in frames)

    def test_numeric_vectors_are_features_in_mlp_mode(self, tmp_path):
        one = main.load_frames(_write_json(tmp_path, "one.json", [0.1] * 126), mode="mlp")
        assert one == [{"features": [0.1] * 126}]

        many = main.load_frames(_write_json(tmp_path, "many.json", [[0.1] * 126] * 3), mode="mlp")
        assert many == [{"features": [0.1] * 126}] * 3

    def test_numeric_vectors_are_flat_hands_in_hybrid_mode(self, tmp_path):
        flat = make_points().ravel().tolist()
        assert main.load_frames(_write_json(tmp_path, "flat.json", flat)) == [{"flat": flat}]

    def test_unrecognized_document(self, tmp_path):
        with pytest.raises(ValueError):
            main.load_frames(_write_json(tmp_path, "num.json", 5))


class TestMain:

    def test_hybrid_rules_only(self, tmp_path, capsys):
        frames = [
            {"landmarks": make_points(True, True, True, True, True).tolist()},
            {"landmarks": make_points(index=True).tolist(), "confidence": 0.2},
            make_points(index=True, middle=True).tolist(),
        ]
        path = _write_json(tmp_path, "frames.json", frames)

        assert main.main([path, "--config", str(tmp_path / "missing.yaml")]) == 0
        assert _output_lines(capsys) == [
            {"gesture": "Hello", "confidence": 0.8, "id": 1},
            {"gesture": "Unknown", "confidence": 0.0, "id": 0},
            {"gesture": "V", "confidence": 0.7, "id": 4},
        ]

    def test_hybrid_with_weights(self, tmp_path, capsys):
        weights = str(tmp_path / "net.npz")
        constant_network(3, 0.9).save(weights)
        path = _write_json(tmp_path, "hand.json", make_points().tolist())

        assert main.main([path, "--weights", weights]) == 0
        result = _output_lines(capsys)[0]
        assert (result["gesture"], result["id"]) == ("Yes", 3)
        assert result["confidence"] == pytest.approx(0.9)

    def test_recognition_threshold_override(self, tmp_path, capsys):
        weights = str(tmp_path / "net.npz")
        constant_network(3, 0.6).save(weights)
        path = _write_json(tmp_path, "hand.json", make_points(True, True, True, True, True).tolist())

        assert main.main([path, "--weights", weights, "--recognition-threshold", "0.5"]) == 0
        assert _output_lines(capsys)[0]["gesture"] == "Yes"

        assert main.main([path, "--weights", weights]) == 0
        assert _output_lines(capsys)[0]["gesture"] == "Hello"

    def test_mlp_mode(self, tmp_path, capsys):
        frames = [
            {"features": [0.0] * 126},
            {"features": [0.0] * 125},
            {"landmarks": make_points().tolist(), "handedness": "Left"},
            {"landmarks": make_points().tolist()[:20]},
        ]
        path = _write_json(tmp_path, "frames.json", frames)

        assert main.main([path, "--mode", "mlp", "--log-level", "WARNING"]) == 0
        classes = [line["class"] for line in _output_lines(capsys)]
        assert 0 <= classes[0] < 4
        assert classes[1] == -1
        assert 0 <= classes[2] < 4
        assert classes[3] == -1

    def test_twenty_one_frames_give_twenty_one_results(self, tmp_path, capsys):
        frame = {"landmarks": make_points(index=True).tolist()}
        path = _write_json(tmp_path, "frames.json", [frame] * 21)

        assert main.main([path, "--config", str(tmp_path / "missing.yaml")]) == 0
        lines = _output_lines(capsys)
        assert len(lines) == 21
        assert all(line == {"gesture": "Yes", "confidence": 0.85, "id": 3} for line in lines)

    def test_flat_buffers_in_hybrid_mode(self, tmp_path, capsys):
        points = make_points(True, True, True, True, True)
        path = _write_json(tmp_path, "flat.json",
                           [points.ravel().tolist(), points[:, :2].ravel().tolist(), [0.5] * 41])

        assert main.main([path, "--config", str(tmp_path / "missing.yaml")]) == 0
        assert [line["id"] for line in _output_lines(capsys)] == [1, 1, 0]

    def test_mlp_mode_plain_feature_vectors(self, tmp_path, capsys):
        weights = str(tmp_path / "mlp.npz")
        params = NetworkParameters.random([126, 16, 8, 4], seed=5)
        params.save(weights)
        rng = np.random.default_rng(1)
        vectors = [rng.normal(size=126).tolist() for _ in range(3)]
        path = _write_json(tmp_path, "features.json", vectors)

        assert main.main([path, "--mode", "mlp", "--weights", weights]) == 0
        expected = [ScaledMLPClassifier(params).predict(v) for v in vectors]
        assert [line["class"] for line in _output_lines(capsys)] == expected

        single = _write_json(tmp_path, "single.json", vectors[0])
        assert main.main([single, "--mode", "mlp", "--weights", weights]) == 0
        assert _output_lines(capsys) == [{"class": expected[0]}]

    def test_unreadable_input(self, tmp_path, capsys):
        assert main.main([str(tmp_path / "missing.json")]) == 1

        bad = tmp_path / "bad.json"
        bad.write_text("{not json")
        assert main.main([str(bad)]) == 1
        assert capsys.readouterr().out == ""


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
