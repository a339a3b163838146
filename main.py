#!/usr/bin/env python3
"""
Sign Recognition Core - command-line entry point.

Reads hand landmarks from a JSON file and prints one JSON result per hand.
The input may be a single hand (a list of 21 {x, y, z} records or
[x, y, z] triples), a list of hands, or a list of frame objects
{"landmarks": [...], "confidence": 0.9, "handedness": "Right"}.
A bare list of numbers is a flat landmark buffer (42 or 63 values), or
a feature vector in mlp mode; a list of such lists is one per frame.

Usage:
    python main.py hands.json                         # Hybrid recognition
    python main.py hands.json --weights net.npz       # Explicit weights
    python main.py hands.json --recognition-threshold 0.8
    python main.py features.json --mode mlp           # Scaler-fed MLP indices
"""

import sys
import json
import time
import argparse
import logging

from sign_recognition import __version__
from sign_recognition.core.types import LANDMARK_COUNT
from sign_recognition.models.hybrid_classifier import HybridClassifier
from sign_recognition.models.scaled_mlp import ScaledMLPClassifier
from sign_recognition.modules.utils.config import Config
from sign_recognition.modules.utils.logger import setup_logging, RecognitionLogger

logger = logging.getLogger(__name__)


_FRAME_KEYS = ("landmarks", "features", "flat")


def _is_number(v):
    return isinstance(v, (int, float)) and not isinstance(v, bool)


def _is_vector(item):
    """A flat list of numbers: a feature vector or a flat landmark buffer."""
    return isinstance(item, list) and bool(item) and all(_is_number(v) for v in item)


def _is_record(p):
    """One landmark: {"x", "y"[, "z"]} or [x, y] / [x, y, z]."""
    if isinstance(p, dict):
        return "x" in p and "y" in p
    return isinstance(p, list) and len(p) in (2, 3) and all(_is_number(v) for v in p)


def _is_hand(item):
    """A hand is a list of 21 landmark records."""
    return isinstance(item, list) and len(item) == LANDMARK_COUNT and all(
        _is_record(p) for p in item
    )


def _is_frame(item):
    return isinstance(item, dict) and any(key in item for key in _FRAME_KEYS)


def _to_frame(item, mode):
    if isinstance(item, dict):
        return item
    if _is_vector(item):
        return {"features": item} if mode == "mlp" else {"flat": item}
    return {"landmarks": item}


def load_frames(path, mode="hybrid"):
    """Load the input file as a list of frame dicts.

    Bare numeric vectors become ``features`` in mlp mode and flat
    landmark buffers (42 or 63 values) in hybrid mode.
    """
    with open(path, "r") as f:
        data = json.load(f)

    if _is_frame(data) or _is_hand(data) or _is_vector(data):
        data = [data]
    elif not isinstance(data, list):
        raise ValueError("expected a hand, a frame or a list of them, got %s"
                         % type(data).__name__)
    return [_to_frame(item, mode) for item in data]


def run_hybrid(config, frames, recognition_threshold=None):
    classifier = HybridClassifier.from_config(config.recognition, config.network)
    if recognition_threshold is not None:
        classifier.set_recognition_threshold(recognition_threshold)

    events = RecognitionLogger()
    for frame in frames:
        start = time.perf_counter()
        if "flat" in frame:
            result = classifier.recognize_flat(frame["flat"],
                                               hand_confidence=frame.get("confidence"))
        else:
            result = classifier.recognize(frame.get("landmarks"),
                                          hand_confidence=frame.get("confidence"))
        events.log_result(result, latency_ms=(time.perf_counter() - start) * 1000)
        print(result.to_json())

    logger.info("Stats: %s", classifier.stats)


def run_mlp(config, frames):
    mlp = ScaledMLPClassifier.from_config(config.mlp)

    for frame in frames:
        if "features" in frame:
            idx = mlp.predict(frame["features"])
        else:
            idx = mlp.predict_landmarks(frame.get("landmarks"),
                                        handedness=frame.get("handedness", "Right"))
        print(json.dumps({"class": idx}))


def parse_args(argv=None):
    parser = argparse.ArgumentParser(
        description="Sign Recognition Core - single-frame gesture recognition"
    )
    parser.add_argument(
        "input", type=str,
        help="JSON file with landmarks (or features in mlp mode)"
    )
    parser.add_argument(
        "--mode", choices=["hybrid", "mlp"],
        default="hybrid", help="Classifier to run"
    )
    parser.add_argument(
        "--config", type=str, default=None,
        help="Path to config.yaml"
    )
    parser.add_argument(
        "--weights", type=str, default=None,
        help="Network weights (.npz or .pth), overrides the config"
    )
    parser.add_argument(
        "--recognition-threshold", type=float, default=None,
        help="Override recognition.recognition_threshold"
    )
    parser.add_argument(
        "--log-level", type=str, default=None,
        help="Override logging.level"
    )
    return parser.parse_args(argv)


def main(argv=None):
    args = parse_args(argv)

    # Load configuration, then apply command-line overrides
    config = Config()
    config.load(config_path=args.config)
    if args.weights:
        config.set("mlp.weights_path" if args.mode == "mlp" else "network.weights_path",
                   args.weights)
    if args.log_level:
        config.set("logging.level", args.log_level)

    # Setup logging
    log_cfg = config.logging
    setup_logging(
        level=log_cfg.get("level", "INFO"),
        log_file=log_cfg.get("file"),
        max_size_mb=log_cfg.get("max_size_mb", 10),
        backup_count=log_cfg.get("backup_count", 3),
    )
    logger.info("Sign Recognition Core v%s (%s mode)", __version__, args.mode)

    try:
        frames = load_frames(args.input, mode=args.mode)
    except (OSError, ValueError) as e:
        logger.error("Cannot read %s: %s", args.input, e)
        return 1

    if args.mode == "mlp":
        run_mlp(config, frames)
    else:
        run_hybrid(config, frames, recognition_threshold=args.recognition_threshold)
    return 0


if __name__ == "__main__":
    sys.exit(main())
