"""
Synthetic hand landmarks for tests.

Builds a right hand facing the camera in normalized image coordinates
(y grows downward), with each finger either extended or curled so the
rule classifier's predicates hold exactly.
"""

import itertools
import math

import numpy as np

from sign_recognition.core.types import FINGER_NAMES, Landmark
from sign_recognition.models.gesture_net import NetworkParameters

WRIST = (0.50, 0.80, 0.0)

# Thumb chain CMC, MCP, IP and the two tip positions
_THUMB_BASE = [(0.44, 0.75, -0.01), (0.38, 0.70, -0.02), (0.33, 0.66, -0.03)]
_THUMB_TIP_EXTENDED = (0.27, 0.62, -0.04)
_THUMB_TIP_CURLED = (0.40, 0.66, -0.04)

# Finger x position and MCP height
_FINGER_COLUMNS = {
    "index": (0.42, 0.60),
    "middle": (0.50, 0.58),
    "ring": (0.58, 0.60),
    "pinky": (0.65, 0.64),
}

ALL_STATE_COMBINATIONS = list(itertools.product((False, True), repeat=5))


def _finger(x, mcp_y, extended):
    if extended:
        ys = (mcp_y, mcp_y - 0.10, mcp_y - 0.17, mcp_y - 0.24)
        xs = (x, x - 0.005, x - 0.01, x - 0.012)
    else:
        ys = (mcp_y, mcp_y - 0.07, mcp_y - 0.03, mcp_y + 0.02)
        xs = (x, x + 0.01, x + 0.015, x + 0.01)
    return [(px, py, -0.02 * i) for i, (px, py) in enumerate(zip(xs, ys))]


def make_points(thumb=False, index=False, middle=False, ring=False, pinky=False):
    """(21, 3) float array for the given finger states."""
    points = [WRIST]
    points.extend(_THUMB_BASE)
    points.append(_THUMB_TIP_EXTENDED if thumb else _THUMB_TIP_CURLED)
    states = {"index": index, "middle": middle, "ring": ring, "pinky": pinky}
    for name in ("index", "middle", "ring", "pinky"):
        x, mcp_y = _FINGER_COLUMNS[name]
        points.extend(_finger(x, mcp_y, states[name]))
    return np.array(points, dtype=np.float64)


def make_hand(thumb=False, index=False, middle=False, ring=False, pinky=False):
    """List of 21 Landmark tuples for the given finger states."""
    points = make_points(thumb, index, middle, ring, pinky)
    return [Landmark(*p) for p in points]


def states_dict(pattern):
    return dict(zip(FINGER_NAMES, pattern))


def constant_network(class_index, confidence, input_dim=256, num_classes=5,
                     hidden=8, seed=1):
    """Network whose softmax output ignores the input.

    The output layer has zero weights, so the logits equal its bias:
    ``class_index`` gets log(confidence * (n - 1) / (1 - confidence)),
    every other class 0, which makes its softmax probability
    ``confidence``.
    """
    rng = np.random.default_rng(seed)
    bias = np.zeros(num_classes)
    bias[class_index] = math.log(confidence * (num_classes - 1) / (1.0 - confidence))
    return NetworkParameters([
        (rng.normal(size=(input_dim, hidden)), np.zeros(hidden)),
        (np.zeros((hidden, num_classes)), bias),
    ])
