"""
Generic feed-forward inference engine.

Architecture is defined by the supplied weights, not by code:
    hidden layers : y = ReLU(x · W + b)
    output layer  : y = x · W + b   (raw logits)

Observed configurations include 256→128→64→32→5, 1260→1024→512→256→128→5
and 126→128→64→4. Each weight matrix is stored as (input_width,
output_width); adjacent layers must chain.

Weights are an external artifact: they can be loaded from a ``.npz``
archive, from a PyTorch state dict / ``.pth`` checkpoint (Linear layers,
with BatchNorm1d folded in), or generated as deterministic placeholders.
"""

import os
import logging
from collections import OrderedDict
from typing import NamedTuple, Sequence, Tuple

import numpy as np

logger = logging.getLogger(__name__)

try:
    import torch
    TORCH_AVAILABLE = True
except ImportError:
    TORCH_AVAILABLE = False
    logger.debug("PyTorch not available; .pth checkpoints cannot be loaded")


def _check_torch():
    if not TORCH_AVAILABLE:
        raise RuntimeError(
            "PyTorch is required to load .pth checkpoints. "
            "Install the 'torch' extra or convert the weights to .npz."
        )


def _to_numpy(value):
    """Tensor or array-like -> float64 ndarray."""
    if hasattr(value, "detach"):
        value = value.detach().cpu().numpy()
    return np.array(value, dtype=np.float64)


def softmax(logits):
    """Numerically stable softmax over a 1-D vector."""
    logits = np.asarray(logits, dtype=np.float64)
    shifted = np.exp(logits - logits.max())
    return shifted / shifted.sum()


# =============================================================================
# Parameters
# =============================================================================

class LayerParameters(NamedTuple):
    """One affine layer: weights (input_width, output_width), bias (output_width,)."""
    weights: np.ndarray
    bias: np.ndarray

    @property
    def input_dim(self) -> int:
        return int(self.weights.shape[0])

    @property
    def output_dim(self) -> int:
        return int(self.weights.shape[1])


class NetworkParameters:
    """Immutable, ordered stack of layer weights.

    Arrays are copied on construction and marked read-only, so one
    instance can be shared by any number of classifiers.
    """

    __slots__ = ("_layers",)

    def __init__(self, layers: Sequence[Tuple[np.ndarray, np.ndarray]]):
        if not layers:
            raise ValueError("Network needs at least one layer")

        frozen = []
        for idx, (weights, bias) in enumerate(layers):
            w = _to_numpy(weights)
            b = _to_numpy(bias)
            if w.ndim != 2:
                raise ValueError("Layer %d: weights must be 2-D, got shape %s"
                                 % (idx, w.shape))
            if b.shape != (w.shape[1],):
                raise ValueError("Layer %d: bias shape %s does not match output width %d"
                                 % (idx, b.shape, w.shape[1]))
            if frozen and frozen[-1].output_dim != w.shape[0]:
                raise ValueError("Layer %d: input width %d does not match previous output width %d"
                                 % (idx, w.shape[0], frozen[-1].output_dim))
            if not (np.all(np.isfinite(w)) and np.all(np.isfinite(b))):
                raise ValueError("Layer %d: weights contain non-finite values" % idx)
            w = np.ascontiguousarray(w)
            w.flags.writeable = False
            b.flags.writeable = False
            frozen.append(LayerParameters(w, b))

        self._layers = tuple(frozen)

    # ------------------------------------------------------------------
    # Construction helpers
    # ------------------------------------------------------------------

    @classmethod
    def from_arrays(cls, layers) -> "NetworkParameters":
        return cls(layers)

    @classmethod
    def random(cls, layer_sizes: Sequence[int], seed: int = 0) -> "NetworkParameters":
        """Deterministic placeholder weights (He-normal, zero bias).

        These carry no learned meaning; use them for wiring and tests.
        """
        if len(layer_sizes) < 2:
            raise ValueError("layer_sizes needs an input and an output width")
        rng = np.random.default_rng(seed)
        layers = []
        for fan_in, fan_out in zip(layer_sizes[:-1], layer_sizes[1:]):
            std = np.sqrt(2.0 / fan_in)
            layers.append((rng.normal(0.0, std, size=(fan_in, fan_out)),
                           np.zeros(fan_out)))
        return cls(layers)

    @classmethod
    def from_state_dict(cls, state_dict) -> "NetworkParameters":
        """Build from an ordered PyTorch-style state dict.

        Every module with a 2-D ``weight`` is a Linear layer (stored as
        (out, in) and transposed here). A BatchNorm1d module following a
        Linear layer is folded into it using its running statistics.
        Other entries (dropout has none, ``num_batches_tracked``) are
        ignored.
        """
        modules = OrderedDict()
        for key, value in state_dict.items():
            prefix, _, field = key.rpartition(".")
            modules.setdefault(prefix, {})[field] = value

        layers = []
        for prefix, fields in modules.items():
            if "running_mean" in fields:
                if not layers:
                    raise ValueError("BatchNorm '%s' has no preceding Linear layer" % prefix)
                w, b = layers[-1]
                mean = _to_numpy(fields["running_mean"])
                var = _to_numpy(fields["running_var"])
                gamma = _to_numpy(fields["weight"]) if "weight" in fields else np.ones_like(mean)
                beta = _to_numpy(fields["bias"]) if "bias" in fields else np.zeros_like(mean)
                factor = gamma / np.sqrt(var + 1e-5)
                layers[-1] = (w * factor, (b - mean) * factor + beta)
            elif "weight" in fields:
                weight = _to_numpy(fields["weight"])
                if weight.ndim != 2:
                    continue
                bias = _to_numpy(fields["bias"]) if "bias" in fields else np.zeros(weight.shape[0])
                layers.append((weight.T, bias))

        if not layers:
            raise ValueError("State dict contains no Linear layers")
        logger.debug("Parsed %d layers from state dict", len(layers))
        return cls(layers)

    @classmethod
    def load_checkpoint(cls, path) -> "NetworkParameters":
        """Load a PyTorch checkpoint (.pth).

        Supports both a full checkpoint dict with ``model_state_dict``
        and a raw state dict.
        """
        _check_torch()
        if not os.path.isfile(path):
            raise FileNotFoundError("Checkpoint not found: %s" % path)
        checkpoint = torch.load(path, map_location="cpu")
        if isinstance(checkpoint, dict) and "model_state_dict" in checkpoint:
            checkpoint = checkpoint["model_state_dict"]
        params = cls.from_state_dict(checkpoint)
        logger.info("Loaded network %s from %s", params.layer_sizes, path)
        return params

    @classmethod
    def load(cls, path) -> "NetworkParameters":
        """Load weights from ``.npz`` (W0, b0, W1, b1, ...) or ``.pth``."""
        ext = os.path.splitext(str(path))[1].lower()
        if ext in (".pth", ".pt"):
            return cls.load_checkpoint(path)
        if not os.path.isfile(path):
            raise FileNotFoundError("Weights not found: %s" % path)

        with np.load(path) as archive:
            layers = []
            idx = 0
            while "W%d" % idx in archive:
                layers.append((archive["W%d" % idx], archive["b%d" % idx]))
                idx += 1
        if not layers:
            raise ValueError("No W0/b0 arrays found in %s" % path)
        params = cls(layers)
        logger.info("Loaded network %s from %s", params.layer_sizes, path)
        return params

    def save(self, path):
        """Write the weights as an ``.npz`` archive readable by load()."""
        arrays = {}
        for idx, layer in enumerate(self._layers):
            arrays["W%d" % idx] = layer.weights
            arrays["b%d" % idx] = layer.bias
        directory = os.path.dirname(str(path))
        if directory:
            os.makedirs(directory, exist_ok=True)
        np.savez(path, **arrays)
        logger.info("Saved network %s to %s", self.layer_sizes, path)

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    @property
    def layers(self) -> Tuple[LayerParameters, ...]:
        return self._layers

    @property
    def input_dim(self) -> int:
        return self._layers[0].input_dim

    @property
    def output_dim(self) -> int:
        return self._layers[-1].output_dim

    @property
    def layer_sizes(self) -> Tuple[int, ...]:
        return (self.input_dim,) + tuple(layer.output_dim for layer in self._layers)

    def __len__(self):
        return len(self._layers)

    def __repr__(self):
        return "NetworkParameters(%s)" % "→".join(str(s) for s in self.layer_sizes)


# =============================================================================
# Inference engine
# =============================================================================

class FeedForwardNetwork:
    """Runs a NetworkParameters stack on single feature vectors.

    Activation buffers are allocated once per instance and reused on
    every call, so an instance must not be shared across threads.
    """

    def __init__(self, parameters: NetworkParameters):
        if not isinstance(parameters, NetworkParameters):
            parameters = NetworkParameters(parameters)
        self._params = parameters
        self._activations = [np.zeros(layer.output_dim, dtype=np.float64)
                             for layer in parameters.layers]
        self._input = np.zeros(parameters.input_dim, dtype=np.float64)

    @property
    def parameters(self) -> NetworkParameters:
        return self._params

    @property
    def input_dim(self) -> int:
        return self._params.input_dim

    @property
    def output_dim(self) -> int:
        return self._params.output_dim

    @property
    def layer_sizes(self):
        return self._params.layer_sizes

    def accepts(self, features) -> bool:
        """True if ``features`` is a flat vector of the expected width."""
        try:
            return np.size(features) == self.input_dim and np.ndim(features) == 1
        except (TypeError, ValueError):
            return False

    def _run(self, features):
        """Forward pass into the scratch buffers; returns the logits buffer."""
        np.copyto(self._input, features, casting="unsafe")
        x = self._input
        last = len(self._activations) - 1
        for idx, (layer, out) in enumerate(zip(self._params.layers, self._activations)):
            np.dot(x, layer.weights, out=out)
            out += layer.bias
            if idx != last:
                np.maximum(out, 0.0, out=out)
            x = out
        return x

    def forward(self, features):
        """Forward pass.

        Args:
            features: sequence of length input_dim

        Returns:
            np.ndarray of shape (output_dim,) of raw logits

        Raises:
            ValueError: if the feature length does not match input_dim
        """
        features = np.asarray(features, dtype=np.float64)
        if features.shape != (self.input_dim,):
            raise ValueError("Expected %d features, got shape %s"
                             % (self.input_dim, features.shape))
        return self._run(features).copy()

    def classify(self, features):
        """Softmax-confidence mode.

        Returns:
            (class_index, confidence) where confidence is the softmax
            probability of the arg-max class.
        """
        logits = self.forward(features)
        idx = int(np.argmax(logits))
        return idx, float(softmax(logits)[idx])

    def predict(self, features) -> int:
        """Raw arg-max mode; -1 when the feature length is wrong."""
        if not self.accepts(features):
            logger.debug("predict(): expected %d features, got %s",
                         self.input_dim, np.shape(features))
            return -1
        try:
            features = np.asarray(features, dtype=np.float64)
        except (TypeError, ValueError, OverflowError):
            return -1
        return int(np.argmax(self._run(features)))
