"""Forward pass of a feed-forward network with at most one hidden layer.

Weights are a flat, densely packed sequence of per-unit blocks. Each block is
the unit's bias followed by one weight per unit input:

    nh > 0:  nh blocks of (1 + nx), then ny blocks of (1 + nh)
    nh == 0: ny blocks of (1 + nx)

A unit computes y = U(bias + <x, w>). The hidden layer always applies the
unary transfer function U (logistic unless the caller supplies another). The
output layer applies U only when there is a single output unit; with more than
one output unit the linear values are normalized jointly with softmax.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from itertools import islice
from typing import TYPE_CHECKING, Any

import numpy as np

from .errors import AllocationFailureError, MalformedInputError
from .math_utils import Transfer, resolve_transform, softmax
from .schemas import Dimensions

if TYPE_CHECKING:
    from .dataset import NetworkFile

logger = logging.getLogger(__name__)

FLOAT_DTYPES = (np.dtype(np.float32), np.dtype(np.float64))


def check_dtype(dtype: Any) -> np.dtype:
    dt = np.dtype(dtype)
    if dt not in FLOAT_DTYPES:
        raise MalformedInputError(f"unsupported dtype {dt}; use float32 or float64")
    return dt


def infer_dtype(inputs: Any, weights: Any, dtype: Any = None) -> np.dtype:
    """Pick the single numeric type used for one evaluation.

    An explicit `dtype` wins. Otherwise float numpy arrays decide, and arrays of
    two different float types are rejected rather than silently mixed.
    """

    if dtype is not None:
        return check_dtype(dtype)

    seen = {check_dtype(a.dtype) for a in (inputs, weights) if isinstance(a, np.ndarray) and a.dtype.kind == "f"}
    if len(seen) > 1:
        names = ", ".join(sorted(str(d) for d in seen))
        raise MalformedInputError(f"inputs and weights use different precisions ({names}); pass dtype= explicitly")
    if seen:
        return seen.pop()
    return np.dtype(np.float64)


def take_values(source: Iterable[Any], count: int, *, what: str, dtype: np.dtype) -> np.ndarray:
    """Return the first `count` values of `source` as a 1-D array.

    Sequences and arrays are sliced; any other iterable is treated as a
    single-pass stream and advanced by at most `count` items.
    """

    try:
        if isinstance(source, np.ndarray):
            buf = source.reshape(-1)[:count].astype(dtype, copy=False)
        elif isinstance(source, Sequence) and not isinstance(source, (str, bytes)):
            buf = np.asarray(source[:count], dtype=dtype).reshape(-1)
        else:
            buf = np.fromiter(islice(iter(source), count), dtype=dtype)
    except (TypeError, ValueError) as e:
        raise MalformedInputError(f"{what} values are not numeric: {e}") from e

    if buf.size < count:
        raise MalformedInputError(f"expected at least {count} {what} values, got {buf.size}")
    return buf


class WeightReader:
    """Front-to-back cursor over a buffered weight array."""

    def __init__(self, weights: np.ndarray):
        self._weights = weights
        self._pos = 0

    @property
    def position(self) -> int:
        return self._pos

    @property
    def remaining(self) -> int:
        return self._weights.size - self._pos

    def read(self, count: int) -> np.ndarray:
        end = self._pos + count
        if end > self._weights.size:
            raise MalformedInputError(
                f"weight sequence exhausted: need {count} values at offset {self._pos}, have {self.remaining}"
            )
        block = self._weights[self._pos : end]
        self._pos = end
        return block

    def read_units(self, n_units: int, fan_in: int) -> tuple[np.ndarray, np.ndarray]:
        """Read `n_units` consecutive blocks; returns (bias (n,), weights (n, fan_in))."""

        block = self.read(n_units * (1 + fan_in)).reshape(n_units, 1 + fan_in)
        return block[:, 0], block[:, 1:]


def layer_linear(reader: WeightReader, unit_inputs: np.ndarray, out: np.ndarray) -> np.ndarray:
    """bias + <x, w> for each of the len(out) units fed by `unit_inputs`."""

    bias, w = reader.read_units(out.shape[0], unit_inputs.shape[0])
    # an empty fan-in leaves each unit with its bias
    np.add(bias, w @ unit_inputs, out=out)
    return out


def apply_transfer(fn: Transfer, values: np.ndarray) -> np.ndarray:
    for i in range(values.shape[0]):
        values[i] = fn(values[i])
    return values


def output_policy(linear: np.ndarray, fn: Transfer) -> np.ndarray:
    """Single output: U(linear). Several outputs: softmax, whatever U is.

    Works in place on `linear`.
    """

    if linear.shape[0] == 1:
        linear[0] = fn(linear[0])
        return linear
    return softmax(linear, out=linear)


def forward(
    dims: Dimensions,
    x: np.ndarray,
    reader: WeightReader,
    fn: Transfer,
    dtype: np.dtype,
) -> np.ndarray:
    try:
        scratch = np.empty(dims.scratch_size, dtype=dtype)
    except MemoryError as e:
        raise AllocationFailureError(
            f"cannot allocate {dims.scratch_size} scratch values for a {dims} network"
        ) from e

    hidden = scratch[: dims.nh]
    linear = scratch[dims.nh :]

    if dims.has_hidden:
        apply_transfer(fn, layer_linear(reader, x, hidden))
        layer_linear(reader, hidden, linear)
    else:
        layer_linear(reader, x, linear)

    return output_policy(linear, fn).copy()


def evaluate(
    inputs: Iterable[Any],
    weights: Iterable[Any],
    nx: int,
    nh: int,
    ny: int,
    transform: str | Transfer | None = None,
    *,
    dtype: Any = None,
    out: np.ndarray | None = None,
) -> np.ndarray:
    """Compute the `ny` outputs of an `nx`-`nh`-`ny` network for one input vector.

    Args:
        inputs: `nx` input values (sequence, array or single-pass iterator).
        weights: at least `v` weights in the flat block layout; exactly `v`
            are consumed.
        nx, nh, ny: input count, hidden unit count (0 = no hidden layer),
            output count.
        transform: unary transfer function or registered name; applied at the
            hidden layer and, when ny == 1, at the output. Defaults to logistic.
        dtype: float32 or float64. Inferred from numpy arguments when omitted.
        out: optional array receiving the outputs; only written on success.

    Returns:
        Array of `ny` outputs (a view of `out` when given).

    Raises:
        MalformedInputError: bad dimensions, too few inputs or weights, mixed
            precisions, or an `out` buffer that is too small or of another dtype.
        AllocationFailureError: the scratch buffer could not be allocated.
    """

    dims = Dimensions(nx, nh, ny)
    fn = resolve_transform(transform)
    dt = infer_dtype(inputs, weights, dtype)

    if out is not None:
        if out.dtype != dt:
            raise MalformedInputError(f"output buffer is {out.dtype}, evaluation runs in {dt}")
        if out.shape[0] < dims.ny:
            raise MalformedInputError(f"output buffer holds {out.shape[0]} values, need {dims.ny}")

    if dims.ny == 0:
        logger.debug("degenerate %s network: no outputs requested", dims)
        result = np.empty(0, dtype=dt)
    else:
        x = take_values(inputs, dims.nx, what="input", dtype=dt)
        w = take_values(weights, dims.weight_count, what="weight", dtype=dt)
        result = forward(dims, x, WeightReader(w), fn, dt)

    if out is None:
        return result
    out[: dims.ny] = result
    return out[: dims.ny]


class Evaluator:
    """A network with fixed dimensions, weights and transfer function."""

    def __init__(
        self,
        nx: int,
        nh: int,
        ny: int,
        weights: Iterable[Any],
        transform: str | Transfer | None = None,
        *,
        dtype: Any = np.float64,
    ):
        self.dims = Dimensions(nx, nh, ny)
        self.dtype = check_dtype(dtype)
        self.transform = resolve_transform(transform)

        w = take_values(weights, self.dims.weight_count, what="weight", dtype=self.dtype)
        self.weights = np.array(w, dtype=self.dtype, copy=True)
        self.weights.flags.writeable = False

        logger.debug("evaluator %s: %d weights, dtype=%s", self.dims, self.weights.size, self.dtype)

    @classmethod
    def from_network(cls, net: NetworkFile, *, dtype: Any = np.float64) -> Evaluator:
        d = net.dims
        return cls(d.nx, d.nh, d.ny, net.weights, net.transform, dtype=dtype)

    @property
    def weight_count(self) -> int:
        return self.dims.weight_count

    def compute(self, values: Iterable[Any], *, out: np.ndarray | None = None) -> np.ndarray:
        d = self.dims
        return evaluate(values, self.weights, d.nx, d.nh, d.ny, self.transform, dtype=self.dtype, out=out)

    __call__ = compute

    def __repr__(self) -> str:
        return f"Evaluator({self.dims}, dtype={self.dtype})"
