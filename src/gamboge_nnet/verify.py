from __future__ import annotations

from dataclasses import dataclass

import numpy as np
from tqdm import tqdm

from .errors import MalformedInputError
from .evaluator import Evaluator


@dataclass(frozen=True)
class VerifyResult:
    n_vectors: int
    max_error: float
    worst_index: int | None  # None when no vectors were checked

    def passed(self, tol: float) -> bool:
        # nan never passes
        return self.max_error <= tol


def _check_width(evaluator: Evaluator, inputs: np.ndarray) -> None:
    if inputs.shape[0] and inputs.shape[1] != evaluator.dims.nx:
        raise MalformedInputError(
            f"input rows hold {inputs.shape[1]} values, the {evaluator.dims} network takes {evaluator.dims.nx}"
        )


def evaluate_rows(evaluator: Evaluator, inputs: np.ndarray, *, progress: bool = False) -> np.ndarray:
    """One evaluation per input row; returns (rows, ny)."""

    inputs = np.atleast_2d(inputs)
    n = inputs.shape[0]
    _check_width(evaluator, inputs)
    out = np.empty((n, evaluator.dims.ny), dtype=evaluator.dtype)
    rows = tqdm(range(n), desc="Evaluating") if progress else range(n)
    for k in rows:
        evaluator.compute(inputs[k], out=out[k])
    return out


def verify(
    evaluator: Evaluator,
    inputs: np.ndarray,
    expected: np.ndarray,
    *,
    progress: bool = False,
) -> VerifyResult:
    """Maximum absolute difference between evaluator outputs and `expected`.

    `expected` holds one row of `ny` values per input row.
    """

    inputs = np.atleast_2d(inputs)
    expected = np.atleast_2d(np.asarray(expected, dtype=np.float64))
    n = inputs.shape[0]
    _check_width(evaluator, inputs)
    if expected.shape[0] != n or (n and expected.shape[1] != evaluator.dims.ny):
        raise MalformedInputError(
            f"expected values shaped {expected.shape}, need ({n}, {evaluator.dims.ny})"
        )
    if n == 0 or evaluator.dims.ny == 0:
        return VerifyResult(n_vectors=n, max_error=0.0, worst_index=None)

    results = evaluate_rows(evaluator, inputs, progress=progress)
    errors = np.abs(results.astype(np.float64) - expected).max(axis=1)
    # argmax reports the first nan if any row produced one
    worst = int(np.argmax(errors))
    return VerifyResult(n_vectors=n, max_error=float(errors[worst]), worst_index=worst)
