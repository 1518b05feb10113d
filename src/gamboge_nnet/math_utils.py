from __future__ import annotations

from typing import Callable

import numpy as np

from .errors import MalformedInputError

Transfer = Callable[[float], float]


def logistic(x):
    # stable for large |x|: never exponentiates a positive argument
    if x >= 0:
        ez = np.exp(-x)
        return 1.0 / (1.0 + ez)
    ez = np.exp(x)
    return ez / (1.0 + ez)


def linear(x):
    return x


def tanh(x):
    return np.tanh(x)


def softmax(values: np.ndarray, out: np.ndarray | None = None) -> np.ndarray:
    """Joint normalization of `values` into a distribution summing to 1.

    The maximum is subtracted before exponentiating, so large linear values
    (e.g. 1e4) do not overflow and every result lies in (0, 1]. Pass
    `out=values` to normalize in place.
    """

    if out is None:
        out = np.empty_like(values)
    np.subtract(values, values.max(), out=out)
    np.exp(out, out=out)
    np.divide(out, out.sum(), out=out)
    return out


TRANSFERS: dict[str, Transfer] = {
    "logistic": logistic,
    "linear": linear,
    "tanh": tanh,
}


def resolve_transform(transform: str | Transfer | None) -> Transfer:
    if transform is None:
        return logistic
    if callable(transform):
        return transform
    try:
        return TRANSFERS[transform]
    except KeyError:
        raise MalformedInputError(
            f"unknown transfer function {transform!r}; expected one of {sorted(TRANSFERS)}"
        ) from None


def transform_name(transform: str | Transfer | None) -> str | None:
    """Registered name of `transform`, or None for an unregistered callable."""

    if transform is None:
        return "logistic"
    if isinstance(transform, str):
        resolve_transform(transform)
        return transform
    for name, fn in TRANSFERS.items():
        if fn is transform:
            return name
    return None
