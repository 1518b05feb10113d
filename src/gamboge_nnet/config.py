from __future__ import annotations

import logging
from dataclasses import dataclass

import numpy as np

from .errors import MalformedInputError
from .math_utils import TRANSFERS

DTYPES: dict[str, np.dtype] = {
    "float32": np.dtype(np.float32),
    "float64": np.dtype(np.float64),
}


def resolve_dtype(name: str) -> np.dtype:
    try:
        return DTYPES[name]
    except KeyError:
        raise MalformedInputError(f"unknown dtype {name!r}; expected one of {sorted(DTYPES)}") from None


def resolve_log_level(name: str) -> int:
    level = logging.getLevelName(name.upper())
    if not isinstance(level, int):
        raise MalformedInputError(f"unknown log level {name!r}")
    return level


@dataclass(frozen=True)
class RunConfig:
    """Settings shared by the command line entry points."""

    dtype: str = "float64"
    # None keeps the transfer function stored in the network file
    transform: str | None = None
    log_level: str = "WARNING"
    # verify: maximum absolute error accepted
    tol: float = 1e-6

    def __post_init__(self) -> None:
        resolve_dtype(self.dtype)
        resolve_log_level(self.log_level)
        if self.transform is not None and self.transform not in TRANSFERS:
            raise MalformedInputError(f"unknown transfer function {self.transform!r}")
        if not self.tol >= 0.0:
            raise MalformedInputError(f"tol must be >= 0, got {self.tol}")

    @property
    def np_dtype(self) -> np.dtype:
        return resolve_dtype(self.dtype)

    @property
    def level(self) -> int:
        return resolve_log_level(self.log_level)

