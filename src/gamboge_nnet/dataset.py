from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Iterable

import numpy as np
import pandas as pd

from .errors import MalformedInputError
from .math_utils import resolve_transform
from .schemas import Dimensions

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class NetworkFile:
    """Dimensions plus flat weights, as stored on disk.

    JSON shape: {"nx": 3, "nh": 2, "ny": 1, "weights": [...], "transform": "logistic"}
    """

    dims: Dimensions
    weights: list[float] = field(repr=False)
    transform: str = "logistic"

    def __post_init__(self) -> None:
        resolve_transform(self.transform)
        if len(self.weights) != self.dims.weight_count:
            raise MalformedInputError(
                f"{self.dims} network needs {self.dims.weight_count} weights, got {len(self.weights)}"
            )

    def to_dict(self) -> dict[str, Any]:
        d = self.dims.to_dict()
        d["weights"] = [float(w) for w in self.weights]
        d["transform"] = self.transform
        return d

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> NetworkFile:
        missing = [k for k in ("nx", "nh", "ny", "weights") if k not in d]
        if missing:
            raise MalformedInputError(f"network definition lacks {', '.join(missing)}")
        try:
            weights = [float(w) for w in d["weights"]]
        except (TypeError, ValueError) as e:
            raise MalformedInputError(f"weights are not numeric: {e}") from e
        return cls(
            dims=Dimensions(d["nx"], d["nh"], d["ny"]),
            weights=weights,
            transform=str(d.get("transform", "logistic")),
        )


def load_network(path: str | Path) -> NetworkFile:
    path = Path(path)
    try:
        d = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise MalformedInputError(f"{path}: invalid JSON ({e})") from e
    if not isinstance(d, dict):
        raise MalformedInputError(f"{path}: expected a JSON object")
    net = NetworkFile.from_dict(d)
    logger.debug("loaded %s network from %s", net.dims, path)
    return net


def save_network(path: str | Path, net: NetworkFile) -> None:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(net.to_dict(), ensure_ascii=False, indent=2), encoding="utf-8")


def read_vectors(path: str | Path, *, dtype: Any = np.float64) -> np.ndarray:
    """Headerless CSV, one vector per row -> (rows, cols) array.

    Every row must hold the same number of values.
    """

    path = Path(path)
    try:
        df = pd.read_csv(path, header=None)
    except pd.errors.EmptyDataError:
        return np.zeros((0, 0), dtype=dtype)
    except pd.errors.ParserError as e:
        raise MalformedInputError(f"{path}: rows of unequal length ({e})") from e
    if df.isna().to_numpy().any():
        raise MalformedInputError(f"{path}: missing values (rows of unequal length?)")
    try:
        return df.to_numpy(dtype=dtype)
    except (TypeError, ValueError) as e:
        raise MalformedInputError(f"{path}: non-numeric values ({e})") from e


def write_vectors(path: str | Path, rows: Iterable[Iterable[float]]) -> None:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    df = pd.DataFrame([list(r) for r in rows])
    df.to_csv(path, header=False, index=False, float_format="%.9g")
