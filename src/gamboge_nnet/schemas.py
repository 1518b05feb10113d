from __future__ import annotations

import operator
from dataclasses import asdict, dataclass
from typing import Any

from .errors import MalformedInputError


def weight_count(nx: int, nh: int, ny: int) -> int:
    """Number of weights `v` consumed by a network with the given dimensions."""

    if nh > 0:
        return nh * (1 + nx) + ny * (1 + nh)
    return ny * (1 + nx)


@dataclass(frozen=True)
class Dimensions:
    nx: int  # network inputs
    nh: int  # hidden units, 0 means no hidden layer
    ny: int  # output units

    def __post_init__(self) -> None:
        for name in ("nx", "nh", "ny"):
            try:
                value = operator.index(getattr(self, name))
            except TypeError:
                raise MalformedInputError(f"{name} must be an integer, got {getattr(self, name)!r}") from None
            if value < 0:
                raise MalformedInputError(f"{name} must be >= 0, got {value}")
            object.__setattr__(self, name, value)

    @property
    def has_hidden(self) -> bool:
        return self.nh > 0

    @property
    def weight_count(self) -> int:
        return weight_count(self.nx, self.nh, self.ny)

    @property
    def scratch_size(self) -> int:
        # hidden outputs followed by output linear values
        return self.nh + self.ny

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    def __str__(self) -> str:
        return f"{self.nx}-{self.nh}-{self.ny}"
