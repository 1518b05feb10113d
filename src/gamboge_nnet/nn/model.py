from __future__ import annotations

from typing import Any, Callable, Iterable

import numpy as np
import torch
import torch.nn as nn
import torch.nn.functional as F

from ..errors import MalformedInputError
from ..evaluator import Evaluator, infer_dtype, take_values
from ..math_utils import Transfer, transform_name
from ..schemas import Dimensions

TORCH_TRANSFERS: dict[str, Callable[[torch.Tensor], torch.Tensor]] = {
    "logistic": torch.sigmoid,
    "linear": nn.Identity(),
    "tanh": torch.tanh,
}

_NP_TO_TORCH = {
    np.dtype(np.float32): torch.float32,
    np.dtype(np.float64): torch.float64,
}
_TORCH_TO_NP = {v: k for k, v in _NP_TO_TORCH.items()}


def _unit_block(layer: nn.Linear) -> torch.Tensor:
    """(out_features, 1 + in_features): bias column then input weights."""

    return torch.cat([layer.bias.detach().unsqueeze(1), layer.weight.detach()], dim=1)


class FlatWeightNet(nn.Module):
    """Torch mirror of a flat-weight network with at most one hidden layer.

    x -> [Linear(nx, nh) -> U] -> Linear(., ny) -> U (ny == 1) or softmax (ny > 1).

    Only registered transfer functions are supported, since arbitrary Python
    callables cannot act on tensors.
    """

    def __init__(
        self,
        dims: Dimensions,
        *,
        transform: str | Transfer | None = "logistic",
        dtype: torch.dtype = torch.float64,
    ):
        super().__init__()
        name = transform_name(transform)
        if name is None:
            raise MalformedInputError("torch backend supports only registered transfer functions")

        self.dims = dims
        self.transform = name

        if dims.has_hidden:
            self.hidden: nn.Linear | None = nn.Linear(dims.nx, dims.nh, dtype=dtype)
            fan_in = dims.nh
        else:
            self.hidden = None
            fan_in = dims.nx
        self.out = nn.Linear(fan_in, dims.ny, dtype=dtype)

    def _layers(self) -> list[nn.Linear]:
        return [self.out] if self.hidden is None else [self.hidden, self.out]

    @classmethod
    def from_flat_weights(
        cls,
        weights: Iterable[Any],
        dims: Dimensions,
        *,
        transform: str | Transfer | None = "logistic",
        dtype: Any = None,
    ) -> FlatWeightNet:
        np_dtype = infer_dtype(None, weights, dtype)
        net = cls(dims, transform=transform, dtype=_NP_TO_TORCH[np_dtype])
        net.load_flat_weights(take_values(weights, dims.weight_count, what="weight", dtype=np_dtype))
        return net

    @torch.no_grad()
    def load_flat_weights(self, weights: np.ndarray) -> None:
        d = self.dims
        w = torch.as_tensor(np.array(weights), dtype=self.out.weight.dtype)
        if w.numel() < d.weight_count:
            raise MalformedInputError(f"{d} network needs {d.weight_count} weights, got {w.numel()}")

        pos = 0
        for layer in self._layers():
            n_units, fan_in = layer.out_features, layer.in_features
            block = w[pos : pos + n_units * (1 + fan_in)].reshape(n_units, 1 + fan_in)
            layer.bias.copy_(block[:, 0])
            layer.weight.copy_(block[:, 1:])
            pos += n_units * (1 + fan_in)

    def flat_weights(self) -> np.ndarray:
        """Parameters in the flat block layout, hidden blocks first."""

        blocks = [_unit_block(layer).reshape(-1) for layer in self._layers()]
        return torch.cat(blocks).cpu().numpy()

    def forward(self, x: torch.Tensor) -> torch.Tensor:
        """x: (nx,) -> (ny,). One input vector per call."""

        if x.dim() != 1 or x.shape[0] != self.dims.nx:
            raise MalformedInputError(f"expected an input vector of shape ({self.dims.nx},), got {tuple(x.shape)}")

        act = TORCH_TRANSFERS[self.transform]
        h = x.to(self.out.weight.dtype)
        if self.hidden is not None:
            h = act(self.hidden(h))
        z = self.out(h)

        if self.dims.ny == 1:
            return act(z)
        return F.softmax(z, dim=-1)

    def to_evaluator(self) -> Evaluator:
        d = self.dims
        np_dtype = _TORCH_TO_NP[self.out.weight.dtype]
        return Evaluator(d.nx, d.nh, d.ny, self.flat_weights(), self.transform, dtype=np_dtype)
