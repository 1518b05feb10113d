"""Torch backend for flat-weight networks.

Loads the flat block layout into `nn.Linear` layers and back, so weights
trained with torch can be evaluated by the numpy kernel and vice versa.
"""

from __future__ import annotations

from .model import FlatWeightNet

__all__ = ["FlatWeightNet"]
