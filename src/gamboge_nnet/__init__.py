"""Forward evaluation of feed-forward networks stored as flat weight arrays.

Networks have `nx` inputs, an optional hidden layer of `nh` units and `ny`
outputs. See `gamboge_nnet.evaluator` for the weight layout.
"""

from __future__ import annotations

from .errors import AllocationFailureError, MalformedInputError, NnetError
from .evaluator import Evaluator, evaluate
from .math_utils import linear, logistic, softmax
from .schemas import Dimensions, weight_count

__version__ = "0.1.0"

__all__ = [
    "AllocationFailureError",
    "Dimensions",
    "Evaluator",
    "MalformedInputError",
    "NnetError",
    "__version__",
    "evaluate",
    "linear",
    "logistic",
    "softmax",
    "weight_count",
]
