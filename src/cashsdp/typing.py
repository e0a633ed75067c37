"""
Type aliases for cashsdp.

Arrays flowing through the solver, extractor and verifier are plain NumPy
arrays; these aliases document their dtype at function boundaries.

Examples
--------
>>> import numpy as np
>>> from cashsdp.typing import Float1D
>>> def total(values: Float1D) -> float:
...     return float(np.sum(values))
"""

from typing import TypeAlias

import numpy as np
from numpy.typing import NDArray

Float1D: TypeAlias = NDArray[np.float64]
Int1D: TypeAlias = NDArray[np.int64]
Bool1D: TypeAlias = NDArray[np.bool_]
Idx1D: TypeAlias = NDArray[np.intp]

Float2D: TypeAlias = NDArray[np.float64]
Int2D: TypeAlias = NDArray[np.int64]

FloatOrArray: TypeAlias = float | Float1D | Float2D
"""Scalar or broadcastable array (actions, demands, values)."""

__all__ = [
    "Float1D",
    "Int1D",
    "Bool1D",
    "Idx1D",
    "Float2D",
    "Int2D",
    "FloatOrArray",
]
