"""
Type aliases for keynescope.

Curve samples are stored as NumPy arrays; parameter fields are addressed by
name.

Examples
--------
>>> from keynescope.typing import Float1D, FieldId
>>> def shift(x: Float1D, by: float) -> Float1D:
...     return x + by
"""

from typing import TypeAlias

import numpy as np
from numpy.typing import NDArray

Float1D: TypeAlias = NDArray[np.float64]
"""Array of floating-point values (curve abscissae and ordinates)."""

FieldId: TypeAlias = str
"""Name of a ParameterSet field (``"G"``, ``"c1"``, ``"lump_sum_tax"``...)."""

__all__ = [
    "FieldId",
    "Float1D",
]
