"""
Built-in regime variants.

Importing this package registers every model/regime combination.
"""

from keynescope.regimes.cross import (
    CrossLumpSumEndogenous,
    CrossLumpSumExogenous,
    CrossProportionalEndogenous,
    CrossProportionalExogenous,
)
from keynescope.regimes.islm import ISLMLumpSum, ISLMProportional

__all__ = [
    "CrossLumpSumExogenous",
    "CrossProportionalExogenous",
    "CrossLumpSumEndogenous",
    "CrossProportionalEndogenous",
    "ISLMLumpSum",
    "ISLMProportional",
]
