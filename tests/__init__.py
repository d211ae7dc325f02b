# tests/__init__.py

from tests.helpers.factories import cross_params, equilibrium, islm_params

__all__ = [
    "cross_params",
    "islm_params",
    "equilibrium",
]
