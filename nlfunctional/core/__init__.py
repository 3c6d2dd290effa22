"""Algorithm configuration and the integrator-side contract."""

from nlfunctional.core.algorithms import NLAnderson, NLFunctional
from nlfunctional.core.errors import DimensionMismatchError
from nlfunctional.core.problem import (
    IntegratorContext,
    IntegratorOptions,
    ODEFunction,
    SolverStatistics,
    StatisticsSink,
)

__all__ = [
    "NLAnderson",
    "NLFunctional",
    "DimensionMismatchError",
    "IntegratorContext",
    "IntegratorOptions",
    "ODEFunction",
    "SolverStatistics",
    "StatisticsSink",
]
