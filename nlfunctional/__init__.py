"""
Nlfunctional: fixed-point nonlinear solvers for implicit ODE stages.

Each implicit stage z = dt·f(tmp + γ·z, p, t + c·dt) is solved by:
- Plain fixed-point (Picard) iteration
- Fixed-point iteration accelerated by Anderson mixing

Both come in a whole-vector form and an in-place buffer form.
"""

__version__ = "0.1.0"

from nlfunctional.core.algorithms import NLAnderson, NLFunctional
from nlfunctional.core.problem import (
    IntegratorContext,
    IntegratorOptions,
    ODEFunction,
    SolverStatistics,
)
from nlfunctional.solvers.factory import build_nlsolver

__all__ = [
    "NLAnderson",
    "NLFunctional",
    "IntegratorContext",
    "IntegratorOptions",
    "ODEFunction",
    "SolverStatistics",
    "build_nlsolver",
]
