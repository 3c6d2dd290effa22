"""Fixed-point stage solvers."""

from nlfunctional.solvers.base import NonlinearSolver
from nlfunctional.solvers.cache import AndersonCache, FunctionalCache
from nlfunctional.solvers.factory import build_nlsolver
from nlfunctional.solvers.functional import AndersonSolver, FunctionalSolver

__all__ = [
    "NonlinearSolver",
    "AndersonCache",
    "FunctionalCache",
    "build_nlsolver",
    "AndersonSolver",
    "FunctionalSolver",
]
