"""Solver factory and dispatch logic."""

from typing import Union
import numpy as np
from numpy.typing import NDArray

from nlfunctional.algebra.qr import IncrementalQR
from nlfunctional.core.algorithms import NLAnderson, NLFunctional
from nlfunctional.solvers.base import NonlinearSolver
from nlfunctional.solvers.cache import AndersonCache, FunctionalCache
from nlfunctional.solvers.functional import AndersonSolver, FunctionalSolver


def build_nlsolver(
    alg: Union[NLFunctional, NLAnderson],
    u: NDArray,
    gamma: float = 1.0,
    c: float = 0.0,
    inplace: bool = False,
) -> NonlinearSolver:
    """
    Build a solver and its cache sized to the state u.

    Args:
        alg: Algorithm configuration
        u: State template; only its length is used, buffers are float64
        gamma: Stage coefficient γ in tmp + γ·z
        c: Stage abscissa, tstep = t + c·dt
        inplace: Mutate preallocated buffers instead of allocating new
            vectors; must match the right-hand side's calling convention

    Returns:
        FunctionalSolver or AndersonSolver
    """
    u = np.asarray(u)
    if u.ndim != 1:
        raise ValueError(f"state must be a 1-D array, got shape {u.shape}")
    n = u.shape[0]

    def zeros() -> NDArray:
        return np.zeros(n, dtype=float)

    z, tmp = zeros(), zeros()

    if isinstance(alg, NLAnderson):
        max_history = alg.history_capacity(n)
        cache = AndersonCache(
            ustep=zeros(),
            k=zeros(),
            atmp=zeros(),
            dz=zeros(),
            dz_old=zeros(),
            z_plus_old=zeros(),
            delta_z_plus=[zeros() for _ in range(max_history)],
            gammas=np.zeros(max_history),
            qr=IncrementalQR(n, max_history),
            aa_start=alg.aa_start,
            max_history_config=alg.max_history,
            max_iter_config=alg.max_iter,
        )
        return AndersonSolver(z, tmp, gamma, c, cache, inplace)

    if isinstance(alg, NLFunctional):
        cache = FunctionalCache(ustep=zeros(), k=zeros(), atmp=zeros(), dz=zeros())
        return FunctionalSolver(z, tmp, gamma, c, cache, inplace)

    raise ValueError(f"Unsupported nonlinear solver algorithm: {alg!r}")
