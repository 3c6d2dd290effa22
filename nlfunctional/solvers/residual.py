"""
Fixed-point residual of the stage equation.

One evaluation of g(z) = dt·f(tmp + γ·z, p, t + c·dt), adjusted for the
mass matrix, yielding the proposed iterate ztmp, the residual dz and its
weighted norm.

References:
    Hairer, E. and Wanner, G., Solving Ordinary Differential Equations II,
    Springer Series in Computational Mathematics, Section IV.8.
"""

from typing import TYPE_CHECKING
import numpy as np

from nlfunctional.algebra.residuals import (
    calculate_residuals,
    calculate_residuals_inplace,
)
from nlfunctional.core.problem import IntegratorContext

if TYPE_CHECKING:
    from nlfunctional.solvers.base import NonlinearSolver


def fixedpoint_residual(solver: "NonlinearSolver", integrator: IntegratorContext) -> float:
    """
    Whole-vector form: allocates ustep, ztmp and dz.

    Stores ztmp on the solver and dz on the cache, returns the norm of dz.
    """
    uprev, t, p, dt, opts = (
        integrator.uprev,
        integrator.t,
        integrator.p,
        integrator.dt,
        integrator.opts,
    )
    z, gamma, cache = solver.z, solver.gamma, solver.cache
    mass_matrix = integrator.f.mass_matrix

    ustep = solver.tmp + gamma * z
    if mass_matrix.is_identity:
        ztmp = dt * integrator.f(ustep, p, cache.tstep)
        dz = ztmp - z
    else:
        dz = dt * integrator.f(ustep, p, cache.tstep) - mass_matrix.apply(z)
        ztmp = z + dz
    if integrator.stats is not None:
        integrator.stats.nf += 1

    atmp = calculate_residuals(dz, uprev, ustep, opts.abstol, opts.reltol)
    ndz = opts.internalnorm(atmp, t)

    solver.ztmp = ztmp
    cache.ustep = ustep
    cache.dz = dz
    cache.atmp = atmp
    return ndz


def fixedpoint_residual_inplace(
    solver: "NonlinearSolver", integrator: IntegratorContext
) -> float:
    """
    Buffer-reuse form: writes into solver.ztmp and the cache's ustep, k,
    dz and atmp; the right-hand side is called as f(k, ustep, p, t).
    """
    uprev, t, p, dt, opts = (
        integrator.uprev,
        integrator.t,
        integrator.p,
        integrator.dt,
        integrator.opts,
    )
    z, tmp, ztmp, gamma, cache = (
        solver.z,
        solver.tmp,
        solver.ztmp,
        solver.gamma,
        solver.cache,
    )
    ustep, k, atmp, dz = cache.ustep, cache.k, cache.atmp, cache.dz
    mass_matrix = integrator.f.mass_matrix

    np.multiply(z, gamma, out=ustep)
    np.add(ustep, tmp, out=ustep)
    integrator.f(k, ustep, p, cache.tstep)
    if integrator.stats is not None:
        integrator.stats.nf += 1

    if mass_matrix.is_identity:
        np.multiply(k, dt, out=ztmp)
        np.subtract(ztmp, z, out=dz)
    else:
        mass_matrix.apply(z, out=ztmp)
        np.multiply(k, dt, out=dz)
        np.subtract(dz, ztmp, out=dz)
        np.add(z, dz, out=ztmp)

    calculate_residuals_inplace(atmp, dz, uprev, ustep, opts.abstol, opts.reltol)
    return opts.internalnorm(atmp, t)
