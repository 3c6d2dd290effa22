"""Fixed-point and Anderson-accelerated stage solvers."""

import logging
import numpy as np
from numpy.typing import NDArray

from nlfunctional.core.problem import IntegratorContext
from nlfunctional.solvers.anderson import anderson, anderson_inplace
from nlfunctional.solvers.base import NonlinearSolver
from nlfunctional.solvers.cache import AndersonCache, FunctionalCache
from nlfunctional.solvers.residual import (
    fixedpoint_residual,
    fixedpoint_residual_inplace,
)

logger = logging.getLogger(__name__)


class FunctionalSolver(NonlinearSolver):
    """Plain fixed-point iteration: one residual evaluation per step."""

    def __init__(
        self,
        z: NDArray,
        tmp: NDArray,
        gamma: float,
        c: float,
        cache: FunctionalCache,
        inplace: bool,
    ) -> None:
        super().__init__(z, tmp, gamma, c, cache, inplace)
        self._residual = fixedpoint_residual_inplace if inplace else fixedpoint_residual

    def initialize(self, integrator: IntegratorContext) -> None:
        if integrator.f.inplace != self.inplace:
            raise ValueError(
                f"right-hand side has inplace={integrator.f.inplace} but the "
                f"solver was built with inplace={self.inplace}"
            )
        self.cache.tstep = integrator.t + self.c * integrator.dt
        self.iter = 0

    def compute_step(self, integrator: IntegratorContext) -> float:
        return self._residual(self, integrator)


class AndersonSolver(FunctionalSolver):
    """
    Fixed-point iteration with Anderson mixing.

    With previter = iter - 1, calls with previter < aa_start are plain
    fixed-point steps; the call with previter == aa_start records dz and z
    as the reference for the first history column; later calls mix z
    before evaluating the residual.

    The snapshot is taken only on that exact call. If the outer loop
    skips it, the first mixing call differences against whatever dz_old
    and z_plus_old last held.
    """

    cache: AndersonCache

    def initialize(self, integrator: IntegratorContext) -> None:
        super().initialize(integrator)
        self.cache.history = 0
        logger.debug(
            "initialized Anderson solver at tstep=%g, capacity %d",
            self.cache.tstep,
            self.cache.max_history,
        )

    def compute_step(self, integrator: IntegratorContext) -> float:
        cache = self.cache
        previter = self.iter - 1
        if previter == cache.aa_start:
            if self.inplace:
                np.copyto(cache.dz_old, cache.dz)
                np.copyto(cache.z_plus_old, self.z)
            else:
                cache.dz_old = cache.dz
                cache.z_plus_old = self.z
        elif previter > cache.aa_start and cache.max_history > 0:
            if self.inplace:
                anderson_inplace(self.z, cache)
            else:
                self.z = anderson(self.z, cache)
            if integrator.stats is not None:
                integrator.stats.nsolve += 1

        return self._residual(self, integrator)
