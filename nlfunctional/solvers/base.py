"""Base nonlinear solver interface."""

from abc import ABC, abstractmethod
import numpy as np
from numpy.typing import NDArray

from nlfunctional.core.problem import IntegratorContext
from nlfunctional.solvers.cache import FunctionalCache, resize_buffer


class NonlinearSolver(ABC):
    """
    Solves z = dt·f(tmp + γ·z, p, t + c·dt) for one stage of an implicit step.

    The solver owns the iterate z, the proposal ztmp and the explicit part
    tmp; the outer loop sets tmp, gamma and c, calls initialize once per
    step, then alternates compute_step and advance until it decides to stop.
    """

    def __init__(
        self,
        z: NDArray,
        tmp: NDArray,
        gamma: float,
        c: float,
        cache: FunctionalCache,
        inplace: bool,
    ) -> None:
        self.z = z
        self.ztmp = np.zeros_like(z)
        self.tmp = tmp
        self.gamma = gamma
        self.c = c
        self.cache = cache
        self.inplace = inplace
        self.iter = 0
        self.eta_old = 1.0

    @abstractmethod
    def initialize(self, integrator: IntegratorContext) -> None:
        """Prepare the cache for a new step at integrator.t, integrator.dt."""
        ...

    @abstractmethod
    def compute_step(self, integrator: IntegratorContext) -> float:
        """
        Compute the next fixed-point proposal into ztmp.

        Returns:
            Weighted norm of the fixed-point residual g(z) - z
        """
        ...

    def initial_eta(self, integrator: IntegratorContext) -> float:
        """Convergence-rate seed carried over from the previous solve."""
        return self.eta_old

    def advance(self) -> None:
        """Accept ztmp as the new iterate and count the iteration."""
        if self.inplace:
            self.z, self.ztmp = self.ztmp, self.z
        else:
            self.z = self.ztmp
        self.iter += 1

    def resize(self, i: int) -> None:
        """Resize the cache and the iterate buffers to state length i."""
        self.cache.resize(i)
        self.z = resize_buffer(self.z, i)
        self.ztmp = resize_buffer(self.ztmp, i)
        self.tmp = resize_buffer(self.tmp, i)
