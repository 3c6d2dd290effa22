"""Integrator-side contract consumed by the nonlinear solvers."""

from dataclasses import dataclass, field
from typing import Any, Callable, Optional, Protocol

from numpy.typing import NDArray

from nlfunctional.algebra.operators import IDENTITY, as_operator
from nlfunctional.algebra.residuals import ode_default_norm


class StatisticsSink(Protocol):
    """Receives solver counters; attributes are incremented in place."""

    nf: int       # right-hand side evaluations
    nsolve: int   # Anderson mixing events


@dataclass
class SolverStatistics:
    """Default counter container."""

    nf: int = 0
    nsolve: int = 0


@dataclass
class ODEFunction:
    """
    Right-hand side of M·u' = f(u, p, t).

    With inplace=False the callback is rhs(u, p, t) -> du; with inplace=True
    it is rhs(du, u, p, t) and writes into du. The flag is the caller's
    declared buffer strategy; solvers check it against their own form in
    initialize.
    """

    rhs: Callable[..., Any]
    inplace: bool = False
    mass_matrix: Any = IDENTITY

    def __post_init__(self) -> None:
        self.mass_matrix = as_operator(self.mass_matrix)

    def __call__(self, *args: Any) -> Any:
        return self.rhs(*args)


@dataclass
class IntegratorOptions:
    """Tolerances and error norm used to reduce residuals to one scalar."""

    abstol: Any = 1e-6
    reltol: Any = 1e-3
    internalnorm: Callable[[NDArray, float], float] = ode_default_norm


@dataclass
class IntegratorContext:
    """Snapshot of the integrator state a nonlinear solve depends on."""

    t: float
    dt: float
    uprev: NDArray
    f: ODEFunction
    p: Any = None
    opts: IntegratorOptions = field(default_factory=IntegratorOptions)
    stats: Optional[StatisticsSink] = None
