"""Reusable buffers for the functional nonlinear solvers."""

import logging
from dataclasses import dataclass, field
import numpy as np
from numpy.typing import NDArray

from nlfunctional.algebra.qr import IncrementalQR
from nlfunctional.core.errors import DimensionMismatchError

logger = logging.getLogger(__name__)


def _check_length(i: int) -> int:
    if isinstance(i, bool) or not isinstance(i, (int, np.integer)) or i < 0:
        raise DimensionMismatchError(f"invalid state length {i!r}")
    return int(i)


def resize_buffer(buf: NDArray, i: int) -> NDArray:
    """Return buf if it already has length i, else a new array keeping the prefix."""
    if buf.shape[0] == i:
        return buf
    new = np.zeros(i, dtype=buf.dtype)
    m = min(i, buf.shape[0])
    new[:m] = buf[:m]
    return new


@dataclass
class FunctionalCache:
    """Buffers shared by plain and Anderson fixed-point iteration."""

    ustep: NDArray   # stage value tmp + γ·z
    k: NDArray       # f(ustep, p, tstep)
    atmp: NDArray    # scaled residual
    dz: NDArray      # fixed-point residual g(z) - z
    tstep: float = 0.0

    @property
    def length(self) -> int:
        return self.ustep.shape[0]

    def resize(self, i: int) -> None:
        """Resize every state-length buffer to i."""
        i = _check_length(i)
        if i != self.length:
            logger.debug("resizing functional cache %d -> %d", self.length, i)
        self.ustep = resize_buffer(self.ustep, i)
        self.k = resize_buffer(self.k, i)
        self.atmp = resize_buffer(self.atmp, i)
        self.dz = resize_buffer(self.dz, i)


@dataclass
class AndersonCache(FunctionalCache):
    """
    Adds the Anderson history: a window of fixed-point increments
    Δz₊ = z₊ - z₊old (most recent last) and a thin QR factorization of the
    matching residual differences.

    delta_z_plus, gammas and the QR factors always have capacity
    min(max_history, max_iter, n) columns; history counts the active ones.
    """

    dz_old: NDArray = field(default_factory=lambda: np.zeros(0))
    z_plus_old: NDArray = field(default_factory=lambda: np.zeros(0))
    delta_z_plus: list[NDArray] = field(default_factory=list)
    gammas: NDArray = field(default_factory=lambda: np.zeros(0))
    qr: IncrementalQR = field(default_factory=lambda: IncrementalQR(0, 0))
    history: int = 0
    aa_start: int = 1
    max_history_config: int = 5
    max_iter_config: int = 10

    @property
    def max_history(self) -> int:
        """Current history capacity."""
        return len(self.delta_z_plus)

    @property
    def Q(self) -> NDArray:
        return self.qr.Q

    @property
    def R(self) -> NDArray:
        return self.qr.R

    def resize(self, i: int) -> None:
        """
        Resize state-length buffers to i and recompute the history capacity.

        The QR factors are rebuilt from scratch whenever their shape would
        change; the active history is discarded in that case.
        """
        i = _check_length(i)
        super().resize(i)
        self.dz_old = resize_buffer(self.dz_old, i)
        self.z_plus_old = resize_buffer(self.z_plus_old, i)

        max_history_old = self.max_history
        max_history = min(self.max_history_config, self.max_iter_config, i)

        self.gammas = resize_buffer(self.gammas, max_history)
        kept = [resize_buffer(v, i) for v in self.delta_z_plus[:max_history]]
        added = [np.zeros(i) for _ in range(max_history - len(kept))]
        self.delta_z_plus = kept + added

        if self.qr.capacity != max_history or self.qr.n != i:
            logger.debug(
                "reallocating Anderson QR factors: n=%d, capacity %d -> %d",
                i,
                max_history_old,
                max_history,
            )
            self.qr = IncrementalQR(i, max_history)
            self.history = 0
