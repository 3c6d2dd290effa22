"""
Anderson mixing over a sliding window of fixed-point increments.

Given the current fixed-point image z (= g of the previous iterate) and its
residual dz, the window holds increments Δz₊ of successive images and the
QR factorization of the matching residual differences Δr. The mixed
iterate is

    z_new = z - Σ_i γ_i Δz₊_i,   γ = argmin ||[Δr_1 … Δr_m] γ - dz||.

References:
    Walker, H. F. and Ni, P., "Anderson Acceleration for Fixed-Point
    Iterations", SIAM J. Numer. Anal. 49(4), 2011.
"""

import logging
import numpy as np
from numpy.typing import NDArray

from nlfunctional.solvers.cache import AndersonCache

logger = logging.getLogger(__name__)


def _advance_window(cache: AndersonCache) -> int:
    """Grow the history by one, evicting the oldest column when full."""
    max_history = cache.max_history
    history = cache.history + 1
    if history > max_history:
        # rotate the oldest buffer to the end; it is overwritten next
        cache.delta_z_plus.append(cache.delta_z_plus.pop(0))
        cache.qr.evict_oldest(max_history)
        history = max_history
        logger.debug("Anderson history full, evicted oldest of %d", max_history)
    return history


def anderson(z: NDArray, cache: AndersonCache) -> NDArray:
    """Whole-vector form: returns the mixed iterate, z is left untouched."""
    if cache.max_history == 0:
        return z

    dz = cache.dz
    history = _advance_window(cache)

    cache.delta_z_plus[history - 1] = z - cache.z_plus_old
    cache.qr.append_column(dz - cache.dz_old, history)

    cache.dz_old = dz
    cache.z_plus_old = z

    gammas = cache.qr.solve_least_squares(dz, history, out=cache.gammas)
    z_new = z
    for gamma, dzp in zip(gammas, cache.delta_z_plus[:history]):
        z_new = z_new - gamma * dzp

    cache.history = history
    return z_new


def anderson_inplace(z: NDArray, cache: AndersonCache) -> None:
    """
    In-place form: overwrites z with the mixed iterate.

    Uses dz_old as scratch for the residual difference before refreshing it;
    atmp serves as scratch for the final accumulation since it is rewritten
    by the next residual evaluation.
    """
    if cache.max_history == 0:
        return

    dz, dz_old, z_plus_old, work = cache.dz, cache.dz_old, cache.z_plus_old, cache.atmp
    history = _advance_window(cache)

    np.subtract(z, z_plus_old, out=cache.delta_z_plus[history - 1])
    np.subtract(dz, dz_old, out=dz_old)
    cache.qr.append_column(dz_old, history)

    np.copyto(dz_old, dz)
    np.copyto(z_plus_old, z)

    gammas = cache.qr.solve_least_squares(dz, history, out=cache.gammas)
    for i in range(history):
        np.multiply(cache.delta_z_plus[i], gammas[i], out=work)
        np.subtract(z, work, out=z)

    cache.history = history
