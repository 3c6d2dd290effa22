"""Scaled residuals and the default error norm."""

from typing import Any
import numpy as np
from numpy.typing import NDArray


def ode_default_norm(u: NDArray, t: float) -> float:
    """Root-mean-square norm; t is accepted for signature compatibility."""
    u = np.asarray(u)
    if u.size == 0:
        return 0.0
    return float(np.linalg.norm(u.ravel()) / np.sqrt(u.size))


def calculate_residuals(
    dz: NDArray,
    uprev: NDArray,
    ustep: NDArray,
    abstol: Any,
    reltol: Any,
) -> NDArray:
    """
    Componentwise scaled error dz / (abstol + max(|uprev|, |ustep|)·reltol).

    Returns a new array.
    """
    scale = abstol + np.maximum(np.abs(uprev), np.abs(ustep)) * reltol
    return dz / scale


def calculate_residuals_inplace(
    out: NDArray,
    dz: NDArray,
    uprev: NDArray,
    ustep: NDArray,
    abstol: Any,
    reltol: Any,
) -> NDArray:
    """Same as calculate_residuals, writing into out without temporaries."""
    # max(|ustep|, |uprev|) = max(max(|ustep|, uprev), -uprev)
    np.abs(ustep, out=out)
    np.maximum(out, uprev, out=out)
    np.negative(out, out=out)
    np.minimum(out, uprev, out=out)
    np.negative(out, out=out)

    np.multiply(out, reltol, out=out)
    np.add(out, abstol, out=out)
    np.divide(dz, out, out=out)
    return out
