"""Linear algebra building blocks."""

from nlfunctional.algebra.operators import (
    IDENTITY,
    IdentityOperator,
    LinearOperator,
    MassOperator,
    MatrixOperator,
    as_operator,
)
from nlfunctional.algebra.qr import IncrementalQR
from nlfunctional.algebra.residuals import (
    calculate_residuals,
    calculate_residuals_inplace,
    ode_default_norm,
)

__all__ = [
    "IDENTITY",
    "IdentityOperator",
    "LinearOperator",
    "MassOperator",
    "MatrixOperator",
    "as_operator",
    "IncrementalQR",
    "calculate_residuals",
    "calculate_residuals_inplace",
    "ode_default_norm",
]
