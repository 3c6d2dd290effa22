"""Mass-matrix operator wrappers."""

from typing import Any, Callable, Optional, Protocol
import numpy as np
import scipy.sparse
from numpy.typing import NDArray


class MassOperator(Protocol):
    """
    Linear operator M applied in the residual M·z.

    The residual evaluator branches once on is_identity; every other
    operator goes through apply.
    """

    is_identity: bool

    def apply(self, v: NDArray, out: Optional[NDArray] = None) -> NDArray:
        """Compute M @ v, writing into out when given."""
        ...


class IdentityOperator:
    """Identity sentinel for explicit-form ODEs u' = f(u)."""

    is_identity = True

    def apply(self, v: NDArray, out: Optional[NDArray] = None) -> NDArray:
        if out is None:
            return v.copy()
        np.copyto(out, v)
        return out

    def __matmul__(self, x: NDArray) -> NDArray:
        return self.apply(x)

    def __repr__(self) -> str:
        return "IDENTITY"


IDENTITY = IdentityOperator()


class LinearOperator:
    """
    Matrix-free linear operator wrapper.
    Useful for large-scale problems with structured mass matrices.
    """

    is_identity = False

    def __init__(
        self,
        shape: tuple[int, int],
        matvec: Callable[[NDArray], NDArray],
    ):
        """
        Initialize linear operator.

        Args:
            shape: (n, n) dimensions
            matvec: Function computing M @ x
        """
        self.shape = shape
        self._matvec = matvec

    def apply(self, v: NDArray, out: Optional[NDArray] = None) -> NDArray:
        """Compute M @ v."""
        result = self._matvec(v)
        if out is None:
            return result
        np.copyto(out, result)
        return out

    def __matmul__(self, x: NDArray) -> NDArray:
        """Support M @ x syntax."""
        return self.apply(x)


class MatrixOperator:
    """Dense NumPy or scipy.sparse mass matrix."""

    is_identity = False

    def __init__(self, matrix: Any):
        if matrix.ndim != 2 or matrix.shape[0] != matrix.shape[1]:
            raise ValueError(f"mass matrix must be square, got shape {matrix.shape}")
        self.matrix = matrix
        self.shape = matrix.shape
        self._dense = isinstance(matrix, np.ndarray)

    def apply(self, v: NDArray, out: Optional[NDArray] = None) -> NDArray:
        """Compute M @ v."""
        if out is None:
            return self.matrix @ v
        if self._dense:
            np.dot(self.matrix, v, out=out)
        else:
            out[...] = self.matrix @ v
        return out

    def __matmul__(self, x: NDArray) -> NDArray:
        return self.apply(x)


def as_operator(mass_matrix: Any) -> MassOperator:
    """
    Wrap a user-supplied mass matrix.

    None, the IDENTITY sentinel and a dense identity matrix all map to
    IDENTITY so the residual evaluator takes the same branch for them.
    """
    if mass_matrix is None or mass_matrix is IDENTITY:
        return IDENTITY
    if isinstance(mass_matrix, (IdentityOperator, LinearOperator, MatrixOperator)):
        return mass_matrix
    if scipy.sparse.issparse(mass_matrix):
        return MatrixOperator(mass_matrix)

    matrix = np.asarray(mass_matrix)
    if matrix.ndim == 2 and matrix.shape[0] == matrix.shape[1]:
        if np.array_equal(matrix, np.eye(matrix.shape[0])):
            return IDENTITY
    return MatrixOperator(matrix)
