"""Incrementally maintained thin QR factorization."""

from typing import Optional
import numpy as np
import scipy.linalg
from numpy.typing import NDArray


class IncrementalQR:
    """
    Thin QR factorization A = Q R of a tall matrix whose columns arrive one
    at a time and leave oldest-first.

    Q has shape (n, capacity) and R (capacity, capacity); only the leading
    k columns of Q and the leading k × k block of R are meaningful, where k
    is the number of active columns tracked by the caller. Q is stored in
    Fortran order so that each column is contiguous.
    """

    def __init__(self, n: int, capacity: int):
        self.Q: NDArray = np.zeros((n, capacity), order="F")
        self.R: NDArray = np.zeros((capacity, capacity))
        self._work: NDArray = np.zeros(n)
        self._rot = scipy.linalg.get_blas_funcs("rot", (self.Q,))

    @property
    def n(self) -> int:
        return self.Q.shape[0]

    @property
    def capacity(self) -> int:
        return self.Q.shape[1]

    def append_column(self, v: NDArray, k: int) -> None:
        """
        Add v as column k-1 (1 <= k <= capacity), assuming columns
        0..k-2 are already factorized.

        Modified Gram-Schmidt against the existing columns; v is overwritten.
        A v in the span of the existing columns yields a zero diagonal in R
        and non-finite entries in Q.
        """
        Q, R, work = self.Q, self.R, self._work
        j = k - 1
        for i in range(j):
            q = Q[:, i]
            r = np.dot(q, v)
            R[i, j] = r
            np.multiply(q, r, out=work)
            np.subtract(v, work, out=v)
        nrm = np.linalg.norm(v)
        R[j, j] = nrm
        with np.errstate(divide="ignore", invalid="ignore"):
            np.divide(v, nrm, out=Q[:, j])

    def evict_oldest(self, k: int) -> None:
        """
        Remove column 0 from the leading k columns, leaving a k-1 column
        factorization.

        Deleting the first column of R leaves an upper Hessenberg block;
        Givens rotations restore triangularity and are applied to Q from
        the right so that Q R is unchanged.
        """
        Q, R = self.Q, self.R
        rot = self._rot
        for i in range(1, k):
            a, b = R[i - 1, i], R[i, i]
            rho = np.hypot(a, b)
            if rho == 0.0:
                continue
            c, s = a / rho, b / rho

            # rows i-1, i of R from column i on; earlier columns are zero there
            R[i - 1, i:k], R[i, i:k] = rot(
                R[i - 1, i:k], R[i, i:k], c, s, overwrite_x=True, overwrite_y=True
            )
            Q[:, i - 1], Q[:, i] = rot(
                Q[:, i - 1], Q[:, i], c, s, overwrite_x=True, overwrite_y=True
            )

        for j in range(k - 1):
            R[: j + 1, j] = R[: j + 1, j + 1]
        R[:k, k - 1] = 0.0
        R[k - 1, :k] = 0.0
        Q[:, k - 1] = 0.0

    def solve_least_squares(
        self, b: NDArray, k: int, out: Optional[NDArray] = None
    ) -> NDArray:
        """
        Minimize ||A[:, :k] x - b|| via x = R[:k, :k]^{-1} Q[:, :k]^T b.

        Back-substitution runs in place in out[:k]. A zero diagonal in R is
        not checked for; it yields inf or NaN coefficients.

        Args:
            b: Right-hand side of length n
            k: Number of active columns
            out: Optional buffer of length >= k receiving x in out[:k]

        Returns:
            The k coefficients (a view into out when given)
        """
        if out is None:
            out = np.empty(k)
        x = out[:k]
        np.dot(self.Q[:, :k].T, b, out=x)
        R = self.R
        with np.errstate(divide="ignore", invalid="ignore"):
            for i in range(k - 1, -1, -1):
                x[i] = (x[i] - np.dot(R[i, i + 1 : k], x[i + 1 : k])) / R[i, i]
        return x
