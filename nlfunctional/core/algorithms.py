"""Nonlinear solver algorithm configuration."""

from dataclasses import dataclass


@dataclass(frozen=True)
class NLFunctional:
    """Plain fixed-point (Picard) iteration."""

    max_iter: int = 10

    def __post_init__(self) -> None:
        if self.max_iter < 1:
            raise ValueError(f"max_iter must be >= 1, got {self.max_iter}")


@dataclass(frozen=True)
class NLAnderson:
    """
    Fixed-point iteration accelerated by Anderson mixing.

    Attributes:
        max_iter: Iteration cap of the outer loop; also bounds the history
        max_history: Number of increments kept in the sliding window
        aa_start: Number of plain iterations before mixing starts
    """

    max_iter: int = 10
    max_history: int = 5
    aa_start: int = 1

    def __post_init__(self) -> None:
        if self.max_iter < 1:
            raise ValueError(f"max_iter must be >= 1, got {self.max_iter}")
        if self.max_history < 1:
            raise ValueError(f"max_history must be >= 1, got {self.max_history}")
        if self.aa_start < 0:
            raise ValueError(f"aa_start must be >= 0, got {self.aa_start}")

    def history_capacity(self, n: int) -> int:
        """Admissible number of stored increments for state length n."""
        return min(self.max_history, self.max_iter, n)
