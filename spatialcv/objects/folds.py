"""Fold objects: assignments of observations to folds and per-fold splits."""

from dataclasses import dataclass
from typing import Any

import numpy as np


@dataclass(frozen=True)
class FoldAssignment:
    """Mapping from observation id to fold index in [0, n_folds).

    Every observation belongs to exactly one fold and every fold is non-empty.

    Attributes:
        ids: Observation identifiers, in ObservationSet order.
        folds: Fold index per observation.
        n_folds: Number of folds (k).
    """

    ids: np.ndarray
    folds: np.ndarray
    n_folds: int

    def __post_init__(self) -> None:
        """Validate the partition."""
        ids = np.asarray(self.ids)
        folds = np.asarray(self.folds, dtype=int)

        if folds.ndim != 1 or len(folds) != len(ids):
            raise ValueError(
                f"folds must be 1D with one entry per id, got {folds.shape} "
                f"for {len(ids)} ids"
            )
        if self.n_folds < 2:
            raise ValueError(f"n_folds must be >= 2, got {self.n_folds}")
        if folds.size and (folds.min() < 0 or folds.max() >= self.n_folds):
            raise ValueError(f"fold indices must lie in [0, {self.n_folds})")
        sizes = np.bincount(folds, minlength=self.n_folds)
        empty = np.flatnonzero(sizes == 0)
        if empty.size:
            raise ValueError(f"folds {empty.tolist()} are empty")

        ids = ids.copy()
        folds = folds.copy()
        ids.setflags(write=False)
        folds.setflags(write=False)
        object.__setattr__(self, "ids", ids)
        object.__setattr__(self, "folds", folds)

    def __len__(self) -> int:
        return len(self.folds)

    def members(self, fold: int) -> np.ndarray:
        """Positional indices of the observations in ``fold``."""
        if not 0 <= fold < self.n_folds:
            raise IndexError(f"fold {fold} out of range [0, {self.n_folds})")
        return np.flatnonzero(self.folds == fold)

    def fold_sizes(self) -> np.ndarray:
        return np.bincount(self.folds, minlength=self.n_folds)

    def as_dict(self) -> dict[Any, int]:
        """Observation id to fold index."""
        return {
            (i.item() if hasattr(i, "item") else i): int(f)
            for i, f in zip(self.ids, self.folds)
        }

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"FoldAssignment(n_observations={len(self)}, n_folds={self.n_folds}, "
            f"sizes={self.fold_sizes().tolist()})"
        )


@dataclass(frozen=True)
class FoldSplit:
    """Training and test indices for one fold.

    Attributes:
        fold: Fold index.
        train_indices: Positional indices used for fitting.
        test_indices: Positional indices held out for scoring.
        buffered_indices: Positional indices dropped from training because
            they lie within the buffer distance of a test observation.
    """

    fold: int
    train_indices: np.ndarray
    test_indices: np.ndarray
    buffered_indices: np.ndarray

    def __post_init__(self) -> None:
        """Validate FoldSplit parameters."""
        train = np.array(self.train_indices, dtype=int)
        test = np.array(self.test_indices, dtype=int)
        buffered = np.array(self.buffered_indices, dtype=int)

        if np.intersect1d(train, test).size:
            raise ValueError(f"fold {self.fold}: training and test sets overlap")
        if np.intersect1d(train, buffered).size:
            raise ValueError(
                f"fold {self.fold}: buffered observations remain in training set"
            )
        for name, arr in (
            ("train_indices", train),
            ("test_indices", test),
            ("buffered_indices", buffered),
        ):
            arr.setflags(write=False)
            object.__setattr__(self, name, arr)

    @property
    def n_train(self) -> int:
        return len(self.train_indices)

    @property
    def n_test(self) -> int:
        return len(self.test_indices)

    @property
    def n_buffered(self) -> int:
        return len(self.buffered_indices)

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"FoldSplit(fold={self.fold}, n_train={self.n_train}, "
            f"n_test={self.n_test}, n_buffered={self.n_buffered})"
        )
