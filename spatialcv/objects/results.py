"""Score records produced by cross-validation runs."""

from dataclasses import dataclass, field
from typing import Optional

import numpy as np
import pandas as pd

from spatialcv.utils.errors import FitFailure


@dataclass(frozen=True)
class FoldScore:
    """Score of one fold.

    Attributes:
        fold: Fold index.
        score: Performance value, or None when the fold failed.
        n_train: Number of training observations.
        n_test: Number of test observations.
        n_buffered: Observations removed from training by the buffer.
        error: Failure message when score is None.
        failure: The FitFailure raised for the fold; its ``cause`` is the
            original exception.
    """

    fold: int
    score: Optional[float]
    n_train: int
    n_test: int
    n_buffered: int = 0
    error: Optional[str] = None
    failure: Optional[FitFailure] = field(default=None, compare=False, repr=False)

    @property
    def is_missing(self) -> bool:
        return self.score is None


@dataclass(frozen=True)
class EvaluationResult:
    """Per-fold scores of a cross-validation run and their aggregate.

    Attributes:
        scores: FoldScore records ordered by fold index.
        metric: Name of the scoring metric.
        mean: Mean of the non-missing scores.
        std: Sample standard deviation (ddof=1) of the non-missing scores,
            0.0 when a single score is available.
        warnings: Messages for folds that could not be scored.
    """

    scores: tuple[FoldScore, ...]
    metric: str
    mean: float
    std: float
    warnings: tuple[str, ...] = field(default_factory=tuple)

    @property
    def n_folds(self) -> int:
        return len(self.scores)

    @property
    def n_missing(self) -> int:
        return sum(1 for s in self.scores if s.is_missing)

    @property
    def missing_folds(self) -> list[int]:
        return [s.fold for s in self.scores if s.is_missing]

    def scores_array(self) -> np.ndarray:
        """Per-fold scores with NaN for missing folds."""
        return np.array(
            [np.nan if s.score is None else s.score for s in self.scores], dtype=float
        )

    def to_dataframe(self) -> pd.DataFrame:
        """One row per fold."""
        return pd.DataFrame(
            {
                "fold": [s.fold for s in self.scores],
                "score": self.scores_array(),
                "n_train": [s.n_train for s in self.scores],
                "n_test": [s.n_test for s in self.scores],
                "n_buffered": [s.n_buffered for s in self.scores],
                "error": [s.error for s in self.scores],
            }
        )

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"EvaluationResult({self.metric}: mean={self.mean:.4f}, "
            f"std={self.std:.4f}, folds={self.n_folds}, missing={self.n_missing})"
        )
