"""Fold diagnostics.

Summaries used to check that spatial folds are actually separated before a
model comparison is trusted.
"""

from typing import Sequence

import numpy as np
import pandas as pd
from scipy.spatial.distance import cdist

from spatialcv.objects.folds import FoldSplit
from spatialcv.objects.observation import ObservationSet


def fold_separation(coordinates: np.ndarray, split: FoldSplit) -> float:
    """Minimum Euclidean distance between the training and test sets of a fold.

    Returns:
        Minimum distance, or inf when either set is empty.
    """
    coords = np.asarray(coordinates, dtype=float)
    if split.n_train == 0 or split.n_test == 0:
        return float("inf")
    distances = cdist(coords[split.train_indices], coords[split.test_indices])
    return float(distances.min())


def split_summary(
    observations: ObservationSet, splits: Sequence[FoldSplit]
) -> pd.DataFrame:
    """Per-fold sizes, buffer removals and train/test separation.

    For binary labels a ``test_positive_share`` column gives the share of
    positive labels in each test fold.
    """
    labels = observations.labels
    binary = len(np.unique(labels)) == 2
    positive = np.unique(labels).max() if binary else None

    rows = []
    for split in splits:
        row = {
            "fold": split.fold,
            "n_train": split.n_train,
            "n_test": split.n_test,
            "n_buffered": split.n_buffered,
            "min_separation": fold_separation(observations.coordinates, split),
        }
        if binary:
            row["test_positive_share"] = float(
                np.mean(labels[split.test_indices] == positive)
            )
        rows.append(row)
    return pd.DataFrame(rows)
