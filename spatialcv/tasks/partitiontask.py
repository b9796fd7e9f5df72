"""Spatial fold partitioning task.

Layer 3: Tasks - User intent translation.

Provides the SpatialFoldPartitioner, which assigns observations to
geographically coherent folds and builds buffered train/test splits, and a
scikit-learn compatible splitter (SpatialKFold) wrapping the same logic.
"""

import logging
from typing import Any, Iterator, Optional, Union

import numpy as np
import pandas as pd
from sklearn.model_selection import BaseCrossValidator

from spatialcv.objects.folds import FoldAssignment, FoldSplit
from spatialcv.objects.observation import ObservationSet
from spatialcv.primitives.partitioning import (
    assign_folds,
    build_fold_splits,
    validate_partition_parameters,
)

logger = logging.getLogger(__name__)


class SpatialFoldPartitioner:
    """Assign observations to spatial folds and build buffered splits.

    Folds are formed by spatial blocking rather than independent random
    draws, so that each test fold occupies its own region. With a buffer
    distance, training observations closer than that distance to any test
    observation of the fold are dropped from the fold's training set.

    Example:
        >>> from spatialcv.tasks.partitiontask import SpatialFoldPartitioner
        >>> partitioner = SpatialFoldPartitioner(
        ...     n_folds=5, buffer_distance=100.0, random_state=42
        ... )
        >>> assignment = partitioner.partition(observations)
        >>> splits = partitioner.split(observations, assignment)
        >>> print([s.n_train for s in splits])
    """

    def __init__(
        self,
        n_folds: int = 5,
        buffer_distance: Optional[float] = None,
        method: str = "kmeans",
        random_state: Optional[int] = None,
        grid_shape: Optional[tuple[int, int]] = None,
    ) -> None:
        """Initialize the partitioner.

        Args:
            n_folds: Number of folds (k >= 2).
            buffer_distance: Minimum train/test separation in coordinate
                units. None or 0 disables buffering.
            method: Blocking policy ('kmeans', 'grid', or 'random' for the
                conventional non-spatial baseline).
            random_state: Seed for clustering / block shuffling.
            grid_shape: (rows, cols) for method='grid'.

        Raises:
            ConfigurationError: If any parameter is invalid.
        """
        validate_partition_parameters(n_folds, buffer_distance, method)
        self.n_folds = int(n_folds)
        self.buffer_distance = buffer_distance
        self.method = method
        self.random_state = random_state
        self.grid_shape = grid_shape

    def partition(self, observations: ObservationSet) -> FoldAssignment:
        """Assign every observation to exactly one fold.

        Raises:
            ConfigurationError: If n_folds exceeds the obtainable clusters.
            PartitionFailure: If the blocking yields an invalid assignment.
        """
        folds = assign_folds(
            observations.coordinates,
            self.n_folds,
            method=self.method,
            random_state=self.random_state,
            grid_shape=self.grid_shape,
        )
        return FoldAssignment(ids=observations.ids, folds=folds, n_folds=self.n_folds)

    def split(
        self,
        observations: ObservationSet,
        assignment: Optional[FoldAssignment] = None,
    ) -> list[FoldSplit]:
        """Build one train/test split per fold.

        Args:
            observations: Observations to split.
            assignment: Precomputed assignment; computed when omitted.

        Raises:
            InsufficientDataError: If buffering empties a training set.
        """
        if assignment is None:
            assignment = self.partition(observations)
        elif len(assignment) != len(observations):
            raise ValueError(
                f"assignment covers {len(assignment)} observations, "
                f"expected {len(observations)}"
            )
        return build_fold_splits(
            observations.coordinates,
            assignment.folds,
            assignment.n_folds,
            buffer_distance=self.buffer_distance,
        )

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"SpatialFoldPartitioner(n_folds={self.n_folds}, "
            f"buffer_distance={self.buffer_distance}, method='{self.method}', "
            f"random_state={self.random_state})"
        )


class SpatialKFold(BaseCrossValidator):
    """scikit-learn compatible spatial cross-validator.

    Usable anywhere scikit-learn accepts a ``cv`` argument
    (``cross_val_score``, ``GridSearchCV``). Coordinates are passed to the
    constructor or, when omitted, taken from the first two columns of ``X``.

    Example:
        >>> from sklearn.linear_model import LogisticRegression
        >>> from sklearn.model_selection import cross_val_score
        >>> cv = SpatialKFold(n_splits=5, coordinates=coords, random_state=0)
        >>> cross_val_score(LogisticRegression(), X, y, cv=cv, scoring="roc_auc")
    """

    def __init__(
        self,
        n_splits: int = 5,
        coordinates: Optional[np.ndarray] = None,
        buffer_distance: Optional[float] = None,
        method: str = "kmeans",
        random_state: Optional[int] = None,
        grid_shape: Optional[tuple[int, int]] = None,
    ) -> None:
        self.n_splits = n_splits
        self.coordinates = coordinates
        self.buffer_distance = buffer_distance
        self.method = method
        self.random_state = random_state
        self.grid_shape = grid_shape

    def _coordinates_for(self, X: Union[np.ndarray, pd.DataFrame]) -> np.ndarray:
        if self.coordinates is not None:
            coords = np.asarray(self.coordinates, dtype=float)
        elif isinstance(X, pd.DataFrame):
            coords = X.iloc[:, :2].to_numpy(dtype=float)
        else:
            coords = np.asarray(X, dtype=float)[:, :2]
        if len(coords) != len(X):
            raise ValueError(
                f"coordinates have {len(coords)} rows but X has {len(X)}"
            )
        return coords

    def split(
        self, X: Any, y: Any = None, groups: Any = None
    ) -> Iterator[tuple[np.ndarray, np.ndarray]]:
        """Yield (train_indices, test_indices) per fold."""
        validate_partition_parameters(self.n_splits, self.buffer_distance, self.method)
        coords = self._coordinates_for(X)
        folds = assign_folds(
            coords,
            self.n_splits,
            method=self.method,
            random_state=self.random_state,
            grid_shape=self.grid_shape,
        )
        for split in build_fold_splits(
            coords, folds, self.n_splits, buffer_distance=self.buffer_distance
        ):
            yield np.array(split.train_indices), np.array(split.test_indices)

    def get_n_splits(self, X: Any = None, y: Any = None, groups: Any = None) -> int:
        return self.n_splits
