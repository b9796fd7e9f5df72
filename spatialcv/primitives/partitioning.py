"""Spatial partitioning primitives.

Pure operations that turn coordinates into fold labels and fold labels into
buffered train/test splits. Three blocking policies are provided:

- k-means clustering of the coordinates (geographically coherent folds),
- systematic blocking on a regular grid, blocks dealt to folds at random,
- independent random assignment (conventional, non-spatial CV baseline).
"""

import logging
import math
from typing import Optional

import numpy as np
from sklearn.cluster import KMeans
from sklearn.model_selection import KFold
from sklearn.neighbors import KDTree

from spatialcv.objects.folds import FoldSplit
from spatialcv.utils.errors import (
    ConfigurationError,
    InsufficientDataError,
    PartitionFailure,
    raise_parameter_error,
)

logger = logging.getLogger(__name__)

PARTITION_METHODS = ("kmeans", "grid", "random")


def _as_coordinates(coordinates: np.ndarray) -> np.ndarray:
    coords = np.asarray(coordinates, dtype=float)
    if coords.ndim != 2 or coords.shape[1] != 2:
        raise ValueError(
            f"coordinates must be 2D array with shape (n, 2), got {coords.shape}"
        )
    return coords


def _relabel_by_first_appearance(labels: np.ndarray) -> np.ndarray:
    """Renumber labels 0..m-1 in order of first appearance."""
    _, first = np.unique(labels, return_index=True)
    order = labels[np.sort(first)]
    mapping = {old: new for new, old in enumerate(order)}
    return np.array([mapping[label] for label in labels], dtype=int)


def count_distinct_locations(coordinates: np.ndarray) -> int:
    """Number of distinct coordinate pairs."""
    coords = _as_coordinates(coordinates)
    return int(np.unique(coords, axis=0).shape[0])


def validate_partition_parameters(
    n_folds: int,
    buffer_distance: Optional[float] = None,
    method: str = "kmeans",
) -> None:
    """Check fold count, buffer distance and method.

    Raises:
        ConfigurationError: If any parameter is invalid.
    """
    if isinstance(n_folds, bool) or not isinstance(n_folds, (int, np.integer)):
        raise_parameter_error("n_folds", n_folds, constraint="must be an integer")
    if n_folds < 2:
        raise_parameter_error(
            "n_folds",
            n_folds,
            constraint="n_folds >= 2",
            suggestion="Cross-validation needs at least two folds.",
        )
    if buffer_distance is not None:
        if not np.isfinite(buffer_distance) or buffer_distance < 0:
            raise_parameter_error(
                "buffer_distance",
                buffer_distance,
                constraint="finite and >= 0",
                suggestion="Pass None or 0 to disable buffering.",
            )
    if method not in PARTITION_METHODS:
        raise_parameter_error("method", method, valid_values=list(PARTITION_METHODS))


def kmeans_blocks(
    coordinates: np.ndarray,
    n_folds: int,
    random_state: Optional[int] = None,
) -> np.ndarray:
    """Assign folds by k-means clustering of the coordinates.

    Args:
        coordinates: Array of shape (n, 2).
        n_folds: Number of clusters (folds).
        random_state: Seed for the k-means initialisation.

    Returns:
        Fold index per observation, numbered in order of first appearance.

    Raises:
        ConfigurationError: If fewer than n_folds distinct locations exist.
        PartitionFailure: If clustering yields fewer than n_folds clusters.
    """
    coords = _as_coordinates(coordinates)
    n_distinct = count_distinct_locations(coords)
    if n_folds > n_distinct:
        raise ConfigurationError(
            f"Cannot form {n_folds} spatial folds from {n_distinct} distinct locations",
            suggestion=f"Use n_folds <= {n_distinct}.",
            details={"n_folds": n_folds, "n_distinct_locations": n_distinct},
        )

    try:
        labels = KMeans(
            n_clusters=n_folds, random_state=random_state, n_init=10
        ).fit_predict(coords)
    except ValueError as e:
        raise PartitionFailure(f"k-means blocking failed: {e}") from e

    n_clusters = len(np.unique(labels))
    if n_clusters < n_folds:
        raise PartitionFailure(
            f"k-means produced {n_clusters} non-empty clusters, expected {n_folds}"
        )
    return _relabel_by_first_appearance(labels)


def default_grid_shape(n_folds: int) -> tuple[int, int]:
    side = 2 * math.ceil(math.sqrt(n_folds))
    return side, side


def grid_block_ids(
    coordinates: np.ndarray, grid_shape: tuple[int, int]
) -> np.ndarray:
    """Index of the regular grid cell each coordinate falls in.

    The grid spans the bounding box of the coordinates; points on the upper
    edge belong to the last row/column.
    """
    coords = _as_coordinates(coordinates)
    n_rows, n_cols = grid_shape
    if n_rows < 1 or n_cols < 1:
        raise_parameter_error("grid_shape", grid_shape, constraint="rows, cols >= 1")

    mins = coords.min(axis=0)
    extent = coords.max(axis=0) - mins
    cells = np.zeros_like(coords, dtype=int)
    for axis, n_cells in ((0, n_cols), (1, n_rows)):
        if extent[axis] > 0:
            scaled = (coords[:, axis] - mins[axis]) / extent[axis] * n_cells
            cells[:, axis] = np.clip(np.floor(scaled).astype(int), 0, n_cells - 1)
    return cells[:, 1] * n_cols + cells[:, 0]


def grid_blocks(
    coordinates: np.ndarray,
    n_folds: int,
    random_state: Optional[int] = None,
    grid_shape: Optional[tuple[int, int]] = None,
) -> np.ndarray:
    """Assign folds by systematic spatial blocking.

    Non-empty grid cells are shuffled with a seeded generator and dealt to
    folds round-robin, so every fold receives whole blocks.

    Raises:
        ConfigurationError: If fewer than n_folds grid cells hold observations.
    """
    coords = _as_coordinates(coordinates)
    shape = grid_shape or default_grid_shape(n_folds)
    block_ids = grid_block_ids(coords, shape)

    occupied = np.unique(block_ids)
    if n_folds > len(occupied):
        raise ConfigurationError(
            f"Cannot form {n_folds} spatial folds from {len(occupied)} occupied "
            f"blocks of a {shape[0]}x{shape[1]} grid",
            suggestion="Use fewer folds or a finer grid_shape.",
            details={"n_folds": n_folds, "n_blocks": len(occupied)},
        )

    rng = np.random.default_rng(random_state)
    shuffled = rng.permutation(occupied)
    block_to_fold = {block: i % n_folds for i, block in enumerate(shuffled)}
    return np.array([block_to_fold[b] for b in block_ids], dtype=int)


def random_folds(
    n_observations: int,
    n_folds: int,
    random_state: Optional[int] = None,
) -> np.ndarray:
    """Conventional CV: independent random fold assignment ignoring location."""
    if n_folds > n_observations:
        raise ConfigurationError(
            f"Cannot form {n_folds} folds from {n_observations} observations",
            suggestion=f"Use n_folds <= {n_observations}.",
        )
    folds = np.empty(n_observations, dtype=int)
    kf = KFold(n_splits=n_folds, shuffle=True, random_state=random_state)
    for fold, (_, test_idx) in enumerate(kf.split(np.zeros(n_observations))):
        folds[test_idx] = fold
    return folds


def assign_folds(
    coordinates: np.ndarray,
    n_folds: int,
    method: str = "kmeans",
    random_state: Optional[int] = None,
    grid_shape: Optional[tuple[int, int]] = None,
) -> np.ndarray:
    """Dispatch to the blocking policy named by ``method``."""
    validate_partition_parameters(n_folds, None, method)
    coords = _as_coordinates(coordinates)

    if method == "kmeans":
        folds = kmeans_blocks(coords, n_folds, random_state)
    elif method == "grid":
        folds = grid_blocks(coords, n_folds, random_state, grid_shape)
    else:
        folds = random_folds(len(coords), n_folds, random_state)

    if len(np.unique(folds)) != n_folds:
        raise PartitionFailure(
            f"{method} blocking produced an empty fold for n_folds={n_folds}"
        )
    logger.info(
        f"Assigned {len(coords)} observations to {n_folds} folds using '{method}' "
        f"(sizes: {np.bincount(folds, minlength=n_folds).tolist()})"
    )
    return folds


def buffer_training_indices(
    coordinates: np.ndarray,
    candidate_indices: np.ndarray,
    test_indices: np.ndarray,
    buffer_distance: Optional[float],
) -> tuple[np.ndarray, np.ndarray]:
    """Drop training candidates closer than ``buffer_distance`` to any test point.

    Args:
        coordinates: Array of shape (n, 2).
        candidate_indices: Positional indices eligible for training.
        test_indices: Positional indices of the test fold.
        buffer_distance: Minimum Euclidean distance kept between training and
            test observations. None or 0 disables buffering.

    Returns:
        Tuple of (kept training indices, removed indices).
    """
    candidates = np.asarray(candidate_indices, dtype=int)
    test = np.asarray(test_indices, dtype=int)
    if not buffer_distance or len(candidates) == 0 or len(test) == 0:
        return candidates, np.empty(0, dtype=int)

    coords = _as_coordinates(coordinates)
    tree = KDTree(coords[test])
    nearest, _ = tree.query(coords[candidates], k=1)
    keep = nearest[:, 0] >= buffer_distance
    return candidates[keep], candidates[~keep]


def build_fold_splits(
    coordinates: np.ndarray,
    folds: np.ndarray,
    n_folds: int,
    buffer_distance: Optional[float] = None,
) -> list[FoldSplit]:
    """Turn a fold assignment into one buffered train/test split per fold.

    Raises:
        InsufficientDataError: If any fold ends up with an empty test set or,
            after buffering, an empty training set.
    """
    coords = _as_coordinates(coordinates)
    folds = np.asarray(folds, dtype=int)
    splits = []
    for fold in range(n_folds):
        test_idx = np.flatnonzero(folds == fold)
        if len(test_idx) == 0:
            raise InsufficientDataError(f"Fold {fold} has no test observations")

        candidates = np.flatnonzero(folds != fold)
        train_idx, buffered_idx = buffer_training_indices(
            coords, candidates, test_idx, buffer_distance
        )
        if len(train_idx) == 0:
            raise InsufficientDataError(
                f"Buffer distance {buffer_distance} removes every training "
                f"observation for fold {fold}",
                suggestion="Reduce buffer_distance or use fewer folds.",
                details={"fold": fold, "n_buffered": len(buffered_idx)},
            )
        if len(buffered_idx):
            share = len(buffered_idx) / len(candidates)
            log = logger.warning if share > 0.5 else logger.debug
            log(
                f"Fold {fold}: buffer removed {len(buffered_idx)} of "
                f"{len(candidates)} training observations"
            )
        splits.append(
            FoldSplit(
                fold=fold,
                train_indices=train_idx,
                test_indices=test_idx,
                buffered_indices=buffered_idx,
            )
        )
    return splits
