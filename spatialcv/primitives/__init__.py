"""Layer 2: Primitives - Pure operations.

Blocking, buffering, scoring and fold diagnostics. Primitives work with
Layer 1 objects and plain numpy arrays and hold no state between calls.
"""

from spatialcv.primitives.diagnostics import fold_separation, split_summary
from spatialcv.primitives.metrics import (
    PROBABILISTIC_METRICS,
    SCORERS,
    get_scorer,
)
from spatialcv.primitives.partitioning import (
    PARTITION_METHODS,
    assign_folds,
    buffer_training_indices,
    build_fold_splits,
    count_distinct_locations,
    grid_block_ids,
    grid_blocks,
    kmeans_blocks,
    random_folds,
    validate_partition_parameters,
)

__all__ = [
    "PARTITION_METHODS",
    "PROBABILISTIC_METRICS",
    "SCORERS",
    "assign_folds",
    "buffer_training_indices",
    "build_fold_splits",
    "count_distinct_locations",
    "fold_separation",
    "get_scorer",
    "grid_block_ids",
    "grid_blocks",
    "kmeans_blocks",
    "random_folds",
    "split_summary",
    "validate_partition_parameters",
]
