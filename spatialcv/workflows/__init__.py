"""Layer 4: Workflows - I/O and end-to-end runs."""

from spatialcv.workflows.io import (
    observations_from_geodataframe,
    read_observations,
    write_scores,
)
from spatialcv.workflows.spatialcv import (
    RunState,
    SpatialCVRun,
    compare_cv_strategies,
    repeated_cv,
    run_spatial_cv,
    summarize_scores,
)

__all__ = [
    "RunState",
    "SpatialCVRun",
    "compare_cv_strategies",
    "observations_from_geodataframe",
    "read_observations",
    "repeated_cv",
    "run_spatial_cv",
    "summarize_scores",
    "write_scores",
]
