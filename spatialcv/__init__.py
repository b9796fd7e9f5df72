"""spatialcv: spatial cross-validation for spatially autocorrelated data.

Observations are partitioned into geographically coherent (optionally
buffered) folds, a model is fitted per fold and scored on the held-out fold,
and the per-fold scores are aggregated.

Layers:
- objects: immutable data (ObservationSet, FoldAssignment, EvaluationResult)
- primitives: blocking, buffering, metrics, diagnostics
- tasks: SpatialFoldPartitioner, ModelEvaluator, SpatialKFold
- workflows: I/O, runs, repeated CV and strategy comparison
"""

import logging

from spatialcv.config import ConfigManager, SpatialCVConfig, load_config
from spatialcv.objects import (
    EvaluationResult,
    FoldAssignment,
    FoldScore,
    FoldSplit,
    Observation,
    ObservationSet,
)
from spatialcv.tasks import (
    FunctionModel,
    ModelEvaluator,
    SklearnModel,
    SpatialFoldPartitioner,
    SpatialKFold,
)
from spatialcv.utils.errors import (
    AggregateFailure,
    ConfigurationError,
    DataValidationError,
    DependencyError,
    EvaluationCancelled,
    FitFailure,
    FoldFitWarning,
    InsufficientDataError,
    PartitionFailure,
    SpatialCVError,
)
from spatialcv.workflows import (
    RunState,
    SpatialCVRun,
    compare_cv_strategies,
    read_observations,
    repeated_cv,
    run_spatial_cv,
    summarize_scores,
)

logging.getLogger(__name__).addHandler(logging.NullHandler())

__version__ = "0.1.0"

__all__ = [
    "AggregateFailure",
    "ConfigManager",
    "ConfigurationError",
    "DataValidationError",
    "DependencyError",
    "EvaluationCancelled",
    "EvaluationResult",
    "FitFailure",
    "FoldAssignment",
    "FoldFitWarning",
    "FoldScore",
    "FoldSplit",
    "FunctionModel",
    "InsufficientDataError",
    "ModelEvaluator",
    "Observation",
    "ObservationSet",
    "PartitionFailure",
    "RunState",
    "SklearnModel",
    "SpatialCVConfig",
    "SpatialCVError",
    "SpatialCVRun",
    "SpatialFoldPartitioner",
    "SpatialKFold",
    "compare_cv_strategies",
    "load_config",
    "read_observations",
    "repeated_cv",
    "run_spatial_cv",
    "summarize_scores",
]
