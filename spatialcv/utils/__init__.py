"""Utility modules for spatialcv."""

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
    format_dependency_error,
    format_parameter_error,
    raise_dependency_error,
    raise_parameter_error,
)
from spatialcv.utils.optional_imports import optional_import, optional_import_single

__all__ = [
    "optional_import",
    "optional_import_single",
    "SpatialCVError",
    "ConfigurationError",
    "DataValidationError",
    "DependencyError",
    "PartitionFailure",
    "InsufficientDataError",
    "FitFailure",
    "AggregateFailure",
    "EvaluationCancelled",
    "FoldFitWarning",
    "format_parameter_error",
    "format_dependency_error",
    "raise_parameter_error",
    "raise_dependency_error",
]
