"""Standardized errors for spatialcv.

Provides the exception hierarchy raised by partitioning and evaluation plus
helpers for consistent error message formatting.
"""

from typing import Any, Optional


class SpatialCVError(Exception):
    """Base exception for spatialcv errors."""

    def __init__(
        self,
        message: str,
        suggestion: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ):
        """Initialize spatialcv error.

        Args:
            message: Primary error message.
            suggestion: Optional suggestion for fixing the error.
            details: Optional dictionary with additional error details.
        """
        super().__init__(message)
        self.message = message
        self.suggestion = suggestion
        self.details = details or {}

    def __str__(self) -> str:
        """Format error message with suggestion if available."""
        if self.suggestion:
            return f"{self.message}\n\nSuggestion: {self.suggestion}"
        return self.message


class ConfigurationError(SpatialCVError, ValueError):
    """Error raised when run parameters (folds, buffer, method, metric) are invalid."""

    pass


class DataValidationError(SpatialCVError, ValueError):
    """Error raised when observation data is malformed."""

    pass


class DependencyError(SpatialCVError, ImportError):
    """Error raised when an optional dependency is missing."""

    pass


class PartitionFailure(SpatialCVError):
    """Fatal error: no valid fold assignment could be produced."""

    pass


class InsufficientDataError(PartitionFailure):
    """A fold would have an empty training or test set."""

    pass


class FitFailure(SpatialCVError):
    """Fitting, predicting or scoring failed for a single fold."""

    def __init__(self, fold: int, cause: BaseException):
        super().__init__(
            f"Fold {fold} failed: {type(cause).__name__}: {cause}",
            details={"fold": fold},
        )
        self.fold = fold
        self.cause = cause

    def __reduce__(self):
        # Returned from process-pool workers inside FoldScore
        return (type(self), (self.fold, self.cause))


class AggregateFailure(SpatialCVError):
    """Every fold failed, so no aggregate score exists."""

    pass


class EvaluationCancelled(SpatialCVError):
    """The run was cancelled between fold evaluations."""

    pass


class FoldFitWarning(UserWarning):
    """Warning emitted for each fold that could not be scored."""

    pass


def format_parameter_error(
    parameter_name: str,
    value: Any,
    valid_values: Optional[list[str]] = None,
    constraint: Optional[str] = None,
) -> str:
    """Format a standardized parameter error message.

    Args:
        parameter_name: Name of the invalid parameter.
        value: Invalid value that was provided.
        valid_values: List of valid values (optional).
        constraint: Constraint that was violated (optional).

    Returns:
        Formatted error message string.
    """
    parts = [f"Invalid value for parameter '{parameter_name}': {value}"]
    if valid_values:
        parts.append(f"Valid values: {', '.join(map(str, valid_values))}")
    if constraint:
        parts.append(f"Constraint: {constraint}")
    return "\n".join(parts)


def format_dependency_error(
    dependency_name: str,
    install_command: Optional[str] = None,
    optional_group: Optional[str] = None,
) -> str:
    """Format a standardized dependency error message.

    Args:
        dependency_name: Name of the missing dependency.
        install_command: Command to install the dependency (optional).
        optional_group: Optional dependency group name (optional).

    Returns:
        Formatted error message string.
    """
    parts = [f"Missing required dependency: {dependency_name}"]
    if optional_group:
        parts.append(f"Install with: pip install spatialcv[{optional_group}]")
    elif install_command:
        parts.append(f"Install with: {install_command}")
    else:
        parts.append(f"Install with: pip install {dependency_name}")
    return "\n".join(parts)


def raise_parameter_error(
    parameter_name: str,
    value: Any,
    valid_values: Optional[list[str]] = None,
    constraint: Optional[str] = None,
    suggestion: Optional[str] = None,
) -> None:
    """Raise a standardized parameter error.

    Raises:
        ConfigurationError: Always raises this exception.
    """
    error_msg = format_parameter_error(
        parameter_name, value, valid_values, constraint
    )
    raise ConfigurationError(
        error_msg,
        suggestion=suggestion,
        details={"parameter": parameter_name, "value": value},
    )


def raise_dependency_error(
    dependency_name: str,
    install_command: Optional[str] = None,
    optional_group: Optional[str] = None,
) -> None:
    """Raise a standardized dependency error.

    Raises:
        DependencyError: Always raises this exception.
    """
    error_msg = format_dependency_error(dependency_name, install_command, optional_group)
    raise DependencyError(error_msg)
