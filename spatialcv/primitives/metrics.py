"""Scoring functions for fold evaluation.

Every scorer takes ``(y_true, predictions)`` and returns a float.
"""

from typing import Callable, Union

import numpy as np
from sklearn.metrics import (
    accuracy_score,
    brier_score_loss,
    mean_absolute_error,
    mean_squared_error,
    r2_score,
    roc_auc_score,
)

from spatialcv.utils.errors import raise_parameter_error

Scorer = Callable[[np.ndarray, np.ndarray], float]


def auroc(y_true: np.ndarray, predictions: np.ndarray) -> float:
    """Area under the ROC curve for binary labels and positive-class scores."""
    return float(roc_auc_score(y_true, predictions))


def accuracy(y_true: np.ndarray, predictions: np.ndarray) -> float:
    return float(accuracy_score(y_true, predictions))


def brier(y_true: np.ndarray, predictions: np.ndarray) -> float:
    return float(brier_score_loss(y_true, predictions))


def rmse(y_true: np.ndarray, predictions: np.ndarray) -> float:
    return float(np.sqrt(mean_squared_error(y_true, predictions)))


def mae(y_true: np.ndarray, predictions: np.ndarray) -> float:
    return float(mean_absolute_error(y_true, predictions))


def r2(y_true: np.ndarray, predictions: np.ndarray) -> float:
    return float(r2_score(y_true, predictions))


SCORERS: dict[str, Scorer] = {
    "auroc": auroc,
    "accuracy": accuracy,
    "brier": brier,
    "rmse": rmse,
    "mae": mae,
    "r2": r2,
}

# Metrics that need a continuous score rather than a hard class label
PROBABILISTIC_METRICS = frozenset({"auroc", "brier"})


def get_scorer(scoring: Union[str, Scorer]) -> tuple[str, Scorer]:
    """Resolve a metric name or callable to ``(name, scorer)``.

    Raises:
        ConfigurationError: If the name is not a registered metric.
    """
    if callable(scoring):
        return getattr(scoring, "__name__", "custom"), scoring
    key = str(scoring).lower()
    if key not in SCORERS:
        raise_parameter_error("scoring", scoring, valid_values=sorted(SCORERS))
    return key, SCORERS[key]
