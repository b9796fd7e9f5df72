"""Model evaluation task.

Layer 3: Tasks - User intent translation.

Fits a model on every fold's training set, scores it on the held-out fold and
aggregates the per-fold scores. A fold that cannot be fitted or scored is
recorded as missing and reported with a FoldFitWarning; the remaining folds
still run.
"""

import logging
import multiprocessing as mp
import threading
import warnings
from multiprocessing.pool import ThreadPool
from typing import Any, Callable, Optional, Protocol, Sequence, Union

import numpy as np
import pandas as pd
from sklearn.base import clone

from spatialcv.objects.folds import FoldSplit
from spatialcv.objects.observation import ObservationSet
from spatialcv.objects.results import EvaluationResult, FoldScore
from spatialcv.primitives.metrics import PROBABILISTIC_METRICS, Scorer, get_scorer
from spatialcv.utils.errors import (
    AggregateFailure,
    EvaluationCancelled,
    FitFailure,
    FoldFitWarning,
    raise_parameter_error,
)
from spatialcv.utils.optional_imports import optional_import_single

logger = logging.getLogger(__name__)

TQDM_AVAILABLE, tqdm = optional_import_single("tqdm", "tqdm")

BACKENDS = ("thread", "process")
PREDICTION_MODES = ("auto", "proba", "decision", "predict")


class ModelAdapter(Protocol):
    """Minimal model interface the evaluator needs."""

    def fit(self, X: pd.DataFrame, y: np.ndarray) -> Any:
        """Return a fitted model trained on X, y."""
        ...

    def predict(self, fitted: Any, X: pd.DataFrame) -> np.ndarray:
        """Return predictions of the fitted model for X."""
        ...


class SklearnModel:
    """Adapter for scikit-learn estimators.

    The estimator is cloned for every fold, so no fitted state leaks between
    folds.

    Args:
        estimator: Unfitted scikit-learn estimator (or Pipeline).
        prediction: 'proba' (positive-class probability), 'decision'
            (decision_function), 'predict', or 'auto' to choose per metric.
    """

    def __init__(self, estimator: Any, prediction: str = "auto") -> None:
        if prediction not in PREDICTION_MODES:
            raise_parameter_error(
                "prediction", prediction, valid_values=list(PREDICTION_MODES)
            )
        self.estimator = estimator
        self.prediction = prediction

    def for_metric(self, metric: str) -> "SklearnModel":
        """Resolve prediction='auto' for the given metric."""
        if self.prediction != "auto":
            return self
        if metric in PROBABILISTIC_METRICS and hasattr(self.estimator, "predict_proba"):
            mode = "proba"
        elif metric in PROBABILISTIC_METRICS and hasattr(
            self.estimator, "decision_function"
        ):
            mode = "decision"
        else:
            mode = "predict"
        return SklearnModel(self.estimator, prediction=mode)

    def fit(self, X: pd.DataFrame, y: np.ndarray) -> Any:
        estimator = clone(self.estimator)
        estimator.fit(X, y)
        return estimator

    def predict(self, fitted: Any, X: pd.DataFrame) -> np.ndarray:
        if self.prediction == "proba":
            proba = np.asarray(fitted.predict_proba(X))
            return proba[:, -1]
        if self.prediction == "decision":
            return np.asarray(fitted.decision_function(X))
        return np.asarray(fitted.predict(X))

    def __repr__(self) -> str:
        """String representation."""
        return f"SklearnModel({self.estimator!r}, prediction='{self.prediction}')"


class FunctionModel:
    """Adapter for a pair of plain callables.

    Args:
        fit_fn: ``fit_fn(X, y) -> fitted``.
        predict_fn: ``predict_fn(fitted, X) -> predictions``.
    """

    def __init__(
        self,
        fit_fn: Callable[[pd.DataFrame, np.ndarray], Any],
        predict_fn: Callable[[Any, pd.DataFrame], np.ndarray],
    ) -> None:
        self.fit_fn = fit_fn
        self.predict_fn = predict_fn

    def fit(self, X: pd.DataFrame, y: np.ndarray) -> Any:
        return self.fit_fn(X, y)

    def predict(self, fitted: Any, X: pd.DataFrame) -> np.ndarray:
        return np.asarray(self.predict_fn(fitted, X))


def as_model_adapter(model: Any) -> Any:
    """Wrap scikit-learn estimators; pass adapters through unchanged."""
    if isinstance(model, (SklearnModel, FunctionModel)):
        return model
    if hasattr(model, "get_params") and hasattr(model, "fit"):
        return SklearnModel(model)
    if hasattr(model, "fit") and hasattr(model, "predict"):
        return model
    raise TypeError(
        f"model must be a scikit-learn estimator or expose fit(X, y) and "
        f"predict(fitted, X), got {type(model).__name__}"
    )


def _score_fold(
    model: Any, scorer: Scorer, observations: ObservationSet, split: FoldSplit
) -> float:
    try:
        X_train = observations.predictor_matrix(split.train_indices)
        y_train = observations.labels[split.train_indices]
        X_test = observations.predictor_matrix(split.test_indices)
        y_test = observations.labels[split.test_indices]

        fitted = model.fit(X_train, y_train)
        predictions = np.asarray(model.predict(fitted, X_test))
        score = float(scorer(y_test, predictions))
        if not np.isfinite(score):
            raise ValueError(f"score is not finite ({score})")
    except Exception as e:
        raise FitFailure(split.fold, e) from e
    return score


def _evaluate_fold(
    task: tuple[Any, Scorer, ObservationSet, FoldSplit],
) -> FoldScore:
    """Fit, predict and score one fold (runs in a worker)."""
    model, scorer, observations, split = task
    try:
        score = _score_fold(model, scorer, observations, split)
    except FitFailure as failure:
        return FoldScore(
            fold=split.fold,
            score=None,
            n_train=split.n_train,
            n_test=split.n_test,
            n_buffered=split.n_buffered,
            error=str(failure),
            failure=failure,
        )

    logger.debug(f"Fold {split.fold}: score={score:.4f} (n_test={split.n_test})")
    return FoldScore(
        fold=split.fold,
        score=score,
        n_train=split.n_train,
        n_test=split.n_test,
        n_buffered=split.n_buffered,
    )


def aggregate_scores(
    fold_scores: Sequence[FoldScore], metric: str
) -> EvaluationResult:
    """Combine per-fold scores into an EvaluationResult.

    Missing scores are excluded from the mean and standard deviation, and
    each one is reported with a FoldFitWarning.

    Raises:
        AggregateFailure: If no fold produced a score.
    """
    ordered = tuple(sorted(fold_scores, key=lambda s: s.fold))
    messages = []
    for fold_score in ordered:
        if fold_score.is_missing:
            message = fold_score.error or f"Fold {fold_score.fold} produced no score"
            logger.warning(message)
            warnings.warn(message, FoldFitWarning, stacklevel=3)
            messages.append(message)

    values = np.array([s.score for s in ordered if not s.is_missing], dtype=float)
    if values.size == 0:
        raise AggregateFailure(
            f"All {len(ordered)} folds failed; no {metric} score available",
            details={"errors": messages},
        )

    mean = float(np.mean(values))
    std = float(np.std(values, ddof=1)) if values.size > 1 else 0.0
    return EvaluationResult(
        scores=ordered,
        metric=metric,
        mean=mean,
        std=std,
        warnings=tuple(messages),
    )


class ModelEvaluator:
    """Fit and score a model on every fold of a spatial partition.

    Example:
        >>> from sklearn.linear_model import LogisticRegression
        >>> from spatialcv.tasks.evaluationtask import ModelEvaluator
        >>> evaluator = ModelEvaluator(LogisticRegression(), scoring="auroc")
        >>> result = evaluator.evaluate(observations, splits)
        >>> print(f"AUROC: {result.mean:.3f} ± {result.std:.3f}")
    """

    def __init__(
        self,
        model: Any,
        scoring: Union[str, Scorer] = "auroc",
        n_jobs: Optional[int] = 1,
        backend: str = "thread",
        show_progress: bool = False,
    ) -> None:
        """Initialize the evaluator.

        Args:
            model: scikit-learn estimator, SklearnModel, FunctionModel, or any
                object with fit(X, y) and predict(fitted, X).
            scoring: Metric name ('auroc', 'accuracy', 'brier', 'rmse', 'mae',
                'r2') or a callable (y_true, predictions) -> float.
            n_jobs: Parallel workers. 1 runs folds sequentially; None uses
                min(cpu_count(), 8); -1 uses every CPU.
            backend: 'thread' or 'process'. The process backend needs a
                picklable model and scorer.
            show_progress: Show a tqdm progress bar when tqdm is installed.
        """
        if backend not in BACKENDS:
            raise_parameter_error("backend", backend, valid_values=list(BACKENDS))
        if n_jobs is not None and (n_jobs == 0 or n_jobs < -1):
            raise_parameter_error("n_jobs", n_jobs, constraint="n_jobs >= 1, -1 or None")

        self.metric, self.scorer = get_scorer(scoring)
        adapter = as_model_adapter(model)
        if isinstance(adapter, SklearnModel):
            adapter = adapter.for_metric(self.metric)
        self.model = adapter
        self.n_jobs = n_jobs
        self.backend = backend
        self.show_progress = show_progress

    def _n_workers(self, n_tasks: int) -> int:
        if self.n_jobs is None:
            n_workers = min(mp.cpu_count(), 8)
        elif self.n_jobs == -1:
            n_workers = mp.cpu_count()
        else:
            n_workers = self.n_jobs
        return max(1, min(n_workers, n_tasks))

    def _progress(self, iterable: Any, total: int) -> Any:
        if self.show_progress and TQDM_AVAILABLE:
            return tqdm(iterable, total=total, desc="Evaluating folds")
        return iterable

    @staticmethod
    def _check_cancelled(
        cancel_event: Optional[threading.Event], n_done: int, n_total: int
    ) -> None:
        if cancel_event is not None and cancel_event.is_set():
            logger.info(f"Evaluation cancelled after {n_done} of {n_total} folds")
            raise EvaluationCancelled(
                f"Evaluation cancelled after {n_done} of {n_total} folds",
                details={"n_completed": n_done},
            )

    def evaluate(
        self,
        observations: ObservationSet,
        splits: Sequence[FoldSplit],
        cancel_event: Optional[threading.Event] = None,
    ) -> EvaluationResult:
        """Evaluate the model on every split.

        Args:
            observations: Observations the splits index into.
            splits: One FoldSplit per fold.
            cancel_event: Optional event; when set, the run stops before the
                next fold and raises EvaluationCancelled.

        Returns:
            EvaluationResult with one FoldScore per split.

        Raises:
            AggregateFailure: If every fold failed.
            EvaluationCancelled: If cancel_event was set during the run.
        """
        if len(splits) == 0:
            raise ValueError("splits must not be empty")

        tasks = [(self.model, self.scorer, observations, split) for split in splits]
        n_total = len(tasks)
        n_workers = self._n_workers(n_total)
        fold_scores: dict[int, FoldScore] = {}

        logger.info(
            f"Evaluating {n_total} folds ({self.metric}) with {n_workers} "
            f"{self.backend if n_workers > 1 else 'sequential'} worker(s)"
        )

        if n_workers == 1:
            for task in self._progress(tasks, n_total):
                self._check_cancelled(cancel_event, len(fold_scores), n_total)
                fold_score = _evaluate_fold(task)
                fold_scores[fold_score.fold] = fold_score
        else:
            self._check_cancelled(cancel_event, 0, n_total)
            pool_factory = ThreadPool if self.backend == "thread" else mp.Pool
            # Leaving the context terminates the pool, discarding in-flight folds
            with pool_factory(n_workers) as pool:
                completed = pool.imap_unordered(_evaluate_fold, tasks)
                for fold_score in self._progress(completed, n_total):
                    self._check_cancelled(cancel_event, len(fold_scores), n_total)
                    fold_scores[fold_score.fold] = fold_score

        result = aggregate_scores(list(fold_scores.values()), self.metric)
        logger.info(
            f"Evaluated {result.n_folds - result.n_missing}/{result.n_folds} folds: "
            f"{self.metric} mean={result.mean:.4f} std={result.std:.4f}"
        )
        return result
