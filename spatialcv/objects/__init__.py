"""Layer 1: Objects - Immutable data representations.

This layer contains only data structures. No I/O libraries, no geopandas,
no scikit-learn. Only standard library + numpy + pandas.
"""

from spatialcv.objects.folds import FoldAssignment, FoldSplit
from spatialcv.objects.observation import Observation, ObservationSet
from spatialcv.objects.results import EvaluationResult, FoldScore

__all__ = [
    "EvaluationResult",
    "FoldAssignment",
    "FoldScore",
    "FoldSplit",
    "Observation",
    "ObservationSet",
]
