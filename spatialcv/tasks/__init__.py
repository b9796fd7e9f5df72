"""Layer 3: Tasks - User intent translation.

Tasks translate user intent (partition these observations, evaluate this
model) into object creation and primitive calls. Tasks must not import
geopandas or do file I/O; that belongs to workflows.
"""

from spatialcv.tasks.evaluationtask import (
    FunctionModel,
    ModelAdapter,
    ModelEvaluator,
    SklearnModel,
    aggregate_scores,
    as_model_adapter,
)
from spatialcv.tasks.partitiontask import SpatialFoldPartitioner, SpatialKFold

__all__ = [
    "FunctionModel",
    "ModelAdapter",
    "ModelEvaluator",
    "SklearnModel",
    "SpatialFoldPartitioner",
    "SpatialKFold",
    "aggregate_scores",
    "as_model_adapter",
]
