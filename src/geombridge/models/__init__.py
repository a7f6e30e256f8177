from geombridge.models.base import Evaluator, GradOutput
from geombridge.models.implementations import (
    MODEL_NAMES,
    ConstantModel,
    HarmonicPairModel,
    resolve_model,
)

__all__ = [
    "Evaluator",
    "GradOutput",
    "ConstantModel",
    "HarmonicPairModel",
    "MODEL_NAMES",
    "resolve_model",
]
