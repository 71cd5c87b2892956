# ML models package for the bank marketing model committee

from .base_model import BaseModel, clean_data_for_model_prediction
from .random_forest_model import RandomForestModel
from .gradient_boosting_model import GradientBoostingModel
from .logistic_model import LogisticRegressionModel
from .threshold_model import ThresholdCalibratedClassifier

# Model registry for easy access by configuration name
MODEL_REGISTRY = {
    'random_forest': RandomForestModel,
    'gradient_boosting': GradientBoostingModel,
    'logistic_regression': LogisticRegressionModel,
}

def create_model(model_name: str, **params) -> BaseModel:
    """Instantiate a registered committee model by name."""
    if model_name not in MODEL_REGISTRY:
        raise KeyError(f"Unknown model '{model_name}'. Available: {sorted(MODEL_REGISTRY)}")
    return MODEL_REGISTRY[model_name](name=model_name, **params)

__all__ = [
    'BaseModel',
    'clean_data_for_model_prediction',
    'RandomForestModel',
    'GradientBoostingModel',
    'LogisticRegressionModel',
    'ThresholdCalibratedClassifier',
    'MODEL_REGISTRY',
    'create_model',
]
