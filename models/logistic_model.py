"""
Logistic regression (binomial GLM) member of the committee.
"""

import logging
import numpy as np
from typing import Any, Dict

from sklearn.linear_model import LogisticRegression
from sklearn.pipeline import Pipeline
from sklearn.preprocessing import StandardScaler

from .base_model import BaseModel

logger = logging.getLogger(__name__)

class LogisticRegressionModel(BaseModel):
    """
    Logistic regression with optional standardisation of the inputs.

    Variable importance is the absolute coefficient on the standardised
    scale, so it is only comparable across features when scale_features
    is on.
    """

    def __init__(self, name: str = "logistic_regression",
                 C: float = 1.0,
                 max_iter: int = 1000,
                 solver: str = 'lbfgs',
                 scale_features: bool = True,
                 random_state: int = 42,
                 **kwargs):
        super().__init__(name)
        self.scale_features = scale_features
        self.params = {
            'C': C,
            'max_iter': max_iter,
            'solver': solver,
            'random_state': random_state,
            **kwargs
        }

    def _build_estimator(self):
        classifier = LogisticRegression(**self.params)
        if not self.scale_features:
            return classifier
        return Pipeline([('scale', StandardScaler()), ('glm', classifier)])

    def _raw_feature_importance(self) -> np.ndarray:
        classifier = self.model.named_steps['glm'] if isinstance(self.model, Pipeline) else self.model
        return np.abs(classifier.coef_[0])

    def get_coefficients(self) -> Dict[str, float]:
        """Signed coefficients keyed by feature name."""
        self._require_trained()
        classifier = self.model.named_steps['glm'] if isinstance(self.model, Pipeline) else self.model
        return dict(zip(self.feature_names_, classifier.coef_[0].tolist()))

    def get_metadata(self) -> Dict[str, Any]:
        return {**super().get_metadata(), "model_type": "LogisticRegression",
                "scale_features": self.scale_features}
