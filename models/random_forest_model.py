"""
Random Forest Model
===================

Random forest binary classifier for the bank marketing committee. It
inherits from BaseModel to share the fit / predict_proba interface with
the other committee members.

Training is parallelised through scikit-learn's n_jobs switch.
"""

import logging
from typing import Any, Dict, Optional

from sklearn.ensemble import RandomForestClassifier

from .base_model import BaseModel

logger = logging.getLogger(__name__)

class RandomForestModel(BaseModel):
    """
    Random Forest classifier for binary classification tasks.

    max_features controls feature subsampling at each split and is the
    knob tuned independently of any decision threshold.
    """

    def __init__(self, name: str = "random_forest",
                 n_estimators: int = 500,
                 max_depth: Optional[int] = None,
                 min_samples_leaf: int = 1,
                 max_features: Any = 'sqrt',
                 class_weight: Optional[str] = None,
                 n_jobs: int = -1,
                 random_state: int = 42,
                 **kwargs):
        """
        Initialize Random Forest classifier.

        Args:
            name: Model name for logging
            n_estimators: Number of trees in the forest
            max_depth: Maximum depth of trees
            min_samples_leaf: Minimum samples required at a leaf node
            max_features: Number of features to consider at each split
            class_weight: Optional class weighting ('balanced' or None)
            n_jobs: Number of parallel jobs (-1 for all cores)
            random_state: Random state for reproducibility
            **kwargs: Additional RandomForestClassifier parameters
        """
        super().__init__(name)

        self.params = {
            'n_estimators': n_estimators,
            'max_depth': max_depth,
            'min_samples_leaf': min_samples_leaf,
            'max_features': max_features,
            'class_weight': class_weight,
            'n_jobs': n_jobs,
            'random_state': random_state,
            **kwargs
        }

        self.log(f"Initialized Random Forest with {n_estimators} trees")

    def _build_estimator(self) -> RandomForestClassifier:
        return RandomForestClassifier(**self.params)

    def get_tree_count(self) -> int:
        """Number of trees in the forest."""
        return self.params.get('n_estimators', 0)

    def get_metadata(self) -> Dict[str, Any]:
        return {**super().get_metadata(), "model_type": "RandomForest",
                "n_trees": self.get_tree_count()}
