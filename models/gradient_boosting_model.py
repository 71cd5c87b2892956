# Gradient boosting model module
# Implements gradient-boosted trees for subscription prediction # gradient_boosting_model.py
"""
Gradient Boosting Model Module
Gradient-boosted decision trees (xgboost) for the bank marketing committee.
"""

import logging
import numpy as np
import pandas as pd
import warnings
from typing import Any, Dict

import xgboost as xgb

from .base_model import BaseModel

warnings.filterwarnings('ignore', category=UserWarning, module='xgboost')

logger = logging.getLogger(__name__)

class GradientBoostingModel(BaseModel):
    """
    XGBoost classifier with a binary logistic objective.
    """
    def __init__(self, name: str = "gradient_boosting",
                 n_estimators: int = 150,
                 max_depth: int = 3,
                 learning_rate: float = 0.1,
                 subsample: float = 0.8,
                 colsample_bytree: float = 0.8,
                 n_jobs: int = -1,
                 random_state: int = 42,
                 **kwargs):
        super().__init__(name)
        self.params = {
            "objective": "binary:logistic",
            "eval_metric": "logloss",
            "n_estimators": n_estimators,
            "max_depth": max_depth,
            "learning_rate": learning_rate,
            "subsample": subsample,
            "colsample_bytree": colsample_bytree,
            "n_jobs": n_jobs,
            "random_state": random_state,
            **kwargs
        }
        self.log(f"Initialized XGBoost with {n_estimators} rounds, depth {max_depth}")

    def _build_estimator(self) -> xgb.XGBClassifier:
        return xgb.XGBClassifier(**self.params)

    def _estimator_input(self, X_clean: pd.DataFrame) -> np.ndarray:
        # One-hot column names may contain characters xgboost rejects
        return X_clean.to_numpy(dtype=float)

    def get_metadata(self) -> Dict[str, Any]:
        return {**super().get_metadata(), "model_type": "XGBoost"}
