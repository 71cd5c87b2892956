# Base model class
# Abstract base class for all committee classifiers # base_model.py
"""
BaseModel: Abstract base class for the probabilistic binary classifiers
in the bank marketing committee.
Defines the common interface for fit, predict_proba, predict, feature
importance, save and load.
"""

import abc
import os
import logging
import joblib
import numpy as np
import pandas as pd
from typing import Any, Dict, List, Optional

from utils.data_splitting import check_binary_labels
from utils.evaluation import apply_threshold

logger = logging.getLogger(__name__)

def clean_data_for_model_prediction(X: pd.DataFrame,
                                    feature_names: Optional[List[str]] = None) -> pd.DataFrame:
    """
    Align a feature table with the training columns and make it numeric.

    Columns seen at fit time but absent here (e.g. a one-hot level that
    does not occur in the test partition) are added as zeros; columns
    unknown at fit time are dropped.

    Args:
        X: Input DataFrame
        feature_names: Training column order

    Returns:
        Numeric DataFrame in training column order
    """
    if not isinstance(X, pd.DataFrame):
        X = pd.DataFrame(np.asarray(X), columns=feature_names)

    Xn = X
    if feature_names is not None:
        extra = [c for c in Xn.columns if c not in feature_names]
        if extra:
            logger.debug(f"Dropping columns unknown at fit time: {extra}")
        Xn = Xn.reindex(columns=feature_names, fill_value=0.0)

    Xn = Xn.apply(pd.to_numeric, errors='coerce').astype(float)
    Xn = Xn.replace([np.inf, -np.inf], np.nan)
    if Xn.isna().any().any():
        Xn = Xn.fillna(Xn.median()).fillna(0.0)

    return Xn

class BaseModel(abc.ABC):
    """
    Abstract base class for committee models (random forest, gradient
    boosting, logistic regression, threshold-calibrated wrappers).

    Subclasses implement _build_estimator(); fitting, probability
    prediction and persistence are shared.
    """

    def __init__(self, name: str = "BaseModel"):
        self.name = name
        self.is_trained = False
        self.params: Dict[str, Any] = {}
        self.metadata: Dict[str, Any] = {}
        self.model = None
        self.feature_names_: Optional[List[str]] = None

    def get_params(self, deep=True):
        """Hyperparameters passed to the underlying estimator."""
        return self.params.copy() if deep else self.params

    def set_params(self, **params):
        """Update hyperparameters; takes effect at the next fit."""
        self.params.update(params)
        return self

    @abc.abstractmethod
    def _build_estimator(self):
        """Return a fresh, unfitted estimator exposing fit and predict_proba."""
        pass

    def fit(self, X, y, **kwargs) -> "BaseModel":
        """
        Train the model on data.
        Args:
            X: Features
            y: 0/1 targets
        """
        try:
            self.log(f"Training on {len(X)} examples...")
            check_binary_labels(y)
            X_clean = clean_data_for_model_prediction(X)
            self.feature_names_ = list(X_clean.columns)
            self.model = self._build_estimator()
            self.model.fit(self._estimator_input(X_clean), np.asarray(y).astype(int), **kwargs)
            self.is_trained = True
            self.log("Training completed")
        except Exception as e:
            self.log(f"Error during training: {e}")
            self.is_trained = False
            raise
        return self

    def _estimator_input(self, X_clean: pd.DataFrame):
        return X_clean

    def _require_trained(self):
        if not self.is_trained:
            raise RuntimeError(f"{self.name} must be trained before predictions can be made.")

    def predict_proba(self, X, **kwargs) -> np.ndarray:
        """
        Positive-class probability for each row of X.
        """
        self._require_trained()
        X_clean = clean_data_for_model_prediction(X, self.feature_names_)
        proba = self.model.predict_proba(self._estimator_input(X_clean))
        return np.asarray(proba)[:, 1]

    def predict(self, X, threshold: float = 0.5, **kwargs) -> np.ndarray:
        """
        0/1 predictions at the given decision threshold.
        """
        return apply_threshold(self.predict_proba(X), threshold)

    def get_feature_importance(self) -> pd.Series:
        """
        Variable importance ranked from most to least important.
        """
        self._require_trained()
        importance = self._raw_feature_importance()
        return pd.Series(importance, index=self.feature_names_, name=self.name).sort_values(ascending=False)

    def _raw_feature_importance(self) -> np.ndarray:
        return np.asarray(self.model.feature_importances_)

    def save(self, path: str) -> bool:
        """
        Save the fitted estimator and metadata with joblib.
        Returns:
            True if successful
        """
        self._require_trained()
        directory = os.path.dirname(path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        joblib.dump({
            'name': self.name,
            'params': self.params,
            'feature_names': self.feature_names_,
            'model': self.model,
            'metadata': self.metadata,
        }, path)
        self.log(f"Model saved to {path}")
        return True

    def load(self, path: str) -> bool:
        """
        Load a fitted estimator saved by save().
        Returns:
            True if successful
        """
        payload = joblib.load(path)
        self.name = payload.get('name', self.name)
        self.params = payload.get('params', self.params)
        self.feature_names_ = payload['feature_names']
        self.model = payload['model']
        self.metadata = payload.get('metadata', {})
        self.is_trained = True
        self.log(f"Model loaded from {path}")
        return True

    def get_metadata(self) -> Dict[str, Any]:
        """
        Return model metadata (name, trained status, params, any extra info).
        """
        return {
            "name": self.name,
            "is_trained": self.is_trained,
            "params": self.params,
            "n_features": len(self.feature_names_) if self.feature_names_ else None,
            **self.metadata,
        }

    def log(self, msg: str):
        """
        Logging utility for model events.
        """
        logger.info(f"[{self.name}] {msg}")
