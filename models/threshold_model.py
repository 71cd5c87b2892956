"""
Threshold-Calibrated Classifier
===============================

Wraps any probabilistic BaseModel with a decision threshold chosen by
repeated stratified cross-validation instead of the default 0.5 cutoff.

For each fold the base model is trained once and its validation
probabilities are swept over every candidate threshold. The candidate
with the smallest mean composite distance

    sqrt((1 - specificity)^2 + (1 - sensitivity)^2)

wins; ties go to the candidate nearest 0.5. The base model is then
refit once on the full training partition.

Probability scores are cached per feature table, so predicting or
sweeping several thresholds over the same rows never recomputes them.
"""

import copy
import hashlib
import logging
from collections import OrderedDict
from typing import Any, Dict, Optional, Sequence

import numpy as np
import pandas as pd

from .base_model import BaseModel
from utils.data_splitting import check_binary_labels, repeated_stratified_folds
from utils.evaluation import apply_threshold, select_threshold, sweep_thresholds, validate_candidates

logger = logging.getLogger(__name__)

def _table_key(X) -> str:
    """Content hash of a feature table, used as the score cache key."""
    if isinstance(X, pd.DataFrame):
        digest = hashlib.sha1(pd.util.hash_pandas_object(X, index=True).to_numpy().tobytes())
        digest.update(repr(list(X.columns)).encode())
    else:
        arr = np.ascontiguousarray(np.asarray(X, dtype=float))
        digest = hashlib.sha1(arr.tobytes())
        digest.update(repr(arr.shape).encode())
    return digest.hexdigest()

class ThresholdCalibratedClassifier(BaseModel):
    """
    Decision-threshold wrapper around a probabilistic base model.
    """

    def __init__(self, base_model: BaseModel,
                 thresholds: Sequence[float],
                 n_folds: Optional[int] = 5,
                 n_repeats: int = 3,
                 random_state: int = 42,
                 tie_break_center: float = 0.5,
                 cache_size: int = 8,
                 name: Optional[str] = None):
        """
        Args:
            base_model: Probabilistic classifier to wrap
            thresholds: Ordered candidate thresholds in (0, 1)
            n_folds: Folds per CV repeat; None sweeps the base model's own
                training-partition scores instead of cross-validating
            n_repeats: Number of CV repeats
            random_state: Seed for fold assignment
            tie_break_center: Ties resolved toward this threshold
            cache_size: Number of feature tables whose scores are kept
            name: Model name (defaults to '<base>_threshold')
        """
        super().__init__(name or f"{base_model.name}_threshold")
        self.base_model = base_model
        self.thresholds = validate_candidates(thresholds)
        self.n_folds = n_folds
        self.n_repeats = n_repeats
        self.random_state = random_state
        self.tie_break_center = tie_break_center
        self.cache_size = cache_size

        self.params = {
            'base_model': base_model.name,
            'n_candidates': len(self.thresholds),
            'n_folds': n_folds,
            'n_repeats': n_repeats,
            'random_state': random_state,
        }
        self.threshold_: Optional[float] = None
        self.cv_results_: Optional[pd.DataFrame] = None
        self._score_cache: "OrderedDict[str, np.ndarray]" = OrderedDict()
        self.cache_hits_ = 0

    def _build_estimator(self):
        return self.base_model._build_estimator()

    def _cross_validated_sweep(self, X: pd.DataFrame, y: np.ndarray) -> pd.DataFrame:
        fold_sweeps = []
        folds = repeated_stratified_folds(y, self.n_folds, self.n_repeats, self.random_state)
        for fold_idx, (train_idx, valid_idx) in enumerate(folds):
            fold_model = copy.deepcopy(self.base_model)
            fold_model.fit(X.iloc[train_idx], y[train_idx])
            valid_proba = fold_model.predict_proba(X.iloc[valid_idx])
            sweep = sweep_thresholds(y[valid_idx], valid_proba, self.thresholds)
            sweep['fold'] = fold_idx
            fold_sweeps.append(sweep)

        self.log(f"Swept {len(self.thresholds)} thresholds over {len(fold_sweeps)} CV folds")
        combined = pd.concat(fold_sweeps, ignore_index=True)
        summary = combined.groupby('threshold', sort=False).agg(
            composite_distance=('composite_distance', 'mean'),
            distance_std=('composite_distance', 'std'),
            sensitivity=('sensitivity', 'mean'),
            specificity=('specificity', 'mean'),
            accuracy=('accuracy', 'mean'),
        ).reset_index()
        return summary

    def fit(self, X, y, refit: bool = True, **kwargs) -> "ThresholdCalibratedClassifier":
        """
        Select the decision threshold and train the base model.

        Args:
            X: Training features
            y: 0/1 training labels
            refit: Retrain the base model on all of X even if it is
                already trained
        """
        check_binary_labels(y)
        X = X if isinstance(X, pd.DataFrame) else pd.DataFrame(np.asarray(X))
        y_arr = np.asarray(y).astype(int)
        self._score_cache.clear()

        if self.n_folds:
            self.cv_results_ = self._cross_validated_sweep(X, y_arr)

        if refit or not self.base_model.is_trained:
            self.base_model.fit(X, y_arr, **kwargs)
        else:
            self.log(f"Reusing trained {self.base_model.name}")

        if not self.n_folds:
            train_proba = self.base_model.predict_proba(X)
            self.cv_results_ = sweep_thresholds(y_arr, train_proba, self.thresholds)

        self.threshold_ = select_threshold(self.cv_results_, center=self.tie_break_center)
        self.model = self.base_model.model
        self.feature_names_ = self.base_model.feature_names_
        self.metadata['threshold'] = self.threshold_
        self.is_trained = True
        self.log(f"Calibrated decision threshold: {self.threshold_:.4f}")
        return self

    def predict_proba(self, X, **kwargs) -> np.ndarray:
        """
        Positive-class probabilities, served from the cache when the same
        feature table was scored before.
        """
        self._require_trained()
        key = _table_key(X)
        if key in self._score_cache:
            self.cache_hits_ += 1
            self._score_cache.move_to_end(key)
            return self._score_cache[key]

        scores = self.base_model.predict_proba(X)
        scores.setflags(write=False)
        self._score_cache[key] = scores
        if len(self._score_cache) > self.cache_size:
            self._score_cache.popitem(last=False)
        return scores

    def predict(self, X, threshold: Optional[float] = None, **kwargs) -> np.ndarray:
        """
        0/1 predictions at the given threshold (default: the calibrated one).
        """
        self._require_trained()
        if threshold is None:
            threshold = self.threshold_
        return apply_threshold(self.predict_proba(X), threshold)

    def sweep(self, X, y, thresholds: Optional[Sequence[float]] = None) -> pd.DataFrame:
        """
        Metrics for every threshold over one cached set of scores.
        """
        return sweep_thresholds(y, self.predict_proba(X), thresholds if thresholds is not None else self.thresholds)

    def get_feature_importance(self) -> pd.Series:
        return self.base_model.get_feature_importance().rename(self.name)

    def load(self, path: str) -> bool:
        super().load(path)
        self.base_model.model = self.model
        self.base_model.feature_names_ = self.feature_names_
        self.base_model.is_trained = True
        self.threshold_ = self.metadata.get('threshold')
        self._score_cache.clear()
        return True

    def get_metadata(self) -> Dict[str, Any]:
        return {**super().get_metadata(), "model_type": "ThresholdCalibrated",
                "base_model": self.base_model.name, "threshold": self.threshold_}
