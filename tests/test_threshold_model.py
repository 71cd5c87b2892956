#!/usr/bin/env python3
"""
Tests for the cross-validated decision threshold wrapper.
"""

import numpy as np
import pandas as pd
import pytest

from models.base_model import BaseModel
from models.random_forest_model import RandomForestModel
from models.threshold_model import ThresholdCalibratedClassifier
from utils.exceptions import EmptyCandidateSet, InvalidLabelCardinality

class _ScoreEstimator:
    """Returns the 'score' column as the positive-class probability."""

    def fit(self, X, y):
        self.n_fits = getattr(self, 'n_fits', 0) + 1
        return self

    def predict_proba(self, X):
        score = X['score'].to_numpy(dtype=float)
        return np.column_stack([1 - score, score])

class ScoreColumnModel(BaseModel):

    def __init__(self, name: str = "score_column"):
        super().__init__(name)
        self.predict_calls = 0

    def _build_estimator(self):
        return _ScoreEstimator()

    def predict_proba(self, X, **kwargs):
        self.predict_calls += 1
        return super().predict_proba(X, **kwargs)

    def _raw_feature_importance(self):
        return np.array([1.0, 0.0])

def _separable_data():
    """Positive scores in [0.35, 0.9], negative scores in [0.05, 0.25]."""
    scores = np.concatenate([np.linspace(0.35, 0.9, 30), np.linspace(0.05, 0.25, 70)])
    y = pd.Series([1] * 30 + [0] * 70, name='target')
    noise = np.random.default_rng(0).normal(size=100)
    return pd.DataFrame({'score': scores, 'noise': noise}), y

CANDIDATES = [0.1, 0.2, 0.3, 0.4, 0.5]

class TestThresholdSelection:

    def setup_method(self):
        self.X, self.y = _separable_data()

    def test_cv_picks_gap_threshold(self):
        model = ThresholdCalibratedClassifier(ScoreColumnModel(), CANDIDATES,
                                              n_folds=5, n_repeats=2, random_state=1)
        model.fit(self.X, self.y)

        assert model.name == 'score_column_threshold'
        assert model.threshold_ == 0.3
        assert model.cv_results_['threshold'].tolist() == CANDIDATES
        assert model.cv_results_.loc[2, 'composite_distance'] == 0.0
        assert model.metadata['threshold'] == 0.3

        y_pred = model.predict(self.X)
        assert y_pred.tolist() == self.y.tolist()

    def test_explicit_threshold_overrides(self):
        model = ThresholdCalibratedClassifier(ScoreColumnModel(), CANDIDATES, n_folds=3, n_repeats=1)
        model.fit(self.X, self.y)
        assert model.predict(self.X, threshold=0.95).sum() == 0

    def test_reuses_trained_base_without_cv(self):
        base = ScoreColumnModel().fit(self.X, self.y)
        estimator = base.model

        model = ThresholdCalibratedClassifier(base, CANDIDATES, n_folds=None)
        model.fit(self.X, self.y, refit=False)

        assert base.model is estimator
        assert model.threshold_ == 0.3
        assert len(model.cv_results_) == len(CANDIDATES)

    def test_tie_break_center(self):
        # Every candidate falls in the gap between negative and positive scores
        model = ThresholdCalibratedClassifier(ScoreColumnModel(), [0.26, 0.3, 0.34],
                                              n_folds=None, tie_break_center=0.5)
        model.fit(self.X, self.y)
        assert model.threshold_ == 0.34

class TestScoreCache:

    def setup_method(self):
        X, y = _separable_data()
        self.base = ScoreColumnModel()
        self.model = ThresholdCalibratedClassifier(self.base, CANDIDATES, n_folds=None)
        self.model.fit(X, y)
        self.X, self.y = X, y
        self.X_new = X.iloc[::2]

    def test_repeated_scoring_hits_cache(self):
        calls = self.base.predict_calls
        first = self.model.predict_proba(self.X_new)
        second = self.model.predict_proba(self.X_new)

        assert self.base.predict_calls == calls + 1
        assert self.model.cache_hits_ == 1
        assert np.array_equal(first, second)
        assert not first.flags.writeable

    def test_sweep_and_predict_share_scores(self):
        calls = self.base.predict_calls
        sweep = self.model.sweep(self.X_new, self.y.iloc[::2])
        for t in CANDIDATES:
            self.model.predict(self.X_new, threshold=t)

        assert self.base.predict_calls == calls + 1
        assert list(sweep['threshold']) == CANDIDATES

    def test_changed_table_is_rescored(self):
        self.model.predict_proba(self.X_new)
        changed = self.X_new.assign(score=self.X_new['score'] * 0.5)
        calls = self.base.predict_calls
        self.model.predict_proba(changed)
        assert self.base.predict_calls == calls + 1

    def test_refit_clears_cache(self):
        self.model.predict_proba(self.X_new)
        self.model.fit(self.X, self.y)
        calls = self.base.predict_calls
        self.model.predict_proba(self.X_new)
        assert self.base.predict_calls == calls + 1

def test_empty_candidates():
    with pytest.raises(EmptyCandidateSet):
        ThresholdCalibratedClassifier(ScoreColumnModel(), [])

def test_single_class_labels():
    X, _ = _separable_data()
    model = ThresholdCalibratedClassifier(ScoreColumnModel(), CANDIDATES)
    with pytest.raises(InvalidLabelCardinality):
        model.fit(X, np.zeros(len(X), dtype=int))

def test_untrained_prediction_fails():
    model = ThresholdCalibratedClassifier(ScoreColumnModel(), CANDIDATES)
    with pytest.raises(RuntimeError):
        model.predict(pd.DataFrame({'score': [0.5], 'noise': [0.0]}))

def test_random_forest_save_and_load(tmp_path, bank_xy):
    X, y = bank_xy
    model = ThresholdCalibratedClassifier(
        RandomForestModel(n_estimators=20, n_jobs=1, random_state=0),
        thresholds=CANDIDATES,
        n_folds=3, n_repeats=1, random_state=0,
    )
    model.fit(X, y)
    assert model.threshold_ in CANDIDATES
    assert model.get_feature_importance().name == 'random_forest_threshold'

    path = str(tmp_path / 'rf_threshold.joblib')
    model.save(path)

    restored = ThresholdCalibratedClassifier(RandomForestModel(n_estimators=20, n_jobs=1),
                                             thresholds=CANDIDATES)
    restored.load(path)

    assert restored.threshold_ == model.threshold_
    assert np.array_equal(restored.predict(X), model.predict(X))
