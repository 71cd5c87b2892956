# Tests for committee models
# Unit tests for random forest, XGBoost and logistic regression members # test_models.py
"""
Unit tests for the random forest, gradient boosting and logistic regression models.
"""

import numpy as np
import pandas as pd
import pytest

from models import (
    MODEL_REGISTRY, create_model, clean_data_for_model_prediction,
    RandomForestModel, GradientBoostingModel, LogisticRegressionModel
)
from utils.exceptions import InvalidLabelCardinality

SMALL_PARAMS = {
    'random_forest': {'n_estimators': 25, 'n_jobs': 1},
    'gradient_boosting': {'n_estimators': 20, 'n_jobs': 1},
    'logistic_regression': {},
}

@pytest.mark.parametrize("model_name", sorted(MODEL_REGISTRY))
def test_fit_and_predict(model_name, bank_xy):
    X, y = bank_xy
    model = create_model(model_name, random_state=0, **SMALL_PARAMS[model_name])
    model.fit(X, y)

    proba = model.predict_proba(X)
    assert proba.shape == (len(X),)
    assert ((proba >= 0) & (proba <= 1)).all()

    preds = model.predict(X)
    assert set(np.unique(preds)) <= {0, 1}
    assert np.array_equal(model.predict(X, threshold=0.3), (proba >= 0.3).astype(int))

    importance = model.get_feature_importance()
    assert len(importance) == X.shape[1]
    assert importance.is_monotonic_decreasing
    assert model.get_metadata()['is_trained']

def test_random_forest_learns_signal(bank_xy):
    X, y = bank_xy
    model = RandomForestModel(n_estimators=50, n_jobs=1, random_state=0).fit(X, y)
    assert model.get_tree_count() == 50
    assert 'duration' in model.get_feature_importance().head(5).index

def test_logistic_coefficients(bank_xy):
    X, y = bank_xy
    model = LogisticRegressionModel(random_state=0).fit(X, y)
    coefficients = model.get_coefficients()
    assert coefficients['duration'] > 0
    assert model.get_feature_importance()['duration'] == pytest.approx(abs(coefficients['duration']))

def test_logistic_without_scaling(bank_xy):
    X, y = bank_xy
    model = LogisticRegressionModel(scale_features=False, max_iter=2000, random_state=0).fit(X, y)
    assert model.get_metadata()['scale_features'] is False
    assert len(model.get_coefficients()) == X.shape[1]

def test_gradient_boosting_accepts_symbol_column_names():
    X = pd.DataFrame({'job=admin.': [1.0, 0.0] * 20, 'month=[may]': [0.0, 1.0] * 20})
    y = pd.Series([1, 0] * 20)
    model = GradientBoostingModel(n_estimators=5, n_jobs=1).fit(X, y)
    assert model.predict(X).tolist() == y.tolist()

def test_untrained_model_raises():
    model = RandomForestModel(n_estimators=5)
    with pytest.raises(RuntimeError):
        model.predict_proba(pd.DataFrame({'a': [1.0]}))
    with pytest.raises(RuntimeError):
        model.get_feature_importance()

def test_single_class_training_fails():
    model = LogisticRegressionModel()
    with pytest.raises(InvalidLabelCardinality):
        model.fit(pd.DataFrame({'a': [1.0, 2.0, 3.0]}), [1, 1, 1])
    assert not model.is_trained

def test_unknown_model_name():
    with pytest.raises(KeyError):
        create_model('neural_net')

def test_prediction_columns_align_with_training(bank_xy):
    X, y = bank_xy
    model = RandomForestModel(n_estimators=10, n_jobs=1, random_state=0).fit(X, y)

    # A one-hot level absent from new data, an unknown extra column, shuffled order
    missing_level = [c for c in X.columns if c.startswith('month=')][0]
    X_new = X.drop(columns=[missing_level]).assign(extra=1.0)
    X_new = X_new[list(reversed(X_new.columns))]

    expected = model.predict_proba(X.assign(**{missing_level: 0.0}))
    assert np.allclose(model.predict_proba(X_new), expected)

def test_clean_data_fills_non_finite():
    X = pd.DataFrame({'a': [1.0, np.inf, 3.0], 'b': ['1', 'x', '2']})
    cleaned = clean_data_for_model_prediction(X, ['a', 'b', 'c'])
    assert list(cleaned.columns) == ['a', 'b', 'c']
    assert cleaned['a'].tolist() == [1.0, 2.0, 3.0]
    assert cleaned['b'].tolist() == [1.0, 1.5, 2.0]
    assert (cleaned['c'] == 0.0).all()

def test_save_and_load(tmp_path, bank_xy):
    X, y = bank_xy
    model = GradientBoostingModel(n_estimators=10, n_jobs=1, random_state=0).fit(X, y)
    path = str(tmp_path / 'models' / 'gb.joblib')
    assert model.save(path)

    restored = GradientBoostingModel()
    restored.load(path)
    assert restored.feature_names_ == model.feature_names_
    assert np.allclose(restored.predict_proba(X), model.predict_proba(X))
