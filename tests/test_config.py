#!/usr/bin/env python3
"""
Tests for configuration presets and environment settings.
"""

import pytest

from config import (
    CONFIG_PRESETS, ThresholdConfig, TrainingConfig, apply_settings, load_config,
    get_fast_training_config
)

def test_default_threshold_grid():
    candidates = ThresholdConfig().get_candidates()
    assert candidates[0] == 0.5
    assert candidates[-1] == 0.99
    assert len(candidates) == 50

def test_coarse_grid_stays_below_one():
    candidates = get_fast_training_config().threshold.get_candidates()
    assert candidates == [0.5, 0.55, 0.6, 0.65, 0.7, 0.75, 0.8, 0.85, 0.9, 0.95]

def test_explicit_candidates_override_grid():
    assert ThresholdConfig(candidates=[0.2, 0.1]).get_candidates() == [0.2, 0.1]

def test_model_params_carry_seed():
    config = TrainingConfig(random_state=9)
    params = config.model_params('random_forest')
    assert params['random_state'] == 9
    assert params['n_estimators'] == 500
    with pytest.raises(KeyError):
        config.model_params('svm')

def test_presets_build_independent_configs():
    for factory in CONFIG_PRESETS.values():
        config = factory()
        assert config.stacking.excluded_models == ['random_forest']
    a, b = TrainingConfig(), TrainingConfig()
    a.stacking.excluded_models.append('logistic_regression')
    assert b.stacking.excluded_models == ['random_forest']

def test_settings_from_environment(monkeypatch):
    monkeypatch.setenv('BANK_DATA_PATH', 'elsewhere/bank.csv')
    monkeypatch.setenv('N_JOBS', '2')
    monkeypatch.setenv('RANDOM_STATE', '7')

    settings = load_config()
    config = apply_settings(TrainingConfig(), settings)

    assert config.data.data_path == 'elsewhere/bank.csv'
    assert config.random_forest.n_jobs == 2
    assert config.gradient_boosting.n_jobs == 2
    assert config.random_state == 7
    assert config.cross_validation.random_state == 7
