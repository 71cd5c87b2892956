#!/usr/bin/env python3
"""
End-to-end tests for the committee analysis and its command line.
"""

import glob
import os

import numpy as np
import pandas as pd
import pytest

import train_models
from config.training_config import get_fast_training_config
from utils.exceptions import ColumnMismatch

def _small_config():
    config = get_fast_training_config()
    config.random_forest.n_estimators = 30
    config.random_forest.n_jobs = 1
    config.gradient_boosting.n_estimators = 20
    config.gradient_boosting.n_jobs = 1
    return config

class TestRunAnalysis:

    def setup_method(self):
        self.config = _small_config()

    def test_full_run(self, bank_xy):
        X, y = bank_xy
        results = train_models.run_analysis(X, y, self.config)

        expected_models = ['random_forest', 'gradient_boosting', 'logistic_regression',
                           'random_forest_threshold']
        assert list(results['models']) == expected_models
        assert list(results['test_matrix'].columns) == expected_models + ['truth']
        assert len(results['test_matrix']) == 100

        agreement = results['agreement']
        assert 0.0 <= agreement.missed_fraction <= 1.0
        curve = results['missed_fraction_curve']
        assert curve.iloc[0] == 1.0
        assert curve.iloc[-1] == pytest.approx(agreement.missed_fraction)

        stacked = results['stacked_model']
        assert 'random_forest' not in stacked.feature_columns
        assert set(results['stacking_comparison']) == {
            'accuracy', 'sensitivity', 'specificity', 'composite_distance'}

        test_metrics = results['test_metrics']
        assert train_models.STACKED_MODEL_NAME in test_metrics.index
        assert test_metrics['composite_distance'].between(0, np.sqrt(2)).all()
        assert set(results['performance_summary']['partition']) == {'train', 'test'}

        assert results['selected_threshold'] in self.config.threshold.get_candidates()
        assert set(results['roc_data']) == set(expected_models)
        assert 'DETECTION' in results['text_report'].upper()

    def test_without_extras(self, bank_xy):
        X, y = bank_xy
        self.config.models_to_train = ['logistic_regression', 'gradient_boosting']
        self.config.enable_threshold_model = False
        self.config.enable_stacking = False
        results = train_models.run_analysis(X, y, self.config)

        assert results['stacked_model'] is None
        assert results['selected_threshold'] is None
        assert list(results['test_metrics'].index) == ['logistic_regression', 'gradient_boosting']

    def test_unknown_exclusion_halts(self, bank_xy):
        X, y = bank_xy
        self.config.stacking.excluded_models = ['svm']
        with pytest.raises(ColumnMismatch):
            train_models.run_analysis(X, y, self.config)

    def test_plots_written(self, bank_xy, tmp_path):
        X, y = bank_xy
        self.config.visualization.save_plots = True
        self.config.visualization.reports_dir = str(tmp_path / 'reports')
        results = train_models.run_analysis(X, y, self.config)

        assert set(results['plots']) == {'confusion_matrices', 'roc_curves', 'threshold_sweep'}
        for path in results['plots'].values():
            assert os.path.exists(path)

class TestMain:

    @pytest.fixture(autouse=True)
    def _workdir(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        monkeypatch.setenv('LOGS_DIRECTORY', str(tmp_path / 'logs'))
        monkeypatch.setenv('N_JOBS', '1')
        monkeypatch.setattr(train_models, 'CONFIG_PRESETS', {'fast_training': _small_config})

    def test_main_exports_results(self, bank_csv, tmp_path):
        exit_code = train_models.main([
            '--data-file', bank_csv, '--config', 'fast_training', '--export-results',
        ])
        assert exit_code == 0
        assert glob.glob(str(tmp_path / 'logs' / 'model_summary_*.csv'))
        assert glob.glob(str(tmp_path / 'logs' / 'detailed_results_*.json'))

    def test_main_reports_failure(self, tmp_path):
        exit_code = train_models.main([
            '--data-file', str(tmp_path / 'missing.csv'), '--config', 'fast_training',
        ])
        assert exit_code == 1

    def test_main_stacks_without_random_forest(self, bank_csv, tmp_path):
        exit_code = train_models.main([
            '--data-file', bank_csv, '--config', 'fast_training', '--export-results',
            '--models', 'gradient_boosting', 'logistic_regression',
        ])
        assert exit_code == 0

        summary = pd.read_csv(glob.glob(str(tmp_path / 'logs' / 'model_summary_*.csv'))[0])
        assert train_models.STACKED_MODEL_NAME in set(summary['model'])
        assert 'random_forest' not in set(summary['model'])

    def test_main_rejects_exclusion_of_untrained_model(self, bank_csv):
        with pytest.raises(SystemExit) as excinfo:
            train_models.main([
                '--data-file', bank_csv, '--config', 'fast_training',
                '--models', 'logistic_regression', '--exclude', 'random_forest',
            ])
        assert excinfo.value.code == 2

    def test_main_passes_options_to_config(self, bank_csv, monkeypatch):
        captured = {}

        def fake_run_analysis(X, y, config):
            captured['config'] = config
            raise RuntimeError("stop after configuration")

        monkeypatch.setattr(train_models, 'run_analysis', fake_run_analysis)
        exit_code = train_models.main([
            '--data-file', bank_csv, '--config', 'fast_training', '--random-state', '11',
            '--models', 'gradient_boosting', '--exclude', 'random_forest_threshold',
        ])
        assert exit_code == 1

        config = captured['config']
        assert config.random_state == 11
        assert config.cross_validation.random_state == 11
        assert config.stacking.excluded_models == ['random_forest_threshold']

class TestTrainedModelNames:

    def test_calibrated_forest_follows_switch(self):
        config = _small_config()
        config.models_to_train = ['logistic_regression']
        assert train_models.trained_model_names(config) == ['logistic_regression',
                                                             'random_forest_threshold']
        config.enable_threshold_model = False
        assert train_models.trained_model_names(config) == ['logistic_regression']
