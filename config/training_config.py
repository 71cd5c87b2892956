#!/usr/bin/env python3
"""
Training Configuration
=====================

Centralized configuration for data preparation, cross-validation,
threshold calibration, base model hyperparameters, stacking and
visualization settings. Keeps magic numbers out of the analysis code
and makes experimentation easier.
"""

from dataclasses import dataclass, field
from typing import Dict, Any, List, Optional

import numpy as np

@dataclass
class DataConfig:
    """Configuration for loading and cleaning the bank marketing table"""
    data_path: str = 'data/bank-additional-full.csv'
    separator: str = ';'                      # Source file is semicolon delimited
    label_column: str = 'y'                   # Column holding the subscription outcome
    positive_label: str = 'yes'
    negative_label: str = 'no'
    drop_columns: List[str] = field(default_factory=list)   # Named columns removed after renaming
    expected_n_columns: Optional[int] = None  # Column count after cleaning (None = unchecked)

@dataclass
class CrossValidationConfig:
    """Configuration for repeated stratified cross-validation"""
    n_folds: int = 5                          # Number of folds per repeat
    n_repeats: int = 3                        # Number of repeats
    random_state: int = 42                    # Seed for fold assignment

@dataclass
class ThresholdConfig:
    """Configuration for decision threshold calibration"""
    start: float = 0.50                       # First candidate threshold
    stop: float = 0.99                        # Last candidate threshold (inclusive)
    step: float = 0.01
    candidates: Optional[List[float]] = None  # Explicit candidates override the grid
    tie_break_center: float = 0.5             # Ties resolved toward this value

    def get_candidates(self) -> List[float]:
        """Return the ordered candidate thresholds."""
        if self.candidates is not None:
            return [float(t) for t in self.candidates]
        grid = np.arange(self.start, self.stop + self.step / 2, self.step)
        return [round(float(t), 6) for t in grid if t <= self.stop + 1e-9]

@dataclass
class RandomForestConfig:
    """Random forest hyperparameters"""
    n_estimators: int = 500
    max_features: Any = 'sqrt'                # Feature subsampling per split
    min_samples_leaf: int = 1
    class_weight: Optional[str] = None
    n_jobs: int = -1                          # Parallel backend switch (-1 = all cores)

@dataclass
class GradientBoostingConfig:
    """Gradient boosted trees (xgboost) hyperparameters"""
    n_estimators: int = 150
    max_depth: int = 3
    learning_rate: float = 0.1
    subsample: float = 0.8
    colsample_bytree: float = 0.8
    n_jobs: int = -1

@dataclass
class LogisticRegressionConfig:
    """Logistic regression (GLM) hyperparameters"""
    C: float = 1.0
    max_iter: int = 1000
    solver: str = 'lbfgs'
    scale_features: bool = True               # Standardize inputs before the solver

@dataclass
class StackingConfig:
    """Configuration for the stacked decision tree"""
    # The untuned random forest overpowers the other columns on its own
    # training predictions, so it is left out of the stack by default.
    excluded_models: List[str] = field(default_factory=lambda: ['random_forest'])
    max_depth: Optional[int] = 4
    min_samples_leaf: int = 5
    truth_column: str = 'truth'

@dataclass
class VisualizationConfig:
    """Configuration for plotting and visualization"""
    matrix_figure_width: int = 4             # Width per confusion matrix panel
    matrix_figure_height: int = 4            # Height per confusion matrix panel
    roc_figure_width: int = 7
    roc_figure_height: int = 6
    chart_dpi: int = 150                     # DPI for saved charts
    save_plots: bool = False                 # Whether to save plots to disk
    plot_format: str = 'png'
    reports_dir: str = 'reports'

@dataclass
class TrainingConfig:
    """Main analysis configuration combining all sub-configs"""
    data: DataConfig = None
    cross_validation: CrossValidationConfig = None
    threshold: ThresholdConfig = None
    random_forest: RandomForestConfig = None
    gradient_boosting: GradientBoostingConfig = None
    logistic_regression: LogisticRegressionConfig = None
    stacking: StackingConfig = None
    visualization: VisualizationConfig = None

    random_state: int = 42                   # Seed for partitioning and model training
    test_size: float = 0.25                  # Held-out share of the examples
    models_to_train: List[str] = None        # Base models in the committee (None = all)
    enable_threshold_model: bool = True      # Add the threshold-calibrated random forest
    enable_stacking: bool = True
    logs_dir: str = 'logs'

    def __post_init__(self):
        """Initialize sub-configs if not provided"""
        if self.data is None:
            self.data = DataConfig()
        if self.cross_validation is None:
            self.cross_validation = CrossValidationConfig()
        if self.threshold is None:
            self.threshold = ThresholdConfig()
        if self.random_forest is None:
            self.random_forest = RandomForestConfig()
        if self.gradient_boosting is None:
            self.gradient_boosting = GradientBoostingConfig()
        if self.logistic_regression is None:
            self.logistic_regression = LogisticRegressionConfig()
        if self.stacking is None:
            self.stacking = StackingConfig()
        if self.visualization is None:
            self.visualization = VisualizationConfig()
        if self.models_to_train is None:
            self.models_to_train = ['random_forest', 'gradient_boosting', 'logistic_regression']

    def model_params(self, model_name: str) -> Dict[str, Any]:
        """Return constructor keyword arguments for a registered base model."""
        sections = {
            'random_forest': self.random_forest,
            'gradient_boosting': self.gradient_boosting,
            'logistic_regression': self.logistic_regression,
        }
        if model_name not in sections:
            raise KeyError(f"No hyperparameters configured for model '{model_name}'")
        params = dict(vars(sections[model_name]))
        params['random_state'] = self.random_state
        return params

def get_default_config() -> TrainingConfig:
    """Get default analysis configuration"""
    return TrainingConfig()

def get_fast_training_config() -> TrainingConfig:
    """Get configuration for faster runs (smaller forests, fewer folds)"""
    config = get_default_config()

    config.random_forest.n_estimators = 100
    config.gradient_boosting.n_estimators = 50
    config.cross_validation.n_folds = 3
    config.cross_validation.n_repeats = 1
    config.threshold.step = 0.05
    config.visualization.save_plots = False

    return config

def get_fine_threshold_config() -> TrainingConfig:
    """Get configuration sweeping the low-threshold region used for rare positives"""
    config = get_default_config()

    config.threshold.start = 0.05
    config.threshold.stop = 0.25
    config.threshold.step = 0.01

    return config

CONFIG_PRESETS = {
    'default': get_default_config,
    'fast_training': get_fast_training_config,
    'fine_threshold': get_fine_threshold_config,
}

# Global default configuration
DEFAULT_CONFIG = get_default_config()

DEFAULT_N_FOLDS = DEFAULT_CONFIG.cross_validation.n_folds
DEFAULT_N_REPEATS = DEFAULT_CONFIG.cross_validation.n_repeats
DEFAULT_RANDOM_STATE = DEFAULT_CONFIG.random_state
DEFAULT_TEST_SIZE = DEFAULT_CONFIG.test_size
