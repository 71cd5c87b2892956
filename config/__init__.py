"""
Configuration package for the bank marketing model committee
============================================================

Centralized configuration management for data preparation, model
hyperparameters, threshold sweeps and stacking settings.
"""

# Import main configuration classes
from .training_config import (
    TrainingConfig, DataConfig, CrossValidationConfig, ThresholdConfig,
    RandomForestConfig, GradientBoostingConfig, LogisticRegressionConfig,
    StackingConfig, VisualizationConfig, CONFIG_PRESETS,
    get_default_config, get_fast_training_config, get_fine_threshold_config
)
from .settings import load_config, apply_settings
