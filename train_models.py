#!/usr/bin/env python3
"""
Bank Marketing Model Committee
==============================

One-shot comparison of classifiers predicting term-deposit subscription
on the bank marketing table:

- Random forest, gradient-boosted trees and logistic regression
- A random forest with a cross-validated decision threshold
- Agreement analysis: positives missed by every model at once
- A decision tree stacked over the models' categorical predictions

Each model is scored on the training and test partitions with accuracy,
sensitivity, specificity and the composite distance to the ideal point.

Usage
-----
python train_models.py --data-file data/bank-additional-full.csv --export-results
python train_models.py --config fast_training --models random_forest logistic_regression
"""

import argparse
import logging
import sys
import time
import traceback
from typing import Dict, Any, List, Optional

import numpy as np
import pandas as pd

from config.training_config import TrainingConfig, CONFIG_PRESETS, get_default_config
from config.settings import load_config, apply_settings
from models import create_model, RandomForestModel, ThresholdCalibratedClassifier
from utils.logging import setup_logging
from utils.data_loading import prepare_bank_dataset
from utils.data_splitting import stratified_train_test_split, validate_split_quality
from utils.agreement import build_prediction_matrix, missed_by_all, missed_fraction_curve
from utils.stacking import fit_stack, predict_stack, evaluate_stacking_quality
from utils.evaluation import (
    compare_models, create_performance_summary, create_confusion_matrices,
    roc_curve_data, stacking_improvement, export_results, generate_text_report
)
from utils.visualization import plot_confusion_matrices, plot_roc_curves, plot_threshold_sweep

logger = logging.getLogger(__name__)

STACKED_MODEL_NAME = 'stacked_tree'
CALIBRATED_MODEL_NAME = 'random_forest_threshold'

def trained_model_names(config: TrainingConfig) -> List[str]:
    """Prediction-matrix columns a run with this configuration produces."""
    names = list(config.models_to_train)
    if config.enable_threshold_model:
        names.append(CALIBRATED_MODEL_NAME)
    return names

def train_base_models(X_train: pd.DataFrame, y_train: pd.Series,
                      config: TrainingConfig) -> Dict[str, Any]:
    """
    Train every configured base model plus the threshold-calibrated forest.

    A model that fails to train stops the run: the agreement and stacking
    steps need every declared model column.
    """
    trained = {}
    for model_name in config.models_to_train:
        start_time = time.time()
        logger.info(f"Training {model_name}...")
        try:
            model = create_model(model_name, **config.model_params(model_name))
            model.fit(X_train, y_train)
        except Exception as e:
            logger.error(f"{model_name} failed to train: {e}")
            raise
        trained[model_name] = model
        logger.info(f"{model_name} trained in {time.time() - start_time:.1f}s")

    if config.enable_threshold_model:
        start_time = time.time()
        params = config.model_params('random_forest')
        calibrated = ThresholdCalibratedClassifier(
            RandomForestModel(name='random_forest', **params),
            thresholds=config.threshold.get_candidates(),
            n_folds=config.cross_validation.n_folds,
            n_repeats=config.cross_validation.n_repeats,
            random_state=config.cross_validation.random_state,
            tie_break_center=config.threshold.tie_break_center,
            name=CALIBRATED_MODEL_NAME,
        )
        try:
            calibrated.fit(X_train, y_train)
        except Exception as e:
            logger.error(f"{calibrated.name} failed to train: {e}")
            raise
        trained[calibrated.name] = calibrated
        logger.info(f"{calibrated.name} calibrated in {time.time() - start_time:.1f}s "
                    f"(threshold={calibrated.threshold_:.2f})")

    return trained

def collect_predictions(models: Dict[str, Any], X: pd.DataFrame) -> Dict[str, Dict[str, np.ndarray]]:
    """Probabilities and categorical predictions of every model on X."""
    probabilities, predictions = {}, {}
    for model_name, model in models.items():
        probabilities[model_name] = model.predict_proba(X)
        predictions[model_name] = model.predict(X)
    return {'probabilities': probabilities, 'predictions': predictions}

def run_analysis(X: pd.DataFrame, y: pd.Series,
                 config: Optional[TrainingConfig] = None) -> Dict[str, Any]:
    """
    Run the full comparison on an encoded feature table.

    Args:
        X: Encoded features
        y: 0/1 labels (1 = subscribed)
        config: Analysis configuration

    Returns:
        Dictionary with trained models, prediction matrices, agreement,
        the stacked model, metric tables, ROC data and feature importance
    """
    if config is None:
        config = get_default_config()

    start_time = time.time()
    logger.info("=" * 60)
    logger.info(f"Bank marketing committee: {len(X)} examples, {X.shape[1]} features")
    logger.info("=" * 60)

    X_train, X_test, y_train, y_test = stratified_train_test_split(
        X, y, test_size=config.test_size, random_state=config.random_state
    )
    split_quality = validate_split_quality(y_train, y_test)

    models = train_base_models(X_train, y_train, config)

    train_out = collect_predictions(models, X_train)
    test_out = collect_predictions(models, X_test)

    train_matrix = build_prediction_matrix(train_out['predictions'], y_train,
                                           truth_column=config.stacking.truth_column)
    test_matrix = build_prediction_matrix(test_out['predictions'], y_test,
                                          truth_column=config.stacking.truth_column)

    agreement = missed_by_all(test_matrix, positive_label=1, truth_column=config.stacking.truth_column)
    miss_curve = missed_fraction_curve(test_matrix, truth_column=config.stacking.truth_column)
    logger.info(f"Detection ceiling on test partition: {agreement.detection_ceiling:.4f}")

    stacked_model = None
    stacking_quality = None
    if config.enable_stacking:
        stacking_quality = evaluate_stacking_quality(train_matrix, config.stacking.truth_column)
        stacked_model = fit_stack(train_matrix, config.stacking.excluded_models,
                                  config.stacking, random_state=config.random_state)
        train_out['predictions'][STACKED_MODEL_NAME] = predict_stack(stacked_model, train_matrix).to_numpy()
        test_out['predictions'][STACKED_MODEL_NAME] = predict_stack(stacked_model, test_matrix).to_numpy()

    logger.info("Training partition metrics:")
    train_table = compare_models(y_train, train_out['predictions'], train_out['probabilities'], 'train')
    logger.info("Test partition metrics:")
    test_table = compare_models(y_test, test_out['predictions'], test_out['probabilities'], 'test')
    summary = create_performance_summary([train_table, test_table])

    comparison = {}
    if stacked_model is not None:
        for metric in ('accuracy', 'sensitivity', 'specificity', 'composite_distance'):
            comparison[metric] = stacking_improvement(test_table, STACKED_MODEL_NAME, metric)
        verdict = 'beats' if comparison['composite_distance'] > 0 else 'does not beat'
        logger.info(f"Stacked tree {verdict} the best base model on held-out composite distance "
                    f"({comparison['composite_distance']:+.4f})")

    roc_data = {name: roc_curve_data(y_test, proba, name)
                for name, proba in test_out['probabilities'].items()}
    feature_importance = {name: model.get_feature_importance() for name, model in models.items()}

    threshold_sweep = None
    selected_threshold = None
    calibrated_name = next((n for n, m in models.items() if isinstance(m, ThresholdCalibratedClassifier)), None)
    if calibrated_name is not None:
        threshold_sweep = models[calibrated_name].cv_results_
        selected_threshold = models[calibrated_name].threshold_

    plots = {}
    if config.visualization.save_plots:
        plots['confusion_matrices'] = plot_confusion_matrices(
            create_confusion_matrices(test_table), config=config.visualization)
        plots['roc_curves'] = plot_roc_curves(roc_data, config=config.visualization)
        if threshold_sweep is not None:
            plots['threshold_sweep'] = plot_threshold_sweep(
                threshold_sweep, selected_threshold, config=config.visualization)

    elapsed = time.time() - start_time
    logger.info(f"Analysis completed in {elapsed:.1f}s")

    return {
        'models': models,
        'split_quality': split_quality,
        'train_matrix': train_matrix,
        'test_matrix': test_matrix,
        'agreement': agreement,
        'missed_fraction_curve': miss_curve,
        'stacked_model': stacked_model,
        'stacking_quality': stacking_quality,
        'stacking_comparison': comparison,
        'performance_summary': summary,
        'test_metrics': test_table,
        'roc_data': roc_data,
        'feature_importance': feature_importance,
        'threshold_sweep': threshold_sweep,
        'selected_threshold': selected_threshold,
        'plots': plots,
        'text_report': generate_text_report(test_table, agreement.to_dict()),
        'elapsed_seconds': elapsed,
    }

def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the analysis script."""
    settings = load_config()
    parser = argparse.ArgumentParser(description='Compare classifiers on the bank marketing data')

    parser.add_argument('--data-file', type=str, default=settings['BANK_DATA_PATH'],
                        help='Path to the semicolon-delimited bank marketing file')
    parser.add_argument('--config', choices=sorted(CONFIG_PRESETS), default='default',
                        help='Configuration preset')
    parser.add_argument('--models', nargs='+',
                        choices=['random_forest', 'gradient_boosting', 'logistic_regression'],
                        help='Base models to train (default: all)')
    parser.add_argument('--exclude', nargs='*', default=None,
                        help='Model columns left out of the stacked tree')
    parser.add_argument('--drop-columns', nargs='*', default=None,
                        help='Raw columns removed before modelling')
    parser.add_argument('--test-size', type=float, default=None,
                        help='Test partition share (0.0-1.0)')
    parser.add_argument('--random-state', type=int, default=None,
                        help='Seed for partitioning and training')
    parser.add_argument('--log-level', choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'],
                        default=settings['LOG_LEVEL'], help='Logging level')
    parser.add_argument('--export-results', action='store_true',
                        help='Export metric tables to the logs directory')
    parser.add_argument('--save-plots', action='store_true',
                        help='Save confusion matrix, ROC and threshold plots')

    args = parser.parse_args(argv)

    setup_logging(args.log_level, log_dir=settings['LOGS_DIRECTORY'])

    config = apply_settings(CONFIG_PRESETS[args.config](), settings)
    config.data.data_path = args.data_file
    if args.models:
        config.models_to_train = args.models
    trained_names = trained_model_names(config)
    if args.exclude is not None:
        unknown = [name for name in args.exclude if name not in trained_names]
        if unknown:
            parser.error(f"--exclude names models that are not trained: {unknown} "
                         f"(trained: {trained_names})")
        config.stacking.excluded_models = args.exclude
    else:
        config.stacking.excluded_models = [
            name for name in config.stacking.excluded_models if name in trained_names
        ]
    if args.drop_columns is not None:
        config.data.drop_columns = args.drop_columns
    if args.test_size is not None:
        config.test_size = args.test_size
    if args.random_state is not None:
        config.random_state = args.random_state
        config.cross_validation.random_state = args.random_state
    config.visualization.save_plots = args.save_plots

    try:
        X, y = prepare_bank_dataset(config.data.data_path, config.data)
        results = run_analysis(X, y, config)
    except Exception as e:
        logger.error(f"Analysis failed: {e}")
        logger.error(traceback.format_exc())
        return 1

    logger.info(f"\n{results['text_report']}")

    if args.export_results:
        export_results(
            results['performance_summary'],
            details={
                'agreement': results['agreement'].to_dict(),
                'missed_fraction_curve': results['missed_fraction_curve'],
                'selected_threshold': results['selected_threshold'],
                'stacking_comparison': results['stacking_comparison'],
                'split_quality': results['split_quality'],
                'feature_importance': {k: v.head(20) for k, v in results['feature_importance'].items()},
            },
            logs_dir=config.logs_dir,
        )

    return 0

if __name__ == '__main__':
    sys.exit(main())
