#!/usr/bin/env python3
"""
Data Splitting Utilities
========================

Stratified train/test partitioning and repeated stratified K-fold
resampling. Every function takes an explicit random_state so that
partitions are reproducible without touching global RNG state.
"""

import logging
import numpy as np
import pandas as pd
from typing import Dict, Iterator, Tuple
from sklearn.model_selection import train_test_split, RepeatedStratifiedKFold

from config.training_config import DEFAULT_RANDOM_STATE, DEFAULT_TEST_SIZE
from utils.exceptions import InvalidLabelCardinality

logger = logging.getLogger(__name__)

def check_binary_labels(y) -> np.ndarray:
    """
    Return the sorted label domain, failing unless it has exactly two values.
    """
    classes = np.unique(np.asarray(y))
    if len(classes) != 2:
        raise InvalidLabelCardinality(
            f"Binary classification needs exactly two label values, found {classes.tolist()}"
        )
    return classes

def stratified_train_test_split(X: pd.DataFrame, y: pd.Series,
                               test_size: float = DEFAULT_TEST_SIZE,
                               random_state: int = DEFAULT_RANDOM_STATE
                               ) -> Tuple[pd.DataFrame, pd.DataFrame, pd.Series, pd.Series]:
    """
    Stratified train-test split keyed on the label.

    Args:
        X: Feature matrix
        y: Target labels
        test_size: Proportion of examples in the test partition
        random_state: Seed for the shuffle

    Returns:
        X_train, X_test, y_train, y_test
    """
    logger.info(f"Performing stratified train-test split (test_size={test_size}, seed={random_state})")

    check_binary_labels(y)
    logger.info(f"Original class distribution: {y.value_counts().to_dict()}")

    X_train, X_test, y_train, y_test = train_test_split(
        X, y,
        test_size=test_size,
        stratify=y,
        random_state=random_state
    )

    logger.info(f"Train class distribution: {y_train.value_counts().to_dict()}")
    logger.info(f"Test class distribution: {y_test.value_counts().to_dict()}")
    return X_train, X_test, y_train, y_test

def repeated_stratified_folds(y, n_folds: int = 5, n_repeats: int = 1,
                              random_state: int = DEFAULT_RANDOM_STATE
                              ) -> Iterator[Tuple[np.ndarray, np.ndarray]]:
    """
    Yield (train_idx, valid_idx) positional index pairs from a repeated
    stratified K-fold.

    n_folds is reduced to the minority class count when it is smaller,
    with a floor of 2.
    """
    y = np.asarray(y)
    check_binary_labels(y)

    minority_count = int(pd.Series(y).value_counts().min())
    actual_folds = max(2, min(n_folds, minority_count))
    if actual_folds < n_folds:
        logger.warning(f"Reducing n_folds from {n_folds} to {actual_folds} due to minority class size")

    splitter = RepeatedStratifiedKFold(
        n_splits=actual_folds, n_repeats=n_repeats, random_state=random_state
    )
    logger.debug(f"Repeated stratified K-fold: {actual_folds} folds x {n_repeats} repeats")
    yield from splitter.split(np.zeros(len(y)), y)

def validate_split_quality(y_train: pd.Series, y_test: pd.Series,
                           tolerance: float = 0.05) -> Dict[str, float]:
    """
    Check that both partitions keep the overall label balance.

    Returns:
        Dictionary with partition sizes, positive rates and whether the
        rates agree within tolerance.
    """
    train_rate = float(np.mean(y_train))
    test_rate = float(np.mean(y_test))
    overall_rate = float(np.mean(np.concatenate([np.asarray(y_train), np.asarray(y_test)])))

    report = {
        'n_train': int(len(y_train)),
        'n_test': int(len(y_test)),
        'train_positive_rate': train_rate,
        'test_positive_rate': test_rate,
        'overall_positive_rate': overall_rate,
        'is_balanced': abs(train_rate - overall_rate) <= tolerance and abs(test_rate - overall_rate) <= tolerance,
    }

    if not report['is_balanced']:
        logger.warning(f"Partition positive rates drifted: train={train_rate:.3f}, "
                       f"test={test_rate:.3f}, overall={overall_rate:.3f}")
    return report
