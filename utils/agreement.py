#!/usr/bin/env python3
"""
Committee Agreement Utilities
=============================

Builds the prediction matrix (one row per example, one column per base
model plus the ground truth) and measures how many positive examples
every model misses at once. Those examples bound the recall that any
threshold tuning or stacking of the same models can reach.
"""

import logging
import numpy as np
import pandas as pd
from dataclasses import dataclass
from typing import Dict, Optional, Sequence

from utils.exceptions import ColumnMismatch, DataShapeError

logger = logging.getLogger(__name__)

TRUTH_COLUMN = 'truth'

@dataclass
class AgreementResult:
    """Outcome of missed_by_all over the positive rows of a prediction matrix."""
    indicators: pd.Series      # 1 = missed by every model, indexed like the positive rows
    missed_count: int
    missed_fraction: float

    @property
    def detection_ceiling(self) -> float:
        """Fraction of positives caught by at least one model."""
        return 1.0 - self.missed_fraction

    def to_dict(self) -> Dict[str, float]:
        return {
            'n_positive': int(len(self.indicators)),
            'missed_count': self.missed_count,
            'missed_fraction': self.missed_fraction,
            'detection_ceiling': self.detection_ceiling,
        }

def build_prediction_matrix(predictions: Dict[str, Sequence],
                            y_true: Sequence,
                            index: Optional[pd.Index] = None,
                            truth_column: str = TRUTH_COLUMN) -> pd.DataFrame:
    """
    Collect per-model categorical predictions and the ground truth.

    Args:
        predictions: Model name -> predicted labels, all the same length
        y_true: Ground truth labels
        index: Row index (defaults to y_true's index or a RangeIndex)
        truth_column: Name of the ground-truth column

    Returns:
        DataFrame with one column per model followed by the truth column
    """
    if truth_column in predictions:
        raise ColumnMismatch(f"Model name '{truth_column}' collides with the truth column")

    if index is None:
        index = y_true.index if isinstance(y_true, pd.Series) else pd.RangeIndex(len(y_true))

    n_rows = len(index)
    columns = {}
    for model_name, y_pred in predictions.items():
        values = np.asarray(y_pred).ravel()
        if len(values) != n_rows:
            raise DataShapeError(
                f"Model '{model_name}' produced {len(values)} predictions for {n_rows} examples"
            )
        columns[model_name] = values

    truth = np.asarray(y_true).ravel()
    if len(truth) != n_rows:
        raise DataShapeError(f"Ground truth has {len(truth)} rows, expected {n_rows}")
    columns[truth_column] = truth

    return pd.DataFrame(columns, index=index)

def model_columns(prediction_matrix: pd.DataFrame,
                  truth_column: str = TRUTH_COLUMN,
                  exclude: Sequence[str] = ()) -> list:
    """Model prediction columns in matrix order, minus truth and exclusions."""
    unknown = [name for name in exclude if name not in prediction_matrix.columns]
    if unknown:
        raise ColumnMismatch(f"Excluded models not present in prediction matrix: {unknown}")
    return [c for c in prediction_matrix.columns if c != truth_column and c not in set(exclude)]

def missed_by_all(prediction_matrix: pd.DataFrame,
                  positive_label=1,
                  truth_column: str = TRUTH_COLUMN,
                  models: Optional[Sequence[str]] = None) -> AgreementResult:
    """
    Flag positive examples that no model predicts as positive.

    Args:
        prediction_matrix: Output of build_prediction_matrix
        positive_label: Value marking the positive class in every column
        truth_column: Name of the ground-truth column
        models: Restrict to these model columns (default: all model columns)

    Returns:
        AgreementResult with per-row indicators, their sum and their mean.
        With no model columns every positive is missed (fraction 1.0).
    """
    if truth_column not in prediction_matrix.columns:
        raise ColumnMismatch(f"Prediction matrix has no '{truth_column}' column")

    if models is None:
        models = model_columns(prediction_matrix, truth_column)
    else:
        missing = [m for m in models if m not in prediction_matrix.columns]
        if missing:
            raise ColumnMismatch(f"Models not present in prediction matrix: {missing}")
        models = list(models)

    positives = prediction_matrix[prediction_matrix[truth_column] == positive_label]

    if models:
        detected = positives[models].eq(positive_label).any(axis=1)
    else:
        detected = pd.Series(False, index=positives.index)
    indicators = (~detected).astype(int).rename('missed_by_all')

    missed_count = int(indicators.sum())
    if len(indicators) == 0:
        logger.warning("No positive examples in prediction matrix; missed fraction undefined")
        missed_fraction = float('nan')
    else:
        missed_fraction = float(indicators.mean())

    logger.info(f"Missed by all {len(models)} models: {missed_count}/{len(indicators)} positives "
                f"({missed_fraction:.4f})")
    return AgreementResult(indicators=indicators, missed_count=missed_count,
                           missed_fraction=missed_fraction)

def missed_fraction_curve(prediction_matrix: pd.DataFrame,
                          order: Optional[Sequence[str]] = None,
                          positive_label=1,
                          truth_column: str = TRUTH_COLUMN) -> pd.Series:
    """
    Missed fraction as model columns are added one at a time.

    The first entry (no models) is 1.0 and the sequence never increases.
    """
    if order is None:
        order = model_columns(prediction_matrix, truth_column)

    fractions = {'<none>': missed_by_all(prediction_matrix, positive_label, truth_column, []).missed_fraction}
    for i, name in enumerate(order):
        result = missed_by_all(prediction_matrix, positive_label, truth_column, list(order[:i + 1]))
        fractions[name] = result.missed_fraction
    return pd.Series(fractions, name='missed_fraction')
