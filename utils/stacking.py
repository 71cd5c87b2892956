#!/usr/bin/env python3
"""
Stacking Utilities
=================

Trains a secondary decision tree over the base models' categorical
predictions and applies it to a new prediction matrix. The model
columns used by the tree are fixed at fit time; predicting on a matrix
with different model columns fails instead of filling defaults.
"""

import logging
import numpy as np
import pandas as pd
from dataclasses import dataclass, field
from typing import Dict, Any, List, Optional, Sequence
from sklearn.tree import DecisionTreeClassifier

from config.training_config import StackingConfig
from utils.agreement import TRUTH_COLUMN, model_columns
from utils.exceptions import ColumnMismatch, InvalidLabelCardinality

logger = logging.getLogger(__name__)

def _dtype_group(series: pd.Series) -> str:
    """Coarse type family used for fit/predict compatibility checks."""
    if pd.api.types.is_bool_dtype(series) or pd.api.types.is_numeric_dtype(series):
        return 'numeric'
    return 'categorical'

@dataclass
class StackedModel:
    """Decision tree fitted on prediction-matrix columns plus its column contract."""
    estimator: DecisionTreeClassifier
    feature_columns: List[str]
    column_groups: Dict[str, str]
    categories: Dict[str, list]
    excluded_models: List[str] = field(default_factory=list)
    truth_column: str = TRUTH_COLUMN

    @property
    def classes_(self) -> np.ndarray:
        return self.estimator.classes_

    def feature_importance(self) -> pd.Series:
        """Tree importance of each base-model column, largest first."""
        return pd.Series(self.estimator.feature_importances_,
                         index=self.feature_columns).sort_values(ascending=False)

def _encode_columns(prediction_matrix: pd.DataFrame, columns: Sequence[str],
                    categories: Dict[str, list]) -> np.ndarray:
    encoded = np.empty((len(prediction_matrix), len(columns)), dtype=float)
    for j, col in enumerate(columns):
        if col not in categories:
            encoded[:, j] = prediction_matrix[col].to_numpy(dtype=float)
            continue
        values = prediction_matrix[col]
        unseen_mask = ~values.isin(categories[col])
        if unseen_mask.any():
            unseen = sorted(set(values[unseen_mask].astype(str)))
            raise ColumnMismatch(f"Column '{col}' holds values unseen at fit time: {unseen}")
        # Label columns become category codes in fit-time category order
        encoded[:, j] = pd.Categorical(values, categories=categories[col]).codes
    return encoded

def fit_stack(training_prediction_matrix: pd.DataFrame,
              excluded_models: Optional[Sequence[str]] = None,
              config: Optional[StackingConfig] = None,
              random_state: int = 42) -> StackedModel:
    """
    Train the stacking tree on a training-partition prediction matrix.

    Args:
        training_prediction_matrix: Base-model predictions plus the truth column
        excluded_models: Model columns left out of the stack (defaults to
            config.excluded_models)
        config: Stacking configuration
        random_state: Seed for the tree

    Returns:
        Fitted StackedModel
    """
    if config is None:
        config = StackingConfig()
    if excluded_models is None:
        excluded_models = config.excluded_models
    truth_column = config.truth_column

    if truth_column not in training_prediction_matrix.columns:
        raise ColumnMismatch(f"Prediction matrix has no '{truth_column}' column")

    feature_columns = model_columns(training_prediction_matrix, truth_column, excluded_models)
    if not feature_columns:
        raise ColumnMismatch("No model columns left to stack after exclusions")

    y = training_prediction_matrix[truth_column]
    if y.nunique() != 2:
        raise InvalidLabelCardinality(
            f"Stacking needs exactly two truth values, found {sorted(y.unique().tolist())}"
        )

    column_groups = {c: _dtype_group(training_prediction_matrix[c]) for c in feature_columns}
    categories = {c: sorted(training_prediction_matrix[c].dropna().unique().tolist())
                  for c in feature_columns if column_groups[c] == 'categorical'}

    logger.info(f"Training stacked tree on {feature_columns} (excluded: {list(excluded_models)})")

    estimator = DecisionTreeClassifier(
        max_depth=config.max_depth,
        min_samples_leaf=config.min_samples_leaf,
        random_state=random_state
    )
    X = _encode_columns(training_prediction_matrix, feature_columns, categories)
    estimator.fit(X, y.to_numpy())

    stacked = StackedModel(
        estimator=estimator,
        feature_columns=feature_columns,
        column_groups=column_groups,
        categories=categories,
        excluded_models=list(excluded_models),
        truth_column=truth_column,
    )
    logger.info(f"Stacked tree fitted: depth={estimator.get_depth()}, leaves={estimator.get_n_leaves()}")
    return stacked

def check_stack_columns(stacked_model: StackedModel, prediction_matrix: pd.DataFrame) -> None:
    """
    Raise ColumnMismatch unless the matrix holds exactly the fit-time model
    columns (ignoring truth and excluded models) with compatible types.
    """
    ignored = set(stacked_model.excluded_models) | {stacked_model.truth_column}
    present = [c for c in prediction_matrix.columns if c not in ignored]

    missing = [c for c in stacked_model.feature_columns if c not in present]
    extra = [c for c in present if c not in stacked_model.feature_columns]
    if missing or extra:
        raise ColumnMismatch(f"Prediction matrix columns differ from fit time: "
                             f"missing={missing}, unexpected={extra}")

    for col in stacked_model.feature_columns:
        group = _dtype_group(prediction_matrix[col])
        if group != stacked_model.column_groups[col]:
            raise ColumnMismatch(f"Column '{col}' is {group} but was "
                                 f"{stacked_model.column_groups[col]} at fit time")

def predict_stack(stacked_model: StackedModel, prediction_matrix: pd.DataFrame) -> pd.Series:
    """
    Combined categorical predictions for a prediction matrix.

    Returns:
        Series of predicted truth values indexed like the matrix
    """
    check_stack_columns(stacked_model, prediction_matrix)
    X = _encode_columns(prediction_matrix, stacked_model.feature_columns, stacked_model.categories)
    return pd.Series(stacked_model.estimator.predict(X), index=prediction_matrix.index, name='stacked')

def predict_stack_proba(stacked_model: StackedModel, prediction_matrix: pd.DataFrame,
                        positive_label=1) -> pd.Series:
    """Leaf-frequency probability of the positive label for each row."""
    check_stack_columns(stacked_model, prediction_matrix)
    X = _encode_columns(prediction_matrix, stacked_model.feature_columns, stacked_model.categories)
    classes = list(stacked_model.classes_)
    if positive_label not in classes:
        raise ValueError(f"Positive label {positive_label!r} not among fitted classes {classes}")
    proba = stacked_model.estimator.predict_proba(X)[:, classes.index(positive_label)]
    return pd.Series(proba, index=prediction_matrix.index, name='stacked')

def evaluate_stacking_quality(prediction_matrix: pd.DataFrame,
                              truth_column: str = TRUTH_COLUMN) -> Dict[str, Any]:
    """
    Describe how diverse the base-model columns are.

    Returns:
        Dictionary with per-column positive rates, pairwise agreement and
        the mean/max agreement across model pairs.
    """
    columns = model_columns(prediction_matrix, truth_column)
    metrics: Dict[str, Any] = {'n_models': len(columns)}

    metrics['positive_rates'] = {
        c: float(pd.to_numeric(prediction_matrix[c], errors='coerce').mean()) for c in columns
    }

    agreement = {}
    for i, a in enumerate(columns):
        for b in columns[i + 1:]:
            agreement[f'{a}|{b}'] = float((prediction_matrix[a] == prediction_matrix[b]).mean())
    metrics['pairwise_agreement'] = agreement
    metrics['mean_agreement'] = float(np.mean(list(agreement.values()))) if agreement else 1.0
    metrics['max_agreement'] = float(np.max(list(agreement.values()))) if agreement else 1.0

    if metrics['n_models'] < 2:
        logger.warning(f"Poor stacking quality: only {metrics['n_models']} model column(s)")
    elif metrics['mean_agreement'] > 0.95:
        logger.warning(f"Base models nearly always agree: {metrics['mean_agreement']:.3f}")
    else:
        logger.info(f"Stacking inputs: {metrics['n_models']} models, "
                    f"mean agreement {metrics['mean_agreement']:.3f}")

    return metrics
