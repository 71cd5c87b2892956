"""
Utilities package for the bank marketing model committee
========================================================

- data_loading: reading, cleaning and encoding the bank marketing table
- data_splitting: stratified partitioning and repeated K-fold resampling
- evaluation: confusion-matrix metrics, threshold sweeps, ROC data, export
- agreement: prediction matrix and positives missed by every model
- stacking: decision tree stacked over base-model predictions
- visualization: plotting sink for metric tables
"""

from .exceptions import (
    AnalysisError, DataShapeError, InvalidLabelCardinality,
    EmptyCandidateSet, ColumnMismatch
)
from .data_splitting import stratified_train_test_split, repeated_stratified_folds
from .evaluation import (
    apply_threshold, composite_distance, compute_classification_metrics,
    sweep_thresholds, select_threshold
)
from .agreement import build_prediction_matrix, missed_by_all
from .stacking import fit_stack, predict_stack
