#!/usr/bin/env python3
"""
Evaluation Utilities
===================

Confusion-matrix statistics, the sensitivity/specificity composite
distance, threshold sweeps, ROC curve data and results export for the
model committee.
"""

import os
import json
import logging
import pandas as pd
import numpy as np
from typing import Dict, Any, List, Optional, Sequence
from datetime import datetime
from sklearn.metrics import (
    accuracy_score, precision_score, f1_score,
    roc_auc_score, roc_curve, confusion_matrix
)

from utils.exceptions import EmptyCandidateSet

logger = logging.getLogger(__name__)

def apply_threshold(scores: np.ndarray, threshold: float) -> np.ndarray:
    """Map probability scores to 0/1 labels: score >= threshold -> 1."""
    return (np.asarray(scores, dtype=float).ravel() >= float(threshold)).astype(int)

def composite_distance(sensitivity: float, specificity: float) -> float:
    """Euclidean distance from the ideal point (sensitivity=1, specificity=1)."""
    return float(np.sqrt((1.0 - specificity) ** 2 + (1.0 - sensitivity) ** 2))

def validate_candidates(thresholds: Optional[Sequence[float]]) -> List[float]:
    """
    Return candidate thresholds as floats.

    Raises EmptyCandidateSet for an empty sequence and ValueError for
    values outside (0, 1).
    """
    if thresholds is None or len(thresholds) == 0:
        raise EmptyCandidateSet("At least one threshold candidate is required")

    candidates = [float(t) for t in thresholds]
    out_of_range = [t for t in candidates if not 0.0 < t < 1.0]
    if out_of_range:
        raise ValueError(f"Threshold candidates must lie in (0, 1), got {out_of_range}")
    return candidates

def compute_classification_metrics(y_true: np.ndarray, y_pred: np.ndarray,
                                   y_proba: Optional[np.ndarray] = None,
                                   model_name: str = "model") -> Dict[str, float]:
    """
    Compute confusion-matrix based metrics.

    Args:
        y_true: True binary labels
        y_pred: Predicted binary labels
        y_proba: Predicted probabilities (optional, enables ROC-AUC)
        model_name: Name of the model for logging

    Returns:
        Dictionary of computed metrics
    """
    y_true = np.asarray(y_true).astype(int).ravel()
    y_pred = np.asarray(y_pred).astype(int).ravel()

    if len(y_true) != len(y_pred):
        raise ValueError(f"{model_name}: {len(y_true)} labels but {len(y_pred)} predictions")

    metrics = {}

    tn, fp, fn, tp = confusion_matrix(y_true, y_pred, labels=[0, 1]).ravel()
    metrics['true_negatives'] = int(tn)
    metrics['false_positives'] = int(fp)
    metrics['false_negatives'] = int(fn)
    metrics['true_positives'] = int(tp)

    metrics['accuracy'] = accuracy_score(y_true, y_pred)
    metrics['precision'] = precision_score(y_true, y_pred, zero_division=0.0)
    metrics['f1'] = f1_score(y_true, y_pred, zero_division=0.0)

    metrics['sensitivity'] = tp / (tp + fn) if (tp + fn) > 0 else 0.0
    metrics['specificity'] = tn / (tn + fp) if (tn + fp) > 0 else 0.0
    metrics['composite_distance'] = composite_distance(metrics['sensitivity'], metrics['specificity'])

    if y_proba is not None and len(np.unique(y_true)) > 1:
        metrics['roc_auc'] = roc_auc_score(y_true, np.asarray(y_proba, dtype=float).ravel())
    else:
        metrics['roc_auc'] = np.nan

    metrics['predicted_positives'] = int(np.sum(y_pred))
    metrics['actual_positives'] = int(np.sum(y_true))

    return metrics

def sweep_thresholds(y_true: np.ndarray, y_proba: np.ndarray,
                     thresholds: Sequence[float]) -> pd.DataFrame:
    """
    Evaluate every candidate threshold over one fixed set of scores.

    Returns:
        DataFrame indexed by candidate order with threshold, sensitivity,
        specificity, accuracy, composite_distance and predicted_positives.
    """
    candidates = validate_candidates(thresholds)
    y_true = np.asarray(y_true).astype(int).ravel()
    y_proba = np.asarray(y_proba, dtype=float).ravel()

    rows = []
    for threshold in candidates:
        y_pred = apply_threshold(y_proba, threshold)
        metrics = compute_classification_metrics(y_true, y_pred)
        rows.append({
            'threshold': threshold,
            'sensitivity': metrics['sensitivity'],
            'specificity': metrics['specificity'],
            'accuracy': metrics['accuracy'],
            'composite_distance': metrics['composite_distance'],
            'predicted_positives': metrics['predicted_positives'],
        })

    return pd.DataFrame(rows)

def select_threshold(sweep: pd.DataFrame, center: float = 0.5,
                     distance_column: str = 'composite_distance') -> float:
    """
    Pick the threshold with the smallest composite distance.

    Ties go to the threshold nearest to center; a remaining tie keeps the
    earliest candidate.
    """
    if sweep.empty:
        raise EmptyCandidateSet("Cannot select a threshold from an empty sweep")

    distances = sweep[distance_column].to_numpy(dtype=float)
    best = np.nanmin(distances)
    tied = sweep[np.isclose(distances, best, rtol=0.0, atol=1e-12)]

    offsets = (tied['threshold'] - center).abs().to_numpy()
    chosen = tied.iloc[int(np.argmin(offsets))]
    logger.info(f"Selected threshold {chosen['threshold']:.4f} "
                f"(composite distance {chosen[distance_column]:.4f}, {len(tied)} tied)")
    return float(chosen['threshold'])

def roc_curve_data(y_true: np.ndarray, y_proba: np.ndarray, model_name: str = "model") -> pd.DataFrame:
    """
    ROC curve points for one model.

    Returns:
        DataFrame with model, fpr, tpr and threshold columns; the AUC is
        stored in DataFrame.attrs['auc'].
    """
    fpr, tpr, thresholds = roc_curve(np.asarray(y_true).astype(int), np.asarray(y_proba, dtype=float))
    curve = pd.DataFrame({'model': model_name, 'fpr': fpr, 'tpr': tpr, 'threshold': thresholds})
    curve.attrs['auc'] = float(roc_auc_score(np.asarray(y_true).astype(int), np.asarray(y_proba, dtype=float)))
    return curve

def compare_models(y_true: np.ndarray,
                   predictions: Dict[str, np.ndarray],
                   probabilities: Optional[Dict[str, np.ndarray]] = None,
                   partition: str = 'test') -> pd.DataFrame:
    """
    Metric table with one row per model for one partition.

    Args:
        y_true: True binary labels
        predictions: Model name -> 0/1 predictions
        probabilities: Model name -> positive-class probabilities (optional)
        partition: Partition label stored in the table

    Returns:
        DataFrame indexed by model name
    """
    probabilities = probabilities or {}
    rows = []
    for model_name, y_pred in predictions.items():
        metrics = compute_classification_metrics(y_true, y_pred, probabilities.get(model_name), model_name)
        rows.append({'model': model_name, 'partition': partition, **metrics})
        logger.info(f"  {model_name} [{partition}]: accuracy={metrics['accuracy']:.4f}, "
                    f"sensitivity={metrics['sensitivity']:.4f}, specificity={metrics['specificity']:.4f}, "
                    f"distance={metrics['composite_distance']:.4f}")

    return pd.DataFrame(rows).set_index('model')

def stacking_improvement(summary: pd.DataFrame, stacked_name: str,
                         metric: str = 'composite_distance') -> float:
    """
    Difference between the best base model and the stacked model.

    Positive values mean the stack beat every base model. For distance
    metrics smaller is better; for the others larger is better.
    """
    base = summary.drop(index=stacked_name)[metric]
    stacked = float(summary.loc[stacked_name, metric])
    if metric == 'composite_distance':
        return float(base.min() - stacked)
    return float(stacked - base.max())

def create_performance_summary(tables: Sequence[pd.DataFrame]) -> pd.DataFrame:
    """Concatenate per-partition metric tables into one rounded summary."""
    frames = [t for t in tables if t is not None and not t.empty]
    if not frames:
        return pd.DataFrame(columns=[
            'partition', 'accuracy', 'sensitivity', 'specificity',
            'composite_distance', 'precision', 'f1', 'roc_auc'
        ])
    summary = pd.concat(frames)
    return summary.round(4)

def create_confusion_matrices(summary: pd.DataFrame) -> Dict[str, np.ndarray]:
    """
    Extract 2x2 confusion matrices ([[TN, FP], [FN, TP]]) from a metric table.
    """
    confusion_matrices = {}
    for model_name, row in summary.iterrows():
        confusion_matrices[model_name] = np.array([
            [row['true_negatives'], row['false_positives']],
            [row['false_negatives'], row['true_positives']]
        ]).astype(int)
    return confusion_matrices

def export_results(summary: pd.DataFrame,
                   details: Optional[Dict[str, Any]] = None,
                   logs_dir: str = 'logs') -> Dict[str, str]:
    """
    Export the performance summary to CSV and details to JSON.

    Returns:
        Dictionary mapping export types to file paths
    """
    os.makedirs(logs_dir, exist_ok=True)
    timestamp = datetime.now().strftime('%Y-%m-%d_%H-%M')
    exported_files = {}

    summary_path = os.path.join(logs_dir, f'model_summary_{timestamp}.csv')
    summary.reset_index().to_csv(summary_path, index=False)
    exported_files['summary'] = summary_path
    logger.info(f"Performance summary exported to {summary_path}")

    if details:
        def convert_numpy(obj):
            if isinstance(obj, np.ndarray):
                return obj.tolist()
            elif isinstance(obj, np.integer):
                return int(obj)
            elif isinstance(obj, np.floating):
                return float(obj)
            elif isinstance(obj, pd.DataFrame):
                return obj.reset_index().to_dict(orient='records')
            elif isinstance(obj, pd.Series):
                return {str(k): convert_numpy(v) for k, v in obj.items()}
            elif isinstance(obj, dict):
                return {str(k): convert_numpy(v) for k, v in obj.items()}
            elif isinstance(obj, (list, tuple)):
                return [convert_numpy(v) for v in obj]
            else:
                return obj

        detailed_path = os.path.join(logs_dir, f'detailed_results_{timestamp}.json')
        with open(detailed_path, 'w') as f:
            json.dump(convert_numpy(details), f, indent=2, default=str)
        exported_files['detailed'] = detailed_path
        logger.info(f"Detailed results exported to {detailed_path}")

    return exported_files

def generate_text_report(summary: pd.DataFrame, agreement: Optional[Dict[str, Any]] = None) -> str:
    """
    Format the metric table and agreement figures as a plain-text report.
    """
    report_lines = []
    report_lines.append("=" * 60)
    report_lines.append("BANK MARKETING MODEL COMPARISON")
    report_lines.append("=" * 60)
    report_lines.append(f"Timestamp: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}")
    report_lines.append("")

    for model_name, row in summary.iterrows():
        report_lines.append(f"{str(model_name).upper()} [{row.get('partition', '')}]:")
        report_lines.append(f"  Accuracy:    {row.get('accuracy', np.nan):.4f}")
        report_lines.append(f"  Sensitivity: {row.get('sensitivity', np.nan):.4f}")
        report_lines.append(f"  Specificity: {row.get('specificity', np.nan):.4f}")
        report_lines.append(f"  Distance:    {row.get('composite_distance', np.nan):.4f}")
        report_lines.append(f"  ROC-AUC:     {row.get('roc_auc', np.nan):.4f}")
        report_lines.append("")

    if agreement:
        report_lines.append("AGREEMENT:")
        report_lines.append("-" * 40)
        report_lines.append(f"Positives missed by all: {agreement.get('missed_count', 0)}")
        report_lines.append(f"Missed fraction:         {agreement.get('missed_fraction', np.nan):.4f}")
        report_lines.append(f"Detection ceiling:       {agreement.get('detection_ceiling', np.nan):.4f}")

    report_lines.append("=" * 60)
    return "\n".join(report_lines)
