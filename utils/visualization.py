#!/usr/bin/env python3
"""
Visualization Utilities
======================

Plotting sink for the model comparison: confusion matrices, ROC curves
and the threshold sweep curve. Figures are written to the reports
directory when save_plots is on.
"""

import os
import logging
import numpy as np
import pandas as pd
from typing import Dict, List, Optional
from datetime import datetime

import matplotlib
matplotlib.use('Agg')
import matplotlib.pyplot as plt
import seaborn as sns

from config.training_config import VisualizationConfig

logger = logging.getLogger(__name__)

def ensure_reports_dir(reports_dir: str = 'reports') -> str:
    """Ensure reports directory exists and return path"""
    os.makedirs(reports_dir, exist_ok=True)
    return reports_dir

def get_timestamp() -> str:
    """Get timestamp string for file naming"""
    return datetime.now().strftime('%Y-%m-%d_%H-%M')

def _finish(fig, stem: str, config: VisualizationConfig) -> Optional[str]:
    if not config.save_plots:
        plt.close(fig)
        return None
    reports_dir = ensure_reports_dir(config.reports_dir)
    filepath = os.path.join(reports_dir, f'{stem}_{get_timestamp()}.{config.plot_format}')
    fig.savefig(filepath, dpi=config.chart_dpi, bbox_inches='tight')
    plt.close(fig)
    logger.info(f"Plot saved to {filepath}")
    return filepath

def plot_confusion_matrices(confusion_matrices: Dict[str, np.ndarray],
                            model_names: Optional[List[str]] = None,
                            config: Optional[VisualizationConfig] = None) -> Optional[str]:
    """
    Plot confusion matrices for all models in a grid layout.

    Args:
        confusion_matrices: Model name -> [[TN, FP], [FN, TP]]
        model_names: Ordering of the panels (defaults to dict order)
        config: Visualization configuration

    Returns:
        Path to saved plot file, or None when plots are not saved
    """
    if config is None:
        config = VisualizationConfig()
    if model_names is None:
        model_names = list(confusion_matrices)
    if not model_names:
        logger.warning("No confusion matrices to plot")
        return None

    n_models = len(model_names)
    n_cols = min(3, n_models)
    n_rows = (n_models + n_cols - 1) // n_cols

    fig, axes = plt.subplots(n_rows, n_cols,
                             figsize=(config.matrix_figure_width * n_cols,
                                      config.matrix_figure_height * n_rows),
                             squeeze=False)
    axes = axes.flatten()

    for ax, model_name in zip(axes, model_names):
        sns.heatmap(confusion_matrices[model_name], annot=True, fmt='d', cmap='Blues',
                    xticklabels=['Predicted no', 'Predicted yes'],
                    yticklabels=['Actual no', 'Actual yes'],
                    cbar=False, ax=ax)
        ax.set_title(model_name.replace('_', ' ').title())

    for ax in axes[n_models:]:
        ax.set_visible(False)

    fig.suptitle('Confusion Matrices', fontsize=14)
    fig.tight_layout()
    return _finish(fig, 'confusion_matrices', config)

def plot_roc_curves(roc_data: Dict[str, pd.DataFrame],
                    config: Optional[VisualizationConfig] = None) -> Optional[str]:
    """
    Overlay ROC curves (output of evaluation.roc_curve_data) for all models.
    """
    if config is None:
        config = VisualizationConfig()

    fig, ax = plt.subplots(figsize=(config.roc_figure_width, config.roc_figure_height))
    for model_name, curve in roc_data.items():
        auc = curve.attrs.get('auc', np.nan)
        ax.plot(curve['fpr'], curve['tpr'], label=f'{model_name} (AUC={auc:.3f})')
    ax.plot([0, 1], [0, 1], linestyle='--', color='grey', linewidth=1)
    ax.set_xlabel('False positive rate')
    ax.set_ylabel('True positive rate')
    ax.set_title('ROC Curves')
    ax.legend(loc='lower right')
    return _finish(fig, 'roc_curves', config)

def plot_threshold_sweep(sweep: pd.DataFrame, selected_threshold: Optional[float] = None,
                         config: Optional[VisualizationConfig] = None) -> Optional[str]:
    """
    Sensitivity, specificity and composite distance against the threshold.
    """
    if config is None:
        config = VisualizationConfig()

    fig, ax = plt.subplots(figsize=(config.roc_figure_width, config.roc_figure_height))
    for column in ('sensitivity', 'specificity', 'composite_distance'):
        ax.plot(sweep['threshold'], sweep[column], marker='o', markersize=3, label=column)
    if selected_threshold is not None:
        ax.axvline(selected_threshold, color='black', linestyle=':', label=f'selected={selected_threshold:.2f}')
    ax.set_xlabel('Decision threshold')
    ax.set_title('Threshold Sweep')
    ax.legend()
    return _finish(fig, 'threshold_sweep', config)
