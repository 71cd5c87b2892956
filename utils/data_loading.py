#!/usr/bin/env python3
"""
Data Loading Utilities
======================

Loading, cleaning and encoding of the semicolon-delimited bank marketing
table. The cleaned table keeps one row per client contact and the
subscription outcome as a binary label.
"""

import logging
import re
import numpy as np
import pandas as pd
from typing import Optional, Tuple

from config.training_config import DataConfig
from utils.exceptions import DataShapeError, InvalidLabelCardinality

logger = logging.getLogger(__name__)

def normalize_column_name(name: str) -> str:
    """Convert a raw header such as 'emp.var.rate' to 'emp_var_rate'."""
    name = str(name).strip().strip('"').lower()
    return re.sub(r'[^0-9a-z]+', '_', name).strip('_')

def load_bank_marketing(path: str, config: Optional[DataConfig] = None) -> pd.DataFrame:
    """
    Read the raw bank marketing file.

    Args:
        path: Path to the delimited text file
        config: Data configuration (separator)

    Returns:
        Raw DataFrame with the original headers
    """
    if config is None:
        config = DataConfig()

    logger.info(f"Loading bank marketing data from {path}")
    df = pd.read_csv(path, sep=config.separator)
    logger.info(f"Loaded {len(df)} rows x {df.shape[1]} columns")

    if df.shape[1] < 2:
        raise DataShapeError(
            f"Expected a '{config.separator}' delimited table with a label column, "
            f"got {df.shape[1]} column(s)"
        )
    return df

def clean_bank_data(df: pd.DataFrame, config: Optional[DataConfig] = None) -> pd.DataFrame:
    """
    Rename, trim and validate the raw table.

    Args:
        df: Raw DataFrame
        config: Data configuration

    Returns:
        Cleaned DataFrame with snake_case columns
    """
    if config is None:
        config = DataConfig()

    cleaned = df.rename(columns=normalize_column_name)
    label_column = normalize_column_name(config.label_column)

    if cleaned.columns.duplicated().any():
        dupes = cleaned.columns[cleaned.columns.duplicated()].tolist()
        raise DataShapeError(f"Duplicate columns after renaming: {dupes}")

    if label_column not in cleaned.columns:
        raise DataShapeError(f"Label column '{label_column}' not found in {cleaned.columns.tolist()}")

    # Strip stray whitespace and quotes from text cells
    for col in cleaned.select_dtypes(include=['object', 'string']).columns:
        cleaned[col] = cleaned[col].str.strip().str.strip('"')

    drop_cols = [normalize_column_name(c) for c in config.drop_columns]
    unknown = [c for c in drop_cols if c not in cleaned.columns]
    if unknown:
        raise DataShapeError(f"Cannot drop unknown columns: {unknown}")
    if drop_cols:
        logger.info(f"Dropping columns: {drop_cols}")
        cleaned = cleaned.drop(columns=drop_cols)

    if config.expected_n_columns is not None and cleaned.shape[1] != config.expected_n_columns:
        raise DataShapeError(
            f"Expected {config.expected_n_columns} columns after cleaning, found {cleaned.shape[1]}"
        )

    labels = set(cleaned[label_column].dropna().unique())
    expected = {config.positive_label, config.negative_label}
    if len(labels) != 2 or labels != expected:
        raise InvalidLabelCardinality(
            f"Label column '{label_column}' must hold exactly {sorted(expected)}, found {sorted(labels)}"
        )

    logger.info(f"Class distribution: {cleaned[label_column].value_counts().to_dict()}")
    return cleaned

def encode_features(X: pd.DataFrame) -> pd.DataFrame:
    """
    One-hot encode categorical columns and cast everything to float.

    Raises DataShapeError when a non-categorical column is not numeric.
    """
    categorical = X.select_dtypes(include=['object', 'string', 'category', 'bool']).columns.tolist()
    numeric = [c for c in X.columns if c not in categorical]

    for col in numeric:
        if not pd.api.types.is_numeric_dtype(X[col]):
            raise DataShapeError(f"Column '{col}' has non-numeric dtype {X[col].dtype}")

    encoded = pd.get_dummies(X, columns=categorical, prefix_sep='=', dtype=float)
    encoded = encoded.astype(float)
    encoded.columns = [str(c) for c in encoded.columns]
    logger.debug(f"Encoded {len(categorical)} categorical columns into {encoded.shape[1]} features")
    return encoded

def split_features_target(df: pd.DataFrame,
                          config: Optional[DataConfig] = None) -> Tuple[pd.DataFrame, pd.Series]:
    """
    Separate encoded features from the binary label.

    Returns:
        X (encoded features), y (1 = positive label, 0 = negative label)
    """
    if config is None:
        config = DataConfig()

    label_column = normalize_column_name(config.label_column)
    y_raw = df[label_column]
    if y_raw.isna().any():
        raise DataShapeError(f"Label column '{label_column}' contains missing values")

    y = (y_raw == config.positive_label).astype(int).rename('target')
    X = encode_features(df.drop(columns=[label_column]))
    return X, y

def prepare_bank_dataset(path: str, config: Optional[DataConfig] = None) -> Tuple[pd.DataFrame, pd.Series]:
    """Load, clean and encode the bank marketing table in one call."""
    if config is None:
        config = DataConfig()
    df = clean_bank_data(load_bank_marketing(path, config), config)
    X, y = split_features_target(df, config)
    logger.info(f"Prepared {X.shape[0]} examples with {X.shape[1]} features "
                f"(positive rate {np.mean(y):.3f})")
    return X, y
