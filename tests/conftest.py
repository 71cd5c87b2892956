"""
Shared fixtures: a synthetic table shaped like the bank marketing data.
"""

import os
import sys

import numpy as np
import pandas as pd
import pytest

# Add project root to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from utils.data_loading import clean_bank_data, split_features_target

def make_bank_frame(n_samples: int = 400, seed: int = 0) -> pd.DataFrame:
    """Raw bank-marketing-like records with dotted headers and a yes/no label."""
    rng = np.random.default_rng(seed)

    duration = rng.gamma(2.0, 130.0, n_samples).round()
    euribor = rng.uniform(0.6, 5.0, n_samples).round(3)
    poutcome = rng.choice(['nonexistent', 'failure', 'success'], n_samples, p=[0.8, 0.12, 0.08])

    logit = -2.2 + 0.006 * (duration - 250) - 0.5 * (euribor - 3.0) + 1.8 * (poutcome == 'success')
    subscribed = rng.uniform(size=n_samples) < 1 / (1 + np.exp(-logit))

    return pd.DataFrame({
        'age': rng.integers(18, 90, n_samples),
        'job': rng.choice(['admin.', 'blue-collar', 'technician', 'services', 'retired'], n_samples),
        'marital': rng.choice(['married', 'single', 'divorced'], n_samples),
        'education': rng.choice(['basic.4y', 'high.school', 'university.degree', 'unknown'], n_samples),
        'default': rng.choice(['no', 'unknown'], n_samples, p=[0.8, 0.2]),
        'housing': rng.choice(['yes', 'no'], n_samples),
        'loan': rng.choice(['yes', 'no'], n_samples, p=[0.15, 0.85]),
        'contact': rng.choice(['cellular', 'telephone'], n_samples),
        'month': rng.choice(['may', 'jun', 'jul', 'aug', 'nov'], n_samples),
        'day_of_week': rng.choice(['mon', 'tue', 'wed', 'thu', 'fri'], n_samples),
        'duration': duration,
        'campaign': rng.integers(1, 8, n_samples),
        'pdays': np.where(poutcome == 'nonexistent', 999, rng.integers(0, 20, n_samples)),
        'previous': np.where(poutcome == 'nonexistent', 0, rng.integers(1, 4, n_samples)),
        'poutcome': poutcome,
        'emp.var.rate': rng.choice([-1.8, -0.1, 1.1, 1.4], n_samples),
        'cons.price.idx': rng.uniform(92.2, 94.8, n_samples).round(3),
        'euribor3m': euribor,
        'nr.employed': rng.choice([5099.1, 5191.0, 5228.1], n_samples),
        'y': np.where(subscribed, 'yes', 'no'),
    })

@pytest.fixture()
def bank_raw_df() -> pd.DataFrame:
    return make_bank_frame()

@pytest.fixture()
def bank_csv(tmp_path, bank_raw_df) -> str:
    path = tmp_path / 'bank-additional.csv'
    bank_raw_df.to_csv(path, sep=';', index=False)
    return str(path)

@pytest.fixture()
def bank_xy(bank_raw_df):
    return split_features_target(clean_bank_data(bank_raw_df))
