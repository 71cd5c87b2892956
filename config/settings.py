# Configuration settings for the bank marketing model committee
# Environment-backed paths and runtime switches

import os
from typing import Dict, Any
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

def load_config() -> Dict[str, Any]:
    """
    Load configuration settings from environment variables with defaults

    Returns:
        Dict[str, Any]: Configuration dictionary
    """
    config = {
        # Input data
        "BANK_DATA_PATH": os.getenv("BANK_DATA_PATH", "data/bank-additional-full.csv"),

        # System Settings
        "LOG_LEVEL": os.getenv("LOG_LEVEL", "INFO"),
        "LOGS_DIRECTORY": os.getenv("LOGS_DIRECTORY", "logs"),
        "REPORTS_DIRECTORY": os.getenv("REPORTS_DIRECTORY", "reports"),

        # Parallel training backend (-1 = all cores)
        "N_JOBS": int(os.getenv("N_JOBS", "-1")),
        "RANDOM_STATE": int(os.getenv("RANDOM_STATE", "42")),
    }

    return config

def apply_settings(training_config, settings: Dict[str, Any] = None):
    """
    Overlay environment settings on a TrainingConfig.

    Args:
        training_config: TrainingConfig to update in place
        settings: Settings dictionary (defaults to load_config())

    Returns:
        The updated TrainingConfig
    """
    if settings is None:
        settings = load_config()

    training_config.data.data_path = settings["BANK_DATA_PATH"]
    training_config.logs_dir = settings["LOGS_DIRECTORY"]
    training_config.visualization.reports_dir = settings["REPORTS_DIRECTORY"]
    training_config.random_state = settings["RANDOM_STATE"]
    training_config.cross_validation.random_state = settings["RANDOM_STATE"]
    training_config.random_forest.n_jobs = settings["N_JOBS"]
    training_config.gradient_boosting.n_jobs = settings["N_JOBS"]
    return training_config

# Default configuration instance
DEFAULT_SETTINGS = load_config()
