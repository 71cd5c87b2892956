# Logging utilities module
# Configures logging for the whole analysis run # logging.py
"""
Logging Utilities Module
Configures logging for the model committee analysis.
"""

import logging
import os
from datetime import datetime
from typing import Union

def setup_logging(
    log_level: Union[int, str] = logging.INFO,
    log_dir: str = "logs",
    log_to_console: bool = True,
    log_to_file: bool = True,
    log_file_prefix: str = "bank_committee"
):
    """
    Set up global logging configuration.
    Logs to console and to a dated file in log_dir.
    """
    if isinstance(log_level, str):
        log_level = getattr(logging, log_level.upper(), logging.INFO)

    log_format = "[%(asctime)s] %(levelname)s | %(name)s | %(message)s"
    date_format = "%Y-%m-%d %H:%M:%S"

    handlers = []

    if log_to_console:
        console_handler = logging.StreamHandler()
        console_handler.setFormatter(logging.Formatter(log_format, datefmt=date_format))
        handlers.append(console_handler)

    log_file = None
    if log_to_file:
        os.makedirs(log_dir, exist_ok=True)
        log_file = os.path.join(
            log_dir,
            f"{log_file_prefix}_{datetime.now().strftime('%Y-%m-%d')}.log"
        )
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(logging.Formatter(log_format, datefmt=date_format))
        handlers.append(file_handler)

    logging.basicConfig(
        level=log_level,
        handlers=handlers,
        force=True
    )
    if log_file:
        logging.getLogger().info("Logging is configured. Log file: %s", log_file)
    return log_file
