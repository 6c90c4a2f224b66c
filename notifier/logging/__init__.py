"""
Sentinel Notifier Logging Module

Key/value structured logging with BigQuery audit trail.
"""

from notifier.logging.notifier_logger import NotifierLogger, get_logger

__all__ = [
    "NotifierLogger",
    "get_logger",
]
