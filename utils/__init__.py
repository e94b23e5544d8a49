"""Shared utilities for the backend."""
from utils.logging_setup import JsonFormatter, setup_logging

__all__ = [
    "JsonFormatter",
    "setup_logging",
]
