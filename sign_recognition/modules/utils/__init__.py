"""Utility modules."""
from .config import Config
from .logger import setup_logging, RecognitionLogger, log_timing

__all__ = ["Config", "setup_logging", "RecognitionLogger", "log_timing"]
