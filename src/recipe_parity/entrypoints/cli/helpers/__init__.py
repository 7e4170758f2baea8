"""Helpers shared by the RECIPE-PARITY CLI commands."""

from .log_level_parser import parse_log_level
from .messages import error, success, warn

__all__ = ["error", "parse_log_level", "success", "warn"]
