"""Ports consumed by the parity harness."""

from .id_generator import IdGenerator
from .parser import Parser

__all__ = ["IdGenerator", "Parser"]
