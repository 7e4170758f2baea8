"""Harness wiring."""

from .bootstrap import Harness, bootstrap, load_catalog

__all__ = ["Harness", "bootstrap", "load_catalog"]
