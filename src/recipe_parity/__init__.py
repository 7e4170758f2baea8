"""RECIPE-PARITY

A conformance harness that replays backend-agnostic recipe contracts against
interchangeable parser backends, one per supported language level, and
reports where the backends disagree.
"""

__all__ = ["__version__"]
__version__ = "0.1.0"
