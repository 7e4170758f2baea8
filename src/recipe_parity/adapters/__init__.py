"""Concrete adapters for the harness ports."""
