"""Command-line interface for RECIPE-PARITY."""
