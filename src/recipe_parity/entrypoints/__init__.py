"""Entry points for RECIPE-PARITY."""
