"""Wage calculation and token-gated approval engine."""

__version__ = "0.1.0"
