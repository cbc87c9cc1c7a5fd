"""Automated SDK regeneration workflow."""

__version__ = "0.4.0"
