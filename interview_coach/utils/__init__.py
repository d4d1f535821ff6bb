"""Utility helpers shared by the runner and tests."""

from .logging import setup_logging

__all__ = ["setup_logging"]
