"""Utilities."""

from .logging import setup_logging, parse_level

__all__ = ['setup_logging', 'parse_level']
