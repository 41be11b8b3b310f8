"""
CLI Module
==========
Terminal command surface of the reconciler.
"""

from .main import build_parser, main

__all__ = ["build_parser", "main"]
