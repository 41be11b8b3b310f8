"""
Application Module
==================
Configuration and wiring of the reconciler.

Key Components:
    - AppController: Builds stores, analyzer and parser; reconciles books
    - AppConfig: Application configuration
"""

from .config import AppConfig
from .controller import AppController

__all__ = [
    "AppConfig",
    "AppController",
]
