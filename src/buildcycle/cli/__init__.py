"""
Command-line interface for the buildcycle package.

This module provides the main CLI entry point for the build orchestrator.
"""

from .main import main_cli

__all__ = [
    "main_cli",
]
