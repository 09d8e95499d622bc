"""Completion orchestrator for the template marketplace."""

__version__ = "0.1.0"
