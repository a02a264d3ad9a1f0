"""Cadence - capacity-aware, dependency-respecting task scheduling."""

__version__ = "0.1.0"
