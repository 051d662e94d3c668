"""Temporal independence analysis for camera-trap tag tables."""

__version__ = "0.4.2"
