"""Biometric trend and habit insight engine."""

__version__ = "0.1.0"
