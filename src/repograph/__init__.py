"""Repograph: multi-language code entity extraction and relationship inference."""

__version__ = "0.3.0"
