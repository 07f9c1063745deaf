"""Diary: personal notes API and client."""

__version__ = "1.0.0"
