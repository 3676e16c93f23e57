"""Product mood-shot composition service."""

__version__ = "1.0.0"
