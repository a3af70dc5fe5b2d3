"""Sprite Setup — two-phase machine bootstrap for development tools."""

__version__ = "0.1.0"
