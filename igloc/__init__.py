"""Discover, classify and migrate git-ignored secret files."""

__version__ = "0.1.0"

__all__ = ["__version__"]
