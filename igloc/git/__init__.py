"""Thin wrappers around the git command line."""

from .ignored import IgnoredPathResolver, parse_porcelain_ignored

__all__ = ["IgnoredPathResolver", "parse_porcelain_ignored"]
