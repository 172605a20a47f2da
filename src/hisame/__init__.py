"""Hisame - an AniList client."""

__version__ = "0.1.0"
