"""Shared numeric helpers."""

from .weighting import Weighting

__all__ = [
    "Weighting",
]
