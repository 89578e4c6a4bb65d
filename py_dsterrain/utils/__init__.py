"""
Utility helpers.
"""

from .random import SeedSource

__all__ = ['SeedSource']
