"""
py-dsterrain: diamond-square terrain tile generation.
"""

__version__ = "0.1.0"
