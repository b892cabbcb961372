"""
Matrix building and path-to-configuration resolution.
"""

from .matrix import MatrixBuilder
from .path import PathResolver

__all__ = ["MatrixBuilder", "PathResolver"]
