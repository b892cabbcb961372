"""
Layout geometry and the matrix view model.
"""

from .layout import Layout, geometry
from .model import MatrixViewModel, ViewState

__all__ = ["Layout", "MatrixViewModel", "ViewState", "geometry"]
