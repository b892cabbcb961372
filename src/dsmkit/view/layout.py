"""
Fixed-ratio matrix layout.

All geometry is expressed in user coordinates: x spans 0..XY_RATIO and y
spans 0..1 whatever the device size, so regions computed once stay valid
across window resizes. Only device_to_user() looks at the viewport.
"""

from typing import List, Tuple

from pydantic import BaseModel, ConfigDict

from ..config import (
    WIDTH_VERTICAL_LABEL,
    X_END_MATRIX_RIGHT,
    X_START_MATRIX_LEFT,
    XY_RATIO,
    Y_END_MATRIX_DOWN,
    Y_START_MATRIX_UP,
)
from ..core.types import Cell, Column, Rectangle, RegionEntry, Row


class Layout(BaseModel):
    """Uniform grid geometry for an N x N matrix."""
    x_start_matrix_left: float = X_START_MATRIX_LEFT
    x_end_matrix_right: float = X_END_MATRIX_RIGHT
    y_start_matrix_up: float = Y_START_MATRIX_UP
    y_end_matrix_down: float = Y_END_MATRIX_DOWN
    width_vertical_label: float = WIDTH_VERTICAL_LABEL

    nb_elts: int = 0
    width_cell: float = 0.0
    height_cell: float = 0.0

    viewport_width: int = 0
    viewport_height: int = 0

    model_config = ConfigDict(frozen=True)

    @property
    def is_empty(self) -> bool:
        return self.nb_elts == 0

    @property
    def matrix_bounds(self) -> Rectangle:
        return Rectangle(
            x0=self.x_start_matrix_left,
            y0=self.y_start_matrix_up,
            x1=self.x_end_matrix_right,
            y1=self.y_end_matrix_down,
        )

    def cell_rectangle(self, i: int, j: int) -> Rectangle:
        x0 = self.x_start_matrix_left + j * self.width_cell
        y0 = self.y_start_matrix_up + i * self.height_cell
        return Rectangle(x0=x0, y0=y0, x1=x0 + self.width_cell, y1=y0 + self.height_cell)

    def row_rectangle(self, i: int) -> Rectangle:
        """Label band left of the matrix for row i."""
        y0 = self.y_start_matrix_up + i * self.height_cell
        return Rectangle(x0=0.0, y0=y0, x1=self.x_start_matrix_left, y1=y0 + self.height_cell)

    def column_rectangle(self, j: int) -> Rectangle:
        """Label band above the matrix for column j."""
        x0 = self.x_start_matrix_left + j * self.width_cell
        return Rectangle(x0=x0, y0=0.0, x1=x0 + self.width_cell, y1=self.y_start_matrix_up)

    def regions(self) -> List[RegionEntry]:
        """Default hit-test regions: cells, then row labels, then column labels."""
        entries: List[RegionEntry] = []
        for i in range(self.nb_elts):
            for j in range(self.nb_elts):
                entries.append((Cell(i=i, j=j), self.cell_rectangle(i, j)))
        for i in range(self.nb_elts):
            entries.append((Row(i=i), self.row_rectangle(i)))
        for j in range(self.nb_elts):
            entries.append((Column(j=j), self.column_rectangle(j)))
        return entries

    def device_to_user(self, px: float, py: float) -> Tuple[float, float]:
        """Map device pixels to user coordinates."""
        width = max(self.viewport_width, 1)
        height = max(self.viewport_height, 1)
        return px * XY_RATIO / width, py / height


def geometry(n_visible: int, viewport_width: int, viewport_height: int) -> Layout:
    """
    Cell geometry for n_visible rows/columns.

    Zero visible nodes yields zero-size cells: the caller treats it as an
    empty matrix with no cells.
    """
    if n_visible < 0:
        raise ValueError(f"n_visible must be >= 0, got {n_visible}")

    if n_visible == 0:
        width_cell = height_cell = 0.0
    else:
        width_cell = (X_END_MATRIX_RIGHT - X_START_MATRIX_LEFT) / n_visible
        height_cell = (Y_END_MATRIX_DOWN - Y_START_MATRIX_UP) / n_visible

    return Layout(
        nb_elts=n_visible,
        width_cell=width_cell,
        height_cell=height_cell,
        viewport_width=viewport_width,
        viewport_height=viewport_height,
    )
