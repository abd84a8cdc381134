"""Grid geometry for the snake game."""

from __future__ import annotations

from collections.abc import Iterable
from typing import TYPE_CHECKING

import numpy as np

if TYPE_CHECKING:
    from power_snake.snake import Direction

# Pixel coordinates (x, y) of a cell's top-left corner.
Cell = tuple[int, int]


class Grid:
    """Discrete coordinate space laid over a pixel canvas.

    Cells are addressed by their pixel origin ``(x, y)``, always a multiple
    of ``cell_size``. Occupancy masks use (row, col) ordering consistent
    with NumPy indexing.
    """

    def __init__(
        self,
        width: int = 400,
        height: int = 400,
        cell_size: int = 20,
    ) -> None:
        if cell_size < 1:
            raise ValueError("cell_size must be at least 1.")
        if width % cell_size or height % cell_size:
            raise ValueError(
                "Canvas dimensions must be multiples of the cell size."
            )
        if width // cell_size < 4 or height // cell_size < 4:
            raise ValueError("Grid dimensions must be at least 4×4 cells.")
        self.width = width
        self.height = height
        self.cell_size = cell_size

    @property
    def columns(self) -> int:
        return self.width // self.cell_size

    @property
    def rows(self) -> int:
        return self.height // self.cell_size

    @property
    def capacity(self) -> int:
        """Total number of cells on the grid."""
        return self.columns * self.rows

    def in_bounds(self, cell: Cell) -> bool:
        """Check whether a coordinate lies within the canvas."""
        x, y = cell
        return 0 <= x < self.width and 0 <= y < self.height

    def wrap(self, cell: Cell) -> Cell:
        """Wrap coordinates around the grid edges."""
        x, y = cell
        return x % self.width, y % self.height

    def step(self, cell: Cell, direction: Direction) -> Cell:
        """Move one cell in *direction* without wrapping."""
        dx, dy = direction.value
        x, y = cell
        return x + dx * self.cell_size, y + dy * self.cell_size

    def random_cell(self, rng: np.random.Generator) -> Cell:
        """Draw a cell uniformly at random."""
        col = int(rng.integers(self.columns))
        row = int(rng.integers(self.rows))
        return col * self.cell_size, row * self.cell_size

    def center_cell(self) -> Cell:
        """Return the cell just left of the canvas centre."""
        col = self.columns // 2 - 1
        row = self.rows // 2
        return col * self.cell_size, row * self.cell_size

    def all_cells(self) -> list[Cell]:
        """Return every cell in row-major order."""
        g = self.cell_size
        return [
            (col * g, row * g)
            for row in range(self.rows)
            for col in range(self.columns)
        ]

    def occupancy(self, cells: Iterable[Cell]) -> np.ndarray:
        """Build a boolean (rows, columns) mask of the given cells.

        Out-of-bounds cells are ignored.
        """
        mask = np.zeros((self.rows, self.columns), dtype=bool)
        for cell in cells:
            if self.in_bounds(cell):
                x, y = cell
                mask[y // self.cell_size, x // self.cell_size] = True
        return mask

    def free_cells(self, excluded: Iterable[Cell]) -> list[Cell]:
        """Return all cells not in *excluded*, in row-major order."""
        rows, cols = np.where(~self.occupancy(excluded))
        g = self.cell_size
        return [
            (c * g, r * g)
            for r, c in zip(rows.tolist(), cols.tolist(), strict=True)
        ]

    def cells_within(self, center: Cell, radius: float) -> set[Cell]:
        """Return cells within *radius* cells (Euclidean) of *center*."""
        g = self.cell_size
        cx, cy = center[0] // g, center[1] // g
        rows, cols = np.mgrid[0:self.rows, 0:self.columns]
        dist_sq = (cols - cx) ** 2 + (rows - cy) ** 2
        rr, cc = np.where(dist_sq <= radius * radius)
        return {
            (c * g, r * g)
            for r, c in zip(rr.tolist(), cc.tolist(), strict=True)
        }

    def to_dict(self) -> dict:
        """Serialize grid geometry to a dictionary."""
        return {
            "width": self.width,
            "height": self.height,
            "cell_size": self.cell_size,
            "columns": self.columns,
            "rows": self.rows,
        }
