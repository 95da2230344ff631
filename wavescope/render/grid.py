"""Backend-neutral cell grid produced by the compositor.

Colors are strings the terminal backend understands (``"cyan"``,
``"#ff8800"``); ``None`` means the terminal default.
"""

from __future__ import annotations

from dataclasses import dataclass

__all__ = ["Cell", "CellGrid", "BLANK"]


@dataclass(frozen=True)
class Cell:
    char: str = " "
    fg: str | None = None
    bg: str | None = None
    bold: bool = False
    reverse: bool = False
    dim: bool = False

    @property
    def style_key(self) -> tuple:
        return (self.fg, self.bg, self.bold, self.reverse, self.dim)


BLANK = Cell()


class CellGrid:
    """Fixed-size rectangle of cells; writes outside the rectangle are dropped."""

    def __init__(self, width: int, height: int) -> None:
        self.width = max(width, 0)
        self.height = max(height, 0)
        self._rows = [[BLANK] * self.width for _ in range(self.height)]

    def __repr__(self) -> str:
        return f"CellGrid({self.width}x{self.height})"

    def in_bounds(self, x: int, y: int) -> bool:
        return 0 <= x < self.width and 0 <= y < self.height

    def get(self, x: int, y: int) -> Cell:
        return self._rows[y][x]

    def put(self, x: int, y: int, cell: Cell) -> None:
        if self.in_bounds(x, y):
            self._rows[y][x] = cell

    def put_text(self, x: int, y: int, text: str, **style) -> int:
        """Write ``text`` left to right from ``(x, y)``, clipped at the edge.

        Returns:
            Number of cells written.
        """
        written = 0
        for offset, ch in enumerate(text):
            if not self.in_bounds(x + offset, y):
                break
            self._rows[y][x + offset] = Cell(ch, **style)
            written += 1
        return written

    def rows(self) -> list[list[Cell]]:
        return self._rows

    def text_rows(self) -> list[str]:
        """Plain characters per row, handy for logging and assertions."""
        return ["".join(cell.char for cell in row) for row in self._rows]
