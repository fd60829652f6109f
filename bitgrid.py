"""Monochrome pixel grid: the authoritative image being edited."""

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------
INITIAL_CANVAS_WIDTH = 64
INITIAL_CANVAS_HEIGHT = 64
MAX_CELLS = 65536


class CapacityError(ValueError):
    """Raised when width * height exceeds the supported cell count."""


# ---------------------------------------------------------------------------
# Canvas model
# ---------------------------------------------------------------------------
class Canvas:
    """Fixed-size grid of boolean cells, row-major, row 0 at the top.

    Every accessor is bounds-checked. Reads outside the grid return
    ``False`` and writes outside the grid are dropped.
    """

    def __init__(self, width=INITIAL_CANVAS_WIDTH, height=INITIAL_CANVAS_HEIGHT,
                 max_cells=MAX_CELLS):
        if width < 1 or height < 1:
            raise ValueError(f"canvas dimensions must be positive, got {width}x{height}")
        if width * height > max_cells:
            raise CapacityError(
                f"{width}x{height} exceeds the maximum of {max_cells} cells")
        self._width = width
        self._height = height
        self._cells = bytearray(width * height)

    @classmethod
    def from_bits(cls, width, height, bits, max_cells=MAX_CELLS):
        """Build a canvas from a flat row-major sequence of truthy values."""
        canvas = cls(width, height, max_cells)
        n = canvas.cell_count
        for i, bit in enumerate(bits):
            if i >= n:
                break
            canvas._cells[i] = 1 if bit else 0
        return canvas

    @property
    def width(self):
        return self._width

    @property
    def height(self):
        return self._height

    @property
    def cell_count(self):
        return self._width * self._height

    def dimensions(self):
        return self._width, self._height

    def in_bounds(self, row, col):
        return 0 <= row < self._height and 0 <= col < self._width

    def get(self, row, col):
        if not self.in_bounds(row, col):
            return False
        return bool(self._cells[row * self._width + col])

    def set(self, row, col, value):
        """Set one cell. Returns True only if the stored value changed."""
        if not self.in_bounds(row, col):
            return False
        i = row * self._width + col
        new = 1 if value else 0
        if self._cells[i] == new:
            return False
        self._cells[i] = new
        return True

    def bits(self):
        """Flat row-major view of the grid as booleans."""
        return [bool(c) for c in self._cells]

    def set_cells(self):
        """Yield (row, col) for every set cell, top to bottom."""
        w = self._width
        for i, c in enumerate(self._cells):
            if c:
                yield divmod(i, w)

    def copy(self):
        other = Canvas.__new__(Canvas)
        other._width = self._width
        other._height = self._height
        other._cells = bytearray(self._cells)
        return other

    def __eq__(self, other):
        if not isinstance(other, Canvas):
            return NotImplemented
        return (self.dimensions() == other.dimensions()
                and self._cells == other._cells)

    def __repr__(self):
        return f"Canvas({self._width}x{self._height}, set={sum(self._cells)})"
