"""Screen <-> canvas coordinate mapping under zoom and scroll."""

import logging

log = logging.getLogger("zorn")

INITIAL_ZOOM = 16
ZOOM_MAX = 256


def _div(a, b):
    """Integer division truncating toward zero."""
    q = abs(a) // abs(b)
    return q if (a < 0) == (b < 0) else -q


class ViewTransform:
    """Zoom level (pixels per cell) and scroll offset (in cells).

    The canvas is centred in the viewport while it fits. Once the zoomed
    canvas is larger than the viewport on either axis, the scroll offset
    pans it instead. Nothing here clamps to the canvas bounds; callers
    check the cells they get back.
    """

    def __init__(self, zoom=INITIAL_ZOOM, scroll_x=0, scroll_y=0):
        if zoom < 1:
            raise ValueError(f"zoom must be at least 1, got {zoom}")
        self.zoom = zoom
        self.scroll_x = scroll_x
        self.scroll_y = scroll_y

    # --- Geometry ---
    def canvas_size(self, dimensions):
        width, height = dimensions
        return width * self.zoom, height * self.zoom

    def canvas_origin(self, viewport, dimensions):
        """Top-left pixel of the canvas inside a viewport of the given size."""
        vw, vh = viewport
        cw, ch = self.canvas_size(dimensions)
        x = _div(vw - cw, 2)
        y = _div(vh - ch, 2)
        if cw > vw or ch > vh:
            x -= self.scroll_x * self.zoom
            y -= self.scroll_y * self.zoom
        return x, y

    def screen_to_cell(self, point, viewport, dimensions):
        """Map a viewport pixel to a (row, col) that may lie off the canvas."""
        ox, oy = self.canvas_origin(viewport, dimensions)
        col = _div(point[0] - ox, self.zoom)
        row = _div(point[1] - oy, self.zoom)
        return row, col

    def cell_to_screen(self, row, col, viewport, dimensions, origin=None):
        """Top-left pixel of a cell. Pass ``origin`` to reuse one computed
        for the same viewport."""
        ox, oy = origin if origin is not None else self.canvas_origin(viewport, dimensions)
        return ox + col * self.zoom, oy + row * self.zoom

    # --- Zoom / scroll ---
    def zoom_in(self):
        z = min(ZOOM_MAX, self.zoom * 2)
        if z == self.zoom:
            return False
        self.zoom = z
        log.debug(f"[zoom] {self.zoom}")
        return True

    def zoom_out(self):
        if self.zoom <= 1:
            return False
        self.zoom = max(1, self.zoom // 2)
        log.debug(f"[zoom] {self.zoom}")
        return True

    def scroll(self, dx, dy):
        self.scroll_x += dx
        self.scroll_y += dy

    def __repr__(self):
        return (f"ViewTransform(zoom={self.zoom}, "
                f"scroll=({self.scroll_x}, {self.scroll_y}))")
