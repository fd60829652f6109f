"""Interaction state machine driving canvas edits and view changes."""

import logging
from enum import Enum, auto

import pbm_codec
from view_transform import ViewTransform

log = logging.getLogger("zorn")

DEFAULT_FILENAME = "untitled.pbm"
SCROLL_STEP = 1


class Command(Enum):
    ZOOM_IN = auto()
    ZOOM_OUT = auto()
    SCROLL_UP = auto()
    SCROLL_DOWN = auto()
    SCROLL_LEFT = auto()
    SCROLL_RIGHT = auto()
    TOGGLE_COLOR = auto()
    SAVE = auto()
    QUIT = auto()


class EditSession:
    """Owns the view and editing flags for one canvas.

    States are ``idle`` and ``drawing``; ``exiting`` is terminal. A
    pointer-down enters ``drawing`` and paints, moves paint while
    drawing, and a pointer-up returns to ``idle``. Commands apply in
    either state. All points are viewport pixels and ``viewport`` is the
    current (width, height) of the drawing area.
    """

    def __init__(self, canvas, path=DEFAULT_FILENAME, view=None):
        self.canvas = canvas
        self.path = path
        self.view = view if view is not None else ViewTransform()
        self.drawing = False
        self.active_color = True
        self.exiting = False
        self.saving = False
        self.modified = False
        self.status = ""
        self.save_error = None

        self._handlers = {
            Command.ZOOM_IN: self.view.zoom_in,
            Command.ZOOM_OUT: self.view.zoom_out,
            Command.SCROLL_UP: lambda: self.view.scroll(0, -SCROLL_STEP),
            Command.SCROLL_DOWN: lambda: self.view.scroll(0, SCROLL_STEP),
            Command.SCROLL_LEFT: lambda: self.view.scroll(-SCROLL_STEP, 0),
            Command.SCROLL_RIGHT: lambda: self.view.scroll(SCROLL_STEP, 0),
            Command.TOGGLE_COLOR: self.toggle_color,
            Command.SAVE: self.request_save,
            Command.QUIT: self.close,
        }

    # --- Pointer events ---
    def pointer_down(self, point, viewport):
        if self.exiting:
            return
        self.drawing = True
        self.paint(point, viewport)

    def pointer_move(self, point, viewport):
        if self.exiting or not self.drawing:
            return
        self.paint(point, viewport)

    def pointer_up(self):
        self.drawing = False

    def paint(self, point, viewport):
        """Set the cell under ``point`` to the active colour.

        Points that resolve outside the canvas are ignored. Returns True
        if a cell changed.
        """
        row, col = self.cell_at(point, viewport)
        if not self.canvas.set(row, col, self.active_color):
            return False
        self.modified = True
        return True

    def cell_at(self, point, viewport):
        return self.view.screen_to_cell(point, viewport, self.canvas.dimensions())

    # --- Commands ---
    def execute(self, command):
        if self.exiting:
            return
        log.debug(f"[command] {command.name}")
        self._handlers[command]()
        if self.saving:
            self.save()
            self.saving = False

    def toggle_color(self):
        self.active_color = not self.active_color

    def request_save(self):
        self.saving = True

    def close(self):
        """Enter the terminal state; the host stops dispatching events."""
        self.exiting = True
        self.drawing = False

    def save(self):
        log.info(f"[save] Saving to {self.path}")
        try:
            pbm_codec.save(self.path, self.canvas)
        except OSError as e:
            log.error(f"[save] FAILED: {self.path}: {e}")
            self.save_error = f"Could not save to {self.path}: {e.strerror or e}"
            self.status = self.save_error
            return False
        self.modified = False
        self.save_error = None
        self.status = f"Saved {self.path}"
        return True
