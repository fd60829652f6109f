#!/usr/bin/env python3
"""zorn: monochrome pixel editor built with Python + PyQt5."""

import argparse
import logging
import os
import sys
import time

from PyQt5.QtCore import QSettings, Qt, pyqtSignal
from PyQt5.QtGui import QColor, QPainter, QPen
from PyQt5.QtWidgets import (
    QApplication, QLabel, QMainWindow, QMessageBox, QSizePolicy, QWidget,
)

import pbm_codec
from bitgrid import (
    INITIAL_CANVAS_HEIGHT, INITIAL_CANVAS_WIDTH, MAX_CELLS, Canvas, CapacityError,
)
from edit_session import DEFAULT_FILENAME, Command, EditSession

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------
APP_NAME = "zorn"
SCREEN_WIDTH = 640
SCREEN_HEIGHT = 480
UI_HEIGHT = 30
UI_PADDING = 10
COLOR_BLACK = QColor(0, 0, 0)
COLOR_GREY = QColor(180, 180, 180)
COLOR_WHITE = QColor(255, 255, 255)

log = logging.getLogger("zorn")


# ---------------------------------------------------------------------------
# Key bindings
# ---------------------------------------------------------------------------
_MODIFIER_MASK = int(Qt.ShiftModifier | Qt.ControlModifier
                     | Qt.AltModifier | Qt.MetaModifier)
_NONE = 0
_SHIFT = int(Qt.ShiftModifier)
_CTRL = int(Qt.ControlModifier)

KEY_BINDINGS = {
    (int(Qt.Key_Plus), _SHIFT): Command.ZOOM_IN,
    (int(Qt.Key_Plus), _NONE): Command.ZOOM_IN,
    (int(Qt.Key_Equal), _SHIFT): Command.ZOOM_IN,
    (int(Qt.Key_Equal), _CTRL): Command.ZOOM_IN,
    (int(Qt.Key_Minus), _NONE): Command.ZOOM_OUT,
    (int(Qt.Key_Minus), _CTRL): Command.ZOOM_OUT,
    (int(Qt.Key_K), _NONE): Command.SCROLL_UP,
    (int(Qt.Key_J), _NONE): Command.SCROLL_DOWN,
    (int(Qt.Key_H), _NONE): Command.SCROLL_LEFT,
    (int(Qt.Key_L), _NONE): Command.SCROLL_RIGHT,
    (int(Qt.Key_Up), _NONE): Command.SCROLL_UP,
    (int(Qt.Key_Down), _NONE): Command.SCROLL_DOWN,
    (int(Qt.Key_Left), _NONE): Command.SCROLL_LEFT,
    (int(Qt.Key_Right), _NONE): Command.SCROLL_RIGHT,
    (int(Qt.Key_X), _NONE): Command.TOGGLE_COLOR,
    (int(Qt.Key_W), _NONE): Command.SAVE,
    (int(Qt.Key_S), _CTRL): Command.SAVE,
    (int(Qt.Key_Q), _NONE): Command.QUIT,
}


def command_for_key(key, modifiers):
    """Look up the Command bound to a key press, or None."""
    return KEY_BINDINGS.get((int(key), int(modifiers) & _MODIFIER_MASK))


# ---------------------------------------------------------------------------
# Canvas widget
# ---------------------------------------------------------------------------
class CanvasWidget(QWidget):
    cursor_moved = pyqtSignal(int, int)
    zoom_changed = pyqtSignal(int)
    modified_changed = pyqtSignal()
    color_changed = pyqtSignal()
    status_changed = pyqtSignal(str)
    save_failed = pyqtSignal(str)
    exit_requested = pyqtSignal()

    def __init__(self, session, parent=None):
        super().__init__(parent)
        self.session = session
        self._modified = session.modified
        self._paint_count = 0

        self.setMouseTracking(True)
        self.setFocusPolicy(Qt.StrongFocus)
        self.setSizePolicy(QSizePolicy.Expanding, QSizePolicy.Expanding)

    def viewport(self):
        """Current drawing area; re-read on every event so resizes apply."""
        return self.width(), self.height()

    # --- Commands ---
    def execute(self, command):
        s = self.session
        old_zoom = s.view.zoom
        old_color = s.active_color
        old_status = s.status
        s.execute(command)
        if s.view.zoom != old_zoom:
            self.zoom_changed.emit(s.view.zoom)
        if s.active_color != old_color:
            self.color_changed.emit()
        if command is Command.SAVE:
            if s.save_error:
                self.save_failed.emit(s.save_error)
        if s.status != old_status or command is Command.SAVE:
            self.status_changed.emit(s.status)
        self._after_event()

    def _after_event(self):
        if self.session.modified != self._modified:
            self._modified = self.session.modified
            self.modified_changed.emit()
        if self.session.exiting:
            self.exit_requested.emit()
            return
        self.update()

    # --- Mouse events ---
    def mousePressEvent(self, event):
        self.setFocus()
        if event.button() != Qt.LeftButton:
            super().mousePressEvent(event)
            return
        self.session.pointer_down((event.x(), event.y()), self.viewport())
        self._after_event()

    def mouseMoveEvent(self, event):
        pos = (event.x(), event.y())
        row, col = self.session.cell_at(pos, self.viewport())
        self.cursor_moved.emit(col, row)
        if self.session.drawing:
            self.session.pointer_move(pos, self.viewport())
            self._after_event()

    def mouseReleaseEvent(self, event):
        if event.button() != Qt.LeftButton:
            super().mouseReleaseEvent(event)
            return
        self.session.pointer_up()

    # --- Keyboard ---
    def keyPressEvent(self, event):
        command = command_for_key(event.key(), event.modifiers())
        log.debug(f"[key] {event.key()} mods={int(event.modifiers())} -> {command}")
        if command is None:
            super().keyPressEvent(event)
            return
        self.execute(command)

    # --- Painting ---
    def paintEvent(self, event):
        t0 = time.perf_counter()
        self._paint_count += 1
        s = self.session
        view = s.view
        dims = s.canvas.dimensions()
        vp = self.viewport()

        painter = QPainter(self)
        painter.fillRect(self.rect(), COLOR_GREY)
        origin = view.canvas_origin(vp, dims)
        cw, ch = view.canvas_size(dims)
        painter.fillRect(origin[0], origin[1], cw, ch, COLOR_WHITE)
        z = view.zoom
        for row, col in s.canvas.set_cells():
            x, y = view.cell_to_screen(row, col, vp, dims, origin)
            if x >= vp[0] or y >= vp[1] or x + z <= 0 or y + z <= 0:
                continue
            painter.fillRect(x, y, z, z, COLOR_BLACK)
        # Active colour swatch in the bottom-left corner
        sx, sy = UI_PADDING, vp[1] - UI_HEIGHT - UI_PADDING
        painter.fillRect(sx, sy, UI_HEIGHT, UI_HEIGHT,
                         COLOR_BLACK if s.active_color else COLOR_WHITE)
        painter.setPen(QPen(COLOR_BLACK, 1))
        painter.drawRect(sx, sy, UI_HEIGHT - 1, UI_HEIGHT - 1)
        painter.end()

        elapsed = (time.perf_counter() - t0) * 1000
        if elapsed > 5 or self._paint_count % 50 == 0:
            log.debug(
                f"[paint #{self._paint_count}] paint_ms={elapsed:.1f} "
                f"zoom={z} canvas={dims[0]}x{dims[1]} viewport={vp[0]}x{vp[1]}"
            )


# ---------------------------------------------------------------------------
# Main window
# ---------------------------------------------------------------------------
class MainWindow(QMainWindow):
    def __init__(self, session):
        super().__init__()
        self.session = session
        self.resize(SCREEN_WIDTH, SCREEN_HEIGHT)

        self.canvas = CanvasWidget(session)
        self.setCentralWidget(self.canvas)

        self.canvas.modified_changed.connect(self._update_title)
        self.canvas.zoom_changed.connect(self._on_zoom_changed)
        self.canvas.cursor_moved.connect(self._on_cursor_moved)
        self.canvas.color_changed.connect(self._update_color_label)
        self.canvas.status_changed.connect(self._on_status)
        self.canvas.save_failed.connect(self._on_save_failed)
        self.canvas.exit_requested.connect(self.close)

        self._build_menus()
        self._build_status_bar()
        self._update_title()
        self._restore_geometry()
        self.canvas.setFocus()

    # ---- Menus ----
    def _build_menus(self):
        mb = self.menuBar()

        file_menu = mb.addMenu("&File")
        self._add_action(file_menu, "&Save\tW", Command.SAVE)
        file_menu.addSeparator()
        self._add_action(file_menu, "&Quit\tQ", Command.QUIT)

        edit_menu = mb.addMenu("&Edit")
        self._add_action(edit_menu, "&Toggle Colour\tX", Command.TOGGLE_COLOR)

        view_menu = mb.addMenu("&View")
        self._add_action(view_menu, "Zoom &In\t+", Command.ZOOM_IN)
        self._add_action(view_menu, "Zoom &Out\t-", Command.ZOOM_OUT)
        view_menu.addSeparator()
        self._add_action(view_menu, "Pan &Up\tK", Command.SCROLL_UP)
        self._add_action(view_menu, "Pan &Down\tJ", Command.SCROLL_DOWN)
        self._add_action(view_menu, "Pan &Left\tH", Command.SCROLL_LEFT)
        self._add_action(view_menu, "Pan &Right\tL", Command.SCROLL_RIGHT)

    def _add_action(self, menu, text, command):
        # The hint after the tab is display only; keys go through KEY_BINDINGS.
        action = menu.addAction(text)

        def _handler(checked=False, _c=command):
            log.info(f"[action] {_c.name}")
            try:
                self.canvas.execute(_c)
            except Exception as e:
                log.error(f"[action ERROR] {_c.name}: {e}", exc_info=True)
        action.triggered.connect(_handler)
        return action

    # ---- Status bar ----
    def _build_status_bar(self):
        sb = self.statusBar()
        w, h = self.session.canvas.dimensions()
        self._pos_label = QLabel("")
        self._size_label = QLabel(f"{w} x {h}")
        self._zoom_label = QLabel(f"{self.session.view.zoom}x")
        self._color_label = QLabel("")
        sb.addPermanentWidget(self._pos_label)
        sb.addPermanentWidget(self._size_label)
        sb.addPermanentWidget(self._zoom_label)
        sb.addPermanentWidget(self._color_label)
        self._update_color_label()

    def _on_cursor_moved(self, col, row):
        if self.session.canvas.in_bounds(row, col):
            self._pos_label.setText(f"{col}, {row}")
        else:
            self._pos_label.setText("")

    def _on_zoom_changed(self, z):
        self._zoom_label.setText(f"{z}x")

    def _update_color_label(self):
        self._color_label.setText("Black" if self.session.active_color else "White")

    def _on_status(self, message):
        self.statusBar().showMessage(message, 5000)

    def _on_save_failed(self, message):
        QMessageBox.warning(self, APP_NAME, message)

    # ---- Title ----
    def _update_title(self):
        mod = "*" if self.session.modified else ""
        self.setWindowTitle(f"{self.session.path}{mod} - {APP_NAME}")

    # ---- Window geometry persistence ----
    def _save_geometry(self):
        settings = QSettings(APP_NAME, APP_NAME)
        settings.setValue("geometry", self.saveGeometry())

    def _restore_geometry(self):
        settings = QSettings(APP_NAME, APP_NAME)
        geom = settings.value("geometry")
        if geom:
            self.restoreGeometry(geom)

    # ---- Close event ----
    def closeEvent(self, event):
        self.session.close()
        self._save_geometry()
        event.accept()


# ---------------------------------------------------------------------------
# Command line
# ---------------------------------------------------------------------------
def _positive_int(text):
    try:
        value = int(text)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid integer: {text!r}")
    if value < 1:
        raise argparse.ArgumentTypeError(f"must be positive: {text!r}")
    return value


def build_parser():
    # -h is the height flag, so help lives on --help only.
    parser = argparse.ArgumentParser(
        prog=APP_NAME, add_help=False,
        description="Monochrome pixel editor for binary PBM images.")
    parser.add_argument("--help", action="help",
                        help="show this help message and exit")
    parser.add_argument("-w", "--width", type=_positive_int,
                        default=INITIAL_CANVAS_WIDTH,
                        help=f"canvas width in pixels (default {INITIAL_CANVAS_WIDTH})")
    parser.add_argument("-h", "--height", type=_positive_int,
                        default=INITIAL_CANVAS_HEIGHT,
                        help=f"canvas height in pixels (default {INITIAL_CANVAS_HEIGHT})")
    parser.add_argument("file", nargs="?",
                        help=f"PBM file to edit (default {DEFAULT_FILENAME})")
    return parser


def parse_args(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.width * args.height > MAX_CELLS:
        parser.error(f"-w {args.width} -h {args.height} exceeds the maximum "
                     f"of {MAX_CELLS} pixels")
    return args


def load_initial_canvas(args):
    """Return (canvas, path) for the startup state.

    An existing file is loaded and any error while reading it propagates.
    A missing file starts a blank canvas of the requested size that will be
    written to that name on save.
    """
    path = args.file or DEFAULT_FILENAME
    if os.path.exists(path):
        return pbm_codec.load(path), path
    log.info(f"[new] {path} does not exist, starting {args.width}x{args.height}")
    return Canvas(args.width, args.height), path


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------
def _log_path():
    cache_home = os.environ.get("XDG_CACHE_HOME") or os.path.join(
        os.path.expanduser("~"), ".cache")
    return os.path.join(cache_home, APP_NAME, "debug.log")


def configure_logging():
    level = os.environ.get("ZORN_LOG_LEVEL", "INFO").upper()
    if level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
        level = "INFO"
    path = _log_path()
    try:
        os.makedirs(os.path.dirname(path), exist_ok=True)
    except OSError:
        logging.basicConfig(level=level, format="%(asctime)s %(message)s", force=True)
        return
    logging.basicConfig(filename=path, level=level,
                        format="%(asctime)s %(message)s", force=True)


def main(argv=None):
    import traceback
    configure_logging()

    def _excepthook(t, v, tb):
        log.error("".join(traceback.format_exception(t, v, tb)))
        sys.__excepthook__(t, v, tb)
    sys.excepthook = _excepthook

    args = parse_args(argv)
    try:
        canvas, path = load_initial_canvas(args)
    except (pbm_codec.PbmError, CapacityError, OSError) as e:
        target = args.file or DEFAULT_FILENAME
        log.error(f"[load] FAILED: {target}: {e}")
        print(f"{APP_NAME}: {target}: {e}", file=sys.stderr)
        sys.exit(1)

    log.info(f"Starting with {path} ({canvas.width}x{canvas.height})")
    session = EditSession(canvas, path)
    app = QApplication(sys.argv[:1])
    app.setApplicationName(APP_NAME)
    window = MainWindow(session)
    window.show()
    sys.exit(app.exec_())


if __name__ == "__main__":
    main()
