"""
Main Application Window
=======================
The primary GUI container: scene controls on the left, the live facade
viewport on the right.

Why is this file needed?
------------------------
1. Layout: It organizes the high-level visual structure of the application.
2. Routing: It connects the panel buttons and menu actions to the
   FacadeStudio controller and handles saving exported frames.
"""
import logging
import time
from pathlib import Path

from PySide6.QtWidgets import (
    QMainWindow, QWidget, QVBoxLayout, QSplitter, QFileDialog, QMessageBox
)
from PySide6.QtCore import Qt, QTimer
from PySide6.QtGui import QAction, QCloseEvent

from facadestudio import config
from facadestudio.controller.studio import FacadeStudio
from facadestudio.errors import ExportError
from facadestudio.model.state import FacadeState
from facadestudio.view.panels import SceneControlPanel
from facadestudio.view.widgets.facade_view import FacadeViewWidget

logger = logging.getLogger(__name__)

VISIBLE_APP_NAME = "Facade Studio"

STATUS_RENDERING = "Rendering 8K… this can take a while"
STATUS_EXPORTED = "8K render exported"
STATUS_FAILED = "Render failed"


class MainWindow(QMainWindow):
    def __init__(self, state: FacadeState) -> None:
        super().__init__()
        self.state: FacadeState = state

        self.resize(*config.DEFAULT_VIEWPORT)

        # --- MAIN CONTAINER ---
        main_widget = QWidget()
        self.setCentralWidget(main_widget)

        main_layout = QVBoxLayout(main_widget)
        main_layout.setContentsMargins(0, 0, 0, 0)
        main_layout.setSpacing(0)

        splitter = QSplitter(Qt.Horizontal)
        main_layout.addWidget(splitter)

        # --- LEFT SIDE: Controls ---
        self.panel = SceneControlPanel()
        splitter.addWidget(self.panel)

        # --- RIGHT SIDE: 3D Visualization ---
        self.visualizer = FacadeViewWidget(self.state)
        splitter.addWidget(self.visualizer)

        splitter.setSizes([260, config.DEFAULT_VIEWPORT[0] - 260])

        self._status_timer = QTimer(self)
        self._status_timer.setSingleShot(True)
        self._status_timer.timeout.connect(self._clear_status)

        # --- SIGNAL CONNECTIONS ---
        self.panel.randomize_requested.connect(self.on_randomize)
        self.panel.preset_requested.connect(self.on_preset)
        self.panel.export_requested.connect(self.on_export_requested)

        # --- ACTIONS & MENUS ---
        self._create_actions()
        self._create_menus()

        self.update_window_title()

    @property
    def studio(self) -> FacadeStudio:
        return self.visualizer.studio

    def _create_actions(self) -> None:
        self.act_randomize = QAction("Randomize Rhythm", self)
        self.act_randomize.setShortcut("Ctrl+R")
        self.act_randomize.triggered.connect(self.on_randomize)

        self.act_export = QAction("Render 8K...", self)
        self.act_export.setShortcut("Ctrl+E")
        self.act_export.triggered.connect(self.on_export_requested)

        self.act_exit = QAction("Exit", self)
        self.act_exit.triggered.connect(self.close)

    def _create_menus(self) -> None:
        menu_bar = self.menuBar()

        file_menu = menu_bar.addMenu("&File")
        file_menu.addAction(self.act_export)
        file_menu.addSeparator()
        file_menu.addAction(self.act_exit)

        scene_menu = menu_bar.addMenu("&Scene")
        scene_menu.addAction(self.act_randomize)

    # --- HELPER METHODS ---
    def update_window_title(self) -> None:
        self.setWindowTitle(
            f"{VISIBLE_APP_NAME} - [seed {self.state.seed}, {self.state.lighting.label}]"
        )

    def _show_status(self, text: str, transient: bool = True) -> None:
        self._status_timer.stop()
        self.panel.status_message = text
        if transient:
            self._status_timer.start(config.STATUS_CLEAR_MS)

    def _clear_status(self) -> None:
        self.panel.status_message = ""

    def _set_busy(self, busy: bool) -> None:
        self.panel.set_busy(busy)
        self.act_export.setEnabled(not busy)

    # --- SLOTS ---
    def on_randomize(self) -> None:
        self.studio.randomize()
        self.visualizer.update_caption()
        self.update_window_title()

    def on_preset(self, identifier: str) -> None:
        self.studio.set_preset(identifier)
        self.visualizer.update_caption()
        self.update_window_title()

    def on_export_requested(self) -> None:
        if self.studio.busy:
            return
        self._set_busy(True)
        self._show_status(STATUS_RENDERING, transient=False)
        # Let the status label paint before the blocking render
        QTimer.singleShot(0, self._run_export)

    def _run_export(self) -> None:
        try:
            image = self.studio.render_high_res()
        except ExportError as e:
            logger.error(f"8K export failed: {e}")
            self._show_status(STATUS_FAILED)
            return
        finally:
            self._set_busy(False)

        default_name = f"facade-8k-{int(time.time() * 1000)}.png"
        path, _ = QFileDialog.getSaveFileName(
            self, "Save 8K Render", default_name, "PNG Image (*.png)"
        )
        if not path:
            self._clear_status()
            return

        try:
            Path(path).write_bytes(image.png)
        except OSError as e:
            logger.error(f"Could not write '{path}': {e}")
            QMessageBox.critical(self, "Error", f"Could not save image:\n{e}")
            self._show_status(STATUS_FAILED)
            return

        logger.info(f"Saved {image.width}x{image.height} render to '{path}'.")
        self._show_status(STATUS_EXPORTED)

    def closeEvent(self, event: QCloseEvent) -> None:
        self.visualizer.close()
        event.accept()
