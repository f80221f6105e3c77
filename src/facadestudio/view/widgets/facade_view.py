"""
3D Viewport Widget (PyVista Wrapper)
"""

from __future__ import annotations

import logging
from typing import Optional

from PySide6.QtWidgets import QWidget, QVBoxLayout
from PySide6.QtCore import QTimer
from PySide6.QtGui import QCloseEvent

from pyvistaqt import QtInteractor
from vtkmodules.vtkRenderingCore import vtkTextActor

from facadestudio import config
from facadestudio.controller.export import ExportStage
from facadestudio.controller.studio import FacadeStudio
from facadestudio.model.state import FacadeState

logger = logging.getLogger(__name__)


class FacadeViewWidget(QWidget):
    """
    Hosts the live render surface. A QTimer drives the interactive frame
    loop; ticks are skipped while an export holds the surface.
    """

    def __init__(self, state: FacadeState, parent: Optional[QWidget] = None) -> None:
        super().__init__(parent)

        self.layout_box: QVBoxLayout = QVBoxLayout(self)
        self.layout_box.setContentsMargins(0, 0, 0, 0)

        self.plotter: QtInteractor = QtInteractor(self)
        self.layout_box.addWidget(self.plotter)

        self.studio = FacadeStudio(
            self.plotter,
            state=state,
            pixel_density=self.devicePixelRatioF(),
            on_export_stage=self._on_export_stage,
        )

        self._caption = self._create_caption()
        self.update_caption()
        self._attach_observers()

        self._frame_timer = QTimer(self)
        self._frame_timer.setInterval(config.FRAME_INTERVAL_MS)
        self._frame_timer.timeout.connect(self.studio.render_frame)
        self._frame_timer.start()

    # ------------------------------------------------------------------------------
    # Internal: Setup & Observers
    # ------------------------------------------------------------------------------

    def _attach_observers(self) -> None:
        iren = self.plotter.iren
        iren.add_observer("ConfigureEvent", lambda *_: self._on_configure())

    def _create_caption(self) -> vtkTextActor:
        """Seed/preset caption in the viewport corner. Never part of an export."""
        t = vtkTextActor()
        t.GetTextProperty().SetColor(1, 1, 1)
        t.GetTextProperty().SetFontSize(14)
        t.SetDisplayPosition(12, 12)
        self.plotter.renderer.AddActor2D(t)
        return t

    def update_caption(self) -> None:
        state = self.studio.state
        self._caption.SetInput(f"Seed {state.seed}  |  {state.lighting.label}")

    def _on_export_stage(self, stage: ExportStage) -> None:
        if stage == ExportStage.RESIZING:
            self._caption.SetVisibility(False)
        elif stage == ExportStage.RESTORING:
            self._caption.SetVisibility(True)

    def _on_configure(self) -> None:
        """Keep the surface controller in step with the widget size."""
        if self.studio.surface.is_leased:
            return
        current = self.studio.surface.state
        buffer_w, buffer_h = self.plotter.window_size
        width = max(1, int(round(buffer_w / current.pixel_density)))
        height = max(1, int(round(buffer_h / current.pixel_density)))
        if (width, height) != (current.width, current.height):
            self.studio.surface.resize(width, height)

    def closeEvent(self, event: QCloseEvent) -> None:
        self._frame_timer.stop()
        self.plotter.close()
        event.accept()
