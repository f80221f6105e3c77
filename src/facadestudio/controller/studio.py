"""
Facade Studio Controller
========================
The control surface consumed by the UI and the CLI.

Why is this file needed?
------------------------
It wires the explicit FacadeState into the scene assembler, the render
surface and the export pipeline, and exposes the three user actions:
``randomize()``, ``set_preset()`` and ``render_high_res()``.
"""
from __future__ import annotations

import logging
from typing import Any, Callable, Optional, Union

from facadestudio import config
from facadestudio.controller.export import ExportedImage, ExportRequest, ExportStage, HighResExporter
from facadestudio.controller.postprocess import PostProcessStack
from facadestudio.controller.scene import SceneAssembler
from facadestudio.controller.surface import RenderSurfaceController
from facadestudio.model.lighting import LightingPreset
from facadestudio.model.state import FacadeState

logger = logging.getLogger(__name__)


class FacadeStudio:
    def __init__(
        self,
        plotter: Any,
        state: Optional[FacadeState] = None,
        pixel_density: float = 1.0,
        post: Optional[PostProcessStack] = None,
        max_surface_size: int = config.MAX_SURFACE_SIZE,
        on_export_stage: Optional[Callable[[ExportStage], None]] = None,
    ) -> None:
        self.state = state or FacadeState()
        post = post or PostProcessStack()

        self.assembler = SceneAssembler(plotter, post=post)
        self.surface = RenderSurfaceController(
            plotter, pixel_density=pixel_density, max_surface_size=max_surface_size
        )
        self.exporter = HighResExporter(self.surface, post=post, on_stage_changed=on_export_stage)

        self.assembler.sync(self.state)

    # ------------------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------------------

    def randomize(self) -> int:
        seed = self.state.randomize()
        self.assembler.sync(self.state)
        return seed

    def set_preset(self, identifier: Union[LightingPreset, str]) -> LightingPreset:
        preset = self.state.set_preset(identifier)
        self.assembler.sync(self.state)
        return preset

    def render_high_res(
        self,
        width: int = config.EXPORT_WIDTH,
        height: int = config.EXPORT_HEIGHT,
        samples: Optional[int] = config.EXPORT_SAMPLES,
    ) -> ExportedImage:
        """Render one still at (width, height). The viewport is restored afterwards."""
        request = ExportRequest(width=width, height=height, samples=samples)
        return self.exporter.export(request)

    def render_frame(self) -> bool:
        """Interactive loop tick."""
        return self.surface.render_frame()

    @property
    def busy(self) -> bool:
        return self.exporter.in_flight
