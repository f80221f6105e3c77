"""
High-Resolution Export Pipeline
===============================
Renders one still frame at a resolution decoupled from the viewport.

Why is this file needed?
------------------------
The interactive viewport must look exactly the same before and after an
export, whatever happens in between. The pipeline is a short-lived state
machine:

    IDLE -> RESIZING -> RENDERING -> CAPTURING -> RESTORING -> IDLE
                                                         \\-> FAILED

RESTORING runs on every exit path, including failures, before the error
reaches the caller. The capture render goes to an off-screen buffer, so the
on-screen window is never resized; the exact physical buffer and off-screen
flag saved on entry are put back afterwards.

Pixel density is forced to 1 during the export: a high-density buffer at
7680x4320 can exceed practical GPU memory, so anti-aliasing quality is
traded for memory headroom.

Classes:
    ExportStage: States of the pipeline.
    ExportRequest: Target size and advisory sample hint.
    ExportedImage: In-memory PNG handle returned to the caller.
    HighResExporter: The pipeline itself.
"""
from __future__ import annotations

import base64
import io
import logging
import time
from dataclasses import dataclass
from enum import StrEnum
from typing import Callable, List, Optional

import numpy as np
import numpy.typing as npt
from PIL import Image

from facadestudio import config
from facadestudio.controller.postprocess import PostProcessStack
from facadestudio.controller.surface import RenderSurfaceController, RenderSurfaceState, SurfaceSnapshot
from facadestudio.errors import ConfigurationError, ExportError, ResourceExhaustionError

logger = logging.getLogger(__name__)


class ExportStage(StrEnum):
    IDLE = "idle"
    RESIZING = "resizing"
    RENDERING = "rendering"
    CAPTURING = "capturing"
    RESTORING = "restoring"
    FAILED = "failed"


@dataclass(frozen=True)
class ExportRequest:
    width: int = config.EXPORT_WIDTH
    height: int = config.EXPORT_HEIGHT
    samples: Optional[int] = config.EXPORT_SAMPLES  # advisory only

    def __post_init__(self) -> None:
        for name in ("width", "height"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
                raise ConfigurationError(f"Export {name} must be a positive integer, got {value!r}.")
        if self.samples is not None and (isinstance(self.samples, bool) or not isinstance(self.samples, int)):
            raise ConfigurationError(f"Export samples must be an integer or None, got {self.samples!r}.")


@dataclass(frozen=True)
class ExportedImage:
    """Losslessly encoded frame. Saving it is up to the caller."""
    width: int
    height: int
    png: bytes

    def data_uri(self) -> str:
        return "data:image/png;base64," + base64.b64encode(self.png).decode("ascii")

    def to_array(self) -> npt.NDArray[np.uint8]:
        with Image.open(io.BytesIO(self.png)) as img:
            return np.asarray(img.convert("RGB"))

    def suggested_filename(self, prefix: str = "facade") -> str:
        return f"{prefix}-{self.width}x{self.height}-{int(time.time() * 1000)}.png"


class HighResExporter:
    def __init__(
        self,
        surface: RenderSurfaceController,
        post: Optional[PostProcessStack] = None,
        on_stage_changed: Optional[Callable[[ExportStage], None]] = None,
    ) -> None:
        self.surface = surface
        self.post = post or PostProcessStack()
        self.on_stage_changed = on_stage_changed

        self._stage = ExportStage.IDLE
        self._history: List[ExportStage] = []

    @property
    def stage(self) -> ExportStage:
        return self._stage

    @property
    def history(self) -> List[ExportStage]:
        """Stages visited by the last export that obtained the surface."""
        return list(self._history)

    @property
    def in_flight(self) -> bool:
        return self.surface.is_leased

    def export(self, request: ExportRequest) -> ExportedImage:
        """
        Run the full pipeline once.

        Raises:
            ConcurrencyViolationError: Another export holds the surface. Nothing
                was touched.
            ResourceExhaustionError: The device could not allocate or render the
                requested size. The surface has already been restored.
            ExportError: The surface could not be put back. The stage is FAILED.
        """
        # Lease first: a rejected request must not touch the surface or history
        with self.surface.lease():
            saved = self.surface.snapshot()
            self._history = []
            self.surface.pause_loop()
            logger.info(
                f"Exporting {request.width}x{request.height} "
                f"(viewport {saved.state.width}x{saved.state.height} @ {saved.state.pixel_density}x)."
            )

            failed = True
            try:
                image = self._run(request)
                failed = False
                return image
            except ExportError:
                raise
            except (MemoryError, RuntimeError) as e:
                raise ResourceExhaustionError(
                    f"Device failed to produce a {request.width}x{request.height} frame: {e}"
                ) from e
            finally:
                # Raises ExportError, with the stage already FAILED, if the surface cannot be put back
                self._restore(saved)
                if failed:
                    self._enter(ExportStage.FAILED)
                    logger.error(f"Export {request.width}x{request.height} failed; viewport restored.")
                else:
                    self._enter(ExportStage.IDLE)
                    logger.info(f"Export {request.width}x{request.height} finished.")

    # ------------------------------------------------------------------------------
    # Internal: Stages
    # ------------------------------------------------------------------------------

    def _run(self, request: ExportRequest) -> ExportedImage:
        self._enter(ExportStage.RESIZING)
        self.surface.check_capacity(request.width, request.height)
        self.surface.enter_offscreen()
        self.surface.apply_state(RenderSurfaceState(request.width, request.height, pixel_density=1.0))

        self._enter(ExportStage.RENDERING)
        if request.samples not in (None, 1):
            logger.info(f"Sample hint {request.samples} is advisory; rendering a single pass.")
        self.surface.render_once()

        self._enter(ExportStage.CAPTURING)
        pixels = self.surface.read_pixels()
        if pixels.shape[:2] != (request.height, request.width):
            # e.g. the window system clamped the buffer; never hand out a partial image
            raise ResourceExhaustionError(
                f"Captured frame is {pixels.shape[1]}x{pixels.shape[0]}, "
                f"expected {request.width}x{request.height}."
            )
        try:
            return self._encode(pixels)
        except (OSError, ValueError) as e:
            raise ResourceExhaustionError(f"Could not encode the captured frame as PNG: {e}") from e

    def _encode(self, pixels: npt.NDArray[np.uint8]) -> ExportedImage:
        frame = self.post.apply(pixels)
        buf = io.BytesIO()
        Image.fromarray(frame).save(buf, format="PNG")
        height, width = frame.shape[:2]
        return ExportedImage(width=width, height=height, png=buf.getvalue())

    def _restore(self, saved: SurfaceSnapshot) -> None:
        self._enter(ExportStage.RESTORING)
        try:
            self.surface.restore(saved)
        except Exception as e:
            logger.exception(f"Failed to restore render surface to {saved}.")
            self._enter(ExportStage.FAILED)
            raise ExportError(f"Render surface could not be restored: {e}") from e
        finally:
            self.surface.resume_loop()

    def _enter(self, stage: ExportStage) -> None:
        self._stage = stage
        self._history.append(stage)
        logger.debug(f"Export stage -> {stage}")
        if self.on_stage_changed is not None:
            self.on_stage_changed(stage)
