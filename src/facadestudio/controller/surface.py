"""
Render Surface Controller
=========================
Owns the live render target of a PyVista plotter.

Why is this file needed?
------------------------
1. Ownership: width, height and pixel density of the viewport live here and
   nowhere else. The physical buffer is (width * density, height * density).
2. Exclusivity: the interactive frame loop and the one-shot export render
   must never interleave. The export takes a lease on the surface; while the
   lease is held (or the loop is paused) ``render_frame()`` is a no-op.
3. Snapshots: an export records the exact physical buffer and the off-screen
   flag of the render window, and hands both back unchanged. The logical
   state alone cannot reproduce a buffer that is not a multiple of the density.

The plotter is anything exposing the small PyVista surface used here:
``window_size`` (read/write), ``render()``, ``image`` and ``render_window``.
"""
from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Iterator, Optional, Tuple

import numpy as np
import numpy.typing as npt

from facadestudio import config
from facadestudio.errors import ConcurrencyViolationError, ResourceExhaustionError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RenderSurfaceState:
    width: int
    height: int
    pixel_density: float = 1.0

    @property
    def buffer_size(self) -> Tuple[int, int]:
        return (
            max(1, int(round(self.width * self.pixel_density))),
            max(1, int(round(self.height * self.pixel_density))),
        )


@dataclass(frozen=True)
class SurfaceSnapshot:
    """Everything needed to put the render target back as it was."""
    state: RenderSurfaceState
    buffer_size: Tuple[int, int]
    offscreen: Optional[bool]  # None when there is no native window yet


class RenderSurfaceController:
    def __init__(
        self,
        plotter: Any,
        pixel_density: float = 1.0,
        max_surface_size: int = config.MAX_SURFACE_SIZE,
    ) -> None:
        if pixel_density <= 0:
            raise ValueError(f"pixel_density must be positive, got {pixel_density}.")

        self.plotter = plotter
        self.max_surface_size = max_surface_size

        buffer_w, buffer_h = (int(v) for v in plotter.window_size)
        self._state = RenderSurfaceState(
            width=max(1, int(round(buffer_w / pixel_density))),
            height=max(1, int(round(buffer_h / pixel_density))),
            pixel_density=pixel_density,
        )

        self._lease = threading.Lock()
        self._loop_paused = False
        self.frames_rendered = 0

    # ------------------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------------------

    @property
    def state(self) -> RenderSurfaceState:
        return self._state

    @property
    def is_leased(self) -> bool:
        return self._lease.locked()

    @property
    def loop_paused(self) -> bool:
        return self._loop_paused

    def apply_state(self, state: RenderSurfaceState) -> None:
        """Resize the render buffer only. No widget layout is touched."""
        self._state = state
        self.plotter.window_size = list(state.buffer_size)

    def resize(self, width: int, height: int) -> None:
        """Viewport resize from the UI. Ignored while an export holds the surface."""
        if self.is_leased:
            logger.debug(f"Ignoring viewport resize to {width}x{height} during export.")
            return
        self.apply_state(RenderSurfaceState(width, height, self._state.pixel_density))

    def snapshot(self) -> SurfaceSnapshot:
        buffer_w, buffer_h = (int(v) for v in self.plotter.window_size)
        return SurfaceSnapshot(self._state, (buffer_w, buffer_h), self._offscreen())

    def restore(self, snapshot: SurfaceSnapshot) -> None:
        """Put back the exact buffer size and off-screen flag of ``snapshot``."""
        self._state = snapshot.state
        self.plotter.window_size = list(snapshot.buffer_size)
        if snapshot.offscreen is not None:
            self._set_offscreen(snapshot.offscreen)

    def enter_offscreen(self) -> None:
        """
        Draw into an off-screen buffer so that an enlarged target never
        resizes the on-screen native window.
        """
        self._set_offscreen(True)

    def _offscreen(self) -> Optional[bool]:
        ren_win = getattr(self.plotter, "render_window", None)
        if ren_win is None:
            return None
        return bool(ren_win.GetOffScreenRendering())

    def _set_offscreen(self, enabled: bool) -> None:
        ren_win = getattr(self.plotter, "render_window", None)
        if ren_win is not None:
            ren_win.SetOffScreenRendering(int(enabled))

    def check_capacity(self, width: int, height: int) -> None:
        if width > self.max_surface_size or height > self.max_surface_size:
            raise ResourceExhaustionError(
                f"Requested {width}x{height} exceeds the maximum render surface edge "
                f"of {self.max_surface_size} px."
            )

    # ------------------------------------------------------------------------------
    # Frame loop
    # ------------------------------------------------------------------------------

    def pause_loop(self) -> None:
        self._loop_paused = True

    def resume_loop(self) -> None:
        self._loop_paused = False

    def render_frame(self) -> bool:
        """One tick of the interactive loop. Returns False when the frame was skipped."""
        if self._loop_paused or self.is_leased:
            return False
        self.plotter.render()
        self.frames_rendered += 1
        return True

    # ------------------------------------------------------------------------------
    # Exclusive access
    # ------------------------------------------------------------------------------

    @contextmanager
    def lease(self) -> Iterator[RenderSurfaceController]:
        """
        Exclusive hold over the surface. A second lease attempt fails at once
        instead of waiting.
        """
        if not self._lease.acquire(blocking=False):
            raise ConcurrencyViolationError("The render surface is already held by an export in flight.")
        try:
            yield self
        finally:
            self._lease.release()

    def render_once(self) -> None:
        """Single synchronous render for the lease holder."""
        if not self.is_leased:
            raise RuntimeError("render_once() requires the surface lease.")
        self.plotter.render()

    def read_pixels(self) -> npt.NDArray[np.uint8]:
        """Read back the last rendered frame as an (H, W, 3) array."""
        if not self.is_leased:
            raise RuntimeError("read_pixels() requires the surface lease.")
        image = np.asarray(self.plotter.image)
        if image.ndim != 3 or image.shape[2] < 3:
            raise ResourceExhaustionError(f"Render surface returned an unexpected buffer of shape {image.shape}.")
        return image[..., :3]
