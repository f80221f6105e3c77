"""
Post-Processing Stack
Anti-aliasing on the live plotter; bloom and ACES filmic tone mapping on
captured frames.

Captured frames can be 8K, so the full-resolution passes run in horizontal
bands and the bloom is computed on a downsampled copy.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any, Optional

import numpy as np
import numpy.typing as npt
from scipy import ndimage

logger = logging.getLogger(__name__)


class ToneMapping(StrEnum):
    NONE = "none"
    ACES_FILMIC = "aces_filmic"


@dataclass(frozen=True)
class BloomSettings:
    intensity: float = 0.3
    luminance_threshold: float = 0.9
    luminance_smoothing: float = 0.1
    downsample: int = 4
    radius: float = 0.01  # blur sigma as a fraction of the longer image edge


@dataclass(frozen=True)
class PostProcessStack:
    anti_aliasing: Optional[str] = "fxaa"
    bloom: Optional[BloomSettings] = field(default_factory=BloomSettings)
    tone_mapping: ToneMapping = ToneMapping.ACES_FILMIC
    exposure: float = 1.0
    band_rows: int = 512

    @classmethod
    def disabled(cls) -> PostProcessStack:
        return cls(anti_aliasing=None, bloom=None, tone_mapping=ToneMapping.NONE)

    @property
    def touches_pixels(self) -> bool:
        return self.bloom is not None or self.tone_mapping != ToneMapping.NONE

    def configure(self, plotter: Any) -> None:
        """Enable the plotter-side passes."""
        if self.anti_aliasing:
            plotter.enable_anti_aliasing(self.anti_aliasing)

    def apply(self, rgb: npt.NDArray[np.uint8]) -> npt.NDArray[np.uint8]:
        """Return a new (H, W, 3) uint8 frame with bloom and tone mapping applied."""
        if rgb.ndim != 3 or rgb.shape[2] < 3:
            raise ValueError(f"Expected an (H, W, 3) frame, got {rgb.shape}.")

        rgb = rgb[..., :3]
        if not self.touches_pixels:
            return np.array(rgb, dtype=np.uint8, order="C")

        height, width = rgb.shape[:2]
        logger.debug(f"Post-processing {width}x{height} frame in bands of {self.band_rows} rows.")
        glow = self._bloom_layer(rgb) if self.bloom is not None else None
        if glow is not None:
            ds = self.bloom.downsample
            col_index = np.minimum(np.arange(width) // ds, glow.shape[1] - 1)

        out = np.empty((height, width, 3), dtype=np.uint8)
        for r0 in range(0, height, self.band_rows):
            r1 = min(r0 + self.band_rows, height)
            band = srgb_to_linear(rgb[r0:r1].astype(np.float32) / 255.0)

            if glow is not None:
                row_index = np.minimum(np.arange(r0, r1) // ds, glow.shape[0] - 1)
                band += self.bloom.intensity * glow[row_index][:, col_index]

            band *= self.exposure
            if self.tone_mapping == ToneMapping.ACES_FILMIC:
                band = aces_filmic(band)

            out[r0:r1] = np.round(linear_to_srgb(np.clip(band, 0.0, 1.0)) * 255.0).astype(np.uint8)

        return out

    def _bloom_layer(self, rgb: npt.NDArray[np.uint8]) -> npt.NDArray[np.float32]:
        """Bright-pass, blurred, at 1/downsample resolution (linear light)."""
        bloom = self.bloom
        small = rgb[::bloom.downsample, ::bloom.downsample].astype(np.float32) / 255.0

        luminance = small @ np.array([0.2126, 0.7152, 0.0722], dtype=np.float32)
        mask = smoothstep(
            bloom.luminance_threshold - bloom.luminance_smoothing,
            bloom.luminance_threshold + bloom.luminance_smoothing,
            luminance,
        )
        bright = srgb_to_linear(small) * mask[..., None]

        sigma = max(1.0, bloom.radius * max(small.shape[:2]))
        return ndimage.gaussian_filter(bright, sigma=(sigma, sigma, 0.0))


# ------------------------------------------------------------------------------
# Colour helpers
# ------------------------------------------------------------------------------
def smoothstep(edge0: float, edge1: float, x: npt.NDArray[np.float32]) -> npt.NDArray[np.float32]:
    t = np.clip((x - edge0) / max(edge1 - edge0, 1e-6), 0.0, 1.0)
    return t * t * (3.0 - 2.0 * t)


def srgb_to_linear(c: npt.NDArray[np.float32]) -> npt.NDArray[np.float32]:
    return np.where(c <= 0.04045, c / 12.92, ((c + 0.055) / 1.055) ** 2.4).astype(np.float32)


def linear_to_srgb(c: npt.NDArray[np.float32]) -> npt.NDArray[np.float32]:
    return np.where(c <= 0.0031308, c * 12.92, 1.055 * np.power(c, 1.0 / 2.4) - 0.055).astype(np.float32)


def aces_filmic(x: npt.NDArray[np.float32]) -> npt.NDArray[np.float32]:
    """Narkowicz fit of the ACES filmic curve."""
    a, b, c, d, e = 2.51, 0.03, 2.43, 0.59, 0.14
    return np.clip((x * (a * x + b)) / (x * (c * x + d) + e), 0.0, 1.0).astype(np.float32)
