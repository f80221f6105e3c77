"""Lighting Preset Table - sun, sky and ambient parameters per preset."""
from __future__ import annotations

import math
from dataclasses import dataclass
from enum import StrEnum
from types import MappingProxyType
from typing import Mapping, Tuple, Union

import numpy as np

from facadestudio.errors import ConfigurationError

RGB = Tuple[float, float, float]


# ------------------------------------------------------------------------------
# Enums
# ------------------------------------------------------------------------------
class LightingPreset(StrEnum):
    DAYLIGHT = "daylight"
    GOLDEN = "golden"
    OVERCAST = "overcast"


class EnvironmentStyle(StrEnum):
    """Image-based fill the scene is tinted with."""
    CITY = "city"
    SUNSET = "sunset"


# Fill light colour standing in for the environment map
ENVIRONMENT_FILL: Mapping[EnvironmentStyle, RGB] = MappingProxyType({
    EnvironmentStyle.CITY: (0.85, 0.90, 1.0),
    EnvironmentStyle.SUNSET: (1.0, 0.74, 0.52),
})


# ------------------------------------------------------------------------------
# Data Structures
# ------------------------------------------------------------------------------
@dataclass(frozen=True)
class SkyParameters:
    turbidity: float
    rayleigh: float
    mie_coefficient: float
    mie_directional_g: float
    elevation: float  # degrees above the horizon
    azimuth: float  # degrees

    def gradient(self) -> Tuple[RGB, RGB]:
        """
        Approximate (horizon, zenith) colours for a gradient background.
        Not a physical sky model: haze greys the zenith, a low sun warms the
        horizon.
        """
        haze = float(np.clip((self.turbidity - 2.0) / 8.0, 0.0, 1.0))
        scatter = float(np.clip(self.rayleigh / 2.0, 0.0, 1.0))
        warmth = float(np.clip((25.0 - self.elevation) / 25.0, 0.0, 1.0))
        glow = float(np.clip(self.mie_coefficient * 50.0, 0.0, 1.0)) * self.mie_directional_g

        blue = np.array([0.18, 0.40, 0.78]) * (0.75 + 0.25 * scatter)
        grey = np.array([0.68, 0.70, 0.73])
        zenith = (1 - haze) * blue + haze * grey

        pale = np.array([0.82, 0.87, 0.92])
        warm = np.array([0.98, 0.64, 0.36])
        horizon = (1 - warmth) * pale + warmth * warm
        horizon = horizon + glow * 0.08

        return (
            tuple(float(c) for c in np.clip(horizon, 0.0, 1.0)),
            tuple(float(c) for c in np.clip(zenith, 0.0, 1.0)),
        )


@dataclass(frozen=True)
class LightingSetup:
    label: str
    sun_direction: Tuple[float, float, float]
    sky: SkyParameters
    ambient_intensity: float
    directional_intensity: float
    environment: EnvironmentStyle

    @property
    def sun_unit_vector(self) -> Tuple[float, float, float]:
        x, y, z = self.sun_direction
        n = math.sqrt(x * x + y * y + z * z)
        return (x / n, y / n, z / n)

    @property
    def fill_color(self) -> RGB:
        return ENVIRONMENT_FILL[self.environment]


# ------------------------------------------------------------------------------
# Catalog
# ------------------------------------------------------------------------------
PRESETS: Mapping[LightingPreset, LightingSetup] = MappingProxyType({
    LightingPreset.DAYLIGHT: LightingSetup(
        label="Daylight",
        sun_direction=(5.0, 8.0, 6.0),
        sky=SkyParameters(turbidity=3.0, rayleigh=2.0, mie_coefficient=0.004,
                          mie_directional_g=0.9, elevation=55.0, azimuth=140.0),
        ambient_intensity=0.3,
        directional_intensity=2.5,
        environment=EnvironmentStyle.CITY,
    ),
    LightingPreset.GOLDEN: LightingSetup(
        label="Golden Hour",
        sun_direction=(-4.0, 6.0, 3.0),
        sky=SkyParameters(turbidity=4.0, rayleigh=1.6, mie_coefficient=0.006,
                          mie_directional_g=0.92, elevation=15.0, azimuth=210.0),
        ambient_intensity=0.3,
        directional_intensity=2.5,
        environment=EnvironmentStyle.SUNSET,
    ),
    LightingPreset.OVERCAST: LightingSetup(
        label="Overcast",
        sun_direction=(2.0, 4.0, 2.0),
        sky=SkyParameters(turbidity=8.0, rayleigh=1.2, mie_coefficient=0.02,
                          mie_directional_g=0.8, elevation=60.0, azimuth=180.0),
        ambient_intensity=0.6,
        directional_intensity=1.2,
        environment=EnvironmentStyle.CITY,
    ),
})


def resolve_preset(identifier: Union[LightingPreset, str]) -> LightingPreset:
    """Map a preset member or its string value onto the enum."""
    if isinstance(identifier, LightingPreset):
        return identifier
    if isinstance(identifier, str):
        try:
            return LightingPreset(identifier)
        except ValueError:
            pass
    valid = ", ".join(p.value for p in LightingPreset)
    raise ConfigurationError(f"Unknown lighting preset {identifier!r}. Expected one of: {valid}.")


def preset_for(identifier: Union[LightingPreset, str]) -> LightingSetup:
    """Look up the fixed lighting record for a preset."""
    return PRESETS[resolve_preset(identifier)]
