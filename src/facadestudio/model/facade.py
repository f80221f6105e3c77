"""
Facade Layout Generator
=======================
Turns a FacadeConfig (columns, rows, seed) into an ordered grid of cells.

Why is this file needed?
------------------------
1. Determinism: the whole layout is a pure function of (columns, rows, seed).
   Re-deriving it from the same inputs gives exactly the same floats.
2. Decoupling: cells are plain frozen dataclasses. The scene assembler turns
   them into PyVista meshes; nothing here knows about rendering.

Draw-order contract
-------------------
Cells are visited column-major: the outer loop runs over columns ``i``, the
inner loop over rows ``j``. For every cell exactly three values are drawn,
in this order: louver density, louver tilt, open chance. Changing either the
loop order or the draw order changes the generated facade for a given seed.

Classes:
    FacadeConfig: Validated grid size and seed.
    FacadeDimensions: Module geometry constants.
    LouverRules: Ranges for the per-cell louver draws.
    FacadeCell: One generated grid position.
    FacadeLayout: The full ordered result.
"""
from __future__ import annotations

import dataclasses
import logging
import math
from dataclasses import dataclass
from enum import StrEnum
from typing import Optional, Tuple, Union

from facadestudio import config
from facadestudio.errors import ConfigurationError
from facadestudio.model.prng import SeededRandom, lerp

logger = logging.getLogger(__name__)

Vec3 = Tuple[float, float, float]
Bounds = Tuple[float, float, float, float, float, float]


# ------------------------------------------------------------------------------
# Configuration
# ------------------------------------------------------------------------------
def _require_positive_int(name: str, value: object) -> None:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ConfigurationError(f"{name} must be an integer, got {value!r}.")
    if value < 1:
        raise ConfigurationError(f"{name} must be >= 1, got {value}.")


@dataclass(frozen=True)
class FacadeConfig:
    """Grid size and seed. The seed is opaque: only the PRNG interprets it."""
    columns: int = config.DEFAULT_COLUMNS
    rows: int = config.DEFAULT_ROWS
    seed: int = config.DEFAULT_SEED

    def __post_init__(self) -> None:
        _require_positive_int("columns", self.columns)
        _require_positive_int("rows", self.rows)
        if isinstance(self.seed, bool) or not isinstance(self.seed, int):
            raise ConfigurationError(f"seed must be an integer, got {self.seed!r}.")

    def with_seed(self, seed: int) -> FacadeConfig:
        return dataclasses.replace(self, seed=seed)


@dataclass(frozen=True)
class FacadeDimensions:
    """Module geometry (metres). Tunable constants, not user input."""
    module_width: float = 1.2
    module_height: float = 1.0
    gap: float = 0.06
    frame_thickness: float = 0.08
    frame_depth: float = 0.25

    glass_offset: float = -0.02  # recessed behind the frame face
    louver_offset: float = 0.07
    louver_margin: float = 0.05
    slat_height: float = 0.025
    slat_depth: float = 0.03

    def __post_init__(self) -> None:
        if self.opening_width <= 0 or self.opening_height <= 0:
            raise ConfigurationError(
                "frame_thickness leaves no opening inside the module "
                f"({self.module_width} x {self.module_height}, thickness {self.frame_thickness})."
            )

    @property
    def opening_width(self) -> float:
        return self.module_width - 2 * self.frame_thickness

    @property
    def opening_height(self) -> float:
        return self.module_height - 2 * self.frame_thickness

    def total_width(self, columns: int) -> float:
        return columns * (self.module_width + self.gap) - self.gap

    def total_height(self, rows: int) -> float:
        return rows * (self.module_height + self.gap) - self.gap


@dataclass(frozen=True)
class LouverRules:
    """
    Ranges for the per-cell louver draws.

    density = density_min + floor(draw * density_span)  -> [6, 11] by default
    tilt    = lerp(tilt_min, tilt_max, draw)            -> radians
    A cell is open when its open-chance draw is above ``open_threshold``.
    """
    density_min: int = 6
    density_span: int = 6
    tilt_min: float = 0.1
    tilt_max: float = 0.6
    open_threshold: float = 0.7


DEFAULT_DIMENSIONS = FacadeDimensions()
DEFAULT_LOUVER_RULES = LouverRules()


# ------------------------------------------------------------------------------
# Cell geometry
# ------------------------------------------------------------------------------
class FrameSide(StrEnum):
    TOP = "top"
    BOTTOM = "bottom"
    LEFT = "left"
    RIGHT = "right"


@dataclass(frozen=True)
class Slab:
    """Axis-aligned box given by its centre and full size."""
    center: Vec3
    size: Vec3

    def bounds(self) -> Bounds:
        """(x_min, x_max, y_min, y_max, z_min, z_max), the PyVista ordering."""
        (cx, cy, cz), (sx, sy, sz) = self.center, self.size
        return (cx - sx / 2, cx + sx / 2, cy - sy / 2, cy + sy / 2, cz - sz / 2, cz + sz / 2)


@dataclass(frozen=True)
class FrameSegment:
    side: FrameSide
    slab: Slab


@dataclass(frozen=True)
class GlassPanel:
    """Inset pane filling the frame opening. Cosmetic only."""
    center: Vec3
    width: float
    height: float


@dataclass(frozen=True)
class Slat:
    """One horizontal louver slat, rotated about its own X axis by ``tilt``."""
    slab: Slab
    tilt: float


@dataclass(frozen=True)
class Open:
    """Cell without louvers."""


@dataclass(frozen=True)
class Closed:
    """Cell shaded by ``density`` slats, all tilted by ``tilt`` radians."""
    density: int
    tilt: float


LouverState = Union[Open, Closed]


@dataclass(frozen=True)
class FacadeCell:
    column: int
    row: int
    center: Tuple[float, float]
    frame: Tuple[FrameSegment, ...]
    glass: GlassPanel
    louvers: LouverState
    slats: Tuple[Slat, ...] = ()

    @property
    def is_open(self) -> bool:
        return isinstance(self.louvers, Open)


@dataclass(frozen=True)
class FacadeLayout:
    config: FacadeConfig
    dimensions: FacadeDimensions
    cells: Tuple[FacadeCell, ...]
    total_width: float
    total_height: float

    @property
    def open_count(self) -> int:
        return sum(1 for c in self.cells if c.is_open)

    @property
    def closed_count(self) -> int:
        return len(self.cells) - self.open_count

    @property
    def slat_count(self) -> int:
        return sum(len(c.slats) for c in self.cells)

    def bounds(self) -> Bounds:
        """Bounding box of all frame slabs."""
        boxes = [seg.slab.bounds() for cell in self.cells for seg in cell.frame]
        return (
            min(b[0] for b in boxes), max(b[1] for b in boxes),
            min(b[2] for b in boxes), max(b[3] for b in boxes),
            min(b[4] for b in boxes), max(b[5] for b in boxes),
        )

    def center(self) -> Vec3:
        x0, x1, y0, y1, z0, z1 = self.bounds()
        return ((x0 + x1) / 2, (y0 + y1) / 2, (z0 + z1) / 2)


# ------------------------------------------------------------------------------
# Generation
# ------------------------------------------------------------------------------
def slat_offsets(density: int, opening_height: float, margin: float) -> list[float]:
    """
    Vertical slat offsets relative to the cell centre, evenly spaced between
    the top and bottom margins of the opening.
    """
    if density <= 0:
        return []
    if density == 1:
        # Spacing divisor (density - 1) would be zero
        return [0.0]

    low = -opening_height / 2 + margin
    high = opening_height / 2 - margin
    return [lerp(low, high, s / (density - 1)) for s in range(density)]


def draw_louvers(rand: SeededRandom, rules: LouverRules = DEFAULT_LOUVER_RULES) -> LouverState:
    """Consume exactly three draws: density, tilt, open chance."""
    density = rules.density_min + math.floor(rand.next() * rules.density_span)
    tilt = lerp(rules.tilt_min, rules.tilt_max, rand.next())
    open_chance = rand.next()

    if open_chance > rules.open_threshold:
        return Open()
    return Closed(density=density, tilt=tilt)


def _frame_segments(x: float, y: float, dims: FacadeDimensions) -> Tuple[FrameSegment, ...]:
    mw, mh = dims.module_width, dims.module_height
    ft, depth = dims.frame_thickness, dims.frame_depth
    side_height = mh - 2 * ft

    return (
        FrameSegment(FrameSide.TOP, Slab((x, y + (mh - ft) / 2, 0.0), (mw, ft, depth))),
        FrameSegment(FrameSide.BOTTOM, Slab((x, y - (mh - ft) / 2, 0.0), (mw, ft, depth))),
        FrameSegment(FrameSide.LEFT, Slab((x - (mw - ft) / 2, y, 0.0), (ft, side_height, depth))),
        FrameSegment(FrameSide.RIGHT, Slab((x + (mw - ft) / 2, y, 0.0), (ft, side_height, depth))),
    )


def _slats(x: float, y: float, louvers: LouverState, dims: FacadeDimensions) -> Tuple[Slat, ...]:
    match louvers:
        case Closed(density=density, tilt=tilt):
            size = (dims.opening_width, dims.slat_height, dims.slat_depth)
            return tuple(
                Slat(Slab((x, y + ty, dims.louver_offset), size), tilt)
                for ty in slat_offsets(density, dims.opening_height, dims.louver_margin)
            )
        case _:
            return ()


def generate_facade(
    facade_config: FacadeConfig,
    dimensions: Optional[FacadeDimensions] = None,
    rules: Optional[LouverRules] = None,
) -> FacadeLayout:
    """
    Generate the full cell grid for ``facade_config``.

    The grid is centred at the origin for every columns/rows >= 1.
    """
    if not isinstance(facade_config, FacadeConfig):
        raise ConfigurationError(f"Expected FacadeConfig, got {type(facade_config).__name__}.")

    dims = dimensions or DEFAULT_DIMENSIONS
    rules = rules or DEFAULT_LOUVER_RULES
    rand = SeededRandom(facade_config.seed)

    total_width = dims.total_width(facade_config.columns)
    total_height = dims.total_height(facade_config.rows)

    cells: list[FacadeCell] = []
    for i in range(facade_config.columns):
        for j in range(facade_config.rows):
            x = i * (dims.module_width + dims.gap) - total_width / 2 + dims.module_width / 2
            y = j * (dims.module_height + dims.gap) - total_height / 2 + dims.module_height / 2

            louvers = draw_louvers(rand, rules)
            cells.append(FacadeCell(
                column=i,
                row=j,
                center=(x, y),
                frame=_frame_segments(x, y, dims),
                glass=GlassPanel(
                    center=(x, y, dims.glass_offset),
                    width=dims.opening_width,
                    height=dims.opening_height,
                ),
                louvers=louvers,
                slats=_slats(x, y, louvers, dims),
            ))

    layout = FacadeLayout(
        config=facade_config,
        dimensions=dims,
        cells=tuple(cells),
        total_width=total_width,
        total_height=total_height,
    )
    logger.debug(
        f"Generated facade {facade_config.columns}x{facade_config.rows} "
        f"(seed={facade_config.seed}): {layout.open_count} open, {layout.closed_count} closed."
    )
    return layout
