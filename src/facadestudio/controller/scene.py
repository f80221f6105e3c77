"""
Scene Assembler
===============
Composes the generated facade, the ground plane, the lighting of the active
preset and the post-processing stack into a PyVista plotter.

Why is this file needed?
------------------------
1. Translation: It converts model cells (slabs, panels, slats) into PyVista
   meshes, merged into ONE mesh per material class. Materials are shared
   definitions, never per-cell.
2. Caching: Meshes are only rebuilt when the facade config changes;
   a preset switch only swaps lights, sky and ambient level.
3. Shadows: the sun casts shadow-mapped shadows onto the facade and the
   ground; the environment fill does not darken them.

``build_scene`` is pure and deterministic. ``SceneAssembler`` owns the actors
it installs and replaces them in place, so re-applying the same state is
idempotent.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import StrEnum
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Tuple

import numpy as np
import pyvista as pv

from facadestudio import config
from facadestudio.controller.postprocess import PostProcessStack
from facadestudio.model.facade import FacadeConfig, FacadeLayout, Slab, generate_facade
from facadestudio.model.lighting import LightingPreset, LightingSetup, PRESETS
from facadestudio.model.state import FacadeState

logger = logging.getLogger(__name__)

# Distance of the directional sun light from the origin
SUN_DISTANCE = 20.0


# --- MATERIALS ---

class MaterialClass(StrEnum):
    CONCRETE = "concrete"
    GLASS = "glass"
    WOOD = "wood"
    GROUND = "ground"


@dataclass(frozen=True)
class MaterialSpec:
    color: str
    roughness: float
    metallic: float = 0.0
    opacity: float = 1.0

    def actor_kwargs(self, ambient: float) -> Dict[str, Any]:
        return {
            "color": self.color,
            "pbr": True,
            "roughness": self.roughness,
            "metallic": self.metallic,
            "opacity": self.opacity,
            "ambient": ambient,
            "smooth_shading": False,
            "show_scalar_bar": False,
        }


MATERIALS: Mapping[MaterialClass, MaterialSpec] = MappingProxyType({
    MaterialClass.CONCRETE: MaterialSpec(color="#b7b9bc", roughness=0.9),
    # Transmission 0.94 is approximated by opacity
    MaterialClass.GLASS: MaterialSpec(color="#7a94a1", roughness=0.05, opacity=0.35),
    MaterialClass.WOOD: MaterialSpec(color="#b07a52", roughness=0.6, metallic=0.05),
    MaterialClass.GROUND: MaterialSpec(color="#d8dadc", roughness=1.0),
})

FACADE_MATERIALS: Tuple[MaterialClass, ...] = (MaterialClass.CONCRETE, MaterialClass.GLASS, MaterialClass.WOOD)


# --- SCENE DESCRIPTION ---

@dataclass(frozen=True)
class SceneDescription:
    facade: FacadeConfig
    preset: LightingPreset
    meshes: Mapping[MaterialClass, pv.PolyData]
    counts: Mapping[MaterialClass, int]
    lighting: LightingSetup
    sky: Tuple[Tuple[float, float, float], Tuple[float, float, float]]


def _merge(meshes: List[pv.PolyData]) -> pv.PolyData:
    if not meshes:
        return pv.PolyData()
    if len(meshes) == 1:
        return meshes[0]
    return pv.merge(meshes, merge_points=False)


def _box(slab: Slab) -> pv.PolyData:
    return pv.Box(bounds=slab.bounds())


def build_facade_meshes(layout: FacadeLayout) -> Tuple[Dict[MaterialClass, pv.PolyData], Dict[MaterialClass, int]]:
    """One merged mesh per facade material class, plus primitive counts."""
    frames: List[pv.PolyData] = []
    panels: List[pv.PolyData] = []
    slats: List[pv.PolyData] = []

    for cell in layout.cells:
        frames.extend(_box(seg.slab) for seg in cell.frame)

        panels.append(pv.Plane(
            center=cell.glass.center,
            direction=(0.0, 0.0, 1.0),
            i_size=cell.glass.width,
            j_size=cell.glass.height,
            i_resolution=1,
            j_resolution=1,
        ))

        for slat in cell.slats:
            slats.append(_box(slat.slab).rotate_x(np.degrees(slat.tilt), point=slat.slab.center))

    meshes = {
        MaterialClass.CONCRETE: _merge(frames),
        MaterialClass.GLASS: _merge(panels),
        MaterialClass.WOOD: _merge(slats),
    }
    counts = {
        MaterialClass.CONCRETE: len(frames),
        MaterialClass.GLASS: len(panels),
        MaterialClass.WOOD: len(slats),
    }
    return meshes, counts


def build_ground() -> pv.PolyData:
    return pv.Plane(
        center=(0.0, config.GROUND_LEVEL, 0.0),
        direction=(0.0, 1.0, 0.0),
        i_size=config.GROUND_SIZE,
        j_size=config.GROUND_SIZE,
    )


def build_scene(layout: FacadeLayout, preset: LightingPreset) -> SceneDescription:
    """Pure description of the full scene for a layout and preset."""
    meshes, counts = build_facade_meshes(layout)
    meshes[MaterialClass.GROUND] = build_ground()
    counts[MaterialClass.GROUND] = 1

    lighting = PRESETS[preset]
    return SceneDescription(
        facade=layout.config,
        preset=preset,
        meshes=MappingProxyType(meshes),
        counts=MappingProxyType(counts),
        lighting=lighting,
        sky=lighting.sky.gradient(),
    )


def build_lights(lighting: LightingSetup) -> List[pv.Light]:
    """Directional sun plus an environment-tinted fill from the camera side."""
    sx, sy, sz = lighting.sun_unit_vector
    sun = pv.Light(
        position=(sx * SUN_DISTANCE, sy * SUN_DISTANCE, sz * SUN_DISTANCE),
        focal_point=(0.0, 0.0, 0.0),
        color="white",
        intensity=lighting.directional_intensity,
        light_type="scene light",
    )
    fill = pv.Light(
        position=config.CAMERA_POSITION,
        focal_point=config.CAMERA_FOCAL_POINT,
        color=lighting.fill_color,
        intensity=lighting.ambient_intensity,
        light_type="scene light",
    )
    fill.SetShadowAttenuation(0.0)
    return [sun, fill]


# --- ASSEMBLER ---

class SceneAssembler:
    def __init__(
        self,
        plotter: Any,
        post: Optional[PostProcessStack] = None,
        shadows: bool = config.SHADOWS_ENABLED,
    ) -> None:
        self.plotter = plotter
        self.post = post or PostProcessStack()
        self.shadows = shadows

        self._actors: Dict[MaterialClass, Any] = {}
        self._facade: Optional[FacadeConfig] = None
        self._preset: Optional[LightingPreset] = None
        self._configured = False

        self.rebuild_count = 0
        self.relight_count = 0

    def sync(self, state: FacadeState) -> bool:
        """
        Bring the plotter in line with ``state``. Returns True if anything
        changed. Geometry is only regenerated when the facade config changed.
        """
        if state.facade != self._facade:
            self.apply(build_scene(generate_facade(state.facade), state.preset))
            return True

        if state.preset != self._preset:
            self._install_lighting(state.lighting, state.lighting.sky.gradient())
            self._preset = state.preset
            self.relight_count += 1
            logger.info(f"Lighting switched to '{state.lighting.label}'.")
            return True

        return False

    def apply(self, scene: SceneDescription) -> None:
        """Install a prebuilt description, replacing everything owned by the assembler."""
        if not self._configured:
            self._configure_plotter()

        self._replace_actors(scene.meshes, scene.lighting)
        self._install_lighting(scene.lighting, scene.sky)
        self._facade = scene.facade
        self._preset = scene.preset

        self.rebuild_count += 1
        logger.info(
            f"Scene rebuilt (seed={scene.facade.seed}, preset={scene.preset}): "
            + ", ".join(f"{m}={scene.counts[m]}" for m in FACADE_MATERIALS)
        )

    # ------------------------------------------------------------------------------
    # Internal: Layer Management
    # ------------------------------------------------------------------------------

    def _configure_plotter(self) -> None:
        self.plotter.camera_position = [
            config.CAMERA_POSITION, config.CAMERA_FOCAL_POINT, config.CAMERA_VIEW_UP,
        ]
        self.plotter.camera.view_angle = config.CAMERA_FOV
        self.plotter.camera.clipping_range = config.CAMERA_CLIPPING_RANGE
        if self.shadows:
            self.plotter.enable_shadows()
        self.post.configure(self.plotter)
        self._configured = True

    def _replace_actors(self, meshes: Mapping[MaterialClass, pv.PolyData], lighting: LightingSetup) -> None:
        for material, mesh in meshes.items():
            old = self._actors.pop(material, None)
            if old is not None:
                self.plotter.remove_actor(old)

            # e.g. no wood when every cell came out open
            if mesh.n_points == 0:
                continue

            ambient = lighting.ambient_intensity if material in FACADE_MATERIALS else 0.0
            self._actors[material] = self.plotter.add_mesh(
                mesh, name=str(material), **MATERIALS[material].actor_kwargs(ambient)
            )

    def _install_lighting(self, lighting: LightingSetup, sky: Tuple[Tuple[float, ...], Tuple[float, ...]]) -> None:
        self.plotter.remove_all_lights()
        for light in build_lights(lighting):
            self.plotter.add_light(light)

        horizon, zenith = sky
        self.plotter.set_background(horizon, top=zenith)

        for material, actor in self._actors.items():
            if material in FACADE_MATERIALS:
                actor.prop.ambient = lighting.ambient_intensity
