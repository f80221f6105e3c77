"""
Facade State (Data Model)
=========================
This module defines the shared, mutable state of the running document.

Why is this file needed?
------------------------
1. State Management: It holds the facade configuration and the selected
   lighting preset in one place.
2. Explicit passing: The scene assembler and the export pipeline receive this
   object as an argument; nothing looks it up from ambient context.

The lighting table and the generated cells are NOT stored here. Cells are
always re-derived from the config, presets are constant data.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Union

from facadestudio import config
from facadestudio.model.facade import FacadeConfig, FacadeLayout, generate_facade
from facadestudio.model.lighting import LightingPreset, LightingSetup, PRESETS, resolve_preset

logger = logging.getLogger(__name__)


@dataclass
class FacadeState:
    """
    Singleton-like holder of the document state.
    Pass this instance to the studio controller and the views.
    """
    facade: FacadeConfig = field(default_factory=FacadeConfig)
    preset: LightingPreset = LightingPreset.DAYLIGHT

    @property
    def seed(self) -> int:
        return self.facade.seed

    @property
    def lighting(self) -> LightingSetup:
        return PRESETS[self.preset]

    def layout(self) -> FacadeLayout:
        return generate_facade(self.facade)

    def randomize(self) -> int:
        """Advance the seed by a fixed step, wrapping at the seed modulus."""
        seed = (self.facade.seed + config.SEED_STEP) % config.SEED_MODULUS
        self.facade = self.facade.with_seed(seed)
        logger.debug(f"Seed advanced to {seed}.")
        return seed

    def set_preset(self, identifier: Union[LightingPreset, str]) -> LightingPreset:
        """Select a preset. Unknown identifiers raise ConfigurationError."""
        self.preset = resolve_preset(identifier)
        logger.debug(f"Lighting preset set to '{self.preset}'.")
        return self.preset

