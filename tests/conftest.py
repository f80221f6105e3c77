from types import SimpleNamespace

import numpy as np
import pytest


class FakeRenderWindow:
    """Off-screen flag of a vtkRenderWindow, with a log of every change."""

    def __init__(self, offscreen=False):
        self.offscreen = int(offscreen)
        self.changes = []

    def GetOffScreenRendering(self):
        return self.offscreen

    def SetOffScreenRendering(self, value):
        self.offscreen = int(value)
        self.changes.append(int(value))


class FakePlotter:
    """
    Stand-in for a PyVista plotter. Records what the controllers do to it and
    returns a flat frame of the current buffer size from ``image``.
    """

    def __init__(self, window_size=(800, 600), fill=0, offscreen=False):
        self.window_size = list(window_size)
        self.fill = fill
        self.render_window = FakeRenderWindow(offscreen)

        self.on_render = None
        self.fail_render = False
        self.max_buffer = None

        self.render_sizes = []
        self.render_offscreen = []
        self.actors = {}
        self.removed = []
        self.lights = []
        self.background = None
        self.anti_aliasing = []
        self.shadows_enabled = 0
        self.camera = SimpleNamespace(view_angle=None, clipping_range=None)
        self.camera_position = None
        self.shown = False
        self.closed = False

    # --- rendering ---
    def render(self):
        if self.fail_render:
            raise RuntimeError("GL_OUT_OF_MEMORY")
        self.render_sizes.append(tuple(self.window_size))
        self.render_offscreen.append(bool(self.render_window.offscreen))
        if self.on_render is not None:
            self.on_render()

    @property
    def image(self):
        w, h = self.window_size
        if self.max_buffer is not None:
            w, h = min(w, self.max_buffer), min(h, self.max_buffer)
        return np.full((h, w, 3), self.fill, dtype=np.uint8)

    def show(self, auto_close=True):
        self.shown = True

    def close(self):
        self.closed = True

    # --- scene ---
    def add_mesh(self, mesh, name=None, **kwargs):
        actor = SimpleNamespace(mesh=mesh, kwargs=kwargs, prop=SimpleNamespace(ambient=kwargs.get("ambient")))
        self.actors[name] = actor
        return actor

    def remove_actor(self, actor):
        self.removed.append(actor)
        for name, existing in list(self.actors.items()):
            if existing is actor:
                del self.actors[name]

    def add_light(self, light):
        self.lights.append(light)

    def remove_all_lights(self):
        self.lights = []

    def set_background(self, color, top=None):
        self.background = (color, top)

    def enable_anti_aliasing(self, aa_type="ssaa"):
        self.anti_aliasing.append(aa_type)

    def enable_shadows(self):
        self.shadows_enabled += 1


@pytest.fixture
def plotter():
    return FakePlotter()


@pytest.fixture
def hidpi_plotter():
    # 800x600 logical viewport at pixel density 2
    return FakePlotter(window_size=(1600, 1200))


@pytest.fixture
def make_plotter():
    return FakePlotter
