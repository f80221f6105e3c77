import numpy as np
import pytest

from facadestudio.controller.export import ExportRequest, ExportStage, HighResExporter
from facadestudio.controller.postprocess import PostProcessStack
from facadestudio.controller.surface import RenderSurfaceController, RenderSurfaceState
from facadestudio.errors import (
    ConcurrencyViolationError,
    ConfigurationError,
    ExportError,
    ResourceExhaustionError,
)

SUCCESS_PATH = [
    ExportStage.RESIZING,
    ExportStage.RENDERING,
    ExportStage.CAPTURING,
    ExportStage.RESTORING,
    ExportStage.IDLE,
]


def make_exporter(plotter, density=1.0, max_surface_size=16384, **kwargs):
    surface = RenderSurfaceController(plotter, pixel_density=density, max_surface_size=max_surface_size)
    return HighResExporter(surface, post=PostProcessStack.disabled(), **kwargs)


# --- success ---

def test_8k_export_restores_hidpi_viewport(hidpi_plotter):
    exporter = make_exporter(hidpi_plotter, density=2.0)
    saved = exporter.surface.state

    image = exporter.export(ExportRequest())

    assert (image.width, image.height) == (7680, 4320)
    assert image.png[:8] == b"\x89PNG\r\n\x1a\n"
    assert image.to_array().shape == (4320, 7680, 3)

    # rendered at density 1, then handed back untouched
    assert hidpi_plotter.render_sizes == [(7680, 4320)]
    assert exporter.surface.state == saved == RenderSurfaceState(800, 600, 2.0)
    assert hidpi_plotter.window_size == [1600, 1200]
    assert exporter.stage == ExportStage.IDLE
    assert exporter.history == SUCCESS_PATH
    assert not exporter.in_flight
    assert not exporter.surface.loop_paused


def test_pixels_survive_encoding(make_plotter):
    plotter = make_plotter(window_size=(320, 240), fill=173)
    image = make_exporter(plotter).export(ExportRequest(width=64, height=48))
    decoded = image.to_array()
    assert decoded.shape == (48, 64, 3)
    assert (decoded == 173).all()


def test_default_post_stack_is_applied(plotter):
    surface = RenderSurfaceController(plotter)
    image = HighResExporter(surface).export(ExportRequest(width=96, height=54))
    assert image.to_array().shape == (54, 96, 3)
    assert surface.state == RenderSurfaceState(800, 600, 1.0)


def test_stage_callback_sees_every_transition(plotter):
    seen = []
    exporter = make_exporter(plotter, on_stage_changed=seen.append)
    exporter.export(ExportRequest(width=32, height=32))
    assert seen == SUCCESS_PATH


def test_advisory_samples_do_not_change_output(plotter):
    exporter = make_exporter(plotter)
    a = exporter.export(ExportRequest(width=40, height=30, samples=1))
    b = exporter.export(ExportRequest(width=40, height=30, samples=16))
    assert a.png == b.png
    assert len(plotter.render_sizes) == 2


def test_exported_image_helpers(plotter):
    image = make_exporter(plotter).export(ExportRequest(width=16, height=8))
    assert image.data_uri().startswith("data:image/png;base64,")
    name = image.suggested_filename()
    assert name.startswith("facade-16x8-") and name.endswith(".png")


# --- failure ---

def test_render_failure_restores_and_reports(hidpi_plotter):
    hidpi_plotter.fail_render = True
    exporter = make_exporter(hidpi_plotter, density=2.0)
    saved = exporter.surface.state

    with pytest.raises(ResourceExhaustionError) as info:
        exporter.export(ExportRequest())

    assert isinstance(info.value.__cause__, RuntimeError)
    assert exporter.surface.state == saved
    assert hidpi_plotter.window_size == [1600, 1200]
    assert exporter.stage == ExportStage.FAILED
    assert exporter.history == [
        ExportStage.RESIZING,
        ExportStage.RENDERING,
        ExportStage.RESTORING,
        ExportStage.FAILED,
    ]
    assert not exporter.in_flight
    assert not exporter.surface.loop_paused


def test_capacity_exceeded_never_resizes(plotter):
    exporter = make_exporter(plotter, max_surface_size=4096)
    with pytest.raises(ResourceExhaustionError):
        exporter.export(ExportRequest(width=7680, height=4320))
    assert plotter.render_sizes == []
    assert plotter.window_size == [800, 600]
    assert exporter.stage == ExportStage.FAILED


def test_clamped_buffer_is_not_returned(plotter):
    plotter.max_buffer = 4096
    exporter = make_exporter(plotter)
    with pytest.raises(ResourceExhaustionError, match="Captured frame"):
        exporter.export(ExportRequest(width=7680, height=4320))
    assert plotter.window_size == [800, 600]
    assert exporter.history[-2:] == [ExportStage.RESTORING, ExportStage.FAILED]


def test_memory_error_is_translated(plotter):
    def explode():
        raise MemoryError()

    plotter.on_render = explode
    exporter = make_exporter(plotter)
    with pytest.raises(ResourceExhaustionError):
        exporter.export(ExportRequest(width=64, height=64))
    assert exporter.surface.state == RenderSurfaceState(800, 600, 1.0)


def test_export_errors_are_recoverable(plotter):
    plotter.fail_render = True
    exporter = make_exporter(plotter)
    with pytest.raises(ExportError):
        exporter.export(ExportRequest(width=64, height=64))

    plotter.fail_render = False
    image = exporter.export(ExportRequest(width=64, height=64))
    assert image.width == 64
    assert exporter.history == SUCCESS_PATH


# --- exclusivity ---

def test_second_export_while_in_flight_is_rejected(plotter):
    exporter = make_exporter(plotter)
    nested = []

    def reenter():
        try:
            exporter.export(ExportRequest(width=10, height=10))
        except ConcurrencyViolationError as e:
            nested.append(e)

    plotter.on_render = reenter
    image = exporter.export(ExportRequest(width=64, height=48))

    assert len(nested) == 1
    assert image.width == 64
    # the rejected request never touched the surface or the stage history
    assert plotter.render_sizes == [(64, 48)]
    assert exporter.history == SUCCESS_PATH


def test_frame_loop_and_resizes_are_held_off_during_export(plotter):
    exporter = make_exporter(plotter)
    surface = exporter.surface
    during = []

    def interleave():
        during.append(surface.render_frame())
        surface.resize(10, 10)

    plotter.on_render = interleave
    exporter.export(ExportRequest(width=64, height=48))

    assert during == [False]
    assert surface.frames_rendered == 0
    assert surface.state == RenderSurfaceState(800, 600, 1.0)

    plotter.on_render = None
    assert surface.render_frame()


# --- request validation ---

@pytest.mark.parametrize("kwargs", [
    {"width": 0},
    {"height": -5},
    {"width": 7680.0},
    {"height": True},
    {"samples": "4"},
])
def test_invalid_request(kwargs):
    with pytest.raises(ConfigurationError):
        ExportRequest(**kwargs)


def test_default_request_is_8k():
    request = ExportRequest()
    assert (request.width, request.height, request.samples) == (7680, 4320, 1)


def test_samples_may_be_omitted():
    assert ExportRequest(samples=None).samples is None


def test_image_array_is_uint8(plotter):
    image = make_exporter(plotter).export(ExportRequest(width=8, height=4))
    assert image.to_array().dtype == np.uint8


# --- exact buffer and off-screen restore ---

def test_odd_buffer_at_density_two_is_restored_exactly(make_plotter):
    plotter = make_plotter(window_size=(801, 601))
    exporter = make_exporter(plotter, density=2.0)
    exporter.export(ExportRequest(width=64, height=48))
    assert plotter.window_size == [801, 601]


def test_odd_buffer_is_restored_after_failure(make_plotter):
    plotter = make_plotter(window_size=(1001, 751))
    plotter.fail_render = True
    exporter = make_exporter(plotter, density=1.5)
    with pytest.raises(ResourceExhaustionError):
        exporter.export(ExportRequest(width=64, height=48))
    assert plotter.window_size == [1001, 751]


def test_capture_renders_off_screen_and_flag_is_restored(plotter):
    make_exporter(plotter).export(ExportRequest(width=64, height=48))
    assert plotter.render_offscreen == [True]
    assert plotter.render_window.changes == [1, 0]
    assert plotter.render_window.GetOffScreenRendering() == 0


def test_off_screen_flag_is_restored_after_failure(plotter):
    plotter.fail_render = True
    with pytest.raises(ResourceExhaustionError):
        make_exporter(plotter).export(ExportRequest(width=64, height=48))
    assert plotter.render_window.changes == [1, 0]
    assert plotter.render_window.GetOffScreenRendering() == 0


def test_headless_window_stays_off_screen(make_plotter):
    plotter = make_plotter(offscreen=True)
    make_exporter(plotter).export(ExportRequest(width=64, height=48))
    assert plotter.render_offscreen == [True]
    assert plotter.render_window.GetOffScreenRendering() == 1


# --- error contract ---

def test_encoding_failure_is_an_export_error(plotter, monkeypatch):
    def broken_fromarray(*args, **kwargs):
        raise OSError("encoder unavailable")

    monkeypatch.setattr("facadestudio.controller.export.Image.fromarray", broken_fromarray)
    exporter = make_exporter(plotter)

    with pytest.raises(ResourceExhaustionError) as info:
        exporter.export(ExportRequest(width=64, height=48))

    assert isinstance(info.value.__cause__, OSError)
    assert exporter.stage == ExportStage.FAILED
    assert plotter.window_size == [800, 600]


def test_restore_failure_marks_stage_failed(plotter, monkeypatch):
    exporter = make_exporter(plotter)

    def broken_restore(snapshot):
        raise RuntimeError("context lost")

    monkeypatch.setattr(exporter.surface, "restore", broken_restore)

    with pytest.raises(ExportError, match="could not be restored"):
        exporter.export(ExportRequest(width=64, height=48))

    assert exporter.stage == ExportStage.FAILED
    assert exporter.history[-2:] == [ExportStage.RESTORING, ExportStage.FAILED]
    assert not exporter.in_flight
    assert not exporter.surface.loop_paused
