import logging

import pytest
import pyvista

from facadestudio.main import build_parser, main


@pytest.fixture(autouse=True)
def reset_logging():
    yield
    logging.getLogger("facadestudio").handlers.clear()


def test_no_command_means_viewer():
    args = build_parser().parse_args([])
    assert args.command is None
    assert args.log_level == "INFO"


def test_render_defaults():
    args = build_parser().parse_args(["render"])
    assert (args.width, args.height, args.samples) == (7680, 4320, 1)
    assert (args.columns, args.rows, args.seed) == (10, 6, 1)
    assert args.preset == "daylight"
    assert args.output is None


def test_log_level_before_or_after_subcommand():
    parser = build_parser()
    assert parser.parse_args(["--log-level", "DEBUG", "render"]).log_level == "DEBUG"
    assert parser.parse_args(["render", "--log-level", "WARNING"]).log_level == "WARNING"


def test_unknown_preset_is_a_usage_error():
    with pytest.raises(SystemExit) as info:
        build_parser().parse_args(["render", "--preset", "dusk"])
    assert info.value.code == 2


def test_headless_render_writes_png(monkeypatch, make_plotter, tmp_path):
    created = []

    def fake_plotter(off_screen=False, window_size=None):
        assert off_screen
        created.append(make_plotter(window_size=window_size, offscreen=off_screen))
        return created[-1]

    monkeypatch.setattr(pyvista, "Plotter", fake_plotter)
    out = tmp_path / "facade.png"

    with pytest.raises(SystemExit) as info:
        main(["render", "--seed", "7", "--preset", "golden", "--width", "64", "--height", "48", "-o", str(out)])

    assert info.value.code == 0
    assert out.read_bytes()[:4] == b"\x89PNG"
    (plotter,) = created
    assert plotter.shown and plotter.closed
    assert plotter.render_sizes == [(64, 48)]
    assert plotter.window_size == [1280, 720]
    assert plotter.render_window.GetOffScreenRendering() == 1


def test_invalid_grid_exits_with_error(tmp_path):
    with pytest.raises(SystemExit) as info:
        main(["render", "--columns", "0", "-o", str(tmp_path / "x.png")])
    assert info.value.code == 1
    assert not (tmp_path / "x.png").exists()
