"""
Application Initialization
==========================
Entry point for both the interactive viewer and the headless renderer.

Why is this file needed?
------------------------
It acts as the "Dependency Injection" root. It:
1. Parses the command line and sets up logging.
2. Instantiates the explicit FacadeState.
3. Either starts the Qt event loop with the Main Window, or renders a single
   still off-screen and writes it to disk.

Usage:
    $ facadestudio                       # interactive viewer
    $ facadestudio render --seed 7 --preset golden --output facade.png
"""
import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from facadestudio import config
from facadestudio.errors import FacadeStudioError
from facadestudio.logging_config import setup_logging
from facadestudio.model.facade import FacadeConfig
from facadestudio.model.lighting import LightingPreset, resolve_preset
from facadestudio.model.state import FacadeState

logger = logging.getLogger(__name__)


LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR"]


def _add_logging_args(parser: argparse.ArgumentParser, default=None) -> None:
    parser.add_argument("--log-level", default=default or "INFO", choices=LOG_LEVELS)
    parser.add_argument("--log-file", default=default, help="Optional log file path.")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="facadestudio",
        description="Procedural louvered facade viewer and high-resolution renderer.",
    )
    _add_logging_args(parser)

    sub = parser.add_subparsers(dest="command")

    render = sub.add_parser("render", help="Render one still off-screen and save it as PNG.")
    # Subcommand copies must not overwrite values given before the subcommand
    _add_logging_args(render, default=argparse.SUPPRESS)
    render.add_argument("--seed", type=int, default=config.DEFAULT_SEED)
    render.add_argument("--columns", type=int, default=config.DEFAULT_COLUMNS)
    render.add_argument("--rows", type=int, default=config.DEFAULT_ROWS)
    render.add_argument("--preset", default=LightingPreset.DAYLIGHT.value,
                        choices=[p.value for p in LightingPreset])
    render.add_argument("--width", type=int, default=config.EXPORT_WIDTH)
    render.add_argument("--height", type=int, default=config.EXPORT_HEIGHT)
    render.add_argument("--samples", type=int, default=config.EXPORT_SAMPLES,
                        help="Sample hint (advisory).")
    render.add_argument("--output", "-o", type=Path, default=None,
                        help="Output PNG path. Defaults to facade-<W>x<H>-<timestamp>.png.")
    return parser


def run_gui(state: FacadeState) -> int:
    from PySide6.QtWidgets import QApplication
    from facadestudio.view.main_window import MainWindow

    app = QApplication(sys.argv)
    app.setApplicationName("Facade Studio")

    window = MainWindow(state)
    window.show()

    return app.exec()


def run_render(state: FacadeState, args: argparse.Namespace) -> int:
    import pyvista as pv
    from facadestudio.controller.studio import FacadeStudio

    plotter = pv.Plotter(off_screen=True, window_size=list(config.DEFAULT_VIEWPORT))
    try:
        studio = FacadeStudio(plotter, state=state)
        # Initializes the render window so that later renders are honoured
        plotter.show(auto_close=False)

        image = studio.render_high_res(args.width, args.height, args.samples)
    finally:
        plotter.close()

    output: Path = args.output or Path(image.suggested_filename())
    output.write_bytes(image.png)
    logger.info(f"Wrote {image.width}x{image.height} render to '{output}'.")
    return 0


def main(argv: Optional[List[str]] = None) -> None:
    args = build_parser().parse_args(argv)
    setup_logging(level=getattr(logging, args.log_level), log_file=args.log_file)

    try:
        if args.command == "render":
            state = FacadeState(
                facade=FacadeConfig(columns=args.columns, rows=args.rows, seed=args.seed),
                preset=resolve_preset(args.preset),
            )
            code = run_render(state, args)
        else:
            code = run_gui(FacadeState())
    except FacadeStudioError as e:
        logger.error(str(e))
        code = 1

    sys.exit(code)


if __name__ == "__main__":
    main()
