#!/usr/bin/env python3
"""
Command-line interface for the plate watcher.

Watches a directory for new camera images (or solves one given file), plate
solves each image with PlateSolve 2 or ASTAP and prints how to move a
manually driven mount onto the target.
"""

import argparse
import logging
import sys
from typing import List, Optional

from config_manager import ConfigManager
from exceptions import ConfigurationError
from processing.pipeline import SolvePipeline
from processing.watcher import DirectoryWatcher
from settings import WatchSettings

EXIT_OK = 0
EXIT_SOLVE_FAILED = 1
EXIT_CONFIG_ERROR = 2

_COORDINATE_OPTIONS = {
    "-r": "--right-ascension",
    "--right-ascension": "--right-ascension",
    "-d": "--declination",
    "--declination": "--declination",
}


def join_coordinate_values(argv: List[str]) -> List[str]:
    """Rewrite ``-d -5:23:28`` as ``--declination=-5:23:28``.

    argparse treats a value such as ``-5:23:28`` as an unknown option, so a
    southern declination would otherwise be rejected.
    """
    joined: List[str] = []
    it = iter(argv)
    for token in it:
        option = _COORDINATE_OPTIONS.get(token)
        if option is None:
            joined.append(token)
            continue
        value = next(it, None)
        joined.append(token if value is None else f"{option}={value}")
    return joined


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Plate solve new star images and report the mount correction to reach a target",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Watch a directory, solve with PlateSolve 2
  python main_plate_watcher.py -r 19:03:07 -d 29:50:28 -w 22.3 -H 14.9 -f 510 -m D:/captures

  # Solve a single file with ASTAP
  python main_plate_watcher.py --tool astap -r 19:03:07 -d 29:50:28 -w 22.3 -H 14.9 -f 510 -i IMG_0001.CR2

  # Southern target: negative values may also be written as -d=-05:23:28
  python main_plate_watcher.py -r 05:35:17 -d -05:23:28 -w 22.3 -H 14.9 -f 510 -i M42.jpg

  # Use a config file and debug logging
  python main_plate_watcher.py --config my_config.yaml --debug
        """,
    )
    parser.add_argument("--tool", choices=["platesolve", "platesolve2", "astap"],
                        help="Solver to use (default: plate_solve.default_solver, platesolve2)")
    parser.add_argument("-r", "--right-ascension", dest="ra",
                        help="Right Ascension of the target in HH:MM:SS. Sample: 19h 03m 07s => 19:03:07")
    parser.add_argument("-d", "--declination", dest="dec",
                        help="Declination of the target in DEG:MM:SS. Sample: 29° 50' 28\" => 29:50:28, south: -05:23:28 or -d=-05:23:28")
    parser.add_argument("-m", "--monitor", dest="directory",
                        help="Directory to monitor for new star images")
    parser.add_argument("-n", "--regions", type=int,
                        help="Number of regions PlateSolve 2 should check (default: 200)")
    parser.add_argument("-w", "--width", type=float, help="Camera sensor width in mm")
    parser.add_argument("-H", "--height", type=float, help="Camera sensor height in mm")
    parser.add_argument("-f", "--focal-length", type=float,
                        help="Telescope focal length in mm, including reducer/flattener factor and crop sensor")
    parser.add_argument("-p", "--executable-path", help="Path of the solver executable")
    parser.add_argument("-t", "--file-write-time", type=int,
                        help="Milliseconds to wait after an image file appears before processing it (default: 5000)")
    parser.add_argument("-i", "--input-file", help="Solve this file instead of monitoring a directory")
    parser.add_argument("--config", "-c", type=str, default="config.yaml",
                        help="Configuration file path (default: config.yaml)")
    parser.add_argument("--log-level", type=str, choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
                        help="Logging level (default: logging.level from config, INFO)")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    parser.add_argument("--log-file", help="Also write the log to this file")
    return parser


def setup_logging(config: ConfigManager, args: argparse.Namespace) -> None:
    log_cfg = config.get_logging_config()
    level_name = args.log_level or str(log_cfg.get("level", "INFO"))
    log_level = getattr(logging, level_name.upper(), logging.INFO)
    if args.debug:
        log_level = logging.DEBUG

    handlers: List[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    log_file = args.log_file or (log_cfg.get("log_file") if log_cfg.get("log_to_file") else None)
    if log_file:
        handlers.append(logging.FileHandler(log_file, encoding="utf-8"))

    logging.basicConfig(
        level=log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=handlers,
    )


def _wait_for_exit(watcher: DirectoryWatcher, logger: logging.Logger) -> None:
    try:
        try:
            input()
        except EOFError:
            # No console attached; run until interrupted
            watcher.wait()
    except KeyboardInterrupt:
        logger.info("Ctrl+C received. Shutting down...")


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(join_coordinate_values(sys.argv[1:] if argv is None else list(argv)))
    config = ConfigManager(args.config)
    setup_logging(config, args)
    logger = logging.getLogger("plate_watch")

    try:
        settings = WatchSettings.from_config(
            config,
            solver=args.tool,
            executable_path=args.executable_path,
            ra=args.ra,
            dec=args.dec,
            watch_directory=args.directory,
            input_file=args.input_file,
            file_write_delay_ms=args.file_write_time,
            number_of_regions=args.regions,
            sensor_width=args.width,
            sensor_height=args.height,
            focal_length=args.focal_length,
        )
        if not settings.single_shot and settings.watch_directory is None:
            raise ConfigurationError("Either a directory to monitor (-m) or an input file (-i) is required")
        pipeline = SolvePipeline(settings, logger=logging.getLogger("plate_watch.pipeline"))
    except ConfigurationError as e:
        logger.error(f"Configuration error: {e}")
        return EXIT_CONFIG_ERROR

    logger.info(f"Target: {settings.target}")
    logger.info(
        f"Field of view: {settings.sensor.fov_width_deg:.4f}° x {settings.sensor.fov_height_deg:.4f}° "
        f"(focal={settings.sensor.focal_length_mm}mm)"
    )
    if not pipeline.solver.is_available():
        logger.warning(f"{pipeline.solver.get_name()} executable not found: {settings.executable_path}")

    if settings.single_shot:
        status = pipeline.process_file(settings.input_file)
        if not status.is_success:
            print(f"Did not work as expected: {status.message}")
            return EXIT_SOLVE_FAILED
        return EXIT_OK

    try:
        with DirectoryWatcher.for_pipeline(pipeline, logger=logging.getLogger("plate_watch.watcher")) as watcher:
            print("Press Enter to stop watching.")
            _wait_for_exit(watcher, logger)
    except FileNotFoundError as e:
        logger.error(str(e))
        return EXIT_CONFIG_ERROR
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
