"""
Symlink your Steam games' screenshot directories into your Pictures folder.

Usage:
  lnshot                      # one reconciliation pass
  lnshot --watch              # keep the mirror up to date until Ctrl+C
  lnshot -p "Steam Shots"     # use a different folder inside Pictures
"""

import argparse
import asyncio
import json
import logging
import signal
import sys
from typing import List, Optional

from . import __version__
from .errors import NotificationStreamFailed, PlatformNotFound
from .controllers.watch_loop import watch
from .services.mirror_service import reconcile
from .settings import Settings, load_settings
from .utils.paths import default_pictures_dir

logger = logging.getLogger("lnshot")

EXIT_OK = 0
EXIT_FATAL = 1
EXIT_PARTIAL = 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="lnshot",
        description="Symlink your Steam games' screenshot directories into your Pictures folder",
    )
    parser.add_argument("-p", "--pictures-directory-name",
                        help="Name of the directory to manage inside your Pictures folder "
                             "(default: \"Steam Screenshots\")")
    parser.add_argument("--pictures-dir",
                        help="Pictures folder to use instead of the detected one")
    parser.add_argument("--steam-path",
                        help="Steam install root (default: auto-detect)")
    parser.add_argument("-w", "--watch", action="store_true",
                        help="Keep running and re-sync whenever screenshots change")
    parser.add_argument("--debounce", type=float,
                        help="Seconds of quiet to wait for before re-syncing in watch mode")
    parser.add_argument("--settings",
                        help="Path to settings.json (default: ~/.local/share/lnshot/settings.json)")
    parser.add_argument("-v", "--verbose", action="store_true",
                        help="Enable debug logging")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def merge_settings(args: argparse.Namespace, settings: Settings) -> Settings:
    """Command-line values override the settings file"""
    if args.pictures_directory_name:
        settings.pictures_directory_name = args.pictures_directory_name
    if args.pictures_dir:
        settings.pictures_dir = args.pictures_dir
    if args.steam_path:
        settings.steam_path = args.steam_path
    if args.debounce is not None:
        settings.debounce_seconds = args.debounce
    if args.verbose:
        settings.log_level = "DEBUG"
    return settings


def configure_logging(level_name: str) -> None:
    level = getattr(logging, str(level_name).upper(), logging.INFO)
    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(levelname)s - %(message)s',
    )


async def _watch_until_signalled(settings: Settings, pictures_dir: str) -> None:
    shutdown = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, shutdown.set)
        except (NotImplementedError, RuntimeError):
            # Windows event loops have no signal handlers; Ctrl+C raises instead
            pass

    await watch(
        pictures_dir,
        settings.pictures_directory_name,
        shutdown,
        steam_path=settings.steam_path,
        debounce_seconds=settings.debounce_seconds,
    )


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    settings = merge_settings(args, load_settings(args.settings))
    configure_logging(settings.log_level)

    pictures_dir = settings.pictures_dir or str(default_pictures_dir())

    if args.watch:
        logger.info(f"Entering watch mode for {pictures_dir}")
        try:
            asyncio.run(_watch_until_signalled(settings, pictures_dir))
        except (PlatformNotFound, NotificationStreamFailed) as e:
            logger.error(str(e))
            return EXIT_FATAL
        except KeyboardInterrupt:
            logger.info("Watch mode interrupted by user")
        return EXIT_OK

    report = reconcile(pictures_dir, settings.pictures_directory_name, settings.steam_path)
    if report.error:
        return EXIT_FATAL

    for conflict in report.conflicts:
        logger.warning(f"Skipped {conflict.path}: {conflict.reason}")
    for failure in report.failures:
        logger.error(f"Failed {failure.path}: {failure.reason}")
    print(f"{report.destination}: {report.summary()}")
    logger.debug(f"Report: {json.dumps(report.to_dict())}")

    return EXIT_OK if report.ok else EXIT_PARTIAL


if __name__ == "__main__":
    sys.exit(main())
