"""CLI/bootstrap helpers for the popcorn browser application."""

from __future__ import annotations

import argparse
import logging
import logging.handlers
import os
import sys
from collections.abc import Callable
from pathlib import Path
from typing import Any

from platformdirs import user_config_dir

from popcorn_browser.action_messages import build_actionable_error, build_watched_count_label
from popcorn_browser.config import (
    API_KEY_ENV_VAR,
    CONFIG_APP_NAME,
    _coerce_timeout,
    apply_env_overrides,
    get_config_path,
    load_config,
    save_config,
)
from popcorn_browser.models import MAX_REQUEST_TIMEOUT_SECONDS, UserConfig
from popcorn_browser.storage import JsonFileStore
from popcorn_browser.watched import WatchedList, WatchedListStorageError

logger = logging.getLogger(__name__)


def _configure_logging(debug: bool) -> None:
    """Configure logging. When debug=True, logs to file at DEBUG level."""
    if not debug:
        # Default: suppress all logging (TUI captures stderr)
        logging.disable(logging.CRITICAL)
        return

    log_dir = Path(user_config_dir(CONFIG_APP_NAME))
    log_dir.mkdir(parents=True, exist_ok=True)
    log_file = log_dir / "debug.log"

    handler = logging.handlers.RotatingFileHandler(
        log_file,
        maxBytes=5 * 1024 * 1024,
        backupCount=3,
        encoding="utf-8",
    )
    handler.setFormatter(
        logging.Formatter(
            "%(asctime)s %(name)s %(levelname)s %(message)s",
            datefmt="%H:%M:%S",
        )
    )
    logging.root.addHandler(handler)
    logging.root.setLevel(logging.DEBUG)


def _configure_color_mode(color_mode: str) -> None:
    """Configure environment hints for terminal color behavior."""
    if color_mode == "never":
        os.environ["NO_COLOR"] = "1"
        os.environ.pop("FORCE_COLOR", None)
        return
    if color_mode == "always":
        os.environ["FORCE_COLOR"] = "1"
        os.environ.pop("NO_COLOR", None)
        return
    # auto
    os.environ.pop("FORCE_COLOR", None)


def _validate_interactive_tty() -> bool:
    """Return True when stdin/stdout are interactive terminals."""
    return bool(sys.stdin.isatty() and sys.stdout.isatty())


def _build_watched_list() -> WatchedList:
    return WatchedList(JsonFileStore())


def _print_watched(watched: WatchedList) -> int:
    """Print the watched list with its aggregates. Returns exit code."""
    watched.hydrate()
    stats = watched.stats()
    print(
        f"{build_watched_count_label(stats.count)} · "
        f"IMDb {stats.avg_imdb_rating:.2f} · "
        f"you {stats.avg_user_rating:.2f} · "
        f"{stats.avg_runtime:.0f} min"
    )
    for entry in watched:
        print(
            f"  {entry.imdb_id}  {entry.title} ({entry.year})  "
            f"IMDb {entry.imdb_rating:g}  you {entry.user_rating}  {entry.runtime_minutes} min"
        )
    return 0


def _clear_watched(watched: WatchedList) -> int:
    watched.hydrate()
    count = len(watched)
    try:
        watched.clear()
    except WatchedListStorageError as e:
        print(f"Error: Failed to clear watched list: {e}", file=sys.stderr)
        return 1
    print(f"Removed {build_watched_count_label(count)} from the watched list")
    return 0


def main(
    argv: list[str] | None = None,
    *,
    load_config_fn: Callable[[], UserConfig] = load_config,
    build_watched_list_fn: Callable[[], WatchedList] = _build_watched_list,
    configure_logging_fn: Callable[[bool], None] = _configure_logging,
    configure_color_mode_fn: Callable[[str], None] = _configure_color_mode,
    validate_interactive_tty_fn: Callable[[], bool] = _validate_interactive_tty,
    app_factory: Callable[..., Any] | None = None,
) -> int:
    """Main entry point. Returns exit code."""
    parser = argparse.ArgumentParser(
        description="Search OMDb movies and keep a watched list in a TUI"
    )
    parser.add_argument(
        "--api-key",
        type=str,
        default=None,
        help=f"OMDb API key (overrides config and ${API_KEY_ENV_VAR})",
    )
    parser.add_argument(
        "-q",
        "--query",
        type=str,
        default="",
        help="Start with this search query",
    )
    parser.add_argument(
        "--timeout",
        type=int,
        default=None,
        help=f"Request timeout in seconds (1-{MAX_REQUEST_TIMEOUT_SECONDS}; default: config value)",
    )
    parser.add_argument(
        "--watched",
        action="store_true",
        help="Print the watched list with its statistics and exit",
    )
    parser.add_argument(
        "--clear-watched",
        action="store_true",
        help="Remove every movie from the watched list and exit",
    )
    parser.add_argument(
        "--save-config",
        action="store_true",
        help="Store --api-key and --timeout in the config file and exit",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging to file (~/.config/popcorn-browser/debug.log)",
    )
    parser.add_argument(
        "--color",
        choices=["auto", "always", "never"],
        default="auto",
        help="Color output mode for terminal UI (default: auto)",
    )
    parser.add_argument(
        "--ascii",
        action="store_true",
        help="Use ASCII-only icons for compatibility with limited terminals",
    )
    args = parser.parse_args(argv)
    if args.watched and args.clear_watched:
        print("Error: --watched cannot be combined with --clear-watched", file=sys.stderr)
        return 1

    configure_color_mode_fn(args.color)
    configure_logging_fn(args.debug)
    logger.debug("popcorn starting, cwd=%s", Path.cwd())

    if args.watched:
        return _print_watched(build_watched_list_fn())
    if args.clear_watched:
        return _clear_watched(build_watched_list_fn())

    config = load_config_fn()
    if args.api_key:
        config.api_key = args.api_key.strip()
    if args.timeout is not None:
        config.request_timeout_seconds = _coerce_timeout(args.timeout)

    if args.save_config:
        if not save_config(config):
            print("Error: Failed to save config", file=sys.stderr)
            return 1
        print(f"Saved config to {get_config_path()}")
        return 0
    if not args.api_key:
        apply_env_overrides(config)

    if not config.api_key:
        print(
            build_actionable_error(
                "start popcorn",
                why="no OMDb API key is configured",
                next_step=f"pass --api-key or set ${API_KEY_ENV_VAR}",
            ),
            file=sys.stderr,
        )
        return 1

    if not validate_interactive_tty_fn():
        print(
            "Error: popcorn requires an interactive TTY for the full UI.",
            file=sys.stderr,
        )
        print("Next steps:", file=sys.stderr)
        print("  - Run popcorn directly in a terminal session", file=sys.stderr)
        print("  - Use --watched for non-interactive output", file=sys.stderr)
        return 2

    if app_factory is None:
        from popcorn_browser.app import PopcornBrowser as _PopcornBrowser

        app_factory = _PopcornBrowser

    app = app_factory(
        config=config,
        watched=build_watched_list_fn(),
        initial_query=args.query,
        ascii_icons=args.ascii,
    )
    app.run()
    return 0


def main_entry() -> None:
    """Console-script entry point."""
    sys.exit(main())


__all__ = [
    "_configure_color_mode",
    "_configure_logging",
    "_validate_interactive_tty",
    "main",
    "main_entry",
]
