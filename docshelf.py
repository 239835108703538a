#!/usr/bin/env python3
"""
docshelf - browse a workspace's markdown documentation in the terminal,
with an optional live web preview.

Usage:
    docshelf [--workspace NAME] [--config-dir PATH] [--port PORT]

Workspaces are listed in ~/.config/docshelf/workspaces.yaml; each
workspace root holds a docs.yaml with its categories and references.
"""

import argparse
import logging
import sys
from pathlib import Path

from rich.console import Console

from app import App
from server import DEFAULT_PORT, LiveWebEndpoint
from session import Session
from tui import run, select_workspace
from workspaces import (
    APP_NAME,
    REGISTRY_FILENAME,
    VERSION,
    ConfigError,
    find_workspace,
    get_config_dir,
    load_workspace_registry,
)

logger = logging.getLogger(APP_NAME)

err_console = Console(stderr=True)


def fail(message: str, hint: str | None = None) -> int:
    err_console.print(f"[bold red]Error:[/bold red] {message}", highlight=False)
    if hint:
        err_console.print(hint, highlight=False)
    return 1


def setup_logging(log_file: Path, debug: bool) -> None:
    """Log to a file; the terminal belongs to curses."""
    log_file.parent.mkdir(parents=True, exist_ok=True)
    logging.basicConfig(
        filename=str(log_file),
        level=logging.DEBUG if debug else logging.INFO,
        format='%(asctime)s %(levelname)s %(name)s: %(message)s',
    )


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog=APP_NAME, description='Terminal documentation browser')
    parser.add_argument('--workspace', help='Workspace name to open without the picker')
    parser.add_argument('--config-dir', type=Path, default=None,
                        help='Directory containing workspaces.yaml')
    parser.add_argument('--port', type=int, default=DEFAULT_PORT, help='Web preview port')
    parser.add_argument('--log-file', type=Path, default=None,
                        help='Log file (default: <config-dir>/docshelf.log)')
    parser.add_argument('--debug', action='store_true', help='Verbose logging')
    parser.add_argument('--version', action='version', version=f'{APP_NAME} {VERSION}')
    return parser.parse_args(argv)


def main(argv=None) -> int:
    args = parse_args(argv)
    config_dir = args.config_dir or get_config_dir()
    setup_logging(args.log_file or config_dir / f'{APP_NAME}.log', args.debug)

    try:
        workspaces = load_workspace_registry(config_dir)
    except ConfigError as e:
        logger.error("Workspace registry: %s", e)
        return fail(f"Failed to load workspace config: {e}",
                    f"Please create {config_dir / REGISTRY_FILENAME}")

    if args.workspace:
        workspace = find_workspace(workspaces, args.workspace)
        if workspace is None:
            return fail(f"Unknown workspace: {args.workspace}")
    else:
        workspace = select_workspace(workspaces)
    if workspace is None:
        return fail("No workspace selected")

    try:
        session = Session.open(workspace)
    except ConfigError as e:
        logger.error("Docs config: %s", e)
        return fail(str(e))

    logger.info("Opened workspace '%s' at %s", workspace.name, workspace.root)
    app = App(session, workspaces, config_dir=config_dir, endpoint=LiveWebEndpoint(port=args.port))
    try:
        run(app)
    except KeyboardInterrupt:
        logger.info("Interrupted")
    finally:
        app.close()
    return 0


if __name__ == '__main__':
    sys.exit(main())
