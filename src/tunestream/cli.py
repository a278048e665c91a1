"""
Command-line entry point for Tunestream.

    tunestream serve [--host HOST] [--port PORT] [--reload] [--config PATH]
    tunestream init-config [--force]
"""

import argparse
import os
import sys
from pathlib import Path
from typing import Optional

from loguru import logger

from .core.config import create_default_config, get_config_path, load_config
from .core.output import setup_loguru


def run_serve(
    host: Optional[str], port: Optional[int], reload: bool, config_path: Optional[str]
) -> int:
    """Run the API server with uvicorn."""
    import uvicorn

    if config_path:
        # The app module loads its own config; point it at the same file
        os.environ["TUNESTREAM_CONFIG"] = str(Path(config_path).expanduser())

    try:
        config = load_config()
    except ValueError as e:
        print(f"Invalid configuration: {e}", file=sys.stderr)
        return 1

    setup_loguru(
        config.logging.resolve_log_file(),
        level=config.logging.level,
        rotation=config.logging.rotation,
        retention=config.logging.retention,
        console_output=config.logging.console_output,
    )

    host = host or config.server.host
    port = port or config.server.port
    logger.info(f"Starting Tunestream API on {host}:{port}")

    uvicorn.run("web.backend.main:app", host=host, port=port, reload=reload)
    return 0


def run_init_config(force: bool) -> int:
    """Write the default config file."""
    config_path = get_config_path()
    if config_path.exists() and not force:
        print(f"Config already exists: {config_path} (use --force to overwrite)", file=sys.stderr)
        return 1

    config_path.parent.mkdir(parents=True, exist_ok=True)
    config_path.write_text(create_default_config(), encoding="utf-8")
    print(f"Wrote {config_path}")
    return 0


def main() -> None:
    """Main entry point for the tunestream command."""
    parser = argparse.ArgumentParser(
        description="Tunestream - music streaming API server",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    subparsers = parser.add_subparsers(dest="subcommand", help="Available commands")

    serve_parser = subparsers.add_parser("serve", help="Run the API server")
    serve_parser.add_argument("--host", help="Bind address (default: from config)")
    serve_parser.add_argument("--port", type=int, help="Port (default: from config)")
    serve_parser.add_argument(
        "--reload", action="store_true", help="Restart on code changes (development)"
    )
    serve_parser.add_argument("--config", help="Path to config.toml")

    init_parser = subparsers.add_parser("init-config", help="Write the default config file")
    init_parser.add_argument(
        "--force", action="store_true", help="Overwrite an existing config file"
    )

    args = parser.parse_args()

    if args.subcommand == "serve":
        sys.exit(run_serve(args.host, args.port, args.reload, args.config))
    elif args.subcommand == "init-config":
        sys.exit(run_init_config(args.force))

    parser.print_help()
    sys.exit(1)


if __name__ == "__main__":
    main()
