"""Entry point for the zarv MCP server."""

import argparse
import asyncio
import logging

from zarv import __version__
from zarv.config import get_settings, set_settings
from zarv.server import create_server, initialize_services, shutdown_services


def parse_args() -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        prog="zarv",
        description="ZARV - Schema version history and diffs via MCP",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "--database",
        help="SQLite database path (overrides ZARV_DATABASE_PATH)",
    )
    return parser.parse_args()


async def main(args: argparse.Namespace) -> None:
    """Main entry point for the MCP server."""
    # Load settings; command line options take precedence over the environment
    settings = get_settings()
    if args.database:
        settings = settings.model_copy(update={"database_path": args.database})
        set_settings(settings)

    # stdout carries the MCP protocol; logs go to stderr
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    # Initialize services
    await initialize_services()

    # Create and run server
    mcp = create_server()

    try:
        # Run the server (stdio transport)
        await mcp.run_stdio_async()
    finally:
        # Cleanup
        await shutdown_services()


def cli() -> None:
    """CLI entry point."""
    # Parse args first (handles --help and --version)
    args = parse_args()

    # Run the MCP server
    asyncio.run(main(args))


if __name__ == "__main__":
    cli()
