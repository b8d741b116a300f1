"""
Command-line entry point.

Supports both stdio and streamable-http transports.
"""

import argparse
import signal
import sys

from pydantic import ValidationError

from cbx_mcp_exec import __version__
from cbx_mcp_exec.config import load_config, resolve_tools_path
from cbx_mcp_exec.server import ServerBundle, create_server
from cbx_mcp_exec.utils.logging import setup_logging


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="CBX MCP server exposing configured command-line tools",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Start with stdio transport (default)
  python main.py

  # Use a specific tool registry
  python main.py --tools-config ./tools.json

  # Start with HTTP transport
  python main.py --transport streamable-http --port 8080
        """,
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"cbx-mcp-exec {__version__}",
    )
    parser.add_argument(
        "--config-dir",
        type=str,
        help="Configuration directory path (default: ~/.cbx-mcp-exec/)",
    )
    parser.add_argument(
        "--tools-config",
        type=str,
        help="Tool registry file, YAML or JSON (default: $CONFIG_PATH, then config dir)",
    )
    parser.add_argument(
        "--transport",
        choices=["stdio", "streamable-http"],
        help="Transport protocol (overrides config)",
    )
    parser.add_argument(
        "--host",
        type=str,
        help="Host to bind to (for HTTP transport, overrides config)",
    )
    parser.add_argument(
        "--port",
        type=int,
        help="Port to listen on (for HTTP transport, overrides config)",
    )
    parser.add_argument(
        "--log-level",
        choices=["debug", "info", "warning", "error"],
        help="Logging level (overrides config)",
    )
    return parser.parse_args(argv)


def setup_signal_handlers(bundle: ServerBundle) -> None:
    """Reload the tool registry on SIGHUP."""

    def handle_sighup(signum, frame):
        print("Received SIGHUP, reloading tool registry", file=sys.stderr)
        bundle.reload()

    # Only setup SIGHUP on Unix systems
    if hasattr(signal, "SIGHUP"):
        signal.signal(signal.SIGHUP, handle_sighup)


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    args = parse_args(argv)

    try:
        config = load_config(args.config_dir)
    except ValidationError as e:
        print(f"Error loading configuration: {e}", file=sys.stderr)
        return 1

    # Apply CLI overrides
    if args.transport:
        config.server.transport = args.transport
    if args.host:
        config.server.host = args.host
    if args.port:
        config.server.port = args.port
    if args.log_level:
        config.server.log_level = args.log_level

    setup_logging(config.server.log_level, config.server.log_file)

    tools_path = resolve_tools_path(args.tools_config, args.config_dir)

    try:
        bundle = create_server(config, tools_path=tools_path)
        setup_signal_handlers(bundle)

        print(f"Starting CBX MCP Exec Server v{__version__}", file=sys.stderr)
        print(f"Transport: {config.server.transport}", file=sys.stderr)
        print(f"Tools: {', '.join(bundle.tool_registry.tool_names)}", file=sys.stderr)

        if config.server.transport == "stdio":
            bundle.server.run(transport="stdio")
        else:
            print(
                f"Running on http://{config.server.host}:{config.server.port}",
                file=sys.stderr,
            )
            import uvicorn

            app = bundle.server.http_app(transport="streamable-http")
            uvicorn.run(
                app,
                host=config.server.host,
                port=config.server.port,
                log_level=config.server.log_level,
            )
    except KeyboardInterrupt:
        print("\nShutting down...", file=sys.stderr)
        return 0
    except Exception as e:
        print(f"Server error: {e}", file=sys.stderr)
        return 1

    return 0
