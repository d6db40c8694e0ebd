"""Command-line interface for Minimall MCP Server."""

import argparse
import asyncio


def main():
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Minimall MCP Server - Shop and sell on the Minimal Mall marketplace"
    )
    parser.add_argument(
        "--mode",
        choices=["stdio", "http"],
        default="stdio",
        help="Server mode: stdio (for MCP clients) or http (REST API)",
    )
    parser.add_argument(
        "--host",
        default="0.0.0.0",
        help="HTTP server host (only for http mode, default: 0.0.0.0)",
    )
    parser.add_argument(
        "--port",
        type=int,
        default=8000,
        help="HTTP server port (only for http mode, default: 8000)",
    )
    parser.add_argument(
        "--reload",
        action="store_true",
        help="Enable hot reloading (HTTP mode only, watches for file changes)",
    )

    args = parser.parse_args()

    if args.mode == "stdio":
        # Run MCP server via stdio
        from .server import main as server_main

        asyncio.run(server_main())
    elif args.mode == "http":
        # Run HTTP server
        from .http_server import run_http_server

        print(f"Starting Minimall HTTP Server on {args.host}:{args.port}")
        print(f"API documentation available at http://{args.host}:{args.port}/docs")
        run_http_server(host=args.host, port=args.port, reload=args.reload)


if __name__ == "__main__":
    main()
