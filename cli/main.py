"""CLI entry point and argument parsing"""

import sys
import argparse
import logging
from rich.console import Console

import settings
from copilot_oauth import TokenManager
from utils.storage import FileCredentialStore
from cli.auth_handlers import check_and_refresh_auth, login, refresh_token
from cli.status_display import show_token_status


console = Console()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="GitHub Copilot gateway for OpenAI and Ollama clients")
    parser.add_argument("--version", "-V", action="version", version=f"%(prog)s {settings.VERSION}")
    parser.add_argument("--login", action="store_true", help="Authenticate with GitHub using the device flow and exit")
    parser.add_argument("--refresh-token", action="store_true", help="Force a Copilot token refresh and exit")
    parser.add_argument("--status", action="store_true", help="Show stored credential status and exit")
    parser.add_argument("--debug", "-d", action="store_true", help="Enable debug logging")
    parser.add_argument("--bind", "-b", default=None, help="Override bind address (default: from config)")
    parser.add_argument("--port", "-p", type=int, default=None, help="Override port (default: from config)")
    parser.add_argument(
        "--credentials-dir",
        default=None,
        help="Directory holding access_token.json and token.json (default: from config)"
    )
    parser.add_argument("--access-token-path", default=None, help="File holding the GitHub access token record")
    parser.add_argument("--copilot-token-path", default=None, help="File holding the Copilot token record")
    parser.add_argument(
        "--stream-trace",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Enable raw stream tracing log capture (enabled by --debug unless explicitly disabled)"
    )
    return parser


def build_store(args) -> FileCredentialStore:
    paths = {}
    if args.access_token_path:
        paths[settings.ACCESS_TOKEN_RECORD] = args.access_token_path
    if args.copilot_token_path:
        paths[settings.SERVICE_TOKEN_RECORD] = args.copilot_token_path
    return FileCredentialStore(args.credentials_dir, paths=paths)


def main(argv=None):
    """Entry point for the CLI"""
    args = build_parser().parse_args(argv)

    # Config default -> CLI overrides
    if args.stream_trace is None:
        if args.debug:
            settings.STREAM_TRACE_ENABLED = True
    else:
        settings.STREAM_TRACE_ENABLED = args.stream_trace

    if args.debug:
        from proxy.server import setup_debug_logging
        setup_debug_logging()
    else:
        logging.basicConfig(
            level=getattr(logging, str(settings.LOG_LEVEL).upper(), logging.INFO),
            format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        )

    token_manager = TokenManager(store=build_store(args))

    try:
        if args.login:
            sys.exit(0 if login(token_manager, console) else 1)

        if args.refresh_token:
            sys.exit(0 if refresh_token(token_manager, console) else 1)

        if args.status:
            show_token_status(token_manager, console)
            sys.exit(0)

        auth_ok, auth_status, message = check_and_refresh_auth(token_manager, console)
        if not auth_ok:
            console.print(f"[red]Authentication Error ({auth_status}):[/red] {message}")
            console.print("\n[yellow]To authenticate run:[/yellow] python cli.py --login")
            sys.exit(1)
        console.print(f"[green]✓ Authenticated[/green] {message}")

        from proxy import ProxyServer
        from proxy.dependencies import set_token_manager

        set_token_manager(token_manager)
        server = ProxyServer(debug=args.debug, bind_address=args.bind, port=args.port)
        console.print(f"Starting Copilot gateway at {server.url}...")
        server.run()

    except KeyboardInterrupt:
        console.print("\n[yellow]Interrupted by user[/yellow]")
        console.print("Goodbye!")


if __name__ == "__main__":
    main()
