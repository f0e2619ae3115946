"""Authentication handlers for CLI"""

import asyncio
import time

from copilot_oauth import DeviceAuthorization, ServiceToken, TokenManager
from exceptions import (
    AccessDenied,
    ExpiredDeviceCode,
    GatewayError,
    LoginRequired,
    NetworkError,
    RefreshFailed,
)
from cli.status_display import format_remaining


def check_and_refresh_auth(token_manager: TokenManager, console) -> tuple[bool, str, str]:
    """
    Make sure a usable Copilot token exists, refreshing it if needed

    Args:
        token_manager: TokenManager instance
        console: Rich console for output

    Returns:
        Tuple of (success: bool, status: str, message: str)
    """
    if not token_manager.has_access_credential():
        return False, "NO_AUTH", "No GitHub access token found. Please run with --login"

    try:
        token = asyncio.run(token_manager.get_valid_token())
    except LoginRequired as e:
        return False, "NO_AUTH", str(e)
    except RefreshFailed as e:
        return False, "REFRESH_FAILED", f"Copilot token refresh failed: {e}"
    except NetworkError as e:
        return False, "NETWORK_ERROR", f"Network error during token refresh: {e}. Check connection and retry"

    remaining = format_remaining(int(token.expires_at - time.time()))
    return True, "VALID", f"Copilot token valid for: {remaining}"


def show_device_code(authorization: DeviceAuthorization, console):
    console.print("\n[bold]Step 1:[/bold] Open this page in your browser:")
    console.print(f"  [cyan]{authorization.verification_uri}[/cyan]")
    console.print("\n[bold]Step 2:[/bold] Enter this code:")
    console.print(f"  [bold green]{authorization.user_code}[/bold green]")
    console.print(
        f"\n[dim]Waiting for approval, the code expires in {format_remaining(authorization.expires_in)}. "
        f"Press Ctrl+C to cancel.[/dim]"
    )


async def run_login(token_manager: TokenManager, console) -> ServiceToken:
    """Device flow login followed by the first Copilot token exchange"""
    credential = await token_manager.authorizer.login(
        on_authorization=lambda authorization: show_device_code(authorization, console)
    )
    token_manager.save_access_credential(credential)
    console.print("[green][OK][/green] GitHub access token saved")
    return await token_manager.get_valid_token()


def login(token_manager: TokenManager, console) -> bool:
    """
    Run the interactive device flow login

    Returns:
        True if a Copilot token was obtained
    """
    console.print("[bold]GitHub Copilot login[/bold]")
    try:
        token = asyncio.run(run_login(token_manager, console))
    except KeyboardInterrupt:
        console.print("\n[yellow]Login cancelled by user[/yellow]")
        return False
    except ExpiredDeviceCode:
        console.print("[red][ERROR][/red] The code expired before it was approved. Run --login again.")
        return False
    except AccessDenied:
        console.print("[red][ERROR][/red] Authorization was denied on GitHub.")
        return False
    except GatewayError as e:
        console.print(f"[red][ERROR][/red] Login failed: {e}")
        return False

    console.print("[green][OK][/green] Copilot token obtained")
    console.print(f"Token valid for: {format_remaining(int(token.expires_at - time.time()))}")
    return True


def refresh_token(token_manager: TokenManager, console) -> bool:
    """Force a Copilot token refresh"""
    console.print("Refreshing Copilot token...")
    try:
        token = asyncio.run(token_manager.refresh())
    except GatewayError as e:
        console.print(f"[red][ERROR][/red] Refresh failed: {e}")
        return False

    console.print("[green][OK][/green] Token refreshed successfully")
    console.print(f"New expiry in: {format_remaining(int(token.expires_at - time.time()))}")
    return True
