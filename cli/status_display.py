"""Status display functionality for CLI"""

import time
from typing import Any, Dict, Optional

from rich.table import Table

from copilot_oauth import ServiceToken, TokenManager
from settings import SERVICE_TOKEN_RECORD


def format_remaining(seconds: int) -> str:
    """Render a duration as ``1h 5m`` style text"""
    if seconds <= 0:
        return "expired"
    hours = seconds // 3600
    minutes = (seconds % 3600) // 60
    if hours > 0:
        return f"{hours}h {minutes}m"
    if minutes > 0:
        return f"{minutes}m"
    return f"{seconds}s"


def get_token_status(token_manager: TokenManager, now: Optional[float] = None) -> Dict[str, Any]:
    """Summarize stored credentials without exposing secrets"""
    if now is None:
        now = time.time()

    status: Dict[str, Any] = {
        "has_access_token": token_manager.has_access_credential(),
        "has_service_token": False,
        "is_expired": True,
        "expires_at": None,
        "time_until_expiry": "No token",
    }

    record = token_manager.store.get(SERVICE_TOKEN_RECORD)
    if not record:
        return status

    try:
        token = ServiceToken.from_record(record)
    except (KeyError, TypeError, ValueError):
        status["time_until_expiry"] = "Unreadable token"
        return status

    status["has_service_token"] = True
    status["is_expired"] = token.is_expired(now)
    status["expires_at"] = time.strftime("%Y-%m-%d %H:%M:%S", time.localtime(token.expires_at))
    status["time_until_expiry"] = format_remaining(int(token.expires_at - now))
    return status


def show_token_status(token_manager: TokenManager, console):
    """
    Display credential status as a table

    Args:
        token_manager: TokenManager whose store is inspected
        console: Rich console for output
    """
    status = get_token_status(token_manager)

    table = Table(title="Copilot Credential Status")
    table.add_column("Property", style="cyan")
    table.add_column("Value")

    table.add_row("GitHub Access Token", "Yes" if status["has_access_token"] else "No")
    table.add_row("Copilot Token", "Yes" if status["has_service_token"] else "No")
    table.add_row("Is Expired", "Yes" if status["is_expired"] else "No")
    if status["expires_at"]:
        table.add_row("Expires At", status["expires_at"])
    table.add_row("Time Until Expiry", status["time_until_expiry"])

    directory = getattr(token_manager.store, "directory", None)
    if directory is not None:
        table.add_row("Credential Directory", str(directory))

    console.print(table)
