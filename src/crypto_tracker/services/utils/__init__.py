"""Service utilities (WebSocket dashboard handling)."""
from crypto_tracker.services.utils.dashboard_socket import (
    ClientMessage, handle_dashboard_socket)

__all__ = ["ClientMessage", "handle_dashboard_socket"]
