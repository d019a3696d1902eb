"""HTTP adapters for the services the collaborators talk to."""

from src.adapters.http.gateway_client import GatewayClient
from src.adapters.http.user_management import UserManagementClient

__all__ = ["GatewayClient", "UserManagementClient"]
