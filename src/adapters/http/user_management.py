"""User management service client."""

import logging
from typing import Optional

import requests

from src.adapters.http.session import DEFAULT_TIMEOUT, create_session, service_url
from src.domain.ports import UserDirectoryPort

logger = logging.getLogger(__name__)


class UserManagementClient(UserDirectoryPort):
    """Looks up users through ``POST {base_url}/getUser``.

    Parameters:
        base_url: User management service URL
        session: requests session (a retrying session is created if None)
        timeout: Request timeout in seconds
    """

    def __init__(
        self,
        base_url: str,
        session: Optional[requests.Session] = None,
        timeout: int = DEFAULT_TIMEOUT
    ):
        self.base_url = base_url
        self.session = session or create_session()
        self.timeout = timeout

    def get_user(self, user_id: str, authorization: Optional[str] = None) -> Optional[dict]:
        """Fetch the user record, or None if the service does not return one.

        Raises:
            requests.HTTPError: If the service answers with an error status
        """
        headers = {"Content-Type": "application/json"}
        if authorization:
            headers["Authorization"] = authorization

        response = self.session.post(
            service_url(self.base_url, "getUser"),
            json={"userId": user_id},
            headers=headers,
            timeout=self.timeout,
        )
        response.raise_for_status()
        user = response.json()
        if not isinstance(user, dict):
            logger.warning(f"User management returned no user for {user_id}")
            return None
        return user
