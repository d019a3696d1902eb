"""Gateway and country configuration client used to seed users."""

import logging
from typing import Any, Optional

import requests

from src.adapters.http.session import DEFAULT_TIMEOUT, create_session, service_url
from src.domain.ports import SeedError, UserGatewayPort

logger = logging.getLogger(__name__)

SEARCH_USERS_QUERY = """query searchUsers($username: String) {
  searchUsers(username: $username) {
    totalItems
  }
}"""

CREATE_USER_MUTATION = """mutation createOrUpdateUser($user: UserInput!) {
  createOrUpdateUser(user: $user) {
    username
  }
}"""


def parse_gql_response(payload: Any) -> dict:
    """Return the ``data`` of a GraphQL response.

    Raises:
        SeedError: If the response carries ``errors`` or no ``data``
    """
    if not isinstance(payload, dict):
        raise SeedError(f"Unexpected GraphQL response: {payload!r}")
    errors = payload.get("errors")
    if errors:
        raise SeedError(f"GraphQL errors: {errors}")
    data = payload.get("data")
    if data is None:
        raise SeedError("GraphQL response has no data")
    return data


class GatewayClient(UserGatewayPort):
    """Talks to the country configuration service and the gateway.

    Parameters:
        token: Bearer token for the gateway
        country_config_url: Country configuration service URL (serves ``/users``)
        gateway_url: Gateway REST URL (serves ``/location``)
        gateway_gql_host: Gateway GraphQL endpoint
        session: requests session (a retrying session is created if None)
    """

    def __init__(
        self,
        token: str,
        country_config_url: str,
        gateway_url: str,
        gateway_gql_host: str,
        session: Optional[requests.Session] = None,
        timeout: int = DEFAULT_TIMEOUT
    ):
        self.token = token
        self.country_config_url = country_config_url
        self.gateway_url = gateway_url
        self.gateway_gql_host = gateway_gql_host
        self.session = session or create_session()
        self.timeout = timeout

    def _graphql(self, query: str, variables: dict) -> dict:
        try:
            response = self.session.post(
                self.gateway_gql_host,
                json={"query": query, "variables": variables},
                headers={
                    "Content-Type": "application/json",
                    "Authorization": f"Bearer {self.token}",
                },
                timeout=self.timeout,
            )
            payload = response.json()
        except (requests.RequestException, ValueError) as e:
            raise SeedError(f"Gateway request failed: {e}") from e
        return parse_gql_response(payload)

    def fetch_user_seeds(self) -> list[dict]:
        url = service_url(self.country_config_url, "users")
        try:
            response = self.session.get(url, timeout=self.timeout)
        except requests.RequestException as e:
            raise SeedError(f"Expected to get the users from {url}: {e}") from e
        if not response.ok:
            raise SeedError(f"Expected to get the users from {url}")
        try:
            return response.json()
        except ValueError as e:
            raise SeedError(f"Users metadata from {url} is not JSON: {e}") from e

    def user_exists(self, username: str) -> bool:
        data = self._graphql(SEARCH_USERS_QUERY, {"username": username})
        return bool((data.get("searchUsers") or {}).get("totalItems"))

    def office_id_for(self, identifier: str) -> Optional[str]:
        try:
            response = self.session.get(
                service_url(self.gateway_url, "location"),
                params={"identifier": identifier},
                headers={"Content-Type": "application/fhir+json"},
                timeout=self.timeout,
            )
            bundle = response.json()
        except (requests.RequestException, ValueError) as e:
            raise SeedError(f"Office lookup for {identifier} failed: {e}") from e
        entries = (bundle.get("entry") if isinstance(bundle, dict) else None) or []
        if not entries:
            return None
        return (entries[0].get("resource") or {}).get("id")

    def create_user(self, user_input: dict) -> str:
        data = self._graphql(CREATE_USER_MUTATION, {"user": user_input})
        return (data.get("createOrUpdateUser") or {}).get("username", "")
