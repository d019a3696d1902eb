"""Tests for the user management and gateway HTTP clients using a mocked session."""

from unittest.mock import Mock

import pytest
import requests

from src.adapters.http.gateway_client import (
    CREATE_USER_MUTATION,
    SEARCH_USERS_QUERY,
    GatewayClient,
    parse_gql_response,
)
from src.adapters.http.session import create_session, service_url
from src.adapters.http.user_management import UserManagementClient
from src.domain.ports import SeedError


def _response(payload=None, ok=True, status_code=200):
    response = Mock()
    response.ok = ok
    response.status_code = status_code
    response.json.return_value = payload
    if ok:
        response.raise_for_status.return_value = None
    else:
        response.raise_for_status.side_effect = requests.HTTPError(f"{status_code} error")
    return response


@pytest.fixture
def session():
    return Mock(spec=requests.Session)


@pytest.fixture
def gateway(session):
    return GatewayClient(
        token="secret-token",
        country_config_url="http://localhost:3040",
        gateway_url="http://localhost:7070/",
        gateway_gql_host="http://localhost:7070/graphql",
        session=session,
    )


class TestServiceUrl:
    def test_joins_with_or_without_trailing_slash(self):
        assert service_url("http://localhost:3030", "getUser") == "http://localhost:3030/getUser"
        assert service_url("http://localhost:3030/", "getUser") == "http://localhost:3030/getUser"

    def test_create_session_mounts_retrying_adapters(self):
        session = create_session(retry_count=5)

        adapter = session.get_adapter("http://localhost")
        assert adapter.max_retries.total == 5
        assert 503 in adapter.max_retries.status_forcelist


class TestUserManagementClient:
    """Test suite for user lookups."""

    def test_posts_user_id_with_authorization(self, session):
        session.post.return_value = _response({"name": [{"use": "en", "family": "Bwalya"}]})
        client = UserManagementClient("http://localhost:3030", session=session)

        user = client.get_user("u-1", authorization="Bearer abc")

        assert user["name"][0]["family"] == "Bwalya"
        args, kwargs = session.post.call_args
        assert args[0] == "http://localhost:3030/getUser"
        assert kwargs["json"] == {"userId": "u-1"}
        assert kwargs["headers"]["Authorization"] == "Bearer abc"

    def test_non_object_response_is_no_user(self, session):
        session.post.return_value = _response(None)
        client = UserManagementClient("http://localhost:3030", session=session)

        assert client.get_user("u-1") is None

    def test_error_status_raises(self, session):
        session.post.return_value = _response(ok=False, status_code=500)
        client = UserManagementClient("http://localhost:3030", session=session)

        with pytest.raises(requests.HTTPError):
            client.get_user("u-1")


class TestGatewayClient:
    """Test suite for the seeding gateway client."""

    def test_fetch_user_seeds(self, gateway, session):
        session.get.return_value = _response([{"username": "k.bwalya"}])

        assert gateway.fetch_user_seeds() == [{"username": "k.bwalya"}]
        assert session.get.call_args.args[0] == "http://localhost:3040/users"

    def test_fetch_user_seeds_error_status(self, gateway, session):
        session.get.return_value = _response(ok=False, status_code=404)

        with pytest.raises(SeedError, match="Expected to get the users"):
            gateway.fetch_user_seeds()

    def test_fetch_user_seeds_connection_error(self, gateway, session):
        session.get.side_effect = requests.ConnectionError("refused")

        with pytest.raises(SeedError):
            gateway.fetch_user_seeds()

    def test_user_exists(self, gateway, session):
        session.post.return_value = _response({"data": {"searchUsers": {"totalItems": 1}}})

        assert gateway.user_exists("k.bwalya") is True
        kwargs = session.post.call_args.kwargs
        assert kwargs["json"] == {"query": SEARCH_USERS_QUERY, "variables": {"username": "k.bwalya"}}
        assert kwargs["headers"]["Authorization"] == "Bearer secret-token"

    def test_user_does_not_exist(self, gateway, session):
        session.post.return_value = _response({"data": {"searchUsers": {"totalItems": 0}}})

        assert gateway.user_exists("nobody") is False

    def test_office_id_for(self, gateway, session):
        session.get.return_value = _response({"entry": [{"resource": {"id": "office-1"}}]})

        assert gateway.office_id_for("CRVS_OFFICE_1") == "office-1"
        args, kwargs = session.get.call_args
        assert args[0] == "http://localhost:7070/location"
        assert kwargs["params"] == {"identifier": "CRVS_OFFICE_1"}

    def test_office_id_for_unknown_office(self, gateway, session):
        session.get.return_value = _response({"resourceType": "Bundle", "entry": []})

        assert gateway.office_id_for("CRVS_OFFICE_X") is None

    def test_create_user(self, gateway, session):
        session.post.return_value = _response({"data": {"createOrUpdateUser": {"username": "k.bwalya"}}})

        assert gateway.create_user({"mobile": "+260"}) == "k.bwalya"
        assert session.post.call_args.kwargs["json"]["query"] == CREATE_USER_MUTATION

    def test_create_user_graphql_errors(self, gateway, session):
        session.post.return_value = _response({"errors": [{"message": "forbidden"}]})

        with pytest.raises(SeedError, match="forbidden"):
            gateway.create_user({"mobile": "+260"})


class TestParseGqlResponse:
    def test_missing_data(self):
        with pytest.raises(SeedError):
            parse_gql_response({})

    def test_non_object(self):
        with pytest.raises(SeedError):
            parse_gql_response(["data"])

    def test_returns_data(self):
        assert parse_gql_response({"data": {"a": 1}}) == {"a": 1}
