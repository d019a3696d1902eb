"""Tests for the Typer command line interface."""

import json
from unittest.mock import Mock

import pytest
from typer.testing import CliRunner

import src.cli as cli_module
import src.main as main_module
from src.adapters.storage.memory_adapter import InMemoryDocumentStore
from src.cli import app
from src.domain.ports import SeedError, StoreError
from src.infrastructure.settings import APP_VERSION

runner = CliRunner()


@pytest.fixture
def configured(monkeypatch, tmp_path, collections):
    settings = cli_module.settings
    monkeypatch.setattr(settings, "output_dir", str(tmp_path / "reports"))
    monkeypatch.setattr(settings, "export_report_dir", str(tmp_path / "reports"))
    monkeypatch.setattr(settings, "checkpoint_path", None)
    monkeypatch.setattr(settings, "save_export_report", True)
    monkeypatch.setattr(cli_module, "setup_logging", Mock())
    monkeypatch.setattr(main_module, "create_document_store", lambda: InMemoryDocumentStore(collections))
    return tmp_path


class TestExportCommand:
    """Test suite for `vsexport export`."""

    def test_exports_range(self, configured):
        result = runner.invoke(app, ["export", "2022-02-01", "2022-03-31"])

        assert result.exit_code == 0
        assert "Export completed successfully" in result.output
        assert (configured / "reports" / "Birth_Report.csv").exists()
        assert (configured / "reports" / "export_report_2022-02-01_2022-03-31.json").exists()

    def test_output_dir_option_and_no_report(self, configured):
        out = configured / "custom"

        result = runner.invoke(app, ["export", "2022-02-01", "2022-02-28", "-o", str(out), "--no-report"])

        assert result.exit_code == 0
        assert (out / "Death_Report.csv").exists()
        assert not (configured / "reports").exists()

    def test_inverted_range(self, configured):
        result = runner.invoke(app, ["export", "2022-03-01", "2022-01-01"])

        assert result.exit_code == 1
        assert "Invalid date range" in result.output

    def test_store_failure(self, configured, monkeypatch):
        monkeypatch.setattr(main_module, "create_document_store", Mock(side_effect=StoreError("no servers")))

        result = runner.invoke(app, ["export", "2022-02-01", "2022-03-31"])

        assert result.exit_code == 1
        assert "Failed to initialize" in result.output

    def test_invalid_store_configuration(self, configured, monkeypatch):
        monkeypatch.setattr(cli_module.settings, "_db_config", None)
        monkeypatch.setattr(cli_module.settings, "_config_manager", None)
        monkeypatch.setenv("VS_DB_TYPE", "bogus")

        result = runner.invoke(app, ["export", "2022-02-01", "2022-03-31"])

        assert result.exit_code == 1
        assert "Failed to initialize" in result.output
        assert not (configured / "reports").exists()


class TestSeedUsersCommand:
    """Test suite for `vsexport seed-users`."""

    @pytest.fixture
    def roles_file(self, tmp_path):
        path = tmp_path / "roles.json"
        path.write_text(json.dumps({"Field Agent": "role-fa"}))
        return path

    @pytest.fixture
    def gateway(self, monkeypatch):
        gateway = Mock()
        gateway.fetch_user_seeds.return_value = [{
            "primaryOfficeId": "CRVS_OFFICE_1",
            "givenNames": "Kalusha",
            "familyName": "Bwalya",
            "systemRole": "FIELD_AGENT",
            "role": "Field Agent",
            "username": "k.bwalya",
            "mobile": "+260911111111",
            "email": "kalusha@example.com",
            "password": "test",
        }]
        gateway.user_exists.return_value = False
        gateway.office_id_for.return_value = "office-1"
        gateway.create_user.return_value = "k.bwalya"
        monkeypatch.setattr(cli_module, "GatewayClient", Mock(return_value=gateway))
        monkeypatch.setattr(cli_module, "setup_logging", Mock())
        return gateway

    def test_seeds_users(self, roles_file, gateway):
        result = runner.invoke(app, ["seed-users", "--token", "abc", "--roles", str(roles_file)])

        assert result.exit_code == 0
        assert "Created 1 user(s), skipped 0" in result.output
        assert gateway.create_user.call_args.args[0]["role"] == "role-fa"
        assert cli_module.GatewayClient.call_args.kwargs["token"] == "abc"

    def test_token_from_environment(self, roles_file, gateway, monkeypatch):
        monkeypatch.setenv("VS_SEED_TOKEN", "from-env")

        result = runner.invoke(app, ["seed-users", "--roles", str(roles_file)])

        assert result.exit_code == 0
        assert cli_module.GatewayClient.call_args.kwargs["token"] == "from-env"

    def test_seed_error_exits_with_error(self, roles_file, gateway):
        gateway.fetch_user_seeds.side_effect = SeedError("Expected to get the users")

        result = runner.invoke(app, ["seed-users", "--token", "abc", "--roles", str(roles_file)])

        assert result.exit_code == 1
        assert "Seeding failed" in result.output

    def test_roles_file_must_be_an_object(self, tmp_path, gateway):
        path = tmp_path / "roles.json"
        path.write_text("[]")

        result = runner.invoke(app, ["seed-users", "--token", "abc", "--roles", str(path)])

        assert result.exit_code == 1


class TestAssignCommand:
    """Test suite for `vsexport assign`."""

    @pytest.fixture
    def search_index(self, monkeypatch):
        index = InMemoryDocumentStore()
        directory = Mock()
        directory.get_user.return_value = {"name": [{"use": "en", "given": ["Kalusha"], "family": "Bwalya"}]}
        monkeypatch.setattr(main_module, "create_document_store", lambda: index)
        monkeypatch.setattr(cli_module, "UserManagementClient", Mock(return_value=directory))
        monkeypatch.setattr(cli_module, "setup_logging", Mock())
        return index

    @pytest.fixture
    def bundle_file(self, tmp_path):
        path = tmp_path / "bundle.json"
        path.write_text(json.dumps({
            "resourceType": "Bundle",
            "entry": [{"resource": {
                "resourceType": "Task",
                "focus": {"reference": "Composition/c-birth"},
                "extension": [{
                    "url": "http://opencrvs.org/specs/extension/regLastUser",
                    "valueReference": {"reference": "Practitioner/u-1"},
                }],
            }}],
        }))
        return path

    def test_adds_assignment(self, search_index, bundle_file):
        result = runner.invoke(app, ["assign", str(bundle_file), "-a", "Bearer abc"])

        assert result.exit_code == 0
        assignment = search_index.search_documents["c-birth"]["assignment"]
        assert assignment["firstName"] == "Kalusha"
        assert assignment["practitionerId"] == "u-1"

    def test_removes_assignment(self, search_index, bundle_file):
        result = runner.invoke(app, ["assign", str(bundle_file), "--remove"])

        assert result.exit_code == 0
        assert search_index.search_documents["c-birth"]["assignment"] is None

    def test_bundle_without_task(self, search_index, tmp_path):
        path = tmp_path / "empty.json"
        path.write_text(json.dumps({"resourceType": "Bundle", "entry": []}))

        result = runner.invoke(app, ["assign", str(path)])

        assert result.exit_code == 1
        assert "Assignment failed" in result.output

    def test_malformed_task(self, search_index, tmp_path):
        path = tmp_path / "bad.json"
        path.write_text(json.dumps({
            "resourceType": "Bundle",
            "entry": [{"resource": {"resourceType": "Task", "focus": "Composition/c-birth"}}],
        }))

        result = runner.invoke(app, ["assign", str(path)])

        assert result.exit_code == 1
        assert "Invalid Task in bundle" in result.output

    def test_bundle_must_be_an_object(self, search_index, tmp_path):
        path = tmp_path / "list.json"
        path.write_text("[]")

        result = runner.invoke(app, ["assign", str(path)])

        assert result.exit_code == 1
        assert "expected a JSON object" in result.output


class TestInfoAndVersion:
    def test_info(self):
        result = runner.invoke(app, ["info"])

        assert result.exit_code == 0
        assert "Database Type:" in result.output

    def test_info_with_invalid_store_configuration(self, monkeypatch):
        monkeypatch.setattr(cli_module.settings, "_db_config", None)
        monkeypatch.setattr(cli_module.settings, "_config_manager", None)
        monkeypatch.setenv("VS_DB_TYPE", "bogus")

        result = runner.invoke(app, ["info"])

        assert result.exit_code == 1
        assert "Invalid store configuration" in result.output

    def test_version(self):
        result = runner.invoke(app, ["--version"])

        assert result.exit_code == 0
        assert APP_VERSION in result.output
