"""
Tests for the command line interface.

Commands run against a mocked API through an injected context factory.
"""

from unittest.mock import patch

import pytest
from click.testing import CliRunner

from consolesync.context import build_context
from consolesync.core import config
from consolesync.core.config import Settings
from consolesync.main import main
from mock_api import MockApi


class TestCli:
    """Test CLI commands end to end."""

    def setup_method(self):
        self.api = MockApi()
        self.runner = CliRunner()
        self.settings = Settings(_env_file=None)

    @pytest.fixture(autouse=True)
    def quiet_logging(self):
        with patch("consolesync.main.setup_logging"):
            yield

    def invoke(self, *args):
        def factory():
            return build_context(self.settings, http_transport=self.api.transport)

        return self.runner.invoke(main, list(args), obj={"context_factory": factory})

    def test_resources(self):
        result = self.invoke("resources")

        assert result.exit_code == 0
        assert "service_order" in result.output
        assert "/inspection/service-order" in result.output

    def test_list(self):
        self.api.respond(
            "GET",
            "/admin/company",
            json_body={"data": [{"id": 1, "name": "Acme"}], "per_page": 2, "total": 1},
        )

        result = self.invoke("list", "company", "--per-page", "2", "--filter", "name=Ac")

        assert result.exit_code == 0, result.output
        assert "Acme" in result.output
        assert "1 of 1 records" in result.output
        params = self.api.requests[0].url.params
        assert params["limit"] == "2"
        assert params["name"] == "Ac"

    def test_list_rejects_malformed_filter(self):
        result = self.invoke("list", "company", "--filter", "nameAc")

        assert result.exit_code == 2
        assert not self.api.requests

    def test_list_unknown_kind(self):
        result = self.invoke("list", "spaceship")

        assert result.exit_code == 1
        assert "Unknown resource kind" in result.output

    def test_list_api_error(self):
        self.api.respond("GET", "/admin/company", status=500, json_body={"message": "down"})

        result = self.invoke("list", "company")

        assert result.exit_code == 1
        assert "API Error (500)" in result.output
        assert "down" in result.output

    def test_get(self):
        self.api.respond("GET", "/admin/company/1", json_body={"data": {"id": 1, "name": "Acme"}})

        result = self.invoke("get", "company", "1")

        assert result.exit_code == 0
        assert '"name": "Acme"' in result.output

    def test_get_missing(self):
        result = self.invoke("get", "company", "404")

        assert result.exit_code == 1
        assert "not found" in result.output

    def test_delete(self):
        self.api.respond("DELETE", "/admin/company/3", status=204)

        result = self.invoke("delete", "company", "3", "--yes")

        assert result.exit_code == 0
        assert "Deleted company 3" in result.output
        assert len(self.api.calls("DELETE", "/admin/company/3")) == 1

    def test_config_reports_missing_token(self, monkeypatch):
        monkeypatch.delenv("API_TOKEN", raising=False)

        with patch.object(config, "load_dotenv"):
            result = self.invoke("config")

        assert result.exit_code == 1
        assert "API_TOKEN" in result.output

    def test_config_valid(self, monkeypatch):
        monkeypatch.setenv("API_TOKEN", "secret")

        with patch.object(config, "load_dotenv"):
            result = self.invoke("config")

        assert result.exit_code == 0
        assert "Configuration is valid" in result.output
