"""
Tests for configuration loading
"""

import json

import pytest

from models import ConfigurationError
from config.audit_config import AuditConfig, ConfigurationManager, load_config


@pytest.fixture(autouse=True)
def _isolated_cwd(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)


class TestConfigurationManager:

    def test_defaults(self):
        config = ConfigurationManager([], environ={}).config

        assert config == AuditConfig()
        assert config.routes_dir == "src/routes"
        assert config.api_prefix == "/api/v1"
        assert config.allowlist_match == "segment"
        assert config.workers == 1

    def test_yaml_file(self, tmp_path):
        path = tmp_path / "audit.yaml"
        path.write_text(
            "routes_dir: backend/src/routes\n"
            "allowlist_match: substring\n"
            "file_suffixes: .ts\n"
            "safeguard_patterns:\n"
            "  rate_limit: throttle\n"
            "workers: '3'\n",
            encoding="utf-8",
        )
        config = ConfigurationManager([str(path)], environ={}).config

        assert config.routes_dir == "backend/src/routes"
        assert config.allowlist_match == "substring"
        assert config.file_suffixes == [".ts"]
        assert config.safeguard_patterns["rate_limit"] == "throttle"
        assert config.safeguard_patterns["authentication"] == "authenticate|isAuthenticated|requireAuth"
        assert config.workers == 3

    def test_json_file(self, tmp_path):
        path = tmp_path / "audit.json"
        path.write_text(json.dumps({"api_prefix": "/api/v2", "public_allowlist": ["/api/v2/ping"]}),
                        encoding="utf-8")
        config = ConfigurationManager([str(path)], environ={}).config

        assert config.api_prefix == "/api/v2"
        assert config.public_allowlist == ["/api/v2/ping"]

    def test_unknown_keys_are_ignored(self, tmp_path):
        path = tmp_path / "audit.yaml"
        path.write_text("colour: blue\nverbose: true\n", encoding="utf-8")
        config = ConfigurationManager([str(path)], environ={}).config

        assert not hasattr(config, "colour")
        assert config.verbose is True

    def test_empty_file_keeps_defaults(self, tmp_path):
        path = tmp_path / "audit.yaml"
        path.write_text("", encoding="utf-8")

        assert ConfigurationManager([str(path)], environ={}).config == AuditConfig()

    def test_environment_overrides(self, tmp_path):
        path = tmp_path / "audit.yaml"
        path.write_text("routes_dir: from-file\nworkers: 2\n", encoding="utf-8")
        environ = {
            "VERBOSE": "true",
            "ROUTEWARDEN_ROUTES_DIR": "from-env",
            "ROUTEWARDEN_API_PREFIX": "",
            "ROUTEWARDEN_ALLOWLIST_MATCH": "substring",
            "ROUTEWARDEN_WORKERS": "8",
        }
        config = ConfigurationManager([str(path)], environ=environ).config

        assert config.verbose is True
        assert config.routes_dir == "from-env"
        assert config.api_prefix == ""
        assert config.allowlist_match == "substring"
        assert config.workers == 8

    def test_verbose_requires_literal_true(self):
        assert ConfigurationManager([], environ={"VERBOSE": "1"}).config.verbose is False
        assert ConfigurationManager([], environ={"VERBOSE": "TRUE"}).config.verbose is True

    def test_non_numeric_worker_variable_is_ignored(self):
        assert ConfigurationManager([], environ={"ROUTEWARDEN_WORKERS": "many"}).config.workers == 1

    def test_worker_count_is_floored(self):
        assert ConfigurationManager([], environ={"ROUTEWARDEN_WORKERS": "0"}).config.workers == 1

    def test_invalid_allowlist_mode(self):
        with pytest.raises(ConfigurationError):
            ConfigurationManager([], environ={"ROUTEWARDEN_ALLOWLIST_MATCH": "glob"})

    def test_invalid_worker_value_in_file(self, tmp_path):
        path = tmp_path / "audit.yaml"
        path.write_text("workers: many\n", encoding="utf-8")

        with pytest.raises(ConfigurationError):
            ConfigurationManager([str(path)], environ={})

    def test_broken_explicit_file_raises(self, tmp_path):
        path = tmp_path / "audit.yaml"
        path.write_text("routes_dir: [unclosed\n", encoding="utf-8")

        with pytest.raises(ConfigurationError):
            ConfigurationManager([str(path)], environ={})

    def test_non_mapping_file_raises(self, tmp_path):
        path = tmp_path / "audit.yaml"
        path.write_text("- routes_dir\n", encoding="utf-8")

        with pytest.raises(ConfigurationError):
            ConfigurationManager([str(path)], environ={})

    def test_non_mapping_safeguard_patterns_raise(self, tmp_path):
        path = tmp_path / "audit.yaml"
        path.write_text("safeguard_patterns: authenticate\n", encoding="utf-8")

        with pytest.raises(ConfigurationError):
            ConfigurationManager([str(path)], environ={})

    @pytest.mark.parametrize("content", [
        "api_prefix: null\n",
        "routes_dir: 42\n",
        "route_marker: 5\n",
        "router_identifiers: [router, app]\n",
        "allowlist_match: [segment]\n",
        "file_suffixes: [.js, 7]\n",
        "public_allowlist:\n  - /api/v1/health\n  - null\n",
        "safeguard_patterns:\n  authentication: 123\n",
    ])
    def test_wrongly_typed_values_raise(self, tmp_path, content):
        path = tmp_path / "audit.yaml"
        path.write_text(content, encoding="utf-8")

        with pytest.raises(ConfigurationError):
            ConfigurationManager([str(path)], environ={})

    def test_default_locations_are_discovered(self, tmp_path):
        (tmp_path / "routewarden.yaml").write_text("routes_dir: discovered\n", encoding="utf-8")

        assert ConfigurationManager(environ={}).config.routes_dir == "discovered"

    def test_broken_discovered_file_is_skipped(self, tmp_path):
        path = tmp_path / "team.yaml"
        path.write_text("routes_dir: [unclosed\n", encoding="utf-8")

        config = ConfigurationManager(environ={"ROUTEWARDEN_CONFIG": str(path)}).config

        assert config.routes_dir == "src/routes"


class TestConfigFiles:

    def test_example_config_loads(self, tmp_path):
        path = tmp_path / "example.yaml"
        ConfigurationManager([], environ={}).create_example_config(str(path))

        config = ConfigurationManager([str(path)], environ={}).config

        assert config.routes_dir == "backend/src/routes"
        assert config.file_suffixes == [".js", ".ts"]
        assert "/api/v1/sitemap" in config.public_allowlist
        assert "passport" in config.safeguard_patterns["authentication"]
        assert config.workers == 4


class TestLoadConfig:

    def test_missing_explicit_file(self, tmp_path):
        with pytest.raises(ConfigurationError):
            load_config(str(tmp_path / "missing.yaml"), environ={})

    def test_explicit_file(self, tmp_path):
        path = tmp_path / "audit.yml"
        path.write_text("route_marker: controller\n", encoding="utf-8")

        assert load_config(str(path), environ={}).route_marker == "controller"

    def test_without_file(self):
        assert load_config(environ={}) == AuditConfig()
