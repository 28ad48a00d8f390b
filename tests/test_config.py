"""Tests for shipgate.lib.config, envparse and validate modules."""

import json
from unittest.mock import patch

import pytest

from shipgate.lib import constants
from shipgate.lib.config import (
    EngineConfig,
    config_from_env,
    load_engine_config,
    load_tracked_projects,
)
from shipgate.lib.envparse import load_env, overlay_environ, parse_env_text
from shipgate.lib.types import TrackedProject
from shipgate.lib.validate import ValidationError, validate, validate_file


class TestParseEnvText:
    """Test parse_env_text function."""

    def test_basic_pairs(self):
        text = '# comment\nGITHUB_OWNER=acme\n\nDOCS_REF="develop"\nexport GITHUB_TOKEN=\'abc\'\n'
        assert parse_env_text(text) == {
            "GITHUB_OWNER": "acme",
            "DOCS_REF": "develop",
            "GITHUB_TOKEN": "abc",
        }

    def test_missing_equals(self):
        with pytest.raises(ValueError, match="Line 1"):
            parse_env_text("GITHUB_OWNER acme")

    def test_invalid_key(self):
        with pytest.raises(ValueError, match="Invalid key"):
            parse_env_text("github-owner=acme")

    @pytest.mark.parametrize("value", ["`whoami`", "$(whoami)", "${HOME}", "a;b", "a && b", "a | b"])
    def test_forbidden_patterns(self, value):
        with pytest.raises(ValueError, match="Forbidden pattern"):
            parse_env_text(f"GITHUB_OWNER={value}")

    def test_value_may_contain_equals(self):
        assert parse_env_text("GITHUB_API_URL=https://x/?a=b") == {"GITHUB_API_URL": "https://x/?a=b"}


class TestLoadEnv:
    """Test load_env and overlay_environ."""

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_env(tmp_path / "nope.env")

    def test_reads_file(self, tmp_path):
        path = tmp_path / "settings.env"
        path.write_text("GITHUB_OWNER=acme\n")
        assert load_env(path) == {"GITHUB_OWNER": "acme"}

    def test_environment_overrides_listed_keys(self):
        merged = overlay_environ(
            {"GITHUB_OWNER": "file", "DOCS_REF": "file"},
            ["GITHUB_OWNER", "GITHUB_TOKEN"],
            environ={"GITHUB_OWNER": "env", "DOCS_REF": "env", "GITHUB_TOKEN": "t"},
        )
        assert merged == {"GITHUB_OWNER": "env", "DOCS_REF": "file", "GITHUB_TOKEN": "t"}


class TestConfigFromEnv:
    """Test config_from_env function."""

    def test_defaults(self):
        config = config_from_env({})
        assert config == EngineConfig()
        assert config.token is None
        assert config.docs_ref == "sandbox"
        assert config.milestones_path == constants.MILESTONES_PATH
        assert config.refresh_interval == 60.0

    def test_overrides(self):
        config = config_from_env({
            "GITHUB_OWNER": "acme",
            "GITHUB_TOKEN": "tok",
            "GITHUB_API_URL": "https://ghe.example.com/api/v3/",
            "DOCS_REF": "main",
            "HANDOFF_PATH": "HANDOFF.md",
            "REFRESH_INTERVAL": "15",
            "REQUEST_TIMEOUT": "2.5",
        })
        assert config.owner == "acme"
        assert config.token == "tok"
        assert config.api_url == "https://ghe.example.com/api/v3"
        assert config.docs_ref == "main"
        assert config.handoff_path == "HANDOFF.md"
        assert config.refresh_interval == 15.0
        assert config.request_timeout == 2.5

    def test_blank_token_is_none(self):
        assert config_from_env({"GITHUB_TOKEN": "  "}).token is None

    @pytest.mark.parametrize("raw", ["soon", "0", "-5"])
    def test_bad_interval(self, raw):
        with pytest.raises(ValueError, match="REFRESH_INTERVAL"):
            config_from_env({"REFRESH_INTERVAL": raw})


class TestLoadEngineConfig:
    """Test load_engine_config function."""

    def test_environment_wins_over_file(self, tmp_path):
        path = tmp_path / "settings.env"
        path.write_text("GITHUB_OWNER=from-file\nDOCS_REF=develop\n")
        with patch.dict("os.environ", {"GITHUB_OWNER": "from-env"}):
            config = load_engine_config(path)
        assert config.owner == "from-env"
        assert config.docs_ref == "develop"

    @patch("shipgate.lib.config.envparse.overlay_environ")
    def test_no_file_uses_environment_only(self, mock_overlay):
        mock_overlay.return_value = {"GITHUB_OWNER": "acme"}
        config = load_engine_config(None)
        assert config.owner == "acme"
        assert mock_overlay.call_args.args[0] == {}

    @patch("shipgate.lib.config.envparse.overlay_environ", return_value={})
    def test_missing_token_logged(self, mock_overlay, caplog):
        caplog.set_level("INFO", logger="shipgate.lib.config")
        load_engine_config(None)
        assert "No GITHUB_TOKEN configured" in caplog.text


class TestLoadTrackedProjects:
    """Test load_tracked_projects function."""

    def write(self, tmp_path, data):
        path = tmp_path / "projects.json"
        path.write_text(json.dumps(data))
        return path

    def test_loads_projects(self, tmp_path):
        path = self.write(tmp_path, [
            {"repo": "alpha", "displayName": "Alpha", "description": "First"},
            {"repo": "other/beta", "displayName": "Beta"},
        ])
        assert load_tracked_projects(path) == [
            TrackedProject(repo="alpha", display_name="Alpha", description="First"),
            TrackedProject(repo="other/beta", display_name="Beta"),
        ]

    def test_duplicates_skipped(self, tmp_path, caplog):
        path = self.write(tmp_path, [
            {"repo": "alpha", "displayName": "Alpha"},
            {"repo": "alpha", "displayName": "Again"},
        ])
        projects = load_tracked_projects(path)
        assert [p.display_name for p in projects] == ["Alpha"]
        assert "Duplicate tracked project ignored: alpha" in caplog.text

    def test_empty_list(self, tmp_path):
        assert load_tracked_projects(self.write(tmp_path, [])) == []

    def test_missing_display_name(self, tmp_path):
        path = self.write(tmp_path, [{"repo": "alpha"}])
        with pytest.raises(ValidationError, match="displayName"):
            load_tracked_projects(path)

    def test_bad_repo_id(self, tmp_path):
        path = self.write(tmp_path, [{"repo": "a/b/c", "displayName": "X"}])
        with pytest.raises(ValidationError):
            load_tracked_projects(path)

    def test_missing_file(self, tmp_path):
        with pytest.raises(ValidationError, match="File not found"):
            load_tracked_projects(tmp_path / "projects.json")

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "projects.json"
        path.write_text("[{")
        with pytest.raises(ValidationError, match="Invalid JSON"):
            load_tracked_projects(path)


class TestValidate:
    """Test schema validation of API payloads."""

    def test_branches_ok(self):
        validate([{"name": "main"}], "branches")

    def test_branches_missing_name(self):
        with pytest.raises(ValidationError) as exc_info:
            validate([{"commit": {}}], "branches")
        assert exc_info.value.schema_name == "branches"
        assert exc_info.value.path == "0"

    def test_unknown_schema(self):
        with pytest.raises(ValidationError, match="Schema file not found"):
            validate({}, "does-not-exist")

    def test_validate_file_returns_data(self, tmp_path):
        path = tmp_path / "p.json"
        path.write_text('[{"repo": "alpha", "displayName": "Alpha"}]')
        assert validate_file(path, "projects") == [{"repo": "alpha", "displayName": "Alpha"}]
