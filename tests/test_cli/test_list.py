"""
Tests for UpCloud API - List Profiles CLI Command
"""

import pytest
from typer.testing import CliRunner

from upcloud_api.cli import app
from upcloud_api.core.config_loader import ConfigLoader
from upcloud_api.core.models import UpCloudConfig

runner = CliRunner()


@pytest.fixture
def temp_config_dir(tmp_path, monkeypatch):
    config_dir = tmp_path / ".upcloud-api"
    config_dir.mkdir()
    monkeypatch.setattr(ConfigLoader, "DEFAULT_CONFIG_DIR", config_dir)
    monkeypatch.setattr(ConfigLoader, "DEFAULT_CONFIG_FILE", config_dir / "config.json")
    monkeypatch.delenv("UPCLOUD_USERNAME", raising=False)
    return config_dir


@pytest.fixture
def saved_profiles(temp_config_dir):
    ConfigLoader.save_profile("default", UpCloudConfig(username="defaultuser", password="secret1"))
    ConfigLoader.save_profile(
        "staging",
        UpCloudConfig(username="staginguser", password="secret2", verify_ssl=False),
    )


def _table(output):
    return [line.split() for line in output.splitlines() if line.strip()]


class TestListCommand:
    def test_no_profiles(self, temp_config_dir):
        result = runner.invoke(app, ["list-profiles"])

        assert result.exit_code == 0
        assert "No UpCloud profiles stored" in result.output

    def test_table_of_profiles(self, saved_profiles):
        result = runner.invoke(app, ["list-profiles"])

        assert result.exit_code == 0
        rows = _table(result.output)
        assert rows[0] == ["PROFILE", "ACCOUNT", "API", "URL", "TLS"]
        assert rows[1] == ["default", "def...", "https://api.upcloud.com", "verify"]
        assert rows[2] == ["staging", "sta...", "https://api.upcloud.com", "off"]

    def test_never_shows_credentials(self, saved_profiles):
        result = runner.invoke(app, ["list-profiles", "--verbose"])

        assert result.exit_code == 0
        assert "secret1" not in result.output
        assert "defaultuser" not in result.output

    def test_single_profile(self, saved_profiles):
        result = runner.invoke(app, ["list-profiles", "staging"])

        assert result.exit_code == 0
        assert len(_table(result.output)) == 2
        assert "default" not in result.output

    def test_unknown_profile(self, saved_profiles):
        result = runner.invoke(app, ["list-profiles", "production"])

        assert result.exit_code == 1
        assert "Profile 'production' not found" in result.output

    def test_verbose_shows_config_location(self, saved_profiles, temp_config_dir):
        result = runner.invoke(app, ["list-profiles", "--verbose"])

        assert result.exit_code == 0
        assert f"Config file: {temp_config_dir / 'config.json'} (mode 0o600)" in result.output
        assert "Keyring service (legacy): upcloud-api" in result.output

    def test_environment_override_warning(self, saved_profiles, monkeypatch):
        monkeypatch.setenv("UPCLOUD_USERNAME", "envuser")

        result = runner.invoke(app, ["list-profiles"])

        assert result.exit_code == 0
        assert "environment credentials take priority" in result.output

    def test_corrupt_config_file(self, temp_config_dir):
        (temp_config_dir / "config.json").write_text("{broken")

        result = runner.invoke(app, ["list-profiles"])

        assert result.exit_code == 1
        assert "Error listing profiles" in result.output
