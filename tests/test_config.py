"""
Tests for the configuration module.

Tests focus on behavior and contracts, not implementation details.
"""

import pytest
import tempfile
import json
from pathlib import Path
from unittest.mock import patch

from cookbookfs import config


class TestServerConfig:
    """Test ServerConfig dataclass."""

    def test_default_values(self):
        """Default values should be sensible."""
        cfg = config.ServerConfig()
        assert cfg.url == "https://localhost"
        assert cfg.client_name is None
        assert cfg.timeout == 60.0
        assert cfg.verify_ssl is True


class TestRepoConfig:
    """Test RepoConfig dataclass."""

    def test_default_values(self):
        """Paths are unset by default."""
        cfg = config.RepoConfig()
        assert cfg.chef_repo_path is None
        assert cfg.cookbook_path is None


class TestCookbookFSConfig:
    """Test main CookbookFSConfig class."""

    def test_default_initialization(self):
        """Should initialize with default sub-configs."""
        cfg = config.CookbookFSConfig()
        assert isinstance(cfg.server, config.ServerConfig)
        assert isinstance(cfg.repo, config.RepoConfig)
        assert isinstance(cfg.staging, config.StagingConfig)
        assert isinstance(cfg.cli, config.CLIConfig)
        assert cfg.staging.mode == "symlink"

    def test_to_dict_returns_nested_dict(self):
        """to_dict should return nested dictionary structure."""
        result = config.CookbookFSConfig().to_dict()

        assert set(result) == {"server", "repo", "staging", "cli"}
        assert isinstance(result["server"], dict)

    def test_from_dict_creates_config(self):
        """from_dict should create config from dictionary."""
        cfg = config.CookbookFSConfig.from_dict({
            "server": {"url": "https://chef.example.com"},
            "repo": {"cookbook_path": "/repo/cookbooks"},
        })

        assert cfg.server.url == "https://chef.example.com"
        assert cfg.repo.cookbook_path == "/repo/cookbooks"
        assert cfg.staging.mode == "symlink"

    def test_round_trip_serialization(self):
        """Config should survive to_dict -> from_dict round trip."""
        original = config.CookbookFSConfig()
        original.server.timeout = 5.0
        original.staging.mode = "copy"

        restored = config.CookbookFSConfig.from_dict(original.to_dict())

        assert restored.server.timeout == 5.0
        assert restored.staging.mode == "copy"


class TestConfigFilePaths:
    """Test configuration file path resolution."""

    def test_config_path_ends_with_json(self):
        """Config file should be JSON."""
        assert config.get_config_path().name == "config.json"

    def test_config_path_in_user_directory(self):
        """Config path should be in user's home directory."""
        assert str(Path.home()) in str(config.get_config_path())


class TestLoadConfig:
    """Test configuration loading behavior."""

    def test_returns_defaults_when_file_missing(self):
        """Missing config file should return default config."""
        with patch.object(config, 'get_config_path') as mock_path:
            mock_path.return_value = Path("/nonexistent/config.json")
            result = config.load_config()
            assert isinstance(result, config.CookbookFSConfig)
            assert result.server.url == "https://localhost"

    def test_loads_from_existing_file(self):
        """Should load values from existing config file."""
        with tempfile.NamedTemporaryFile(
            mode='w', suffix='.json', delete=False
        ) as f:
            json.dump({"server": {"url": "https://chef.internal"}}, f)
            temp_path = Path(f.name)

        try:
            with patch.object(config, 'get_config_path', return_value=temp_path):
                result = config.load_config()
                assert result.server.url == "https://chef.internal"
        finally:
            temp_path.unlink()

    def test_handles_invalid_json_gracefully(self):
        """Invalid JSON should return defaults, not crash."""
        with tempfile.NamedTemporaryFile(
            mode='w', suffix='.json', delete=False
        ) as f:
            f.write("not valid json {{{")
            temp_path = Path(f.name)

        try:
            with patch.object(config, 'get_config_path', return_value=temp_path):
                result = config.load_config()
                assert isinstance(result, config.CookbookFSConfig)
        finally:
            temp_path.unlink()

    def test_handles_unknown_keys_gracefully(self):
        """Unknown fields in a section fall back to defaults."""
        with tempfile.TemporaryDirectory() as tmpdir:
            config_path = Path(tmpdir) / "config.json"
            config_path.write_text(json.dumps({"server": {"port": 8000}}))

            with patch.object(config, 'get_config_path', return_value=config_path):
                result = config.load_config()
                assert result.server.url == "https://localhost"


class TestSaveConfig:
    """Test configuration saving behavior."""

    def test_creates_config_file_and_parents(self):
        """save_config should create the config file and its directories."""
        with tempfile.TemporaryDirectory() as tmpdir:
            config_path = Path(tmpdir) / "deep" / "cookbookfs" / "config.json"

            with patch.object(config, 'get_config_path', return_value=config_path):
                config.save_config(config.CookbookFSConfig())

                assert config_path.exists()
                data = json.loads(config_path.read_text())
                assert "server" in data


class TestUpdateConfig:
    """Test configuration update behavior."""

    def test_updates_specific_fields(self):
        """update_config should only modify specified fields."""
        with tempfile.TemporaryDirectory() as tmpdir:
            config_path = Path(tmpdir) / "config.json"

            initial = config.CookbookFSConfig()
            initial.server.url = "https://initial"
            initial.server.timeout = 11.0

            with patch.object(config, 'get_config_path', return_value=config_path):
                config.save_config(initial)
                config.update_config(server_url="https://updated")

                result = config.load_config()
                assert result.server.url == "https://updated"
                assert result.server.timeout == 11.0

    def test_rejects_unknown_staging_mode(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            config_path = Path(tmpdir) / "config.json"

            with patch.object(config, 'get_config_path', return_value=config_path):
                with pytest.raises(ValueError):
                    config.update_config(staging_mode="hardlink")
                assert not config_path.exists()

    def test_sets_staging_mode(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            config_path = Path(tmpdir) / "config.json"

            with patch.object(config, 'get_config_path', return_value=config_path):
                result = config.update_config(staging_mode="copy")
                assert result.staging.mode == "copy"
                assert config.load_config().staging.mode == "copy"


class TestActiveConfig:
    """Test the process-wide active configuration."""

    def test_set_and_get(self):
        cfg = config.CookbookFSConfig()
        config.set_config(cfg)
        assert config.get_config() is cfg

    def test_loaded_once(self):
        config.set_config(None)
        with patch.object(config, 'load_config', return_value=config.CookbookFSConfig()) as mock_load:
            first = config.get_config()
            second = config.get_config()

        assert first is second
        mock_load.assert_called_once()
