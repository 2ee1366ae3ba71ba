"""
Configuration management for cookbookfs.

Handles loading and saving user configuration from:
- XDG config directory: ~/.config/cookbookfs/config.json
- Fallback: ~/.cookbookfs/config.json

The active configuration is also kept process-wide (see get_config) because
a few settings, notably ``repo.cookbook_path``, are read by code that is not
handed a config object explicitly.
"""

import json
import logging
from pathlib import Path
from typing import Dict, Any, Optional
from dataclasses import dataclass, asdict, field

logger = logging.getLogger(__name__)

STAGING_MODES = ("symlink", "copy")


@dataclass
class ServerConfig:
    """Cookbook server connection settings."""
    url: str = "https://localhost"
    client_name: Optional[str] = None
    timeout: float = 60.0
    verify_ssl: bool = True


@dataclass
class RepoConfig:
    """Local repository settings."""
    chef_repo_path: Optional[str] = None
    cookbook_path: Optional[str] = None


@dataclass
class StagingConfig:
    """How cookbooks are staged before upload ("symlink" or "copy")."""
    mode: str = "symlink"


@dataclass
class CLIConfig:
    """CLI default options."""
    verbose: bool = False
    color: bool = True


@dataclass
class CookbookFSConfig:
    """Main cookbookfs configuration."""
    server: ServerConfig = field(default_factory=ServerConfig)
    repo: RepoConfig = field(default_factory=RepoConfig)
    staging: StagingConfig = field(default_factory=StagingConfig)
    cli: CLIConfig = field(default_factory=CLIConfig)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "server": asdict(self.server),
            "repo": asdict(self.repo),
            "staging": asdict(self.staging),
            "cli": asdict(self.cli),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'CookbookFSConfig':
        """Create from dictionary."""
        return cls(
            server=ServerConfig(**data.get("server", {})),
            repo=RepoConfig(**data.get("repo", {})),
            staging=StagingConfig(**data.get("staging", {})),
            cli=CLIConfig(**data.get("cli", {})),
        )


def get_config_path() -> Path:
    """
    Get configuration file path.

    Follows XDG Base Directory specification:
    1. ~/.config/cookbookfs/config.json
    2. Fallback: ~/.cookbookfs/config.json

    Returns:
        Path to config file
    """
    xdg_config_home = Path.home() / ".config"
    if xdg_config_home.exists():
        config_dir = xdg_config_home / "cookbookfs"
    else:
        config_dir = Path.home() / ".cookbookfs"

    return config_dir / "config.json"


def load_config() -> CookbookFSConfig:
    """
    Load configuration from file.

    Returns:
        CookbookFSConfig instance with loaded values or defaults
    """
    config_path = get_config_path()

    if not config_path.exists():
        return CookbookFSConfig()

    try:
        with open(config_path, 'r') as f:
            data = json.load(f)
        return CookbookFSConfig.from_dict(data)
    except (json.JSONDecodeError, OSError, TypeError) as e:
        logger.warning(f"Failed to load config from {config_path}: {e}")
        logger.warning("Using default configuration")
        return CookbookFSConfig()


def save_config(config: CookbookFSConfig) -> None:
    """
    Save configuration to file.

    Args:
        config: Configuration to save
    """
    config_path = get_config_path()
    config_path.parent.mkdir(parents=True, exist_ok=True)

    with open(config_path, 'w') as f:
        json.dump(config.to_dict(), f, indent=2)

    logger.info(f"Configuration saved to {config_path}")


def update_config(
    # Server settings
    server_url: Optional[str] = None,
    server_client_name: Optional[str] = None,
    server_timeout: Optional[float] = None,
    server_verify_ssl: Optional[bool] = None,
    # Repository settings
    repo_chef_repo_path: Optional[str] = None,
    repo_cookbook_path: Optional[str] = None,
    # Staging settings
    staging_mode: Optional[str] = None,
) -> CookbookFSConfig:
    """
    Update configuration.

    Only updates provided values, leaving others unchanged.

    Returns:
        The saved configuration
    """
    config = load_config()

    if server_url is not None:
        config.server.url = server_url
    if server_client_name is not None:
        config.server.client_name = server_client_name
    if server_timeout is not None:
        config.server.timeout = server_timeout
    if server_verify_ssl is not None:
        config.server.verify_ssl = server_verify_ssl

    if repo_chef_repo_path is not None:
        config.repo.chef_repo_path = repo_chef_repo_path
    if repo_cookbook_path is not None:
        config.repo.cookbook_path = repo_cookbook_path

    if staging_mode is not None:
        if staging_mode not in STAGING_MODES:
            raise ValueError(
                f"Unknown staging mode '{staging_mode}' (expected one of {', '.join(STAGING_MODES)})"
            )
        config.staging.mode = staging_mode

    save_config(config)
    return config


# Process-wide active configuration
_active_config: Optional[CookbookFSConfig] = None


def get_config() -> CookbookFSConfig:
    """Return the active configuration, loading it on first use."""
    global _active_config
    if _active_config is None:
        _active_config = load_config()
    return _active_config


def set_config(config: Optional[CookbookFSConfig]) -> None:
    """Replace the active configuration (None forces a reload on next use)."""
    global _active_config
    _active_config = config
