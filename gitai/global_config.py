"""Global configuration management for gitai.

Handles user-level configuration stored in ~/.gitai/:
- config.yaml: Endpoint, model, sampling and git settings
- credentials: API key for the completion endpoint
"""

import os
import stat
from pathlib import Path
from typing import Dict, Optional, Any

import yaml


class GlobalConfigError(Exception):
    """Raised when there's an error with global configuration."""
    pass


_CONFIG_DIR = Path.home() / ".gitai"


def get_global_config_dir() -> Path:
    """Get the global gitai configuration directory.

    Returns:
        Path to ~/.gitai/
    """
    return _CONFIG_DIR


def ensure_global_config_dir() -> Path:
    """Ensure the global config directory exists.

    Returns:
        Path to ~/.gitai/
    """
    config_dir = get_global_config_dir()
    config_dir.mkdir(parents=True, exist_ok=True)
    return config_dir


def get_config_file_path() -> Path:
    """Get path to config.yaml file.

    Returns:
        Path to ~/.gitai/config.yaml
    """
    return get_global_config_dir() / "config.yaml"


def get_credentials_file_path() -> Path:
    """Get path to credentials file.

    Returns:
        Path to ~/.gitai/credentials
    """
    return get_global_config_dir() / "credentials"


def load_global_config(config_file: Optional[Path] = None) -> Dict[str, Any]:
    """Load configuration from a YAML file.

    Args:
        config_file: File to read (defaults to ~/.gitai/config.yaml).

    Returns:
        Dictionary with configuration values. Empty dict if file doesn't exist.
    """
    config_file = config_file or get_config_file_path()

    if not config_file.exists():
        return {}

    try:
        with open(config_file, "r") as f:
            config = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        raise GlobalConfigError(f"Failed to load config from {config_file}: {e}")

    if not isinstance(config, dict):
        raise GlobalConfigError(f"Config file {config_file} must contain a mapping")
    return config


def save_global_config(config: Dict[str, Any], config_file: Optional[Path] = None) -> None:
    """Save configuration to a YAML file.

    Args:
        config: Configuration dictionary to save.
        config_file: File to write (defaults to ~/.gitai/config.yaml).
    """
    if config_file is None:
        ensure_global_config_dir()
        config_file = get_config_file_path()

    try:
        with open(config_file, "w") as f:
            yaml.dump(config, f, default_flow_style=False, sort_keys=False)
    except (OSError, yaml.YAMLError) as e:
        raise GlobalConfigError(f"Failed to save config to {config_file}: {e}")


def _parse_credentials(lines) -> Dict[str, str]:
    credentials = {}
    for line in lines:
        line = line.strip()
        # Skip empty lines and comments
        if not line or line.startswith("#"):
            continue

        # Parse KEY=value format
        if "=" in line:
            key, value = line.split("=", 1)
            credentials[key.strip()] = value.strip()
    return credentials


def load_credentials() -> Dict[str, str]:
    """Load API keys from ~/.gitai/credentials.

    Returns:
        Dictionary mapping key names to values.
    """
    credentials_file = get_credentials_file_path()

    if not credentials_file.exists():
        return {}

    try:
        with open(credentials_file, "r") as f:
            return _parse_credentials(f)
    except OSError as e:
        raise GlobalConfigError(f"Failed to load credentials from {credentials_file}: {e}")


def save_credential(key_name: str, api_key: str) -> None:
    """Save or update an API key in the credentials file.

    Args:
        key_name: Credential name (e.g., "GITAI_API_KEY")
        api_key: The API key value.
    """
    ensure_global_config_dir()
    credentials_file = get_credentials_file_path()

    existing_creds = load_credentials()
    existing_creds[key_name] = api_key

    try:
        with open(credentials_file, "w") as f:
            f.write("# gitai API credentials\n")
            f.write("# Format: GITAI_API_KEY=your_key_here\n\n")

            for key, value in existing_creds.items():
                f.write(f"{key}={value}\n")

        # Set secure permissions (owner read/write only)
        os.chmod(credentials_file, stat.S_IRUSR | stat.S_IWUSR)

    except OSError as e:
        raise GlobalConfigError(f"Failed to save credential: {e}")


def get_credential(key_name: str) -> Optional[str]:
    """Get an API key from credentials file.

    Args:
        key_name: Credential name (e.g., "GITAI_API_KEY")

    Returns:
        The API key if found, None otherwise.
    """
    return load_credentials().get(key_name)


def initialize_default_config(default_config: Dict[str, Any]) -> bool:
    """Write config.yaml with the given defaults if it doesn't exist.

    Returns:
        True if the file was created, False if it already existed.
    """
    if get_config_file_path().exists():
        return False

    save_global_config(default_config)
    return True


def is_configured() -> bool:
    """Check if gitai has been configured.

    Returns:
        True if config.yaml exists, False otherwise.
    """
    return get_config_file_path().exists()
