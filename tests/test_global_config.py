"""Tests for gitai.global_config module."""

import stat
from pathlib import Path

import pytest
import yaml

from gitai.global_config import (
    GlobalConfigError,
    ensure_global_config_dir,
    get_config_file_path,
    get_credential,
    get_credentials_file_path,
    get_global_config_dir,
    initialize_default_config,
    is_configured,
    load_credentials,
    load_global_config,
    save_credential,
    save_global_config,
)


@pytest.fixture
def mock_dir(mocker, temp_dir):
    mock_dir = temp_dir / ".gitai"
    mocker.patch("gitai.global_config._CONFIG_DIR", mock_dir)
    return mock_dir


class TestGlobalConfigDir:
    """Tests for global config directory functions."""

    def test_get_global_config_dir_returns_path(self):
        """Test that get_global_config_dir returns a Path."""
        result = get_global_config_dir()
        assert isinstance(result, Path)
        assert ".gitai" in str(result)

    def test_ensure_global_config_dir_creates_directory(self, mock_dir):
        """Test that ensure_global_config_dir creates the directory."""
        result = ensure_global_config_dir()

        assert mock_dir.exists()
        assert result == mock_dir

    def test_file_names(self, mock_dir):
        assert get_config_file_path() == mock_dir / "config.yaml"
        assert get_credentials_file_path() == mock_dir / "credentials"


class TestLoadSaveGlobalConfig:
    """Tests for loading and saving global config."""

    def test_load_returns_empty_if_missing(self, mock_dir):
        assert load_global_config() == {}

    def test_save_and_load(self, mock_dir):
        config = {"ai": {"model": "davinci-002"}, "git": {"auto_add": True}}

        save_global_config(config)

        assert load_global_config() == config
        with open(mock_dir / "config.yaml") as f:
            assert yaml.safe_load(f) == config

    def test_explicit_file(self, temp_dir):
        path = temp_dir / "other.yaml"

        save_global_config({"ai": {"language": "Go"}}, path)

        assert load_global_config(path) == {"ai": {"language": "Go"}}

    def test_non_mapping_rejected(self, temp_dir):
        path = temp_dir / "list.yaml"
        path.write_text("- a\n- b\n")

        with pytest.raises(GlobalConfigError, match="mapping"):
            load_global_config(path)

    def test_initialize_default_config(self, mock_dir):
        assert not is_configured()

        assert initialize_default_config({"ai": {"model": "m"}}) is True
        assert is_configured()
        assert initialize_default_config({"ai": {"model": "other"}}) is False
        assert load_global_config() == {"ai": {"model": "m"}}


class TestCredentials:
    """Tests for the credentials file."""

    def test_load_returns_empty_if_missing(self, mock_dir):
        assert load_credentials() == {}

    def test_save_credential(self, mock_dir):
        save_credential("GITAI_API_KEY", "sk-one")
        save_credential("OTHER_KEY", "two")
        save_credential("GITAI_API_KEY", "sk-three")

        assert load_credentials() == {"GITAI_API_KEY": "sk-three", "OTHER_KEY": "two"}
        assert get_credential("GITAI_API_KEY") == "sk-three"
        assert get_credential("MISSING") is None

    def test_credentials_file_is_private(self, mock_dir):
        save_credential("GITAI_API_KEY", "sk-secret")

        mode = stat.S_IMODE(get_credentials_file_path().stat().st_mode)
        assert mode == stat.S_IRUSR | stat.S_IWUSR

    def test_comments_and_blank_lines_ignored(self, mock_dir):
        mock_dir.mkdir(parents=True)
        get_credentials_file_path().write_text(
            "# header\n\nGITAI_API_KEY = sk-spaced \nnot a pair\n"
        )

        assert load_credentials() == {"GITAI_API_KEY": "sk-spaced"}
