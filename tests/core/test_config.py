"""Tests for sshcall.core.config module."""

import json
import os
from pathlib import Path

import pytest

from sshcall.core.config import Config
from sshcall.core.errors import ConfigurationError


class TestConfig:
    """Tests for Config class."""

    def test_init_without_path(self) -> None:
        """Test initialization without config path."""
        config = Config()
        config.load()
        assert config.data == {}

    def test_from_file(self, temp_dir: Path) -> None:
        """Test loading config from file."""
        config_path = temp_dir / "sshcall.json"
        config_path.write_text(
            json.dumps({"host": "build.example", "port": 2222}), encoding="utf-8"
        )

        config = Config.from_file(config_path)

        assert config.get("host") == "build.example"
        assert config.get("port") == 2222

    def test_missing_file(self, temp_dir: Path) -> None:
        """Test that a named file that does not exist is an error."""
        with pytest.raises(ConfigurationError, match="not found"):
            Config.from_file(temp_dir / "typo.json")

    def test_directory_instead_of_file(self, temp_dir: Path) -> None:
        """Test that an unreadable path is a configuration error."""
        with pytest.raises(ConfigurationError, match="Could not read"):
            Config.from_file(temp_dir)

    @pytest.mark.skipif(
        not hasattr(os, "geteuid") or os.geteuid() == 0,
        reason="root ignores file permissions",
    )
    def test_unreadable_file(self, temp_dir: Path) -> None:
        """Test that a file without read permission is a configuration error."""
        config_path = temp_dir / "secret.json"
        config_path.write_text("{}", encoding="utf-8")
        config_path.chmod(0)

        with pytest.raises(ConfigurationError, match="Could not read"):
            Config.from_file(config_path)

    def test_load_invalid_json(self, temp_dir: Path) -> None:
        """Test that malformed JSON is a configuration error."""
        config_path = temp_dir / "broken.json"
        config_path.write_text("{not json", encoding="utf-8")

        with pytest.raises(ConfigurationError, match="Invalid configuration"):
            Config.from_file(config_path)

    def test_load_non_utf8(self, temp_dir: Path) -> None:
        """Test that a binary file is a configuration error."""
        config_path = temp_dir / "binary.json"
        config_path.write_bytes(b"\xff\xfe\x00garbage")

        with pytest.raises(ConfigurationError, match="Invalid configuration"):
            Config.from_file(config_path)

    def test_load_non_object(self, temp_dir: Path) -> None:
        """Test that a top-level list is rejected."""
        config_path = temp_dir / "list.json"
        config_path.write_text("[1, 2]", encoding="utf-8")

        with pytest.raises(ConfigurationError, match="must contain an object"):
            Config.from_file(config_path)

    def test_get_nested_key(self) -> None:
        """Test getting nested key with dot notation."""
        config = Config.from_dict({"hosts": {"ci": {"port": 2200}}})

        assert config.get("hosts.ci.port") == 2200
        assert config.get("hosts.ci.user", "root") == "root"
        assert config.get("hosts.ci.port.value") is None


class TestToSessionConfig:
    """Tests for Config.to_session_config."""

    def test_from_file_values(self, temp_dir: Path) -> None:
        """Test building a session configuration from file values."""
        config = Config.from_dict(
            {
                "host": "build.example",
                "username": "deploy",
                "private_key_path": str(temp_dir / "id_ed25519"),
                "inactivity_timeout": 12.5,
                "kex_algorithms": ["curve25519-sha256"],
            }
        )

        session_config = config.to_session_config()

        assert session_config.host == "build.example"
        assert session_config.port == 22
        assert session_config.private_key_path == temp_dir / "id_ed25519"
        assert session_config.inactivity_timeout == 12.5
        assert session_config.kex_algorithms == ["curve25519-sha256"]

    def test_overrides_win(self, temp_dir: Path) -> None:
        """Test that explicit overrides replace file values."""
        config = Config.from_dict(
            {
                "host": "build.example",
                "port": 2200,
                "username": "deploy",
                "private_key_path": str(temp_dir / "id_ed25519"),
            }
        )

        session_config = config.to_session_config(port=2222, username="alice")

        assert session_config.port == 2222
        assert session_config.username == "alice"

    def test_unset_overrides_ignored(self, temp_dir: Path) -> None:
        """Test that None and empty lists keep the file values."""
        config = Config.from_dict(
            {
                "host": "build.example",
                "username": "deploy",
                "private_key_path": str(temp_dir / "id_ed25519"),
                "host_key_fingerprints": ["SHA256:abc"],
            }
        )

        session_config = config.to_session_config(
            port=None, host_key_fingerprints=[]
        )

        assert session_config.port == 22
        assert session_config.host_key_fingerprints == ["SHA256:abc"]

    def test_missing_key_path(self) -> None:
        """Test that a missing private key path is a configuration error."""
        config = Config.from_dict({"host": "build.example", "username": "deploy"})

        with pytest.raises(ConfigurationError, match="private_key_path"):
            config.to_session_config()

    def test_unknown_field(self, temp_dir: Path) -> None:
        """Test that unknown settings are rejected."""
        config = Config.from_dict(
            {
                "host": "build.example",
                "username": "deploy",
                "private_key_path": str(temp_dir / "id_ed25519"),
                "compression": True,
            }
        )

        with pytest.raises(ConfigurationError, match="compression"):
            config.to_session_config()
