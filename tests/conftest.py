"""Pytest fixtures and configuration."""

import os
import shutil
import stat
import tempfile
import time
from collections.abc import Callable, Generator
from pathlib import Path
from unittest.mock import MagicMock

import pytest
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ed25519

from sshcall.core.types import SessionConfig
from sshcall.ssh.keys import Credentials
from sshcall.transport.base import Channel, Transport

USER_CERT = serialization.SSHCertificateType.USER


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for tests."""
    tmpdir = tempfile.mkdtemp()
    try:
        yield Path(tmpdir)
    finally:
        shutil.rmtree(tmpdir, ignore_errors=True)


def _write_private_key(
    path: Path,
    key: ed25519.Ed25519PrivateKey,
    passphrase: bytes | None = None,
) -> Path:
    """Write an Ed25519 key in OpenSSH format with owner-only permissions."""
    if passphrase:
        encryption: serialization.KeySerializationEncryption = (
            serialization.BestAvailableEncryption(passphrase)
        )
    else:
        encryption = serialization.NoEncryption()

    path.write_bytes(
        key.private_bytes(
            encoding=serialization.Encoding.PEM,
            format=serialization.PrivateFormat.OpenSSH,
            encryption_algorithm=encryption,
        )
    )
    os.chmod(path, stat.S_IRUSR | stat.S_IWUSR)
    return path


def _write_certificate(
    path: Path,
    key: ed25519.Ed25519PrivateKey,
    ca_key: ed25519.Ed25519PrivateKey,
    valid_after: int | None = None,
    valid_before: int | None = None,
    cert_type: serialization.SSHCertificateType = USER_CERT,
) -> Path:
    """Sign ``key`` with ``ca_key`` and write the OpenSSH certificate."""
    now = int(time.time())
    certificate = (
        serialization.SSHCertificateBuilder()
        .public_key(key.public_key())
        .serial(1)
        .type(cert_type)
        .key_id(b"sshcall-test")
        .valid_principals([b"testuser"])
        .valid_after(now - 60 if valid_after is None else valid_after)
        .valid_before(now + 3600 if valid_before is None else valid_before)
        .sign(ca_key)
    )
    path.write_bytes(certificate.public_bytes() + b"\n")
    return path


@pytest.fixture
def key_writer() -> Callable[..., Path]:
    """Provide the private key writer."""
    return _write_private_key


@pytest.fixture
def cert_writer() -> Callable[..., Path]:
    """Provide the certificate writer."""
    return _write_certificate


@pytest.fixture
def ed25519_key() -> ed25519.Ed25519PrivateKey:
    """Generate a fresh Ed25519 private key."""
    return ed25519.Ed25519PrivateKey.generate()


@pytest.fixture
def ca_key() -> ed25519.Ed25519PrivateKey:
    """Generate a certificate authority key."""
    return ed25519.Ed25519PrivateKey.generate()


@pytest.fixture
def private_key_path(temp_dir: Path, ed25519_key: ed25519.Ed25519PrivateKey) -> Path:
    """Write the Ed25519 key to disk."""
    return _write_private_key(temp_dir / "id_ed25519", ed25519_key)


@pytest.fixture
def certificate_path(
    temp_dir: Path,
    ed25519_key: ed25519.Ed25519PrivateKey,
    ca_key: ed25519.Ed25519PrivateKey,
) -> Path:
    """Write a currently valid user certificate for the Ed25519 key."""
    return _write_certificate(temp_dir / "id_ed25519-cert.pub", ed25519_key, ca_key)


@pytest.fixture
def plain_credentials(temp_dir: Path) -> Credentials:
    """Credentials without a certificate, backed by a mock key."""
    return Credentials(private_key=MagicMock(), private_key_path=temp_dir / "key")


@pytest.fixture
def cert_credentials(temp_dir: Path) -> Credentials:
    """Credentials with a certificate, backed by mocks."""
    return Credentials(
        private_key=MagicMock(),
        private_key_path=temp_dir / "key",
        certificate=MagicMock(),
        certificate_path=temp_dir / "key-cert.pub",
    )


@pytest.fixture
def mock_channel() -> MagicMock:
    """Create a mock channel with an empty event stream."""
    channel = MagicMock(spec=Channel)
    channel.events.return_value = iter([])
    return channel


@pytest.fixture
def mock_transport(mock_channel: MagicMock) -> MagicMock:
    """Create a mock transport that accepts any authentication."""
    transport = MagicMock(spec=Transport)
    transport.authenticate_publickey.return_value = True
    transport.authenticate_certificate.return_value = True
    transport.open_channel.return_value = mock_channel
    return transport


@pytest.fixture
def sample_session_config(private_key_path: Path) -> SessionConfig:
    """Create a sample session configuration."""
    return SessionConfig(
        host="localhost",
        port=2222,
        username="testuser",
        private_key_path=private_key_path,
        inactivity_timeout=10,
    )
