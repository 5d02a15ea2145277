"""Server identity verification policies.

A policy is consulted once per handshake with the key the server presented.
The default, ``AcceptAnyHostKeyPolicy``, trusts every server and only logs
what it saw; pass ``PinnedHostKeyPolicy`` or ``KnownHostsPolicy`` to
``Session.connect`` to actually pin host keys.
"""

import logging
from abc import ABC, abstractmethod
from collections.abc import Iterable
from pathlib import Path

import paramiko

from sshcall.core.constant import DEFAULT_PORT
from sshcall.core.errors import ConfigurationError
from sshcall.core.types import SessionConfig

logger = logging.getLogger(__name__)

FINGERPRINT_PREFIX = "SHA256:"


class HostKeyPolicy(ABC):
    """Decides whether a server key is acceptable."""

    @abstractmethod
    def verify(self, host: str, port: int, key: paramiko.PKey) -> bool:
        """Check the key presented by ``host:port``.

        Args:
            host: Host the client connected to.
            port: Port the client connected to.
            key: Host key sent by the server.

        Returns:
            True to continue the handshake, False to abort it.
        """
        pass


class AcceptAnyHostKeyPolicy(HostKeyPolicy):
    """Accept every server key without verification."""

    def verify(self, host: str, port: int, key: paramiko.PKey) -> bool:
        logger.warning(
            f"Accepting unverified {key.get_name()} host key for {host}:{port} "
            f"({key.fingerprint})"
        )
        return True


def normalize_fingerprint(fingerprint: str) -> str:
    """Return ``fingerprint`` as ``SHA256:<unpadded base64>``."""
    value = fingerprint.strip()
    if value.upper().startswith(FINGERPRINT_PREFIX):
        value = value[len(FINGERPRINT_PREFIX) :]
    return FINGERPRINT_PREFIX + value.rstrip("=")


class PinnedHostKeyPolicy(HostKeyPolicy):
    """Accept only keys whose SHA256 fingerprint is in a fixed set."""

    def __init__(self, fingerprints: Iterable[str]) -> None:
        """Initialize policy.

        Args:
            fingerprints: Allowed fingerprints, with or without the
                ``SHA256:`` prefix.
        """
        self._fingerprints = {normalize_fingerprint(fp) for fp in fingerprints}
        if not self._fingerprints:
            raise ConfigurationError("At least one host key fingerprint is required")

    @property
    def fingerprints(self) -> frozenset[str]:
        """Get the allowed fingerprints."""
        return frozenset(self._fingerprints)

    def verify(self, host: str, port: int, key: paramiko.PKey) -> bool:
        if key.fingerprint in self._fingerprints:
            logger.debug(f"Host key for {host}:{port} matches pinned fingerprint")
            return True
        logger.error(f"Host key for {host}:{port} is not pinned ({key.fingerprint})")
        return False


class KnownHostsPolicy(HostKeyPolicy):
    """Accept only keys listed in an OpenSSH ``known_hosts`` file."""

    def __init__(self, known_hosts_path: Path) -> None:
        """Initialize policy.

        Args:
            known_hosts_path: Path to a known_hosts file.
        """
        self._path = Path(known_hosts_path).expanduser()
        self._host_keys = paramiko.HostKeys()
        try:
            self._host_keys.load(str(self._path))
        except OSError as e:
            raise ConfigurationError(
                f"Could not read known hosts file {self._path}: {e}"
            ) from e

    @property
    def path(self) -> Path:
        """Get the known_hosts path."""
        return self._path

    @staticmethod
    def host_entry(host: str, port: int) -> str:
        """Name under which OpenSSH records ``host:port``."""
        if port == DEFAULT_PORT:
            return host
        return f"[{host}]:{port}"

    def verify(self, host: str, port: int, key: paramiko.PKey) -> bool:
        entry = self.host_entry(host, port)
        if self._host_keys.check(entry, key):
            return True
        logger.error(
            f"Host key for {entry} not found in {self._path} ({key.fingerprint})"
        )
        return False


def policy_from_config(config: SessionConfig) -> HostKeyPolicy:
    """Build the host key policy a configuration asks for.

    Pinned fingerprints win over a known_hosts file; with neither, every
    server key is accepted.
    """
    if config.host_key_fingerprints:
        return PinnedHostKeyPolicy(config.host_key_fingerprints)
    if config.known_hosts_path is not None:
        return KnownHostsPolicy(config.known_hosts_path)
    return AcceptAnyHostKeyPolicy()
