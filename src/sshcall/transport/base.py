"""Abstract base classes for the secure transport."""

from abc import ABC, abstractmethod
from collections.abc import Iterator

import paramiko

from sshcall.core.types import DisconnectReason
from sshcall.transport.events import ChannelEvent
from sshcall.transport.policy import HostKeyPolicy


class Channel(ABC):
    """A single session channel on an authenticated transport."""

    @abstractmethod
    def exec(self, command: str) -> None:
        """Ask the server to run ``command`` on this channel.

        Args:
            command: Complete command string for the remote shell.
        """
        pass

    @abstractmethod
    def events(self) -> Iterator[ChannelEvent]:
        """Iterate over channel events until the channel is finished.

        Blocks between events. The iterator ends once the server has closed
        the channel, or has sent both EOF and an exit status.

        Returns:
            Events in the order the server produced them.
        """
        pass

    @abstractmethod
    def close(self) -> None:
        """Close the channel."""
        pass


class Transport(ABC):
    """An encrypted, multiplexed connection to one server.

    This class defines the interface the session relies on. The handshake,
    key exchange and wire encoding are left to the implementation.
    """

    def __init__(
        self,
        inactivity_timeout: float,
        kex_algorithms: tuple[str, ...],
    ) -> None:
        """Initialize transport.

        Args:
            inactivity_timeout: Seconds without traffic before giving up.
            kex_algorithms: Key exchange algorithms the client offers.
        """
        self._inactivity_timeout = inactivity_timeout
        self._kex_algorithms = tuple(kex_algorithms)

    @property
    def inactivity_timeout(self) -> float:
        """Get inactivity timeout in seconds."""
        return self._inactivity_timeout

    @property
    def kex_algorithms(self) -> tuple[str, ...]:
        """Get offered key exchange algorithms."""
        return self._kex_algorithms

    @property
    @abstractmethod
    def is_active(self) -> bool:
        """Whether the connection is still usable."""
        pass

    @abstractmethod
    def connect(self, host: str, port: int, host_key_policy: HostKeyPolicy) -> None:
        """Open the connection and run the handshake.

        Args:
            host: Server host name or address.
            port: Server TCP port.
            host_key_policy: Policy consulted with the server's host key.

        Raises:
            HandshakeError: If the server cannot be reached or negotiated with.
            HostKeyRejectedError: If the policy refuses the server key.
        """
        pass

    @abstractmethod
    def authenticate_publickey(self, username: str, key: paramiko.PKey) -> bool:
        """Authenticate with a bare public key.

        Args:
            username: Remote user name.
            key: Private key to sign with.

        Returns:
            True if the server accepted the key.
        """
        pass

    @abstractmethod
    def authenticate_certificate(
        self,
        username: str,
        key: paramiko.PKey,
        certificate: paramiko.PublicBlob,
    ) -> bool:
        """Authenticate with a key and the OpenSSH certificate for it.

        Args:
            username: Remote user name.
            key: Private key to sign with.
            certificate: Certificate binding the key to an identity.

        Returns:
            True if the server accepted the certificate.
        """
        pass

    @abstractmethod
    def open_channel(self) -> Channel:
        """Open a new session channel.

        Returns:
            The opened channel.
        """
        pass

    @abstractmethod
    def disconnect(self, reason: DisconnectReason, description: str) -> None:
        """Tell the server the client is going away.

        Args:
            reason: Disconnect reason code.
            description: Human readable reason.
        """
        pass

    @abstractmethod
    def close(self) -> None:
        """Release the connection. Safe to call more than once."""
        pass
