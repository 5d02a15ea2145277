"""Transport implementation backed by paramiko."""

import logging
import select
import socket
import time
from collections.abc import Iterable, Iterator

import paramiko
from paramiko.common import cMSG_DISCONNECT

from sshcall.core.constant import (
    DEFAULT_INACTIVITY_TIMEOUT,
    DEFAULT_KEX_ALGORITHMS,
    DISCONNECT_LANGUAGE,
)
from sshcall.core.errors import (
    ChannelError,
    CredentialError,
    HandshakeError,
    HostKeyRejectedError,
    InactivityTimeoutError,
    TransportError,
)
from sshcall.core.types import DisconnectReason
from sshcall.transport.base import Channel, Transport
from sshcall.transport.events import (
    EXTENDED_DATA_STDERR,
    ChannelEvent,
    Data,
    Eof,
    ExitStatus,
    ExtendedData,
)
from sshcall.transport.policy import HostKeyPolicy

logger = logging.getLogger(__name__)

RECV_SIZE = 32768

# Upper bound on a single blocking wait, so an exit status that arrives
# without waking the channel pipe is still noticed.
POLL_INTERVAL = 0.1


class ParamikoChannel(Channel):
    """Session channel wrapping a ``paramiko.Channel``."""

    def __init__(self, channel: paramiko.Channel, inactivity_timeout: float) -> None:
        """Initialize channel.

        Args:
            channel: Open paramiko session channel.
            inactivity_timeout: Seconds to wait for the next event.
        """
        self._channel = channel
        self._inactivity_timeout = inactivity_timeout

    def exec(self, command: str) -> None:
        try:
            self._channel.exec_command(command)
        except (paramiko.SSHException, OSError) as e:
            raise ChannelError(f"Server refused to execute command: {e}") from e

    def _has_exit_status(self) -> bool:
        # paramiko also sets the status event on close, leaving exit_status -1
        return self._channel.exit_status_ready() and self._channel.exit_status >= 0

    def _has_pending(self, status_seen: bool, eof_seen: bool) -> bool:
        chan = self._channel
        return (
            chan.recv_ready()
            or chan.recv_stderr_ready()
            or (not status_seen and self._has_exit_status())
            or (not eof_seen and bool(chan.eof_received))
        )

    def _wait(self, status_seen: bool, eof_seen: bool) -> None:
        """Block until there is something to report or the channel closes."""
        chan = self._channel
        deadline = time.monotonic() + self._inactivity_timeout
        while not chan.closed and not self._has_pending(status_seen, eof_seen):
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                raise InactivityTimeoutError(
                    f"No activity on channel for {self._inactivity_timeout}s"
                )
            interval = min(remaining, POLL_INTERVAL)
            if eof_seen:
                # The pipe stays readable after EOF; wait on the status instead.
                chan.status_event.wait(interval)
            else:
                select.select([chan], [], [], interval)

    def events(self) -> Iterator[ChannelEvent]:
        chan = self._channel
        status_seen = False
        eof_seen = False
        while True:
            if chan.recv_ready():
                yield Data(chan.recv(RECV_SIZE))
            elif chan.recv_stderr_ready():
                yield ExtendedData(chan.recv_stderr(RECV_SIZE), EXTENDED_DATA_STDERR)
            elif not status_seen and self._has_exit_status():
                status_seen = True
                yield ExitStatus(chan.exit_status)
            elif not eof_seen and chan.eof_received:
                eof_seen = True
                yield Eof()
            elif chan.closed or (status_seen and eof_seen):
                if not self._has_pending(status_seen, eof_seen):
                    return
            else:
                self._wait(status_seen, eof_seen)

    def close(self) -> None:
        self._channel.close()


class ParamikoTransport(Transport):
    """Transport running the SSH protocol through ``paramiko.Transport``."""

    def __init__(
        self,
        inactivity_timeout: float = DEFAULT_INACTIVITY_TIMEOUT,
        kex_algorithms: Iterable[str] = DEFAULT_KEX_ALGORITHMS,
    ) -> None:
        super().__init__(inactivity_timeout, tuple(kex_algorithms))
        self._transport: paramiko.Transport | None = None

    @property
    def is_active(self) -> bool:
        return self._transport is not None and self._transport.is_active()

    def _require_transport(self) -> paramiko.Transport:
        if self._transport is None:
            raise TransportError("Transport is not connected")
        return self._transport

    def _configure(self, transport: paramiko.Transport) -> None:
        """Restrict algorithms and set handshake timeouts."""
        try:
            transport.get_security_options().kex = self._kex_algorithms
        except ValueError as e:
            raise HandshakeError(f"Unsupported key exchange algorithm: {e}") from e

        transport.banner_timeout = self._inactivity_timeout
        transport.handshake_timeout = self._inactivity_timeout
        transport.auth_timeout = self._inactivity_timeout

    def _verify_host_key(
        self,
        transport: paramiko.Transport,
        host: str,
        port: int,
        host_key_policy: HostKeyPolicy,
    ) -> None:
        server_key = transport.get_remote_server_key()
        if not host_key_policy.verify(host, port, server_key):
            raise HostKeyRejectedError(host, port, server_key.fingerprint)

    def connect(self, host: str, port: int, host_key_policy: HostKeyPolicy) -> None:
        if self._transport is not None:
            raise TransportError("Transport is already connected")

        logger.info(f"Connecting to {host}:{port}")
        try:
            sock = socket.create_connection(
                (host, port), timeout=self._inactivity_timeout
            )
        except OSError as e:
            raise HandshakeError(f"Could not connect to {host}:{port}: {e}") from e

        try:
            transport = paramiko.Transport(sock)
        except (paramiko.SSHException, OSError) as e:
            sock.close()
            raise HandshakeError(
                f"Could not start SSH transport to {host}:{port}: {e}"
            ) from e

        try:
            self._configure(transport)
            try:
                transport.start_client(timeout=self._inactivity_timeout)
            except (paramiko.SSHException, OSError, EOFError) as e:
                raise HandshakeError(
                    f"SSH handshake with {host}:{port} failed: {e}"
                ) from e
            self._verify_host_key(transport, host, port, host_key_policy)
        except Exception:
            transport.close()
            raise

        self._transport = transport
        logger.debug(
            f"Negotiated {transport.remote_cipher} with {host}:{port} "
            f"({transport.remote_version})"
        )

    def _auth_publickey(self, username: str, key: paramiko.PKey, method: str) -> bool:
        transport = self._require_transport()
        try:
            transport.auth_publickey(username, key)
        except paramiko.AuthenticationException as e:
            logger.debug(f"Authentication ({method}) rejected: {e}")
            return False
        except (paramiko.SSHException, OSError, EOFError) as e:
            raise TransportError(f"Transport failed during authentication: {e}") from e
        # A partial success still leaves the session unauthenticated.
        return transport.is_authenticated()

    def authenticate_publickey(self, username: str, key: paramiko.PKey) -> bool:
        # paramiko picks the RSA signature hash from the server's
        # server-sig-algs extension.
        return self._auth_publickey(username, key, "publickey")

    def authenticate_certificate(
        self,
        username: str,
        key: paramiko.PKey,
        certificate: paramiko.PublicBlob,
    ) -> bool:
        try:
            # load_certificate takes a Message, a path or a string, not a blob
            key.load_certificate(paramiko.Message(certificate.key_blob))
        except ValueError as e:
            raise CredentialError(f"Certificate does not fit the key: {e}") from e
        return self._auth_publickey(username, key, "publickey+cert")

    def open_channel(self) -> Channel:
        transport = self._require_transport()
        try:
            channel = transport.open_session(timeout=self._inactivity_timeout)
        except paramiko.ChannelException as e:
            raise ChannelError(f"Server refused to open a channel: {e}") from e
        except (paramiko.SSHException, OSError, EOFError) as e:
            raise TransportError(f"Could not open a channel: {e}") from e
        return ParamikoChannel(channel, self._inactivity_timeout)

    def disconnect(self, reason: DisconnectReason, description: str) -> None:
        transport = self._require_transport()
        if not transport.is_active():
            raise TransportError("Transport is no longer active")

        m = paramiko.Message()
        m.add_byte(cMSG_DISCONNECT)
        m.add_int(int(reason))
        m.add_string(description)
        m.add_string(DISCONNECT_LANGUAGE)
        try:
            # paramiko has no public call for a disconnect with a reason.
            transport._send_user_message(m)
        except (paramiko.SSHException, OSError, EOFError) as e:
            raise TransportError(f"Could not send disconnect: {e}") from e

    def close(self) -> None:
        if self._transport is None:
            return
        transport, self._transport = self._transport, None
        transport.close()
