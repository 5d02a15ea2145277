"""SSH session for remote command execution."""

import logging
import sys
import threading
from collections.abc import Callable, Iterable
from typing import BinaryIO, NamedTuple

from sshcall.core.constant import (
    DEFAULT_DISCONNECT_DESCRIPTION,
    DEFAULT_INACTIVITY_TIMEOUT,
    DEFAULT_KEX_ALGORITHMS,
    DEFAULT_PORT,
)
from sshcall.core.errors import (
    AuthenticationError,
    ProtocolConsistencyError,
    SessionStateError,
    TransportError,
)
from sshcall.core.types import DisconnectReason, SessionConfig, SessionState
from sshcall.ssh.auth import select_authentication
from sshcall.ssh.keys import Credentials, load_credentials
from sshcall.transport.base import Channel, Transport
from sshcall.transport.events import Data, ExitStatus
from sshcall.transport.paramiko_transport import ParamikoTransport
from sshcall.transport.policy import (
    AcceptAnyHostKeyPolicy,
    HostKeyPolicy,
    policy_from_config,
)

logger = logging.getLogger(__name__)

TransportFactory = Callable[..., Transport]


class ExecutionResult(NamedTuple):
    """Outcome of one remote command."""

    exit_status: int
    bytes_written: int


class Session:
    """An authenticated SSH connection that runs one command at a time.

    The session owns its transport. Each ``call`` opens a fresh channel,
    streams the command's stdout to a local sink and returns the remote exit
    status; ``close`` says goodbye to the server and releases the transport.
    """

    def __init__(
        self,
        transport: Transport,
        disconnect_description: str = DEFAULT_DISCONNECT_DESCRIPTION,
    ) -> None:
        """Initialize session around an authenticated transport.

        Use ``connect`` or ``from_config`` instead of calling this directly.

        Args:
            transport: Connected and authenticated transport.
            disconnect_description: Text sent to the server on close.
        """
        self._transport = transport
        self._disconnect_description = disconnect_description
        self._state = SessionState.IDLE
        self._state_lock = threading.Lock()

    @classmethod
    def connect(
        cls,
        credentials: Credentials,
        username: str,
        host: str,
        port: int = DEFAULT_PORT,
        *,
        inactivity_timeout: float = DEFAULT_INACTIVITY_TIMEOUT,
        kex_algorithms: Iterable[str] = DEFAULT_KEX_ALGORITHMS,
        host_key_policy: HostKeyPolicy | None = None,
        transport_factory: TransportFactory | None = None,
        disconnect_description: str = DEFAULT_DISCONNECT_DESCRIPTION,
    ) -> "Session":
        """Connect to a server and authenticate.

        Args:
            credentials: Private key and optional certificate.
            username: Remote user name.
            host: Server host name or address.
            port: Server TCP port.
            inactivity_timeout: Seconds without traffic before giving up.
            kex_algorithms: Key exchange algorithms to offer.
            host_key_policy: Server identity check. Defaults to accepting
                any host key.
            transport_factory: Callable building the transport. Defaults to
                ``ParamikoTransport``.
            disconnect_description: Text sent to the server on close.

        Returns:
            Authenticated Session.

        Raises:
            HandshakeError: If the server cannot be reached or negotiated with.
            AuthenticationError: If the server rejects the credentials.
        """
        if not username:
            raise ValueError("username must not be empty")

        policy = host_key_policy
        if policy is None:
            policy = AcceptAnyHostKeyPolicy()
        factory = transport_factory or ParamikoTransport
        transport = factory(
            inactivity_timeout=inactivity_timeout,
            kex_algorithms=tuple(kex_algorithms),
        )

        try:
            transport.connect(host, port, policy)
            strategy = select_authentication(credentials)
            logger.info(f"Authenticating as {username} ({strategy.name})")
            if not strategy.authenticate(transport, username, credentials):
                raise AuthenticationError(
                    f"Authentication (with {strategy.name}) failed for {username}"
                )
        except Exception:
            transport.close()
            raise

        logger.info(f"Connected to {host}:{port} as {username}")
        return cls(transport, disconnect_description)

    @classmethod
    def from_config(
        cls,
        config: SessionConfig,
        host_key_policy: HostKeyPolicy | None = None,
        transport_factory: TransportFactory | None = None,
    ) -> "Session":
        """Load credentials and connect using a configuration.

        Args:
            config: Session configuration.
            host_key_policy: Overrides the policy derived from ``config``.
            transport_factory: Callable building the transport.

        Returns:
            Authenticated Session.
        """
        credentials = load_credentials(
            config.private_key_path,
            config.certificate_path,
            config.passphrase,
        )
        return cls.connect(
            credentials,
            config.username,
            config.host,
            config.port,
            inactivity_timeout=config.inactivity_timeout,
            kex_algorithms=config.kex_algorithms,
            host_key_policy=host_key_policy or policy_from_config(config),
            transport_factory=transport_factory,
            disconnect_description=config.disconnect_description,
        )

    @property
    def state(self) -> SessionState:
        """Get current session state."""
        return self._state

    @property
    def is_closed(self) -> bool:
        """Whether the session has been closed."""
        return self._state is SessionState.CLOSED

    def call(self, command: str, output: BinaryIO | None = None) -> int:
        """Run a command and stream its stdout.

        Args:
            command: Command string, already escaped for the remote shell.
            output: Binary sink for remote stdout. Defaults to local stdout.

        Returns:
            Remote exit status.
        """
        return self.execute(command, output).exit_status

    def execute(self, command: str, output: BinaryIO | None = None) -> ExecutionResult:
        """Run a command and stream its stdout.

        Args:
            command: Command string, already escaped for the remote shell.
            output: Binary sink for remote stdout. Defaults to local stdout.

        Returns:
            ExecutionResult with the exit status and number of bytes written.

        Raises:
            SessionStateError: If the session is closed or busy.
            ChannelError: If the server refuses the channel or command.
            ProtocolConsistencyError: If no exit status was reported.
            InactivityTimeoutError: If the server went quiet.
        """
        with self._state_lock:
            if self._state is SessionState.CLOSED:
                raise SessionStateError("Session is closed")
            if self._state is SessionState.CHANNEL_OPEN:
                raise SessionStateError("A command is already running on this session")
            self._state = SessionState.CHANNEL_OPEN

        sink = output if output is not None else sys.stdout.buffer
        try:
            channel = self._transport.open_channel()
            try:
                logger.debug(f"Executing: {command}")
                channel.exec(command)
                return self._drain(channel, sink)
            finally:
                channel.close()
        except TransportError:
            # The connection is unusable once the transport has failed.
            self._release()
            raise
        finally:
            if self._state is SessionState.CHANNEL_OPEN:
                self._state = SessionState.IDLE

    def _drain(self, channel: Channel, sink: BinaryIO) -> ExecutionResult:
        """Copy channel events to ``sink`` until the channel is finished.

        The exit status can arrive before the last of the output, so it is
        only trusted once the event stream has ended.
        """
        exit_status: int | None = None
        written = 0

        for event in channel.events():
            if isinstance(event, Data):
                sink.write(event.data)
                sink.flush()
                written += len(event.data)
            elif isinstance(event, ExitStatus):
                if exit_status is None:
                    exit_status = event.exit_status
                    logger.debug(f"Remote command exited with {exit_status}")
                else:
                    logger.warning(f"Ignoring extra exit status {event.exit_status}")
            else:
                logger.debug(f"Ignoring channel event {type(event).__name__}")

        if exit_status is None:
            raise ProtocolConsistencyError(
                "Channel closed without reporting an exit status"
            )
        return ExecutionResult(exit_status=exit_status, bytes_written=written)

    def _release(self) -> None:
        self._state = SessionState.CLOSED
        self._transport.close()

    def close(self, description: str | None = None) -> None:
        """Disconnect from the server and release the transport.

        Sending the disconnect message is best-effort; the transport is
        released even when it fails. Calling close again does nothing.

        Args:
            description: Overrides the disconnect text given at creation.
        """
        if self._state is SessionState.CLOSED:
            return

        text = self._disconnect_description if description is None else description
        try:
            self._transport.disconnect(DisconnectReason.BY_APPLICATION, text)
        except Exception as e:
            logger.warning(f"Could not send disconnect message: {e}")
        finally:
            self._release()
        logger.info("Session closed")

    def __enter__(self) -> "Session":
        return self

    def __exit__(self, *args: object) -> None:
        self.close()
