"""sshcall - Run a single command on a remote host over SSH.

This package connects to an SSH server with a private key (optionally
backed by an OpenSSH certificate), runs one command per channel, streams
its output to local stdout and reports the remote exit status.
"""

from sshcall.core.config import Config
from sshcall.core.errors import (
    AuthenticationError,
    ChannelError,
    ConfigurationError,
    CredentialError,
    HandshakeError,
    HostKeyRejectedError,
    InactivityTimeoutError,
    ProtocolConsistencyError,
    SessionStateError,
    SshCallError,
    TransportError,
)
from sshcall.core.types import DisconnectReason, SessionConfig, SessionState
from sshcall.ssh.client import ExecutionResult, Session
from sshcall.ssh.escape import join_command, shell_escape
from sshcall.ssh.keys import Credentials, load_credentials
from sshcall.transport.policy import (
    AcceptAnyHostKeyPolicy,
    HostKeyPolicy,
    KnownHostsPolicy,
    PinnedHostKeyPolicy,
)

__version__ = "0.1.0"

__all__ = [
    # Session
    "Session",
    "ExecutionResult",
    "Credentials",
    "load_credentials",
    # Configuration
    "Config",
    "DisconnectReason",
    "SessionConfig",
    "SessionState",
    # Host key policies
    "AcceptAnyHostKeyPolicy",
    "HostKeyPolicy",
    "KnownHostsPolicy",
    "PinnedHostKeyPolicy",
    # Command escaping
    "join_command",
    "shell_escape",
    # Errors
    "AuthenticationError",
    "ChannelError",
    "ConfigurationError",
    "CredentialError",
    "HandshakeError",
    "HostKeyRejectedError",
    "InactivityTimeoutError",
    "ProtocolConsistencyError",
    "SessionStateError",
    "SshCallError",
    "TransportError",
]


def main() -> None:
    """CLI entry point."""
    import sys

    from sshcall.cli import main as cli_main

    sys.exit(cli_main())
