"""Exception hierarchy for sshcall."""


class SshCallError(Exception):
    """Base exception for all sshcall failures."""


class ConfigurationError(SshCallError):
    """Configuration file or settings are invalid."""


class CredentialError(SshCallError):
    """Private key or certificate could not be loaded or validated."""


class TransportError(SshCallError):
    """The underlying transport failed or is no longer usable."""


class HandshakeError(TransportError):
    """Connection or algorithm negotiation with the server failed."""


class HostKeyRejectedError(HandshakeError):
    """The host key policy refused the server's identity."""

    def __init__(self, host: str, port: int, fingerprint: str) -> None:
        self.host = host
        self.port = port
        self.fingerprint = fingerprint
        super().__init__(f"Host key for {host}:{port} was rejected ({fingerprint})")


class InactivityTimeoutError(TransportError):
    """No traffic was seen within the inactivity window."""


class AuthenticationError(SshCallError):
    """The server rejected the chosen authentication method."""


class ChannelError(SshCallError):
    """The server refused to open a channel or to run the command."""


class ProtocolConsistencyError(SshCallError):
    """The channel closed without ever reporting an exit status."""


class SessionStateError(SshCallError):
    """Operation is not allowed in the session's current state."""
