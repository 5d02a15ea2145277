"""Public key authentication strategies.

Exactly one strategy runs per connection: the certificate strategy when the
credentials carry a certificate, the bare public key strategy otherwise.
"""

from abc import ABC, abstractmethod

from sshcall.core.errors import CredentialError
from sshcall.ssh.keys import Credentials
from sshcall.transport.base import Transport


class AuthenticationStrategy(ABC):
    """A way of proving the client's identity to the server."""

    name: str = ""

    @abstractmethod
    def authenticate(
        self, transport: Transport, username: str, credentials: Credentials
    ) -> bool:
        """Run the authentication exchange.

        Args:
            transport: Connected transport.
            username: Remote user name.
            credentials: Key material to authenticate with.

        Returns:
            True if the server accepted the credentials.
        """
        pass


class PublicKeyAuthentication(AuthenticationStrategy):
    """Authenticate with the private key alone."""

    name = "publickey"

    def authenticate(
        self, transport: Transport, username: str, credentials: Credentials
    ) -> bool:
        return transport.authenticate_publickey(username, credentials.private_key)


class CertificateAuthentication(AuthenticationStrategy):
    """Authenticate with the private key and its OpenSSH certificate."""

    name = "publickey+cert"

    def authenticate(
        self, transport: Transport, username: str, credentials: Credentials
    ) -> bool:
        if credentials.certificate is None:
            raise CredentialError("Certificate authentication needs a certificate")
        return transport.authenticate_certificate(
            username, credentials.private_key, credentials.certificate
        )


def select_authentication(credentials: Credentials) -> AuthenticationStrategy:
    """Pick the strategy matching the credentials."""
    if credentials.has_certificate:
        return CertificateAuthentication()
    return PublicKeyAuthentication()
