"""Loading of SSH private keys and OpenSSH user certificates."""

import logging
import time
from pathlib import Path
from typing import NamedTuple

import paramiko
from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ec, ed25519, rsa

from sshcall.core.errors import CredentialError

logger = logging.getLogger(__name__)

PrivateKeyTypes = (
    ed25519.Ed25519PrivateKey | rsa.RSAPrivateKey | ec.EllipticCurvePrivateKey
)


class Credentials(NamedTuple):
    """Key material used to authenticate a session."""

    private_key: paramiko.PKey
    private_key_path: Path
    certificate: paramiko.PublicBlob | None = None
    certificate_path: Path | None = None

    @property
    def has_certificate(self) -> bool:
        """Whether a certificate accompanies the private key."""
        return self.certificate is not None


def _read_private_key(path: Path, passphrase: str | None) -> PrivateKeyTypes:
    """Parse a private key file with cryptography.

    OpenSSH format is tried first, then legacy PEM.
    """
    if not path.is_file():
        raise CredentialError(f"Private key not found: {path}")

    data = path.read_bytes()
    password = passphrase.encode("utf-8") if passphrase else None

    try:
        try:
            loaded = serialization.load_ssh_private_key(data, password=password)
        except ValueError:
            loaded = serialization.load_pem_private_key(data, password=password)
    except TypeError as e:
        # cryptography signals a missing or unexpected password with TypeError
        raise CredentialError(f"Private key {path}: {e}") from e
    except (ValueError, UnsupportedAlgorithm) as e:
        raise CredentialError(f"Could not parse private key {path}: {e}") from e

    if not isinstance(
        loaded,
        (ed25519.Ed25519PrivateKey, rsa.RSAPrivateKey, ec.EllipticCurvePrivateKey),
    ):
        raise CredentialError(
            f"Unsupported private key type in {path}: {type(loaded).__name__}"
        )
    return loaded


def _to_paramiko_key(
    path: Path, loaded: PrivateKeyTypes, passphrase: str | None
) -> paramiko.PKey:
    """Load the same key file as the matching paramiko key class."""
    if isinstance(loaded, ed25519.Ed25519PrivateKey):
        key_class: type[paramiko.PKey] = paramiko.Ed25519Key
    elif isinstance(loaded, rsa.RSAPrivateKey):
        key_class = paramiko.RSAKey
    else:
        key_class = paramiko.ECDSAKey

    try:
        return key_class.from_private_key_file(str(path), password=passphrase)
    except (paramiko.SSHException, ValueError) as e:
        raise CredentialError(f"Could not load private key {path}: {e}") from e


def _openssh_public_bytes(public_key: serialization.SSHPublicKeyTypes) -> bytes:
    """Serialize a public key as ``<type> <base64>``."""
    return public_key.public_bytes(
        encoding=serialization.Encoding.OpenSSH,
        format=serialization.PublicFormat.OpenSSH,
    )


def _read_certificate(path: Path, loaded: PrivateKeyTypes) -> paramiko.PublicBlob:
    """Parse and validate an OpenSSH user certificate.

    The certificate must be a user certificate, inside its validity window,
    and certify the public half of ``loaded``.
    """
    if not path.is_file():
        raise CredentialError(f"Certificate not found: {path}")

    data = path.read_bytes().strip()
    try:
        identity = serialization.load_ssh_public_identity(data)
    except (ValueError, UnsupportedAlgorithm) as e:
        raise CredentialError(f"Could not parse certificate {path}: {e}") from e

    if not isinstance(identity, serialization.SSHCertificate):
        raise CredentialError(f"{path} is a public key, not a certificate")

    if identity.type != serialization.SSHCertificateType.USER:
        raise CredentialError(f"{path} is not a user certificate")

    now = int(time.time())
    if now < identity.valid_after:
        raise CredentialError(f"Certificate {path} is not valid yet")
    if now >= identity.valid_before:
        raise CredentialError(f"Certificate {path} has expired")

    if _openssh_public_bytes(identity.public_key()) != _openssh_public_bytes(
        loaded.public_key()
    ):
        raise CredentialError(f"Certificate {path} does not match the private key")

    try:
        blob = paramiko.PublicBlob.from_string(data.decode("ascii"))
    except (ValueError, UnicodeDecodeError) as e:
        raise CredentialError(f"Could not load certificate {path}: {e}") from e

    logger.debug(
        f"Loaded certificate {path} (key id {identity.key_id!r}, "
        f"principals {identity.valid_principals!r})"
    )
    return blob


def load_credentials(
    private_key_path: Path,
    certificate_path: Path | None = None,
    passphrase: str | None = None,
) -> Credentials:
    """Load a private key and an optional certificate from disk.

    Everything is validated here, before any network activity.

    Args:
        private_key_path: Path to the private key file.
        certificate_path: Path to an OpenSSH user certificate for the key.
        passphrase: Passphrase for an encrypted private key.

    Returns:
        Credentials ready to be passed to ``Session.connect``.

    Raises:
        CredentialError: If the key or certificate cannot be used.
    """
    key_path = Path(private_key_path).expanduser()
    loaded = _read_private_key(key_path, passphrase)
    private_key = _to_paramiko_key(key_path, loaded, passphrase)
    logger.info(f"Loaded {private_key.get_name()} key from {key_path}")

    if certificate_path is None:
        return Credentials(private_key=private_key, private_key_path=key_path)

    cert_path = Path(certificate_path).expanduser()
    certificate = _read_certificate(cert_path, loaded)
    return Credentials(
        private_key=private_key,
        private_key_path=key_path,
        certificate=certificate,
        certificate_path=cert_path,
    )
