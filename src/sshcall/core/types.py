"""Type definitions for sshcall."""

from enum import Enum, IntEnum
from pathlib import Path

from pydantic import BaseModel, Field, field_validator

from sshcall.core.constant import (
    DEFAULT_DISCONNECT_DESCRIPTION,
    DEFAULT_INACTIVITY_TIMEOUT,
    DEFAULT_KEX_ALGORITHMS,
    DEFAULT_PORT,
)


class SessionState(Enum):
    """Lifecycle state of a session."""

    IDLE = "idle"
    CHANNEL_OPEN = "channel_open"
    CLOSED = "closed"


class DisconnectReason(IntEnum):
    """SSH_MSG_DISCONNECT reason codes (RFC 4253, section 11.1)."""

    HOST_NOT_ALLOWED_TO_CONNECT = 1
    PROTOCOL_ERROR = 2
    KEY_EXCHANGE_FAILED = 3
    RESERVED = 4
    MAC_ERROR = 5
    COMPRESSION_ERROR = 6
    SERVICE_NOT_AVAILABLE = 7
    PROTOCOL_VERSION_NOT_SUPPORTED = 8
    HOST_KEY_NOT_VERIFIABLE = 9
    CONNECTION_LOST = 10
    BY_APPLICATION = 11
    TOO_MANY_CONNECTIONS = 12
    AUTH_CANCELLED_BY_USER = 13
    NO_MORE_AUTH_METHODS_AVAILABLE = 14
    ILLEGAL_USER_NAME = 15


class SessionConfig(BaseModel):
    """Settings needed to open a session and run commands."""

    host: str = Field(min_length=1)
    port: int = Field(default=DEFAULT_PORT, ge=1, le=65535)
    username: str = Field(min_length=1)
    private_key_path: Path
    certificate_path: Path | None = None
    passphrase: str | None = None
    inactivity_timeout: float = Field(default=DEFAULT_INACTIVITY_TIMEOUT, gt=0)
    kex_algorithms: list[str] = Field(
        default_factory=lambda: list(DEFAULT_KEX_ALGORITHMS),
        min_length=1,
    )
    known_hosts_path: Path | None = None
    host_key_fingerprints: list[str] = Field(default_factory=list)
    disconnect_description: str = DEFAULT_DISCONNECT_DESCRIPTION

    model_config = {"extra": "forbid"}

    @field_validator("kex_algorithms")
    @classmethod
    def strip_kex_algorithms(cls, value: list[str]) -> list[str]:
        """Drop blank entries from the key exchange list."""
        algorithms = [name.strip() for name in value if name.strip()]
        if not algorithms:
            raise ValueError("at least one key exchange algorithm is required")
        return algorithms
