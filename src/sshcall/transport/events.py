"""Events produced by an execution channel."""

from dataclasses import dataclass

# SSH_EXTENDED_DATA_STDERR (RFC 4254, section 5.2)
EXTENDED_DATA_STDERR = 1


@dataclass(frozen=True)
class Data:
    """Bytes the remote command wrote to stdout."""

    data: bytes


@dataclass(frozen=True)
class ExtendedData:
    """Bytes on an extended data stream, usually stderr."""

    data: bytes
    data_type: int = EXTENDED_DATA_STDERR


@dataclass(frozen=True)
class ExitStatus:
    """Exit status reported by the remote command."""

    exit_status: int


@dataclass(frozen=True)
class Eof:
    """The remote side will send no more data."""


ChannelEvent = Data | ExtendedData | ExitStatus | Eof
