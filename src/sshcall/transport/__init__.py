"""Secure transport layer for sshcall."""

from sshcall.transport.base import Channel, Transport
from sshcall.transport.events import ChannelEvent, Data, Eof, ExitStatus, ExtendedData
from sshcall.transport.paramiko_transport import ParamikoChannel, ParamikoTransport
from sshcall.transport.policy import (
    AcceptAnyHostKeyPolicy,
    HostKeyPolicy,
    KnownHostsPolicy,
    PinnedHostKeyPolicy,
)

__all__ = [
    "AcceptAnyHostKeyPolicy",
    "Channel",
    "ChannelEvent",
    "Data",
    "Eof",
    "ExitStatus",
    "ExtendedData",
    "HostKeyPolicy",
    "KnownHostsPolicy",
    "ParamikoChannel",
    "ParamikoTransport",
    "PinnedHostKeyPolicy",
    "Transport",
]
