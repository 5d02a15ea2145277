"""Core layer for sshcall."""

from sshcall.core.config import Config
from sshcall.core.types import (
    DisconnectReason,
    SessionConfig,
    SessionState,
)

__all__ = [
    "Config",
    "DisconnectReason",
    "SessionConfig",
    "SessionState",
]
