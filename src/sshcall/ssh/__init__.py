"""SSH session layer for sshcall."""

from sshcall.ssh.client import ExecutionResult, Session
from sshcall.ssh.escape import join_command, shell_escape
from sshcall.ssh.keys import Credentials, load_credentials

__all__ = [
    "Credentials",
    "ExecutionResult",
    "Session",
    "join_command",
    "load_credentials",
    "shell_escape",
]
