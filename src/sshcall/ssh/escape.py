"""Shell escaping for remote command strings.

The exec request carries a single opaque string which the remote side hands
to the user's shell, so every argument has to be quoted for a POSIX shell
before the tokens are joined.
"""

import shlex
from collections.abc import Iterable


def shell_escape(token: str) -> str:
    """Quote a single argument for a POSIX shell.

    Args:
        token: Argument to quote.

    Returns:
        Token that the shell reads back as exactly ``token``.
    """
    return shlex.quote(token)


def join_command(tokens: Iterable[str]) -> str:
    """Escape each argument and join them with single spaces.

    Args:
        tokens: Command and its arguments.

    Returns:
        Command string for the exec request.
    """
    return " ".join(shell_escape(token) for token in tokens)
