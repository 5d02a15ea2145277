"""Command-line interface for running a command on a remote host.

Usage:
    sshcall -k ~/.ssh/id_ed25519 example.com uname -a
    sshcall -k key -o key-cert.pub -u deploy -p 2222 example.com ls -la /srv
"""

import argparse
import logging
import sys
from pathlib import Path

from sshcall.core.config import Config
from sshcall.core.constant import DEFAULT_USERNAME
from sshcall.core.errors import SshCallError
from sshcall.ssh.client import Session
from sshcall.ssh.escape import join_command

logger = logging.getLogger(__name__)

# Exit code for client-side failures, as used by OpenSSH.
EXIT_CLIENT_ERROR = 255

# Process exit codes are one byte; larger remote statuses would wrap to 0.
MAX_EXIT_STATUS = 255


def configure_logging(verbosity: int) -> None:
    """Send log records to stderr.

    Args:
        verbosity: 0 for warnings, 1 for info, 2 or more for debug.
    """
    if verbosity >= 2:
        level = logging.DEBUG
    elif verbosity == 1:
        level = logging.INFO
    else:
        level = logging.WARNING

    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )
    if verbosity < 3:
        # paramiko's transport thread is very chatty at debug level
        logging.getLogger("paramiko").setLevel(max(level, logging.INFO))


def resolve_username(args: argparse.Namespace, config: Config) -> str:
    """Pick the remote user name.

    Order: ``--username``, the config file, then ``DEFAULT_USERNAME``.

    Args:
        args: Parsed arguments.
        config: Loaded configuration.

    Returns:
        User name to log in as.
    """
    username = args.username or config.get("username")
    if username:
        return username

    logger.warning(
        f"No username given, falling back to {DEFAULT_USERNAME!r}; "
        "pass --username to choose the remote account"
    )
    return DEFAULT_USERNAME


def cmd_run(args: argparse.Namespace) -> int:
    """Connect, run the command and disconnect.

    Args:
        args: Parsed arguments.

    Returns:
        Remote exit status, or EXIT_CLIENT_ERROR on failure.
    """
    try:
        config = Config.from_file(args.config) if args.config else Config()
        session_config = config.to_session_config(
            host=args.host,
            port=args.port,
            username=resolve_username(args, config),
            private_key_path=args.private_key,
            certificate_path=args.openssh_certificate,
            inactivity_timeout=args.timeout,
            kex_algorithms=args.kex,
            known_hosts_path=args.known_hosts,
            host_key_fingerprints=args.fingerprint,
        )
        command = join_command(args.command)

        logger.info(f"Key path: {session_config.private_key_path}")
        logger.info(f"OpenSSH certificate path: {session_config.certificate_path}")

        with Session.from_config(session_config) as session:
            exit_status = session.call(command)
    except SshCallError as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_CLIENT_ERROR
    except BrokenPipeError:
        # Local stdout went away; there is nobody left to report to.
        return EXIT_CLIENT_ERROR

    logger.info(f"Exit code: {exit_status}")
    return min(exit_status, MAX_EXIT_STATUS)


def create_parser() -> argparse.ArgumentParser:
    """Create CLI argument parser.

    Returns:
        Configured ArgumentParser.
    """
    parser = argparse.ArgumentParser(
        prog="sshcall",
        description="Run a command on a remote host over SSH",
    )
    parser.add_argument(
        "--version",
        action="version",
        version="%(prog)s 0.1.0",
    )
    parser.add_argument(
        "--port",
        "-p",
        type=int,
        help="Server port (default: 22)",
    )
    parser.add_argument(
        "--username",
        "-u",
        help=f"Remote user name (default: {DEFAULT_USERNAME})",
    )
    parser.add_argument(
        "--private-key",
        "-k",
        type=Path,
        help="Path to the private key",
    )
    parser.add_argument(
        "--openssh-certificate",
        "-o",
        type=Path,
        help="Path to an OpenSSH user certificate for the key",
    )
    parser.add_argument(
        "--timeout",
        "-t",
        type=float,
        help="Inactivity timeout in seconds (default: 5)",
    )
    parser.add_argument(
        "--kex",
        action="append",
        default=[],
        metavar="ALGORITHM",
        help="Key exchange algorithm to offer (repeatable)",
    )
    parser.add_argument(
        "--known-hosts",
        type=Path,
        help="Verify the server key against this known_hosts file",
    )
    parser.add_argument(
        "--fingerprint",
        action="append",
        default=[],
        help="Accept only a server key with this SHA256 fingerprint (repeatable)",
    )
    parser.add_argument(
        "--config",
        "-c",
        type=Path,
        help="JSON configuration file",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="count",
        default=0,
        help="Increase log output (repeatable)",
    )
    parser.add_argument("host", help="Server host name or address")
    parser.add_argument(
        "command",
        nargs=argparse.REMAINDER,
        help="Command and arguments to run remotely",
    )
    parser.set_defaults(func=cmd_run)
    return parser


def main(argv: list[str] | None = None) -> int:
    """CLI entry point.

    Returns:
        Exit code.
    """
    parser = create_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.error("a command to run is required")

    configure_logging(args.verbose)
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
