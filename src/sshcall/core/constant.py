"""Default values shared across sshcall."""

DEFAULT_PORT = 22

# Fallback identity used by the command line when no username is given.
DEFAULT_USERNAME = "root"

# Seconds without traffic before the session is torn down.
DEFAULT_INACTIVITY_TIMEOUT = 5.0

DEFAULT_KEX_ALGORITHMS = ("curve25519-sha256@libssh.org",)

DEFAULT_DISCONNECT_DESCRIPTION = ""
DISCONNECT_LANGUAGE = "en"
