"""SSH agent checks used before pushing."""

import shutil
import subprocess


class SSHAgentMissingError(Exception):
    """ssh-add is not installed, so keys can never become available."""
    pass


class SSHCheckError(Exception):
    """ssh-add ran but its answer could not be interpreted."""
    pass


NO_IDENTITIES = "The agent has no identities"


def check_ssh_keys_available() -> bool:
    """True when the agent holds at least one key, False when it holds none."""
    if shutil.which('ssh-add') is None:
        raise SSHAgentMissingError("ssh-add command not found")

    try:
        result = subprocess.run(
            ['ssh-add', '-l'],
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            text=True,
            errors='replace',
        )
    except OSError as e:
        raise SSHCheckError(f"Failed to run ssh-add: {e}") from e

    if result.returncode == 0:
        return True
    if NO_IDENTITIES in result.stdout:
        return False
    raise SSHCheckError(f"ssh-add -l failed (exit {result.returncode}): {result.stdout.strip()}")
