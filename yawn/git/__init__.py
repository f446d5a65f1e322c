"""Git Operations Package"""

from yawn.git.client import GitClient, GitError, FileChange, DiffStats, parse_numstat
from yawn.git.push import Pusher, PushResult
from yawn.git.remote import RemoteInfo, RemoteURLError, build_repo_link, parse_remote_url
from yawn.git.ssh import SSHAgentMissingError, SSHCheckError, check_ssh_keys_available

__all__ = [
    "GitClient",
    "GitError",
    "FileChange",
    "DiffStats",
    "parse_numstat",
    "Pusher",
    "PushResult",
    "RemoteInfo",
    "RemoteURLError",
    "build_repo_link",
    "parse_remote_url",
    "SSHAgentMissingError",
    "SSHCheckError",
    "check_ssh_keys_available",
]
