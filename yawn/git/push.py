"""Push execution and the post-push report."""

from dataclasses import dataclass
from typing import Optional

from yawn.git.client import GitClient, GitError
from yawn.git.remote import RemoteInfo, RemoteURLError, build_repo_link, parse_remote_url


@dataclass
class PushResult:
    """What happened on one push attempt."""
    success: bool
    branch: str = ""
    remote_url: str = ""
    commit_hash: str = ""
    remote_info: Optional[RemoteInfo] = None
    repo_link: str = ""


class Pusher:
    """Runs the configured push command and gathers details for the report."""

    def __init__(self, git: GitClient):
        self.git = git

    def has_remotes(self) -> bool:
        return self.git.has_remotes()

    def execute_push(self, command: str) -> PushResult:
        """Push, raising GitError on failure. Report details are best effort."""
        parts = command.split()
        if not parts:
            raise GitError("Push command is empty")
        if len(parts) < 2 or parts[0] != 'git' or parts[1] != 'push':
            raise GitError(f"Invalid push command format: expected 'git push ...', got '{command}'", command=command)

        self.git.push(command)
        result = PushResult(success=True)

        try:
            result.branch = self.git.get_current_branch()
        except GitError:
            pass

        try:
            result.remote_url = self.git.get_remote_url("origin")
        except GitError:
            pass

        if result.remote_url:
            try:
                result.remote_info = parse_remote_url(result.remote_url)
            except RemoteURLError:
                result.remote_info = None
            if result.remote_info:
                info = result.remote_info
                result.repo_link = build_repo_link(info.host, info.owner, info.repo)

        try:
            result.commit_hash = self.git.get_last_commit_hash()
        except GitError:
            pass

        return result
