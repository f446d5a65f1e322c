"""Git Client - run git commands and interpret their results."""

import os
import subprocess
from dataclasses import dataclass, field
from typing import Optional

from yawn.output import debug


@dataclass
class FileChange:
    """Represents a single file's staged changes."""
    path: str
    additions: int
    deletions: int
    binary: bool = False


@dataclass
class DiffStats:
    """Line counts over all staged files."""
    files: list[FileChange] = field(default_factory=list)

    @property
    def additions(self) -> int:
        return sum(f.additions for f in self.files)

    @property
    def deletions(self) -> int:
        return sum(f.deletions for f in self.files)


class GitError(Exception):
    """Raised when git operations fail."""

    def __init__(self, message: str, command: str = "", output: str = "", returncode: Optional[int] = None):
        super().__init__(message)
        self.command = command
        self.output = output
        self.returncode = returncode


def parse_numstat(output: str) -> DiffStats:
    """Parse 'git diff --numstat' output. Binary files report '-' counts."""
    files = []
    for line in output.splitlines():
        parts = line.split('\t')
        if len(parts) < 3:
            continue
        binary = parts[0] == '-' or parts[1] == '-'
        try:
            additions = int(parts[0]) if parts[0] != '-' else 0
            deletions = int(parts[1]) if parts[1] != '-' else 0
        except ValueError:
            continue
        files.append(FileChange(path=parts[2], additions=additions, deletions=deletions, binary=binary))
    return DiffStats(files=files)


class GitClient:
    """Version-control operations for one repository, backed by the git CLI."""

    def __init__(self, repo_path: Optional[str] = None, verbose: bool = False):
        self.verbose = verbose
        self.repo_path = repo_path or self._find_repo_root()

    def _debug(self, message: str) -> None:
        debug("GIT", message, self.verbose)

    def _run_git(self, *args: str, cwd: Optional[str] = None) -> str:
        """Run a git command and return its combined, stripped output."""
        command = f"git {' '.join(args)}"
        try:
            result = subprocess.run(
                ['git', *args],
                cwd=cwd if cwd is not None else self.repo_path,
                env={**os.environ, 'GIT_PAGER': 'cat'},
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                text=True,
                encoding='utf-8',
                errors='replace',
            )
        except FileNotFoundError:
            raise GitError("Git is not installed or not in PATH", command=command)
        except OSError as e:
            raise GitError(f"Failed to execute {command}: {e}", command=command)

        output = result.stdout.strip()
        if result.returncode != 0:
            raise GitError(
                f"Git command failed: {command} (exit {result.returncode})" + (f"\n{output}" if output else ""),
                command=command,
                output=output,
                returncode=result.returncode,
            )
        return output

    def _check_quiet(self, *args: str) -> bool:
        """Run a '--quiet' style check: a failure with no output means 'yes'."""
        try:
            self._run_git(*args)
        except GitError as e:
            if e.returncode is not None and e.output == "":
                return True
            raise
        return False

    def _find_repo_root(self) -> str:
        try:
            return self._run_git('rev-parse', '--show-toplevel', cwd=os.getcwd())
        except GitError as e:
            if e.returncode is None:
                raise
            raise GitError("Not inside a git repository", command=e.command, output=e.output, returncode=e.returncode)

    # -- queries ----------------------------------------------------------

    def has_staged_changes(self) -> bool:
        self._debug("Checking for staged changes...")
        staged = self._check_quiet('diff', '--cached', '--no-color', '--quiet')
        self._debug("Found staged changes" if staged else "No staged changes found")
        return staged

    def has_unstaged_changes(self) -> bool:
        """Modified tracked files or untracked files that are not ignored."""
        self._debug("Checking for unstaged changes (modified and untracked)...")
        if self._check_quiet('diff', '--no-color', '--quiet'):
            self._debug("Found unstaged modified changes")
            return True

        if self._run_git('ls-files', '--others', '--exclude-standard'):
            self._debug("Found untracked files")
            return True

        self._debug("No unstaged changes found")
        return False

    def has_any_changes(self) -> bool:
        return self.has_unstaged_changes() or self.has_staged_changes()

    def get_staged_diff(self) -> str:
        return self._run_git('diff', '--cached', '--no-color')

    def get_current_branch(self) -> str:
        return self._run_git('rev-parse', '--abbrev-ref', 'HEAD')

    def get_last_commit_hash(self) -> str:
        return self._run_git('rev-parse', 'HEAD')

    def get_diff_numstat_summary(self) -> tuple[int, int]:
        """Total (added, removed) lines across staged files."""
        stats = parse_numstat(self._run_git('diff', '--cached', '--numstat', '--no-color'))
        self._debug(f"Diff stats: {stats.additions} additions, {stats.deletions} deletions")
        return stats.additions, stats.deletions

    def has_remotes(self) -> bool:
        return self._run_git('remote') != ""

    def get_remote_url(self, remote: str = "origin") -> str:
        return self._run_git('remote', 'get-url', remote or "origin")

    # -- actions ----------------------------------------------------------

    def stage_all(self) -> None:
        self._run_git('add', '-A')

    def commit(self, message: str) -> None:
        self._run_git('commit', '-m', message)

    def push(self, command: str) -> None:
        """Run a 'git push ...' command string."""
        parts = command.split()
        if len(parts) < 2 or parts[0] != 'git':
            raise GitError(f"Invalid push command format: expected 'git push ...', got '{command}'", command=command)
        self._debug(f"Running: {command}")
        self._run_git(*parts[1:])
