"""Remote URL parsing and repository web links."""

from dataclasses import dataclass
from urllib.parse import urlsplit


class RemoteURLError(ValueError):
    """Raised when a remote URL cannot be turned into host/owner/repo."""
    pass


@dataclass(frozen=True)
class RemoteInfo:
    """Parsed pieces of a git remote URL."""
    host: str
    owner: str
    repo: str
    url: str = ""


def _split_repo_path(path: str) -> tuple[str, str]:
    """Split 'owner/repo(.git)' into its two segments."""
    trimmed = path.strip('/')
    if trimmed.endswith('.git'):
        trimmed = trimmed[:-len('.git')]

    segments = trimmed.split('/')
    if len(segments) != 2 or not all(segments):
        raise RemoteURLError(f"Invalid repository path format: {path}")
    return segments[0], segments[1]


def _parse_scp_like(remote_url: str) -> RemoteInfo:
    # user@host:owner/repo.git
    _, _, rest = remote_url.partition('@')
    host, sep, path = rest.partition(':')
    if not sep or not host or not path:
        raise RemoteURLError(f"Invalid SSH URL format: {remote_url}")

    owner, repo = _split_repo_path(path)
    return RemoteInfo(host=host, owner=owner, repo=repo, url=remote_url)


def _parse_with_scheme(remote_url: str) -> RemoteInfo:
    try:
        parts = urlsplit(remote_url)
        host = parts.hostname or ""
    except ValueError as e:
        raise RemoteURLError(f"Failed to parse remote URL {remote_url}: {e}") from e

    if not host:
        raise RemoteURLError(f"Remote URL has no host: {remote_url}")

    owner, repo = _split_repo_path(parts.path)
    return RemoteInfo(host=host, owner=owner, repo=repo, url=remote_url)


def parse_remote_url(remote_url: str) -> RemoteInfo:
    """Parse a git remote URL into host, owner and repo.

    Supported forms:
        git@github.com:owner/repo.git
        ssh://git@example.com:2222/owner/repo.git
        https://gitlab.com/owner/repo
    """
    remote_url = remote_url.strip()
    if not remote_url:
        raise RemoteURLError("Remote URL is empty")

    if '://' in remote_url:
        return _parse_with_scheme(remote_url)
    if '@' in remote_url:
        return _parse_scp_like(remote_url)

    raise RemoteURLError(f"Unrecognized remote URL format: {remote_url}")


def build_repo_link(host: str, owner: str, repo: str) -> str:
    """Build a browsable HTTPS link, or '' when any part is missing."""
    if not host or not owner or not repo:
        return ""
    return f"https://{host}/{owner}/{repo}"

