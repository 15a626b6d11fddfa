"""Repository URL parsing shared by the identifier adapters."""

import re

from netscore.models.schemas import GITHUB_HOST, RepoRef

# https://github.com/owner/repo
# https://github.com/owner/repo.git
# https://github.com/owner/repo/tree/main/subpath
# git://github.com/owner/repo.git
# ssh://git@github.com/owner/repo.git
# git@github.com:owner/repo.git
GITHUB_PATTERN = re.compile(
    r"^(?:(?:https?|git|ssh)://)?(?:[^@/\s]+@)?(?:www\.)?github\.com[/:]([^/\s]+)/([^/\s?#]+?)(?:\.git)?(?:[/?#].*)?$",
    re.IGNORECASE,
)


def normalize_repository_url(url: str) -> str:
    """Normalize an npm ``repository.url`` value into a browsable URL.

    - strips a ``git+`` prefix
    - converts the ``git:`` scheme (and scp-style ``git@github.com:``) to https
    - drops a trailing ``.git`` suffix and trailing slashes
    - expands the ``github:owner/repo`` shorthand
    """
    url = url.strip()
    if url.startswith("git+"):
        url = url[len("git+"):]
    if url.startswith("git://"):
        url = "https://" + url[len("git://"):]
    elif url.startswith("git@github.com:"):
        url = "https://github.com/" + url[len("git@github.com:"):]
    elif url.startswith("ssh://git@github.com/"):
        url = "https://github.com/" + url[len("ssh://git@github.com/"):]
    elif url.startswith("github:"):
        url = "https://github.com/" + url[len("github:"):]

    url = url.rstrip("/")
    if url.endswith(".git"):
        url = url[: -len(".git")]
    return url


def parse_repo_url(url: str) -> RepoRef | None:
    """Parse a GitHub repository URL into a RepoRef.

    Args:
        url: Repository URL to parse.

    Returns:
        RepoRef if the URL can be parsed, None otherwise.
    """
    if not url:
        return None

    url = url.strip()
    if url.startswith("git+"):
        url = url[len("git+"):]

    match = GITHUB_PATTERN.match(url)
    if not match:
        return None
    return RepoRef(host=GITHUB_HOST, owner=match.group(1), repo=match.group(2))
