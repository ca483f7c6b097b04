"""Git operations for maiass.

Every interaction with git goes through ``exec_git``: a single blocking
``git <subcommand> ...`` invocation captured as a ``GitResult``. ``run_git``
layers the common "return stdout or raise ``GitError``" behaviour on top.
"""

import logging
import re
import subprocess
from dataclasses import dataclass
from pathlib import Path

from ..constants import GIT_NETWORK_TIMEOUT, GIT_TIMEOUT
from ..models import FileChange, RemoteInfo, WorkingTreeStatus

logger = logging.getLogger(__name__)

_NETWORK_SUBCOMMANDS = {"pull", "push", "fetch"}

_REMOTE_PATTERNS = {
    "github": re.compile(r"github\.com[:/]([^/]+)/([^/]+?)(?:\.git)?/?$"),
    "bitbucket": re.compile(r"bitbucket\.org[:/]([^/]+)/([^/]+?)(?:\.git)?/?$"),
    "gitlab": re.compile(r"gitlab\.com[:/]([^/]+)/([^/]+?)(?:\.git)?/?$"),
}


class GitError(Exception):
    """Git command failed."""

    def __init__(self, message: str, command: str = "", stderr: str = "") -> None:
        super().__init__(message)
        self.command = command
        self.stderr = stderr


@dataclass(frozen=True)
class GitResult:
    """Captured output of one git invocation."""

    args: tuple[str, ...]
    returncode: int
    stdout: str
    stderr: str

    @property
    def ok(self) -> bool:
        return self.returncode == 0

    @property
    def command(self) -> str:
        return "git " + " ".join(self.args)


def exec_git(*args: str, cwd: Path | None = None, timeout: int | None = None) -> GitResult:
    """Run a git command and capture its output without raising on exit code.

    Args:
        *args: Git subcommand and arguments
        cwd: Working directory
        timeout: Seconds before the command is killed (network commands get longer)

    Raises:
        GitError: If git is missing or the command times out
    """
    if timeout is None:
        timeout = GIT_NETWORK_TIMEOUT if args and args[0] in _NETWORK_SUBCOMMANDS else GIT_TIMEOUT
    logger.debug("git %s", " ".join(args))
    try:
        proc = subprocess.run(
            ["git", *args],
            cwd=cwd,
            capture_output=True,
            text=True,
            timeout=timeout,
        )
    except subprocess.TimeoutExpired as e:
        raise GitError(
            f"git {args[0] if args else ''} timed out after {timeout} seconds",
            command="git " + " ".join(args),
        ) from e
    except FileNotFoundError:
        raise GitError("git executable not found") from None
    return GitResult(args=tuple(args), returncode=proc.returncode, stdout=proc.stdout, stderr=proc.stderr)


def run_git(*args: str, cwd: Path | None = None, check: bool = True) -> str:
    """Run git command and return stripped stdout.

    Args:
        *args: Git subcommand and arguments
        cwd: Working directory
        check: Raise GitError on non-zero exit

    Returns:
        Stripped stdout

    Raises:
        GitError: If the command fails and check is True
    """
    result = exec_git(*args, cwd=cwd)
    if check and not result.ok:
        stderr = result.stderr.strip() or result.stdout.strip()
        raise GitError(
            f"git {args[0]} failed: {stderr}",
            command=result.command,
            stderr=stderr,
        )
    return result.stdout.strip()


def get_repo_root(cwd: Path | None = None) -> Path:
    """Get git repository root directory.

    Raises:
        GitError: If not inside a git repository
    """
    try:
        return Path(run_git("rev-parse", "--show-toplevel", cwd=cwd))
    except GitError:
        raise GitError("Not a git repository") from None


def get_current_branch(cwd: Path | None = None) -> str:
    """Get current branch name (empty string on a detached HEAD)."""
    return run_git("branch", "--show-current", cwd=cwd)


def get_head_sha(cwd: Path | None = None) -> str:
    return run_git("rev-parse", "HEAD", cwd=cwd)


def get_diff(staged: bool = False, cwd: Path | None = None) -> str:
    """Get diff output for staged or unstaged changes."""
    args = ["diff", "--staged"] if staged else ["diff"]
    return run_git(*args, cwd=cwd)


def get_status_porcelain(cwd: Path | None = None) -> str:
    """Get ``git status --porcelain`` output.

    Not stripped: the first column of the first line is significant.
    """
    result = exec_git("status", "--porcelain", cwd=cwd)
    if not result.ok:
        raise GitError(
            f"git status failed: {result.stderr.strip()}",
            command=result.command,
            stderr=result.stderr.strip(),
        )
    return result.stdout


def parse_status_porcelain(output: str) -> WorkingTreeStatus:
    """Parse two-column porcelain status into a WorkingTreeStatus."""
    staged: list[FileChange] = []
    unstaged: list[FileChange] = []
    untracked: list[FileChange] = []
    for line in output.splitlines():
        if len(line) < 4:
            continue
        index, worktree, path = line[0], line[1], line[3:]
        if " -> " in path:
            path = path.split(" -> ", 1)[1]
        if index == "?" and worktree == "?":
            untracked.append(FileChange(path, "?"))
            continue
        if index not in (" ", "?"):
            staged.append(FileChange(path, index))
        if worktree not in (" ", "?"):
            unstaged.append(FileChange(path, worktree))
    return WorkingTreeStatus(staged=staged, unstaged=unstaged, untracked=untracked)


def get_working_tree_status(cwd: Path | None = None) -> WorkingTreeStatus:
    return parse_status_porcelain(get_status_porcelain(cwd=cwd))


def stage_all(cwd: Path | None = None) -> None:
    """Stage all changes including untracked files."""
    run_git("add", "-A", cwd=cwd)


def has_staged_changes(cwd: Path | None = None) -> bool:
    """Check if there are staged changes."""
    result = exec_git("diff", "--staged", "--quiet", cwd=cwd)
    return result.returncode != 0


def commit_file(message_file: Path, cwd: Path | None = None) -> str:
    """Create commit using message from file.

    Args:
        message_file: Path to file containing commit message
        cwd: Working directory

    Returns:
        SHA of created commit
    """
    run_git("commit", "-F", str(message_file), cwd=cwd)
    return get_head_sha(cwd=cwd)


def commit_message(message: str, cwd: Path | None = None) -> str:
    """Create commit with a single-line message."""
    run_git("commit", "-m", message, cwd=cwd)
    return get_head_sha(cwd=cwd)


def branch_exists(name: str, cwd: Path | None = None) -> bool:
    """Check whether a local branch exists."""
    return exec_git("show-ref", "--verify", "--quiet", f"refs/heads/{name}", cwd=cwd).ok


def list_remotes(cwd: Path | None = None) -> list[str]:
    out = run_git("remote", cwd=cwd, check=False)
    return [line for line in out.splitlines() if line]


def remote_exists(remote: str = "origin", cwd: Path | None = None) -> bool:
    return remote in list_remotes(cwd=cwd)


def get_remote_url(remote: str = "origin", cwd: Path | None = None) -> str | None:
    result = exec_git("remote", "get-url", remote, cwd=cwd)
    if not result.ok:
        return None
    return result.stdout.strip() or None


def parse_remote_url(url: str) -> RemoteInfo:
    """Extract provider, owner and repository name from a remote URL."""
    for provider, pattern in _REMOTE_PATTERNS.items():
        match = pattern.search(url)
        if match:
            return RemoteInfo(url=url, provider=provider, owner=match.group(1), repo=match.group(2))
    return RemoteInfo(url=url)


def get_remote_info(remote: str = "origin", cwd: Path | None = None) -> RemoteInfo | None:
    url = get_remote_url(remote, cwd=cwd)
    if url is None:
        return None
    return parse_remote_url(url)


def checkout(branch: str, cwd: Path | None = None) -> None:
    run_git("checkout", branch, cwd=cwd)


def create_branch(name: str, start_point: str | None = None, cwd: Path | None = None) -> None:
    """Create and switch to a new branch."""
    args = ["checkout", "-b", name]
    if start_point:
        args.append(start_point)
    run_git(*args, cwd=cwd)


def pull(remote: str, branch: str, cwd: Path | None = None) -> None:
    run_git("pull", "--no-rebase", "--no-edit", remote, branch, cwd=cwd)


def merge_no_ff(branch: str, cwd: Path | None = None) -> None:
    """Merge branch into the current branch, always creating a merge commit."""
    run_git("merge", "--no-ff", "--no-edit", branch, cwd=cwd)


def push(
    remote: str, branch: str, set_upstream: bool = False, cwd: Path | None = None
) -> None:
    args = ["push"]
    if set_upstream:
        args.append("--set-upstream")
    run_git(*args, remote, branch, cwd=cwd)


def push_tags(remote: str, cwd: Path | None = None) -> None:
    run_git("push", remote, "--tags", cwd=cwd)


def list_tags(cwd: Path | None = None) -> list[str]:
    out = run_git("tag", "-l", cwd=cwd)
    return [line.strip() for line in out.splitlines() if line.strip()]


def tag_exists(name: str, cwd: Path | None = None) -> bool:
    return ref_exists(f"refs/tags/{name}", cwd=cwd)


def create_annotated_tag(name: str, message: str, cwd: Path | None = None) -> None:
    run_git("tag", "-a", name, "-m", message, cwd=cwd)


def ref_exists(ref: str, cwd: Path | None = None) -> bool:
    return exec_git("rev-parse", "--verify", "--quiet", ref, cwd=cwd).ok


def get_log(pretty: str, revision_range: str | None = None, cwd: Path | None = None) -> str:
    """Get ``git log`` output in the given pretty format.

    Args:
        pretty: Format string passed as ``--pretty=format:<pretty>``
        revision_range: e.g. ``1.2.3..HEAD``; full history of HEAD when None
    """
    args = ["log", f"--pretty=format:{pretty}"]
    if revision_range:
        args.append(revision_range)
    return run_git(*args, cwd=cwd)


def get_author(cwd: Path | None = None) -> str | None:
    name = run_git("config", "user.name", cwd=cwd, check=False)
    return name or None


def remote_branch_exists(remote: str, branch: str, cwd: Path | None = None) -> bool:
    """Check the remote for a branch head (network call)."""
    return exec_git("ls-remote", "--exit-code", "--heads", remote, branch, cwd=cwd).ok


def find_commit_by_subject(subject: str, cwd: Path | None = None) -> str | None:
    """SHA of the newest commit whose subject is exactly ``subject``, or None."""
    out = run_git("log", "--format=%H%x1f%s", "-F", f"--grep={subject}", cwd=cwd, check=False)
    for line in out.splitlines():
        sha, _, found = line.partition("\x1f")
        if found == subject:
            return sha
    return None
