"""Shared test fixtures for maiass tests."""

import io
import os
import subprocess
from collections.abc import Callable, Generator
from pathlib import Path

import pytest
from rich.console import Console
from typer.testing import CliRunner

from maiass.config import ENV_OVERRIDES
from maiass.output import OutputContext
from maiass.prompts import Prompter


def _git(cwd: Path, *args: str) -> str:
    result = subprocess.run(
        ["git", *args],
        cwd=cwd,
        check=True,
        capture_output=True,
        text=True,
    )
    return result.stdout.strip()


class ScriptedReader:
    """Line reader that replays canned answers, then raises EOFError."""

    def __init__(self, answers: list[str]) -> None:
        self.answers = list(answers)
        self.prompts: list[str] = []

    def __call__(self, prompt: str) -> str:
        self.prompts.append(prompt)
        if not self.answers:
            raise EOFError
        return self.answers.pop(0)


@pytest.fixture(autouse=True)
def clean_maiass_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep the developer's MAIASS_* environment out of tests."""
    for key in ENV_OVERRIDES:
        monkeypatch.delenv(key, raising=False)


@pytest.fixture
def runner() -> CliRunner:
    """Create CLI test runner."""
    return CliRunner()


@pytest.fixture
def git_cmd(temp_git_repo: Path) -> Callable[..., str]:
    """Run a git command in the temporary repository and return stdout."""

    def run(*args: str) -> str:
        return _git(temp_git_repo, *args)

    return run


@pytest.fixture
def temp_git_repo(tmp_path: Path) -> Generator[Path, None, None]:
    """Create a temporary git repository.

    Initializes a git repo on ``master`` with user config and an initial commit.
    Changes cwd to the repo directory for the duration of the test.
    """
    repo = tmp_path / "repo"
    repo.mkdir()
    _git(repo, "init")
    _git(repo, "symbolic-ref", "HEAD", "refs/heads/master")
    _git(repo, "config", "user.email", "test@test.com")
    _git(repo, "config", "user.name", "Test User")
    _git(repo, "config", "commit.gpgsign", "false")
    _git(repo, "config", "tag.gpgsign", "false")

    # Create initial commit
    (repo / "README.md").write_text("# Test\n")
    _git(repo, "add", ".")
    _git(repo, "commit", "-m", "Initial commit")

    original_cwd = os.getcwd()
    os.chdir(repo)
    try:
        yield repo
    finally:
        os.chdir(original_cwd)


@pytest.fixture
def develop_repo(temp_git_repo: Path) -> Path:
    """Temporary repository with a ``develop`` branch checked out."""
    _git(temp_git_repo, "checkout", "-b", "develop")
    return temp_git_repo


@pytest.fixture
def bare_remote(develop_repo: Path, tmp_path: Path) -> Path:
    """Bare repository registered as ``origin`` with master and develop pushed."""
    remote = tmp_path / "origin.git"
    subprocess.run(
        ["git", "init", "--bare", str(remote)],
        check=True,
        capture_output=True,
    )
    _git(develop_repo, "remote", "add", "origin", str(remote))
    _git(develop_repo, "push", "origin", "master", "develop")
    _git(develop_repo, "branch", "--set-upstream-to=origin/develop", "develop")
    return remote


@pytest.fixture
def console_buffer() -> io.StringIO:
    return io.StringIO()


@pytest.fixture
def output_ctx(console_buffer: io.StringIO) -> OutputContext:
    """Output context writing to an in-memory buffer."""
    console = Console(file=console_buffer, no_color=True, width=120)
    return OutputContext(console=console)


@pytest.fixture
def make_prompter(output_ctx: OutputContext) -> Callable[..., Prompter]:
    """Factory for prompters fed from a scripted list of answers."""

    def make(answers: list[str] | None = None, silent: bool = False) -> Prompter:
        return Prompter(output_ctx.console, silent=silent, reader=ScriptedReader(answers or []))

    return make


@pytest.fixture
def write_manifest(temp_git_repo: Path) -> Callable[..., Path]:
    """Factory writing a minimal package.json, committed by default."""

    def write(version: str, commit: bool = True) -> Path:
        path = temp_git_repo / "package.json"
        path.write_text(f'{{\n  "name": "demo",\n  "version": "{version}"\n}}\n')
        if commit:
            _git(temp_git_repo, "add", "package.json")
            _git(temp_git_repo, "commit", "-m", "Add package manifest")
        return path

    return write
