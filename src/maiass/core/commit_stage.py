"""Stage-and-commit decision tree.

The working tree is inspected once per decision: clean trees succeed
immediately, staged-only trees go straight to message entry, and trees with
unstaged or untracked files ask whether to stage everything first.
"""

import logging
import tempfile
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from rich.markup import escape
from rich.panel import Panel

from ..config import AIConfig, AIMode, CommitMessageStyle, MaiassConfig
from ..output import OutputContext
from ..prompts import Prompter
from ..services import git
from ..services.ai import suggest_commit_message
from ..services.devlog import DevlogNotifier
from ..services.git import GitError

logger = logging.getLogger(__name__)

Suggester = Callable[[str, CommitMessageStyle, AIConfig], str | None]


class CommitOutcome(str, Enum):
    """Terminal states of the commit stage."""

    NOTHING_TO_COMMIT = "nothing_to_commit"
    COMMITTED = "committed"
    DECLINED_STAGING = "declined_staging"
    FAILED = "failed"


@dataclass
class CommitResult:
    outcome: CommitOutcome
    message: str | None = None
    sha: str | None = None
    pushed: bool = False
    error: str | None = None

    @property
    def failed(self) -> bool:
        return self.outcome == CommitOutcome.FAILED


def apply_ticket_prefix(message: str, ticket_id: str | None) -> str:
    """Prefix the message with the ticket ID unless it already starts with it."""
    if not ticket_id or message.startswith(ticket_id):
        return message
    return f"{ticket_id} {message}"


class CommitStage:
    """Drive staging, commit message entry, commit and optional push."""

    def __init__(
        self,
        config: MaiassConfig,
        repo_root: Path,
        prompter: Prompter,
        ctx: OutputContext,
        suggester: Suggester | None = None,
        notifier: DevlogNotifier | None = None,
    ) -> None:
        self.config = config
        self.repo_root = repo_root
        self.prompter = prompter
        self.ctx = ctx
        self.suggester = suggester or suggest_commit_message
        self.notifier = notifier

    def run(self, ticket_id: str | None = None, auto_stage: bool = False) -> CommitResult:
        try:
            status = git.get_working_tree_status(cwd=self.repo_root)
            if status.is_clean:
                self.ctx.info("Nothing to commit, working tree clean")
                return CommitResult(CommitOutcome.NOTHING_TO_COMMIT)

            if status.has_unstaged_or_untracked:
                pending = len(status.unstaged) + len(status.untracked)
                self.ctx.info(f"{pending} unstaged or untracked file(s)")
                if auto_stage:
                    self.ctx.info("Auto-staging all changes")
                    git.stage_all(cwd=self.repo_root)
                elif self.prompter.confirm("Do you want to stage and commit them?"):
                    git.stage_all(cwd=self.repo_root)
                elif not status.has_staged:
                    self.ctx.warn("No changes staged")
                    return CommitResult(CommitOutcome.DECLINED_STAGING)
                else:
                    self.ctx.info("Committing staged changes only")
                status = git.get_working_tree_status(cwd=self.repo_root)

            if not status.has_staged:
                self.ctx.info("Nothing staged to commit")
                return CommitResult(CommitOutcome.NOTHING_TO_COMMIT)

            message = self.acquire_message(ticket_id)
            if not message:
                self.ctx.fail("Commit message cannot be empty")
                return CommitResult(CommitOutcome.FAILED, error="empty commit message")

            sha = self._commit(message)
        except GitError as e:
            self.ctx.fail(str(e))
            return CommitResult(CommitOutcome.FAILED, error=str(e))

        self.ctx.done(f"Committed {sha[:7]}")
        if self.notifier is not None:
            self.notifier.notify(message, ticket_id)

        result = CommitResult(CommitOutcome.COMMITTED, message=message, sha=sha)
        try:
            result.pushed = self._maybe_push()
        except GitError as e:
            self.ctx.fail(str(e))
            result.outcome = CommitOutcome.FAILED
            result.error = str(e)
        return result

    def acquire_message(self, ticket_id: str | None = None) -> str:
        """Obtain a commit message from the AI suggestion flow or manual entry."""
        message = self._ai_message()
        if message is None:
            message = self.prompter.multiline(
                "Enter commit message (finish with three empty lines):"
            )
        message = message.strip()
        if not message:
            return ""
        return apply_ticket_prefix(message, ticket_id)

    def _ai_message(self) -> str | None:
        ai = self.config.ai
        if not ai.enabled:
            return None
        if ai.mode == AIMode.AUTOSUGGEST:
            wanted = True
        else:
            wanted = self.prompter.confirm("Would you like to use AI to suggest a commit message?")
        if not wanted:
            return None

        diff = git.get_diff(staged=True, cwd=self.repo_root)
        suggestion = self.suggester(diff, ai.commit_message_style, ai)
        if not suggestion:
            self.ctx.warn("AI suggestion unavailable, falling back to manual entry")
            return None

        if not self.ctx.json_mode:
            self.ctx.console.print(Panel(escape(suggestion), title="AI suggestion"))
        choice = self.prompter.choose(
            "Use this AI suggestion? [Y/n/e=edit]",
            ["yes", "no", "edit"],
            default="yes",
        )
        if choice == "yes":
            return suggestion
        if choice == "edit":
            edited = self.prompter.multiline(
                "Edit the message (three empty lines to finish, blank keeps the suggestion):"
            )
            return edited.strip() or suggestion
        return None

    def _commit(self, message: str) -> str:
        with tempfile.NamedTemporaryFile(
            mode="w", suffix=".txt", delete=False, encoding="utf-8"
        ) as f:
            f.write(message + "\n")
            msg_file = Path(f.name)
        try:
            return git.commit_file(msg_file, cwd=self.repo_root)
        finally:
            msg_file.unlink(missing_ok=True)

    def _maybe_push(self) -> bool:
        remote = self.config.git.remote
        if not git.remote_exists(remote, cwd=self.repo_root):
            return False
        if not self.config.git.autopush_commits and not self.prompter.confirm(
            "Do you want to push this commit to remote?"
        ):
            return False
        branch = git.get_current_branch(cwd=self.repo_root)
        git.push(remote, branch, set_upstream=True, cwd=self.repo_root)
        self.ctx.done(f"Pushed {branch} to {remote}")
        return True
