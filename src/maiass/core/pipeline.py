"""Release pipeline orchestrator.

Runs the phases ``ValidatingBranch -> Committing -> MergingToDevelop ->
ManagingVersion`` in order. Each phase returns a ``PhaseResult``; the run
stops on cancellation (exit 0) or failure (exit 1). Failures are never rolled
back: the user is left on whatever branch the failing git command left them.
"""

import logging
from datetime import date
from pathlib import Path

from ..config import MaiassConfig, PatchTagging
from ..constants import BUMP_COMMIT_MESSAGE, RELEASE_BRANCH_PREFIX, TAG_MESSAGE
from ..models import (
    BranchRole,
    BumpKind,
    CurrentVersion,
    PhaseResult,
    PhaseStatus,
    PipelineOptions,
    PipelineResult,
    PipelineRunContext,
    PipelineState,
    SemVer,
    TaggingDecision,
)
from ..output import OutputContext
from ..prompts import Prompter
from ..services import git
from ..services.git import GitError
from .branch_classifier import classify_branch
from .changelog import update_changelogs
from .commit_stage import CommitStage
from .version_manager import (
    VersionError,
    bump_kind_of,
    get_current_version,
    parse_version,
    resolve_target,
    update_version_files,
    validate_bump_request,
)

logger = logging.getLogger(__name__)


def decide_tagging(kind: BumpKind, force_tag: bool, mode: PatchTagging) -> TaggingDecision:
    """Decide whether a bump gets a release branch and tag.

    Forced tagging always wins. Major and minor bumps always tag. Only patch
    bumps consult the configured mode, and only they may prompt.
    """
    if force_tag:
        return TaggingDecision(should_tag=True, needs_prompt=False)
    if kind in (BumpKind.MAJOR, BumpKind.MINOR):
        return TaggingDecision(should_tag=True, needs_prompt=False)
    if mode == PatchTagging.ALL:
        return TaggingDecision(should_tag=True, needs_prompt=False)
    if mode == PatchTagging.NONE:
        return TaggingDecision(should_tag=False, needs_prompt=False)
    return TaggingDecision(should_tag=False, needs_prompt=True)


class PipelineOrchestrator:
    """Sequence branch validation, commit, merge and version management."""

    def __init__(
        self,
        config: MaiassConfig,
        repo_root: Path,
        prompter: Prompter,
        ctx: OutputContext,
        commit_stage: CommitStage | None = None,
        today: date | None = None,
    ) -> None:
        self.config = config
        self.repo_root = repo_root
        self.prompter = prompter
        self.ctx = ctx
        self.commit_stage = commit_stage or CommitStage(config, repo_root, prompter, ctx)
        self.today = today

    @property
    def develop(self) -> str:
        return self.config.branches.develop

    @property
    def remote(self) -> str:
        return self.config.git.remote

    def _confirm(
        self, run: PipelineRunContext, question: str, default: bool = False, auto: bool = True
    ) -> bool:
        """Confirm, answering ``auto`` without asking when the run is forced."""
        if run.force:
            self.ctx.info(f"{question} {'yes' if auto else 'no'} (forced)")
            return auto
        return self.prompter.confirm(question, default=default, silent_answer=auto)

    def _has_remote(self) -> bool:
        return git.remote_exists(self.remote, cwd=self.repo_root)

    def _current_version(self) -> CurrentVersion:
        return get_current_version(
            self.config.version_dir(self.repo_root), self.config.version, cwd=self.repo_root
        )

    def run(self, options: PipelineOptions) -> PipelineResult:
        """Run the pipeline; never raises for git or version failures."""
        if not options.commits_only:
            try:
                validate_bump_request(options.bump)
            except VersionError as e:
                self.ctx.fail(str(e))
                return PipelineResult(PipelineState.FAILED, message=str(e))

        try:
            branch = git.get_current_branch(cwd=self.repo_root)
        except GitError as e:
            self.ctx.fail(str(e))
            return PipelineResult(PipelineState.FAILED, message=str(e))

        run = PipelineRunContext(
            original_branch=classify_branch(branch, self.config.branches),
            develop_branch=self.develop,
            master_branch=self.config.branches.master,
            staging_branch=self.config.branches.staging,
            dry_run=options.dry_run,
            force=options.force,
            silent=options.silent,
        )

        phases = [
            (PipelineState.VALIDATING_BRANCH, "Validating branch", self._validate_branch),
            (PipelineState.COMMITTING, "Committing changes", self._commit),
            (PipelineState.MERGING_TO_DEVELOP, "Merging to develop", self._merge_to_develop),
        ]
        for state, title, phase in phases:
            run.state = state
            self.ctx.phase(title)
            result = self._guard(phase, run, options)
            if result.status != PhaseStatus.SUCCESS or result.stop:
                return self._finish(run, result)

        run.state = PipelineState.MANAGING_VERSION
        self.ctx.phase("Managing version")
        try:
            return self._manage_version(run, options)
        except (GitError, VersionError) as e:
            self.ctx.fail(str(e))
            return PipelineResult(
                PipelineState.FAILED, message=str(e), final_branch=self._branch_or_none()
            )

    def _guard(self, phase, run: PipelineRunContext, options: PipelineOptions) -> PhaseResult:
        try:
            return phase(run, options)
        except (GitError, VersionError) as e:
            self.ctx.fail(str(e))
            return PhaseResult.failed(str(e))

    def _branch_or_none(self) -> str | None:
        try:
            return git.get_current_branch(cwd=self.repo_root) or None
        except GitError:
            return None

    def _finish(self, run: PipelineRunContext, result: PhaseResult) -> PipelineResult:
        if result.status == PhaseStatus.FAILED:
            state = PipelineState.FAILED
        elif result.status == PhaseStatus.CANCELLED:
            state = PipelineState.CANCELLED
            self.ctx.warn(result.message)
        else:
            state = PipelineState.DONE
            if result.message:
                self.ctx.info(result.message)
        return PipelineResult(
            state,
            message=result.message,
            final_branch=self._branch_or_none(),
            details={"stopped_at": run.state.value},
        )

    def _validate_branch(self, run: PipelineRunContext, options: PipelineOptions) -> PhaseResult:
        info = run.original_branch
        role = info.role
        self.ctx.info(f"Current branch: {info.name} ({role.value})")
        if info.ticket_id:
            self.ctx.info(f"Ticket: {info.ticket_id}")

        protected = (BranchRole.MASTER, BranchRole.RELEASE, BranchRole.STAGING)
        if role in protected and options.commits_only:
            self.ctx.warn(f"Staying on {info.name}: commits-only runs do not switch branches")
        elif role in (BranchRole.MASTER, BranchRole.RELEASE):
            self.ctx.warn(f"You are on {info.name}; work should continue on {self.develop}")
            if not self._confirm(run, f"Continue and switch to {self.develop}?"):
                return PhaseResult.cancelled("Cancelled on protected branch")
            git.checkout(self.develop, cwd=self.repo_root)
        elif role == BranchRole.STAGING:
            self.ctx.info(f"Switching from {info.name} to {self.develop}")
            git.checkout(self.develop, cwd=self.repo_root)
        elif role in (
            BranchRole.DEVELOP,
            BranchRole.FEATURE,
            BranchRole.BUGFIX,
            BranchRole.HOTFIX,
            BranchRole.CHORE,
            BranchRole.DOCS,
            BranchRole.OTHER,
        ):
            pass
        else:
            raise ValueError(f"Unhandled branch role: {role}")

        run.merge_source = git.get_current_branch(cwd=self.repo_root)
        return PhaseResult.ok()

    def _commit(self, run: PipelineRunContext, options: PipelineOptions) -> PhaseResult:
        result = self.commit_stage.run(
            ticket_id=run.original_branch.ticket_id, auto_stage=options.auto_stage
        )
        if result.failed:
            return PhaseResult.failed(result.error or "Commit failed")
        if options.commits_only:
            return PhaseResult.ok("Commits-only run complete", stop=True)

        if not git.get_working_tree_status(cwd=self.repo_root).is_clean:
            return PhaseResult.ok(
                "Working tree has uncommitted changes; skipping merge and version management",
                stop=True,
            )
        return PhaseResult.ok()

    def _decide_tagging(self, options: PipelineOptions) -> TaggingDecision:
        explicit = parse_version(options.bump)
        if explicit is None:
            kind = BumpKind(options.bump.lower())
        else:
            kind = bump_kind_of(self._current_version().value, explicit, options.bump)
        return decide_tagging(kind, options.tag, self.config.version.patch_tagging)

    def _resolve_tag_prompt(self, run: PipelineRunContext, decision: TaggingDecision) -> None:
        if decision.needs_prompt:
            should_tag = self._confirm(
                run, "Create a release branch and tag for this patch release?", auto=False
            )
            decision = TaggingDecision(should_tag=should_tag, needs_prompt=False)
        run.tagging = decision

    def _merge_to_develop(self, run: PipelineRunContext, options: PipelineOptions) -> PhaseResult:
        source = run.merge_source
        decision = self._decide_tagging(options)

        if source == self.develop:
            self._resolve_tag_prompt(run, decision)
            self.ctx.info(f"Already on {self.develop}; nothing to merge")
            return PhaseResult.ok()

        if not git.branch_exists(self.develop, cwd=self.repo_root):
            self.ctx.warn(f"Branch {self.develop} does not exist; skipping version management")
            return PhaseResult.ok("Simplified workflow complete", stop=True)

        if not self._confirm(run, f"Merge {source} into {self.develop}?", default=True):
            return PhaseResult.cancelled(f"Merge into {self.develop} declined")
        self._resolve_tag_prompt(run, decision)

        git.checkout(self.develop, cwd=self.repo_root)
        if self._has_remote() and git.remote_branch_exists(
            self.remote, self.develop, cwd=self.repo_root
        ):
            git.pull(self.remote, self.develop, cwd=self.repo_root)
        git.merge_no_ff(source, cwd=self.repo_root)
        self.ctx.done(f"Merged {source} into {self.develop}")
        return PhaseResult.ok()

    def _manage_version(self, run: PipelineRunContext, options: PipelineOptions) -> PipelineResult:
        branch = git.get_current_branch(cwd=self.repo_root)
        if branch != self.develop:
            message = f"Expected to be on {self.develop} for version management, found {branch}"
            self.ctx.fail(message)
            return PipelineResult(PipelineState.FAILED, message=message, final_branch=branch)

        current = self._current_version()
        if not current.has_version_files:
            self.ctx.warn("No version files detected; skipping version management")
            return PipelineResult(
                PipelineState.DONE, message="No version files detected", final_branch=branch
            )

        target = resolve_target(current.value, options.bump)
        previous = current.value
        self.ctx.info(f"Version: {previous} → {target}")
        if run.dry_run:
            return PipelineResult(
                PipelineState.DONE,
                message="Dry run: no files changed",
                final_branch=branch,
                previous_version=str(previous),
                new_version=str(target),
            )

        tagging = run.tagging or decide_tagging(
            bump_kind_of(previous, target, options.bump),
            options.tag,
            self.config.version.patch_tagging,
        )
        if tagging.should_tag:
            self._release_workflow(current, target)
            self._return_to(run.original_branch.name)
        else:
            self._simple_bump(current, target, run)

        final_branch = git.get_current_branch(cwd=self.repo_root)
        self.ctx.done(f"Released {target} (now on {final_branch})")
        return PipelineResult(
            PipelineState.DONE,
            message=f"Version {target}",
            final_branch=final_branch,
            previous_version=str(previous),
            new_version=str(target),
            tagged=tagging.should_tag,
        )

    def _apply_version(self, current: CurrentVersion, target: SemVer) -> None:
        results = update_version_files(current.files, target, self.config.version.constant_name)
        for result in results:
            if result.success:
                self.ctx.info(f"Updated {result.file.filename}")
            else:
                self.ctx.warn(f"Could not update {result.file.filename}: {result.error}")
        update_changelogs(
            self.repo_root, self.config.changelog, target, current.value, today=self.today
        )
        git.stage_all(cwd=self.repo_root)
        git.commit_message(BUMP_COMMIT_MESSAGE.format(version=target), cwd=self.repo_root)

    def _simple_bump(self, current: CurrentVersion, target: SemVer, run: PipelineRunContext) -> None:
        self._apply_version(current, target)
        if self._has_remote():
            git.push(self.remote, self.develop, set_upstream=True, cwd=self.repo_root)
        self._return_to(run.original_branch.name)

    def _release_workflow(self, current: CurrentVersion, target: SemVer) -> None:
        version = str(target)
        release_branch = f"{RELEASE_BRANCH_PREFIX}{version}"
        if git.tag_exists(version, cwd=self.repo_root):
            raise VersionError(f"Tag {version} already exists")

        git.create_branch(release_branch, cwd=self.repo_root)
        self._apply_version(current, target)
        git.create_annotated_tag(version, TAG_MESSAGE.format(version=version), cwd=self.repo_root)
        self.ctx.done(f"Tagged {version}")

        has_remote = self._has_remote()
        if has_remote:
            git.push(self.remote, release_branch, set_upstream=True, cwd=self.repo_root)

        git.checkout(self.develop, cwd=self.repo_root)
        if has_remote and git.remote_branch_exists(self.remote, self.develop, cwd=self.repo_root):
            git.pull(self.remote, self.develop, cwd=self.repo_root)
        git.merge_no_ff(release_branch, cwd=self.repo_root)
        if has_remote:
            git.push(self.remote, self.develop, set_upstream=True, cwd=self.repo_root)
            git.push_tags(self.remote, cwd=self.repo_root)

    def _return_to(self, branch: str) -> None:
        if not branch or branch == git.get_current_branch(cwd=self.repo_root):
            return
        if git.branch_exists(branch, cwd=self.repo_root):
            git.checkout(branch, cwd=self.repo_root)
