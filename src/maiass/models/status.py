"""Working tree status model."""

from dataclasses import dataclass, field


@dataclass(frozen=True)
class FileChange:
    """A single path reported by ``git status --porcelain``.

    ``change`` is the single status letter for the relevant column
    (``M``, ``A``, ``D``, ``R``, ``C``, ``U`` or ``?`` for untracked).
    """

    path: str
    change: str


@dataclass(frozen=True)
class WorkingTreeStatus:
    """Snapshot of the working tree; re-query after staging or committing."""

    staged: list[FileChange] = field(default_factory=list)
    unstaged: list[FileChange] = field(default_factory=list)
    untracked: list[FileChange] = field(default_factory=list)

    @property
    def is_clean(self) -> bool:
        return not (self.staged or self.unstaged or self.untracked)

    @property
    def has_staged(self) -> bool:
        return bool(self.staged)

    @property
    def has_unstaged_or_untracked(self) -> bool:
        return bool(self.unstaged or self.untracked)
