"""Data models for gk."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Generic, TypeVar, Union

T = TypeVar("T")


@dataclass(frozen=True)
class CommitRecord:
    """One commit as printed by git log."""

    full_hash: str
    short_hash: str
    subject: str
    relative_time: str
    author: str

    def one_line(self) -> str:
        return f"{self.short_hash} - {self.subject} ({self.relative_time})"


class ChangeKind(Enum):
    MODIFIED = "modified"
    ADDED = "new file"
    DELETED = "deleted"
    RENAMED = "renamed"
    OTHER = "changed"


@dataclass(frozen=True)
class StagedFileEntry:
    """A path staged in the index."""

    path: str
    status: ChangeKind
    orig_path: str | None = None

    @property
    def paths(self) -> tuple[str, ...]:
        """Every index path the entry touches; a rename stages both sides."""
        if self.orig_path:
            return (self.orig_path, self.path)
        return (self.path,)

    @property
    def label(self) -> str:
        if self.orig_path:
            return f"{self.orig_path} -> {self.path} ({self.status.value})"
        return f"{self.path} ({self.status.value})"


@dataclass(frozen=True)
class StashEntry:
    """One entry of git stash list."""

    ref: str
    message: str
    relative_time: str
    branch: str | None = None


@dataclass(frozen=True)
class RemoteBranchInfo:
    """Local branch compared against its remote counterpart."""

    local_branch: str
    remote: str
    remote_branch: str
    ahead: int = 0
    behind: int = 0
    ahead_commits: tuple[CommitRecord, ...] = ()
    behind_commits: tuple[CommitRecord, ...] = ()

    @property
    def full_remote_ref(self) -> str:
        return f"{self.remote}/{self.remote_branch}"

    @property
    def in_sync(self) -> bool:
        return self.ahead == 0 and self.behind == 0


@dataclass(frozen=True)
class WorkingStatus:
    """File counts of the working tree and index."""

    modified: int = 0
    staged: int = 0
    untracked: int = 0

    @property
    def has_changes(self) -> bool:
        """Tracked changes that a plain stash push would save."""
        return self.modified > 0 or self.staged > 0

    @property
    def is_clean(self) -> bool:
        return not self.has_changes and self.untracked == 0


@dataclass(frozen=True)
class BranchEntry:
    name: str
    is_current: bool = False


@dataclass(frozen=True)
class RemoteRef:
    """A remote-tracking branch, kept split so branch names may contain '/'."""

    remote: str
    branch: str

    @property
    def full_ref(self) -> str:
        return f"{self.remote}/{self.branch}"


class ResetMode(Enum):
    SOFT = "soft"
    MIXED = "mixed"
    HARD = "hard"

    @property
    def flag(self) -> str:
        return f"--{self.value}"

    @property
    def dangerous(self) -> bool:
        return self is ResetMode.HARD

    @property
    def description(self) -> str:
        return _RESET_DESCRIPTIONS[self]


_RESET_DESCRIPTIONS = {
    ResetMode.SOFT: "keep changes staged (ready to commit again)",
    ResetMode.MIXED: "keep changes but unstage them",
    ResetMode.HARD: "discard all changes",
}


@dataclass(frozen=True)
class Item(Generic[T]):
    """A real menu choice wrapping a user-visible value."""

    value: T


@dataclass(frozen=True)
class Control:
    """A reserved menu choice that never collides with a real value."""

    name: str


SELECT_ALL = Control("select-all")
CLEAR_ALL = Control("clear-all")
BACK = Control("back")
CUSTOM = Control("custom")

Choice = Union[Item[Any], Control]


class Outcome(Enum):
    SUCCESS = "success"
    CANCELLED = "cancelled"
    FAILED = "failed"


@dataclass(frozen=True)
class Result:
    """What a tool reports back to the command line entry point."""

    outcome: Outcome
    message: str | None = None
    mutated: bool = False

    @property
    def exit_code(self) -> int:
        if self.outcome is Outcome.SUCCESS:
            return 0
        if self.outcome is Outcome.CANCELLED:
            return 1 if self.mutated else 0
        return 1

    @classmethod
    def success(cls, message: str | None = None, mutated: bool = False) -> "Result":
        return cls(Outcome.SUCCESS, message, mutated)

    @classmethod
    def cancelled(cls, message: str | None = None, mutated: bool = False) -> "Result":
        return cls(Outcome.CANCELLED, message, mutated)

    @classmethod
    def failed(cls, message: str | None = None, mutated: bool = False) -> "Result":
        return cls(Outcome.FAILED, message, mutated)


@dataclass
class BatchResult(Generic[T]):
    """Per-item outcome of a batch of mutating commands, in attempt order.

    Each entry pairs an item with ``None`` on success or git's error text.
    """

    outcomes: list[tuple[T, str | None]] = field(default_factory=list)

    def add(self, item: T, error: str | None = None) -> None:
        self.outcomes.append((item, error))

    @property
    def succeeded(self) -> list[T]:
        return [item for item, error in self.outcomes if error is None]

    @property
    def failed(self) -> list[tuple[T, str]]:
        return [(item, error) for item, error in self.outcomes if error is not None]

    @property
    def ok(self) -> bool:
        return not self.failed

    def failed_items(self) -> list[T]:
        return [item for item, _ in self.failed]
