"""Structured patch representation shared by the parser and the applier.

A parsed patch is a list of ``PatchFile`` values. ``PatchFile`` is a union of
one variant per change type, each carrying exactly the paths that change type
needs. ``MalformedFile`` holds sections whose declared type is missing a
required path so the applier can report them per file.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import ClassVar


class PatchStructureError(Exception):
    """Raised when a change descriptor is built without its required paths."""


class LineKind(str, Enum):
    CONTEXT = " "
    ADDITION = "+"
    DELETION = "-"


class ChangeType(str, Enum):
    MODIFY = "modify"
    ADD = "add"
    DELETE = "delete"
    RENAME = "rename"


class MessageKind(str, Enum):
    ADD = "add"
    ADD_RECONSTRUCTED = "add_reconstructed"
    DELETE = "delete"
    DELETE_MISSING = "delete_missing"
    RENAME = "rename"
    RENAME_SOURCE_MISSING = "rename_source_missing"
    MODIFY = "modify"
    WARN = "warn"
    ERROR = "error"


class ErrorKind(str, Enum):
    STRUCTURE = "structure"
    CONTEXT_MISMATCH = "context_mismatch"
    DELETE_MISMATCH = "delete_mismatch"
    HUNK_COUNT = "hunk_count"
    MISSING_SOURCE = "missing_source"
    MISSING_TARGET = "missing_target"
    BOUNDARY = "boundary"
    ENCODING = "encoding"
    IO = "io"


@dataclass(frozen=True, slots=True)
class PatchLine:
    kind: LineKind
    text: str


@dataclass(frozen=True, slots=True)
class PatchHunk:
    old_start: int
    old_count: int
    new_start: int
    new_count: int
    lines: tuple[PatchLine, ...] = ()
    section: str = ""

    def actual_counts(self) -> tuple[int, int]:
        """Return ``(old, new)`` line counts implied by the hunk body."""

        old = sum(1 for line in self.lines if line.kind is not LineKind.ADDITION)
        new = sum(1 for line in self.lines if line.kind is not LineKind.DELETION)
        return old, new

    def counts_match(self) -> bool:
        return self.actual_counts() == (self.old_count, self.new_count)

    def result_lines(self) -> list[str]:
        """Context and addition lines, i.e. this hunk's share of the new file."""

        return [line.text for line in self.lines if line.kind is not LineKind.DELETION]


@dataclass(frozen=True, slots=True)
class AddFile:
    new_path: str
    hunks: tuple[PatchHunk, ...] = ()

    change_type: ClassVar[ChangeType] = ChangeType.ADD

    def __post_init__(self) -> None:
        if not self.new_path:
            raise PatchStructureError("Add missing new path")

    @property
    def old_path(self) -> None:
        return None

    @property
    def display_path(self) -> str:
        return self.new_path


@dataclass(frozen=True, slots=True)
class DeleteFile:
    old_path: str
    hunks: tuple[PatchHunk, ...] = ()

    change_type: ClassVar[ChangeType] = ChangeType.DELETE

    def __post_init__(self) -> None:
        if not self.old_path:
            raise PatchStructureError("Delete missing old path")

    @property
    def new_path(self) -> None:
        return None

    @property
    def display_path(self) -> str:
        return self.old_path


@dataclass(frozen=True, slots=True)
class RenameFile:
    old_path: str
    new_path: str
    hunks: tuple[PatchHunk, ...] = ()

    change_type: ClassVar[ChangeType] = ChangeType.RENAME

    def __post_init__(self) -> None:
        if not self.old_path or not self.new_path:
            raise PatchStructureError("Rename missing paths")
        if self.old_path == self.new_path:
            raise PatchStructureError("Rename source and destination are identical")

    @property
    def display_path(self) -> str:
        return self.new_path


@dataclass(frozen=True, slots=True)
class ModifyFile:
    old_path: str | None
    new_path: str | None
    hunks: tuple[PatchHunk, ...] = ()

    change_type: ClassVar[ChangeType] = ChangeType.MODIFY

    def __post_init__(self) -> None:
        if not self.old_path and not self.new_path:
            raise PatchStructureError("Modify missing path")

    @property
    def target_path(self) -> str:
        return self.new_path or self.old_path or ""

    @property
    def display_path(self) -> str:
        return self.target_path


@dataclass(frozen=True, slots=True)
class MalformedFile:
    """A parsed section whose declared change type lacks a required path."""

    declared: ChangeType
    reason: str
    old_path: str | None = None
    new_path: str | None = None
    hunks: tuple[PatchHunk, ...] = ()

    @property
    def change_type(self) -> ChangeType:
        return self.declared

    @property
    def display_path(self) -> str:
        return self.new_path or self.old_path or ""


PatchFile = AddFile | DeleteFile | RenameFile | ModifyFile | MalformedFile


@dataclass(frozen=True, slots=True)
class PatchMessage:
    kind: MessageKind
    path: str
    text: str
    error: ErrorKind | None = None


@dataclass(slots=True)
class PatchApplyResult:
    """Ordered report of one apply run."""

    success: bool = True
    entries: list[PatchMessage] = field(default_factory=list)

    @property
    def messages(self) -> list[str]:
        return [entry.text for entry in self.entries]

    @property
    def failures(self) -> list[PatchMessage]:
        return [entry for entry in self.entries if entry.error is not None]

    def extend(self, ok: bool, entries: list[PatchMessage]) -> None:
        if not ok:
            self.success = False
        self.entries.extend(entries)


__all__ = [
    "AddFile",
    "ChangeType",
    "DeleteFile",
    "ErrorKind",
    "LineKind",
    "MalformedFile",
    "MessageKind",
    "ModifyFile",
    "PatchApplyResult",
    "PatchFile",
    "PatchHunk",
    "PatchLine",
    "PatchMessage",
    "PatchStructureError",
    "RenameFile",
]
