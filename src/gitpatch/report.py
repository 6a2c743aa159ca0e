"""Serializable views of parse and apply results for ``--json`` output."""

from __future__ import annotations

from collections.abc import Sequence

from pydantic import BaseModel, Field

from gitpatch.patch.models import (
    ChangeType,
    ErrorKind,
    MalformedFile,
    MessageKind,
    PatchApplyResult,
    PatchFile,
    PatchHunk,
)


class HunkSummary(BaseModel):
    old_start: int
    old_count: int
    new_start: int
    new_count: int
    section: str = ""
    lines: int = Field(description="Number of body lines in the hunk.")
    counts_match: bool = Field(description="True if declared counts agree with the body.")

    @classmethod
    def from_hunk(cls, hunk: PatchHunk) -> HunkSummary:
        return cls(
            old_start=hunk.old_start,
            old_count=hunk.old_count,
            new_start=hunk.new_start,
            new_count=hunk.new_count,
            section=hunk.section,
            lines=len(hunk.lines),
            counts_match=hunk.counts_match(),
        )


class FileSummary(BaseModel):
    change_type: ChangeType
    old_path: str | None = None
    new_path: str | None = None
    hunks: list[HunkSummary] = Field(default_factory=list)
    problem: str | None = Field(default=None, description="Structural problem found while parsing.")

    @classmethod
    def from_file(cls, file: PatchFile) -> FileSummary:
        return cls(
            change_type=file.change_type,
            old_path=file.old_path,
            new_path=file.new_path,
            hunks=[HunkSummary.from_hunk(hunk) for hunk in file.hunks],
            problem=file.reason if isinstance(file, MalformedFile) else None,
        )

    def describe(self) -> str:
        if self.change_type is ChangeType.RENAME:
            paths = f"{self.old_path} -> {self.new_path}"
        else:
            paths = self.new_path or self.old_path or "<unknown>"
        line = f"{self.change_type.value:<7} {paths} ({len(self.hunks)} hunk(s))"
        if self.problem:
            line += f" [{self.problem}]"
        return line


class ParseReport(BaseModel):
    files: list[FileSummary] = Field(description="One entry per parsed file section.")

    @classmethod
    def from_files(cls, files: Sequence[PatchFile]) -> ParseReport:
        return cls(files=[FileSummary.from_file(file) for file in files])


class MessageModel(BaseModel):
    kind: MessageKind
    path: str
    text: str
    error: ErrorKind | None = None


class ApplyReport(BaseModel):
    success: bool
    run_id: str | None = None
    messages: list[MessageModel] = Field(description="Per-file messages in processing order.")

    @classmethod
    def from_result(cls, result: PatchApplyResult, run_id: str | None = None) -> ApplyReport:
        return cls(
            success=result.success,
            run_id=run_id,
            messages=[
                MessageModel(kind=entry.kind, path=entry.path, text=entry.text, error=entry.error)
                for entry in result.entries
            ],
        )


__all__ = ["ApplyReport", "FileSummary", "HunkSummary", "MessageModel", "ParseReport"]
