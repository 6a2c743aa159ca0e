"""Unified diff parsing (``git diff`` flavour).

The parser is deliberately permissive: lines it does not recognise are
skipped and it never raises on malformed input. Sections whose declared change
type is missing a path come back as ``MalformedFile`` so the applier can
report them.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field

from gitpatch.patch.models import (
    AddFile,
    ChangeType,
    DeleteFile,
    LineKind,
    MalformedFile,
    ModifyFile,
    PatchFile,
    PatchHunk,
    PatchLine,
    PatchStructureError,
    RenameFile,
)

_LOGGER = logging.getLogger(__name__)

DEV_NULL = "/dev/null"

_FILE_MARKER = "diff --git "
_GIT_HEADER = re.compile(r"^diff --git a/(.+?) b/(.+)$")
_HUNK_PREFIXES = (" ", "+", "-")


@dataclass(slots=True)
class _HunkDraft:
    old_start: int
    old_count: int
    new_start: int
    new_count: int
    section: str = ""
    lines: list[PatchLine] = field(default_factory=list)
    old_seen: int = 0
    new_seen: int = 0

    def expects_more(self) -> bool:
        return self.old_seen < self.old_count or self.new_seen < self.new_count

    def add(self, kind: LineKind, text: str) -> None:
        self.lines.append(PatchLine(kind=kind, text=text))
        if kind is not LineKind.ADDITION:
            self.old_seen += 1
        if kind is not LineKind.DELETION:
            self.new_seen += 1

    def freeze(self) -> PatchHunk:
        return PatchHunk(
            old_start=self.old_start,
            old_count=self.old_count,
            new_start=self.new_start,
            new_count=self.new_count,
            lines=tuple(self.lines),
            section=self.section,
        )


@dataclass(slots=True)
class _SectionDraft:
    old_path: str | None = None
    new_path: str | None = None
    change_type: ChangeType | None = None
    committed: bool = False
    header_old: str | None = None
    header_new: str | None = None
    hunks: list[_HunkDraft] = field(default_factory=list)

    def commit(self, old_path: str | None, new_path: str | None, change_type: ChangeType) -> None:
        self.old_path = old_path
        self.new_path = new_path
        self.change_type = change_type
        self.committed = True

    def is_empty(self) -> bool:
        return (
            self.old_path is None
            and self.new_path is None
            and not self.hunks
            and self.change_type is not ChangeType.RENAME
        )


class _ParseState:
    """Scan state for a single ``parse_patch`` call."""

    def __init__(self) -> None:
        self.sections: list[_SectionDraft] = []
        self.section: _SectionDraft | None = None
        self.hunk: _HunkDraft | None = None
        self.pending_blanks = 0
        self._reset_staged()

    def _reset_staged(self) -> None:
        self.staged_old: str | None = None
        self.staged_new: str | None = None
        self.staged_type: ChangeType | None = None

    def feed(self, line: str) -> None:
        # Inside a hunk that still expects lines, body lines win over headers
        # so that deleting "-- x" or adding "++ y" is not read as ---/+++.
        if self.hunk is not None and self.hunk.expects_more():
            if line == "":
                # Blank context lines (whitespace stripped by an editor) only
                # count once another body line follows.
                self.pending_blanks += 1
                return
            if line.startswith(_HUNK_PREFIXES):
                self._add_hunk_line(line)
                return
        self.pending_blanks = 0

        if line.startswith(_FILE_MARKER):
            self.open_section(line)
        elif line.startswith("new file mode"):
            self.staged_type = ChangeType.ADD
        elif line.startswith("deleted file mode"):
            self.staged_type = ChangeType.DELETE
        elif line.startswith("rename from "):
            self.staged_type = ChangeType.RENAME
            self.staged_old = line[len("rename from ") :].strip()
        elif line.startswith("rename to "):
            self.staged_type = ChangeType.RENAME
            self.staged_new = line[len("rename to ") :].strip()
        elif line.startswith("--- "):
            if self.section is not None and self.section.committed and self.section.hunks:
                # Plain ``diff -u`` output has no "diff --git" lines between files.
                self._start_section()
            self.staged_old = _normalize_path(line[4:])
        elif line.startswith("+++ "):
            if self.section is None:
                self.section = _SectionDraft()
            self.staged_new = _normalize_path(line[4:])
            self._commit_headers()
        elif line.startswith("@@ "):
            self._open_hunk(line)
        elif self.hunk is not None and line.startswith(_HUNK_PREFIXES):
            self._add_hunk_line(line)

    def open_section(self, line: str) -> None:
        section = self._start_section()
        match = _GIT_HEADER.match(line.rstrip())
        if match:
            section.header_old = match.group(1)
            section.header_new = match.group(2)

    def _start_section(self) -> _SectionDraft:
        self.close_section()
        self.section = _SectionDraft()
        self._reset_staged()
        return self.section

    def close_section(self) -> None:
        section = self.section
        if section is None:
            return
        if not section.committed and self.staged_type is not None:
            # git omits ---/+++ for pure renames and empty adds/deletes.
            kind = self.staged_type
            old = None if kind is ChangeType.ADD else (self.staged_old or section.header_old)
            new = None if kind is ChangeType.DELETE else (self.staged_new or section.header_new)
            section.commit(old, new, kind)
        self.sections.append(section)
        self.section = None
        self.hunk = None

    def _commit_headers(self) -> None:
        assert self.section is not None
        old, new = self.staged_old, self.staged_new
        kind = self.staged_type or _infer_type(old, new)
        self.section.commit(old, new if new is not None else old, kind)

    def _open_hunk(self, line: str) -> None:
        spans = _parse_hunk_header(line)
        if spans is None:
            _LOGGER.debug("ignoring unparseable hunk header: %s", line)
            self.hunk = None
            return
        if self.section is None:
            self.section = _SectionDraft()
        old_start, old_count, new_start, new_count, label = spans
        self.hunk = _HunkDraft(
            old_start=old_start,
            old_count=old_count,
            new_start=new_start,
            new_count=new_count,
            section=label,
        )
        self.section.hunks.append(self.hunk)

    def _add_hunk_line(self, line: str) -> None:
        assert self.hunk is not None
        for _ in range(self.pending_blanks):
            self.hunk.add(LineKind.CONTEXT, "")
        self.pending_blanks = 0
        self.hunk.add(LineKind(line[0]), line[1:])


def parse_patch(text: str) -> list[PatchFile]:
    """Parse unified diff text into one ``PatchFile`` per file section."""

    state = _ParseState()
    for line in text.replace("\r\n", "\n").split("\n"):
        state.feed(line)
    state.close_section()

    files: list[PatchFile] = []
    for section in state.sections:
        if section.is_empty():
            continue
        files.append(_to_patch_file(section))
    return files


def _to_patch_file(section: _SectionDraft) -> PatchFile:
    kind = section.change_type or ChangeType.MODIFY
    hunks = tuple(draft.freeze() for draft in section.hunks)
    for hunk in hunks:
        if not hunk.counts_match():
            _LOGGER.debug(
                "hunk @@ -%d,%d +%d,%d @@ has %s lines",
                hunk.old_start,
                hunk.old_count,
                hunk.new_start,
                hunk.new_count,
                hunk.actual_counts(),
            )

    old_path = section.old_path
    new_path = section.new_path
    try:
        if kind is ChangeType.ADD:
            return AddFile(new_path=new_path or "", hunks=hunks)
        if kind is ChangeType.DELETE:
            return DeleteFile(old_path=old_path or "", hunks=hunks)
        if kind is ChangeType.RENAME and (old_path is None or new_path is None or old_path != new_path):
            return RenameFile(old_path=old_path or "", new_path=new_path or "", hunks=hunks)
        return ModifyFile(old_path=old_path, new_path=new_path, hunks=hunks)
    except PatchStructureError as exc:
        return MalformedFile(declared=kind, reason=str(exc), old_path=old_path, new_path=new_path, hunks=hunks)


def _normalize_path(raw: str) -> str | None:
    path = raw.split("\t")[0].strip()
    if path == DEV_NULL:
        return None
    if path.startswith(("a/", "b/")):
        return path[2:]
    return path


def _infer_type(old_path: str | None, new_path: str | None) -> ChangeType:
    if old_path is None and new_path is not None:
        return ChangeType.ADD
    if old_path is not None and new_path is None:
        return ChangeType.DELETE
    if old_path is not None and new_path is not None and old_path != new_path:
        return ChangeType.RENAME
    return ChangeType.MODIFY


def _parse_hunk_header(line: str) -> tuple[int, int, int, int, str] | None:
    tokens = line.split()
    old_span = next((token for token in tokens if token.startswith("-")), None)
    new_span = next((token for token in tokens if token.startswith("+")), None)
    if old_span is None or new_span is None:
        return None
    try:
        old_start, old_count = _parse_span(old_span)
        new_start, new_count = _parse_span(new_span)
    except ValueError:
        return None
    closing = line.find("@@", 2)
    label = line[closing + 2 :].strip() if closing != -1 else ""
    return old_start, old_count, new_start, new_count, label


def _parse_span(span: str) -> tuple[int, int]:
    parts = span[1:].split(",")
    start = int(parts[0])
    count = int(parts[1]) if len(parts) > 1 else 1
    return start, count


__all__ = ["DEV_NULL", "parse_patch"]
