"""Apply parsed patches to a directory tree.

Files are processed strictly in patch order. Every file produces a
``FileOutcome``; a failure on one file marks the overall result as failed but
never stops the run. Writes go through a temp file and a single replace, so a
file whose hunks do not match is left exactly as it was.
"""

from __future__ import annotations

import logging
import shutil
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path

from gitpatch.config import Settings
from gitpatch.patch.fs import FsBoundary, FsViolationError, ensure_parent, read_text_exact, write_atomic
from gitpatch.patch.models import (
    AddFile,
    DeleteFile,
    ErrorKind,
    LineKind,
    MalformedFile,
    MessageKind,
    ModifyFile,
    PatchApplyResult,
    PatchFile,
    PatchHunk,
    PatchMessage,
    RenameFile,
)
from gitpatch.patch.parser import parse_patch

_LOGGER = logging.getLogger(__name__)

DEFAULT_TAB_WIDTH = 4


class PatchApplyError(Exception):
    """Raised when a file's patch cannot be applied cleanly."""

    def __init__(self, message: str, kind: ErrorKind) -> None:
        super().__init__(message)
        self.kind = kind


@dataclass(frozen=True, slots=True)
class FileOutcome:
    ok: bool
    entries: tuple[PatchMessage, ...]


class PatchApplier:
    """Apply ``PatchFile`` descriptors under one target directory."""

    def __init__(self, boundary: FsBoundary, settings: Settings | None = None) -> None:
        self.boundary = boundary
        self.settings = settings or Settings()

    def apply(self, files: Sequence[PatchFile]) -> PatchApplyResult:
        result = PatchApplyResult()
        for file in files:
            outcome = self.apply_file(file)
            for entry in outcome.entries:
                _LOGGER.debug("%s (error=%s)", entry.text, entry.error)
            result.extend(outcome.ok, list(outcome.entries))
        return result

    def apply_file(self, file: PatchFile) -> FileOutcome:
        try:
            if isinstance(file, AddFile):
                return self._apply_add(file)
            if isinstance(file, DeleteFile):
                return self._apply_delete(file)
            if isinstance(file, RenameFile):
                return self._apply_rename(file)
            if isinstance(file, ModifyFile):
                return self._apply_modify(file)
            if isinstance(file, MalformedFile):
                raise PatchApplyError(file.reason, ErrorKind.STRUCTURE)
            raise PatchApplyError(f"unsupported change descriptor {type(file).__name__}", ErrorKind.STRUCTURE)
        except PatchApplyError as exc:
            return _failure(file.display_path, str(exc), exc.kind)
        except FsViolationError as exc:
            return _failure(file.display_path, str(exc), ErrorKind.BOUNDARY)
        except UnicodeError as exc:
            message = f"cannot {_codec_action(exc)} as {self.settings.encoding}: {exc}"
            return _failure(file.display_path, message, ErrorKind.ENCODING)
        except OSError as exc:
            return _failure(file.display_path, str(exc), ErrorKind.IO)

    def _apply_add(self, file: AddFile) -> FileOutcome:
        target = self.boundary.resolve(file.new_path)
        self._check_counts(file.hunks)
        if target.is_dir():
            raise PatchApplyError(f"target {file.new_path} is a directory", ErrorKind.IO)
        write_atomic(target, self._reconstruct(file.hunks), self.settings.encoding)
        return FileOutcome(True, (_message(MessageKind.ADD, file.new_path, f"[ADD] {file.new_path}"),))

    def _apply_delete(self, file: DeleteFile) -> FileOutcome:
        target = self.boundary.resolve(file.old_path, follow_symlinks=False)
        if target.is_dir() and not target.is_symlink():
            raise PatchApplyError(f"target {file.old_path} is a directory", ErrorKind.IO)
        if target.exists() or target.is_symlink():
            target.unlink()
            return FileOutcome(True, (_message(MessageKind.DELETE, file.old_path, f"[DEL] {file.old_path}"),))
        text = f"[DEL] {file.old_path} (already missing)"
        return FileOutcome(True, (_message(MessageKind.DELETE_MISSING, file.old_path, text),))

    def _apply_rename(self, file: RenameFile) -> FileOutcome:
        source = self.boundary.resolve(file.old_path, follow_symlinks=False)
        destination = self.boundary.resolve(file.new_path, follow_symlinks=False)
        ensure_parent(destination)

        if not (source.is_file() or source.is_symlink()):
            text = f"[REN] Source missing: {file.old_path}"
            entry = _message(MessageKind.RENAME_SOURCE_MISSING, file.old_path, text, ErrorKind.MISSING_SOURCE)
            return FileOutcome(False, (entry,))

        if file.hunks:
            self._check_counts(file.hunks)
            patched = self._patch_text(read_text_exact(source, self.settings.encoding), file.hunks)
            write_atomic(destination, patched, self.settings.encoding)
            shutil.copymode(source, destination)
            source.unlink()
        else:
            source.replace(destination)

        text = f"[REN] {file.old_path} -> {file.new_path}"
        return FileOutcome(True, (_message(MessageKind.RENAME, file.new_path, text),))

    def _apply_modify(self, file: ModifyFile) -> FileOutcome:
        relative = file.target_path
        target = self.boundary.resolve(relative)
        self._check_counts(file.hunks)
        if target.is_dir():
            raise PatchApplyError(f"target {relative} is a directory", ErrorKind.IO)

        if not target.exists():
            write_atomic(target, self._reconstruct(file.hunks), self.settings.encoding)
            warning = _message(
                MessageKind.WARN,
                relative,
                f"[WARN] {relative} not found; creating new file from patch contents.",
                ErrorKind.MISSING_TARGET,
            )
            added = _message(MessageKind.ADD_RECONSTRUCTED, relative, f"[ADD*] {relative}")
            return FileOutcome(False, (warning, added))

        original = read_text_exact(target, self.settings.encoding)
        write_atomic(target, self._patch_text(original, file.hunks), self.settings.encoding)
        return FileOutcome(True, (_message(MessageKind.MODIFY, relative, f"[MOD] {relative}"),))

    def _reconstruct(self, hunks: Sequence[PatchHunk]) -> str:
        newline = self.settings.new_file_newline.terminator()
        return "".join(f"{text}{newline}" for hunk in hunks for text in hunk.result_lines())

    def _patch_text(self, original: str, hunks: Sequence[PatchHunk]) -> str:
        newline = detect_newline(original)
        source = split_lines(original)
        output = apply_hunks(source, hunks, tab_width=self.settings.tab_width)
        return newline.join(output) + newline

    def _check_counts(self, hunks: Sequence[PatchHunk]) -> None:
        if not self.settings.strict_hunk_counts:
            return
        for hunk in hunks:
            if not hunk.counts_match():
                old, new = hunk.actual_counts()
                raise PatchApplyError(
                    f"Hunk @@ -{hunk.old_start},{hunk.old_count} +{hunk.new_start},{hunk.new_count} @@ "
                    f"has {old} old and {new} new lines",
                    ErrorKind.HUNK_COUNT,
                )


def apply_patch_files(
    files: Sequence[PatchFile], target_dir: Path | str, settings: Settings | None = None
) -> PatchApplyResult:
    """Apply parsed ``files`` under ``target_dir`` and report per-file results."""

    settings = settings or Settings()
    boundary = FsBoundary(target_dir, settings.fs_mode)
    return PatchApplier(boundary, settings).apply(files)


def apply_patch_text(
    patch_text: str, target_dir: Path | str, settings: Settings | None = None
) -> PatchApplyResult:
    """Parse ``patch_text`` and apply it under ``target_dir``."""

    return apply_patch_files(parse_patch(patch_text), target_dir, settings)


def detect_newline(text: str) -> str:
    return "\r\n" if "\r\n" in text else "\n"


def split_lines(text: str) -> list[str]:
    """Split on LF after folding CRLF, without a spurious trailing entry."""

    lines = text.replace("\r\n", "\n").split("\n")
    if lines and lines[-1] == "":
        lines.pop()
    return lines


def apply_hunks(
    source: Sequence[str], hunks: Sequence[PatchHunk], *, tab_width: int = DEFAULT_TAB_WIDTH
) -> list[str]:
    """Return ``source`` with ``hunks`` applied in order.

    A single cursor walks the source across all hunks; lines between hunks are
    copied through. Context and deleted lines must match under
    ``normalized_equals`` or ``PatchApplyError`` is raised.
    """

    output: list[str] = []
    cursor = 0

    for hunk in hunks:
        start_idx = max(0, hunk.old_start - 1)
        while cursor < start_idx and cursor < len(source):
            output.append(source[cursor])
            cursor += 1

        idx = cursor
        for line in hunk.lines:
            if line.kind is LineKind.CONTEXT:
                if idx >= len(source) or not normalized_equals(source[idx], line.text, tab_width):
                    raise PatchApplyError(f"Context mismatch near line {idx + 1}", ErrorKind.CONTEXT_MISMATCH)
                output.append(line.text)
                idx += 1
            elif line.kind is LineKind.DELETION:
                if idx >= len(source) or not normalized_equals(source[idx], line.text, tab_width):
                    raise PatchApplyError(f"Delete mismatch near line {idx + 1}", ErrorKind.DELETE_MISMATCH)
                idx += 1
            else:
                output.append(line.text)
        cursor = idx

    output.extend(source[cursor:])
    return output


def normalized_equals(left: str, right: str, tab_width: int = DEFAULT_TAB_WIDTH) -> bool:
    if left == right:
        return True
    return _normalize_whitespace(left, tab_width) == _normalize_whitespace(right, tab_width)


def _normalize_whitespace(line: str, tab_width: int) -> str:
    return line.replace("\t", " " * tab_width).rstrip()


def _message(kind: MessageKind, path: str, text: str, error: ErrorKind | None = None) -> PatchMessage:
    return PatchMessage(kind=kind, path=path, text=text, error=error)


def _codec_action(exc: UnicodeError) -> str:
    return "encode" if isinstance(exc, UnicodeEncodeError) else "decode"


def _failure(path: str, message: str, kind: ErrorKind) -> FileOutcome:
    return FileOutcome(False, (_message(MessageKind.ERROR, path, f"[{path}] Error: {message}", kind),))


__all__ = [
    "FileOutcome",
    "PatchApplier",
    "PatchApplyError",
    "apply_hunks",
    "apply_patch_files",
    "apply_patch_text",
    "detect_newline",
    "normalized_equals",
    "split_lines",
]
