"""Unified diff parsing and application.

``parse_patch`` turns patch text into ``PatchFile`` descriptors;
``apply_patch_files`` applies them under a target directory and returns a
``PatchApplyResult``.
"""

from __future__ import annotations

from gitpatch.patch.applier import PatchApplier, PatchApplyError, apply_patch_files, apply_patch_text
from gitpatch.patch.fs import FsBoundary, FsViolationError
from gitpatch.patch.models import (
    AddFile,
    ChangeType,
    DeleteFile,
    ErrorKind,
    LineKind,
    MalformedFile,
    MessageKind,
    ModifyFile,
    PatchApplyResult,
    PatchFile,
    PatchHunk,
    PatchLine,
    PatchMessage,
    PatchStructureError,
    RenameFile,
)
from gitpatch.patch.parser import parse_patch

__all__ = [
    "AddFile",
    "ChangeType",
    "DeleteFile",
    "ErrorKind",
    "FsBoundary",
    "FsViolationError",
    "LineKind",
    "MalformedFile",
    "MessageKind",
    "ModifyFile",
    "PatchApplier",
    "PatchApplyError",
    "PatchApplyResult",
    "PatchFile",
    "PatchHunk",
    "PatchLine",
    "PatchMessage",
    "PatchStructureError",
    "RenameFile",
    "apply_patch_files",
    "apply_patch_text",
    "parse_patch",
]
