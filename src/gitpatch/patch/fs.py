"""Target-tree path resolution and atomic file writes."""

from __future__ import annotations

import os
import shutil
import tempfile
from pathlib import Path

from gitpatch.config import FsMode


class FsViolationError(Exception):
    """Raised when a patch path escapes the target directory."""


class FsBoundary:
    """Resolve patch-relative paths under a target directory.

    In ``restricted`` mode every resolved path must stay inside the target
    directory; ``unrestricted`` mode only joins and normalizes.
    """

    def __init__(self, root: Path | str, fs_mode: FsMode = FsMode.RESTRICTED) -> None:
        self.fs_mode = fs_mode
        self.root = Path(root).resolve()

    def resolve(self, raw_path: str | Path, *, follow_symlinks: bool = True) -> Path:
        """Return the absolute path for ``raw_path`` relative to the root.

        With ``follow_symlinks=False`` the last component is kept as named, so
        a symlink there is returned itself rather than the file it points to.
        """

        path = Path(raw_path)
        if not path.is_absolute():
            path = self.root / path
        if follow_symlinks or path.name in ("", ".", ".."):
            resolved = path.resolve(strict=False)
        else:
            resolved = path.parent.resolve(strict=False) / path.name

        if self.fs_mode == FsMode.RESTRICTED and not self._is_within(resolved):
            raise FsViolationError(f"path '{raw_path}' escapes target root {self.root}")
        return resolved

    def _is_within(self, path: Path) -> bool:
        try:
            path.relative_to(self.root)
            return True
        except ValueError:
            return False


def ensure_parent(path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)


def read_text_exact(path: Path, encoding: str = "utf-8") -> str:
    """Read ``path`` without newline translation so CRLF survives."""

    with path.open("r", encoding=encoding, newline="") as handle:
        return handle.read()


def write_atomic(path: Path, content: str, encoding: str = "utf-8") -> int:
    """Write ``content`` verbatim via a temp file in the same directory.

    Returns the number of bytes written. An existing file keeps its permission
    bits; the temp file is removed if the final replace fails.
    """

    ensure_parent(path)
    tmp_path: Path | None = None
    try:
        with tempfile.NamedTemporaryFile(
            "w", encoding=encoding, newline="", dir=path.parent, delete=False
        ) as tmp:
            tmp_path = Path(tmp.name)
            tmp.write(content)
            tmp.flush()
            os.fsync(tmp.fileno())
        if path.exists():
            shutil.copymode(path, tmp_path)
        tmp_path.replace(path)
    except BaseException:
        if tmp_path is not None:
            tmp_path.unlink(missing_ok=True)
        raise
    return len(content.encode(encoding))


__all__ = ["FsBoundary", "FsViolationError", "ensure_parent", "read_text_exact", "write_atomic"]
