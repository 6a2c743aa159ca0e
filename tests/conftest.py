import pathlib
import shutil
import sys

import pytest

PROJECT_ROOT = pathlib.Path(__file__).resolve().parents[1]
SRC_PATH = PROJECT_ROOT / "src"

# Ensure src/ is importable when running tests without installing the package.
if str(SRC_PATH) not in sys.path:
    sys.path.insert(0, str(SRC_PATH))

from gitpatch.config import FsMode, Settings  # noqa: E402
from gitpatch.patch.fs import FsBoundary  # noqa: E402


@pytest.fixture(autouse=True)
def _isolate_gitpatch_home(monkeypatch: pytest.MonkeyPatch, tmp_path_factory: pytest.TempPathFactory):
    """Point GITPATCH_HOME at a per-test sandbox so we never touch the real home."""

    home = tmp_path_factory.mktemp("gitpatch-home")
    monkeypatch.setenv("GITPATCH_HOME", str(home))
    monkeypatch.delenv("GITPATCH_FS_MODE", raising=False)
    monkeypatch.delenv("GITPATCH_LOG_LEVEL", raising=False)
    yield home
    shutil.rmtree(home, ignore_errors=True)


@pytest.fixture
def gitpatch_home(_isolate_gitpatch_home: pathlib.Path) -> pathlib.Path:
    return _isolate_gitpatch_home


@pytest.fixture
def restricted_boundary(tmp_path: pathlib.Path) -> FsBoundary:
    """Shared restricted FsBoundary rooted in a temporary sandbox."""

    return FsBoundary(tmp_path, FsMode.RESTRICTED)


@pytest.fixture
def lf_settings() -> Settings:
    """Settings that write LF for reconstructed files regardless of platform."""

    return Settings(new_file_newline="lf")


@pytest.fixture
def write_lines():
    """Write ``lines`` to ``path`` joined by ``newline`` with a trailing terminator."""

    def _write(path: pathlib.Path, lines: list[str], newline: str = "\n") -> pathlib.Path:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes((newline.join(lines) + newline).encode("utf-8"))
        return path

    return _write
