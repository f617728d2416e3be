# Filesystem seam.
#
# Every service touches the disk only through a FileSystem instance so tests
# can swap in tests.fs_mock.MemoryFileSystem.  The surface is small: stat
# without following symlinks, one-level directory listing, whole-file reads
# and atomic writes.
#
# Error contract:
#   stat / scandir / read_* raise OSError; callers decide whether the failure
#   is ignorable.  scandir reports per-entry stat failures as ``stat=None``
#   instead of raising, so one bad entry never hides its siblings.

from __future__ import annotations

import os
import stat as statmod
import tempfile
from dataclasses import dataclass


@dataclass(slots=True, frozen=True)
class StatResult:
    is_dir: bool
    is_file: bool
    is_symlink: bool
    size: int
    atime: float = 0.0


@dataclass(slots=True, frozen=True)
class DirEntry:
    path: str
    name: str
    stat: StatResult | None

    @property
    def is_hidden(self) -> bool:
        return self.name.startswith(".")


def _to_stat(st: os.stat_result) -> StatResult:
    mode = st.st_mode
    return StatResult(
        is_dir=statmod.S_ISDIR(mode),
        is_file=statmod.S_ISREG(mode),
        is_symlink=statmod.S_ISLNK(mode),
        size=st.st_size,
        atime=st.st_atime,
    )


class FileSystem:
    """Thin wrapper over ``os`` used by every service."""

    def home(self) -> str:
        return os.path.expanduser("~")

    def expanduser(self, path: str) -> str:
        return os.path.expanduser(path)

    def absolute(self, path: str) -> str:
        return os.path.abspath(path)

    def realpath(self, path: str) -> str:
        return os.path.realpath(path)

    def exists(self, path: str) -> bool:
        return os.path.lexists(path)

    def stat(self, path: str) -> StatResult:
        return _to_stat(os.lstat(path))

    def scandir(self, path: str) -> list[DirEntry]:
        entries: list[DirEntry] = []
        with os.scandir(path) as it:
            for entry in it:
                try:
                    st: StatResult | None = _to_stat(entry.stat(follow_symlinks=False))
                except OSError:
                    st = None
                entries.append(DirEntry(path=entry.path, name=entry.name, stat=st))
        return entries

    def read_text(self, path: str) -> str:
        with open(path, encoding="utf-8") as f:
            return f.read()

    def read_bytes(self, path: str) -> bytes:
        with open(path, "rb") as f:
            return f.read()

    def makedirs(self, path: str) -> None:
        os.makedirs(path, exist_ok=True)

    def write_text_atomic(self, path: str, text: str) -> None:
        """Write *text* to a sibling temp file, then rename it over *path*."""
        directory = os.path.dirname(path) or "."
        self.makedirs(directory)
        fd, tmp_path = tempfile.mkstemp(prefix=".tmp-", dir=directory)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(text)
            os.replace(tmp_path, path)
        except BaseException:
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise


DEFAULT_FS = FileSystem()
