from __future__ import annotations

import posixpath
from dataclasses import dataclass, field
from typing_extensions import override

from reclaim.services.fs import DirEntry, FileSystem, StatResult


@dataclass(slots=True)
class _File:
    content: bytes = b""
    size: int = 0
    atime: float = 0.0


@dataclass(slots=True)
class MemoryFileSystem(FileSystem):
    """In-memory FileSystem.  ``~`` expands to ``/mock/home``.

    Failure injection:
      unreadable   paths whose scandir raises PermissionError
      unstatable   paths whose stat raises (listed with ``stat=None``)
      fail_writes  paths whose write_text_atomic raises
    """

    home_dir: str = "/mock/home"
    unreadable: set[str] = field(default_factory=set)
    unstatable: set[str] = field(default_factory=set)
    fail_writes: set[str] = field(default_factory=set)
    _dirs: set[str] = field(init=False, default_factory=lambda: {"/"})
    _files: dict[str, _File] = field(init=False, default_factory=dict)
    _links: dict[str, str] = field(init=False, default_factory=dict)
    _children: dict[str, set[str]] = field(init=False, default_factory=dict)

    # -- builders -----------------------------------------------------------

    def _link(self, path: str) -> None:
        parent = posixpath.dirname(path)
        if path == parent:
            return
        self._children.setdefault(parent, set()).add(path)
        if parent not in self._dirs:
            self._dirs.add(parent)
            self._link(parent)

    def add_dir(self, path: str) -> None:
        path = self.absolute(self.expanduser(path))
        self._dirs.add(path)
        self._link(path)

    def add_file(
        self,
        path: str,
        size: int | None = None,
        content: str | bytes | None = None,
        atime: float = 0.0,
    ) -> None:
        path = self.absolute(self.expanduser(path))
        data = content.encode("utf-8") if isinstance(content, str) else (content or b"")
        self._files[path] = _File(content=data, size=len(data) if size is None else size, atime=atime)
        self._link(path)

    def add_symlink(self, path: str, target: str) -> None:
        path = self.absolute(self.expanduser(path))
        self._links[path] = target
        self._link(path)

    def remove(self, path: str) -> None:
        for child in list(self._children.get(path, ())):
            self.remove(child)
        self._dirs.discard(path)
        self._files.pop(path, None)
        self._links.pop(path, None)
        self._children.pop(path, None)
        self._children.get(posixpath.dirname(path), set()).discard(path)

    # -- FileSystem ---------------------------------------------------------

    @override
    def home(self) -> str:
        return self.home_dir

    @override
    def expanduser(self, path: str) -> str:
        if path == "~" or path.startswith("~/"):
            return self.home_dir + path[1:]
        return path

    @override
    def absolute(self, path: str) -> str:
        return posixpath.normpath(posixpath.join("/", path))

    @override
    def realpath(self, path: str) -> str:
        path = self.absolute(path)
        seen: set[str] = set()
        while path in self._links and path not in seen:
            seen.add(path)
            path = self.absolute(posixpath.join(posixpath.dirname(path), self._links[path]))
        return path

    @override
    def exists(self, path: str) -> bool:
        return path in self._dirs or path in self._files or path in self._links

    @override
    def stat(self, path: str) -> StatResult:
        if path in self.unstatable:
            raise PermissionError(f"Permission denied: {path}")
        if path in self._links:
            return StatResult(is_dir=False, is_file=False, is_symlink=True, size=0)
        if path in self._dirs:
            return StatResult(is_dir=True, is_file=False, is_symlink=False, size=0)
        if path in self._files:
            f = self._files[path]
            return StatResult(is_dir=False, is_file=True, is_symlink=False, size=f.size, atime=f.atime)
        raise FileNotFoundError(f"No such file or directory: {path}")

    @override
    def scandir(self, path: str) -> list[DirEntry]:
        if path in self.unreadable:
            raise PermissionError(f"Permission denied: {path}")
        if path not in self._dirs:
            raise NotADirectoryError(f"Not a directory: {path}")
        entries: list[DirEntry] = []
        for child in sorted(self._children.get(path, ())):
            try:
                st: StatResult | None = self.stat(child)
            except OSError:
                st = None
            entries.append(DirEntry(path=child, name=posixpath.basename(child), stat=st))
        return entries

    @override
    def read_bytes(self, path: str) -> bytes:
        if path not in self._files:
            raise FileNotFoundError(f"No such file: {path}")
        return self._files[path].content

    @override
    def read_text(self, path: str) -> str:
        return self.read_bytes(path).decode("utf-8")

    @override
    def makedirs(self, path: str) -> None:
        self.add_dir(path)

    @override
    def write_text_atomic(self, path: str, text: str) -> None:
        if path in self.fail_writes:
            raise PermissionError(f"Read-only: {path}")
        self.makedirs(posixpath.dirname(path))
        self.add_file(path, content=text)


class MemoryTrash:
    """Trash double: removes paths from a MemoryFileSystem and records them."""

    def __init__(self, fs: MemoryFileSystem, fail_on: set[str] | None = None) -> None:
        self._fs = fs
        self._fail_on = fail_on or set()
        self.trashed: list[str] = []

    def move_to_trash(self, path: str) -> None:
        if path in self._fail_on:
            raise PermissionError(f"Operation not permitted: {path}")
        self._fs.remove(path)
        self.trashed.append(path)
