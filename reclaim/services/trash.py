from __future__ import annotations

from typing import Protocol

from send2trash import send2trash


class Trash(Protocol):
    def move_to_trash(self, path: str) -> None:
        """Relocate *path* somewhere the user can restore it from.

        Raises ``OSError`` when the item cannot be moved.
        """
        ...


class SystemTrash:
    """Moves items to the platform trash (Finder Trash, XDG trash, Recycle Bin)."""

    def move_to_trash(self, path: str) -> None:
        # TrashPermissionError subclasses PermissionError, so callers only
        # need to handle OSError.
        send2trash(path)
