"""Snapshot of a staging buffer's content state."""

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Optional


@dataclass(frozen=True)
class StatResult:
    """Result of a stat operation on a staging buffer.

    Attributes:
        size: Current size in bytes of the content.
        dirty_threshold: The largest value T such that the range of bytes
            ``[0, T)`` is known to be unmodified from the seed content.
        mtime: Time of the last modifying call or explicit ``set_mtime``.
            ``None`` if neither has happened, which implies
            ``dirty_threshold == size``.
    """
    size: int
    dirty_threshold: int
    mtime: Optional[datetime] = None

    @property
    def is_dirty(self) -> bool:
        return self.mtime is not None

    @property
    def clean_prefix(self) -> int:
        """Number of leading bytes that still match the seed content."""
        return self.dirty_threshold

    def to_dict(self) -> Dict[str, Any]:
        return {
            "size": self.size,
            "dirty_threshold": self.dirty_threshold,
            "mtime": self.mtime.isoformat() if self.mtime is not None else None,
        }
