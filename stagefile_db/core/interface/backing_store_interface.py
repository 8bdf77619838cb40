import os
from abc import ABC, abstractmethod
from typing import Callable, Optional


class BackingStore(ABC):
    """
    Abstract interface for the random-access byte storage behind a staging buffer.

    Implementations hold the actual content bytes (an anonymous local file, an
    in-memory buffer, ...) and expose both a sequential cursor and positioned
    operations that leave the cursor alone. Resources are fully reclaimed on
    ``close()``; no filesystem path needs to be cleaned up afterwards.

    Errors from the underlying resource are raised as ``OSError``.
    """

    @abstractmethod
    def read(self, size: int = -1) -> bytes:
        """
        Read up to `size` bytes from the cursor and advance it.

        Args:
            size: Maximum number of bytes to read; negative reads to EOF

        Returns:
            The bytes read, empty at EOF
        """
        ...

    @abstractmethod
    def readinto(self, buffer) -> int:
        """Read into a writable buffer from the cursor; returns the byte count."""
        ...

    @abstractmethod
    def write(self, data: bytes) -> int:
        """Write `data` at the cursor and advance it."""
        ...

    @abstractmethod
    def seek(self, offset: int, whence: int = os.SEEK_SET) -> int:
        """
        Reposition the cursor.

        Args:
            offset: Byte offset relative to `whence`
            whence: One of os.SEEK_SET, os.SEEK_CUR, os.SEEK_END

        Returns:
            The new absolute cursor position
        """
        ...

    @abstractmethod
    def tell(self) -> int:
        ...

    @abstractmethod
    def read_at(self, size: int, offset: int) -> bytes:
        """
        Read up to `size` bytes starting at `offset` without moving the cursor.

        Returns:
            The bytes read; shorter than `size` when the range crosses EOF
        """
        ...

    @abstractmethod
    def write_at(self, data: bytes, offset: int) -> int:
        """
        Write `data` at `offset` without moving the cursor. Writing past the
        end zero-fills the gap.

        Returns:
            The number of bytes written
        """
        ...

    @abstractmethod
    def truncate(self, size: int) -> None:
        """Shrink the content to `size` bytes, or grow it with zero bytes."""
        ...

    @abstractmethod
    def size(self) -> int:
        """Return the current content length in bytes without moving the cursor."""
        ...

    @abstractmethod
    def close(self) -> None:
        ...

    @property
    @abstractmethod
    def closed(self) -> bool:
        ...

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()


# Creates a backing store on the file system holding `directory`, or in the
# platform default temporary location when `directory` is empty or None.
BackingStoreFactory = Callable[[Optional[str]], BackingStore]
