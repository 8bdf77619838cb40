import os
from typing import Optional

from stagefile_db.core.interface.backing_store_interface import BackingStore


class MemoryBackingStore(BackingStore):
    """In-memory backing store over a bytearray, for callers and tests that want no disk I/O."""

    def __init__(self):
        self._buffer = bytearray()
        self._pos = 0
        self._closed = False

    @classmethod
    def allocate(cls, directory: Optional[str] = None) -> "MemoryBackingStore":
        # The directory hint has no meaning in memory.
        return cls()

    def _check_open(self):
        if self._closed:
            raise ValueError("I/O operation on closed backing store")

    def read(self, size: int = -1) -> bytes:
        self._check_open()
        end = len(self._buffer) if size is None or size < 0 else min(len(self._buffer), self._pos + size)
        data = bytes(self._buffer[self._pos:end])
        self._pos += len(data)
        return data

    def readinto(self, buffer) -> int:
        view = memoryview(buffer).cast("B")
        data = self.read(len(view))
        view[:len(data)] = data
        return len(data)

    def write(self, data: bytes) -> int:
        n = self.write_at(data, self._pos)
        self._pos += n
        return n

    def seek(self, offset: int, whence: int = os.SEEK_SET) -> int:
        self._check_open()
        if whence == os.SEEK_SET:
            new_pos = offset
        elif whence == os.SEEK_CUR:
            new_pos = self._pos + offset
        elif whence == os.SEEK_END:
            new_pos = len(self._buffer) + offset
        else:
            raise ValueError(f"Invalid whence: {whence}")
        if new_pos < 0:
            raise OSError(22, "Invalid argument")
        self._pos = new_pos
        return self._pos

    def tell(self) -> int:
        self._check_open()
        return self._pos

    def read_at(self, size: int, offset: int) -> bytes:
        self._check_open()
        return bytes(self._buffer[offset:offset + size])

    def write_at(self, data: bytes, offset: int) -> int:
        self._check_open()
        end = offset + len(data)
        if len(self._buffer) < offset:
            self._buffer.extend(b"\x00" * (offset - len(self._buffer)))
        self._buffer[offset:end] = data
        return len(data)

    def truncate(self, size: int) -> None:
        self._check_open()
        if size < len(self._buffer):
            del self._buffer[size:]
        else:
            self._buffer.extend(b"\x00" * (size - len(self._buffer)))

    def size(self) -> int:
        self._check_open()
        return len(self._buffer)

    def close(self) -> None:
        self._closed = True
        self._buffer = bytearray()

    @property
    def closed(self) -> bool:
        return self._closed
