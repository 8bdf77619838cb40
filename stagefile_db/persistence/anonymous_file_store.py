import logging
import os
import tempfile
from typing import Optional

from stagefile_db.core.interface.backing_store_interface import BackingStore
from stagefile_exception_model.exception import BackingStoreAllocationError

# Set up logger for this module
logger = logging.getLogger(__name__)


class AnonymousFileStore(BackingStore):
    """
    Backing store on an unlinked temporary file.

    The file never has a visible directory entry (O_TMPFILE where the platform
    supports it, otherwise it is unlinked right after creation), so closing the
    descriptor is all that is needed to give its blocks back to the file system.

    The file is opened unbuffered: positioned calls go straight to the
    descriptor with pread/pwrite, and a buffered reader would otherwise serve
    stale bytes after a write_at.
    """

    def __init__(self, file):
        self._file = file
        self._fd = file.fileno()

    @classmethod
    def allocate(cls, directory: Optional[str] = None) -> "AnonymousFileStore":
        """
        Create an anonymous file on the file system holding `directory`, or in
        the system default temporary location if `directory` is empty.

        Raises:
            BackingStoreAllocationError: If the file cannot be created
        """
        try:
            f = tempfile.TemporaryFile(mode="w+b", buffering=0, dir=directory or None)
        except OSError as e:
            raise BackingStoreAllocationError("Could not create anonymous file",
                                              directory=directory, cause=e) from e
        logger.debug(f"Allocated anonymous file fd={f.fileno()} in {directory or tempfile.gettempdir()}")
        return cls(f)

    def _check_open(self):
        # The descriptor number may already belong to another file once closed.
        if self._file.closed:
            raise ValueError("I/O operation on closed backing store")

    def read(self, size: int = -1) -> bytes:
        return self._file.read(size)

    def readinto(self, buffer) -> int:
        return self._file.readinto(buffer)

    def write(self, data: bytes) -> int:
        view = memoryview(data)
        written = 0
        while written < len(view):
            written += self._file.write(view[written:])
        return written

    def seek(self, offset: int, whence: int = os.SEEK_SET) -> int:
        return self._file.seek(offset, whence)

    def tell(self) -> int:
        return self._file.tell()

    def read_at(self, size: int, offset: int) -> bytes:
        self._check_open()
        chunks = []
        remaining = size
        while remaining > 0:
            chunk = os.pread(self._fd, remaining, offset)
            if not chunk:
                break
            chunks.append(chunk)
            offset += len(chunk)
            remaining -= len(chunk)
        return b"".join(chunks)

    def write_at(self, data: bytes, offset: int) -> int:
        self._check_open()
        view = memoryview(data)
        written = 0
        while written < len(view):
            written += os.pwrite(self._fd, view[written:], offset + written)
        return written

    def truncate(self, size: int) -> None:
        self._check_open()
        os.ftruncate(self._fd, size)

    def size(self) -> int:
        self._check_open()
        return os.fstat(self._fd).st_size

    def close(self) -> None:
        self._file.close()

    @property
    def closed(self) -> bool:
        return self._file.closed
