import logging
import os
from datetime import datetime
from typing import Optional

from stagefile_data_model.stat_result import StatResult
from stagefile_db.config import Settings, settings as default_settings
from stagefile_db.core.clock import SystemClock
from stagefile_db.core.interface.backing_store_interface import BackingStore, BackingStoreFactory
from stagefile_db.core.interface.clock_interface import Clock
from stagefile_db.persistence.anonymous_file_store import AnonymousFileStore
from stagefile_exception_model.exception import BackingStoreAllocationError, ContentCopyError, \
    InvariantViolationError, StagingIOError, UseAfterDestroyError

# Set up logger for this module
logger = logging.getLogger(__name__)


class StagingBuffer:
    """
    Local staging copy of an object's content that keeps track of the lowest
    offset at which it has been modified.

    The buffer is seeded with the object's original content. Every write_at and
    truncate lowers the dirty threshold to the offset it touches and stamps the
    mtime from the injected clock, so stat() can tell the caller how much of the
    content prefix is still identical to the original without re-reading it.

    Not safe for concurrent access. Callers must serialize all calls to one
    instance themselves; there is no internal locking.

    The caller owns the lifetime: destroy() must be called exactly once, after
    which the object must not be used again. Using the buffer as a context
    manager calls destroy() on exit.

    Attributes:
        _store (BackingStore): Holds the current content; None once destroyed
        _clock (Clock): Source of mtimes; shared, never mutated
        _dirty_threshold (int): The lowest byte index that may differ from the seed.
            INVARIANT: _dirty_threshold <= stat().size
        _mtime (Optional[datetime]): Time of the last modifying call, or None if never.
            INVARIANT: _mtime is None => _dirty_threshold == stat().size
        _destroyed (bool): True once destroy() has been called
    """

    def __init__(self, store: BackingStore, clock: Clock, dirty_threshold: int,
                 settings: Optional[Settings] = None):
        self._store = store
        self._clock = clock
        self._settings = settings or default_settings
        self._dirty_threshold = dirty_threshold
        self._mtime: Optional[datetime] = None
        self._destroyed = False

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def _check_alive(self, operation: str):
        if self._destroyed:
            raise UseAfterDestroyError("Use of destroyed staging buffer", operation=operation)

    def destroy(self) -> None:
        """Throw away the backing store. The object must not be used again."""
        self._check_alive("destroy")
        self._destroyed = True

        store, self._store = self._store, None
        try:
            store.close()
        except OSError as e:
            logger.warning(f"Failed to close backing store: {e}")
        logger.debug("Destroyed staging buffer")

    @property
    def destroyed(self) -> bool:
        return self._destroyed

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        if not self._destroyed:
            self.destroy()

    # ------------------------------------------------------------------
    # Reads (no effect on dirty tracking or mtime)
    # ------------------------------------------------------------------

    def read(self, size: int = -1) -> bytes:
        self._check_alive("read")
        try:
            return self._store.read(size)
        except OSError as e:
            raise StagingIOError("Backing store read failed", operation="read", cause=e) from e

    def readinto(self, buffer) -> int:
        self._check_alive("readinto")
        try:
            return self._store.readinto(buffer)
        except OSError as e:
            raise StagingIOError("Backing store read failed", operation="readinto", cause=e) from e

    def seek(self, offset: int, whence: int = os.SEEK_SET) -> int:
        self._check_alive("seek")
        if whence not in (os.SEEK_SET, os.SEEK_CUR, os.SEEK_END):
            raise ValueError(f"Invalid whence: {whence}")
        try:
            return self._store.seek(offset, whence)
        except OSError as e:
            raise StagingIOError("Backing store seek failed", operation="seek", cause=e) from e

    def tell(self) -> int:
        self._check_alive("tell")
        try:
            return self._store.tell()
        except OSError as e:
            raise StagingIOError("Backing store tell failed", operation="tell", cause=e) from e

    def read_at(self, size: int, offset: int) -> bytes:
        """Read up to `size` bytes at `offset`; the cursor is not used or moved."""
        self._check_alive("read_at")
        if offset < 0:
            raise ValueError(f"Negative offset: {offset}")
        if size < 0:
            raise ValueError(f"Negative size: {size}")
        try:
            return self._store.read_at(size, offset)
        except OSError as e:
            raise StagingIOError("Backing store read failed", operation="read_at", cause=e) from e

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def write_at(self, data: bytes, offset: int) -> int:
        """
        Write `data` at `offset` without using or moving the cursor.

        The dirty threshold drops to `offset` if that is lower, and the mtime is
        set from the clock, before the write reaches the backing store.
        """
        self._check_alive("write_at")
        if offset < 0:
            raise ValueError(f"Negative offset: {offset}")

        self._dirty_threshold = min(self._dirty_threshold, offset)
        self._mtime = self._clock.now()

        try:
            n = self._store.write_at(data, offset)
        except OSError as e:
            raise StagingIOError("Backing store write failed", operation="write_at", cause=e) from e

        self._maybe_check_invariants()
        return n

    def truncate(self, size: int) -> None:
        """Shrink the content to `size` bytes, or grow it with zero bytes."""
        self._check_alive("truncate")
        if size < 0:
            raise ValueError(f"Negative size: {size}")

        self._dirty_threshold = min(self._dirty_threshold, size)
        self._mtime = self._clock.now()

        try:
            self._store.truncate(size)
        except OSError as e:
            raise StagingIOError("Backing store truncate failed", operation="truncate", cause=e) from e

        self._maybe_check_invariants()

    def set_mtime(self, mtime: datetime) -> None:
        """
        Explicitly set the mtime returned by stat(). This sticks until the next
        call that modifies the content.
        """
        self._check_alive("set_mtime")
        if not isinstance(mtime, datetime):
            raise TypeError(f"mtime must be a datetime, not {type(mtime).__name__}")
        self._mtime = mtime

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    def stat(self) -> StatResult:
        """Return the current size, dirty threshold and mtime. The cursor is left where it was."""
        self._check_alive("stat")
        try:
            size = self._store.size()
        except OSError as e:
            raise StagingIOError("Backing store size query failed", operation="stat", cause=e) from e

        return StatResult(size=size, dirty_threshold=self._dirty_threshold, mtime=self._mtime)

    def check_invariants(self) -> None:
        """
        Raise InvariantViolationError if any internal invariant is violated.
        The cursor position is restored before returning.
        """
        self._check_alive("check_invariants")

        pos = self.tell()
        try:
            sr = self.stat()

            # INVARIANT: _dirty_threshold <= stat().size
            if not sr.dirty_threshold <= sr.size:
                raise InvariantViolationError("Dirty threshold exceeds size",
                                              dirty_threshold=sr.dirty_threshold, size=sr.size)

            # INVARIANT: _mtime is None => _dirty_threshold == stat().size
            if self._mtime is None and sr.dirty_threshold != sr.size:
                raise InvariantViolationError("Unmodified buffer has dirty threshold below size",
                                              dirty_threshold=sr.dirty_threshold, size=sr.size)
        finally:
            self.seek(pos, os.SEEK_SET)

    def _maybe_check_invariants(self):
        if self._settings.check_invariants:
            self.check_invariants()


def _release_after_failure(store: BackingStore):
    try:
        store.close()
    except OSError as close_err:
        logger.warning(f"Failed to release backing store after copy failure: {close_err}")


def create_staging_buffer(content, directory: Optional[str] = None, clock: Optional[Clock] = None,
                          allocate: Optional[BackingStoreFactory] = None,
                          settings: Optional[Settings] = None) -> StagingBuffer:
    """
    Create a staging buffer whose initial contents are read from `content`.

    Args:
        content: Blocking readable binary stream (anything with read(n) -> bytes);
            it is copied fully, in order, until it is exhausted. A read returning
            None (no data ready on a non-blocking stream) fails the copy
        directory: Directory on whose file system the backing store should live;
            falls back to settings.temp_dir, then to the system default
        clock: Source of mtimes; defaults to a SystemClock
        allocate: Backing store factory; defaults to AnonymousFileStore.allocate
        settings: Overrides the module-level settings

    Returns:
        A clean StagingBuffer with dirty_threshold == size and no mtime

    Raises:
        BackingStoreAllocationError: If the backing store cannot be created
        ContentCopyError: If copying from `content` fails; the partially
            filled backing store has been released
    """
    settings = settings or default_settings
    clock = clock or SystemClock()
    allocate = allocate or AnonymousFileStore.allocate
    directory = directory or settings.temp_dir

    try:
        store = allocate(directory)
    except OSError as e:
        raise BackingStoreAllocationError("Could not allocate backing store",
                                          directory=directory, cause=e) from e

    copied = 0
    try:
        while True:
            chunk = content.read(settings.copy_chunk_size)
            if chunk is None:
                raise BlockingIOError("Content stream has no data ready; a blocking stream is required")
            if not chunk:
                break
            copied += store.write(chunk)
        store.seek(0, os.SEEK_SET)
    except Exception as e:
        _release_after_failure(store)
        raise ContentCopyError("Failed to copy initial content", bytes_copied=copied, cause=e) from e
    except BaseException:
        _release_after_failure(store)
        raise

    logger.debug(f"Created staging buffer with {copied} bytes in {directory or 'default temp dir'}")
    return StagingBuffer(store, clock, dirty_threshold=copied, settings=settings)
