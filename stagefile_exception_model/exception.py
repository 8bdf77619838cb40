class BackingStoreAllocationError(Exception):
    """
    Exception raised when the backing store for a staging buffer cannot be created,
    e.g. the directory hint does not exist or is not writable.

    Attributes:
        directory -- directory in which the allocation was attempted
        message -- explanation of the error
        cause -- underlying exception, if any
    """

    def __init__(self, message, directory=None, cause: Exception = None):
        self.directory = directory
        self.message = message
        self.cause = cause
        super().__init__(self.message)

    def __str__(self):
        details = []
        if self.directory is not None:
            details.append(f"directory={self.directory}")
        if self.cause is not None:
            details.append(f"cause={self.cause}")

        if details:
            return f"{self.message} ({', '.join(details)})"
        return self.message


class ContentCopyError(Exception):
    """
    Exception raised when seeding a backing store from the initial content
    stream fails partway.
    """

    def __init__(self, message, bytes_copied=None, cause: Exception = None):
        self.bytes_copied = bytes_copied
        self.message = message
        self.cause = cause
        super().__init__(self.message)

    def __str__(self):
        details = []
        if self.bytes_copied is not None:
            details.append(f"bytes_copied={self.bytes_copied}")
        if self.cause is not None:
            details.append(f"cause={self.cause}")

        if details:
            return f"{self.message} ({', '.join(details)})"
        return self.message


class StagingIOError(Exception):
    """
    Exception raised when a read, write, seek, truncate or size query against
    the backing store fails after construction (disk full, I/O error, ...).
    """

    def __init__(self, message, operation=None, cause: Exception = None):
        self.operation = operation
        self.message = message
        self.cause = cause
        super().__init__(self.message)

    def __str__(self):
        details = []
        if self.operation is not None:
            details.append(f"operation={self.operation}")
        if self.cause is not None:
            details.append(f"cause={self.cause}")

        if details:
            return f"{self.message} ({', '.join(details)})"
        return self.message


class InvariantViolationError(AssertionError):
    """
    Exception raised when a staging buffer's internal invariants do not hold.
    This signals a programming error and is not meant to be handled.
    """

    def __init__(self, message, dirty_threshold=None, size=None):
        self.dirty_threshold = dirty_threshold
        self.size = size
        self.message = message
        super().__init__(self.message)

    def __str__(self):
        details = []
        if self.dirty_threshold is not None:
            details.append(f"dirty_threshold={self.dirty_threshold}")
        if self.size is not None:
            details.append(f"size={self.size}")

        if details:
            return f"{self.message} ({', '.join(details)})"
        return self.message


class UseAfterDestroyError(AssertionError):
    """
    Exception raised when a destroyed staging buffer is used again.
    """

    def __init__(self, message, operation=None):
        self.operation = operation
        self.message = message
        super().__init__(self.message)

    def __str__(self):
        if self.operation is not None:
            return f"{self.message} (operation={self.operation})"
        return self.message
