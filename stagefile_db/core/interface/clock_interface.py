from datetime import datetime
from typing import Protocol, runtime_checkable


@runtime_checkable
class Clock(Protocol):
    """
    Interface for a source of the current time, injected so tests can control it.
    """
    def now(self) -> datetime:
        ...
