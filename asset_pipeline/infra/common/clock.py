"""Clock and token generation abstraction for testing."""
import os
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Optional
import uuid


class Clock(ABC):
    """Abstract clock interface for time and token generation."""
    
    @abstractmethod
    def now(self) -> datetime:
        """Get current UTC datetime."""
        pass
    
    @abstractmethod
    def now_iso(self) -> str:
        """Get current UTC datetime as ISO string."""
        pass
    
    @abstractmethod
    def generate_token(self) -> str:
        """Generate a random 32 character lowercase hex token."""
        pass


class SystemClock(Clock):
    """System clock implementation using real time."""
    
    def now(self) -> datetime:
        """Get current UTC datetime."""
        return datetime.now(timezone.utc)
    
    def now_iso(self) -> str:
        """Get current UTC datetime as ISO string."""
        return self.now().isoformat()
    
    def generate_token(self) -> str:
        """Generate a random 32 character lowercase hex token."""
        return uuid.uuid4().hex


def file_mtime(path: str) -> datetime:
    """Get the last-modified time of a file as a UTC datetime."""
    return datetime.fromtimestamp(os.stat(path).st_mtime, tz=timezone.utc)


# Default instance
_default_clock: Optional[Clock] = None


def get_clock() -> Clock:
    """Get the default clock instance."""
    global _default_clock
    if _default_clock is None:
        _default_clock = SystemClock()
    return _default_clock


def set_clock(clock: Clock | None) -> None:
    """Set the default clock instance (for testing). None restores the system clock."""
    global _default_clock
    _default_clock = clock
