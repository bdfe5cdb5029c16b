"""Models for the native filesystem gateway.

Provides option vocabularies, timestamp helpers and attribute snapshots.
"""

from datetime import UTC, datetime, timedelta
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field

EPOCH = datetime(1970, 1, 1, tzinfo=UTC)


class OpenOption(str, Enum):
    """Flags controlling how a channel is opened."""

    READ = "READ"
    WRITE = "WRITE"
    APPEND = "APPEND"
    TRUNCATE_EXISTING = "TRUNCATE_EXISTING"
    CREATE = "CREATE"
    CREATE_NEW = "CREATE_NEW"
    DELETE_ON_CLOSE = "DELETE_ON_CLOSE"
    SPARSE = "SPARSE"
    SYNC = "SYNC"
    DSYNC = "DSYNC"


class LinkOption(str, Enum):
    """Flags controlling symbolic link handling."""

    NOFOLLOW_LINKS = "NOFOLLOW_LINKS"


class CopyOption(str, Enum):
    """Flags controlling move/copy behavior."""

    REPLACE_EXISTING = "REPLACE_EXISTING"
    COPY_ATTRIBUTES = "COPY_ATTRIBUTES"
    ATOMIC_MOVE = "ATOMIC_MOVE"


class FileAttribute(BaseModel):
    """Attribute applied atomically when creating a file or directory.

    Attributes:
        name: Qualified attribute name (e.g. "posix:permissions")
        value: Attribute value
    """

    name: str = Field(description="Qualified attribute name")
    value: Any = Field(description="Attribute value")

    model_config = {"frozen": True}


def posix_permissions(mode: int) -> FileAttribute:
    """
    Build a permissions attribute for directory creation.

    Args:
        mode: Permission bits (e.g. 0o700)

    Returns:
        FileAttribute named "posix:permissions"

    Example:
        >>> posix_permissions(0o700).value
        448
    """
    return FileAttribute(name="posix:permissions", value=mode)


def from_nanos(nanos: int) -> datetime:
    """Convert epoch nanoseconds to an aware UTC datetime (microsecond precision)."""
    return EPOCH + timedelta(microseconds=nanos // 1000)


def to_nanos(value: datetime) -> int:
    """Convert an aware datetime to epoch nanoseconds."""
    delta = value - EPOCH
    return (delta.days * 86_400 + delta.seconds) * 1_000_000_000 + delta.microseconds * 1000


def from_millis(millis: int) -> datetime:
    """
    Convert epoch milliseconds to an aware UTC datetime.

    Example:
        >>> from_millis(1184725140000).isoformat()
        '2007-07-18T02:19:00+00:00'
    """
    return EPOCH + timedelta(milliseconds=millis)


def to_millis(value: datetime) -> int:
    """Convert an aware datetime to epoch milliseconds, truncating sub-millisecond parts."""
    return to_nanos(value) // 1_000_000


def truncate_to_seconds(value: datetime) -> datetime:
    """Drop the sub-second part of a timestamp."""
    return value.replace(microsecond=0)


class BasicFileAttributes(BaseModel):
    """Snapshot of the basic attributes of one path, read in a single call.

    Attributes:
        size: Size in bytes
        last_modified_time: Last modification time
        last_access_time: Last access time
        creation_time: Creation time; platforms without one report another
            timestamp here, typically the modification time
        is_regular_file: True for regular files
        is_directory: True for directories
        is_symbolic_link: True for symbolic links (only seen with NOFOLLOW_LINKS)
        is_other: True for anything else (devices, fifos, sockets)
    """

    size: int = Field(default=0, ge=0)
    last_modified_time: datetime
    last_access_time: datetime
    creation_time: datetime
    is_regular_file: bool = False
    is_directory: bool = False
    is_symbolic_link: bool = False
    is_other: bool = False

    model_config = {"frozen": True}
