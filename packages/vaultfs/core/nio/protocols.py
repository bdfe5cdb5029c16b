"""Protocols for the native filesystem gateway.

``NativeFileSystem`` is the port to the operating system: the only place real
filesystem calls happen. ``FilesystemGateway`` is what higher layers consume.
"""

from collections.abc import Iterator
from datetime import datetime
from pathlib import PurePath
from typing import TYPE_CHECKING, Protocol

from .channels import FileChannel
from .models import BasicFileAttributes, CopyOption, FileAttribute, LinkOption, OpenOption

if TYPE_CHECKING:
    from .listing import DirectoryListing


class DirectoryStream(Protocol):
    """Open handle over the entries of one directory."""

    def __iter__(self) -> Iterator[PurePath]:
        """Iterate child paths in native order (single pass)."""
        ...

    def close(self) -> None:
        """Release the native handle; idempotent."""
        ...


class BasicFileAttributeView(Protocol):
    """Mutable metadata handle for one path."""

    def read_attributes(self) -> BasicFileAttributes:
        """Read a fresh attribute snapshot."""
        ...

    def set_times(
        self,
        last_modified_time: datetime | None,
        last_access_time: datetime | None,
        creation_time: datetime | None,
    ) -> None:
        """
        Update timestamps; ``None`` leaves the corresponding field unchanged.

        Platforms that cannot store a creation time may accept the call and
        ignore that field.
        """
        ...


class NativeFileSystem(Protocol):
    """
    Port to the native filesystem.

    Implementations raise ``OSError`` subclasses on failure; the gateway
    translates them. Option sets are passed through verbatim.
    """

    @property
    def separator(self) -> str:
        """Path separator of this filesystem."""
        ...

    def new_file_channel(
        self, path: PurePath, options: set[OpenOption | LinkOption]
    ) -> FileChannel:
        """Open a file channel with the given options."""
        ...

    def new_byte_channel(
        self, path: PurePath, options: set[OpenOption | LinkOption]
    ) -> FileChannel:
        """Open a plain byte channel with the given options."""
        ...

    def read_attributes(self, path: PurePath, *options: LinkOption) -> BasicFileAttributes:
        """Read basic attributes of ``path`` in one call."""
        ...

    def get_file_attribute_view(
        self, path: PurePath, *options: LinkOption
    ) -> BasicFileAttributeView:
        """Get a mutable attribute view for ``path``."""
        ...

    def check_access(self, path: PurePath) -> None:
        """Raise ``FileNotFoundError`` if ``path`` is absent, ``OSError`` if inaccessible."""
        ...

    def new_directory_stream(self, path: PurePath) -> DirectoryStream:
        """Open a stream over the entries of directory ``path``."""
        ...

    def create_directory(self, path: PurePath, *attributes: FileAttribute) -> None:
        """Create exactly one directory; parents must exist."""
        ...

    def delete(self, path: PurePath) -> None:
        """Delete a file or an empty directory."""
        ...

    def move(self, source: PurePath, target: PurePath, *options: CopyOption) -> None:
        """Move or rename ``source`` to ``target``."""
        ...


class FilesystemGateway(Protocol):
    """
    Protocol consumed by higher-level filesystems.

    All operations are synchronous. Failures surface as ``GatewayIOError``
    subclasses; only ``supports_creation_time`` never raises for native
    failures.
    """

    def open(self, path: PurePath, *options: OpenOption | LinkOption) -> FileChannel:
        """Acquire a channel (read-only when no options are given)."""
        ...

    def is_regular_file(self, path: PurePath, *options: LinkOption) -> bool:
        """True if ``path`` is a regular file; False if it does not exist."""
        ...

    def is_directory(self, path: PurePath, *options: LinkOption) -> bool:
        """True if ``path`` is a directory; False if it does not exist."""
        ...

    def exists(self, path: PurePath) -> bool:
        """True if an access check succeeds; False if ``path`` is absent."""
        ...

    def list(self, path: PurePath) -> "DirectoryListing":
        """Lazily list the children of directory ``path``."""
        ...

    def create_directories(self, path: PurePath, *attributes: FileAttribute) -> None:
        """Create ``path`` and any missing parents."""
        ...

    def get_last_modified_time(self, path: PurePath, *options: LinkOption) -> datetime:
        """Read the last-modified time."""
        ...

    def set_last_modified_time(self, path: PurePath, time: datetime) -> None:
        """Set only the last-modified time."""
        ...

    def get_creation_time(self, path: PurePath, *options: LinkOption) -> datetime:
        """Read the creation time."""
        ...

    def set_creation_time(self, path: PurePath, time: datetime, *options: LinkOption) -> None:
        """Set only the creation time."""
        ...

    def delete(self, path: PurePath) -> None:
        """Delete exactly one path."""
        ...

    def move(self, source: PurePath, target: PurePath, *options: CopyOption) -> None:
        """Move ``source`` to ``target``."""
        ...

    def close(self, channel: FileChannel) -> None:
        """Release ``channel`` exactly once."""
        ...

    def supports_creation_time(self, directory: PurePath) -> bool:
        """Probe whether the filesystem behind ``directory`` persists creation times."""
        ...

    def separator(self) -> str:
        """Path separator of the native filesystem."""
        ...

