"""Native filesystem gateway for vaultfs.

The single seam between the encrypted filesystem and the operating system.
Every native call goes through a pluggable ``NativeFileSystem`` port; the
gateway translates failures into typed errors and probes creation-time
support with a live round trip.

Example:
    >>> from pathlib import Path
    >>> from vaultfs.core.nio import NativeFilesystemGateway, OpenOption
    >>> gateway = NativeFilesystemGateway()
    >>> gateway.create_directories(Path("/tmp/vault/d"))
    >>> with gateway.open(Path("/tmp/vault/d/f"), OpenOption.CREATE, OpenOption.WRITE) as ch:
    ...     ch.write(b"payload")
    >>> gateway.supports_creation_time(Path("/tmp/vault"))

Example (testing):
    >>> from vaultfs.core.nio import FakeNativeFileSystem
    >>> gateway = NativeFilesystemGateway(FakeNativeFileSystem(creation_time_supported=False))
"""

from .channels import FileChannel, MemoryFileChannel, OsFileChannel
from .errors import (
    GatewayIOError,
    GatewayNotFoundError,
    UnsupportedOptionsError,
    translate_errors,
)
from .gateway import NativeFilesystemGateway
from .impl_fake import FakeNativeFileSystem
from .impl_os import OsNativeFileSystem
from .listing import DirectoryListing
from .models import (
    BasicFileAttributes,
    CopyOption,
    FileAttribute,
    LinkOption,
    OpenOption,
    from_millis,
    from_nanos,
    posix_permissions,
    to_millis,
    to_nanos,
    truncate_to_seconds,
)
from .probe import CreationTimeProbe, ProbeResult, ProbeState
from .protocols import BasicFileAttributeView, DirectoryStream, FilesystemGateway, NativeFileSystem

__all__ = [
    # Protocols
    "FilesystemGateway",
    "NativeFileSystem",
    "BasicFileAttributeView",
    "DirectoryStream",
    # Gateway
    "NativeFilesystemGateway",
    "DirectoryListing",
    # Ports
    "OsNativeFileSystem",
    "FakeNativeFileSystem",
    # Channels
    "FileChannel",
    "OsFileChannel",
    "MemoryFileChannel",
    # Models
    "BasicFileAttributes",
    "CopyOption",
    "FileAttribute",
    "LinkOption",
    "OpenOption",
    "posix_permissions",
    # Timestamps
    "from_millis",
    "from_nanos",
    "to_millis",
    "to_nanos",
    "truncate_to_seconds",
    # Probe
    "CreationTimeProbe",
    "ProbeResult",
    "ProbeState",
    # Errors
    "GatewayIOError",
    "GatewayNotFoundError",
    "UnsupportedOptionsError",
    "translate_errors",
]
