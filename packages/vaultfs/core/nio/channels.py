"""Channel types handed out by the native filesystem gateway.

A channel owns one OS handle. Ownership transfers to the caller, who must
close it (directly, through the gateway, or with a ``with`` block).
"""

from abc import ABC, abstractmethod
from collections.abc import Callable
import logging
import os
from pathlib import PurePath
import threading
from types import TracebackType

logger = logging.getLogger(__name__)


class FileChannel(ABC):
    """
    Seekable byte channel over one open file.

    ``close()`` is idempotent and thread-safe: the underlying release
    (``_impl_close``) runs exactly once no matter how often or from where
    ``close()`` is invoked. Subclasses implement I/O and ``_impl_close``.
    """

    def __init__(self) -> None:
        self._close_lock = threading.Lock()
        self._open = True

    @property
    def is_open(self) -> bool:
        """True until the channel has been closed."""
        return self._open

    def close(self) -> None:
        """Release the underlying handle once; later calls are no-ops."""
        with self._close_lock:
            if not self._open:
                return
            self._open = False
        self._impl_close()

    def _ensure_open(self) -> None:
        if not self._open:
            raise ValueError("I/O operation on closed channel")

    @abstractmethod
    def _impl_close(self) -> None:
        """Release the underlying OS resource."""
        ...

    @abstractmethod
    def read(self, size: int = -1) -> bytes:
        """Read up to ``size`` bytes from the current position (-1 reads to EOF)."""
        ...

    @abstractmethod
    def write(self, data: bytes) -> int:
        """Write bytes at the current position (or at the end in append mode)."""
        ...

    @abstractmethod
    def position(self) -> int:
        """Current position in bytes."""
        ...

    @abstractmethod
    def seek(self, position: int) -> int:
        """Move to an absolute position; returns the new position."""
        ...

    @abstractmethod
    def size(self) -> int:
        """Current size of the file in bytes."""
        ...

    @abstractmethod
    def truncate(self, size: int) -> None:
        """Truncate the file to at most ``size`` bytes."""
        ...

    @abstractmethod
    def force(self, metadata: bool = False) -> None:
        """Flush written data (and metadata if requested) to the storage device."""
        ...

    def __enter__(self) -> "FileChannel":
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()


class OsFileChannel(FileChannel):
    """
    Channel over a raw OS file descriptor.

    Uses ``os.read``/``os.write``/``os.lseek`` directly; no buffering.
    """

    def __init__(self, fd: int, path: PurePath, delete_on_close: bool = False) -> None:
        super().__init__()
        self._fd = fd
        self._path = path
        self._delete_on_close = delete_on_close

    @property
    def path(self) -> PurePath:
        return self._path

    def fileno(self) -> int:
        self._ensure_open()
        return self._fd

    def read(self, size: int = -1) -> bytes:
        self._ensure_open()
        if size >= 0:
            return os.read(self._fd, size)
        chunks = []
        while chunk := os.read(self._fd, 64 * 1024):
            chunks.append(chunk)
        return b"".join(chunks)

    def write(self, data: bytes) -> int:
        self._ensure_open()
        view = memoryview(data)
        written = 0
        while written < len(view):
            written += os.write(self._fd, view[written:])
        return written

    def position(self) -> int:
        self._ensure_open()
        return os.lseek(self._fd, 0, os.SEEK_CUR)

    def seek(self, position: int) -> int:
        self._ensure_open()
        if position < 0:
            raise ValueError(f"Negative position: {position}")
        return os.lseek(self._fd, position, os.SEEK_SET)

    def size(self) -> int:
        self._ensure_open()
        return os.fstat(self._fd).st_size

    def truncate(self, size: int) -> None:
        self._ensure_open()
        if size < 0:
            raise ValueError(f"Negative size: {size}")
        if size < self.size():
            os.ftruncate(self._fd, size)
        if self.position() > size:
            self.seek(size)

    def force(self, metadata: bool = False) -> None:
        self._ensure_open()
        if metadata or not hasattr(os, "fdatasync"):
            os.fsync(self._fd)
        else:
            os.fdatasync(self._fd)

    def _impl_close(self) -> None:
        try:
            os.close(self._fd)
        finally:
            if self._delete_on_close:
                try:
                    os.unlink(self._path)
                except FileNotFoundError:
                    logger.debug("Delete-on-close target already gone: %s", self._path)


class MemoryFileChannel(FileChannel):
    """
    Channel over an in-memory buffer owned by a fake filesystem.

    Writes go straight into the shared ``bytearray`` so other channels and
    attribute reads observe them immediately.
    """

    def __init__(
        self,
        buffer: bytearray,
        append: bool = False,
        readable: bool = True,
        writable: bool = False,
        on_close: Callable[[], None] | None = None,
    ) -> None:
        super().__init__()
        self._buffer = buffer
        self._append = append
        self._readable = readable
        self._writable = writable
        self._position = 0
        self._on_close = on_close

    def read(self, size: int = -1) -> bytes:
        self._ensure_open()
        if not self._readable:
            raise PermissionError("Channel not open for reading")
        end = len(self._buffer) if size < 0 else min(len(self._buffer), self._position + size)
        start = min(self._position, len(self._buffer))
        data = bytes(self._buffer[start:end])
        self._position = start + len(data)
        return data

    def write(self, data: bytes) -> int:
        self._ensure_open()
        if not self._writable:
            raise PermissionError("Channel not open for writing")
        if self._append:
            self._position = len(self._buffer)
        if self._position > len(self._buffer):
            self._buffer.extend(b"\x00" * (self._position - len(self._buffer)))
        self._buffer[self._position : self._position + len(data)] = data
        self._position += len(data)
        return len(data)

    def position(self) -> int:
        self._ensure_open()
        return self._position

    def seek(self, position: int) -> int:
        self._ensure_open()
        if position < 0:
            raise ValueError(f"Negative position: {position}")
        self._position = position
        return position

    def size(self) -> int:
        self._ensure_open()
        return len(self._buffer)

    def truncate(self, size: int) -> None:
        self._ensure_open()
        if size < 0:
            raise ValueError(f"Negative size: {size}")
        if not self._writable:
            raise PermissionError("Channel not open for writing")
        del self._buffer[size:]
        self._position = min(self._position, size)

    def force(self, metadata: bool = False) -> None:
        self._ensure_open()

    def _impl_close(self) -> None:
        if self._on_close is not None:
            self._on_close()
