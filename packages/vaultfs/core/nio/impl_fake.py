"""In-memory native filesystem for fast, isolated testing.

Simulates the native port without disk I/O. Behavior that differs between
real filesystems (creation-time persistence, failures) is configurable.
Not thread-safe (use per-test instance).
"""

from collections.abc import Callable, Iterator
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
import errno
import os
from pathlib import PurePath, PurePosixPath

from .channels import FileChannel, MemoryFileChannel
from .errors import UnsupportedOptionsError
from .models import BasicFileAttributes, CopyOption, FileAttribute, LinkOption, OpenOption


def _error(cls: type[OSError], code: int, path: PurePath) -> OSError:
    return cls(code, os.strerror(code), str(path))


@dataclass
class _Node:
    is_directory: bool
    created: datetime
    modified: datetime
    accessed: datetime
    data: bytearray = field(default_factory=bytearray)
    mode: int | None = None


class FakeAttributeView:
    """Attribute view over one fake path; resolved on each call."""

    def __init__(self, fs: "FakeNativeFileSystem", path: PurePath) -> None:
        self._fs = fs
        self._path = path

    def read_attributes(self) -> BasicFileAttributes:
        return self._fs.read_attributes(self._path)

    def set_times(
        self,
        last_modified_time: datetime | None,
        last_access_time: datetime | None,
        creation_time: datetime | None,
    ) -> None:
        self._fs._raise_if_failing("set_times")
        node = self._fs._lookup(self._path)
        if last_modified_time is not None:
            node.modified = last_modified_time
        if last_access_time is not None:
            node.accessed = last_access_time
        if creation_time is not None and self._fs.creation_time_supported:
            node.created = creation_time + self._fs.creation_time_skew


class FakeDirectoryStream:
    """Snapshot stream over the children of one fake directory."""

    def __init__(self, fs: "FakeNativeFileSystem", entries: list[PurePath]) -> None:
        self._fs = fs
        self._entries = entries
        self._consumed = False
        self.closed = False

    def __iter__(self) -> Iterator[PurePath]:
        if self._consumed:
            raise RuntimeError("Directory stream already iterated")
        self._consumed = True
        return iter(self._entries)

    def close(self) -> None:
        if not self.closed:
            self.closed = True
            self._fs.open_streams -= 1


class FakeNativeFileSystem:
    """
    In-memory native filesystem port.

    Attributes:
        creation_time_supported: When False, creation times written through an
            attribute view are silently ignored (like hosts without birth time)
        creation_time_skew: Offset added to every stored creation time,
            simulating coarse storage or timezone rounding
        open_streams: Number of directory streams currently open
    """

    def __init__(
        self,
        separator: str = "/",
        creation_time_supported: bool = True,
        creation_time_skew: timedelta = timedelta(0),
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._separator = separator
        self.creation_time_supported = creation_time_supported
        self.creation_time_skew = creation_time_skew
        self._clock = clock or (lambda: datetime.now(UTC))
        self._nodes: dict[PurePath, _Node] = {}
        self._failures: dict[str, OSError] = {}
        self.open_streams = 0
        root = PurePosixPath("/")
        now = self._clock()
        self._nodes[root] = _Node(True, now, now, now)

    @property
    def separator(self) -> str:
        return self._separator

    def fail(self, operation: str, error: OSError) -> None:
        """
        Make every later call of ``operation`` raise ``error``.

        Operation names are the port method names plus "set_times".
        """
        self._failures[operation] = error

    def clear_failures(self) -> None:
        self._failures.clear()

    def _raise_if_failing(self, operation: str) -> None:
        error = self._failures.get(operation)
        if error is not None:
            raise error

    def _key(self, path: PurePath) -> PurePosixPath:
        return PurePosixPath("/", *PurePosixPath(path).parts)

    def _lookup(self, path: PurePath) -> _Node:
        key = self._key(path)
        for parent in reversed(key.parents):
            node = self._nodes.get(parent)
            if node is None:
                raise _error(FileNotFoundError, errno.ENOENT, path)
            if not node.is_directory:
                raise _error(NotADirectoryError, errno.ENOTDIR, path)
        node = self._nodes.get(key)
        if node is None:
            raise _error(FileNotFoundError, errno.ENOENT, path)
        return node

    def _require_parent_directory(self, path: PurePath) -> None:
        parent = self._lookup(self._key(path).parent)
        if not parent.is_directory:
            raise _error(NotADirectoryError, errno.ENOTDIR, path)

    def _children(self, key: PurePosixPath) -> list[PurePosixPath]:
        return [p for p in self._nodes if p.parent == key and p != key]

    def new_file_channel(
        self, path: PurePath, options: set[OpenOption | LinkOption]
    ) -> FileChannel:
        self._raise_if_failing("new_file_channel")
        return self._open(path, options)

    def new_byte_channel(
        self, path: PurePath, options: set[OpenOption | LinkOption]
    ) -> FileChannel:
        self._raise_if_failing("new_byte_channel")
        return self._open(path, options)

    def _open(self, path: PurePath, options: set[OpenOption | LinkOption]) -> FileChannel:
        append = OpenOption.APPEND in options
        write = OpenOption.WRITE in options or append
        read = OpenOption.READ in options or not write
        key = self._key(path)
        self._require_parent_directory(path)

        node = self._nodes.get(key)
        if node is not None and write and OpenOption.CREATE_NEW in options:
            raise _error(FileExistsError, errno.EEXIST, path)
        if node is None:
            if not (write and (OpenOption.CREATE in options or OpenOption.CREATE_NEW in options)):
                raise _error(FileNotFoundError, errno.ENOENT, path)
            now = self._clock()
            node = _Node(False, now, now, now)
            self._nodes[key] = node
        if node.is_directory:
            raise _error(IsADirectoryError, errno.EISDIR, path)
        if write and not append and OpenOption.TRUNCATE_EXISTING in options:
            del node.data[:]

        delete_on_close = OpenOption.DELETE_ON_CLOSE in options

        def on_close() -> None:
            if write:
                node.modified = self._clock()
            if delete_on_close and self._nodes.get(key) is node:
                del self._nodes[key]

        return MemoryFileChannel(
            node.data, append=append, readable=read, writable=write, on_close=on_close
        )

    def read_attributes(self, path: PurePath, *options: LinkOption) -> BasicFileAttributes:
        self._raise_if_failing("read_attributes")
        node = self._lookup(path)
        return BasicFileAttributes(
            size=0 if node.is_directory else len(node.data),
            last_modified_time=node.modified,
            last_access_time=node.accessed,
            creation_time=node.created,
            is_regular_file=not node.is_directory,
            is_directory=node.is_directory,
        )

    def get_file_attribute_view(self, path: PurePath, *options: LinkOption) -> FakeAttributeView:
        self._raise_if_failing("get_file_attribute_view")
        return FakeAttributeView(self, path)

    def check_access(self, path: PurePath) -> None:
        self._raise_if_failing("check_access")
        self._lookup(path)

    def new_directory_stream(self, path: PurePath) -> FakeDirectoryStream:
        self._raise_if_failing("new_directory_stream")
        node = self._lookup(path)
        if not node.is_directory:
            raise _error(NotADirectoryError, errno.ENOTDIR, path)
        base = PurePath(path)
        entries = [base / child.name for child in self._children(self._key(path))]
        self.open_streams += 1
        return FakeDirectoryStream(self, entries)

    def create_directory(self, path: PurePath, *attributes: FileAttribute) -> None:
        self._raise_if_failing("create_directory")
        mode = None
        for attribute in attributes:
            if attribute.name != "posix:permissions":
                raise UnsupportedOptionsError(
                    "create_directory", path, f"Unsupported attribute: {attribute.name}"
                )
            mode = int(attribute.value)
        key = self._key(path)
        if key in self._nodes:
            raise _error(FileExistsError, errno.EEXIST, path)
        self._require_parent_directory(path)
        now = self._clock()
        self._nodes[key] = _Node(True, now, now, now, mode=mode)

    def delete(self, path: PurePath) -> None:
        self._raise_if_failing("delete")
        node = self._lookup(path)
        key = self._key(path)
        if node.is_directory and self._children(key):
            raise _error(OSError, errno.ENOTEMPTY, path)
        if key == PurePosixPath("/"):
            raise _error(OSError, errno.EBUSY, path)
        del self._nodes[key]

    def move(self, source: PurePath, target: PurePath, *options: CopyOption) -> None:
        self._raise_if_failing("move")
        node = self._lookup(source)
        source_key, target_key = self._key(source), self._key(target)
        if source_key == target_key:
            return
        self._require_parent_directory(target)
        existing = self._nodes.get(target_key)
        if existing is not None:
            replace = CopyOption.REPLACE_EXISTING in options or CopyOption.ATOMIC_MOVE in options
            if not replace:
                raise _error(FileExistsError, errno.EEXIST, target)
            if existing.is_directory and self._children(target_key):
                raise _error(OSError, errno.ENOTEMPTY, target)
        if node.is_directory and source_key in target_key.parents:
            raise _error(OSError, errno.EINVAL, target)

        moved = {
            key: value
            for key, value in self._nodes.items()
            if key == source_key or source_key in key.parents
        }
        for key in moved:
            del self._nodes[key]
        for key, value in moved.items():
            self._nodes[target_key / key.relative_to(source_key)] = value
