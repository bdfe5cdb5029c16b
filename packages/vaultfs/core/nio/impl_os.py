"""Native filesystem port backed by the host operating system.

Uses the ``os`` module directly so that every gateway intent maps to one
system call. Creation times are read from ``st_birthtime`` where the platform
reports it (``st_ctime`` on older Windows interpreters) and fall back to the
modification time elsewhere. Only Windows can set them, via ``win32-setctime``.
"""

from collections.abc import Callable, Iterator
import contextlib
from datetime import datetime
import errno
import logging
import os
from pathlib import Path, PurePath
import shutil
import stat
import sys
from tempfile import NamedTemporaryFile

from .channels import FileChannel, OsFileChannel
from .errors import UnsupportedOptionsError
from .models import (
    BasicFileAttributes,
    CopyOption,
    FileAttribute,
    LinkOption,
    OpenOption,
    from_nanos,
    to_nanos,
)

logger = logging.getLogger(__name__)

if sys.platform == "win32":
    from win32_setctime import setctime as _setctime
else:
    _setctime: Callable[..., None] | None = None

_PERMISSIONS_ATTRIBUTE = "posix:permissions"


def _open_flags(options: set[OpenOption | LinkOption]) -> tuple[int, bool]:
    """
    Translate open options into ``os.open`` flags.

    Returns:
        Tuple of (flags, delete_on_close)
    """
    append = OpenOption.APPEND in options
    write = OpenOption.WRITE in options or append
    read = OpenOption.READ in options or not write

    if read and write:
        flags = os.O_RDWR
    elif write:
        flags = os.O_WRONLY
    else:
        flags = os.O_RDONLY

    if write:
        if OpenOption.CREATE_NEW in options:
            flags |= os.O_CREAT | os.O_EXCL
        elif OpenOption.CREATE in options:
            flags |= os.O_CREAT
        if append:
            flags |= os.O_APPEND
        elif OpenOption.TRUNCATE_EXISTING in options:
            flags |= os.O_TRUNC
    if OpenOption.SYNC in options:
        flags |= getattr(os, "O_SYNC", 0)
    if OpenOption.DSYNC in options:
        flags |= getattr(os, "O_DSYNC", 0)
    if LinkOption.NOFOLLOW_LINKS in options:
        flags |= getattr(os, "O_NOFOLLOW", 0)
    flags |= getattr(os, "O_BINARY", 0) | getattr(os, "O_CLOEXEC", 0)
    return flags, OpenOption.DELETE_ON_CLOSE in options


def _attributes_from_stat(st: os.stat_result) -> BasicFileAttributes:
    mode = st.st_mode
    birthtime = getattr(st, "st_birthtime_ns", None)
    if birthtime is None and getattr(st, "st_birthtime", None) is not None:
        birthtime = int(st.st_birthtime * 1_000_000_000)
    if birthtime is None and sys.platform == "win32":
        birthtime = st.st_ctime_ns
    return BasicFileAttributes(
        size=st.st_size,
        last_modified_time=from_nanos(st.st_mtime_ns),
        last_access_time=from_nanos(st.st_atime_ns),
        creation_time=from_nanos(birthtime if birthtime is not None else st.st_mtime_ns),
        is_regular_file=stat.S_ISREG(mode),
        is_directory=stat.S_ISDIR(mode),
        is_symbolic_link=stat.S_ISLNK(mode),
        is_other=not (stat.S_ISREG(mode) or stat.S_ISDIR(mode) or stat.S_ISLNK(mode)),
    )


class OsAttributeView:
    """Attribute view over one host path."""

    def __init__(self, path: PurePath, follow_symlinks: bool = True) -> None:
        self._path = path
        self._follow_symlinks = follow_symlinks

    def read_attributes(self) -> BasicFileAttributes:
        return _attributes_from_stat(os.stat(self._path, follow_symlinks=self._follow_symlinks))

    def set_times(
        self,
        last_modified_time: datetime | None,
        last_access_time: datetime | None,
        creation_time: datetime | None,
    ) -> None:
        """
        Update timestamps, leaving ``None`` fields untouched.

        Creation times are written on Windows only. Elsewhere the host has no
        creation-time setter, so the value is accepted and ignored (logged at
        DEBUG); the capability probe detects this.
        """
        if last_modified_time is not None or last_access_time is not None:
            current = os.stat(self._path, follow_symlinks=self._follow_symlinks)
            atime_ns = (
                to_nanos(last_access_time) if last_access_time is not None else current.st_atime_ns
            )
            mtime_ns = (
                to_nanos(last_modified_time)
                if last_modified_time is not None
                else current.st_mtime_ns
            )
            os.utime(self._path, ns=(atime_ns, mtime_ns), follow_symlinks=self._follow_symlinks)
        if creation_time is not None:
            if _setctime is None:
                logger.debug("Creation time not settable on this host, ignored for %s", self._path)
            else:
                _setctime(
                    str(self._path),
                    creation_time.timestamp(),
                    follow_symlinks=self._follow_symlinks,
                )


class OsDirectoryStream:
    """Directory stream over ``os.scandir``."""

    def __init__(self, path: PurePath) -> None:
        self._path = path
        self._iterator = os.scandir(path)

    def __iter__(self) -> Iterator[Path]:
        for entry in self._iterator:
            yield Path(entry.path)

    def close(self) -> None:
        self._iterator.close()


class OsNativeFileSystem:
    """
    Host operating system implementation of the native filesystem port.

    Raises the ``OSError`` subclasses the OS reports; the gateway translates
    them.
    """

    @property
    def separator(self) -> str:
        return os.sep

    def new_file_channel(
        self, path: PurePath, options: set[OpenOption | LinkOption]
    ) -> FileChannel:
        flags, delete_on_close = _open_flags(options)
        fd = os.open(path, flags, 0o666)
        return OsFileChannel(fd, path, delete_on_close=delete_on_close)

    def new_byte_channel(
        self, path: PurePath, options: set[OpenOption | LinkOption]
    ) -> FileChannel:
        return self.new_file_channel(path, options)

    def read_attributes(self, path: PurePath, *options: LinkOption) -> BasicFileAttributes:
        follow = LinkOption.NOFOLLOW_LINKS not in options
        return _attributes_from_stat(os.stat(path, follow_symlinks=follow))

    def get_file_attribute_view(self, path: PurePath, *options: LinkOption) -> OsAttributeView:
        return OsAttributeView(path, follow_symlinks=LinkOption.NOFOLLOW_LINKS not in options)

    def check_access(self, path: PurePath) -> None:
        os.stat(path)

    def new_directory_stream(self, path: PurePath) -> OsDirectoryStream:
        return OsDirectoryStream(path)

    def create_directory(self, path: PurePath, *attributes: FileAttribute) -> None:
        mode = 0o777
        for attribute in attributes:
            if attribute.name != _PERMISSIONS_ATTRIBUTE:
                raise UnsupportedOptionsError(
                    "create_directory", path, f"Unsupported attribute: {attribute.name}"
                )
            mode = int(attribute.value)
        os.mkdir(path, mode)

    def delete(self, path: PurePath) -> None:
        st = os.lstat(path)
        if stat.S_ISDIR(st.st_mode):
            os.rmdir(path)
        else:
            os.unlink(path)

    def move(self, source: PurePath, target: PurePath, *options: CopyOption) -> None:
        """
        Rename ``source`` to ``target``.

        Without REPLACE_EXISTING (and without ATOMIC_MOVE, which implies
        replacing) an existing target fails with ``FileExistsError``. Moves
        across devices fail with ``EXDEV`` when ATOMIC_MOVE is requested. Without
        it, files fall back to copy + delete; directories keep the ``EXDEV`` failure.
        """
        replace = CopyOption.REPLACE_EXISTING in options or CopyOption.ATOMIC_MOVE in options
        if not replace and os.path.lexists(target):
            raise FileExistsError(errno.EEXIST, os.strerror(errno.EEXIST), str(target))
        try:
            os.replace(source, target)
        except OSError as err:
            if err.errno != errno.EXDEV or CopyOption.ATOMIC_MOVE in options:
                raise
            self._copy_then_delete(source, target, CopyOption.COPY_ATTRIBUTES in options, err)

    def _copy_then_delete(
        self, source: PurePath, target: PurePath, copy_attributes: bool, cause: OSError
    ) -> None:
        # only files and symlinks can cross devices; directories keep the EXDEV failure
        if os.path.isdir(source) and not os.path.islink(source):
            raise cause
        logger.debug("Cross-device move %s -> %s via copy", source, target)
        # copy next to the target, then rename into place, so a failed copy
        # never leaves a partial target behind
        with NamedTemporaryFile(
            dir=os.path.dirname(target) or ".",
            prefix=f".{PurePath(target).name}.",
            suffix=".tmp",
            delete=False,
        ) as tmp:
            tmp_path = tmp.name
        try:
            if os.path.islink(source):
                os.unlink(tmp_path)
            if copy_attributes:
                shutil.copy2(source, tmp_path, follow_symlinks=False)
            else:
                shutil.copyfile(source, tmp_path, follow_symlinks=False)
            os.replace(tmp_path, target)
        except BaseException:
            with contextlib.suppress(FileNotFoundError):
                os.unlink(tmp_path)
            raise
        try:
            os.unlink(source)
        except OSError:
            os.unlink(target)
            raise
