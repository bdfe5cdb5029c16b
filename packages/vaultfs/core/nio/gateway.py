"""Native filesystem gateway.

Routes each filesystem intent to exactly one native call (several for the
creation-time probe and parent creation) and translates native failures into
the typed errors in ``errors``.
"""

from datetime import datetime
from pathlib import PurePath

from vaultfs.core.config.models import ProbeConfig
from vaultfs.core.utils.logging import get_logger

from .channels import FileChannel
from .errors import UnsupportedOptionsError, translate_errors
from .impl_os import OsNativeFileSystem
from .listing import DirectoryListing
from .models import BasicFileAttributes, CopyOption, FileAttribute, LinkOption, OpenOption
from .probe import CreationTimeProbe, ProbeResult
from .protocols import NativeFileSystem

logger = get_logger(__name__)

_INVALID_OPEN_COMBINATIONS = (
    (OpenOption.READ, OpenOption.APPEND),
    (OpenOption.APPEND, OpenOption.TRUNCATE_EXISTING),
)


class NativeFilesystemGateway:
    """
    Single seam between a higher-level filesystem and the native one.

    Holds no mutable state; safe to share between threads. Concurrency
    semantics are those of the underlying filesystem.

    Example:
        >>> gateway = NativeFilesystemGateway()
        >>> gateway.create_directories(Path("/tmp/vault/d"))
        >>> with gateway.open(Path("/tmp/vault/d/f"), OpenOption.CREATE, OpenOption.WRITE) as ch:
        ...     ch.write(b"data")
    """

    def __init__(
        self,
        native: NativeFileSystem | None = None,
        probe_config: ProbeConfig | None = None,
    ) -> None:
        """
        Initialize the gateway.

        Args:
            native: Native filesystem port (defaults to the host OS)
            probe_config: Creation-time probe settings (defaults apply when None)
        """
        self._native = native if native is not None else OsNativeFileSystem()
        self._probe = CreationTimeProbe(self._native, probe_config)

    @property
    def native(self) -> NativeFileSystem:
        return self._native

    def open(self, path: PurePath, *options: OpenOption | LinkOption) -> FileChannel:
        """
        Open a channel on ``path``.

        Args:
            path: File to open
            *options: Open/link options; none means read-only

        Returns:
            Open channel owned by the caller

        Raises:
            UnsupportedOptionsError: For invalid option combinations
            GatewayNotFoundError: If the file is missing and not created
            GatewayIOError: On any other native failure
        """
        requested = set(options)
        for first, second in _INVALID_OPEN_COMBINATIONS:
            if first in requested and second in requested:
                raise UnsupportedOptionsError(
                    "open", path, f"{first.value} + {second.value} not allowed"
                )
        with translate_errors("open", path):
            return self._native.new_file_channel(path, requested)

    def is_regular_file(self, path: PurePath, *options: LinkOption) -> bool:
        attributes = self._read_attributes_if_present("is_regular_file", path, options)
        return attributes is not None and attributes.is_regular_file

    def is_directory(self, path: PurePath, *options: LinkOption) -> bool:
        attributes = self._read_attributes_if_present("is_directory", path, options)
        return attributes is not None and attributes.is_directory

    def exists(self, path: PurePath) -> bool:
        """
        Check whether ``path`` exists.

        Only absence maps to False. Permission and other access failures
        raise instead of being reported as non-existence.
        """
        with translate_errors("exists", path):
            try:
                self._native.check_access(path)
            except (FileNotFoundError, NotADirectoryError):
                return False
        return True

    def list(self, path: PurePath) -> DirectoryListing:
        """
        List the children of directory ``path``.

        The native stream is opened immediately, so a missing or unreadable
        directory fails here rather than on first iteration.

        Returns:
            One-shot listing; close it (or use ``with``) when abandoning early
        """
        with translate_errors("list", path):
            stream = self._native.new_directory_stream(path)
        return DirectoryListing(path, stream)

    def create_directories(self, path: PurePath, *attributes: FileAttribute) -> None:
        """
        Create ``path`` and any missing parents.

        The leaf is attempted first; parents are only walked when the leaf
        cannot be created because one is missing. Attributes apply to every
        directory created. An existing directory is success.

        Raises:
            GatewayIOError: If an existing non-directory blocks creation, or on
                any other native failure
        """
        with translate_errors("create_directories", path):
            self._create_directories(path, attributes)

    def _create_directories(self, path: PurePath, attributes: tuple[FileAttribute, ...]) -> None:
        try:
            self._native.create_directory(path, *attributes)
            return
        except FileExistsError:
            if self._is_existing_directory(path):
                return
            raise
        except FileNotFoundError:
            if path.parent == path:
                raise
        self._create_directories(path.parent, attributes)
        try:
            self._native.create_directory(path, *attributes)
        except FileExistsError:
            # lost a race with a concurrent creator
            if not self._is_existing_directory(path):
                raise

    def _is_existing_directory(self, path: PurePath) -> bool:
        try:
            return self._native.read_attributes(path).is_directory
        except FileNotFoundError:
            return False

    def get_last_modified_time(self, path: PurePath, *options: LinkOption) -> datetime:
        with translate_errors("get_last_modified_time", path):
            return self._native.read_attributes(path, *options).last_modified_time

    def set_last_modified_time(self, path: PurePath, time: datetime) -> None:
        """Set the last-modified time; access and creation times are left unchanged."""
        with translate_errors("set_last_modified_time", path):
            self._native.get_file_attribute_view(path).set_times(time, None, None)

    def get_creation_time(self, path: PurePath, *options: LinkOption) -> datetime:
        with translate_errors("get_creation_time", path):
            return self._native.read_attributes(path, *options).creation_time

    def set_creation_time(self, path: PurePath, time: datetime, *options: LinkOption) -> None:
        """
        Set the creation time; access and modification times are left unchanged.

        Filesystems without creation-time support may silently ignore this,
        see ``supports_creation_time``.
        """
        with translate_errors("set_creation_time", path):
            self._native.get_file_attribute_view(path, *options).set_times(None, None, time)

    def delete(self, path: PurePath) -> None:
        with translate_errors("delete", path):
            self._native.delete(path)

    def move(self, source: PurePath, target: PurePath, *options: CopyOption) -> None:
        """
        Move ``source`` to ``target``.

        With ATOMIC_MOVE a move the native layer cannot perform atomically
        (e.g. across devices) fails instead of falling back to copy + delete.
        """
        with translate_errors("move", source, target):
            self._native.move(source, target, *options)

    def close(self, channel: FileChannel) -> None:
        with translate_errors("close", getattr(channel, "path", None)):
            channel.close()

    def supports_creation_time(self, directory: PurePath) -> bool:
        """
        Probe whether the filesystem behind ``directory`` persists creation times.

        Never raises for native failures; any failure means False. Each call
        probes afresh since capability differs per mounted filesystem.
        """
        return self.probe_creation_time(directory).supported

    def probe_creation_time(self, directory: PurePath) -> ProbeResult:
        """Run the creation-time probe and return the detailed result."""
        result = self._probe.run(directory)
        logger.debug("Creation time supported in %s: %s", directory, result.supported)
        return result

    def separator(self) -> str:
        return self._native.separator

    def _read_attributes_if_present(
        self, operation: str, path: PurePath, options: tuple[LinkOption, ...]
    ) -> BasicFileAttributes | None:
        with translate_errors(operation, path):
            try:
                return self._native.read_attributes(path, *options)
            except (FileNotFoundError, NotADirectoryError):
                return None
