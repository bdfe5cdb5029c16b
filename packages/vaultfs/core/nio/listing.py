"""One-shot directory listing over a native directory stream."""

from collections.abc import Iterator
import logging
from pathlib import PurePath
from types import TracebackType

from .errors import GatewayIOError, wrap_os_error
from .protocols import DirectoryStream

logger = logging.getLogger(__name__)


class DirectoryListing:
    """
    Lazy, finite, one-shot iterator over the entries of a directory.

    Entries come in whatever order the native stream yields them. The stream
    is released exactly once: when iteration is exhausted, when iteration
    fails, on ``close()``, or when leaving a ``with`` block. Abandoned
    listings are closed on garbage collection as a last resort.

    Example:
        >>> with gateway.list(path) as entries:
        ...     first = next(entries, None)
    """

    def __init__(self, path: PurePath, stream: DirectoryStream) -> None:
        self._path = path
        self._stream = stream
        self._entries: Iterator[PurePath] | None = None
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def __iter__(self) -> "DirectoryListing":
        return self

    def __next__(self) -> PurePath:
        if self._closed:
            raise StopIteration
        try:
            if self._entries is None:
                self._entries = iter(self._stream)
            return next(self._entries)
        except StopIteration:
            self.close()
            raise
        except GatewayIOError:
            self.close()
            raise
        except OSError as err:
            self.close()
            raise wrap_os_error(err, "list", self._path) from err
        except BaseException:
            self.close()
            raise

    def close(self) -> None:
        """Release the native stream; safe to call repeatedly."""
        if self._closed:
            return
        self._closed = True
        self._stream.close()

    def __enter__(self) -> "DirectoryListing":
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()

    def __del__(self) -> None:
        if not getattr(self, "_closed", True):
            logger.debug("Directory listing for %s was abandoned without close()", self._path)
            self.close()
