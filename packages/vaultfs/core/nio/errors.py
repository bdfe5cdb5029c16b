"""Typed failures raised by the native filesystem gateway.

Every failure is an ``OSError`` so errno, strerror and filename survive
translation and callers can keep catching ``OSError``.
"""

from collections.abc import Iterator
from contextlib import contextmanager
import errno
import logging
from pathlib import PurePath

logger = logging.getLogger(__name__)


class GatewayIOError(OSError):
    """Raised when a native filesystem call fails.

    Attributes:
        operation: Gateway operation that failed (e.g. "delete")
        path: Path the operation was applied to
        target: Second path for two-path operations (move)
    """

    def __init__(
        self,
        operation: str,
        path: PurePath | None,
        err_no: int | None = None,
        strerror: str | None = None,
        target: PurePath | None = None,
    ) -> None:
        if err_no is None:
            super().__init__(strerror or operation)
        else:
            super().__init__(err_no, strerror or operation)
        self.operation = operation
        self.path = path
        self.target = target
        self.filename = None if path is None else str(path)
        self.filename2 = None if target is None else str(target)

    def __str__(self) -> str:
        location = f"{self.path} -> {self.target}" if self.target is not None else str(self.path)
        detail = self.strerror or (self.args[0] if self.args else "")
        return f"{self.operation} failed for {location}: {detail}"


class GatewayNotFoundError(GatewayIOError, FileNotFoundError):
    """Raised when a path required by an operation does not exist."""


class UnsupportedOptionsError(GatewayIOError):
    """Raised for unsupported option combinations or attribute names."""

    def __init__(self, operation: str, path: PurePath | None, message: str) -> None:
        super().__init__(operation, path, errno.EINVAL, message)


def wrap_os_error(
    err: OSError,
    operation: str,
    path: PurePath | None,
    target: PurePath | None = None,
) -> GatewayIOError:
    """
    Build the typed counterpart of a native error.

    Args:
        err: Native error
        operation: Gateway operation name
        path: Primary path
        target: Secondary path, if any

    Returns:
        GatewayNotFoundError for missing paths, GatewayIOError otherwise
    """
    if isinstance(err, GatewayIOError):
        return err
    cls = GatewayNotFoundError if isinstance(err, FileNotFoundError) else GatewayIOError
    return cls(operation, path, err.errno, err.strerror or str(err), target=target)


@contextmanager
def translate_errors(
    operation: str,
    path: PurePath | None,
    target: PurePath | None = None,
) -> Iterator[None]:
    """
    Convert native ``OSError``s raised inside the block into typed failures.

    Already-typed errors pass through unchanged. ``ValueError``s raised by
    the native layer for unusable arguments (e.g. a path containing a null
    byte) become ``GatewayIOError`` with errno ``EINVAL``.

    Example:
        >>> with translate_errors("delete", path):
        ...     native.delete(path)
    """
    try:
        yield
    except GatewayIOError:
        raise
    except OSError as err:
        translated = wrap_os_error(err, operation, path, target)
        logger.debug("Native %s failed: %s", operation, translated)
        raise translated from err
    except ValueError as err:
        translated = GatewayIOError(operation, path, errno.EINVAL, str(err), target=target)
        logger.debug("Native %s rejected its arguments: %s", operation, translated)
        raise translated from err
