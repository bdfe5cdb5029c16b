"""Creation-time capability probe.

Some native layers accept a "set creation time" call without error and then
ignore it, so capability is decided by a live round trip: create a temporary
file, write a creation time, read it back and compare with tolerance.
"""

from datetime import datetime, timedelta
from enum import Enum
import logging
from pathlib import PurePath
from uuid import uuid4

from pydantic import BaseModel

from vaultfs.core.config.models import ProbeConfig

from .models import OpenOption, truncate_to_seconds
from .protocols import NativeFileSystem

logger = logging.getLogger(__name__)


class ProbeState(str, Enum):
    """Probe progress; SUPPORTED and UNSUPPORTED are terminal."""

    START = "start"
    TEMP_FILE_CREATED = "temp_file_created"
    TIME_SET = "time_set"
    TIME_READ = "time_read"
    SUPPORTED = "supported"
    UNSUPPORTED = "unsupported"


class ProbeResult(BaseModel):
    """Outcome of one creation-time probe.

    Attributes:
        directory: Directory that was probed
        state: Terminal state reached
        last_state: Last non-terminal state reached before the verdict
        target: Creation time written to the probe file
        observed: Creation time read back (None if the probe failed first)
        error: Description of the native failure, if any
    """

    directory: str
    state: ProbeState
    last_state: ProbeState
    target: datetime
    observed: datetime | None = None
    error: str | None = None

    model_config = {"frozen": True}

    @property
    def supported(self) -> bool:
        return self.state is ProbeState.SUPPORTED

    @property
    def deviation(self) -> timedelta | None:
        """Absolute difference between observed and target, if both are known."""
        if self.observed is None:
            return None
        return abs(self.observed - self.target)


class CreationTimeProbe:
    """
    Round-trip probe for creation-time support in one directory.

    Every failure ends the probe as UNSUPPORTED; nothing is raised.
    The temporary file is deleted best-effort on every exit path.
    """

    def __init__(self, native: NativeFileSystem, config: ProbeConfig | None = None) -> None:
        self._native = native
        self._config = config or ProbeConfig()

    def run(self, directory: PurePath) -> ProbeResult:
        """
        Probe ``directory``.

        Args:
            directory: Existing directory on the filesystem under test

        Returns:
            ProbeResult with a terminal state
        """
        target = truncate_to_seconds(self._config.reference_time)
        temp_file = directory / f"{self._config.temp_file_prefix}{uuid4().hex}"
        state = ProbeState.START
        observed: datetime | None = None
        owns_file = True
        try:
            with self._native.new_byte_channel(
                temp_file, {OpenOption.CREATE_NEW, OpenOption.WRITE}
            ):
                pass
            view = self._native.get_file_attribute_view(temp_file)
            state = self._advance(state, ProbeState.TEMP_FILE_CREATED, temp_file)

            view.set_times(None, None, target)
            state = self._advance(state, ProbeState.TIME_SET, temp_file)

            observed = self._native.read_attributes(temp_file).creation_time
            state = self._advance(state, ProbeState.TIME_READ, temp_file)

            within_tolerance = abs(observed - target) <= self._config.tolerance
        except Exception as err:
            # any failure of the round trip means unsupported
            if isinstance(err, FileExistsError) and state is ProbeState.START:
                owns_file = False
            logger.debug(
                "Creation-time probe in %s failed after %s: %s", directory, state.value, err
            )
            return ProbeResult(
                directory=str(directory),
                state=ProbeState.UNSUPPORTED,
                last_state=state,
                target=target,
                error=f"{type(err).__name__}: {err}",
            )
        finally:
            if owns_file:
                self._cleanup(temp_file)

        verdict = ProbeState.SUPPORTED if within_tolerance else ProbeState.UNSUPPORTED
        logger.debug(
            "Creation-time probe in %s: target=%s observed=%s -> %s",
            directory,
            target.isoformat(),
            observed.isoformat(),
            verdict.value,
        )
        return ProbeResult(
            directory=str(directory),
            state=verdict,
            last_state=state,
            target=target,
            observed=observed,
        )

    def _advance(self, current: ProbeState, new: ProbeState, temp_file: PurePath) -> ProbeState:
        logger.debug("Probe %s: %s -> %s", temp_file.name, current.value, new.value)
        return new

    def _cleanup(self, temp_file: PurePath) -> None:
        try:
            self._native.delete(temp_file)
        except FileNotFoundError:
            logger.debug("Probe file %s was never created", temp_file)
        except Exception as err:
            logger.warning("Could not delete probe file %s: %s", temp_file, err)
