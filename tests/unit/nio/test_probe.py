"""Tests for the creation-time capability probe."""

from datetime import UTC, datetime, timedelta
import errno
from pathlib import PurePosixPath
from unittest.mock import MagicMock

import pytest

from vaultfs.core.config import ProbeConfig
from vaultfs.core.nio import (
    BasicFileAttributes,
    CreationTimeProbe,
    FakeNativeFileSystem,
    NativeFilesystemGateway,
    OpenOption,
    ProbeState,
    from_millis,
    to_millis,
)

EXPECTED_MILLIS_SET = 1184725140000
MILLISECONDS_IN_A_DAY = 86400000


def _attributes_with_creation_millis(millis: int) -> BasicFileAttributes:
    now = datetime.now(UTC)
    return BasicFileAttributes(
        last_modified_time=now,
        last_access_time=now,
        creation_time=from_millis(millis),
        is_regular_file=True,
    )


class TestSupportsCreationTimeWithMockPort:
    """Boundary tests: the read-back value may deviate by at most one day."""

    @pytest.mark.parametrize(
        ("offset_ms", "expected"),
        [
            (MILLISECONDS_IN_A_DAY, True),
            (-MILLISECONDS_IN_A_DAY, True),
            (MILLISECONDS_IN_A_DAY + 1, False),
            (-MILLISECONDS_IN_A_DAY - 1, False),
            (0, True),
        ],
    )
    def test_supports_creation_time_tolerates_one_day(
        self, gateway, native, vault_root, offset_ms, expected
    ):
        """Test the verdict at and just beyond the one-day tolerance."""
        native.read_attributes.return_value = _attributes_with_creation_millis(
            EXPECTED_MILLIS_SET + offset_ms
        )
        view = native.get_file_attribute_view.return_value

        assert gateway.supports_creation_time(vault_root) is expected
        view.set_times.assert_called_once_with(None, None, from_millis(EXPECTED_MILLIS_SET))

    def test_probe_creates_temp_file_inside_directory(self, gateway, native, vault_root):
        native.read_attributes.return_value = _attributes_with_creation_millis(
            EXPECTED_MILLIS_SET
        )

        gateway.supports_creation_time(vault_root)

        temp_file, options = native.new_byte_channel.call_args.args
        assert temp_file.parent == vault_root
        assert temp_file.name.startswith(".vaultfs-ctime-probe-")
        assert options == {OpenOption.CREATE_NEW, OpenOption.WRITE}
        native.get_file_attribute_view.assert_called_once_with(temp_file)
        native.read_attributes.assert_called_once_with(temp_file)
        native.delete.assert_called_once_with(temp_file)

    def test_probe_uses_unique_temp_file_names(self, gateway, native, vault_root):
        native.read_attributes.return_value = _attributes_with_creation_millis(
            EXPECTED_MILLIS_SET
        )

        gateway.supports_creation_time(vault_root)
        gateway.supports_creation_time(vault_root)

        first, second = (c.args[0] for c in native.new_byte_channel.call_args_list)
        assert first != second

    def test_supports_creation_time_returns_false_if_io_error_occurs(
        self, gateway, native, vault_root
    ):
        """Test a failure while creating the temp file is swallowed."""
        native.new_byte_channel.side_effect = OSError(errno.EIO, "I/O error")

        assert gateway.supports_creation_time(vault_root) is False
        native.get_file_attribute_view.assert_not_called()
        native.delete.assert_called_once()

    def test_probe_does_not_delete_foreign_file_on_name_collision(
        self, gateway, native, vault_root
    ):
        native.new_byte_channel.side_effect = FileExistsError(errno.EEXIST, "File exists")

        assert gateway.supports_creation_time(vault_root) is False
        native.delete.assert_not_called()

    @pytest.mark.parametrize(
        "failing",
        ["get_file_attribute_view", "read_attributes"],
    )
    def test_probe_failure_at_any_step_is_unsupported(
        self, gateway, native, vault_root, failing
    ):
        getattr(native, failing).side_effect = PermissionError(errno.EACCES, "denied")

        assert gateway.supports_creation_time(vault_root) is False
        native.delete.assert_called_once()

    def test_probe_treats_unimplemented_setter_as_unsupported(self, gateway, native, vault_root):
        native.get_file_attribute_view.return_value.set_times.side_effect = NotImplementedError

        assert gateway.supports_creation_time(vault_root) is False

    def test_cleanup_failure_does_not_change_result(self, gateway, native, vault_root):
        native.read_attributes.return_value = _attributes_with_creation_millis(
            EXPECTED_MILLIS_SET
        )
        native.delete.side_effect = PermissionError(errno.EACCES, "denied")

        assert gateway.supports_creation_time(vault_root) is True

    @pytest.mark.parametrize(
        "error", [ValueError("embedded null byte"), RuntimeError("port bug"), TypeError("bad")]
    )
    def test_any_port_exception_is_unsupported(self, gateway, native, vault_root, error):
        """Test non-OS failures while creating the temp file never escape."""
        native.new_byte_channel.side_effect = error

        assert gateway.supports_creation_time(vault_root) is False

    def test_cleanup_exception_of_any_kind_is_swallowed(self, gateway, native, vault_root):
        native.read_attributes.return_value = _attributes_with_creation_millis(
            EXPECTED_MILLIS_SET
        )
        native.delete.side_effect = ValueError("embedded null byte")

        assert gateway.supports_creation_time(vault_root) is True

    def test_naive_creation_time_is_unsupported(self, gateway, native, vault_root):
        """Test a read-back value that cannot be compared ends as unsupported."""
        attributes = MagicMock()
        attributes.creation_time = datetime(2007, 7, 18, 2, 19)
        native.read_attributes.return_value = attributes

        result = CreationTimeProbe(native).run(vault_root)

        assert result.state is ProbeState.UNSUPPORTED
        assert result.last_state is ProbeState.TIME_READ
        native.delete.assert_called_once()


class TestProbeResult:
    """Tests for the detailed probe outcome."""

    def test_result_records_states_and_deviation(self, native, vault_root):
        native.read_attributes.return_value = _attributes_with_creation_millis(
            EXPECTED_MILLIS_SET + 5000
        )

        result = CreationTimeProbe(native).run(vault_root)

        assert result.state is ProbeState.SUPPORTED
        assert result.last_state is ProbeState.TIME_READ
        assert to_millis(result.target) == EXPECTED_MILLIS_SET
        assert result.deviation == timedelta(seconds=5)
        assert result.error is None

    def test_result_records_failure_state(self, native, vault_root):
        native.get_file_attribute_view.return_value.set_times.side_effect = OSError(
            errno.EROFS, "Read-only file system"
        )

        result = CreationTimeProbe(native).run(vault_root)

        assert result.state is ProbeState.UNSUPPORTED
        assert result.last_state is ProbeState.TEMP_FILE_CREATED
        assert result.observed is None
        assert result.deviation is None
        assert "Read-only" in result.error

    def test_target_is_truncated_to_whole_seconds(self, native, vault_root):
        reference = datetime(2010, 5, 6, 7, 8, 9, 654321, tzinfo=UTC)
        config = ProbeConfig(reference_time=reference)
        native.read_attributes.return_value = _attributes_with_creation_millis(0)

        result = CreationTimeProbe(native, config).run(vault_root)

        assert result.target == reference.replace(microsecond=0)
        native.get_file_attribute_view.return_value.set_times.assert_called_once_with(
            None, None, reference.replace(microsecond=0)
        )

    def test_custom_tolerance(self, native, vault_root):
        config = ProbeConfig(tolerance_ms=1000)
        native.read_attributes.return_value = _attributes_with_creation_millis(
            EXPECTED_MILLIS_SET + 1001
        )

        assert CreationTimeProbe(native, config).run(vault_root).supported is False


class TestSupportsCreationTimeWithFakePort:
    """End-to-end probe runs against the in-memory port."""

    @pytest.fixture
    def vault(self, fake_gateway: NativeFilesystemGateway) -> PurePosixPath:
        root = PurePosixPath("/vault")
        fake_gateway.create_directories(root)
        return root

    def test_supported_when_creation_time_persists(self, fake_gateway, vault):
        assert fake_gateway.supports_creation_time(vault) is True

    def test_unsupported_when_creation_time_is_ignored(self, fake, fake_gateway, vault):
        fake.creation_time_supported = False

        assert fake_gateway.supports_creation_time(vault) is False

    @pytest.mark.parametrize(
        ("skew", "expected"),
        [
            (timedelta(days=1), True),
            (-timedelta(days=1), True),
            (timedelta(days=1, milliseconds=1), False),
            (-timedelta(days=1, milliseconds=1), False),
        ],
    )
    def test_skewed_creation_time(self, fake, fake_gateway, vault, skew, expected):
        fake.creation_time_skew = skew

        assert fake_gateway.supports_creation_time(vault) is expected

    def test_probe_leaves_no_temp_file_behind(self, fake, fake_gateway, vault):
        fake.creation_time_supported = False

        fake_gateway.supports_creation_time(vault)

        assert list(fake_gateway.list(vault)) == []

    def test_probe_in_missing_directory_is_unsupported(self, fake_gateway):
        assert fake_gateway.supports_creation_time(PurePosixPath("/missing")) is False

    def test_probe_is_not_cached(self, fake, fake_gateway, vault):
        assert fake_gateway.supports_creation_time(vault) is True
        fake.creation_time_supported = False
        assert fake_gateway.supports_creation_time(vault) is False
