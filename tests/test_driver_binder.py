"""Tests for sysfs driver rebinding."""

from unittest.mock import call, patch

import pytest

from backend.driver_binder import DriverBinder
from backend.errors import BindError


class TestListFunctions:

    def test_lists_only_functions_under_prefix(self, binder):
        assert binder.list_functions("0000:01:00") == ["0000:01:00.0", "0000:01:00.1"]

    def test_orders_by_function_index(self, sysfs):
        for index in (3, 0, 2, 1):
            sysfs.add_function(f"0000:05:00.{index}")
        binder = DriverBinder(sysfs.root)
        assert binder.list_functions("0000:05:00") == [
            "0000:05:00.0", "0000:05:00.1", "0000:05:00.2", "0000:05:00.3"
        ]

    def test_unknown_prefix_is_empty(self, binder):
        assert binder.list_functions("0000:09:00") == []


class TestCurrentDriver:

    def test_reads_driver_symlink(self, binder):
        assert binder.current_driver("0000:01:00.0") == "nvidia"

    def test_unbound_function(self, sysfs):
        sysfs.add_function("0000:03:00.0")
        assert DriverBinder(sysfs.root).current_driver("0000:03:00.0") is None


class TestBind:

    def test_rebind_writes_unbind_override_bind(self, binder, gpu_sysfs):
        with patch.object(binder, "_sysfs_write", wraps=binder._sysfs_write) as write:
            assert binder.bind("0000:01:00.0", "vfio-pci") is True

        devices = gpu_sysfs.devices / "0000:01:00.0"
        assert write.call_args_list == [
            call(devices / "driver" / "unbind", "0000:01:00.0"),
            call(devices / "driver_override", "vfio-pci"),
            call(gpu_sysfs.drivers / "vfio-pci" / "bind", "0000:01:00.0"),
        ]
        assert gpu_sysfs.read("drivers", "nvidia", "unbind") == "0000:01:00.0"
        assert gpu_sysfs.read("devices", "0000:01:00.0", "driver_override") == "vfio-pci"
        assert gpu_sysfs.read("drivers", "vfio-pci", "bind") == "0000:01:00.0"

    def test_unbound_function_skips_unbind(self, sysfs):
        sysfs.add_function("0000:03:00.0")
        sysfs.add_driver("vfio-pci")
        binder = DriverBinder(sysfs.root)

        with patch.object(binder, "_sysfs_write", wraps=binder._sysfs_write) as write:
            binder.bind("0000:03:00.0", "vfio-pci")

        written = [c.args[0].name for c in write.call_args_list]
        assert written == ["driver_override", "bind"]

    def test_second_bind_is_a_noop(self, binder, gpu_sysfs):
        original = binder._sysfs_write

        def kernel_write(path, value):
            original(path, value)
            if path.name == "bind":
                gpu_sysfs.attach(value, path.parent.name)

        with patch.object(binder, "_sysfs_write", side_effect=kernel_write) as write:
            assert binder.bind("0000:01:00.1", "vfio-pci") is True
            writes_after_first = write.call_count
            assert binder.bind("0000:01:00.1", "vfio-pci") is False

        assert writes_after_first == 3
        assert write.call_count == 3

    def test_already_on_target_does_nothing(self, binder):
        with patch.object(binder, "_sysfs_write") as write:
            assert binder.bind("0000:01:00.0", "nvidia") is False
        write.assert_not_called()

    def test_missing_function_raises(self, binder):
        with pytest.raises(BindError, match="not found"):
            binder.bind("0000:01:00.7", "vfio-pci")

    def test_missing_driver_raises_before_unbinding(self, binder, gpu_sysfs):
        with patch.object(binder, "_sysfs_write") as write:
            with pytest.raises(BindError, match="not loaded"):
                binder.bind("0000:01:00.0", "amdgpu")
        write.assert_not_called()

    def test_write_failure_becomes_bind_error(self, binder):
        with patch("builtins.open", side_effect=PermissionError("denied")):
            with pytest.raises(BindError, match="denied"):
                binder.bind("0000:01:00.0", "vfio-pci")


class TestBindAll:

    def test_aborts_on_first_failure(self, binder):
        with patch.object(binder, "bind", side_effect=[True, BindError("boom"), True]) as bind:
            with pytest.raises(BindError):
                binder.bind_all(["a", "b", "c"], ["x", "y", "z"])
        assert bind.call_count == 2

    def test_pairs_functions_with_drivers(self, binder):
        with patch.object(binder, "bind") as bind:
            binder.bind_all(["0000:01:00.0", "0000:01:00.1"], ["nvidia", "snd_hda_intel"])
        assert bind.call_args_list == [
            call("0000:01:00.0", "nvidia"),
            call("0000:01:00.1", "snd_hda_intel"),
        ]
