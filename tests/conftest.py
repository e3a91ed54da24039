"""
Pytest configuration and shared fixtures for mv7ctl tests.
"""

from __future__ import annotations

import tempfile
from collections import deque
from pathlib import Path
from typing import Any, Generator

import pytest
import yaml

from mv7ctl.device.constants import FRAME_SIZE, MV7, Timing, UACRequest
from mv7ctl.device.errors import TransferTimeout
from mv7ctl.device.session import DeviceSession


class FakeMV7Transport:
    """
    Simulated MV7 behind the transport interface.

    Keeps mute and DSP mode state, answers dspMode commands on the
    interrupt channel, and records every call for inspection.
    """

    def __init__(
        self,
        kernel_drivers: tuple[int, ...] = (0, 3),
        configuration: int | None = 1,
        muted: bool = False,
        mode: int = 2,
    ) -> None:
        self.configuration = configuration
        self.kernel_drivers = set(kernel_drivers)
        self.claimed: set[int] = set()
        self.muted = muted
        self.mode = mode
        self.respond = True
        self.write_limit: int | None = None
        self.input_queue: deque[bytes] = deque()
        self.calls: list[tuple[str, tuple[Any, ...]]] = []
        self._failures: list[tuple[str, Any, Exception]] = []

    # Test helpers

    def fail_on(self, method: str, error: Exception, arg: Any = None) -> None:
        """Make *method* raise *error* (only when called with *arg*, if given)."""
        self._failures.append((method, arg, error))

    def push_frame(self, text: str) -> None:
        """Queue an inbound frame."""
        self.input_queue.append(text.encode("ascii").ljust(FRAME_SIZE, b"\x00"))

    def count(self, method: str) -> int:
        return sum(1 for name, _ in self.calls if name == method)

    def args_of(self, method: str) -> list[tuple[Any, ...]]:
        return [args for name, args in self.calls if name == method]

    def _record(self, method: str, *args: Any) -> None:
        self.calls.append((method, args))
        for name, arg, error in self._failures:
            if name == method and (arg is None or (args and args[0] == arg)):
                raise error

    # Transport interface

    def get_configuration(self) -> int | None:
        self._record("get_configuration")
        return self.configuration

    def set_configuration(self, value: int) -> None:
        self._record("set_configuration", value)
        self.configuration = value

    def is_kernel_driver_active(self, interface: int) -> bool:
        self._record("is_kernel_driver_active", interface)
        return interface in self.kernel_drivers

    def detach_kernel_driver(self, interface: int) -> None:
        self._record("detach_kernel_driver", interface)
        self.kernel_drivers.discard(interface)

    def attach_kernel_driver(self, interface: int) -> None:
        self._record("attach_kernel_driver", interface)
        self.kernel_drivers.add(interface)

    def claim_interface(self, interface: int) -> None:
        self._record("claim_interface", interface)
        self.claimed.add(interface)

    def release_interface(self, interface: int) -> None:
        self._record("release_interface", interface)
        self.claimed.discard(interface)

    def set_alternate_setting(self, interface: int, alternate_setting: int) -> None:
        self._record("set_alternate_setting", interface, alternate_setting)

    def control_transfer(
        self,
        request_type: int,
        request: int,
        value: int,
        index: int,
        data_or_length: bytes | int,
        timeout_ms: int,
    ) -> bytes | int:
        self._record(
            "control_transfer", request_type, request, value, index, data_or_length, timeout_ms
        )
        if request == UACRequest.GET_CUR:
            return bytes([1 if self.muted else 0])
        self.muted = data_or_length[0] != 0
        return len(data_or_length)

    def write(self, endpoint: int, data: bytes, timeout_ms: int) -> int:
        self._record("write", endpoint, data, timeout_ms)
        text = data.split(b"\x00", 1)[0].decode("ascii")
        if text.startswith("dspMode "):
            self.mode = int(text.split(" ", 1)[1])
        if self.respond and text.startswith("dspMode"):
            self.push_frame(f"dspMode={self.mode}")
        if self.write_limit is not None:
            return min(len(data), self.write_limit)
        return len(data)

    def read(self, endpoint: int, size: int, timeout_ms: int) -> bytes:
        self._record("read", endpoint, size, timeout_ms)
        if not self.input_queue:
            raise TransferTimeout(f"read from endpoint {endpoint:#04x} timed out")
        return self.input_queue.popleft()[:size]

    def reset(self) -> None:
        self._record("reset")

    def dispose(self) -> None:
        self._record("dispose")


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for tests."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def sample_config(temp_dir: Path) -> Path:
    """Create a sample configuration file."""
    config_path = temp_dir / "mv7ctl.yaml"
    config_data = {
        "logging": {
            "log_level": "debug",
        },
        "device": {
            "profile": "mv7",
        },
        "timing": {
            "read_timeout_ms": 300,
            "settle_delay": 0.0,
        },
    }
    with open(config_path, "w") as f:
        yaml.dump(config_data, f)
    return config_path


@pytest.fixture
def timing() -> Timing:
    """Default timing without the settle delay."""
    return Timing(settle_delay=0.0)


@pytest.fixture
def fake_transport() -> FakeMV7Transport:
    """Simulated MV7 with kernel drivers bound to both interfaces."""
    return FakeMV7Transport()


@pytest.fixture
def session(
    fake_transport: FakeMV7Transport, timing: Timing
) -> Generator[DeviceSession, None, None]:
    """Open session on the simulated MV7."""
    mic = DeviceSession.open(profile=MV7, timing=timing, transport=fake_transport)
    yield mic
    mic.close()
