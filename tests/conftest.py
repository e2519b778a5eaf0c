from __future__ import annotations

import pytest

from ventlogger.transport import Transport

SENSORINFO_REPLY = b"RH : 4523 [.01%] (0)\r  TEMP :  215"
FANSPEED_REPLY = b"FanSpeed: Actual 1200 [RPM] - Filtered 1180 [RPM]"


class FakeClock:
    """Monotonic clock whose sleep just moves time forward."""

    def __init__(self, start: float = 0.0) -> None:
        self.now = start
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


class FakePort:
    """Stands in for serial.Serial; answers each CR-terminated command."""

    def __init__(self, replies: dict[str, bytes] | None = None) -> None:
        self.replies = dict(replies or {})
        self.writes: list[bytes] = []
        self.pending = bytearray()
        self.commands: list[str] = []
        self.read_error: Exception | None = None
        self.write_error: Exception | None = None
        self.closed = False
        self._line = bytearray()

    def write(self, data: bytes) -> int:
        if self.write_error is not None:
            raise self.write_error
        self.writes.append(bytes(data))
        for byte in data:
            if byte == 0x0D:
                command = self._line.decode("ascii")
                self._line.clear()
                self.commands.append(command)
                self.pending.extend(self.replies.get(command, b""))
            else:
                self._line.append(byte)
        return len(data)

    @property
    def in_waiting(self) -> int:
        return len(self.pending)

    def read(self, size: int = 1) -> bytes:
        if self.read_error is not None:
            raise self.read_error
        chunk = bytes(self.pending[:size])
        del self.pending[:size]
        return chunk

    def close(self) -> None:
        self.closed = True


class FakeWriteApi:
    """Records write() calls the way the InfluxDB write API receives them."""

    def __init__(self, error: Exception | None = None) -> None:
        self.calls: list[dict] = []
        self.error = error

    def write(self, **kwargs) -> None:
        self.calls.append(kwargs)
        if self.error is not None:
            raise self.error


def parse_line(line: str) -> tuple[str, dict[str, str], int]:
    """Split a tagless line-protocol record; field order is not significant."""
    measurement, field_set, stamp = line.split(" ")
    fields = dict(pair.split("=", 1) for pair in field_set.split(","))
    return measurement, fields, int(stamp)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def port() -> FakePort:
    return FakePort({"sensorinfo": SENSORINFO_REPLY, "fanspeed": FANSPEED_REPLY})


@pytest.fixture
def transport(port: FakePort, clock: FakeClock) -> Transport:
    return Transport(port, clock=clock, sleep=clock.sleep)


@pytest.fixture
def write_api() -> FakeWriteApi:
    return FakeWriteApi()
