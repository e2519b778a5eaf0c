import logging
import time

import serial

log = logging.getLogger(__name__)

CR = b"\r"


class TransportError(Exception):
    """The serial link failed in a way the poll loop cannot recover from."""


class Transport:
    """Paced command/reply exchange with a single serial device.

    The device drops characters when a command arrives at line speed, so
    every byte of a command is followed by ``byte_delay`` seconds of silence.
    Replies carry no terminator; ``receive`` collects bytes until it has
    ``expected_size`` of them or ``window`` seconds have passed.
    """

    def __init__(self, port, byte_delay=0.02, window=1.0, poll_delay=0.01,
                 clock=time.monotonic, sleep=time.sleep):
        self.port = port
        self.byte_delay = byte_delay
        self.window = window
        self.poll_delay = poll_delay
        self._clock = clock
        self._sleep = sleep

    @classmethod
    def open(cls, device, baudrate, timeout=1.0, **kwargs):
        return cls(serial.Serial(device, baudrate, timeout=timeout), **kwargs)

    def close(self):
        self.port.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()

    def send(self, command: str) -> None:
        try:
            payload = command.encode("ascii")
        except UnicodeEncodeError as e:
            raise TransportError(f"command {command!r} is not plain ASCII") from e
        try:
            for byte in payload:
                self.port.write(bytes([byte]))
                self._sleep(self.byte_delay)
            self.port.write(CR)
        except (serial.SerialException, OSError) as e:
            raise TransportError(f"failed to write {command!r}: {e}") from e

    def receive_raw(self, expected_size: int) -> bytes:
        """Collect undecoded reply bytes, stopping at ``expected_size`` or the window."""
        buf = bytearray()
        deadline = self._clock() + self.window
        while len(buf) < expected_size and self._clock() < deadline:
            try:
                waiting = self.port.in_waiting
                chunk = self.port.read(waiting) if waiting else b""
            except serial.SerialTimeoutException:
                chunk = b""
            except (serial.SerialException, OSError) as e:
                raise TransportError(f"failed to read from serial port: {e}") from e
            if chunk:
                buf.extend(chunk)
            else:
                self._sleep(self.poll_delay)

        if len(buf) < expected_size:
            log.debug("receive window closed after %d of %d bytes", len(buf), expected_size)
        return bytes(buf)

    def receive(self, expected_size: int) -> str:
        return decode_reply(self.receive_raw(expected_size))

    def query(self, command: str, expected_size: int) -> str:
        self.send(command)
        return self.receive(expected_size)


def decode_reply(raw: bytes) -> str:
    return raw.replace(CR, b"\n").decode("utf-8", errors="replace")
