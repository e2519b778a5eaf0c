import logging
import time

from ventlogger.config import FANSPEED, SENSORINFO
from ventlogger.extractor import extract
from ventlogger.publisher import MetricSample

log = logging.getLogger(__name__)


class Scheduler:
    """Runs the poll/parse/publish cycle on a fixed period.

    Cycles never overlap. When a cycle overruns one or more ticks the missed
    ticks are dropped and the loop waits for the next future one. ``stop``
    only flips a flag, so a signal handler may call it at any point. The tick
    wait checks the flag every ``wait_slice`` seconds; a cycle in progress
    always runs to completion, so the device is not left with half a command.
    """

    def __init__(self, transport, publisher, interval=10.0,
                 sensorinfo_size=74, fanspeed_size=65, wait_slice=0.1,
                 clock=time.monotonic, sleep=time.sleep, now=time.time):
        if interval <= 0:
            raise ValueError(f"poll interval must be positive, got {interval!r}")
        self.transport = transport
        self.publisher = publisher
        self.interval = interval
        self.sensorinfo_size = sensorinfo_size
        self.fanspeed_size = fanspeed_size
        self.wait_slice = wait_slice
        self._clock = clock
        self._sleep = sleep
        self._now = now
        self._stopping = False

    def stop(self):
        self._stopping = True

    @property
    def stopped(self):
        return self._stopping

    def run_cycle(self) -> MetricSample:
        sensorinfo = self.transport.query(SENSORINFO, self.sensorinfo_size)
        fanspeed = self.transport.query(FANSPEED, self.fanspeed_size)
        log.info("sensorinfo: %s", sensorinfo)
        log.info("fanspeed: %s", fanspeed)

        readings = extract(sensorinfo, fanspeed)
        sample = MetricSample(readings, int(self._now()))
        self.publisher.publish(sample)
        return sample

    def run(self, max_cycles=None):
        """Tick until stopped; returns the number of cycles run."""
        cycles = 0
        next_tick = self._clock()
        while not self._stopping:
            self.run_cycle()
            cycles += 1
            if max_cycles is not None and cycles >= max_cycles:
                break

            next_tick += self.interval
            now = self._clock()
            if now >= next_tick:
                skipped = int((now - next_tick) // self.interval) + 1
                log.warning("cycle overran, skipping %d tick(s)", skipped)
                next_tick += skipped * self.interval
            self._wait_until(next_tick)
        return cycles

    def _wait_until(self, deadline):
        while not self._stopping:
            remaining = deadline - self._clock()
            if remaining <= 0:
                break
            self._sleep(min(remaining, self.wait_slice))
