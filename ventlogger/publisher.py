import logging
from dataclasses import dataclass

from influxdb_client import InfluxDBClient, Point, WritePrecision
from influxdb_client.client.write_api import SYNCHRONOUS

from ventlogger.extractor import Readings

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class MetricSample:
    readings: Readings
    timestamp: int  # Unix seconds, assigned once after parsing


def connect(url, token=None, org="-"):
    """Build the long-lived client and its blocking write API."""
    client = InfluxDBClient(url=url, token=token, org=org)
    return client, client.write_api(write_options=SYNCHRONOUS)


class InfluxPublisher:
    """Writes one point per sample; failures are logged and dropped.

    A stale sample is never worth retrying since the next poll produces a
    fresh one, so there is no retry and no local buffer.
    """

    def __init__(self, write_api, bucket="ventilation", measurement="ducozolder", org="-"):
        self.write_api = write_api
        self.bucket = bucket
        self.measurement = measurement
        self.org = org

    def build_point(self, sample: MetricSample) -> Point:
        point = Point(self.measurement).time(sample.timestamp, WritePrecision.S)
        for name, value in sample.readings.present().items():
            point.field(name, value)
        return point

    def publish(self, sample: MetricSample) -> bool:
        values = sample.readings.present()
        if not values:
            log.warning("No readings parsed, skipping write for %s", sample.timestamp)
            return False

        point = self.build_point(sample)
        try:
            self.write_api.write(
                bucket=self.bucket,
                org=self.org,
                record=point,
                write_precision=WritePrecision.S,
            )
        except Exception as e:
            log.error("Failed to write to InfluxDB: %s", e)
            return False
        log.debug("wrote %s", point.to_line_protocol())
        return True
