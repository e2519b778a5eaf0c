import re
from dataclasses import dataclass, fields
from typing import Optional

# Humidity comes in hundredths of a percent, temperature in tenths of a degree.
SENSOR_RE = re.compile(r"RH : (\d+) \[\.01%] \(0\)\n\s{2}TEMP :\s{2}(\d+)")
FAN_RE = re.compile(r"FanSpeed:\s*Actual\s*(\d+)\s*\[.*?]\s*-\s*Filtered\s*(\d+)\s*\[.*?]")


@dataclass(frozen=True)
class Readings:
    """Values parsed from one poll. ``None`` means the reply did not match."""

    humidity: Optional[float] = None
    temperature: Optional[float] = None
    fan_actual: Optional[int] = None
    fan_filtered: Optional[int] = None

    def present(self):
        """Return the non-absent readings as a ``{field: value}`` dict."""
        out = {}
        for f in fields(self):
            value = getattr(self, f.name)
            if value is not None:
                out[f.name] = value
        return out


def parse_sensorinfo(text: str):
    m = SENSOR_RE.search(text)
    if m is None:
        return None, None
    return float(m.group(1)) / 100.0, float(m.group(2)) / 10.0


def parse_fanspeed(text: str):
    m = FAN_RE.search(text)
    if m is None:
        return None, None
    return int(m.group(1)), int(m.group(2))


def extract(sensorinfo: str, fanspeed: str) -> Readings:
    humidity, temperature = parse_sensorinfo(sensorinfo)
    fan_actual, fan_filtered = parse_fanspeed(fanspeed)
    return Readings(humidity, temperature, fan_actual, fan_filtered)
