import os
from dataclasses import dataclass, fields, replace
from typing import Mapping, Optional

ENV_PREFIX = "VENTLOGGER_"

# Commands understood by the ventilation unit.
SENSORINFO = "sensorinfo"
FANSPEED = "fanspeed"


@dataclass(frozen=True)
class Settings:
    # Serial link
    port: str = "/dev/ttyUSB0"
    baud: int = 112000
    read_timeout: float = 1.0
    byte_delay: float = 0.02
    receive_window: float = 1.0

    # Reply size hints; the receive window is the real terminator.
    sensorinfo_size: int = 74
    fanspeed_size: int = 65

    interval: float = 10.0

    # Metrics sink
    influx_url: str = "http://192.168.1.218:8086"
    influx_token: Optional[str] = None
    influx_org: str = "-"
    bucket: str = "ventilation"
    measurement: str = "ducozolder"

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        """Overlay VENTLOGGER_* environment variables on the defaults."""
        environ = os.environ if environ is None else environ
        overrides = {}
        for f in fields(cls):
            key = ENV_PREFIX + f.name.upper()
            raw = environ.get(key)
            if raw is None or raw == "":
                continue
            overrides[f.name] = _coerce(key, f.type, raw)
        settings = replace(cls(), **overrides)
        if settings.interval <= 0:
            raise ValueError(f"{ENV_PREFIX}INTERVAL must be positive, got {settings.interval!r}")
        return settings


def _coerce(key, kind, raw):
    if kind in (int, "int"):
        conv = int
    elif kind in (float, "float"):
        conv = float
    else:
        return raw
    try:
        return conv(raw)
    except ValueError:
        raise ValueError(f"{key} must be a number, got {raw!r}") from None
