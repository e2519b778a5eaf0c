"""Poll a Duco ventilation unit over serial and push its readings to InfluxDB."""

__version__ = "0.1.0"
