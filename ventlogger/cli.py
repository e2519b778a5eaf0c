import argparse
import logging
import signal
import sys

from ventlogger.config import Settings
from ventlogger.publisher import InfluxPublisher, connect
from ventlogger.scheduler import Scheduler
from ventlogger.transport import Transport, TransportError

LOG_FORMAT = "%(asctime)s - %(levelname)s - %(message)s"


def positive_float(text):
    value = float(text)
    if value <= 0:
        raise argparse.ArgumentTypeError(f"must be positive, got {text}")
    return value


def build_parser(settings):
    ap = argparse.ArgumentParser(
        description="Poll a ventilation unit over serial and write its readings to InfluxDB."
    )
    ap.add_argument("--port", default=settings.port,
                    help=f"Serial port (default: {settings.port})")
    ap.add_argument("--baud", type=int, default=settings.baud,
                    help=f"Baud rate (default: {settings.baud})")
    ap.add_argument("--interval", type=positive_float, default=settings.interval,
                    help=f"Seconds between polls (default: {settings.interval:g})")
    ap.add_argument("--sensorinfo-size", type=int, default=settings.sensorinfo_size,
                    help="Expected sensorinfo reply length in bytes")
    ap.add_argument("--fanspeed-size", type=int, default=settings.fanspeed_size,
                    help="Expected fanspeed reply length in bytes")
    ap.add_argument("--influx-url", default=settings.influx_url,
                    help=f"InfluxDB base URL (default: {settings.influx_url})")
    ap.add_argument("--influx-token", default=settings.influx_token,
                    help="InfluxDB token, or 'user:password' for 1.x servers")
    ap.add_argument("--influx-org", default=settings.influx_org,
                    help="InfluxDB organization ('-' for 1.x servers)")
    ap.add_argument("--bucket", default=settings.bucket,
                    help=f"Bucket or database (default: {settings.bucket})")
    ap.add_argument("--measurement", default=settings.measurement,
                    help=f"Measurement name (default: {settings.measurement})")
    ap.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    return ap


def main(argv=None):
    settings = Settings.from_env()
    args = build_parser(settings).parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format=LOG_FORMAT,
    )

    print(f"Polling {args.port} at {args.baud} baud every {args.interval:g}s, "
          f"writing to {args.influx_url} ({args.bucket}/{args.measurement})")
    print("Press Ctrl+C to stop.")

    try:
        transport = Transport.open(
            args.port, args.baud,
            timeout=settings.read_timeout,
            byte_delay=settings.byte_delay,
            window=settings.receive_window,
        )
    except Exception as e:
        print(f"Failed to open serial port: {e}", file=sys.stderr)
        return 2

    client = None
    try:
        client, write_api = connect(args.influx_url, args.influx_token, args.influx_org)
        publisher = InfluxPublisher(write_api, args.bucket, args.measurement, args.influx_org)
        scheduler = Scheduler(
            transport, publisher,
            interval=args.interval,
            sensorinfo_size=args.sensorinfo_size,
            fanspeed_size=args.fanspeed_size,
        )

        # Only flips a flag; the loop notices it between cycles.
        def _shutdown(signum, frame):
            scheduler.stop()

        signal.signal(signal.SIGINT, _shutdown)
        signal.signal(signal.SIGTERM, _shutdown)

        scheduler.run()
    except TransportError as e:
        print(f"Serial link failed: {e}", file=sys.stderr)
        return 2
    finally:
        transport.close()
        if client is not None:
            client.close()

    print("\nStopped.")
    return 0
