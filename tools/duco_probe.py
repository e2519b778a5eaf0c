#!/usr/bin/env python3

import argparse
import sys

from ventlogger.config import Settings
from ventlogger.transport import Transport, TransportError, decode_reply

# Send one command and dump the raw reply, e.g. to re-tune the reply sizes
# after a firmware update:
#   python tools/duco_probe.py sensorinfo --size 200
settings = Settings.from_env()

ap = argparse.ArgumentParser(description="Send one command to the ventilation unit.")
ap.add_argument("command", help="Command text, e.g. sensorinfo or fanspeed")
ap.add_argument("--port", default=settings.port)
ap.add_argument("--baud", type=int, default=settings.baud)
ap.add_argument("--size", type=int, default=1024, help="Stop after this many bytes")
ap.add_argument("--window", type=float, default=2.0, help="Seconds to wait for the reply")
args = ap.parse_args()

try:
    with Transport.open(args.port, args.baud, window=args.window) as link:
        link.send(args.command)
        raw = link.receive_raw(args.size)
except TransportError as e:
    print(f"Probe failed: {e}", file=sys.stderr)
    raise SystemExit(2)

# The byte count is what --sensorinfo-size / --fanspeed-size expect.
print(f"{len(raw)} bytes from {args.command!r}:")
print(repr(raw))
print(decode_reply(raw))
