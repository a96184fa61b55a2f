#!/usr/bin/env python3
"""Run the Netatmo IoT wrapper with command-line options."""

import argparse
import os
import sys
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))


def build_parser() -> argparse.ArgumentParser:
    # -h is taken by --iothost, so help lives on -?
    parser = argparse.ArgumentParser(
        description="Wrapper forwarding Netatmo thermostat data to the IoT platform",
        add_help=False,
    )
    parser.add_argument("-d", "--dbhost", help="DB hostname for setup")
    parser.add_argument(
        "-i", "--interval", type=int, help="Seconds between Netatmo reads for each demozone"
    )
    parser.add_argument("-h", "--iothost", help="IoT platform hostname")
    parser.add_argument("-u", "--iotusername", help="IoT platform username")
    parser.add_argument("-p", "--iotpassword", help="IoT platform password")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable verbose logging")
    parser.add_argument("-?", "--help", action="help", help="Print this usage guide")
    return parser


def main() -> None:
    parser = build_parser()
    args = parser.parse_args()

    required = [args.dbhost, args.interval, args.iothost, args.iotusername, args.iotpassword]
    if not all(required):
        parser.print_usage()
        sys.exit(1)
    if args.interval <= 0:
        parser.error("--interval must be a positive number of seconds")

    # Configuration is read from the environment when the app is imported
    os.environ["SETUP_HOST"] = args.dbhost
    os.environ["POLL_INTERVAL"] = str(args.interval)
    os.environ["IOT_HOST"] = args.iothost
    os.environ["IOT_USERNAME"] = args.iotusername
    os.environ["IOT_PASSWORD"] = args.iotpassword
    if args.verbose:
        os.environ["LOG_LEVEL"] = "DEBUG"

    import uvicorn

    from netatmo_wrapper.config import PORT

    uvicorn.run("netatmo_wrapper.main:app", host="0.0.0.0", port=PORT)


if __name__ == "__main__":
    main()
