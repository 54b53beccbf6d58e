"""
Mock Ambi client.

Emulates a real set of hardware sensors that report on environmental
conditions such as temperature, pressure, humidity and dust concentration,
posting each reading to the Ambi backend as JSON.
"""
import argparse
import logging
import sys
from pydantic import ValidationError
from common.base_settings import BaseConfig
from .errors import ConfigurationError
from .producer import Transport
from .scheduler import MAX_NUM_THREADS, ScheduleConfig, validate_num_threads
from .worker import Dispatcher

logger = logging.getLogger(__name__)

def num_threads_arg(value: str) -> int:
    try:
        return validate_num_threads(int(value))
    except ValueError as e:
        raise argparse.ArgumentTypeError(str(e))

def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="ambi-mock-client",
        description="Emulates a set of environmental sensors posting readings to the Ambi backend.",
    )
    p.add_argument("-d", "--debug", action="store_true", help="turn verbose debug output on")
    p.add_argument("-n", "--post-amount", type=int, default=None,
                   help="posts per thread; omit with --time-per-post to post until stopped")
    p.add_argument("-s", "--time-per-post", type=float, default=None,
                   help="seconds to wait between posts")
    p.add_argument("-t", "--total-time", type=float, default=None,
                   help="seconds the run should span; ignored when --time-per-post is set")
    p.add_argument("-T", "--num-threads", type=num_threads_arg, default=None,
                   help=f"number of concurrent sensors, 1 to {MAX_NUM_THREADS}")
    return p

def init_logging(debug: bool):
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    )

def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)
    init_logging(args.debug)
    logger.debug(f"cli: {args}")

    if args.time_per_post is not None and args.total_time is not None:
        logger.warning("Both --time-per-post and --total-time were given, --total-time is ignored")

    try:
        settings = BaseConfig()
    except ValidationError as e:
        parser.error(f"Invalid collector settings: {e}")

    try:
        schedule = (ScheduleConfig()
                    .with_post_amount(args.post_amount)
                    .with_time_per_post(args.time_per_post)
                    .with_total_time(args.total_time)
                    .with_num_threads(args.num_threads)
                    .build())
    except ConfigurationError as e:
        parser.error(str(e))

    logger.debug(f"Resolved schedule: {schedule}")

    dispatcher = Dispatcher(
        schedule,
        transport_factory=lambda: Transport(settings.collector_url, timeout=settings.request_timeout),
    )
    try:
        dispatcher.run()
    except KeyboardInterrupt:
        logger.info("Shutting down mock client...")
    return 0

if __name__ == "__main__":
    sys.exit(main())
