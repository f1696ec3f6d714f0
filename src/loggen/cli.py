import argparse
import signal
import sys
from multiprocessing import Event
from typing import List, Optional

from loggen import __version__
from loggen.config import (
    DEFAULT_INTERVAL_MS,
    DEFAULT_METRICS_INTERVAL,
    DEFAULT_SHUTDOWN_TIMEOUT,
    DEFAULT_STRATEGY,
    ConfigError,
    build_config,
)
from loggen.discovery import discover_files
from loggen.scheduler import Scheduler
from loggen.wrap_policy import WrapStrategy


# Global shutdown event
shutdown_event = Event()


def signal_handler(signum, frame):
    """Handle SIGINT/SIGTERM gracefully."""
    print("\n🛑 Shutdown signal received. Closing output files...", flush=True)
    shutdown_event.set()


def non_negative_int(value: str) -> int:
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"{value} isn't a positive number")
    if number < 0:
        raise argparse.ArgumentTypeError(f"{value} isn't a positive number")
    return number


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='loggen',
        description='Generates log lines from a folder structure of samples'
    )
    parser.add_argument('-i', '--in-base-dir', required=True, metavar='DIR',
                        help='Input base directory')
    parser.add_argument('-o', '--out-base-dir', required=True, metavar='DIR',
                        help='Output base directory')
    parser.add_argument('-t', '--interval', type=non_negative_int, default=DEFAULT_INTERVAL_MS,
                        metavar='MS', help='Time in milliseconds between reads')
    parser.add_argument('-p', '--parallelism', type=non_negative_int, default=0,
                        metavar='COUNT',
                        help='Number of parallel generators (0 = available CPUs)')
    parser.add_argument('-s', '--strategy', default=DEFAULT_STRATEGY.value,
                        choices=[s.value for s in WrapStrategy],
                        help='What to do with the output file when a sample wraps')
    parser.add_argument('--run-time', type=float, default=0,
                        help='Runtime in seconds (0 = until interrupted)')
    parser.add_argument('--metrics', default=None,
                        help='Optional output metrics CSV')
    parser.add_argument('--metrics-interval', type=float, default=DEFAULT_METRICS_INTERVAL,
                        help='Seconds between metrics samples')
    parser.add_argument('--shutdown-timeout', type=float, default=DEFAULT_SHUTDOWN_TIMEOUT,
                        help='Seconds to wait for each worker when stopping')
    parser.add_argument('--version', action='version', version=f"%(prog)s {__version__}")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    args = build_parser().parse_args(argv)

    try:
        config = build_config(
            args.in_base_dir,
            args.out_base_dir,
            interval_ms=args.interval,
            parallelism=args.parallelism,
            strategy=args.strategy,
            run_time=args.run_time,
            metrics_file=args.metrics,
            metrics_interval=args.metrics_interval,
            shutdown_timeout=args.shutdown_timeout,
        )
        paths = discover_files(config.input_root, exclude=config.output_root)
        config.output_root.mkdir(parents=True, exist_ok=True)
        if config.metrics_file:
            config.metrics_file.parent.mkdir(parents=True, exist_ok=True)
    except ConfigError as e:
        print(f"❌ {e}", flush=True)
        sys.exit(1)
    except OSError as e:
        print(f"❌ Cannot create output directories: {e}", flush=True)
        sys.exit(1)

    signal.signal(signal.SIGINT, signal_handler)
    signal.signal(signal.SIGTERM, signal_handler)

    print("=" * 60)
    print("[*] loggen Starting")
    print("=" * 60)
    print(f"{config.input_root} -> {config.output_root}")
    print(f"Files: {len(paths)}")
    print(f"Workers: {min(config.parallelism, len(paths))} (parallelism: {config.parallelism})")
    print(f"Interval: {config.interval_ms}ms")
    print(f"Strategy: {config.strategy.value}")
    print(f"Runtime: {config.run_time}s" if config.run_time > 0 else "Runtime: until interrupted")
    if config.metrics_file:
        print(f"Metrics: {config.metrics_file}")
    print("=" * 60, flush=True)

    Scheduler(config, shutdown_event).run(paths)

    print("[OK] loggen stopped cleanly", flush=True)
    return 0


if __name__ == '__main__':
    sys.exit(main())
