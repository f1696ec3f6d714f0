from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import psutil

from loggen.wrap_policy import WrapStrategy


DEFAULT_INTERVAL_MS = 250
DEFAULT_STRATEGY = WrapStrategy.APPEND
DEFAULT_METRICS_INTERVAL = 5.0
DEFAULT_SHUTDOWN_TIMEOUT = 5.0


class ConfigError(ValueError):
    """Invalid startup configuration; raised before any worker starts."""


@dataclass(frozen=True)
class ReplayConfig:
    input_root: Path
    output_root: Path
    interval_ms: int = DEFAULT_INTERVAL_MS
    parallelism: int = 1
    strategy: WrapStrategy = DEFAULT_STRATEGY
    run_time: float = 0
    metrics_file: Optional[Path] = None
    metrics_interval: float = DEFAULT_METRICS_INTERVAL
    shutdown_timeout: float = DEFAULT_SHUTDOWN_TIMEOUT

    @property
    def interval(self) -> float:
        """Tick interval in seconds."""
        return self.interval_ms / 1000.0


def default_parallelism() -> int:
    """Number of worker slots used when none is requested."""
    return psutil.cpu_count() or 1


def build_config(
    input_root,
    output_root,
    interval_ms: int = DEFAULT_INTERVAL_MS,
    parallelism: Optional[int] = None,
    strategy=DEFAULT_STRATEGY,
    run_time: float = 0,
    metrics_file=None,
    metrics_interval: float = DEFAULT_METRICS_INTERVAL,
    shutdown_timeout: float = DEFAULT_SHUTDOWN_TIMEOUT,
) -> ReplayConfig:
    """
    Validate raw settings into a ReplayConfig.

    Args:
        input_root: Directory holding the sample tree
        output_root: Directory receiving the mirrored tree
        interval_ms: Milliseconds between lines of one file
        parallelism: Worker slots (None or 0 = available CPUs)
        strategy: truncate, append or rotate
        run_time: Seconds to run (0 = until signal)
        metrics_file: Optional CSV path for the metrics collector
        metrics_interval: Seconds between metrics samples
        shutdown_timeout: Seconds to wait for each worker on shutdown

    Returns:
        ReplayConfig

    Raises:
        ConfigError: any setting is invalid
    """
    try:
        strategy = WrapStrategy(strategy)
    except ValueError:
        choices = ', '.join(s.value for s in WrapStrategy)
        raise ConfigError(f"Unknown wrap strategy {strategy!r} (choose from: {choices})")

    if isinstance(interval_ms, bool) or not isinstance(interval_ms, int) or interval_ms <= 0:
        raise ConfigError(f"Interval must be a positive number of milliseconds, got {interval_ms!r}")

    if parallelism is None or parallelism == 0:
        parallelism = default_parallelism()
    elif isinstance(parallelism, bool) or not isinstance(parallelism, int) or parallelism < 0:
        raise ConfigError(f"Parallelism must be a positive number, got {parallelism!r}")

    if run_time < 0:
        raise ConfigError(f"Run time cannot be negative, got {run_time!r}")

    if metrics_interval <= 0:
        raise ConfigError(f"Metrics interval must be positive, got {metrics_interval!r}")

    if shutdown_timeout < 0:
        raise ConfigError(f"Shutdown timeout cannot be negative, got {shutdown_timeout!r}")

    input_root = Path(input_root)
    output_root = Path(output_root)
    if input_root.resolve() == output_root.resolve():
        raise ConfigError("Input and output base directories must differ")

    return ReplayConfig(
        input_root=input_root,
        output_root=output_root,
        interval_ms=interval_ms,
        parallelism=parallelism,
        strategy=strategy,
        run_time=run_time,
        metrics_file=Path(metrics_file) if metrics_file else None,
        metrics_interval=metrics_interval,
        shutdown_timeout=shutdown_timeout,
    )
