import csv
import os
import signal
import time
from datetime import datetime
from pathlib import Path
from typing import Dict, List

import psutil


METRICS_HEADER = [
    'timestamp', 'runtime_sec', 'lines_written', 'throughput_lps',
    'cpu_percent', 'memory_mb', 'open_files',
]


def _process_tree(root: psutil.Process, skip_pid: int) -> List[psutil.Process]:
    procs = [root]
    try:
        procs.extend(p for p in root.children(recursive=True) if p.pid != skip_pid)
    except psutil.Error:
        pass
    return procs


def sample_resources(root: psutil.Process, skip_pid: int = -1) -> Dict[str, float]:
    """
    Sum CPU, memory and open file counts over a process and its children.

    Processes that exit while being sampled are ignored.

    Args:
        root: Main loggen process
        skip_pid: Process to leave out (the collector itself)

    Returns:
        Dictionary with cpu_percent, memory_mb and open_files
    """
    cpu = 0.0
    memory = 0.0
    open_files = 0

    for proc in _process_tree(root, skip_pid):
        try:
            with proc.oneshot():
                cpu += proc.cpu_percent(interval=None)
                memory += proc.memory_info().rss / 1024 / 1024
                open_files += len(proc.open_files())
        except psutil.Error:
            continue

    return {'cpu_percent': cpu, 'memory_mb': memory, 'open_files': open_files}


def metrics_collector(
    counters,
    metrics_file: str,
    shutdown_event,
    parent_pid: int,
    interval: float = 5.0
):
    """
    Collect and persist replay metrics until shutdown.

    Args:
        counters: Shared per-worker line counters
        metrics_file: Output CSV file
        shutdown_event: Event set when loggen is stopping
        parent_pid: Process id of the scheduler
        interval: Collection interval in seconds
    """
    signal.signal(signal.SIGINT, signal.SIG_IGN)
    print(f"[*] Metrics collector starting: interval={interval}s", flush=True)

    try:
        root = psutil.Process(parent_pid)
    except psutil.Error as e:
        print(f"❌ Metrics collector error: {e}", flush=True)
        return

    start_time = time.time()
    Path(metrics_file).parent.mkdir(parents=True, exist_ok=True)

    with open(metrics_file, 'w', newline='') as f:
        writer = csv.writer(f)
        writer.writerow(METRICS_HEADER)

        try:
            # Prime cpu_percent so the first sample is meaningful
            sample_resources(root, os.getpid())

            while not shutdown_event.wait(interval):
                runtime = time.time() - start_time
                lines = sum(counters)
                throughput = lines / runtime if runtime > 0 else 0
                usage = sample_resources(root, os.getpid())

                writer.writerow([
                    datetime.now().isoformat(),
                    f"{runtime:.1f}",
                    lines,
                    f"{throughput:.1f}",
                    f"{usage['cpu_percent']:.1f}",
                    f"{usage['memory_mb']:.1f}",
                    usage['open_files'],
                ])
                f.flush()

        except OSError as e:
            print(f"❌ Metrics collector error: {e}", flush=True)

        finally:
            print(f"[*] Metrics collector finished", flush=True)
