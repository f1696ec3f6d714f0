import heapq
import os
import signal
import time
from multiprocessing import Array, Event, Process
from pathlib import Path
from typing import Callable, List, Optional, Sequence

from loggen.config import ReplayConfig
from loggen.metrics import metrics_collector
from loggen.replay_task import ReplayTask


def partition(paths: Sequence, parallelism: int) -> List[List]:
    """
    Assign paths to worker slots round-robin (path i goes to slot i % P).

    Args:
        paths: Relative sample paths
        parallelism: Number of worker slots

    Returns:
        One list of paths per non-empty slot
    """
    if parallelism < 1:
        raise ValueError(f"parallelism must be at least 1, got {parallelism}")

    slots = [[] for _ in range(parallelism)]
    for i, path in enumerate(paths):
        slots[i % parallelism].append(path)

    return [slot for slot in slots if slot]


class Worker:
    """
    Runs several replay tasks cooperatively on one execution unit.

    Every task has its own due time. The worker waits for the earliest one,
    steps it once and schedules it again one interval later, so a task
    sleeping between ticks never holds up the others. A task that raises
    OSError is reported, closed and dropped; the rest keep running.

    Args:
        worker_id: Slot number, used in diagnostics
        tasks: ReplayTask instances owned by this worker
        interval: Seconds between steps of the same task
        stop_event: Object with is_set() and wait(timeout)
        clock: Monotonic time source
        progress: Optional callable receiving the running line count
    """

    def __init__(
        self,
        worker_id: int,
        tasks: List[ReplayTask],
        interval: float,
        stop_event,
        clock: Callable[[], float] = time.monotonic,
        progress: Optional[Callable[[int], None]] = None,
    ):
        self.worker_id = worker_id
        self.tasks = list(tasks)
        self.interval = interval
        self.stop_event = stop_event
        self.clock = clock
        self.progress = progress
        self.lines_written = 0
        self.failed = []

    def run(self) -> int:
        """
        Replay until the stop event is set or every task has failed.

        Returns:
            Number of lines written by this worker
        """
        start = self.clock()
        schedule = [(start, i, task) for i, task in enumerate(self.tasks)]
        heapq.heapify(schedule)

        try:
            while schedule and not self.stop_event.is_set():
                due, index, task = schedule[0]

                delay = due - self.clock()
                if delay > 0:
                    if self.stop_event.wait(delay):
                        break
                    continue

                heapq.heappop(schedule)
                before = task.lines_written

                try:
                    task.step()
                except OSError as e:
                    print(f"❌ Worker {self.worker_id}: stopping {task.relative_path}: {e}", flush=True)
                    self.failed.append(task)
                    self._close(task)
                    continue

                if task.lines_written != before:
                    self.lines_written += task.lines_written - before
                    if self.progress is not None:
                        self.progress(self.lines_written)

                # Missed ticks are dropped rather than replayed in a burst
                next_due = max(due + self.interval, self.clock())
                heapq.heappush(schedule, (next_due, index, task))

        finally:
            for _, _, task in schedule:
                self._close(task)

        return self.lines_written

    def _close(self, task: ReplayTask):
        try:
            task.close()
        except OSError as e:
            print(f"❌ Worker {self.worker_id}: error closing {task.relative_path}: {e}", flush=True)


def open_tasks(worker_id: int, relative_paths: Sequence, config: ReplayConfig) -> List[ReplayTask]:
    """Open a ReplayTask per path, reporting and skipping paths that fail."""
    tasks = []
    for relative_path in relative_paths:
        try:
            tasks.append(ReplayTask.open(
                relative_path, config.input_root, config.output_root, config.strategy
            ))
        except OSError as e:
            print(f"❌ Worker {worker_id}: cannot open {relative_path}: {e}", flush=True)
    return tasks


def worker_process(
    worker_id: int,
    relative_paths: List[Path],
    config: ReplayConfig,
    shutdown_event,
    counters
):
    """
    Entry point of one worker slot.

    Args:
        worker_id: Slot number
        relative_paths: Paths assigned to this slot
        config: Replay configuration
        shutdown_event: Shared event set on shutdown
        counters: Shared per-worker line counters
    """
    # The scheduler owns signal handling and stops workers via the event
    signal.signal(signal.SIGINT, signal.SIG_IGN)

    tasks = open_tasks(worker_id, relative_paths, config)
    print(f"[*] Worker {worker_id} starting: {len(tasks)}/{len(relative_paths)} files", flush=True)

    def report(lines: int):
        counters[worker_id] = lines

    worker = Worker(worker_id, tasks, config.interval, shutdown_event, progress=report)
    lines = worker.run()

    print(f"[*] Worker {worker_id} finished: {lines:,} lines written", flush=True)


class Scheduler:
    """
    Distributes sample files across a fixed pool of worker processes.

    Args:
        config: Replay configuration
        shutdown_event: Event that stops the run when set
    """

    poll_interval = 0.5

    def __init__(self, config: ReplayConfig, shutdown_event=None):
        self.config = config
        self.shutdown_event = shutdown_event if shutdown_event is not None else Event()
        self.processes: List[Process] = []

    def run(self, relative_paths: Sequence) -> int:
        """
        Replay every path until shutdown.

        Blocks until the shutdown event is set, the configured run time
        elapses or all workers have exited, then stops the workers and
        closes every output file.

        Args:
            relative_paths: Paths relative to the input root

        Returns:
            Total number of lines written
        """
        assignments = partition(list(relative_paths), self.config.parallelism)
        if not assignments:
            print("[WARNING] No sample files found, nothing to replay", flush=True)
            return 0

        counters = Array('q', len(assignments), lock=False)

        for worker_id, paths in enumerate(assignments):
            p = Process(
                target=worker_process,
                args=(worker_id, paths, self.config, self.shutdown_event, counters),
                name=f"loggen-worker-{worker_id}",
            )
            p.start()
            self.processes.append(p)

        workers = list(self.processes)

        if self.config.metrics_file:
            p_metrics = Process(
                target=metrics_collector,
                args=(counters, str(self.config.metrics_file), self.shutdown_event,
                      os.getpid(), self.config.metrics_interval),
                name="loggen-metrics",
            )
            p_metrics.start()
            self.processes.append(p_metrics)

        start = time.time()
        try:
            while not self.shutdown_event.is_set():
                if self.config.run_time and time.time() - start >= self.config.run_time:
                    break
                if not any(p.is_alive() for p in workers):
                    print("[WARNING] All workers have stopped", flush=True)
                    break
                self.shutdown_event.wait(self.poll_interval)
        except KeyboardInterrupt:
            pass

        self.shutdown()

        total = sum(counters)
        runtime = time.time() - start
        throughput = total / runtime if runtime > 0 else 0

        print("\n" + "=" * 60)
        print("[*] Replay Summary")
        print("=" * 60)
        print(f"Runtime: {runtime:.1f}s")
        print(f"Files: {sum(len(paths) for paths in assignments)}")
        print(f"Workers: {len(assignments)}")
        print(f"Lines written: {total:,}")
        print(f"Throughput: {throughput:.1f} lines/sec")
        print("=" * 60, flush=True)

        return total

    def shutdown(self):
        """Signal every process to stop and wait for it, terminating stragglers."""
        self.shutdown_event.set()

        for p in self.processes:
            p.join(timeout=self.config.shutdown_timeout)
            if p.is_alive():
                print(f"[WARNING] Force terminating {p.name}", flush=True)
                p.terminate()
                p.join(timeout=1)
