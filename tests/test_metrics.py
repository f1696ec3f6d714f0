import csv
import os

import psutil
import pytest

from loggen import metrics
from loggen.metrics import METRICS_HEADER, metrics_collector, sample_resources


class CountdownEvent:
    """Event whose wait() reports shutdown after a fixed number of samples."""

    def __init__(self, samples):
        self.samples = samples
        self.calls = 0

    def wait(self, timeout):
        self.calls += 1
        return self.calls > self.samples


def test_sample_resources_current_process():
    """Test resource sampling of a live process."""
    usage = sample_resources(psutil.Process(os.getpid()))

    assert usage['memory_mb'] > 0
    assert usage['cpu_percent'] >= 0
    assert usage['open_files'] >= 0


def test_sample_resources_counts_open_files(tmp_path):
    """Test open output handles show up in the sample."""
    proc = psutil.Process(os.getpid())
    before = sample_resources(proc)['open_files']

    with open(tmp_path / 'x.log', 'w'):
        during = sample_resources(proc)['open_files']

    assert during == before + 1


def test_metrics_collector_writes_rows(tmp_path, monkeypatch):
    """Test one CSV row is written per sample."""
    monkeypatch.setattr(metrics.signal, 'signal', lambda *args: None)
    metrics_file = tmp_path / 'metrics' / 'run.csv'

    metrics_collector([3, 4], str(metrics_file), CountdownEvent(2), os.getpid(), interval=0.01)

    with open(metrics_file, newline='') as f:
        rows = list(csv.reader(f))

    assert rows[0] == METRICS_HEADER
    assert len(rows) == 3
    assert all(row[2] == '7' for row in rows[1:])


def test_metrics_collector_missing_parent(tmp_path, monkeypatch, capsys):
    """Test a vanished parent process is reported, not raised."""
    monkeypatch.setattr(metrics.signal, 'signal', lambda *args: None)

    def gone(pid):
        raise psutil.NoSuchProcess(pid)

    monkeypatch.setattr(metrics.psutil, 'Process', gone)

    metrics_collector([0], str(tmp_path / 'm.csv'), CountdownEvent(1), 999999)

    assert 'Metrics collector error' in capsys.readouterr().out
    assert not (tmp_path / 'm.csv').exists()


if __name__ == '__main__':
    pytest.main([__file__, '-v'])
