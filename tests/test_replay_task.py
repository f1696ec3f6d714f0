from pathlib import Path

import pytest

from loggen.line_source import LineSource
from loggen.output_sink import OutputSink
from loggen.replay_task import ReplayState, ReplayTask
from loggen.wrap_policy import WrapStrategy


def make_task(tmp_path, lines, strategy):
    """Create a sample with the given lines and a task replaying it."""
    sample = tmp_path / 'in' / 'x.log'
    sample.parent.mkdir(parents=True, exist_ok=True)
    sample.write_text(''.join(f"{line}\n" for line in lines))
    return ReplayTask.open('x.log', tmp_path / 'in', tmp_path / 'out', strategy)


def run_passes(task, passes, lines_per_pass):
    """Step through full passes; each pass takes N line ticks plus one end tick."""
    for _ in range(passes * (lines_per_pass + 1)):
        task.step()


def read_lines(path: Path):
    return path.read_text().splitlines()


def test_step_writes_one_line_and_sleeps(tmp_path):
    """Test a single step copies exactly one line."""
    task = make_task(tmp_path, ['l1', 'l2'], WrapStrategy.APPEND)

    assert task.state == ReplayState.READING
    assert task.step() == ReplayState.SLEEPING
    assert read_lines(tmp_path / 'out' / 'x.log') == ['l1']
    assert task.lines_written == 1

    task.close()


def test_end_of_pass_takes_its_own_tick(tmp_path):
    """Test the end-of-file step writes nothing and rewinds."""
    task = make_task(tmp_path, ['l1'], WrapStrategy.APPEND)

    task.step()
    task.step()

    assert task.lines_written == 1
    assert task.passes == 1

    task.step()
    assert read_lines(tmp_path / 'out' / 'x.log') == ['l1', 'l1']

    task.close()


@pytest.mark.parametrize('strategy', list(WrapStrategy))
def test_lines_keep_source_order(tmp_path, strategy):
    """Test every strategy writes lines in source order."""
    task = make_task(tmp_path, ['a', 'b', 'c'], strategy)

    for _ in range(3):
        task.step()

    assert read_lines(tmp_path / 'out' / 'x.log') == ['a', 'b', 'c']

    task.close()


def test_append_accumulates_every_pass(tmp_path):
    """Test append leaves K*N lines after K passes."""
    lines = ['l1', 'l2', 'l3']
    task = make_task(tmp_path, lines, WrapStrategy.APPEND)

    run_passes(task, 4, len(lines))

    assert task.passes == 4
    assert read_lines(tmp_path / 'out' / 'x.log') == lines * 4

    task.close()


def test_truncate_keeps_single_pass(tmp_path):
    """Test truncate never holds more than one pass."""
    lines = ['l1', 'l2']
    task = make_task(tmp_path, lines, WrapStrategy.TRUNCATE)
    output = tmp_path / 'out' / 'x.log'

    sizes = []
    for _ in range(3):
        run_passes(task, 1, len(lines))
        assert read_lines(output) == lines
        sizes.append(output.stat().st_size)

    assert len(set(sizes)) == 1

    task.close()


def test_rotate_creates_one_file_per_pass(tmp_path):
    """Test rotate leaves K files of one pass each after K passes."""
    lines = ['l1', 'l2']
    task = make_task(tmp_path, lines, WrapStrategy.ROTATE)
    out_dir = tmp_path / 'out'

    run_passes(task, 3, len(lines))

    assert sorted(p.name for p in out_dir.iterdir()) == ['x.log', 'x.log.1', 'x.log.2']
    for name in ['x.log', 'x.log.1', 'x.log.2']:
        assert read_lines(out_dir / name) == lines

    task.close()


def test_rotate_never_touches_superseded_files(tmp_path):
    """Test older generations are not modified by later passes."""
    lines = ['l1']
    task = make_task(tmp_path, lines, WrapStrategy.ROTATE)
    first = tmp_path / 'out' / 'x.log'

    run_passes(task, 1, len(lines))
    before = (first.read_text(), first.stat().st_mtime_ns)

    run_passes(task, 3, len(lines))

    assert (first.read_text(), first.stat().st_mtime_ns) == before

    task.close()


@pytest.mark.parametrize('strategy', list(WrapStrategy))
def test_empty_sample_is_noop_pass(tmp_path, strategy):
    """Test an empty sample writes nothing and never rotates."""
    task = make_task(tmp_path, [], strategy)

    for _ in range(10):
        assert task.step() == ReplayState.SLEEPING

    out_dir = tmp_path / 'out'
    assert [p.name for p in out_dir.iterdir()] == ['x.log']
    assert (out_dir / 'x.log').read_text() == ''
    assert task.passes == 0
    assert task.lines_written == 0

    task.close()


def test_state_sequence_with_stub_source():
    """Test the handlers visit the documented states."""

    class StubSource:
        def __init__(self):
            self.results = [('x', False), (None, True)]
            self.resets = 0

        def next_line(self):
            return self.results.pop(0)

        def reset(self):
            self.resets += 1
            self.results = [('x', False), (None, True)]

        def close(self):
            pass

    class StubSink:
        def __init__(self):
            self.events = []

        def write(self, line):
            self.events.append(('write', line))

        def apply_action(self, action):
            self.events.append(('action', action.value))

        def close(self):
            pass

    source, sink = StubSource(), StubSink()
    task = ReplayTask('x.log', source, sink, 'truncate')
    seen = []
    handlers = dict(task._handlers)

    def tracking(state):
        def handler():
            seen.append(state)
            return handlers[state]()
        return handler

    task._handlers = {state: tracking(state) for state in handlers}

    task.step()
    task.step()

    assert seen == [
        ReplayState.READING,
        ReplayState.READING, ReplayState.AT_END, ReplayState.TRANSITIONING,
    ]
    assert sink.events == [('write', 'x'), ('action', 'truncate_restart')]
    assert source.resets == 1


def test_write_failure_propagates(tmp_path):
    """Test an OSError from the sink reaches the caller."""

    class BrokenSink:
        def write(self, line):
            raise OSError(28, 'No space left on device')

        def close(self):
            pass

    sample = tmp_path / 'x.log'
    sample.write_text('l1\n')
    source = LineSource(sample)
    task = ReplayTask('x.log', source, BrokenSink(), 'append')

    with pytest.raises(OSError):
        task.step()

    task.close()


def test_open_closes_source_when_sink_fails(tmp_path):
    """Test a failed sink open does not leak the source handle."""
    (tmp_path / 'in').mkdir()
    (tmp_path / 'in' / 'x.log').write_text('l1\n')
    (tmp_path / 'out').write_text('not a directory')

    with pytest.raises(OSError):
        ReplayTask.open('x.log', tmp_path / 'in', tmp_path / 'out', 'append')


def test_close_releases_both_files(tmp_path):
    """Test close leaves no open handles."""
    task = make_task(tmp_path, ['l1'], WrapStrategy.APPEND)
    task.step()
    task.close()

    assert task.sink.is_open == False
    with open(tmp_path / 'out' / 'x.log', 'a') as f:
        f.write('reopened\n')


if __name__ == '__main__':
    pytest.main([__file__, '-v'])
