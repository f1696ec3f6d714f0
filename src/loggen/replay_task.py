from enum import Enum
from pathlib import Path
from typing import Union

from loggen.line_source import LineSource
from loggen.output_sink import OutputSink
from loggen.wrap_policy import WrapStrategy, decide


class ReplayState(Enum):
    READING = 'reading'
    AT_END = 'at_end'
    TRANSITIONING = 'transitioning'
    SLEEPING = 'sleeping'


class ReplayTask:
    """
    Replays one sample file into its output sink, one step per tick.

    ``step()`` runs the state machine from READING until it reaches
    SLEEPING: either one line is copied, or the end of the pass is handled
    (wrap action applied, source rewound). Pacing between steps is left to
    the caller.

    Args:
        relative_path: Path of the sample under the input root
        source: LineSource for the sample
        sink: OutputSink for the mirrored output path
        strategy: Wrap strategy shared by every task
    """

    def __init__(
        self,
        relative_path,
        source: LineSource,
        sink: OutputSink,
        strategy: Union[WrapStrategy, str],
    ):
        self.relative_path = Path(relative_path)
        self.source = source
        self.sink = sink
        self.strategy = WrapStrategy(strategy)
        self.state = ReplayState.READING
        self.passes = 0
        self.lines_written = 0
        self._pass_lines = 0
        self._handlers = {
            ReplayState.READING: self._read,
            ReplayState.AT_END: self._finish_pass,
            ReplayState.TRANSITIONING: self._wrap,
        }

    @classmethod
    def open(cls, relative_path, input_root, output_root, strategy) -> 'ReplayTask':
        """
        Open the sample under input_root and its mirror under output_root.

        Raises:
            OSError: either file cannot be opened
        """
        relative_path = Path(relative_path)
        source = LineSource(Path(input_root) / relative_path)
        try:
            sink = OutputSink(Path(output_root) / relative_path)
        except OSError:
            source.close()
            raise
        return cls(relative_path, source, sink, strategy)

    def step(self) -> ReplayState:
        """
        Advance one tick.

        Returns:
            The state reached, always SLEEPING on success

        Raises:
            OSError: read, write, truncate, rotate or rewind failure
        """
        if self.state is ReplayState.SLEEPING:
            self.state = ReplayState.READING

        while self.state is not ReplayState.SLEEPING:
            self.state = self._handlers[self.state]()

        return self.state

    def _read(self) -> ReplayState:
        line, at_end = self.source.next_line()
        if at_end:
            return ReplayState.AT_END

        self.sink.write(line)
        self.lines_written += 1
        self._pass_lines += 1
        return ReplayState.SLEEPING

    def _finish_pass(self) -> ReplayState:
        if self._pass_lines:
            self.passes += 1
        return ReplayState.TRANSITIONING

    def _wrap(self) -> ReplayState:
        # Empty passes leave the output alone
        if self._pass_lines:
            self.sink.apply_action(decide(self.strategy))
        self.source.reset()
        self._pass_lines = 0
        return ReplayState.SLEEPING

    def close(self):
        """Close the sink and the source; the sink is closed first."""
        try:
            self.sink.close()
        finally:
            self.source.close()

    def __repr__(self):
        return (
            f"ReplayTask({str(self.relative_path)!r}, state={self.state.value}, "
            f"passes={self.passes}, lines={self.lines_written})"
        )
