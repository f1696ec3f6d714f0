from pathlib import Path
from typing import Callable

from loggen.wrap_policy import Action


class OutputSink:
    """
    Line writer for one mirrored output path.

    The file is opened for append on construction, creating any missing
    parent directories. Truncate and rotate close the current handle and
    defer the reopen to the next write, so a finished pass stays on disk
    untouched until the following pass starts writing.

    Under rotate every pass gets its own file: ``x.log`` first, then
    ``x.log.1``, ``x.log.2`` and so on. The number of files grows for as
    long as the process runs.

    Args:
        path: Output file path
        opener: Callable with the signature of the builtin open()
    """

    terminator = '\n'

    def __init__(self, path, opener: Callable = open):
        self.path = Path(path)
        self.generation = 0
        self.lines_written = 0
        self._opener = opener
        self._handle = None
        self._reopen_mode = 'a'
        self._open()

    @property
    def current_path(self) -> Path:
        if self.generation == 0:
            return self.path
        return self.path.with_name(f"{self.path.name}.{self.generation}")

    @property
    def is_open(self) -> bool:
        return self._handle is not None

    def _open(self):
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self._handle = self._opener(
            self.current_path,
            self._reopen_mode,
            encoding='utf-8',
            errors='surrogateescape',
            newline='',
        )
        self._reopen_mode = 'a'

    def write(self, line: str):
        """Write one line plus terminator and flush it to the file."""
        if self._handle is None:
            self._open()
        self._handle.write(line + self.terminator)
        self._handle.flush()
        self.lines_written += 1

    def apply_action(self, action: Action):
        """
        Carry out the end-of-pass action chosen by the wrap policy.

        Args:
            action: Action from wrap_policy.decide()
        """
        if action is Action.CONTINUE_APPEND:
            return

        if action is Action.TRUNCATE_RESTART:
            self.close()
            self._reopen_mode = 'w'
        elif action is Action.ROTATE_RESTART:
            self.close()
            self.generation += 1
            self._reopen_mode = 'w'
        else:
            raise ValueError(f"Unknown action: {action!r}")

    def close(self):
        if self._handle is not None:
            handle, self._handle = self._handle, None
            handle.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()
