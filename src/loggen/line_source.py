import os
from pathlib import Path
from typing import Callable, Optional, Tuple


class LineSource:
    """
    Restartable line reader over one sample file.

    Each pass reads up to the file size observed when the pass was opened.
    A trailing line without a newline is treated as absent, so only
    complete lines are ever replayed.

    Args:
        path: Sample file to read
        opener: Callable with the signature of the builtin open()
    """

    def __init__(self, path, opener: Callable = open):
        self.path = Path(path)
        self._opener = opener
        self._handle = None
        self._offset = 0
        self._limit = 0
        self._at_end = False
        self._open()

    def _open(self):
        self._handle = self._opener(self.path, 'rb')
        self._handle.seek(0, os.SEEK_END)
        self._limit = self._handle.tell()
        self._handle.seek(0)
        self._offset = 0
        self._at_end = False

    def next_line(self) -> Tuple[Optional[str], bool]:
        """
        Read the next complete line of this pass.

        Returns:
            (line, False) with the terminator stripped, or (None, True) once
            no complete line remains. Keeps returning (None, True) until
            reset() is called.
        """
        if self._at_end or self._offset >= self._limit:
            self._at_end = True
            return None, True

        raw = self._handle.readline(self._limit - self._offset)

        # Partial trailing line
        if not raw.endswith(b'\n'):
            self._at_end = True
            return None, True

        self._offset += len(raw)
        raw = raw[:-1]
        if raw.endswith(b'\r'):
            raw = raw[:-1]

        return raw.decode('utf-8', 'surrogateescape'), False

    def reset(self):
        """Start a new pass from the first line, reopening the file."""
        self.close()
        self._open()

    @property
    def at_end(self) -> bool:
        return self._at_end

    def close(self):
        if self._handle is not None:
            handle, self._handle = self._handle, None
            handle.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()
