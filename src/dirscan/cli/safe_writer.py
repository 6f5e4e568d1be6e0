"""Output writing for the dirscan CLI that stops cleanly on a closed pipe."""

import errno
import os
import types
from pathlib import Path
from typing import Iterable, Optional, Type, Union

from dirscan.cli.signal_handler import signal_handler


class SafeWriter:
    """Write CLI output to stdout or a file, turning a closed pipe into BrokenPipeError.

    Output is written straight to a file descriptor, UTF-8 encoded. A writer created
    from a path owns the file and closes it; a writer created from a descriptor
    leaves it open. Writes keep working after SIGINT so that a cancelled scan can
    still emit its partial result.

    Attributes:
        target: The file descriptor or path given at construction.
        fd: The file descriptor being written to.
    """

    def __init__(self, target: Union[int, str, Path]):
        self.target = target
        self._closed = False
        self._file_obj = None

        if isinstance(target, int):
            self.fd = target
        elif isinstance(target, (str, os.PathLike)):
            self._file_obj = Path(target).open("w", encoding="utf-8")
            self.fd = self._file_obj.fileno()
        else:
            raise TypeError(f"Expected int, str, or PathLike, got {type(target).__name__}")

    def write(self, data: str) -> None:
        """Write a string.

        Raises:
            BrokenPipeError: If SIGPIPE was received or the reader went away.
            ValueError: If the writer is closed.
            OSError: For other I/O errors.
        """
        if self._closed:
            raise ValueError("Cannot write to closed SafeWriter")
        if signal_handler.sigpipe_received.is_set():
            raise BrokenPipeError()

        payload = data.encode("utf-8")
        try:
            while payload:
                written = os.write(self.fd, payload)
                payload = payload[written:]
        except OSError as e:
            if e.errno == errno.EPIPE:
                raise BrokenPipeError()
            raise

    def write_lines(self, lines: Iterable[str]) -> None:
        """Write each line followed by a newline."""
        for line in lines:
            self.write(line + "\n")

    def close(self) -> None:
        """Close the file if this writer opened it. Safe to call twice."""
        if self._closed:
            return
        self._closed = True
        if self._file_obj is not None:
            try:
                self._file_obj.close()
            except OSError as e:
                if e.errno != errno.EPIPE:
                    raise

    def __enter__(self) -> "SafeWriter":
        return self

    def __exit__(
        self,
        exc_type: Optional[Type[BaseException]],
        exc_val: Optional[BaseException],
        exc_tb: Optional[types.TracebackType],
    ) -> None:
        try:
            self.close()
        except OSError:
            # An exception from the with block takes precedence over one from close
            if exc_type is None:
                raise
