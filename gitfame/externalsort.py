"""Line-oriented readers and writers, and a sort that rewrites and merges files."""

from __future__ import annotations

import heapq
from collections.abc import Iterator
from contextlib import ExitStack
from itertools import chain
from typing import TextIO


class LineReader:
    """Read newline-terminated lines from a text stream."""

    def __init__(self, stream: TextIO) -> None:
        self._stream = stream

    def read_line(self) -> str | None:
        """Return the next line without its newline, or None at end of stream.

        A final line that lacks a newline is still returned.
        """
        line = self._stream.readline()
        if line == "":
            return None
        return line.removesuffix("\n")

    def __iter__(self) -> Iterator[str]:
        while (line := self.read_line()) is not None:
            yield line


class LineWriter:
    """Write lines to a text stream, flushing after each one."""

    def __init__(self, stream: TextIO) -> None:
        self._stream = stream

    def write(self, line: str) -> None:
        """Write ``line`` followed by a newline and flush the stream."""
        self._stream.write(line + "\n")
        self._stream.flush()


def new_reader(stream: TextIO) -> LineReader:
    """Wrap a text stream in a LineReader."""
    return LineReader(stream)


def new_writer(stream: TextIO) -> LineWriter:
    """Wrap a text stream in a LineWriter."""
    return LineWriter(stream)


def merge(writer: LineWriter, *args: LineReader) -> None:
    """Read every line from all readers and write them in ascending order."""
    heap = list(chain.from_iterable(args))
    heapq.heapify(heap)
    while heap:
        writer.write(heapq.heappop(heap))


def sort(w: TextIO, *args: str) -> None:
    """Sort each named file in place, then write all their lines, merged, to ``w``.

    Raises OSError (such as FileNotFoundError) when a file cannot be opened.
    """
    with ExitStack() as stack:
        readers = []
        for path in args:
            handle = stack.enter_context(
                open(path, "r+", encoding="utf-8", newline="")
            )
            reader = new_reader(handle)
            lines = sorted(reader)

            handle.seek(0)
            file_writer = new_writer(handle)
            for line in lines:
                file_writer.write(line)
            handle.truncate()
            handle.seek(0)

            readers.append(reader)

        merge(new_writer(w), *readers)