"""Line-ending helpers and a reader that can be rewound to its start."""

from __future__ import annotations

from typing import BinaryIO

_TRAILING = " \t\r"


def canonicalize(text: str) -> str:
    """Return ``text`` with every line ending turned into CRLF."""
    return text.replace("\r\n", "\n").replace("\n", "\r\n")


def canonicalize_bytes(text: bytes) -> bytes:
    """Return ``text`` with every line ending turned into CRLF."""
    return bytes(text).replace(b"\r\n", b"\n").replace(b"\n", b"\r\n")


def trim_each_line(text: str) -> str:
    """Strip trailing spaces, tabs and carriage returns from every line."""
    return "\n".join(line.rstrip(_TRAILING) for line in text.split("\n"))


def trim_each_line_bytes(text: bytes) -> bytes:
    """Strip trailing spaces, tabs and carriage returns from every line."""
    trailing = _TRAILING.encode("ascii")
    return b"\n".join(line.rstrip(trailing) for line in bytes(text).split(b"\n"))


class ResetReader:
    """Binary reader that remembers what it has read so it can start over.

    While buffering is enabled every chunk returned by :meth:`read` is kept.
    :meth:`reset` replays the kept data before continuing with the source.
    """

    def __init__(self, reader: BinaryIO) -> None:
        self._reader = reader
        self._replay = b""
        self._buffer = bytearray()
        self._buffering = True

    def read(self, size: int = -1) -> bytes:
        """Read up to ``size`` bytes; a negative size reads everything left."""
        read_all = size is None or size < 0
        if self._replay:
            if read_all:
                chunk = self._replay + self._reader.read()
                self._replay = b""
            else:
                chunk, self._replay = self._replay[:size], self._replay[size:]
        else:
            chunk = self._reader.read() if read_all else self._reader.read(size)
        if self._buffering:
            self._buffer += chunk
        return chunk

    def disable_buffering(self) -> None:
        """Stop keeping read data; afterwards :meth:`reset` is not allowed."""
        self._buffering = False
        self._buffer = bytearray()

    def reset(self) -> "ResetReader":
        """Rewind to the first byte read since the last reset."""
        if not self._buffering:
            raise RuntimeError("reset not possible if buffering is disabled")
        self._replay = bytes(self._buffer) + self._replay
        self._buffer = bytearray()
        return self