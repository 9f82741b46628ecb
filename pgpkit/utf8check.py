"""Writer that rejects data which is not valid UTF-8."""

from __future__ import annotations

import codecs
from typing import Any, Protocol


class IncorrectUtf8Error(ValueError):
    """Raised when written data is not valid UTF-8."""

    def __init__(self, message: str = "openpgp: data encoding is not valid utf-8") -> None:
        super().__init__(message)


class _Writer(Protocol):
    def write(self, data: bytes) -> Any: ...


class Utf8CheckWriter:
    """Pass writes through to ``inner`` while checking they form valid UTF-8.

    Characters may be split across writes; an incomplete character left
    at :meth:`close` is an error.
    """

    def __init__(self, inner: _Writer) -> None:
        self._inner = inner
        self._decoder = codecs.getincrementaldecoder("utf-8")("strict")

    def write(self, data: bytes) -> Any:
        """Check ``data`` and forward it to the wrapped writer."""
        try:
            self._decoder.decode(bytes(data), final=False)
        except UnicodeDecodeError as exc:
            raise IncorrectUtf8Error() from exc
        return self._inner.write(data)

    def close(self) -> None:
        """Fail on an unfinished character, then close the wrapped writer."""
        try:
            self._decoder.decode(b"", final=True)
        except UnicodeDecodeError as exc:
            raise IncorrectUtf8Error() from exc
        close = getattr(self._inner, "close", None)
        if close is not None:
            close()

    def __enter__(self) -> "Utf8CheckWriter":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if exc_type is None:
            self.close()