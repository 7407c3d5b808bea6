"""
Deterministic content stream

ContentStream yields ``size`` bytes taken from a fixed cycle of printable
characters. Two streams of the same size always produce identical bytes, so
an expected checksum can be computed locally from a fresh stream instead of
keeping a copy of the uploaded data around.

The stream never holds more than the cycle in memory, which makes it usable
for multipart uploads of hundreds of megabytes.
"""

import io
import random
import string

from streamcheck.errors import ClosedResourceError, InsufficientDataError

END_OF_DATA = None

_CONTENT_SEED = 20170523
# Prime length keeps the cycle from lining up with power-of-two part sizes.
_CONTENT_LENGTH = 10007


def _build_content() -> bytes:
    rng = random.Random(_CONTENT_SEED)
    alphabet = string.ascii_letters + string.digits
    return "".join(rng.choices(alphabet, k=_CONTENT_LENGTH)).encode("ascii")


CONTENT = _build_content()


class ContentStream(io.RawIOBase):
    """
    Read-only, non-seekable stream of ``size`` deterministic bytes

    Not thread-safe. Each worker thread must construct its own instance.
    """

    def __init__(self, size: int):
        super().__init__()
        if size < 0:
            raise ValueError(f"size must be non-negative, got {size}")
        self.size = size
        self._remaining = size
        self._pos = 0

    def _check_open(self):
        if self.closed:
            raise ClosedResourceError("closed stream")

    @property
    def remaining(self) -> int:
        """Number of bytes left before end of data"""
        self._check_open()
        return self._remaining

    def readable(self) -> bool:
        return True

    def seekable(self) -> bool:
        return False

    def read_byte(self):
        """
        Return the next byte as an int, or END_OF_DATA when exhausted
        """
        self._check_open()
        if self._remaining <= 0:
            return END_OF_DATA

        value = CONTENT[self._pos]
        self._pos = (self._pos + 1) % len(CONTENT)
        self._remaining -= 1
        return value

    def readinto(self, buffer) -> int:
        self._check_open()
        view = memoryview(buffer).cast("B")
        count = min(len(view), self._remaining)

        written = 0
        while written < count:
            chunk = min(count - written, len(CONTENT) - self._pos)
            view[written : written + chunk] = CONTENT[self._pos : self._pos + chunk]
            written += chunk
            self._pos = (self._pos + chunk) % len(CONTENT)

        self._remaining -= count
        return count

    def skip(self, n: int) -> int:
        """
        Discard up to ``n`` bytes and return how many were skipped

        Unlike most streams, skipping on an exhausted stream is an error:
        InsufficientDataError is raised whenever no data is left, even for
        ``n == 0``. Callers check ``remaining`` first.
        """
        self._check_open()
        if n < 0:
            raise ValueError(f"skip count must be non-negative, got {n}")
        if self._remaining <= 0:
            raise InsufficientDataError("no more data")

        if n > self._remaining:
            n = self._remaining
            self._remaining = 0
        else:
            self._remaining -= n
        self._pos = (self._pos + n) % len(CONTENT)
        return n

    def __repr__(self):
        state = "closed" if self.closed else f"remaining={self._remaining}"
        return f"ContentStream(size={self.size}, {state})"
