"""
Checksum-based content verification

Computes a digest over exactly N bytes of any stream with a ``read(n)``
method (ContentStream, io.BytesIO, botocore StreamingBody), so uploaded and
downloaded content can be compared without buffering either in full.
"""

import hashlib

from streamcheck.errors import (
    ChecksumFinalizedError,
    DataLengthMismatchError,
    InsufficientDataError,
)

# 16KiB buffer for I/O efficiency; the digest does not depend on it
CHUNK_SIZE = 16 * 1024


class ChecksumState:
    """
    Incremental hash over a byte sequence

    Feed chunks with update(), then call hexdigest() once. The state cannot
    be reused after finalization.
    """

    def __init__(self, algorithm: str = "sha256"):
        self.algorithm = algorithm
        self.total_bytes = 0
        self._hasher = hashlib.new(algorithm)
        self._finalized = False

    def update(self, chunk: bytes):
        if self._finalized:
            raise ChecksumFinalizedError(f"{self.algorithm} checksum already finalized")
        self._hasher.update(chunk)
        self.total_bytes += len(chunk)

    def hexdigest(self) -> str:
        if self._finalized:
            raise ChecksumFinalizedError(f"{self.algorithm} checksum already finalized")
        self._finalized = True
        return self._hasher.hexdigest().lower()


def _check_chunk_size(chunk_size: int):
    if chunk_size < 1:
        raise ValueError(f"chunk_size must be at least 1, got {chunk_size}")


def _read_exactly(stream, length: int, chunk_size: int, on_chunk, on_short_read):
    total = 0
    while total < length:
        want = min(chunk_size, length - total)
        data = stream.read(want)
        if not data:
            raise on_short_read(total)
        if len(data) > want:
            raise ValueError(f"stream returned {len(data)} bytes, asked for {want}")
        on_chunk(data)
        total += len(data)


def digest_of(
    stream, length: int, algorithm: str = "sha256", chunk_size: int = CHUNK_SIZE
) -> str:
    """
    Return the lowercase hex digest of the next ``length`` bytes of stream

    Raises DataLengthMismatchError if the stream ends early; a short read is
    never hashed as if it were the full content.
    """
    _check_chunk_size(chunk_size)
    if length < 0:
        raise ValueError(f"length must be non-negative, got {length}")

    state = ChecksumState(algorithm)
    _read_exactly(
        stream,
        length,
        chunk_size,
        state.update,
        lambda got: DataLengthMismatchError(length, got),
    )
    return state.hexdigest()


def sha256_sum(stream, length: int, chunk_size: int = CHUNK_SIZE) -> str:
    """SHA-256 of the next ``length`` bytes of stream, 64 hex characters"""
    return digest_of(stream, length, "sha256", chunk_size)


def skip_stream(stream, length: int, chunk_size: int = CHUNK_SIZE):
    """
    Read and discard exactly ``length`` bytes from stream

    Used to line up an expected-content stream with the offset of a ranged
    download. Raises InsufficientDataError if fewer bytes are available.
    """
    _check_chunk_size(chunk_size)
    if length < 0:
        raise ValueError(f"length must be non-negative, got {length}")

    def insufficient(got):
        return InsufficientDataError(
            f"insufficient data. expected: {length}, got: {got}"
        )

    _read_exactly(stream, length, chunk_size, lambda data: None, insufficient)


def read_all_bytes(stream, chunk_size: int = CHUNK_SIZE) -> bytes:
    """Drain stream and return everything it yielded"""
    _check_chunk_size(chunk_size)
    buffer = bytearray()
    while True:
        data = stream.read(chunk_size)
        if not data:
            return bytes(buffer)
        buffer += data
