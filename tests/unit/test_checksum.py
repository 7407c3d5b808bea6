"""
Checksum verification protocol tests
"""

import hashlib
import io

import pytest

from streamcheck.checksum import (
    ChecksumState,
    digest_of,
    read_all_bytes,
    sha256_sum,
    skip_stream,
)
from streamcheck.content import ContentStream
from streamcheck.errors import (
    ChecksumFinalizedError,
    DataLengthMismatchError,
    InsufficientDataError,
)

EMPTY_SHA256 = "e3b0c44298fc1c149afbf4c8996fb92427ae41e4649b934ca495991b7852b855"


class ShortStream:
    """Yields ``available`` bytes in small reads, then end of data"""

    def __init__(self, available: int, step: int = 3):
        self._data = io.BytesIO(b"z" * available)
        self._step = step

    def read(self, amount):
        return self._data.read(min(amount, self._step))


def test_sha256_matches_hashlib():
    size = 100000
    expected = hashlib.sha256(ContentStream(size).read()).hexdigest()
    assert sha256_sum(ContentStream(size), size) == expected


def test_digest_is_lowercase_hex_of_fixed_width():
    digest = sha256_sum(ContentStream(1024), 1024)
    assert len(digest) == 64
    assert digest == digest.lower()
    int(digest, 16)


@pytest.mark.parametrize("chunk_size", [1, 7, 1024, 16 * 1024, 1024 * 1024])
def test_digest_independent_of_chunk_size(chunk_size):
    size = 50000
    reference = sha256_sum(ContentStream(size), size)
    assert sha256_sum(ContentStream(size), size, chunk_size=chunk_size) == reference


def test_zero_length_is_empty_digest():
    assert sha256_sum(ContentStream(0), 0) == EMPTY_SHA256


def test_zero_length_does_not_read():
    stream = ContentStream(10)
    assert sha256_sum(stream, 0) == EMPTY_SHA256
    assert stream.remaining == 10


def test_digest_consumes_exactly_length():
    stream = ContentStream(1000)
    sha256_sum(stream, 600)
    assert stream.remaining == 400


def test_short_read_raises_length_mismatch():
    with pytest.raises(DataLengthMismatchError) as exc_info:
        sha256_sum(ShortStream(10), 20)
    assert exc_info.value.expected == 20
    assert exc_info.value.actual == 10
    assert "expected: 20, got: 10" in str(exc_info.value)


def test_short_content_stream_raises_length_mismatch():
    with pytest.raises(DataLengthMismatchError):
        sha256_sum(ContentStream(1024), 1025)


def test_negative_length_rejected():
    with pytest.raises(ValueError):
        sha256_sum(ContentStream(10), -1)


@pytest.mark.parametrize("chunk_size", [0, -1])
def test_non_positive_chunk_size_rejected(chunk_size):
    with pytest.raises(ValueError, match="chunk_size"):
        sha256_sum(ContentStream(10), 10, chunk_size=chunk_size)
    with pytest.raises(ValueError, match="chunk_size"):
        skip_stream(ContentStream(10), 5, chunk_size=chunk_size)
    with pytest.raises(ValueError, match="chunk_size"):
        read_all_bytes(ContentStream(10), chunk_size=chunk_size)


def test_oversized_read_rejected():
    class GreedyStream:
        def read(self, amount):
            return b"z" * (amount + 1)

    with pytest.raises(ValueError, match="asked for"):
        sha256_sum(GreedyStream(), 10)


def test_digest_of_md5():
    data = ContentStream(5000).read()
    assert digest_of(io.BytesIO(data), len(data), "md5") == hashlib.md5(data).hexdigest()


def test_skip_stream_then_digest_matches_slice():
    size = 1024
    data = ContentStream(size).read()

    stream = ContentStream(size)
    skip_stream(stream, 1000)
    assert sha256_sum(stream, 24) == hashlib.sha256(data[1000:]).hexdigest()


def test_skip_stream_insufficient_data():
    with pytest.raises(InsufficientDataError) as exc_info:
        skip_stream(ShortStream(5), 6)
    assert "insufficient data. expected: 6, got: 5" in str(exc_info.value)


def test_skip_stream_zero_on_exhausted_stream_is_fine():
    stream = ContentStream(0)
    skip_stream(stream, 0)


def test_read_all_bytes():
    assert read_all_bytes(ContentStream(40000)) == ContentStream(40000).read()
    assert read_all_bytes(io.BytesIO(b"")) == b""


def test_checksum_state_counts_and_finalizes_once():
    state = ChecksumState()
    state.update(b"abc")
    state.update(b"def")
    assert state.total_bytes == 6
    assert state.hexdigest() == hashlib.sha256(b"abcdef").hexdigest()

    with pytest.raises(ChecksumFinalizedError):
        state.update(b"x")
    with pytest.raises(ChecksumFinalizedError):
        state.hexdigest()


def test_checksum_state_chunking_invariant():
    whole = ChecksumState()
    whole.update(b"0123456789")

    pieces = ChecksumState()
    for ch in b"0123456789":
        pieces.update(bytes([ch]))

    assert whole.hexdigest() == pieces.hexdigest()
