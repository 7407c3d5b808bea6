"""
streamcheck - deterministic content streams and checksum verification for
S3-compatible object storage tests
"""

from streamcheck.checksum import (
    ChecksumState,
    digest_of,
    read_all_bytes,
    sha256_sum,
    skip_stream,
)
from streamcheck.content import CONTENT, END_OF_DATA, ContentStream
from streamcheck.errors import (
    ChecksumFinalizedError,
    ClosedResourceError,
    ContentMismatchError,
    DataLengthMismatchError,
    InsufficientDataError,
    StreamCheckError,
    UploadArgumentError,
)

__version__ = "0.1.0"

__all__ = [
    "CONTENT",
    "END_OF_DATA",
    "ChecksumFinalizedError",
    "ChecksumState",
    "ClosedResourceError",
    "ContentMismatchError",
    "ContentStream",
    "DataLengthMismatchError",
    "InsufficientDataError",
    "StreamCheckError",
    "UploadArgumentError",
    "digest_of",
    "read_all_bytes",
    "sha256_sum",
    "skip_stream",
]
