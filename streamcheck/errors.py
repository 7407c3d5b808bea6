"""
Error kinds raised by streamcheck

Every error carries an ``error_code`` so harness code can match on the kind
the same way it matches on S3 error codes in ``ClientError`` responses.
"""


class StreamCheckError(Exception):
    """Base class for all streamcheck errors"""

    error_code = "StreamCheckError"


class ClosedResourceError(StreamCheckError, ValueError):
    """Operation attempted on a closed stream"""

    error_code = "ClosedResource"


class InsufficientDataError(StreamCheckError, EOFError):
    """Fewer bytes were available than the caller asked to skip"""

    error_code = "InsufficientData"


class DataLengthMismatchError(StreamCheckError):
    """
    A stream ended before the expected number of bytes was read

    Attributes:
        expected: number of bytes the caller asked for
        actual: number of bytes actually read before end of data
    """

    error_code = "DataLengthMismatch"

    def __init__(self, expected: int, actual: int):
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"data length mismatch. expected: {expected}, got: {actual}"
        )


class ChecksumFinalizedError(StreamCheckError):
    """A checksum state was used after its digest was produced"""

    error_code = "ChecksumFinalized"


class UploadArgumentError(StreamCheckError, ValueError):
    """Invalid object size / part size combination for an upload"""

    error_code = "InvalidArgument"


class ContentMismatchError(StreamCheckError):
    """Downloaded content or metadata differs from what was uploaded"""

    error_code = "ContentMismatch"
