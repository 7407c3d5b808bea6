"""
Test fixtures shared by the scenarios and the pytest suites

TestFixture tracks the buckets a test creates so cleanup() can remove them
and everything in them, whatever state the test left them in.
"""

import logging
import os
import random
import shutil
import string
import tempfile
from typing import List, Optional

from streamcheck.content import ContentStream

logger = logging.getLogger(__name__)

_RANDOM = random.SystemRandom()


def random_string(length: int = 8) -> str:
    """Random lowercase/digit string, safe for bucket names"""
    alphabet = string.ascii_lowercase + string.digits
    return "".join(_RANDOM.choice(alphabet) for _ in range(length))


def get_random_name(prefix: str = "streamcheck-test") -> str:
    """Random object or file name"""
    return f"{prefix}-{random_string(10)}"


def create_file(size: int, directory: Optional[str] = None) -> str:
    """
    Write ``size`` bytes of deterministic content to a new file

    Returns the file path. The caller owns the file and must delete it.
    """
    fd, path = tempfile.mkstemp(prefix="streamcheck-", dir=directory)
    with os.fdopen(fd, "wb") as f, ContentStream(size) as stream:
        shutil.copyfileobj(stream, f, 1024 * 1024)
    return path


class TestFixture:
    """Per-test bucket bookkeeping"""

    __test__ = False  # not a pytest test class

    def __init__(self, s3_client, config):
        self.s3_client = s3_client
        self.config = config
        self.buckets: List[str] = []

    def generate_bucket_name(self, suffix: str = "") -> str:
        """Unique bucket name under the configured prefix, tracked for cleanup"""
        parts = [self.config.s3_bucket_prefix]
        if suffix:
            parts.append(suffix)
        parts.append(random_string())
        name = "-".join(parts).lower()[:63]
        self.buckets.append(name)
        return name

    def cleanup(self):
        """Remove tracked buckets; failures are logged, never raised"""
        for bucket in reversed(self.buckets):
            try:
                if self.s3_client.bucket_exists(bucket):
                    self.s3_client.remove_bucket(bucket, force=True)
            except Exception as e:
                logger.warning("cleanup of bucket %s failed: %s", bucket, e)
        self.buckets = []
