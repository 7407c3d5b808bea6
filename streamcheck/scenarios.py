"""
Functional scenarios

Each scenario uploads a ContentStream through the S3 client, downloads the
object again and compares SHA-256 digests. The expected digest always comes
from a fresh ContentStream of the same size, so no payload is kept in memory.

Cases are grouped the way the result log reports them (putObject(),
getObject()); each case logs PASS/FAIL/NA through MintLogger and removes its
object in a finally block.
"""

import logging
import os
import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from datetime import datetime, timedelta, timezone
from typing import List, Optional

from botocore.exceptions import ClientError

from streamcheck.checksum import sha256_sum, skip_stream
from streamcheck.config import HarnessConfig
from streamcheck.content import ContentStream
from streamcheck.encryption import SseCustomerKey, SseKms, SseS3
from streamcheck.errors import ContentMismatchError
from streamcheck.fixtures import create_file, get_random_name, random_string
from streamcheck.mintlog import MintLogger
from streamcheck.options import PutOptions, Retention
from streamcheck.s3_client import KB, MB, MIN_MULTIPART_SIZE, S3Client

logger = logging.getLogger(__name__)

CUSTOM_CONTENT_TYPE = "application/javascript"


def expected_sha256(size: int, offset: int = 0, length: Optional[int] = None) -> str:
    """Digest of ``length`` bytes of a ContentStream(size) starting at offset"""
    if length is None:
        length = size - offset
    with ContentStream(size) as stream:
        skip_stream(stream, offset)
        return sha256_sum(stream, length)


def verify_object(
    client: S3Client,
    bucket: str,
    key: str,
    size: int,
    ssec: Optional[SseCustomerKey] = None,
):
    """Check an uploaded object's size and content against ContentStream(size)"""
    head = client.stat(bucket, key, ssec=ssec)
    if head["ContentLength"] != size:
        raise ContentMismatchError(
            f"size mismatch. expected: {size}, got: {head['ContentLength']}"
        )

    expected = expected_sha256(size)
    body = client.download(bucket, key, ssec=ssec)
    try:
        actual = sha256_sum(body, size)
    finally:
        body.close()
    if actual != expected:
        raise ContentMismatchError(
            f"checksum mismatch. expected: {expected}, got: {actual}"
        )


def _put_file_worker(client: S3Client, bucket: str, size: int) -> str:
    filename = create_file(size)
    key = os.path.basename(filename)
    try:
        logger.debug("[%s]: threaded put object", key)
        client.upload_file(bucket, key, filename)
    finally:
        logger.debug("[%s]: delete file", key)
        os.remove(filename)
    logger.debug("[%s]: delete object", key)
    client.remove(bucket, key)
    return key


def run_threaded_uploads(
    client: S3Client, bucket: str, count: int, size: int
) -> List[str]:
    """
    Upload ``count`` files of ``size`` bytes from parallel worker threads

    Workers share nothing: each one writes its own temporary file, uploads
    it, deletes the file and removes the object. All workers run to
    completion; the first worker error is then re-raised.
    """
    if count < 1:
        raise ValueError(f"thread count must be at least 1, got {count}")

    keys = []
    errors = []
    with ThreadPoolExecutor(max_workers=count) as executor:
        futures = [
            executor.submit(_put_file_worker, client, bucket, size)
            for _ in range(count)
        ]
        for future in as_completed(futures):
            try:
                keys.append(future.result())
            except Exception as e:
                logger.error("threaded upload failed: %s", e)
                errors.append(e)

    if errors:
        raise errors[0]
    return keys


class ScenarioRunner:
    """Runs the putObject()/getObject() case groups against one endpoint"""

    def __init__(
        self,
        client: S3Client,
        config: HarnessConfig,
        mint: Optional[MintLogger] = None,
    ):
        self.client = client
        self.config = config
        self.mint = mint or MintLogger(config.mint_env, config.run_on_fail)
        self.bucket_name = f"{config.s3_bucket_prefix}-{random_string()}"
        self.lock_bucket_name: Optional[str] = None
        self.sse_s3 = SseS3()
        self.ssec = SseCustomerKey.generate()
        self.sse_kms = (
            SseKms(config.kms_key_id, {"key1": "value1"})
            if config.kms_key_id
            else None
        )

    # ------------------------------------------------------------------
    # putObject()
    # ------------------------------------------------------------------

    def check_put_object(
        self,
        tags: str,
        size: int,
        options: Optional[PutOptions] = None,
        size_known: bool = True,
        part_size: Optional[int] = None,
        key: Optional[str] = None,
        bucket: Optional[str] = None,
        expected_error: Optional[str] = None,
    ):
        function = "putObject()"
        start_time = time.monotonic()
        bucket = bucket or self.bucket_name
        key = key or get_random_name()
        options = options or PutOptions()
        if not self._tls_available(options.sse):
            self.mint.ignored(function, tags, start_time)
            return
        ssec = options.sse if isinstance(options.sse, SseCustomerKey) else None
        version_id = None
        try:
            try:
                result = self.client.upload(
                    bucket,
                    key,
                    ContentStream(size),
                    size=size if size_known else None,
                    part_size=part_size,
                    options=options,
                )
                version_id = result.version_id
            except ClientError as e:
                if expected_error and e.response["Error"]["Code"] == expected_error:
                    self.mint.success(function, tags, start_time)
                    return
                raise

            if expected_error:
                raise ContentMismatchError(
                    f"upload succeeded, expected error {expected_error}"
                )
            verify_object(self.client, bucket, key, size, ssec=ssec)
            self.mint.success(function, tags, start_time)
        except Exception as e:
            self.mint.handle_exception(function, tags, start_time, e)
        finally:
            self._remove_quietly(bucket, key, version_id)

    def check_threaded_put_object(self):
        function = "putObject()"
        tags = "[threaded]"
        start_time = time.monotonic()
        count = self.config.thread_count
        size = 1 * MB if self.config.quick else 6 * MB
        try:
            run_threaded_uploads(self.client, self.bucket_name, count, size)
            self.mint.success(function, tags, start_time)
        except Exception as e:
            self.mint.handle_exception(function, tags, start_time, e)

    def put_object(self):
        logger.info("putObject()")
        content_type = PutOptions(content_type=CUSTOM_CONTENT_TYPE)

        self.check_put_object("[single upload]", 1 * KB, content_type)
        if self.config.quick:
            return

        self.check_put_object("[multi-part upload]", 11 * MB, content_type)
        self.check_put_object(
            "[object name with path segments]",
            1 * KB,
            content_type,
            key="path/to/" + get_random_name(),
        )
        self.check_put_object("[zero sized object]", 0)
        self.check_put_object(
            "[object name ends with '/']",
            0,
            content_type,
            key="path/to/" + get_random_name() + "/",
        )
        self.check_put_object(
            "[unknown stream size, single upload]",
            1 * KB,
            content_type,
            size_known=False,
            part_size=MIN_MULTIPART_SIZE,
        )
        self.check_put_object(
            "[unknown stream size, multi-part upload]",
            11 * MB,
            content_type,
            size_known=False,
            part_size=MIN_MULTIPART_SIZE,
        )

        user_metadata = {
            "My-Project": "Project One",
            "My-header1": "    a   b   c  ",
            "My-Header2": '"a   b   c"',
        }
        self.check_put_object(
            "[user metadata]", 1 * KB, PutOptions(user_metadata=user_metadata)
        )

        for storage_class in ("REDUCED_REDUNDANCY", "STANDARD"):
            self.check_put_object(
                f"[storage-class={storage_class}]",
                1 * KB,
                PutOptions(storage_class=storage_class),
            )
        self.check_put_object(
            "[storage-class=INVALID negative case]",
            1 * KB,
            PutOptions(storage_class="INVALID"),
            expected_error="InvalidStorageClass",
        )

        self.check_put_object(
            "[SSE-S3]",
            1 * KB,
            PutOptions(content_type=CUSTOM_CONTENT_TYPE, sse=self.sse_s3),
        )

        if self.lock_bucket_name is not None:
            retain_until = datetime.now(timezone.utc) + timedelta(days=1)
            self.check_put_object(
                "[with retention]",
                1 * KB,
                PutOptions(retention=Retention("GOVERNANCE", retain_until)),
                bucket=self.lock_bucket_name,
            )

        self.check_threaded_put_object()

        for tags, size in (
            ("[SSE-C single upload]", 1 * KB),
            ("[SSE-C multi-part upload]", 11 * MB),
        ):
            self.check_put_object(
                tags,
                size,
                PutOptions(content_type=CUSTOM_CONTENT_TYPE, sse=self.ssec),
            )

        if self.sse_kms is None:
            self.mint.ignored("putObject()", "[SSE-KMS]", time.monotonic())
            return

        self.check_put_object(
            "[SSE-KMS]",
            1 * KB,
            PutOptions(content_type=CUSTOM_CONTENT_TYPE, sse=self.sse_kms),
        )

    # ------------------------------------------------------------------
    # getObject()
    # ------------------------------------------------------------------

    def check_get_object(
        self,
        tags: str,
        size: int,
        read_length: int,
        expected: str,
        offset: Optional[int] = None,
        length: Optional[int] = None,
        ssec: Optional[SseCustomerKey] = None,
    ):
        function = "getObject()"
        start_time = time.monotonic()
        if not self._tls_available(ssec):
            self.mint.ignored(function, tags, start_time)
            return
        key = get_random_name()
        try:
            self.client.upload(
                self.bucket_name,
                key,
                ContentStream(size),
                size=size,
                options=PutOptions(sse=ssec),
            )
            body = self.client.download(
                self.bucket_name, key, offset=offset, length=length, ssec=ssec
            )
            try:
                checksum = sha256_sum(body, read_length)
            finally:
                body.close()
            if checksum != expected:
                raise ContentMismatchError(
                    f"checksum mismatch. expected: {expected}, got: {checksum}"
                )
            self.mint.success(function, tags, start_time)
        except Exception as e:
            self.mint.handle_exception(function, tags, start_time, e)
        finally:
            self._remove_quietly(self.bucket_name, key)

    def get_object(self):
        logger.info("getObject()")

        self.check_get_object(
            "[single upload]", 1 * KB, 1 * KB, expected_sha256(1 * KB)
        )
        if self.config.quick:
            return

        self.check_get_object(
            "[single upload, offset]",
            1 * KB,
            1 * KB - 1000,
            expected_sha256(1 * KB, offset=1000),
            offset=1000,
        )
        self.check_get_object(
            "[single upload, length]",
            1 * KB,
            256,
            expected_sha256(1 * KB, length=256),
            length=256,
        )
        self.check_get_object(
            "[single upload, offset, length]",
            1 * KB,
            24,
            expected_sha256(1 * KB, offset=1000, length=24),
            offset=1000,
            length=24,
        )
        self.check_get_object(
            "[single upload, offset, length beyond available]",
            1 * KB,
            24,
            expected_sha256(1 * KB, offset=1000, length=24),
            offset=1000,
            length=30,
        )
        self.check_get_object(
            "[multi-part upload]", 6 * MB, 6 * MB, expected_sha256(6 * MB)
        )
        self.check_get_object(
            "[multi-part upload, offset, length]",
            6 * MB,
            64 * KB,
            expected_sha256(6 * MB, offset=1000, length=64 * KB),
            offset=1000,
            length=64 * KB,
        )
        self.check_get_object("[zero sized object]", 0, 0, expected_sha256(0))
        self.check_get_object(
            "[single upload, SSE-C]",
            1 * KB,
            1 * KB,
            expected_sha256(1 * KB),
            ssec=self.ssec,
        )

    # ------------------------------------------------------------------
    # Setup / teardown
    # ------------------------------------------------------------------

    def _tls_available(self, sse) -> bool:
        # SSE-C and SSE-KMS requests are refused over plain HTTP
        return sse is None or not sse.requires_tls or self.config.is_secure

    def _remove_quietly(self, bucket: str, key: str, version_id: Optional[str] = None):
        try:
            self.client.remove(bucket, key, version_id=version_id)
        except ClientError as e:
            logger.warning("removing s3://%s/%s failed: %s", bucket, key, e)

    def setup(self):
        self.client.create_bucket(self.bucket_name)
        lock_bucket = f"{self.config.s3_bucket_prefix}-lock-{random_string()}"
        try:
            self.client.create_bucket(lock_bucket, object_lock=True)
            self.lock_bucket_name = lock_bucket
        except ClientError as e:
            logger.warning("object lock bucket not available: %s", e)

    def teardown(self):
        for bucket in (self.bucket_name, self.lock_bucket_name):
            if bucket is None:
                continue
            try:
                self.client.remove_bucket(bucket, force=True)
            except ClientError as e:
                logger.warning("removing bucket %s failed: %s", bucket, e)

    def run_all(self) -> int:
        """Run every case group; return the number of failed cases"""
        self.setup()
        try:
            self.put_object()
            self.get_object()
        finally:
            self.teardown()
        return self.mint.failures
