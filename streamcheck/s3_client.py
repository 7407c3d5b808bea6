"""
S3 client wrapper used by the harness

Thin layer over a boto3 S3 client. The raw client stays reachable as
``S3Client.client`` for tests that need a call this wrapper does not cover.

upload() and download() are the collaborators the verification protocol is
run against: upload() takes any readable stream plus a declared size (or a
part size hint when the size is unknown) and lets the managed transfer decide
between a single PutObject and a multipart upload.
"""

import logging
import math
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import boto3
from boto3.s3.transfer import TransferConfig
from botocore.config import Config
from botocore.exceptions import ClientError

from streamcheck.encryption import SseCustomerKey
from streamcheck.errors import DataLengthMismatchError, UploadArgumentError
from streamcheck.options import PutOptions

logger = logging.getLogger(__name__)

KB = 1024
MB = 1024 * KB

MIN_MULTIPART_SIZE = 5 * MB
MAX_PART_SIZE = 5 * 1024 * MB
MAX_OBJECT_SIZE = 5 * 1024 * 1024 * MB
MAX_MULTIPART_COUNT = 10000


@dataclass(frozen=True)
class ObjectWriteResult:
    """Identity of an object after a successful upload"""

    bucket: str
    key: str
    etag: str
    version_id: Optional[str] = None
    size: Optional[int] = None


def compute_part_info(size: Optional[int], part_size: Optional[int]):
    """
    Return (part_size, part_count) for an upload

    part_count is -1 when the object size is unknown. Sizes follow S3 limits:
    parts between 5MiB and 5GiB, at most 10000 parts, objects up to 5TiB.
    """
    if part_size is not None:
        if part_size < MIN_MULTIPART_SIZE:
            raise UploadArgumentError(
                f"part size {part_size} is not supported; minimum allowed 5MiB"
            )
        if part_size > MAX_PART_SIZE:
            raise UploadArgumentError(
                f"part size {part_size} is not supported; maximum allowed 5GiB"
            )

    if size is None:
        if part_size is None:
            raise UploadArgumentError(
                "valid part size must be provided when object size is unknown"
            )
        return part_size, -1

    if size < 0:
        raise UploadArgumentError(f"object size {size} must not be negative")
    if size > MAX_OBJECT_SIZE:
        raise UploadArgumentError(
            f"object size {size} is not supported; maximum allowed 5TiB"
        )

    if part_size is None:
        per_part = math.ceil(size / MAX_MULTIPART_COUNT)
        part_size = max(
            MIN_MULTIPART_SIZE,
            math.ceil(per_part / MIN_MULTIPART_SIZE) * MIN_MULTIPART_SIZE,
        )

    part_count = max(1, math.ceil(size / part_size))
    if part_count > MAX_MULTIPART_COUNT:
        raise UploadArgumentError(
            f"object size {size} and part size {part_size} make more than "
            f"{MAX_MULTIPART_COUNT} parts"
        )
    return part_size, part_count


def build_range(offset: Optional[int] = None, length: Optional[int] = None):
    """HTTP Range header value for an offset/length pair, or None"""
    if offset is None and length is None:
        return None
    if offset is not None and offset < 0:
        raise ValueError(f"offset {offset} must not be negative")
    if length is not None and length < 1:
        raise ValueError(f"length {length} must be positive")

    start = offset or 0
    if length is None:
        return f"bytes={start}-"
    return f"bytes={start}-{start + length - 1}"


class _SizedReader:
    """Yields exactly ``size`` bytes of the wrapped stream"""

    def __init__(self, stream, size: int):
        self._stream = stream
        self._size = size
        self._read = 0

    def read(self, amt: int = -1) -> bytes:
        left = self._size - self._read
        if left <= 0:
            return b""
        if amt is None or amt < 0 or amt > left:
            amt = left
        data = self._stream.read(amt)
        if not data:
            raise DataLengthMismatchError(self._size, self._read)
        self._read += len(data)
        return data

    def readable(self) -> bool:
        return True

    def seekable(self) -> bool:
        return False


class S3Client:
    """S3 client for the functional harness"""

    def __init__(
        self,
        endpoint_url: Optional[str],
        access_key: str,
        secret_key: str,
        region: str = "us-east-1",
        use_ssl: bool = False,
        verify_ssl: bool = True,
        max_retries: int = 3,
    ):
        self.endpoint_url = endpoint_url
        self.region = region
        self.is_secure = use_ssl

        config = Config(
            signature_version="s3v4",
            s3={"addressing_style": "path"},
            retries={"max_attempts": max_retries, "mode": "standard"},
        )
        self.client = boto3.client(
            "s3",
            endpoint_url=endpoint_url,
            aws_access_key_id=access_key,
            aws_secret_access_key=secret_key,
            region_name=region,
            use_ssl=use_ssl,
            verify=verify_ssl,
            config=config,
        )

    # ------------------------------------------------------------------
    # Upload / download collaborators
    # ------------------------------------------------------------------

    def upload(
        self,
        bucket: str,
        key: str,
        stream,
        size: Optional[int] = None,
        part_size: Optional[int] = None,
        options: Optional[PutOptions] = None,
    ) -> ObjectWriteResult:
        """
        Upload a stream and return the stored object's ETag and version

        With a known ``size`` exactly that many bytes are sent; a stream that
        ends early raises DataLengthMismatchError. With an unknown size the
        stream is read until it is exhausted and ``part_size`` is required.
        """
        part_size, part_count = compute_part_info(size, part_size)
        options = options or PutOptions()
        extra_args = options.extra_args()

        body = _SizedReader(stream, size) if size is not None else stream
        transfer_config = TransferConfig(
            multipart_threshold=part_size,
            multipart_chunksize=part_size,
            use_threads=False,
        )

        logger.debug(
            "uploading s3://%s/%s size=%s part_size=%d part_count=%d",
            bucket,
            key,
            size,
            part_size,
            part_count,
        )
        self.client.upload_fileobj(
            body, bucket, key, ExtraArgs=extra_args or None, Config=transfer_config
        )

        ssec = options.sse if isinstance(options.sse, SseCustomerKey) else None
        head = self.stat(bucket, key, ssec=ssec)
        return ObjectWriteResult(
            bucket=bucket,
            key=key,
            etag=head["ETag"].strip('"'),
            version_id=head.get("VersionId"),
            size=head.get("ContentLength"),
        )

    def upload_file(
        self,
        bucket: str,
        key: str,
        filename: str,
        options: Optional[PutOptions] = None,
    ):
        """Upload a local file with the managed transfer defaults"""
        extra_args = options.extra_args() if options else None
        self.client.upload_file(filename, bucket, key, ExtraArgs=extra_args or None)

    def download(
        self,
        bucket: str,
        key: str,
        offset: Optional[int] = None,
        length: Optional[int] = None,
        ssec: Optional[SseCustomerKey] = None,
    ):
        """Return the object body stream, optionally restricted to a range"""
        kwargs: Dict[str, Any] = {"Bucket": bucket, "Key": key}
        byte_range = build_range(offset, length)
        if byte_range:
            kwargs["Range"] = byte_range
        if ssec is not None:
            kwargs.update(ssec.read_args())
        return self.client.get_object(**kwargs)["Body"]

    def download_file(
        self,
        bucket: str,
        key: str,
        filename: str,
        ssec: Optional[SseCustomerKey] = None,
    ):
        extra_args = ssec.read_args() if ssec is not None else None
        self.client.download_file(bucket, key, filename, ExtraArgs=extra_args)

    def stat(self, bucket: str, key: str, ssec: Optional[SseCustomerKey] = None):
        kwargs: Dict[str, Any] = {"Bucket": bucket, "Key": key}
        if ssec is not None:
            kwargs.update(ssec.read_args())
        return self.client.head_object(**kwargs)

    def remove(self, bucket: str, key: str, version_id: Optional[str] = None):
        kwargs: Dict[str, Any] = {"Bucket": bucket, "Key": key}
        if version_id:
            kwargs["VersionId"] = version_id
            kwargs["BypassGovernanceRetention"] = True
        return self.client.delete_object(**kwargs)

    # ------------------------------------------------------------------
    # Buckets
    # ------------------------------------------------------------------

    def create_bucket(self, bucket: str, object_lock: bool = False):
        kwargs: Dict[str, Any] = {"Bucket": bucket}
        if self.region and self.region != "us-east-1":
            kwargs["CreateBucketConfiguration"] = {
                "LocationConstraint": self.region
            }
        if object_lock:
            kwargs["ObjectLockEnabledForBucket"] = True
        return self.client.create_bucket(**kwargs)

    def bucket_exists(self, bucket: str) -> bool:
        try:
            self.client.head_bucket(Bucket=bucket)
            return True
        except ClientError as e:
            if e.response["Error"]["Code"] in ("404", "NoSuchBucket", "NotFound"):
                return False
            raise

    def list_object_keys(self, bucket: str, prefix: str = "") -> List[str]:
        keys = []
        paginator = self.client.get_paginator("list_objects_v2")
        for page in paginator.paginate(Bucket=bucket, Prefix=prefix):
            keys.extend(obj["Key"] for obj in page.get("Contents", []))
        return keys

    def remove_bucket(self, bucket: str, force: bool = False):
        """Delete a bucket; with force, delete every object version first"""
        if force:
            paginator = self.client.get_paginator("list_object_versions")
            for page in paginator.paginate(Bucket=bucket):
                entries = page.get("Versions", []) + page.get("DeleteMarkers", [])
                for entry in entries:
                    version_id = entry.get("VersionId")
                    if version_id == "null":
                        version_id = None
                    self.remove(bucket, entry["Key"], version_id=version_id)
        return self.client.delete_bucket(Bucket=bucket)
