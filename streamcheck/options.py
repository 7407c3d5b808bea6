"""
Per-object upload options

PutOptions is passed through to the storage client untouched by the content
and checksum code; it only knows how to render itself as boto3 ExtraArgs.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Optional
from urllib.parse import urlencode

from streamcheck.encryption import ServerSideEncryption

RETENTION_MODES = ("GOVERNANCE", "COMPLIANCE")


@dataclass(frozen=True)
class Retention:
    """Object lock retention; only valid on buckets created with object lock"""

    mode: str
    retain_until: datetime

    def __post_init__(self):
        if self.mode not in RETENTION_MODES:
            raise ValueError(
                f"retention mode must be one of {RETENTION_MODES}, got {self.mode!r}"
            )


@dataclass
class PutOptions:
    """Options for a single upload"""

    content_type: Optional[str] = None
    user_metadata: Dict[str, str] = field(default_factory=dict)
    sse: Optional[ServerSideEncryption] = None
    retention: Optional[Retention] = None
    legal_hold: bool = False
    storage_class: Optional[str] = None
    tags: Dict[str, str] = field(default_factory=dict)

    def extra_args(self) -> Dict[str, Any]:
        """Render the options as boto3 ExtraArgs / PutObject keyword args"""
        args: Dict[str, Any] = {}
        if self.content_type:
            args["ContentType"] = self.content_type
        if self.user_metadata:
            args["Metadata"] = dict(self.user_metadata)
        if self.sse is not None:
            args.update(self.sse.write_args())
        if self.retention is not None:
            args["ObjectLockMode"] = self.retention.mode
            args["ObjectLockRetainUntilDate"] = self.retention.retain_until
        if self.legal_hold:
            args["ObjectLockLegalHoldStatus"] = "ON"
        if self.storage_class:
            args["StorageClass"] = self.storage_class
        if self.tags:
            args["Tagging"] = urlencode(self.tags)
        return args
