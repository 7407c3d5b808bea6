"""
Server-side encryption variants

Each variant renders the boto3 parameters for writes (PutObject and the
managed transfer ExtraArgs). SSE-C keys are also needed for reads, so
SseCustomerKey additionally renders read parameters.
"""

import base64
import hashlib
import json
import os
from typing import Dict, Optional


class ServerSideEncryption:
    """Base class for the encryption modes an upload can request"""

    def write_args(self) -> Dict[str, str]:
        raise NotImplementedError

    @property
    def requires_tls(self) -> bool:
        return False


class SseS3(ServerSideEncryption):
    """Server-managed keys (SSE-S3)"""

    def write_args(self) -> Dict[str, str]:
        return {"ServerSideEncryption": "AES256"}

    def __repr__(self):
        return "SseS3()"


class SseKms(ServerSideEncryption):
    """KMS-managed key with an optional encryption context"""

    def __init__(self, key_id: str, context: Optional[Dict[str, str]] = None):
        if not key_id:
            raise ValueError("KMS key id must not be empty")
        self.key_id = key_id
        self.context = context

    def write_args(self) -> Dict[str, str]:
        args = {"ServerSideEncryption": "aws:kms", "SSEKMSKeyId": self.key_id}
        if self.context:
            encoded = json.dumps(self.context, sort_keys=True).encode("utf-8")
            args["SSEKMSEncryptionContext"] = base64.b64encode(encoded).decode()
        return args

    @property
    def requires_tls(self) -> bool:
        return True

    def __repr__(self):
        return f"SseKms(key_id={self.key_id!r})"


class SseCustomerKey(ServerSideEncryption):
    """
    Customer-supplied 256-bit key (SSE-C)

    S3 refuses SSE-C requests over plain HTTP, so callers should only use
    this against TLS endpoints.
    """

    KEY_LENGTH = 32

    def __init__(self, key: bytes):
        if len(key) != self.KEY_LENGTH:
            raise ValueError(
                f"SSE-C key must be {self.KEY_LENGTH} bytes, got {len(key)}"
            )
        self.key = key

    @classmethod
    def generate(cls) -> "SseCustomerKey":
        return cls(os.urandom(cls.KEY_LENGTH))

    @property
    def requires_tls(self) -> bool:
        return True

    def read_args(self) -> Dict[str, str]:
        return {
            "SSECustomerAlgorithm": "AES256",
            "SSECustomerKey": base64.b64encode(self.key).decode(),
            "SSECustomerKeyMD5": base64.b64encode(
                hashlib.md5(self.key).digest()
            ).decode(),
        }

    def write_args(self) -> Dict[str, str]:
        return self.read_args()

    def __repr__(self):
        # never print key material
        return "SseCustomerKey(<redacted>)"
