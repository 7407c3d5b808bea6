"""
Harness configuration

Resolution order (last wins):
  1) built-in defaults (a local MinIO server)
  2) an optional YAML file
  3) environment variables

Each scenario run gets its own HarnessConfig instance; nothing here is
process-wide state.
"""

import os
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

ENV_VARS = {
    "S3_ENDPOINT": "s3_endpoint",
    "S3_ACCESS_KEY": "s3_access_key",
    "S3_SECRET_KEY": "s3_secret_key",
    "S3_REGION": "s3_region",
    "S3_BUCKET_PREFIX": "s3_bucket_prefix",
    "S3_VERIFY_SSL": "verify_ssl",
    "S3_KMS_KEY_ID": "kms_key_id",
    "S3_THREAD_COUNT": "thread_count",
}


@dataclass
class HarnessConfig:
    """Settings for one harness run"""

    s3_endpoint: str = "http://localhost:9000"
    s3_access_key: str = "minioadmin"
    s3_secret_key: str = "minioadmin"
    s3_region: str = "us-east-1"
    s3_bucket_prefix: str = "streamcheck"
    verify_ssl: bool = False
    kms_key_id: Optional[str] = None
    # MINT_MODE set -> JSON result lines; anything but "full" -> quick run
    mint_mode: Optional[str] = None
    quick: bool = False
    run_on_fail: bool = False
    thread_count: int = 7

    @property
    def is_secure(self) -> bool:
        return self.s3_endpoint.lower().startswith("https://")

    @property
    def mint_env(self) -> bool:
        return self.mint_mode is not None

    def to_client_kwargs(self) -> Dict[str, Any]:
        return {
            "endpoint_url": self.s3_endpoint,
            "access_key": self.s3_access_key,
            "secret_key": self.s3_secret_key,
            "region": self.s3_region,
            "use_ssl": self.is_secure,
            "verify_ssl": self.verify_ssl,
        }


def _parse_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in ("1", "true", "yes", "on")


def _coerce(name: str, value: Any) -> Any:
    if name in ("verify_ssl", "quick", "run_on_fail"):
        return _parse_bool(value)
    if name == "thread_count":
        count = int(value)
        if count < 1:
            raise ValueError(f"thread_count must be at least 1, got {count}")
        return count
    return value


def load_yaml_config(path: str) -> Dict[str, Any]:
    """Read a YAML mapping of HarnessConfig field names to values"""
    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(f"Config file not found: {path}")
    with p.open("r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError("Config file must contain a mapping at top-level.")

    known = {f.name for f in fields(HarnessConfig)}
    unknown = sorted(set(data) - known)
    if unknown:
        raise ValueError(f"Unknown config keys: {', '.join(unknown)}")
    return data


def load_config(
    path: Optional[str] = None, environ: Optional[Dict[str, str]] = None
) -> HarnessConfig:
    """Build a HarnessConfig from defaults, an optional YAML file and env vars"""
    environ = os.environ if environ is None else environ
    values: Dict[str, Any] = {}

    if path:
        values.update(load_yaml_config(path))

    for env_name, field_name in ENV_VARS.items():
        if environ.get(env_name):
            values[field_name] = environ[env_name]

    mint_mode = environ.get("MINT_MODE")
    if mint_mode is not None:
        values["mint_mode"] = mint_mode
        values["quick"] = mint_mode != "full"
    if "RUN_ON_FAIL" in environ:
        values["run_on_fail"] = environ["RUN_ON_FAIL"] == "1"

    return HarnessConfig(**{k: _coerce(k, v) for k, v in values.items()})
