"""
Mint-style result logging

When the harness runs inside Mint (MINT_MODE is set) every test case emits
one JSON line:

    {"name": "streamcheck", "function": "putObject()", "args": "[single upload]",
     "duration": "0.042 s", "status": "PASS"}

Outside Mint only failures are reported, as a short "<FAILED> ..." line.
"""

import json
import logging
import time
import traceback
from dataclasses import asdict, dataclass
from typing import Optional

import click
from botocore.exceptions import ClientError

PASS = "PASS"
FAILED = "FAIL"
IGNORED = "NA"

logger = logging.getLogger(__name__)


@dataclass
class MintLogEntry:
    """One test case result"""

    function: str
    args: Optional[str] = None
    duration_ms: int = 0
    status: Optional[str] = None
    alert: Optional[str] = None
    message: Optional[str] = None
    error: Optional[str] = None
    name: str = "streamcheck"

    @property
    def duration(self) -> Optional[str]:
        if self.duration_ms > 0:
            return f"{self.duration_ms / 1000.0} s"
        return None

    def to_json(self) -> str:
        data = asdict(self)
        data.pop("duration_ms")
        data["duration"] = self.duration
        ordered = {
            key: data[key]
            for key in (
                "name",
                "function",
                "args",
                "duration",
                "status",
                "alert",
                "message",
                "error",
            )
            if data[key] is not None
        }
        return json.dumps(ordered, ensure_ascii=False)


def format_exception(e: BaseException) -> str:
    """Flatten a traceback onto a single line for the JSON error field"""
    text = "".join(traceback.format_exception(type(e), e, e.__traceback__))
    return text.replace("\n", " ").replace("\t", "")


def elapsed_ms(start_time: float) -> int:
    return int((time.monotonic() - start_time) * 1000)


class MintLogger:
    """Reports test case results for one harness run"""

    def __init__(self, mint_env: bool = False, run_on_fail: bool = False, out=None):
        self.mint_env = mint_env
        self.run_on_fail = run_on_fail
        self._out = out
        self.failures = 0

    def _emit(self, entry: MintLogEntry):
        line = entry.to_json()
        click.echo(line, file=self._out)

    def success(self, function: str, args: Optional[str], start_time: float):
        if self.mint_env:
            self._emit(MintLogEntry(function, args, elapsed_ms(start_time), PASS))

    def ignored(self, function: str, args: Optional[str], start_time: float):
        if self.mint_env:
            self._emit(MintLogEntry(function, args, elapsed_ms(start_time), IGNORED))

    def failed(
        self,
        function: str,
        args: Optional[str],
        start_time: float,
        message: Optional[str],
        error: Optional[str],
    ):
        self.failures += 1
        if self.mint_env:
            self._emit(
                MintLogEntry(
                    function,
                    args,
                    elapsed_ms(start_time),
                    FAILED,
                    message=message,
                    error=error,
                )
            )
        else:
            click.echo(f"<FAILED> {function} {args or ''}", file=self._out)

    def handle_exception(
        self, function: str, args: Optional[str], start_time: float, e: Exception
    ):
        """
        Record a failed test case and re-raise

        NotImplemented S3 errors are reported as NA instead. In mint mode with
        RUN_ON_FAIL=1 the failure is recorded and the run continues.
        """
        if isinstance(e, ClientError):
            if e.response.get("Error", {}).get("Code") == "NotImplemented":
                self.ignored(function, args, start_time)
                return

        logger.error("%s %s failed: %s", function, args or "", e)
        self.failed(function, args, start_time, None, format_exception(e))
        if self.mint_env and self.run_on_fail:
            return
        raise e
