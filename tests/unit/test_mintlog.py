"""
Mint result logging tests
"""

import io
import json
import logging
import time

import pytest
from botocore.exceptions import ClientError

from streamcheck.mintlog import FAILED, IGNORED, PASS, MintLogEntry, MintLogger


def client_error(code):
    return ClientError({"Error": {"Code": code, "Message": code}}, "PutObject")


def lines(out):
    return [json.loads(line) for line in out.getvalue().splitlines()]


def test_entry_json_drops_empty_fields():
    entry = MintLogEntry("putObject()", "[single upload]", 1500, PASS)
    assert json.loads(entry.to_json()) == {
        "name": "streamcheck",
        "function": "putObject()",
        "args": "[single upload]",
        "duration": "1.5 s",
        "status": "PASS",
    }


def test_entry_zero_duration_omitted():
    entry = MintLogEntry("getObject()", status=IGNORED)
    data = json.loads(entry.to_json())
    assert "duration" not in data
    assert "args" not in data


def test_success_only_logged_in_mint_mode():
    out = io.StringIO()
    MintLogger(mint_env=False, out=out).success("putObject()", "[x]", time.monotonic())
    assert out.getvalue() == ""

    out = io.StringIO()
    MintLogger(mint_env=True, out=out).success("putObject()", "[x]", time.monotonic())
    assert lines(out)[0]["status"] == PASS


def test_failure_outside_mint_is_short_line():
    out = io.StringIO()
    mint = MintLogger(mint_env=False, out=out)
    mint.failed("getObject()", "[offset]", time.monotonic(), None, "boom")
    assert out.getvalue().strip() == "<FAILED> getObject() [offset]"
    assert mint.failures == 1


def test_handle_exception_not_implemented_is_ignored():
    out = io.StringIO()
    mint = MintLogger(mint_env=True, out=out)
    mint.handle_exception(
        "putObject()", "[SSE-KMS]", time.monotonic(), client_error("NotImplemented")
    )
    assert lines(out)[0]["status"] == IGNORED
    assert mint.failures == 0


def test_handle_exception_reraises():
    out = io.StringIO()
    mint = MintLogger(mint_env=True, out=out)
    error = client_error("AccessDenied")
    with pytest.raises(ClientError):
        mint.handle_exception("putObject()", "[x]", time.monotonic(), error)

    entry = lines(out)[0]
    assert entry["status"] == FAILED
    assert "AccessDenied" in entry["error"]
    assert "\n" not in entry["error"]
    assert mint.failures == 1


def test_handle_exception_run_on_fail_continues():
    out = io.StringIO()
    mint = MintLogger(mint_env=True, run_on_fail=True, out=out)
    mint.handle_exception("putObject()", "[x]", time.monotonic(), RuntimeError("x"))
    assert lines(out)[0]["status"] == FAILED
    assert mint.failures == 1


def test_result_line_written_once(caplog):
    out = io.StringIO()
    mint = MintLogger(mint_env=True, out=out)
    with caplog.at_level(logging.DEBUG, logger="streamcheck"):
        mint.success("putObject()", "[single upload]", time.monotonic())
    assert len(out.getvalue().splitlines()) == 1
    # the JSON line goes to the result stream only, not to the log as well
    assert caplog.records == []
