"""
Tests for the per-target task, using an in-memory stand-in for RTRClient.
"""

import json

import pytest

from rtrbatch.errors import SessionInitError, TransportError
from rtrbatch.executor_utils.response_models import ExecutionPolicy
from rtrbatch.executor_utils.target_task import TargetTask

AID = "a1b2c3"


class FakeClient:
    def __init__(self, body=None, init_error=None, command_error=None):
        self.body = body
        self.init_error = init_error
        self.command_error = command_error
        self.init_calls = []
        self.command_calls = []

    def init_session(self, target_ids, session_timeout=None, session_timeout_duration=None):
        self.init_calls.append((target_ids, session_timeout, session_timeout_duration))
        if self.init_error:
            raise self.init_error
        return "batch-1"

    def run_command(self, session_id, base_command, command_string,
                    exec_timeout=None, exec_timeout_duration=None, target_ids=None):
        self.command_calls.append({
            "session_id": session_id,
            "base_command": base_command,
            "command_string": command_string,
            "exec_timeout": exec_timeout,
            "exec_timeout_duration": exec_timeout_duration,
            "target_ids": target_ids,
        })
        if self.command_error:
            raise self.command_error
        return self.body


def _body(resources):
    return json.dumps({"combined": {"resources": resources}}).encode()


def test_success_prints_stdout_and_uses_policy():
    client = FakeClient(body=_body({AID: {"stdout": "uptime 3 days", "stderr": ""}}))
    task = TargetTask(client, "uptime")

    outcome = task.run(AID)

    assert outcome.success
    assert outcome.stdout == "uptime 3 days"
    assert outcome.session_id == "batch-1"
    assert client.init_calls == [([AID], 30, "30s")]
    call = client.command_calls[0]
    assert call["session_id"] == "batch-1"
    assert call["base_command"] == "runscript"
    assert call["command_string"] == "runscript -Raw=```uptime```"
    assert call["exec_timeout"] == 30
    assert call["exec_timeout_duration"] == "10m"
    assert call["target_ids"] == [AID]


def test_success_output_goes_to_stdout(capsys):
    client = FakeClient(body=_body({AID: {"stdout": "hello"}}))
    TargetTask(client, "echo hello").run(AID)

    captured = capsys.readouterr()
    assert captured.out == "hello\n"
    assert captured.err == ""


def test_custom_policy_is_passed_through():
    client = FakeClient(body=_body({}))
    policy = ExecutionPolicy(
        session_timeout=60,
        session_timeout_duration="1m",
        exec_timeout=120,
        exec_timeout_duration="2m"
    )
    TargetTask(client, "ls", policy).run(AID)

    assert client.init_calls == [([AID], 60, "1m")]
    assert client.command_calls[0]["exec_timeout"] == 120
    assert client.command_calls[0]["exec_timeout_duration"] == "2m"


@pytest.mark.parametrize("client", [
    FakeClient(init_error=SessionInitError("Batch init failed", status_code=500, body="oops")),
    FakeClient(init_error=TransportError("connection reset")),
    FakeClient(command_error=TransportError("read timed out")),
])
def test_remote_failures_are_contained(client, capsys):
    outcome = TargetTask(client, "ls").run(AID)

    captured = capsys.readouterr()
    assert not outcome.success
    assert outcome.stdout is None
    assert captured.out == ""
    assert AID in captured.err


def test_init_failure_skips_command():
    client = FakeClient(init_error=SessionInitError("Batch init failed", status_code=404))
    TargetTask(client, "ls").run(AID)
    assert client.command_calls == []


def test_malformed_envelope_is_a_per_target_error(capsys):
    client = FakeClient(body=b"<html>bad gateway</html>")
    outcome = TargetTask(client, "ls").run(AID)

    captured = capsys.readouterr()
    assert not outcome.success
    assert "EnvelopeDecodeError" in captured.err
    assert AID in captured.err


def test_unexpected_exception_is_contained(capsys):
    client = FakeClient(command_error=KeyError("weird"))
    outcome = TargetTask(client, "ls").run(AID)

    captured = capsys.readouterr()
    assert not outcome.success
    assert "Unexpected error" in outcome.error
    assert AID in captured.err


def test_missing_output_is_silent(capsys):
    client = FakeClient(body=_body({"someone-else": {"stdout": "not mine"}}))
    outcome = TargetTask(client, "ls").run(AID)

    captured = capsys.readouterr()
    assert outcome.success
    assert outcome.stdout is None
    assert captured.out == ""
    assert captured.err == ""


def test_host_stderr_and_errors_are_reported(capsys):
    client = FakeClient(body=_body({AID: {
        "stdout": "partial",
        "stderr": "access denied",
        "errors": [{"code": 40003, "message": "script failed"}]
    }}))
    outcome = TargetTask(client, "ls").run(AID)

    captured = capsys.readouterr()
    assert outcome.stdout == "partial"
    assert captured.out == "partial\n"
    assert "access denied" in captured.err
    assert "script failed" in captured.err
