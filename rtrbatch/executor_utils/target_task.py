import sys
from typing import Optional

from ..api import RTRClient
from ..errors import RTRError
from .codec import (
    build_runscript_command,
    decode_envelope,
    extract_host_result,
    extract_stdout,
)
from .response_models import ExecutionPolicy, TargetOutcome


class TargetTask:
    """Runs one script on one target through its own batch session."""

    def __init__(
        self,
        client: RTRClient,
        script: str,
        policy: Optional[ExecutionPolicy] = None,
        verbose: bool = False
    ):
        self.client = client
        self.script = script
        self.policy = policy or ExecutionPolicy()
        self.verbose = verbose
        self.command_string = build_runscript_command(script)

    def _log(self, target_id: str, message: str):
        if self.verbose:
            print(f"[TargetTask] [{target_id}] {message}", file=sys.stderr)

    def _error(self, target_id: str, message: str):
        print(f"[TargetTask] [{target_id}] {message}", file=sys.stderr)

    def run(self, target_id: str) -> TargetOutcome:
        """
        Initialize a session for the target, run the script and print its stdout.

        Failures are reported on stderr and returned as a failed outcome;
        nothing is raised.

        Args:
            target_id: Agent ID of the target

        Returns:
            TargetOutcome with the captured stdout or the error
        """
        try:
            return self._run(target_id)
        except RTRError as e:
            self._error(target_id, f"✗ {type(e).__name__}: {e}")
            return TargetOutcome(target_id=target_id, error=str(e))
        except Exception as e:
            self._error(target_id, f"✗ Unexpected error: {type(e).__name__}: {e}")
            return TargetOutcome(
                target_id=target_id,
                error=f"Unexpected error: {type(e).__name__}: {e}"
            )

    def _run(self, target_id: str) -> TargetOutcome:
        targets = [target_id]
        policy = self.policy

        session_id = self.client.init_session(
            targets,
            session_timeout=policy.session_timeout,
            session_timeout_duration=policy.session_timeout_duration
        )
        self._log(target_id, f"Session {session_id} initialized")

        raw = self.client.run_command(
            session_id,
            policy.base_command,
            self.command_string,
            exec_timeout=policy.exec_timeout,
            exec_timeout_duration=policy.exec_timeout_duration,
            target_ids=targets
        )
        self._log(target_id, f"Command returned {len(raw)} bytes")

        envelope = decode_envelope(raw)

        host_result = extract_host_result(envelope, target_id)
        if host_result is not None:
            if host_result.stderr:
                self._error(target_id, f"stderr: {host_result.stderr}")
            for err in host_result.errors or []:
                self._error(target_id, f"error {err.code}: {err.message}")

        stdout = extract_stdout(envelope, target_id)
        if stdout is None:
            self._log(target_id, "No stdout for this target in the envelope")
        else:
            print(stdout, flush=True)

        return TargetOutcome(target_id=target_id, session_id=session_id, stdout=stdout)
