"""
Response models for RTR batch command execution.
"""
from typing import List, Optional
from pydantic import BaseModel


class CommandError(BaseModel):
    """Error entry reported by the remote API for one host."""
    code: Optional[int] = None
    message: Optional[str] = None


class HostCommandResult(BaseModel):
    """Per-host record inside a command result envelope."""
    aid: Optional[str] = None
    session_id: Optional[str] = None
    task_id: Optional[str] = None
    base_command: Optional[str] = None
    stdout: Optional[str] = None
    stderr: Optional[str] = None
    complete: Optional[bool] = None
    errors: Optional[List[CommandError]] = None


class ExecutionPolicy(BaseModel):
    """Server-side timeouts and command verb used for every target."""
    session_timeout: Optional[int] = 30
    session_timeout_duration: Optional[str] = "30s"
    exec_timeout: Optional[int] = 30
    exec_timeout_duration: Optional[str] = "10m"
    base_command: str = "runscript"


class TargetOutcome(BaseModel):
    """What happened to one target."""
    target_id: str
    session_id: Optional[str] = None
    stdout: Optional[str] = None
    error: Optional[str] = None

    @property
    def success(self) -> bool:
        return self.error is None
