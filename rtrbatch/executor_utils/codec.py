"""
Wire codec for the raw runscript command and the batch command result envelope.

Result envelopes look like::

    {"combined": {"resources": {"<aid>": {"stdout": "...", "stderr": "", ...}}}}

Lookups never raise for missing or mis-shaped fields: a miss is ``None``.
"""
import json
from typing import Any, Dict, Optional, Sequence, Union

from pydantic import ValidationError

from ..errors import EnvelopeDecodeError
from .response_models import HostCommandResult

RAW_SCRIPT_DELIMITER = "```"
RUNSCRIPT_RAW_PREFIX = "runscript -Raw="


def build_runscript_command(script: str) -> str:
    """Wrap a script body in a raw runscript invocation.

    The delimiter is not escaped: a script containing ``` cannot be sent
    intact.
    """
    return f"{RUNSCRIPT_RAW_PREFIX}{RAW_SCRIPT_DELIMITER}{script}{RAW_SCRIPT_DELIMITER}"


def parse_runscript_command(command: str) -> Optional[str]:
    """Recover the script body from a raw runscript invocation."""
    prefix = RUNSCRIPT_RAW_PREFIX + RAW_SCRIPT_DELIMITER
    if not command.startswith(prefix) or not command.endswith(RAW_SCRIPT_DELIMITER):
        return None
    if len(command) < len(prefix) + len(RAW_SCRIPT_DELIMITER):
        return None
    return command[len(prefix):len(command) - len(RAW_SCRIPT_DELIMITER)]


def decode_envelope(raw: Union[bytes, str]) -> Dict[str, Any]:
    """
    Decode a command result body into a JSON object.

    Strict JSON is tried first. Only when that fails are single quotes
    replaced with double quotes and decoding retried, since some responses
    come back in a Python-repr style quoting. The substitution corrupts any
    value that legitimately contains an apostrophe, so it is never applied
    to a body that already decodes.

    Raises:
        EnvelopeDecodeError: If the body is not a JSON object either way
    """
    text = raw.decode("utf-8", errors="replace") if isinstance(raw, bytes) else raw

    try:
        data = json.loads(text)
    except json.JSONDecodeError:
        try:
            data = json.loads(text.replace("'", '"'))
        except json.JSONDecodeError as e:
            snippet = text if len(text) <= 200 else f"{text[:197]}..."
            raise EnvelopeDecodeError(f"Undecodable result envelope: {snippet!r}") from e

    if not isinstance(data, dict):
        raise EnvelopeDecodeError(
            f"Result envelope is a {type(data).__name__}, expected an object"
        )
    return data


def walk(document: Any, path: Sequence[str]) -> Optional[Any]:
    """Follow ``path`` through nested objects, or return None on the first miss."""
    node = document
    for key in path:
        if not isinstance(node, dict) or key not in node:
            return None
        node = node[key]
    return node


def _host_path(target_id: str):
    return ("combined", "resources", target_id)


def extract_stdout(envelope: Any, target_id: str) -> Optional[str]:
    """Return combined.resources.<target_id>.stdout, or None if absent."""
    stdout = walk(envelope, _host_path(target_id) + ("stdout",))
    return stdout if isinstance(stdout, str) else None


def extract_host_result(envelope: Any, target_id: str) -> Optional[HostCommandResult]:
    """Return the whole per-host record, or None if absent or mis-shaped."""
    record = walk(envelope, _host_path(target_id))
    if not isinstance(record, dict):
        return None
    try:
        return HostCommandResult(**record)
    except ValidationError:
        return None
