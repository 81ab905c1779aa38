"""Shared kubectl execution helpers."""

import json
import shlex
import subprocess
from typing import Any, cast


class KubectlError(RuntimeError):
    """Raised when kubectl command execution fails."""

    def __init__(self, message: str, *, stderr: str = "") -> None:
        super().__init__(message)
        self.stderr = stderr

    @property
    def is_not_found(self) -> bool:
        """Return whether the API server reported a missing object."""
        return "(NotFound)" in self.stderr


def _run_kubectl(
    args: list[str], *, append_json_output: bool, timeout: float | None
) -> subprocess.CompletedProcess[str]:
    command = ["kubectl", *args]
    if append_json_output:
        command.extend(["-o", "json"])
    try:
        return subprocess.run(
            command,
            capture_output=True,
            text=True,
            check=True,
            timeout=timeout,
        )
    except subprocess.CalledProcessError as exc:
        stderr = exc.stderr.strip() if exc.stderr else str(exc)
        raise KubectlError(f"kubectl command failed: {stderr}", stderr=stderr) from exc
    except subprocess.TimeoutExpired as exc:
        raise KubectlError(f"kubectl command timed out after {timeout}s") from exc
    except FileNotFoundError as exc:
        raise KubectlError("kubectl executable not found on PATH") from exc


def kubectl_json(
    command: str | list[str],
    *,
    append_json_output: bool = True,
    timeout: float | None = None,
) -> dict[str, Any]:
    """Execute kubectl command and parse JSON output."""
    args = shlex.split(command) if isinstance(command, str) else list(command)
    result = _run_kubectl(args, append_json_output=append_json_output, timeout=timeout)
    try:
        return cast(dict[str, Any], json.loads(result.stdout) if result.stdout else {})
    except json.JSONDecodeError as exc:
        raise KubectlError(f"kubectl returned invalid JSON: {exc}") from exc
