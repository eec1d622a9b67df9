"""Process executor — runs a staged script and captures both output streams."""

import logging
import subprocess
from dataclasses import dataclass
from pathlib import Path

logger = logging.getLogger(__name__)

OUTPUT_LIMIT = 8000


@dataclass(frozen=True)
class ExecutionResult:
    stdout: str
    stderr: str
    exit_code: int | None  # None when the process was killed on timeout.


class SubprocessExecutor:
    """Runs `runner_command + [path]` in `cwd`.

    Isolation is the caller's concern; this class only launches and captures.
    A non-zero exit never raises. A timeout is reported on the error stream.
    """

    def __init__(self, runner_command: list[str], cwd: str | Path = ".", timeout: float = 300):
        self.runner_command = list(runner_command)
        self.cwd = Path(cwd)
        self.timeout = timeout

    def run(self, artifact_path: str | Path) -> ExecutionResult:
        cmd = self.runner_command + [str(artifact_path)]
        logger.info("Executing: %s (timeout=%ss)", " ".join(cmd), self.timeout)
        try:
            completed = subprocess.run(
                cmd,
                cwd=str(self.cwd),
                capture_output=True,
                text=True,
                timeout=self.timeout,
            )
        except subprocess.TimeoutExpired as exc:
            return ExecutionResult(
                stdout=_decode(exc.stdout)[:OUTPUT_LIMIT],
                stderr=f"Execution timed out after {self.timeout}s.\n{_decode(exc.stderr)}"[:OUTPUT_LIMIT],
                exit_code=None,
            )
        return ExecutionResult(
            stdout=completed.stdout[:OUTPUT_LIMIT],
            stderr=completed.stderr[:OUTPUT_LIMIT],
            exit_code=completed.returncode,
        )


def _decode(stream) -> str:
    if stream is None:
        return ""
    if isinstance(stream, bytes):
        return stream.decode("utf-8", errors="replace")
    return stream
