"""Canned model answers and execution results shared by the tests."""

from hubgen.services.executor import ExecutionResult
from hubgen.state import ErrorClassification


def final_judgment(code: str = "console.log('ok');") -> str:
    """A self-sufficiency judgment that accepts the candidate."""
    return f"Everything is in place.\n```typescript\n{code}\n```\nFINAL"


def candidate(code: str = "console.log('ok');") -> str:
    """A test-generation answer carrying one candidate."""
    return f"```typescript\n{code}\n```"


def ok_run(stdout: str = "ok") -> ExecutionResult:
    return ExecutionResult(stdout=stdout, stderr="", exit_code=0)


def failed_run(stderr: str = "Error: request failed") -> ExecutionResult:
    return ExecutionResult(stdout="", stderr=stderr, exit_code=1)


def classified(kind: str, detail: str = "boom", status_code=None) -> ErrorClassification:
    return ErrorClassification(kind=kind, detail=detail, status_code=status_code)
