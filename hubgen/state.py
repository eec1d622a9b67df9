"""Workflow state — the single record threaded through every stage of one task's run."""

from dataclasses import dataclass
from typing import Literal, TypedDict

TaskType = Literal["Create", "Read", "Update", "Delete", "Trigger"]
Sender = Literal["Generation", "Verification", "Review"]
ErrorKind = Literal["Auth", "RateLimit", "NotFound", "ServerFault", "Unclassified"]

# Outcome of a single Verification Loop pass.
VerificationOutcome = Literal[
    "verified",
    "abandoned-credential-error",
    "abandoned-server-error",
    "abandoned-exhausted",
]

# Outcome of a whole task run.
TaskOutcome = Literal[
    "accepted",
    "abandoned-credential-error",
    "abandoned-server-error",
    "abandoned-exhausted",
    "abandoned-cycle-bound",
]

TASK_TYPES = ("Create", "Read", "Update", "Delete", "Trigger")

# Verification outcomes that end the task without going through Review.
TERMINAL_VERIFICATION_OUTCOMES = frozenset(
    {"abandoned-credential-error", "abandoned-server-error"}
)


class WorkflowState(TypedDict):
    task: str  # Immutable after init.
    integration: str  # Immutable after init.
    task_type: TaskType  # Immutable after init.
    artifact: str | None
    verification_artifact: str | None
    resource_schema: str | None
    sender: Sender | None  # None until the first stage runs.
    reviewed: bool
    accepted: bool  # True is terminal.
    supplemental_context: str | None  # Set by a rejected review, consumed by Generation.
    attempt_feedback: str | None  # Critique carried between verification attempts.
    verification_outcome: VerificationOutcome | None
    verification_report: str | None  # Narrative handed to the Review Gate.


@dataclass(frozen=True)
class Task:
    name: str
    category: TaskType


@dataclass(frozen=True)
class ErrorClassification:
    kind: ErrorKind
    detail: str
    status_code: int | None = None


def initial_state(integration: str, task: str, task_type: TaskType) -> WorkflowState:
    """Return a fresh state for one task run."""
    return {
        "task": task,
        "integration": integration,
        "task_type": task_type,
        "artifact": None,
        "verification_artifact": None,
        "resource_schema": None,
        "sender": None,
        "reviewed": False,
        "accepted": False,
        "supplemental_context": None,
        "attempt_feedback": None,
        "verification_outcome": None,
        "verification_report": None,
    }


# --- Partial updates ---


def _immutable(field: str, current, new):
    if new != current:
        raise ValueError(f"'{field}' is immutable once set ({current!r} -> {new!r}).")
    return current


def _replace(field: str, current, new):
    return new


def _latch(field: str, current, new):
    # accepted=True can never be undone
    return bool(current) or bool(new)


FIELD_RULES = {
    "task": _immutable,
    "integration": _immutable,
    "task_type": _immutable,
    "artifact": _replace,
    "verification_artifact": _replace,
    "resource_schema": _replace,
    "sender": _replace,
    "reviewed": _replace,
    "accepted": _latch,
    "supplemental_context": _replace,
    "attempt_feedback": _replace,
    "verification_outcome": _replace,
    "verification_report": _replace,
}


def apply_update(state: WorkflowState, update: dict) -> WorkflowState:
    """Fold a stage's partial update into a copy of the state.

    Every field has exactly one rule in FIELD_RULES. Fields absent from the
    update are left untouched; a present key (even None) replaces the value
    for content fields. Unknown fields raise KeyError.
    """
    merged = dict(state)
    for field, value in update.items():
        if field not in FIELD_RULES:
            raise KeyError(f"Unknown workflow state field '{field}'.")
        merged[field] = FIELD_RULES[field](field, state.get(field), value)

    if merged.get("accepted") and merged.get("sender") != "Review":
        raise ValueError("Only the Review stage may accept a task.")
    return merged
