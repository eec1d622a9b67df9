"""Verification Loop — produces a self-sufficient, executable test for the current artifact.

Each attempt runs up to four steps:

1. generate a candidate test (one model call, seeded with the previous attempt's feedback),
2. ask a second, independent model call to judge self-sufficiency
   (terminal marker FINAL / NEEDS WORK, FINAL must carry the final code block),
3. stage and execute the judged candidate,
4. on error-stream output, classify the error and apply its recovery action.

The loop state lives in an explicit object; every attempt ends in exactly one
AttemptResult kind and `_transition` handles each kind once.
"""

import logging
import time
from dataclasses import dataclass
from typing import Callable, Literal

from hubgen.services.executor import ExecutionResult
from hubgen.state import ErrorClassification, VerificationOutcome, WorkflowState
from hubgen.utils.parsing import extract_code_block, last_marker

logger = logging.getLogger(__name__)

TEST_PATH = "generated-tests.ts"
FINAL = "FINAL"
NEEDS_WORK = "NEEDS WORK"

SYSTEM_PROMPT = """\
You are a test generator for TypeScript code running on the Bun runtime.
Your task is to create a single, self-sufficient script that tests the given input code.

Key requirements:
1. The test must verify that the code accomplishes the specified task.
2. Use only the available environment variables and dependencies listed below.
3. Ensure all parameters are valid and the code is runnable.
4. The test should not contain any placeholder variables or mock values that have to be replaced manually.
5. If resources are needed, use the API to create them within the test, and remove them afterwards.
6. The test must be runnable without human intervention.
7. Any failure must be written to the error stream (throw or console.error); a successful run writes nothing there.

Available environment variables:
{resources}

Available dependencies:
{dependencies}

The code to be tested is in '{artifact_path}' in the current working directory.
"""

USER_PROMPT = """\
Generate a test for a script that does {task} in {integration}.

The script type is: {task_type}.

Here is the code we will be testing:
{artifact}

You can find the necessary endpoints/logic in here:
{reference}

Don't use any external libraries that you don't really need.
The libraries you have are already listed in the system prompt for you.
Make sure the code is runnable.
Don't use placeholder variables: no one will replace them.
If you need to find some value, make sure the code retrieves it using the API.
Make sure that all the key requirements are met.
Respond with the test in a single typescript code block.
"""

FEEDBACK_PROMPT = """
Previous attempt was not self-sufficient or failed to execute.
Please address the following feedback and ensure the test code is completely self-sufficient,
without any placeholders or mock values that require human intervention:
{feedback}
"""

JUDGE_PROMPT = """
Is the following test code self-sufficient?
Is it free from variables that have to be replaced by a human so that the tests can be run?
Does it have all the resources it needs (it acquired them, created them or found the necessary \
credentials in these env variables)?
You only have these variables at your disposal:
{resources}

Does it remove the resources it created?
If you said YES to all these questions, say FINAL and provide the final code in a typescript code block.
If not, say NEEDS WORK and explain in detail what has to be changed so that the code becomes self-sufficient.

Test:
{candidate}

- END OF TEST -

Your response must end with either FINAL or NEEDS WORK.
"""

MISSING_CODE_FEEDBACK = (
    "The test was judged self-sufficient but no final typescript code block was provided. "
    "Return the complete test in a single typescript code block."
)

NOT_FOUND_FEEDBACK = """\
The test run failed with a 404 Not Found: {detail}
The endpoint or resource path used is likely wrong or no longer exists. \
Search the reference material for alternative endpoints or paths that provide the same \
operation and use one that exists."""

RATE_LIMIT_FEEDBACK = """\
The previous run was rate limited by the API: {detail}
The test itself may be correct; keep it unless something else needs fixing."""

EXECUTION_FEEDBACK = """\
Test execution failed.
Stdout: {stdout}
Stderr: {stderr}"""


@dataclass(frozen=True)
class AttemptResult:
    kind: Literal["needs_work", "missing_code", "succeeded", "failed"]
    candidate: str
    feedback: str | None = None
    execution: ExecutionResult | None = None
    classification: ErrorClassification | None = None


@dataclass
class LoopState:
    attempt: int = 0
    feedback: str | None = None
    last_classification: ErrorClassification | None = None
    candidate: str = ""
    self_sufficient: bool = False
    execution_succeeded: bool = False
    outcome: VerificationOutcome | None = None
    last_execution: ExecutionResult | None = None


class VerificationLoop:
    """One pass of the bounded generate → judge → execute → recover loop for one task."""

    def __init__(
        self,
        state: WorkflowState,
        *,
        llm,
        repository,
        store,
        executor,
        classifier,
        resource_names: list[str],
        dependencies: dict[str, str],
        max_attempts: int = 5,
        backoff_seconds: float = 60,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.state = state
        self.llm = llm
        self.repository = repository
        self.store = store
        self.executor = executor
        self.classifier = classifier
        self.resource_names = resource_names
        self.dependencies = dependencies
        self.max_attempts = max_attempts
        self.backoff_seconds = backoff_seconds
        self.sleep = sleep
        self.loop = LoopState()

    def run(self) -> LoopState:
        while self.loop.attempt < self.max_attempts and self.loop.outcome is None:
            self.loop.attempt += 1
            logger.info("Test generation attempt %d/%d", self.loop.attempt, self.max_attempts)
            self._transition(self._attempt())

        if self.loop.outcome is None:
            self.loop.outcome = "abandoned-exhausted"
            self.loop.self_sufficient = False
            logger.info("Verification exhausted after %d attempts.", self.loop.attempt)
        return self.loop

    # --- One attempt ---

    def _attempt(self) -> AttemptResult:
        reference = self.repository.fetch_reference_material(
            self.state["integration"], self.state["task"]
        )
        system_prompt = SYSTEM_PROMPT.format(
            resources=", ".join(self.resource_names) or "(none)",
            dependencies=", ".join(f"{name}@{version}" for name, version in self.dependencies.items()) or "(none)",
            artifact_path="generated-code.ts",
        )
        base_prompt = USER_PROMPT.format(
            task=self.state["task"],
            integration=self.state["integration"],
            task_type=self.state["task_type"],
            artifact=self.state.get("artifact") or "",
            reference=reference,
        )

        generation_prompt = base_prompt
        if self.loop.attempt > 1 and self.loop.feedback:
            generation_prompt += FEEDBACK_PROMPT.format(feedback=self.loop.feedback)
        candidate = extract_code_block(self.llm.invoke(system_prompt, generation_prompt))

        judgment = self.llm.invoke(
            system_prompt,
            base_prompt + JUDGE_PROMPT.format(
                resources=", ".join(self.resource_names) or "(none)",
                candidate=candidate,
            ),
        )
        if last_marker(judgment, (FINAL, NEEDS_WORK)) != FINAL:
            feedback = judgment.replace(NEEDS_WORK, "").strip()
            return AttemptResult(kind="needs_work", candidate=candidate, feedback=feedback)

        final_code = extract_code_block(judgment)
        if not final_code:
            logger.warning("Judgment said FINAL without a typescript code block.")
            return AttemptResult(kind="missing_code", candidate=candidate)

        path = self.store.write(TEST_PATH, final_code)
        logger.info("Generated tests have been written to %s", path)
        execution = self.executor.run(TEST_PATH)
        if not execution.stderr.strip():
            return AttemptResult(kind="succeeded", candidate=final_code, execution=execution)

        classification = self.classifier.classify(
            execution.stderr, self.state["integration"], self.state["task"]
        )
        return AttemptResult(
            kind="failed",
            candidate=final_code,
            execution=execution,
            classification=classification,
        )

    # --- Transitions ---

    def _transition(self, result: AttemptResult) -> None:
        loop = self.loop
        loop.candidate = result.candidate

        if result.kind == "needs_work":
            logger.info("Test code not self-sufficient.")
            loop.self_sufficient = False
            loop.feedback = result.feedback
        elif result.kind == "missing_code":
            loop.self_sufficient = False
            loop.feedback = MISSING_CODE_FEEDBACK
        elif result.kind == "succeeded":
            loop.self_sufficient = True
            loop.execution_succeeded = True
            loop.last_execution = result.execution
            loop.outcome = "verified"
        elif result.kind == "failed":
            loop.self_sufficient = True
            loop.execution_succeeded = False
            loop.last_execution = result.execution
            loop.last_classification = result.classification
            self._recover(result.classification, result.execution)
        else:
            raise ValueError(f"Unknown attempt result kind '{result.kind}'.")

    def _recover(self, classification: ErrorClassification, execution: ExecutionResult) -> None:
        loop = self.loop
        kind = classification.kind
        logger.info("Execution failed (%s): %s", kind, classification.detail)

        if kind == "Auth":
            loop.outcome = "abandoned-credential-error"
        elif kind == "ServerFault":
            loop.outcome = "abandoned-server-error"
        elif kind == "RateLimit":
            loop.feedback = RATE_LIMIT_FEEDBACK.format(detail=classification.detail)
            if loop.attempt < self.max_attempts:
                logger.info("Rate limited; backing off for %ss.", self.backoff_seconds)
                self.sleep(self.backoff_seconds)
        elif kind == "NotFound":
            loop.feedback = NOT_FOUND_FEEDBACK.format(detail=classification.detail)
        else:
            loop.feedback = EXECUTION_FEEDBACK.format(stdout=execution.stdout, stderr=execution.stderr)


def report_for(loop: LoopState) -> str:
    """Narrative of a finished loop, handed to the Review Gate."""
    if loop.outcome == "verified":
        stdout = loop.last_execution.stdout if loop.last_execution else ""
        return (
            "Self-sufficient tests generated and executed successfully without error output "
            f"on attempt {loop.attempt}.\nStdout: {stdout}"
        )
    if loop.outcome == "abandoned-credential-error":
        return f"Verification abandoned: credential error. {loop.last_classification.detail}"
    if loop.outcome == "abandoned-server-error":
        return f"Verification abandoned: server error. {loop.last_classification.detail}"
    return (
        "Could not generate self-sufficient and executable tests without error output "
        f"after {loop.attempt} attempts.\nLast feedback: {loop.feedback or ''}"
    )


class VerificationStage:
    def __init__(
        self,
        llm,
        repository,
        store,
        executor,
        classifier,
        resource_names: list[str],
        dependencies: dict[str, str],
        max_attempts: int = 5,
        backoff_seconds: float = 60,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.llm = llm
        self.repository = repository
        self.store = store
        self.executor = executor
        self.classifier = classifier
        self.resource_names = resource_names
        self.dependencies = dependencies
        self.max_attempts = max_attempts
        self.backoff_seconds = backoff_seconds
        self.sleep = sleep

    def __call__(self, state: WorkflowState) -> dict:
        """Verification node for the workflow graph."""
        logger.info("Verification called for %s/%s", state["integration"], state["task"])
        loop = VerificationLoop(
            state,
            llm=self.llm,
            repository=self.repository,
            store=self.store,
            executor=self.executor,
            classifier=self.classifier,
            resource_names=self.resource_names,
            dependencies=self.dependencies,
            max_attempts=self.max_attempts,
            backoff_seconds=self.backoff_seconds,
            sleep=self.sleep,
        ).run()

        return {
            "verification_artifact": loop.candidate,
            "verification_outcome": loop.outcome,
            "verification_report": report_for(loop),
            "attempt_feedback": loop.feedback,
            "sender": "Verification",
        }
