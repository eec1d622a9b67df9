"""Review Gate — decides whether the script and its test are ready for the hub.

The decision rule is the marker substring alone: VALIDATED publishes the
artifacts and accepts the task; NEEDS_WORK searches for more context and
clears the produced content so the next Generation pass starts fresh.
"""

import logging

from hubgen.state import WorkflowState

logger = logging.getLogger(__name__)

VALIDATED = "VALIDATED"
NEEDS_WORK = "NEEDS_WORK"

SYSTEM_PROMPT = """\
You are a code reviewer.
Your job is to analyze code, tests, and test results.
You do not write code.
You decide if the code meets the requirements and is ready for submission, or if it needs more work.
"""

USER_PROMPT = """\
Review the following for integration: {integration}, task: {task}

Code:
{artifact}

Tests:
{verification_artifact}

Test Results:
{report}

Decide if this is ready to submit or needs more work.
The code should be functional and the test should validate its functionality.
Don't bother with comments, best developer practices and documentation.
Just make sure it does what it says on the tin.
Make sure the test is executable.
Respond with VALIDATED if it's ready to submit, or NEEDS_WORK if it needs improvements.
"""


class ReviewGate:
    def __init__(self, llm, search, hub):
        self.llm = llm
        self.search = search
        self.hub = hub

    def __call__(self, state: WorkflowState) -> dict:
        """Review node for the workflow graph."""
        logger.info("Review called for %s/%s", state["integration"], state["task"])
        update = {"reviewed": True, "sender": "Review"}

        user_prompt = USER_PROMPT.format(
            integration=state["integration"],
            task=state["task"],
            artifact=state.get("artifact") or "",
            verification_artifact=state.get("verification_artifact") or "",
            report=state.get("verification_report") or "No verification was run.",
        )
        response = self.llm.invoke(SYSTEM_PROMPT, user_prompt)

        if VALIDATED in response:
            logger.info("Review verdict: %s", VALIDATED)
            self.hub.submit(
                state["integration"],
                state["task"],
                state.get("artifact") or "",
                state.get("verification_artifact") or "",
                state.get("resource_schema"),
            )
            update["accepted"] = True
        elif NEEDS_WORK in response:
            logger.info("Review verdict: %s", NEEDS_WORK)
            update["supplemental_context"] = self.search.search(
                f"{state['integration']} {state['task']} API endpoints"
            )
            update["artifact"] = None
            update["verification_artifact"] = None
            update["resource_schema"] = None
        else:
            logger.warning("Review response carried no verdict marker; treating as not accepted.")

        return update
