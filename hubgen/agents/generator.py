"""Generation stage — drafts the integration script for a task.

Reads task/integration/task_type plus any supplemental context left by a
rejected review, asks the model for a TypeScript script and an optional JSON
schema of the integration's auth resource type, and stages the script for the
Verification Loop's executor.
"""

import logging

from hubgen.state import WorkflowState
from hubgen.utils.examples import example_for
from hubgen.utils.parsing import extract_code_block

logger = logging.getLogger(__name__)

ARTIFACT_PATH = "generated-code.ts"

SYSTEM_PROMPT = """\
You are tasked with creating a TypeScript script that can be either an action or a trigger.
For actions, create a single main function exported as "export async function main(...)".
For triggers, create a single main function that polls for new events and remembers what it \
has already seen with getState/setState.

Take as parameters any information you need.
Return the result of the action or trigger.
Use fetch for HTTP requests and do not import any external libraries.
Define a type which contains the authentication information and only that.
The name of the type should be the capitalized name of the integration.
If no authentication is needed, don't define a type.
Return the type after the code encoded as a JSON schema.
The parameters of the type should be camelCase.
Handle errors appropriately: throw on any non-successful response.

Here's how interactions should look:
user: [sample_question]
assistant: ```typescript
[code]
```

```json
[schema of resource type]
```

Ensure the returned code adheres to this format.
"""


def _build_user_prompt(state: WorkflowState, reference: str, existing_schema: str | None) -> str:
    """Construct the user prompt from state and reference material."""
    action = "implements a trigger for" if state["task_type"] == "Trigger" else "performs the action of"
    parts = [
        f"Generate a standalone script that {action} {state['task']} in {state['integration']}.",
        f"Integration name: {state['integration']}.",
        f"The script type is: {state['task_type']}",
        f"Your code should look like this:\n{example_for(state['task_type'])}",
        f"You can find the necessary endpoints/logic in here:\n{reference}",
    ]
    if existing_schema:
        parts.append(
            f"Existing schema for this integration:\n{existing_schema}\n"
            "Please respect the resource type as specified in this JSON schema when generating the code."
        )
    if state.get("supplemental_context"):
        parts.append(f"Additional info obtained from search:\n{state['supplemental_context']}")
    return "\n\n".join(parts)


class GenerationStage:
    def __init__(self, llm, repository, store, hub):
        self.llm = llm
        self.repository = repository
        self.store = store
        self.hub = hub

    def __call__(self, state: WorkflowState) -> dict:
        """Generation node for the workflow graph.

        Returns the new artifact and resource schema. An answer without a
        typescript block yields an empty artifact rather than an error.
        """
        logger.info("Generation called for %s/%s", state["integration"], state["task"])

        reference = self.repository.fetch_reference_material(state["integration"], state["task"])
        existing_schema = self.hub.integration_schema(state["integration"])
        user_prompt = _build_user_prompt(state, reference, existing_schema)

        response = self.llm.invoke(SYSTEM_PROMPT, user_prompt)
        artifact = extract_code_block(response)
        schema = extract_code_block(response, languages=("json",))
        if not artifact:
            logger.warning("Generation response had no typescript block; artifact is empty.")

        path = self.store.write(ARTIFACT_PATH, artifact)
        logger.info("Generated code has been written to %s", path)

        return {
            "artifact": artifact,
            "resource_schema": schema or None,
            "supplemental_context": None,
            "sender": "Generation",
        }
