"""Supervisor — classifies an integration's tasks and walks them one at a time.

Tasks run strictly in order: a later task may reuse the resource schema an
earlier one published to the hub.

Required classification output schema:
```json
[{"name": "string", "type": "Create | Read | Update | Delete | Trigger"}]
```
"""

import json
import logging
from dataclasses import dataclass, field
from typing import Callable

from hubgen.state import TASK_TYPES, Task, TaskOutcome, TaskType
from hubgen.utils.parsing import extract_code_block, strip_fences

logger = logging.getLogger(__name__)

FALLBACK_CATEGORY: TaskType = "Read"

SYSTEM_PROMPT = """\
You are a supervisor agent coordinating the code generation process.
Your task is to classify scripts into CRUD categories and identify triggers.
Triggers are scripts that respond to external events rather than being explicitly called.
"""

USER_PROMPT = """\
Classify the following scripts into CRUD categories or as triggers:
{names}

Respond with a JSON array of objects, each containing 'name' and 'type' properties.
The 'type' should be one of: 'Create', 'Read', 'Update', 'Delete', or 'Trigger'.

Consider a script as a trigger if its name suggests it responds to external events,
such as 'on_new_email', 'when_file_uploaded', 'webhook_handler', etc.

Ensure your response is valid JSON and is wrapped in triple backticks like this:
```json
[{{"name": "example", "type": "Read"}}]
```
"""


def _parse_classification(response: str) -> dict[str, TaskType]:
    """Return name → category from the model response, raising ValueError if malformed."""
    body = extract_code_block(response, languages=("json",)) or strip_fences(response)
    if not body.strip():
        raise ValueError("Empty JSON response.")
    data = json.loads(body)
    if not isinstance(data, list) or not data:
        raise ValueError("Invalid or empty array in JSON response.")

    categories: dict[str, TaskType] = {}
    for i, entry in enumerate(data):
        if not isinstance(entry, dict) or not isinstance(entry.get("name"), str):
            raise ValueError(f"Entry {i} missing a string 'name'.")
        category = entry.get("type")
        if category not in TASK_TYPES:
            logger.warning(
                "Task %r has invalid type %r; using %s.", entry["name"], category, FALLBACK_CATEGORY
            )
            category = FALLBACK_CATEGORY
        categories[entry["name"]] = category
    return categories


def classify_tasks(llm, names: list[str]) -> list[Task]:
    """Classify task names into categories, preserving the given order.

    Malformed or empty output classifies every task as Read. Names the model
    left out are also Read; names it invented are ignored.
    """
    if not names:
        return []
    response = llm.invoke(SYSTEM_PROMPT, USER_PROMPT.format(names=", ".join(names)))
    try:
        categories = _parse_classification(response)
    except (json.JSONDecodeError, ValueError) as exc:
        logger.warning("Error parsing classified tasks (%s); classifying all as %s.", exc, FALLBACK_CATEGORY)
        categories = {}
    return [Task(name=name, category=categories.get(name, FALLBACK_CATEGORY)) for name in names]


@dataclass
class WorklistCursor:
    tasks: list[Task]
    position: int = 0

    def done(self) -> bool:
        return self.position == len(self.tasks)

    def current(self) -> Task:
        return self.tasks[self.position]

    def advance(self) -> None:
        if self.done():
            raise IndexError("Worklist already exhausted.")
        self.position += 1


@dataclass
class TaskReport:
    name: str
    category: TaskType
    outcome: TaskOutcome | None = None  # None when skipped.
    skipped: bool = False
    transitions: int = 0


@dataclass
class Supervisor:
    """Drives the workflow across an integration's whole worklist.

    `run_task(integration, task)` runs one task to completion and returns a
    TaskResult; it is the only way the Supervisor touches the workflow.
    """

    llm: object
    repository: object
    hub: object
    run_task: Callable
    skip_tasks: set[str] = field(default_factory=set)

    def process(self, integration: str) -> list[TaskReport]:
        logger.info("Initializing Supervisor for %s", integration)
        names = self.repository.list_available_tasks(integration)
        logger.info("Scripts found: %s", names)
        cursor = WorklistCursor(classify_tasks(self.llm, names))

        reports: list[TaskReport] = []
        while not cursor.done():
            task = cursor.current()
            if task.name in self.skip_tasks or self.hub.contains(integration, task.name):
                logger.info("Skipping %s/%s", integration, task.name)
                reports.append(TaskReport(name=task.name, category=task.category, skipped=True))
            else:
                result = self.run_task(integration, task)
                reports.append(
                    TaskReport(
                        name=task.name,
                        category=task.category,
                        outcome=result.outcome,
                        transitions=result.transitions,
                    )
                )
            cursor.advance()
        return reports
