"""Artifact hub — where accepted scripts, their tests and resource schemas are published.

Layout per task::

    <hub>/<integration>/scripts/action/<task>/script.fetch.ts
    <hub>/<integration>/scripts/action/<task>/script.test.ts
    <hub>/<integration>/scripts/action/<task>/schema.json

plus ``<hub>/<integration>/schema.json``, written by the first accepted task of an
integration so later tasks reuse the same resource type.
"""

import logging
from pathlib import PurePosixPath

from hubgen.services.store import FileStore

logger = logging.getLogger(__name__)

SCRIPT_FILE = "script.fetch.ts"
TEST_FILE = "script.test.ts"
SCHEMA_FILE = "schema.json"


class ArtifactHub:
    def __init__(self, store: FileStore, hub_dir: str = "hub"):
        self.store = store
        self.hub_dir = hub_dir

    def hub_path(self, integration: str, task: str) -> PurePosixPath:
        return PurePosixPath(self.hub_dir, integration, "scripts", "action", task)

    def contains(self, integration: str, task: str) -> bool:
        return self.store.exists(self.hub_path(integration, task))

    def integration_schema(self, integration: str) -> str | None:
        return self.store.read(PurePosixPath(self.hub_dir, integration, SCHEMA_FILE))

    def submit(
        self,
        integration: str,
        task: str,
        artifact: str,
        verification_artifact: str,
        resource_schema: str | None,
    ) -> PurePosixPath:
        task_dir = self.hub_path(integration, task)
        self.store.write(task_dir / SCRIPT_FILE, artifact)
        self.store.write(task_dir / TEST_FILE, verification_artifact)
        self.store.write(task_dir / SCHEMA_FILE, resource_schema or "")

        if resource_schema and self.integration_schema(integration) is None:
            self.store.write(PurePosixPath(self.hub_dir, integration, SCHEMA_FILE), resource_schema)

        logger.info("Submitted %s/%s to hub at %s", integration, task, task_dir)
        return task_dir
