"""Script repository — reference implementations of each integration's tasks on GitHub.

Reads the ``packages/pieces/community/<integration>`` tree of the configured
repository through the GitHub contents API. Read-only.
"""

import base64
import logging
import os
from pathlib import PurePosixPath

import httpx

from hubgen.utils.parsing import call_with_retry

logger = logging.getLogger(__name__)

GITHUB_API = "https://api.github.com"
TASK_DIRS = ("src/lib/actions", "src/lib/triggers")
SEPARATOR = "\n\n--- Separator between task script and other scripts ---\n\n"
END_OF_FILE = "\n\n--- End of file ---\n\n"


class GitHubScriptRepository:
    def __init__(
        self,
        owner: str,
        repo: str,
        ref: str = "main",
        base_path: str = "packages/pieces/community",
        token: str | None = None,
        max_retries: int = 3,
        client: httpx.Client | None = None,
    ):
        self.owner = owner
        self.repo = repo
        self.ref = ref
        self.base_path = base_path
        self.max_retries = max_retries
        token = token if token is not None else os.getenv("GITHUB_TOKEN")
        headers = {"Accept": "application/vnd.github+json"}
        if token:
            headers["Authorization"] = f"Bearer {token}"
        self._client = client or httpx.Client(base_url=GITHUB_API, headers=headers, timeout=30)
        self._reference_cache: dict[tuple[str, str], str] = {}

    # --- Public API ---

    def list_available_tasks(self, integration: str) -> list[str]:
        """Return the task names (script stems) available for an integration."""
        names: list[str] = []
        for task_dir in TASK_DIRS:
            for path in self._walk(self._piece_path(integration, task_dir)):
                stem = PurePosixPath(path).stem
                if path.endswith(".ts") and stem != "index" and stem not in names:
                    names.append(stem)
        logger.info("Found %d tasks for %s", len(names), integration)
        return names

    def fetch_reference_material(self, integration: str, task: str) -> str:
        """Return the task's reference script plus the integration's shared files."""
        key = (integration, task)
        if key not in self._reference_cache:
            self._reference_cache[key] = self._build_reference(integration, task)
        return self._reference_cache[key]

    # --- Internals ---

    def _build_reference(self, integration: str, task: str) -> str:
        task_script = self._find_task_script(integration, task)
        if task_script is not None:
            output = f"{integration} {task}.ts script:\n\n{task_script}"
        else:
            output = f"{integration} {task}.ts script not found"
        output += SEPARATOR

        shared = {}
        index = self._read_file(self._piece_path(integration, "src/index.ts"))
        if index is not None:
            shared["src/index.ts"] = index
        common_dir = self._piece_path(integration, "src/lib/common")
        for item in self._list_dir(common_dir):
            if item.get("type") == "file" and item["name"].endswith(".ts"):
                content = self._read_file(item["path"])
                if content is not None:
                    shared[f"src/lib/common/{item['name']}"] = content

        for path, content in shared.items():
            output += f"File: {path}\n\n{content}{END_OF_FILE}"
        return output

    def _find_task_script(self, integration: str, task: str) -> str | None:
        for task_dir in TASK_DIRS:
            for path in self._walk(self._piece_path(integration, task_dir)):
                if PurePosixPath(path).name == f"{task}.ts":
                    return self._read_file(path)
        return None

    def _piece_path(self, integration: str, relative: str) -> str:
        return f"{self.base_path}/{integration}/{relative}"

    def _walk(self, path: str):
        """Yield file paths under a directory, depth-first."""
        for item in self._list_dir(path):
            if item.get("type") == "file":
                yield item["path"]
            elif item.get("type") == "dir":
                yield from self._walk(item["path"])

    def _list_dir(self, path: str) -> list[dict]:
        data = self._get_contents(path)
        return data if isinstance(data, list) else []

    def _read_file(self, path: str) -> str | None:
        data = self._get_contents(path)
        if not isinstance(data, dict) or "content" not in data:
            return None
        return base64.b64decode(data["content"]).decode("utf-8")

    def _get_contents(self, path: str):
        """GET a contents entry; a missing path yields None, other failures raise."""
        url = f"/repos/{self.owner}/{self.repo}/contents/{path}"

        def _fetch() -> httpx.Response:
            response = self._client.get(url, params={"ref": self.ref})
            response.raise_for_status()
            return response

        try:
            response = call_with_retry(_fetch, max_retries=self.max_retries)
        except httpx.HTTPStatusError as exc:
            if exc.response.status_code == 404:
                return None
            raise
        return response.json()
