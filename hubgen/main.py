"""Entry point: validates the integration name, wires collaborators, runs the Supervisor."""

import logging
import sys
from functools import partial

from hubgen.agents.classifier import ErrorClassifier
from hubgen.agents.generator import GenerationStage
from hubgen.agents.reviewer import ReviewGate
from hubgen.agents.supervisor import Supervisor, TaskReport
from hubgen.agents.verifier import VerificationStage
from hubgen.config import get_config
from hubgen.graph import build_graph, run_task
from hubgen.llm import build_llm
from hubgen.services.diagnostics import JsonlDiagnosticLog
from hubgen.services.executor import SubprocessExecutor
from hubgen.services.hub import ArtifactHub
from hubgen.services.repository import GitHubScriptRepository
from hubgen.services.search import TavilySearch
from hubgen.services.store import FileStore
from hubgen.state import Task, initial_state
from hubgen.utils.resources import load_dependencies, load_resource_names
from hubgen.utils.validator import validate_integration

logger = logging.getLogger(__name__)


def _run_one(graph, max_cycles: int, integration: str, task: Task):
    state = initial_state(integration, task.name, task.category)
    return run_task(graph, state, max_cycles)


def build_supervisor(config: dict) -> Supervisor:
    """Construct every collaborator once and inject them into the stages."""
    llm = build_llm(config)
    store = FileStore(config.get("workdir", "."))
    hub = ArtifactHub(store, config.get("hub_dir", "hub"))
    repo_cfg = config.get("script_repository", {})
    repository = GitHubScriptRepository(
        owner=repo_cfg.get("owner", "activepieces"),
        repo=repo_cfg.get("repo", "activepieces"),
        ref=repo_cfg.get("ref", "main"),
        base_path=repo_cfg.get("base_path", "packages/pieces/community"),
        max_retries=config.get("http_max_retries", 3),
    )
    search = TavilySearch(
        max_results=config.get("search_max_results", 5),
        max_retries=config.get("http_max_retries", 3),
    )
    executor = SubprocessExecutor(
        config.get("runner_command", ["bun", "run"]),
        cwd=store.root,
        timeout=config.get("execution_timeout_seconds", 300),
    )
    classifier = ErrorClassifier(llm, JsonlDiagnosticLog(config.get("diagnostics_path", "logs/errors.jsonl")))

    graph = build_graph(
        GenerationStage(llm, repository, store, hub),
        VerificationStage(
            llm,
            repository,
            store,
            executor,
            classifier,
            resource_names=load_resource_names(config.get("resources_env_path", ".env")),
            dependencies=load_dependencies(config.get("package_json_path", "package.json")),
            max_attempts=config.get("max_attempts", 5),
            backoff_seconds=config.get("rate_limit_backoff_seconds", 60),
        ),
        ReviewGate(llm, search, hub),
    )

    return Supervisor(
        llm=llm,
        repository=repository,
        hub=hub,
        run_task=partial(_run_one, graph, config.get("max_cycles", 3)),
        skip_tasks=set(config.get("skip_tasks") or []),
    )


def process_integration(integration_name: str) -> list[TaskReport]:
    """Run the Supervisor over every task of one integration.

    Args:
        integration_name: The integration slug, e.g. "github".

    Returns:
        One report per task, in worklist order.
    """
    integration = validate_integration(integration_name)
    supervisor = build_supervisor(get_config())
    return supervisor.process(integration)


def main() -> None:
    """CLI entry point — accepts the integration name as the only argument."""
    config = get_config()
    logging.basicConfig(
        level=getattr(logging, str(config.get("log_level", "INFO")).upper(), logging.INFO),
        format="[hubgen] %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    args = sys.argv[1:]
    if len(args) != 1:
        print("Usage: hubgen <integration>", file=sys.stderr)
        sys.exit(2)

    reports = process_integration(args[0])
    for report in reports:
        status = "skipped" if report.skipped else report.outcome
        logger.info("%s (%s): %s", report.name, report.category, status)
    accepted = sum(1 for r in reports if r.outcome == "accepted")
    logger.info("%d/%d tasks accepted", accepted, len(reports))


if __name__ == "__main__":
    main()
