"""LangGraph StateGraph definition for the Generation → Verification → Review cycle."""

import logging
from dataclasses import dataclass

from langgraph.errors import GraphRecursionError
from langgraph.graph import END, StateGraph

from hubgen.state import (
    TERMINAL_VERIFICATION_OUTCOMES,
    TaskOutcome,
    WorkflowState,
    apply_update,
)

logger = logging.getLogger(__name__)

GENERATION = "Generation"
VERIFICATION = "Verification"
REVIEW = "Review"

_NEXT_STAGE = {
    GENERATION: VERIFICATION,
    VERIFICATION: REVIEW,
    REVIEW: GENERATION,
}


def route(state: WorkflowState) -> str:
    """Decide the next stage from the stage that last wrote the state.

    Priority order:
    1. accepted → end
    2. verification abandoned on a credential or server error → end
    3. Generation → Verification → Review → Generation
    4. no sender yet → Generation
    """
    if state.get("accepted"):
        return "end"
    sender = state.get("sender")
    if sender == VERIFICATION and state.get("verification_outcome") in TERMINAL_VERIFICATION_OUTCOMES:
        return "end"
    return _NEXT_STAGE.get(sender, GENERATION)


def transition_bound(max_cycles: int) -> int:
    """Maximum number of stage executions for one task."""
    return 3 * max_cycles + 1


def build_graph(generate, verify, review):
    """Compile the workflow graph from the three stage callables."""
    workflow = StateGraph(WorkflowState)

    workflow.add_node(GENERATION, generate)
    workflow.add_node(VERIFICATION, verify)
    workflow.add_node(REVIEW, review)

    workflow.set_entry_point(GENERATION)

    targets = {GENERATION: GENERATION, VERIFICATION: VERIFICATION, REVIEW: REVIEW, "end": END}
    for node in (GENERATION, VERIFICATION, REVIEW):
        workflow.add_conditional_edges(node, route, targets)

    return workflow.compile()


@dataclass
class TaskResult:
    task: str
    outcome: TaskOutcome
    state: WorkflowState
    transitions: int


def _final_outcome(state: WorkflowState, bound_hit: bool) -> TaskOutcome:
    if state.get("accepted"):
        return "accepted"
    verification = state.get("verification_outcome")
    if verification in TERMINAL_VERIFICATION_OUTCOMES:
        return verification
    if bound_hit and verification == "abandoned-exhausted":
        return "abandoned-exhausted"
    return "abandoned-cycle-bound"


def run_task(graph, state: WorkflowState, max_cycles: int) -> TaskResult:
    """Run one task through the graph until it ends or the transition bound is reached.

    Every node update is folded into the tracked state with apply_update. The
    stream is abandoned as soon as the bound is reached without an accepted
    state, so a task Review keeps rejecting cannot stall the worklist.
    """
    bound = transition_bound(max_cycles)
    transitions = 0
    bound_hit = False

    try:
        for chunk in graph.stream(
            state,
            config={"recursion_limit": bound + 1},
            stream_mode="updates",
        ):
            for node, update in chunk.items():
                transitions += 1
                state = apply_update(state, update or {})
                logger.info("[%s] %s finished (transition %d/%d)", state["task"], node, transitions, bound)
            if transitions >= bound and route(state) != "end":
                bound_hit = True
                break
    except GraphRecursionError:
        bound_hit = True

    outcome = _final_outcome(state, bound_hit)
    logger.info("[%s] outcome: %s after %d transitions", state["task"], outcome, transitions)
    return TaskResult(task=state["task"], outcome=outcome, state=state, transitions=transitions)
