"""LangGraph pipeline that handles one design prompt end to end.

decide -> record_prompt -> execute_regeneration | execute_update -> finalize

A failed decision ends the graph before anything is written to the session.
Execution failures after that point are reported, not rolled back. An update
that applies none of its requested changes ends as a GENERATION_ERROR.
"""

from dataclasses import dataclass
from typing import Any

from langgraph.graph import END, StateGraph

from pagecraft.chains.decide_design_action import decide_design_action
from pagecraft.core.design_executor import execute_regeneration, execute_update
from pagecraft.core.errors import DesignEngineError, GenerationError
from pagecraft.core.intent_vocabulary import IntentDetector
from pagecraft.core.logging import get_logger
from pagecraft.core.schemas_design import (
    AgentDecision,
    DecisionAction,
    ExecutionReport,
    PromptResult,
    SessionView,
)
from pagecraft.db.design_sessions import SessionStore

logger = get_logger(__name__)

MAX_STEPS = 6


@dataclass
class DesignPromptState:
    """State for the design prompt graph."""

    # Input fields
    prompt: str
    session_id: str
    store: SessionStore
    intent_detector: IntentDetector | None = None

    # Processing state
    step_count: int = 0
    decision: AgentDecision | None = None
    execution: ExecutionReport | None = None
    error: DesignEngineError | None = None


def _check_max_steps(state: DesignPromptState) -> DesignPromptState:
    """Check and increment step count, raise if exceeded."""
    state.step_count += 1
    if state.step_count > MAX_STEPS:
        raise RuntimeError(f"Graph exceeded max steps ({MAX_STEPS})")
    return state


async def decide(state: DesignPromptState) -> dict[str, Any]:
    """Ask the reasoning service for a normalized decision."""
    state = _check_max_steps(state)

    try:
        session = state.store.get_session(state.session_id)
        decision = await decide_design_action(session, state.prompt, state.intent_detector)
    except DesignEngineError as e:
        logger.error(f"Decision failed: {e.message}", extra={"session_id": state.session_id})
        return {"error": e, "step_count": state.step_count}

    logger.info(
        f"Agent decision: {decision.action.value}, branch={bool(decision.create_branch)}",
        extra={"session_id": state.session_id},
    )
    logger.debug(f"Decision payload: {decision.model_dump_json(by_alias=True)}")
    return {"decision": decision, "step_count": state.step_count}


def record_prompt(state: DesignPromptState) -> dict[str, Any]:
    """Store the user's prompt once a decision has been accepted."""
    state = _check_max_steps(state)
    state.store.add_message(state.session_id, "user", state.prompt)
    return {"step_count": state.step_count}


async def run_regeneration(state: DesignPromptState) -> dict[str, Any]:
    """Replace the design with the decision's regeneration specs."""
    state = _check_max_steps(state)
    decision = state.decision

    if not decision.regenerate_specs:
        return {
            "error": DesignEngineError("REGENERATE_SCREEN requires regenerateSpecs"),
            "step_count": state.step_count,
        }

    try:
        report = await execute_regeneration(
            state.store,
            state.session_id,
            decision.regenerate_specs,
            decision.layout,
        )
    except DesignEngineError as e:
        logger.error(f"Regeneration failed: {e.message}", extra={"session_id": state.session_id})
        return {"error": e, "step_count": state.step_count}

    return {"execution": report, "step_count": state.step_count}


async def run_update(state: DesignPromptState) -> dict[str, Any]:
    """Apply the decision's updates, additions, and reordering."""
    state = _check_max_steps(state)

    if state.decision.is_empty():
        logger.info("Decision requests no changes", extra={"session_id": state.session_id})

    try:
        report = await execute_update(state.store, state.session_id, state.decision)
    except DesignEngineError as e:
        logger.error(f"Update failed: {e.message}", extra={"session_id": state.session_id})
        return {"error": e, "step_count": state.step_count}

    if not state.decision.is_empty() and not _made_progress(report):
        logger.error(
            f"Update applied nothing ({len(report.failures)} failures)",
            extra={"session_id": state.session_id},
        )
        error = GenerationError(
            "None of the requested changes could be applied",
            details={"failures": [f.model_dump() for f in report.failures]},
        )
        return {"execution": report, "error": error, "step_count": state.step_count}

    return {"execution": report, "step_count": state.step_count}


def _made_progress(report: ExecutionReport) -> bool:
    return bool(report.created or report.updated or report.composed)


def finalize(state: DesignPromptState) -> dict[str, Any]:
    """Record the assistant summary and the audit entry."""
    state = _check_max_steps(state)
    decision = state.decision
    execution = state.execution

    state.store.add_message(
        state.session_id, "assistant", format_assistant_response(decision, execution)
    )
    state.store.add_decision_entry(
        state.session_id, state.prompt, decision, execution.affected_names
    )
    return {"step_count": state.step_count}


def route_after_decision(state: DesignPromptState) -> str:
    """Stop on a failed decision, otherwise record the prompt."""
    if state.error or not state.decision:
        return END
    return "record_prompt"


def route_by_action(state: DesignPromptState) -> str:
    """Pick the executor for the decision's action."""
    if state.decision.action == DecisionAction.REGENERATE_SCREEN:
        return "regenerate"
    return "update"


def route_after_execution(state: DesignPromptState) -> str:
    """Skip the audit entry when execution failed."""
    if state.error:
        return END
    return "finalize"


def _build_graph() -> StateGraph:
    """Build the design prompt graph."""
    graph = StateGraph(DesignPromptState)

    graph.add_node("decide", decide)
    graph.add_node("record_prompt", record_prompt)
    graph.add_node("execute_regeneration", run_regeneration)
    graph.add_node("execute_update", run_update)
    graph.add_node("finalize", finalize)

    graph.set_entry_point("decide")
    graph.add_conditional_edges(
        "decide",
        route_after_decision,
        {"record_prompt": "record_prompt", END: END},
    )
    graph.add_conditional_edges(
        "record_prompt",
        route_by_action,
        {"regenerate": "execute_regeneration", "update": "execute_update"},
    )
    for node in ("execute_regeneration", "execute_update"):
        graph.add_conditional_edges(
            node,
            route_after_execution,
            {"finalize": "finalize", END: END},
        )
    graph.add_edge("finalize", END)

    return graph


# Compile the graph once at module load
_compiled_graph = _build_graph().compile()


def format_assistant_response(decision: AgentDecision, execution: ExecutionReport) -> str:
    """Summarize what was actually applied for the conversation history."""
    created = ", ".join(ref.name for ref in execution.created)
    updated = ", ".join(ref.name for ref in execution.updated)

    parts: list[str] = []
    if execution.action == DecisionAction.REGENERATE_SCREEN:
        parts.append(f"Created a new screen with components: {created}")
    else:
        if updated:
            parts.append(f"Updated: {updated}")
        if created:
            parts.append(f"Added: {created}")
        if execution.composed and decision.screen_order:
            parts.append("Reordered screen")
        elif execution.composed and decision.layout and not created:
            parts.append(f"Changed layout to {decision.layout.type.value}")

    if execution.failures:
        failed = ", ".join(dict.fromkeys(f.target for f in execution.failures))
        parts.append(f"Could not apply: {failed}")

    if parts:
        return f"{'. '.join(parts)}. {decision.rationale}"
    return decision.rationale


async def handle_prompt(
    store: SessionStore,
    prompt: str,
    session_id: str | None = None,
    intent_detector: IntentDetector | None = None,
) -> PromptResult:
    """
    Handle one design prompt.

    An absent or unknown session_id starts a new session. Prompts against the
    same session are serialized by the session lock.

    Args:
        store: Session store
        prompt: Natural-language design prompt
        session_id: Existing session, if any
        intent_detector: Optional replacement for the keyword intent detector

    Returns:
        PromptResult with the updated session view
    """
    session, created = store.get_or_create_session(session_id)
    logger.info(
        f"handle_prompt: requested={session_id or 'none'}, new_session={created}, "
        f"components={len(session.components)}",
        extra={"session_id": session.id},
    )

    async with store.session_lock(session.id):
        initial_state = DesignPromptState(
            prompt=prompt,
            session_id=session.id,
            store=store,
            intent_detector=intent_detector,
        )
        final_state = await _compiled_graph.ainvoke(initial_state)

    decision: AgentDecision | None = final_state.get("decision")
    error: DesignEngineError | None = final_state.get("error")

    if error is not None:
        return PromptResult(
            success=False,
            session=_session_view(store, session.id),
            rationale=decision.rationale if decision else None,
            error=error.message,
            error_code=error.code,
            decision=decision,
            execution=final_state.get("execution"),
        )

    return PromptResult(
        success=True,
        session=_session_view(store, session.id),
        rationale=decision.rationale if decision else None,
        decision=decision,
        execution=final_state.get("execution"),
    )


def _session_view(store: SessionStore, session_id: str) -> SessionView:
    session = store.find_session(session_id)
    if session is None:
        return SessionView(id="")
    return store.serialize_session(session_id)


def reset_design_session(store: SessionStore, session_id: str) -> SessionView:
    """
    Reset a session to empty state, keeping its ID. Safe to call repeatedly.

    Raises:
        SessionNotFoundError: If the session does not exist
    """
    store.reset_session(session_id)
    return store.serialize_session(session_id)


def render_screen_html(store: SessionStore, session_id: str) -> str:
    """Concatenate the HTML of the screen's components in render order."""
    components = store.get_screen_components(session_id)
    return "\n\n".join(c.html for c in components)
