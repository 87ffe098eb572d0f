"""LLM chain that decides how to handle a design prompt.

The reasoning call runs as a two-attempt state machine:

    PENDING -> ACCEPTED
    PENDING -> RETRYING -> ACCEPTED
    PENDING -> RETRYING -> REJECTED

A rejected decision raises DecisionParseError. Nothing here mutates the
session; the validated decision is normalized before it is returned.
"""

import json
from dataclasses import dataclass, field
from enum import Enum

from openai import OpenAIError
from pydantic import ValidationError

from pagecraft.chains.design_prompts import (
    DECISION_SYSTEM_PROMPT,
    FIX_SCHEMA_PROMPT,
    format_state_for_decision,
)
from pagecraft.core.config import get_settings
from pagecraft.core.decision_guards import normalize_decision
from pagecraft.core.errors import DecisionParseError, DecisionServiceError
from pagecraft.core.intent_vocabulary import IntentDetector, get_default_intent_detector
from pagecraft.core.llm import parse_llm_json, request_json_completion
from pagecraft.core.logging import get_logger
from pagecraft.core.schemas_design import AgentDecision, DesignSession

logger = get_logger(__name__)


class DecisionAttemptState(str, Enum):
    """States of the decision validation state machine."""

    PENDING = "pending"
    RETRYING = "retrying"
    ACCEPTED = "accepted"
    REJECTED = "rejected"


@dataclass
class DecisionAttemptLog:
    """Transitions and raw outputs of one decision call."""

    state: DecisionAttemptState = DecisionAttemptState.PENDING
    transitions: list[DecisionAttemptState] = field(
        default_factory=lambda: [DecisionAttemptState.PENDING]
    )
    raw_outputs: list[str] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)
    decision: AgentDecision | None = None

    def move_to(self, state: DecisionAttemptState) -> None:
        self.state = state
        self.transitions.append(state)

    @property
    def attempts(self) -> int:
        return len(self.raw_outputs)


def build_decision_context(
    session: DesignSession,
    prompt: str,
    history_limit: int,
) -> str:
    """Summarize session state and the new prompt for the reasoning call."""
    messages = session.messages[-history_limit:] if history_limit > 0 else []
    return format_state_for_decision(
        prompt,
        messages,
        list(session.components.values()),
        session.screen_order_names(),
        session.screen.layout if session.screen else None,
    )


def parse_decision(raw_output: str) -> AgentDecision:
    """
    Parse and validate a raw decision.

    Raises:
        json.JSONDecodeError: If the output is not JSON
        pydantic.ValidationError: If it does not match the decision shape
    """
    return parse_llm_json(raw_output, AgentDecision)


async def _request_decision(messages: list[dict[str, str]], temperature: float) -> str:
    settings = get_settings()
    try:
        return await request_json_completion(
            messages,
            model=settings.DECISION_MODEL,
            temperature=temperature,
        )
    except OpenAIError as e:
        logger.error(f"Reasoning service call failed: {e}")
        raise DecisionServiceError(f"Reasoning service unavailable: {e}") from e


async def run_decision_attempts(context: str) -> DecisionAttemptLog:
    """
    Drive the two-attempt validation state machine.

    Returns:
        The attempt log, in state ACCEPTED or REJECTED

    Raises:
        DecisionServiceError: If the reasoning service fails
    """
    settings = get_settings()
    log = DecisionAttemptLog()
    messages = [
        {"role": "system", "content": DECISION_SYSTEM_PROMPT},
        {"role": "user", "content": context},
    ]
    temperature = settings.DECISION_TEMPERATURE

    while log.state in (DecisionAttemptState.PENDING, DecisionAttemptState.RETRYING):
        raw_output = await _request_decision(messages, temperature)
        log.raw_outputs.append(raw_output)
        logger.debug(
            f"Decision attempt {log.attempts} raw output (length: {len(raw_output)})",
            extra={"extra_data": {"output_preview": raw_output[:500]}},
        )

        try:
            log.decision = parse_decision(raw_output)
            log.move_to(DecisionAttemptState.ACCEPTED)
            continue
        except (json.JSONDecodeError, ValidationError) as e:
            error_msg = str(e)
            log.errors.append(error_msg)

        if log.state == DecisionAttemptState.RETRYING:
            logger.error(f"Retry also failed validation: {error_msg}")
            log.move_to(DecisionAttemptState.REJECTED)
            continue

        logger.warning(f"First decision attempt failed validation: {error_msg}")
        log.move_to(DecisionAttemptState.RETRYING)
        messages = messages + [
            {"role": "assistant", "content": raw_output},
            {"role": "user", "content": FIX_SCHEMA_PROMPT.format(error=error_msg)},
        ]
        temperature = settings.DECISION_RETRY_TEMPERATURE

    return log


async def decide_design_action(
    session: DesignSession,
    prompt: str,
    intent_detector: IntentDetector | None = None,
) -> AgentDecision:
    """
    Decide how to handle a prompt against the session's current design.

    Args:
        session: Current session (read only)
        prompt: The user's prompt
        intent_detector: Strategy for branch/regeneration intent

    Returns:
        Validated and normalized AgentDecision

    Raises:
        DecisionParseError: If the output is invalid after one retry
        DecisionServiceError: If the reasoning service fails
    """
    settings = get_settings()
    detector = intent_detector or get_default_intent_detector()
    has_existing_components = bool(session.components)

    logger.info(
        f"Deciding with {settings.DECISION_MODEL} ({settings.DECISION_PROMPT_VERSION}): "
        f"{len(session.components)} components, has_existing={has_existing_components}",
        extra={"session_id": session.id},
    )

    context = build_decision_context(session, prompt, settings.DECISION_HISTORY_MESSAGES)
    log = await run_decision_attempts(context)

    if log.state == DecisionAttemptState.REJECTED or log.decision is None:
        # Do NOT leak raw model output in exception
        raise DecisionParseError(
            "Failed to parse agent decision after retry: "
            "model output could not be validated to schema",
            {"attempts": log.attempts},
        )

    if log.attempts > 1:
        logger.info("Retry succeeded", extra={"session_id": session.id})

    return normalize_decision(
        log.decision,
        prompt=prompt,
        has_existing_components=has_existing_components,
        existing_order_names=session.screen_order_names(),
        detector=detector,
    )
