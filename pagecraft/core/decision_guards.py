"""Normalization and safety rules applied to validated agent decisions.

The model often misplaces fields, forgets the branch flag, or asks to
regenerate a screen when the user only wanted a change. These rules run in
order after validation; each may rewrite the decision. The regeneration guard
makes sure existing work is never discarded without explicit intent.
"""

from pagecraft.core.intent_vocabulary import IntentDetector, KeywordIntentDetector
from pagecraft.core.logging import get_logger
from pagecraft.core.schemas_design import AgentDecision, DecisionAction

logger = get_logger(__name__)

PROTECTED_PREFIX = "[PROTECTED]"


def repair_misplaced_specs(decision: AgentDecision) -> AgentDecision:
    """Move newComponents into regenerateSpecs for a regeneration that left the latter empty."""
    if (
        decision.action == DecisionAction.REGENERATE_SCREEN
        and not decision.regenerate_specs
        and decision.new_components
    ):
        logger.info("Fixing misplaced specs: moving newComponents to regenerateSpecs")
        return decision.model_copy(
            update={"regenerate_specs": decision.new_components, "new_components": []}
        )
    return decision


def apply_branch_detection(
    decision: AgentDecision,
    prompt: str,
    has_existing_components: bool,
    detector: IntentDetector,
) -> AgentDecision:
    """Force create_branch when the prompt or rationale asks for a copy/version."""
    if not has_existing_components or decision.create_branch:
        return decision
    if detector.has_branch_intent(prompt, decision.rationale):
        logger.info(f"Branching intent detected ({detector.version}), forcing createBranch=true")
        return decision.model_copy(update={"create_branch": True})
    return decision


def apply_regeneration_guard(
    decision: AgentDecision,
    has_existing_components: bool,
    existing_order_names: list[str],
    detector: IntentDetector,
) -> AgentDecision:
    """
    Downgrade a regeneration to an update unless the rationale states explicit intent.

    The downgraded decision adds the regeneration specs as new components and
    appends their names after the current screen order.
    """
    if not has_existing_components or decision.action != DecisionAction.REGENERATE_SCREEN:
        return decision

    if detector.has_explicit_regeneration_intent(decision.rationale):
        logger.info(
            "Allowing REGENERATE_SCREEN, rationale states explicit intent",
            extra={"extra_data": {"rationale": decision.rationale[:100]}},
        )
        return decision

    specs = list(decision.regenerate_specs)
    new_names = [spec.name for spec in specs]
    combined_order = list(existing_order_names) + [
        name for name in new_names if name not in existing_order_names
    ]

    logger.warning(
        "PROTECTION: converting REGENERATE_SCREEN to UPDATE_COMPONENTS, "
        f"new components: {', '.join(new_names)}"
    )

    return AgentDecision(
        action=DecisionAction.UPDATE_COMPONENTS,
        rationale=(
            f"{PROTECTED_PREFIX} {decision.rationale}. "
            "Adding new components while preserving existing ones."
        ),
        create_branch=decision.create_branch,
        updates=list(decision.updates),
        new_components=specs,
        screen_order=combined_order or None,
        regenerate_specs=[],
        layout=decision.layout,
    )


def normalize_decision(
    decision: AgentDecision,
    *,
    prompt: str,
    has_existing_components: bool,
    existing_order_names: list[str],
    detector: IntentDetector | None = None,
) -> AgentDecision:
    """
    Apply all normalization rules in order.

    Args:
        decision: Validated decision from the model
        prompt: The user's prompt
        has_existing_components: Whether the session already has components
        existing_order_names: Current screen order as component names
        detector: Intent detector (keyword detector by default)

    Returns:
        Normalized decision
    """
    detector = detector or KeywordIntentDetector()
    logger.debug(
        f"normalize_decision: action={decision.action.value}, "
        f"has_existing={has_existing_components}"
    )

    decision = repair_misplaced_specs(decision)
    decision = apply_branch_detection(decision, prompt, has_existing_components, detector)
    decision = apply_regeneration_guard(
        decision, has_existing_components, existing_order_names, detector
    )
    return decision
