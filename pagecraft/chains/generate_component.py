"""LLM chain for generating and revising component HTML."""

import json
import logging

from openai import OpenAIError
from pydantic import ValidationError

from pagecraft.chains.design_prompts import (
    COMPONENT_SYSTEM_PROMPT,
    CREATE_COMPONENT_PROMPT,
    DEFAULT_CREATE_STYLE_HINTS,
    DEFAULT_UPDATE_STYLE_HINTS,
    UPDATE_COMPONENT_PROMPT,
)
from pagecraft.core.config import get_settings
from pagecraft.core.errors import GenerationError
from pagecraft.core.llm import parse_llm_json, request_json_completion
from pagecraft.core.logging import get_logger, log_with_context
from pagecraft.core.schemas_design import (
    Component,
    ComponentHtmlOutput,
    NewComponentSpec,
    utc_now,
)

logger = get_logger(__name__)


async def generate_component_html(
    name: str,
    description: str,
    requirements: str,
    style_hints: str | None = None,
    existing_html: str | None = None,
    change_request: str | None = None,
) -> ComponentHtmlOutput:
    """
    Generate HTML for a component, or revise existing HTML.

    An update is performed when both existing_html and change_request are given.

    Returns:
        Validated ComponentHtmlOutput

    Raises:
        GenerationError: On service failure or output that fails validation
    """
    settings = get_settings()
    is_update = bool(existing_html) and bool(change_request)

    if is_update:
        user_prompt = UPDATE_COMPONENT_PROMPT.format(
            name=name,
            description=description,
            change_request=change_request,
            style_hints=style_hints or DEFAULT_UPDATE_STYLE_HINTS,
            existing_html=existing_html,
        )
    else:
        user_prompt = CREATE_COMPONENT_PROMPT.format(
            name=name,
            description=description,
            requirements=requirements,
            style_hints=style_hints or DEFAULT_CREATE_STYLE_HINTS,
        )

    log_with_context(
        logger,
        logging.INFO,
        f"Calling {settings.COMPONENT_MODEL} to {'update' if is_update else 'create'} component",
        component=name,
        prompt_chars=len(user_prompt),
    )

    try:
        raw_output = await request_json_completion(
            [
                {"role": "system", "content": COMPONENT_SYSTEM_PROMPT},
                {"role": "user", "content": user_prompt},
            ],
            model=settings.COMPONENT_MODEL,
            temperature=settings.COMPONENT_TEMPERATURE,
        )
    except OpenAIError as e:
        logger.warning(f"Generation service failed for '{name}': {e}")
        raise GenerationError(f"Failed to generate '{name}': service error", name) from e

    if not raw_output:
        raise GenerationError(f"Failed to generate '{name}': no content in LLM response", name)

    try:
        return parse_llm_json(raw_output, ComponentHtmlOutput)
    except (json.JSONDecodeError, ValidationError) as e:
        logger.warning(f"Generated output for '{name}' failed validation: {e}")
        # Do NOT leak raw model output in exception
        raise GenerationError(
            f"Failed to generate '{name}': output could not be validated to schema", name
        ) from e


async def create_component(spec: NewComponentSpec) -> Component:
    """Generate a brand-new component from a spec. The caller persists it."""
    output = await generate_component_html(
        spec.name,
        spec.description,
        spec.requirements,
        spec.style_hints,
    )
    return Component(
        name=spec.name,
        description=output.description or spec.description,
        html=output.html,
    )


async def update_component(
    component: Component,
    change_description: str,
    style_hints: str | None = None,
) -> Component:
    """Revise an existing component. Returns an updated copy; the caller persists it."""
    output = await generate_component_html(
        component.name,
        component.description,
        "",
        style_hints,
        existing_html=component.html,
        change_request=change_description,
    )
    return component.model_copy(
        update={
            "html": output.html,
            "description": output.description or component.description,
            "last_updated_at": utc_now(),
        }
    )
