"""LLM client utilities for the OpenAI chat completions API."""

import json
import re
from typing import TypeVar

from openai import AsyncOpenAI
from pydantic import BaseModel

from pagecraft.core.config import get_settings

T = TypeVar("T", bound=BaseModel)


def get_async_client() -> AsyncOpenAI:
    """Get an AsyncOpenAI client configured from settings."""
    settings = get_settings()
    return AsyncOpenAI(api_key=settings.OPENAI_API_KEY)


async def request_json_completion(
    messages: list[dict[str, str]],
    *,
    model: str,
    temperature: float,
) -> str:
    """
    Run a single chat completion in forced JSON mode.

    Args:
        messages: Chat messages (system first)
        model: Model name
        temperature: Sampling temperature

    Returns:
        Raw message content ("" when the model returned nothing)

    Raises:
        openai.OpenAIError: If the service call fails
    """
    client = get_async_client()
    response = await client.chat.completions.create(
        model=model,
        messages=messages,
        response_format={"type": "json_object"},
        temperature=temperature,
    )
    return response.choices[0].message.content or ""


def _strip_llm_fences(raw_output: str) -> str:
    """Strip markdown code fences from LLM output.

    Handles: ```json ... ```, ``` ... ```, leading/trailing whitespace.
    """
    cleaned = raw_output.strip()

    # Extract JSON from markdown code fences
    fence_match = re.search(r"```(?:json)?\s*\n?(.*?)```", cleaned, re.DOTALL)
    if fence_match:
        return fence_match.group(1).strip()

    # Fallback: strip leading/trailing fences without regex
    if cleaned.startswith("```json"):
        cleaned = cleaned[7:]
    elif cleaned.startswith("```"):
        cleaned = cleaned[3:]
    if cleaned.endswith("```"):
        cleaned = cleaned[:-3]
    return cleaned.strip()


def parse_llm_json(raw_output: str, model: type[T]) -> T:
    """
    Parse LLM output as JSON and validate against a Pydantic model.

    Handles common LLM response quirks:
    - Markdown code fences (```json ... ```)
    - Leading/trailing whitespace

    Args:
        raw_output: Raw string from LLM response
        model: Pydantic model class to validate against

    Returns:
        Validated Pydantic model instance

    Raises:
        json.JSONDecodeError: If JSON parsing fails after cleanup
        pydantic.ValidationError: If parsed JSON doesn't match schema
    """
    cleaned = _strip_llm_fences(raw_output)
    parsed = json.loads(cleaned)
    return model.model_validate(parsed)
