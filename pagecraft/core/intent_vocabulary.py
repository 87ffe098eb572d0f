"""Keyword vocabularies for branch and explicit-regeneration intent.

The phrase lists are versioned data, not control flow. Any object that
implements ``IntentDetector`` can replace the keyword detector, for example a
secondary model call.
"""

import json
from pathlib import Path
from typing import Protocol

from pydantic import BaseModel, Field

from pagecraft.core.logging import get_logger

logger = get_logger(__name__)


class IntentVocabulary(BaseModel):
    """Versioned phrase lists used by the keyword intent detector."""

    version: str = Field(..., description="Vocabulary version for tracking")
    branch_phrases: list[str] = Field(
        ..., min_length=1, description="Phrases that signal a copy/version/branch request"
    )
    explicit_regeneration_phrases: list[str] = Field(
        ..., min_length=1, description="Phrases that signal intentional replacement of all work"
    )


DEFAULT_INTENT_VOCABULARY = IntentVocabulary(
    version="intent_v1",
    branch_phrases=[
        "new version",
        "another version",
        "different version",
        "create a version",
        "branch",
        "create a branch",
        "copy",
        "duplicate",
        "clone",
        "variant",
        "alternative",
        "keep the original",
        "without changing the original",
        "try a different",
        "experiment with",
        "make a copy",
        "create a copy",
    ],
    explicit_regeneration_phrases=[
        "delete everything",
        "start over",
        "start fresh",
        "completely new",
        "new page",
        "different page",
        "replace everything",
        "from scratch",
        "completely different",
        "total redesign",
        "create a new",
        "build a new",
    ],
)


def load_intent_vocabulary(path: str | Path | None) -> IntentVocabulary:
    """
    Load a vocabulary from a JSON file, or the default when no path is given.

    Raises:
        OSError: If the file cannot be read
        pydantic.ValidationError: If the file does not match IntentVocabulary
    """
    if not path:
        return DEFAULT_INTENT_VOCABULARY
    data = json.loads(Path(path).read_text(encoding="utf-8"))
    vocabulary = IntentVocabulary.model_validate(data)
    logger.info(f"Loaded intent vocabulary {vocabulary.version} from {path}")
    return vocabulary


class IntentDetector(Protocol):
    """Classifies prompt/rationale text for the decision guards."""

    version: str

    def has_branch_intent(self, prompt: str, rationale: str) -> bool: ...

    def has_explicit_regeneration_intent(self, rationale: str) -> bool: ...


class KeywordIntentDetector:
    """Case-insensitive phrase matching over an IntentVocabulary."""

    def __init__(self, vocabulary: IntentVocabulary = DEFAULT_INTENT_VOCABULARY):
        self.vocabulary = vocabulary
        self.version = vocabulary.version
        self._branch = [p.lower() for p in vocabulary.branch_phrases]
        self._regenerate = [p.lower() for p in vocabulary.explicit_regeneration_phrases]

    def has_branch_intent(self, prompt: str, rationale: str) -> bool:
        prompt_lc = prompt.lower()
        rationale_lc = rationale.lower()
        return any(p in prompt_lc or p in rationale_lc for p in self._branch)

    def has_explicit_regeneration_intent(self, rationale: str) -> bool:
        rationale_lc = rationale.lower()
        return any(p in rationale_lc for p in self._regenerate)


def get_default_intent_detector() -> KeywordIntentDetector:
    """Keyword detector over the configured vocabulary."""
    from pagecraft.core.config import get_settings

    return KeywordIntentDetector(load_intent_vocabulary(get_settings().INTENT_VOCABULARY_FILE))
