"""Resolve natural-language component references to component IDs.

Handles references like "the header" as well as raw component IDs. When
several component names match, the first one in the session's insertion
order wins.
"""

import re
from collections.abc import Iterable

from pagecraft.core.errors import ReferenceNotFoundError
from pagecraft.core.schemas_design import Component, DesignSession

COMPONENT_ID_PATTERN = re.compile(r"^[0-9a-f-]{36}$", re.IGNORECASE)


def looks_like_component_id(reference: str) -> bool:
    return bool(COMPONENT_ID_PATTERN.match(reference))


def find_components_by_name(session: DesignSession, query: str) -> list[Component]:
    """Case-insensitive substring match against component names, in insertion order."""
    needle = query.lower()
    return [c for c in session.components.values() if needle in c.name.lower()]


def resolve_component_id(session: DesignSession, reference: str) -> str:
    """
    Resolve a name or ID reference to a single component ID.

    ID-shaped references are returned verbatim; the composer checks existence.

    Raises:
        ReferenceNotFoundError: If no component name matches
    """
    if looks_like_component_id(reference):
        return reference

    matches = find_components_by_name(session, reference)
    if not matches:
        raise ReferenceNotFoundError(reference)
    return matches[0].id


def resolve_component_by_exact_name(
    components: Iterable[Component], name: str
) -> Component | None:
    """Case-insensitive exact name lookup; first match wins."""
    target = name.lower()
    for component in components:
        if component.name.lower() == target:
            return component
    return None
