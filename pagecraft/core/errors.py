"""Error taxonomy for the design engine.

Every error carries a stable ``code`` so callers can tell failure kinds apart
without parsing messages.
"""

from typing import Any


class DesignEngineError(Exception):
    """Base exception for design engine failures."""

    code = "DESIGN_ENGINE_ERROR"

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        return {"code": self.code, "message": self.message, "details": self.details}


class SessionNotFoundError(DesignEngineError):
    """Raised when a session identifier does not exist in the store."""

    code = "SESSION_NOT_FOUND"

    def __init__(self, session_id: str):
        super().__init__(f"Session '{session_id}' not found", {"session_id": session_id})
        self.session_id = session_id


class DecisionParseError(DesignEngineError):
    """Raised when the reasoning output is still invalid after one retry."""

    code = "DECISION_PARSE_ERROR"


class DecisionServiceError(DesignEngineError):
    """Raised when the reasoning service itself fails."""

    code = "DECISION_SERVICE_UNAVAILABLE"


class GenerationError(DesignEngineError):
    """Raised when content generation fails.

    Per component this is non-fatal; a full regeneration that produces no
    component at all raises it for the whole call.
    """

    code = "GENERATION_ERROR"

    def __init__(
        self,
        message: str,
        component_name: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        details = dict(details or {})
        if component_name:
            details["component"] = component_name
        super().__init__(message, details)
        self.component_name = component_name


class UnknownUnitError(DesignEngineError):
    """Raised when a composition references a component that does not exist."""

    code = "UNKNOWN_UNIT"

    def __init__(self, component_id: str):
        super().__init__(f"Component {component_id} not found", {"component_id": component_id})
        self.component_id = component_id


class ReferenceNotFoundError(DesignEngineError):
    """Raised when a name or id reference matches no component."""

    code = "NOT_FOUND"

    def __init__(self, reference: str):
        super().__init__(f'No component found matching "{reference}"', {"reference": reference})
        self.reference = reference
