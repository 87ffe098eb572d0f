"""Pydantic schemas for design sessions, agent decisions, and prompt results."""

from datetime import UTC, datetime
from enum import Enum
from typing import Any, Literal
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


def utc_now() -> datetime:
    return datetime.now(UTC)


def new_id() -> str:
    return str(uuid4())


# =======================
# Enums
# =======================


class LayoutType(str, Enum):
    """How components are arranged spatially on the screen."""

    STACK = "stack"
    SIDEBAR_LEFT = "sidebar-left"
    SIDEBAR_RIGHT = "sidebar-right"
    HOLY_GRAIL = "holy-grail"
    GRID_2 = "grid-2"
    GRID_3 = "grid-3"


class DecisionAction(str, Enum):
    """What the agent decided to do with the current screen."""

    REGENERATE_SCREEN = "REGENERATE_SCREEN"
    UPDATE_COMPONENTS = "UPDATE_COMPONENTS"


# =======================
# Agent decision (LLM output)
# =======================


class _DecisionModel(BaseModel):
    """Base for decision shapes: accepts the camelCase keys the model emits."""

    model_config = ConfigDict(populate_by_name=True)


class ComponentUpdate(_DecisionModel):
    """An update to an existing component."""

    component_id: str = Field(
        ..., alias="componentId", description="ID or name of the component to update"
    )
    change_description: str = Field(
        ..., alias="changeDescription", description="Description of what to change"
    )


class NewComponentSpec(_DecisionModel):
    """A new component to create."""

    name: str = Field(..., description="Component name (e.g., Header, Footer, HeroSection)")
    description: str = Field(..., description="Brief description of what this component does")
    requirements: str = Field(..., description="Detailed requirements for the component")
    style_hints: str | None = Field(
        default=None, alias="styleHints", description="Optional style hints"
    )


class LayoutSpec(_DecisionModel):
    """Layout requested by the agent, with role bindings expressed as names."""

    type: LayoutType = Field(..., description="Layout type")
    sidebar_component: str | None = Field(default=None, alias="sidebarComponent")
    header_component: str | None = Field(default=None, alias="headerComponent")
    footer_component: str | None = Field(default=None, alias="footerComponent")


class AgentDecision(_DecisionModel):
    """Structured decision on how to handle a user prompt."""

    action: DecisionAction = Field(..., description="Regenerate the screen or update components")
    rationale: str = Field(..., description="Why this action was chosen")
    create_branch: bool | None = Field(
        default=None,
        alias="createBranch",
        description="True when the user wants a new version rather than an in-place change",
    )
    updates: list[ComponentUpdate] = Field(
        default_factory=list, description="Components to update (UPDATE_COMPONENTS)"
    )
    new_components: list[NewComponentSpec] = Field(
        default_factory=list,
        alias="newComponents",
        description="New components to add to the screen (UPDATE_COMPONENTS)",
    )
    screen_order: list[str] | None = Field(
        default=None, alias="screenOrder", description="New ordering of component names"
    )
    regenerate_specs: list[NewComponentSpec] = Field(
        default_factory=list,
        alias="regenerateSpecs",
        description="Component specs for full regeneration (REGENERATE_SCREEN)",
    )
    layout: LayoutSpec | None = Field(default=None, description="Spatial arrangement")

    @field_validator("updates", "new_components", "regenerate_specs", mode="before")
    @classmethod
    def _none_as_empty(cls, value: Any) -> Any:
        return [] if value is None else value

    @model_validator(mode="after")
    def _check_action_payload(self) -> "AgentDecision":
        # Specs misplaced in new_components are repaired during normalization.
        if (
            self.action == DecisionAction.REGENERATE_SCREEN
            and not self.regenerate_specs
            and not self.new_components
        ):
            raise ValueError("REGENERATE_SCREEN requires at least one component spec")
        return self

    def is_empty(self) -> bool:
        """True for an update decision that asks for nothing."""
        return (
            self.action == DecisionAction.UPDATE_COMPONENTS
            and not self.updates
            and not self.new_components
            and not self.screen_order
            and self.layout is None
        )


class ComponentHtmlOutput(BaseModel):
    """HTML output when generating a component."""

    html: str = Field(..., min_length=1, description="Component HTML using Tailwind CSS classes")
    description: str = Field(default="", description="Updated description if needed")


# =======================
# Session state models
# =======================


class Message(BaseModel):
    """A single conversation message."""

    role: Literal["user", "assistant", "system"]
    content: str
    timestamp: datetime = Field(default_factory=utc_now)


class Component(BaseModel):
    """An independently addressable piece of generated page content."""

    id: str = Field(default_factory=new_id)
    name: str
    description: str
    html: str
    last_updated_at: datetime = Field(default_factory=utc_now)


class LayoutConfig(BaseModel):
    """Which components play the header, sidebar, and footer roles."""

    header_component_id: str | None = None
    sidebar_component_id: str | None = None
    footer_component_id: str | None = None

    def bound_ids(self) -> list[str]:
        return [
            cid
            for cid in (
                self.header_component_id,
                self.sidebar_component_id,
                self.footer_component_id,
            )
            if cid
        ]


class Screen(BaseModel):
    """Ordered component references plus layout metadata."""

    component_ids: list[str] = Field(default_factory=list)
    layout: LayoutType = LayoutType.STACK
    layout_config: LayoutConfig | None = None


class DecisionHistoryEntry(BaseModel):
    """Audit record of one applied decision."""

    id: str = Field(default_factory=new_id)
    prompt: str
    decision: AgentDecision
    timestamp: datetime = Field(default_factory=utc_now)
    components_affected: list[str] = Field(default_factory=list)


class DesignSession(BaseModel):
    """Conversation state, components, and screen for one design thread."""

    id: str = Field(default_factory=new_id)
    messages: list[Message] = Field(default_factory=list)
    components: dict[str, Component] = Field(default_factory=dict)
    screen: Screen | None = None
    decision_history: list[DecisionHistoryEntry] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=utc_now)
    last_activity_at: datetime = Field(default_factory=utc_now)

    def touch(self) -> None:
        self.last_activity_at = utc_now()

    def screen_order_names(self) -> list[str]:
        """Current screen order expressed as component names."""
        if not self.screen:
            return []
        return [
            self.components[cid].name if cid in self.components else cid
            for cid in self.screen.component_ids
        ]


class SessionView(BaseModel):
    """Session serialized for clients (components as an ordered list)."""

    id: str
    messages: list[Message] = Field(default_factory=list)
    components: list[Component] = Field(default_factory=list)
    screen: Screen | None = None
    decision_history: list[DecisionHistoryEntry] = Field(default_factory=list)


# =======================
# Execution results
# =======================


class ExecutionFailure(BaseModel):
    """A non-fatal failure recorded while executing a decision."""

    code: str = Field(..., description="Error code, e.g. GENERATION_ERROR or NOT_FOUND")
    target: str = Field(..., description="Component name or reference that failed")
    message: str


class ComponentRef(BaseModel):
    """Identifier and name of a component touched by an execution."""

    id: str
    name: str


class ExecutionReport(BaseModel):
    """What a decision requested versus what was actually produced."""

    action: DecisionAction
    requested: list[str] = Field(default_factory=list, description="Names/references requested")
    created: list[ComponentRef] = Field(default_factory=list)
    updated: list[ComponentRef] = Field(default_factory=list)
    failures: list[ExecutionFailure] = Field(default_factory=list)
    composed: bool = Field(default=False, description="Whether the screen was recomposed")

    @property
    def affected_names(self) -> list[str]:
        return [ref.name for ref in self.updated] + [ref.name for ref in self.created]


class PromptResult(BaseModel):
    """Result of handling one prompt."""

    success: bool
    session: SessionView
    rationale: str | None = None
    error: str | None = None
    error_code: str | None = None
    decision: AgentDecision | None = None
    execution: ExecutionReport | None = None


# =======================
# API request/response models
# =======================


class GenerateRequest(BaseModel):
    """Request body for the generate endpoint."""

    prompt: str = Field(..., description="Natural-language design prompt")
    session_id: str | None = Field(default=None, description="Existing session, if any")


class ResetRequest(BaseModel):
    """Request body for the reset endpoint."""

    session_id: str = Field(..., description="Session to reset")


class ResetResponse(BaseModel):
    """Response body for the reset endpoint."""

    success: bool
    session: SessionView


class ScreenResponse(BaseModel):
    """Response body for the screen endpoint."""

    html: str
