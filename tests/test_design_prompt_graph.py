"""End-to-end tests for the design prompt pipeline (mocked LLM chains)."""

from unittest.mock import AsyncMock, patch

import pytest

from pagecraft.core.errors import DecisionParseError, GenerationError, SessionNotFoundError
from pagecraft.core.schemas_design import (
    AgentDecision,
    Component,
    ComponentRef,
    ComponentUpdate,
    DecisionAction,
    ExecutionFailure,
    ExecutionReport,
    LayoutSpec,
    LayoutType,
    NewComponentSpec,
)
from pagecraft.db.design_sessions import SessionStore
from pagecraft.graphs.design_prompt_graph import (
    format_assistant_response,
    handle_prompt,
    render_screen_html,
    reset_design_session,
)
from tests.fixtures_design import make_component, make_spec, seed_session

DECIDE_TARGET = "pagecraft.graphs.design_prompt_graph.decide_design_action"
CREATE_TARGET = "pagecraft.core.design_executor.create_component"
UPDATE_TARGET = "pagecraft.core.design_executor.update_component"


async def _create(spec: NewComponentSpec) -> Component:
    return make_component(spec.name)


async def _update(component: Component, change_description: str, style_hints=None):
    return component.model_copy(update={"html": f"<div>{change_description}</div>"})


def _regenerate(names: list[str]) -> AgentDecision:
    return AgentDecision(
        action=DecisionAction.REGENERATE_SCREEN,
        rationale="Initial landing page",
        regenerate_specs=[make_spec(n) for n in names],
    )


class TestHandlePrompt:
    @pytest.mark.asyncio
    async def test_new_session_regeneration(self, store: SessionStore):
        decide_mock = AsyncMock(return_value=_regenerate(["Header", "Hero", "Footer"]))

        with patch(DECIDE_TARGET, decide_mock), patch(CREATE_TARGET, _create):
            result = await handle_prompt(store, "Build a landing page")

        assert result.success is True
        assert result.rationale == "Initial landing page"
        assert [c.name for c in result.session.components] == ["Header", "Hero", "Footer"]
        assert [m.role for m in result.session.messages] == ["user", "assistant"]
        assert result.session.decision_history[0].components_affected == [
            "Header",
            "Hero",
            "Footer",
        ]
        assert len(store) == 1

    @pytest.mark.asyncio
    async def test_unknown_session_id_starts_new_session(self, store: SessionStore):
        decide_mock = AsyncMock(return_value=_regenerate(["Header"]))

        with patch(DECIDE_TARGET, decide_mock), patch(CREATE_TARGET, _create):
            result = await handle_prompt(store, "Build", session_id="nope")

        assert result.success is True
        assert result.session.id != "nope"

    @pytest.mark.asyncio
    async def test_update_existing_session(self, store: SessionStore):
        session = seed_session(store, ["Header", "Footer"])
        decision = AgentDecision(
            action=DecisionAction.UPDATE_COMPONENTS,
            rationale="Darken header",
            updates=[ComponentUpdate(component_id="Header", change_description="dark")],
        )

        with patch(DECIDE_TARGET, AsyncMock(return_value=decision)), patch(
            UPDATE_TARGET, _update
        ):
            result = await handle_prompt(store, "make the header dark", session.id)

        assert result.success is True
        assert result.session.id == session.id
        assert result.execution.updated[0].name == "Header"
        assert render_screen_html(store, session.id).startswith("<div>dark</div>")

    @pytest.mark.asyncio
    async def test_decision_failure_mutates_nothing(self, store: SessionStore):
        session = seed_session(store, ["Header"])
        before = session.model_copy(deep=True)
        decide_mock = AsyncMock(
            side_effect=DecisionParseError("Failed to parse agent decision after retry")
        )

        with patch(DECIDE_TARGET, decide_mock):
            result = await handle_prompt(store, "do something", session.id)

        assert result.success is False
        assert result.error_code == "DECISION_PARSE_ERROR"
        assert session.messages == before.messages
        assert session.components == before.components
        assert session.decision_history == []

    @pytest.mark.asyncio
    async def test_total_generation_failure_reports_error(self, store: SessionStore):
        async def always_fail(spec):
            raise GenerationError("boom", spec.name)

        with patch(DECIDE_TARGET, AsyncMock(return_value=_regenerate(["Header"]))), patch(
            CREATE_TARGET, always_fail
        ):
            result = await handle_prompt(store, "Build")

        assert result.success is False
        assert result.error_code == "GENERATION_ERROR"
        assert result.rationale == "Initial landing page"
        assert result.session.decision_history == []

    @pytest.mark.asyncio
    async def test_partial_failure_audits_only_created(self, store: SessionStore):
        async def create_some(spec):
            if spec.name == "Hero":
                raise GenerationError("boom", spec.name)
            return make_component(spec.name)

        with patch(
            DECIDE_TARGET, AsyncMock(return_value=_regenerate(["Header", "Hero", "Footer"]))
        ), patch(CREATE_TARGET, create_some):
            result = await handle_prompt(store, "Build")

        assert result.success is True
        assert result.session.decision_history[0].components_affected == ["Header", "Footer"]
        assert result.execution.failures[0].target == "Hero"


class TestResetAndRender:
    def test_reset_is_idempotent(self, store: SessionStore):
        session = seed_session(store, ["Header"])

        first = reset_design_session(store, session.id)
        second = reset_design_session(store, session.id)

        assert first.id == second.id == session.id
        assert second.components == []
        assert second.screen is None

    def test_reset_unknown_session(self, store: SessionStore):
        with pytest.raises(SessionNotFoundError):
            reset_design_session(store, "missing")

    def test_render_concatenates_in_screen_order(self, store: SessionStore):
        session = seed_session(store, ["Header", "Footer"])

        html = render_screen_html(store, session.id)

        assert html == "<section>Header</section>\n\n<section>Footer</section>"

    def test_render_empty_session(self, store: SessionStore):
        session = store.create_session()
        assert render_screen_html(store, session.id) == ""


class TestUpdateOutcomes:
    @pytest.mark.asyncio
    async def test_update_that_applies_nothing_fails(self, store: SessionStore):
        session = seed_session(store, ["Header"])
        html_before = render_screen_html(store, session.id)
        decision = AgentDecision(
            action=DecisionAction.UPDATE_COMPONENTS,
            rationale="darken",
            updates=[ComponentUpdate(component_id="Header", change_description="dark")],
        )

        async def failing_update(component, change_description, style_hints=None):
            raise GenerationError("boom", component.name)

        with patch(DECIDE_TARGET, AsyncMock(return_value=decision)), patch(
            UPDATE_TARGET, failing_update
        ):
            result = await handle_prompt(store, "make the header dark", session.id)

        assert result.success is False
        assert result.error_code == "GENERATION_ERROR"
        assert result.execution.updated == []
        assert [f.code for f in result.execution.failures] == ["GENERATION_ERROR"]
        assert [m.role for m in result.session.messages] == ["user"]
        assert result.session.decision_history == []
        assert render_screen_html(store, session.id) == html_before

    @pytest.mark.asyncio
    async def test_partial_update_summary_names_failures(self, store: SessionStore):
        session = seed_session(store, ["Header", "Footer"])
        decision = AgentDecision(
            action=DecisionAction.UPDATE_COMPONENTS,
            rationale="Restyle.",
            updates=[
                ComponentUpdate(component_id="Header", change_description="dark"),
                ComponentUpdate(component_id="Footer", change_description="dark"),
            ],
        )

        async def update_footer_only(component, change_description, style_hints=None):
            if component.name == "Header":
                raise GenerationError("boom", component.name)
            return await _update(component, change_description)

        with patch(DECIDE_TARGET, AsyncMock(return_value=decision)), patch(
            UPDATE_TARGET, update_footer_only
        ):
            result = await handle_prompt(store, "restyle", session.id)

        assert result.success is True
        summary = result.session.messages[-1].content
        assert summary == "Updated: Footer. Could not apply: Header. Restyle."
        assert result.session.decision_history[0].components_affected == ["Footer"]

    @pytest.mark.asyncio
    async def test_empty_decision_succeeds(self, store: SessionStore):
        session = seed_session(store, ["Header"])
        decision = AgentDecision(action=DecisionAction.UPDATE_COMPONENTS, rationale="Nothing to do")

        with patch(DECIDE_TARGET, AsyncMock(return_value=decision)):
            result = await handle_prompt(store, "looks good", session.id)

        assert result.success is True
        assert result.session.messages[-1].content == "Nothing to do"


class TestFormatAssistantResponse:
    def test_update_summary_uses_execution(self):
        decision = AgentDecision(
            action=DecisionAction.UPDATE_COMPONENTS,
            rationale="Done.",
            updates=[ComponentUpdate(component_id="header", change_description="x")],
            new_components=[make_spec("Pricing")],
            screen_order=["Header", "Pricing"],
        )
        execution = ExecutionReport(
            action=DecisionAction.UPDATE_COMPONENTS,
            updated=[ComponentRef(id="1", name="Header")],
            created=[ComponentRef(id="2", name="Pricing")],
            composed=True,
        )

        assert format_assistant_response(decision, execution) == (
            "Updated: Header. Added: Pricing. Reordered screen. Done."
        )

    def test_regeneration_summary_lists_created_only(self):
        decision = _regenerate(["Header", "Hero", "Footer"])
        execution = ExecutionReport(
            action=DecisionAction.REGENERATE_SCREEN,
            created=[ComponentRef(id="1", name="Header"), ComponentRef(id="3", name="Footer")],
            failures=[ExecutionFailure(code="GENERATION_ERROR", target="Hero", message="boom")],
            composed=True,
        )

        text = format_assistant_response(decision, execution)

        assert text.startswith("Created a new screen with components: Header, Footer.")
        assert "Could not apply: Hero." in text

    def test_layout_only_summary(self):
        decision = AgentDecision(
            action=DecisionAction.UPDATE_COMPONENTS,
            rationale="Dashboard.",
            layout=LayoutSpec(type=LayoutType.SIDEBAR_LEFT),
        )
        execution = ExecutionReport(action=DecisionAction.UPDATE_COMPONENTS, composed=True)

        assert format_assistant_response(decision, execution) == (
            "Changed layout to sidebar-left. Dashboard."
        )
