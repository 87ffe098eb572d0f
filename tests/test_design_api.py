"""Tests for the design API routes."""

from unittest.mock import AsyncMock, patch

from fastapi.testclient import TestClient

from pagecraft.core.schemas_design import AgentDecision, DecisionAction
from pagecraft.main import app
from tests.fixtures_design import make_component, make_spec

DECIDE_TARGET = "pagecraft.graphs.design_prompt_graph.decide_design_action"
CREATE_TARGET = "pagecraft.core.design_executor.create_component"


async def _create(spec):
    return make_component(spec.name)


def _regenerate(names):
    return AgentDecision(
        action=DecisionAction.REGENERATE_SCREEN,
        rationale="Initial page",
        regenerate_specs=[make_spec(n) for n in names],
    )


def test_generate_then_screen_and_session():
    with TestClient(app) as client:
        with patch(DECIDE_TARGET, AsyncMock(return_value=_regenerate(["Header", "Footer"]))), patch(
            CREATE_TARGET, _create
        ):
            response = client.post("/v1/design/generate", json={"prompt": "Build a page"})

        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        session_id = data["session"]["id"]

        screen = client.get("/v1/design/screen", params={"session_id": session_id})
        assert screen.status_code == 200
        assert screen.json()["html"] == "<section>Header</section>\n\n<section>Footer</section>"

        view = client.get(f"/v1/design/sessions/{session_id}")
        assert view.status_code == 200
        assert [c["name"] for c in view.json()["components"]] == ["Header", "Footer"]


def test_generate_rejects_blank_prompt():
    with TestClient(app) as client:
        response = client.post("/v1/design/generate", json={"prompt": "   "})

    assert response.status_code == 400


def test_generate_unexpected_failure_is_500():
    with TestClient(app) as client:
        with patch(DECIDE_TARGET, AsyncMock(side_effect=RuntimeError("boom"))):
            response = client.post("/v1/design/generate", json={"prompt": "Build"})

    assert response.status_code == 500


def test_reset_flow():
    with TestClient(app) as client:
        store = app.state.session_store
        session = store.create_session()
        store.upsert_component(session.id, make_component("Header"))

        first = client.post("/v1/design/reset", json={"session_id": session.id})
        second = client.post("/v1/design/reset", json={"session_id": session.id})

    assert first.status_code == 200
    assert second.status_code == 200
    assert second.json()["session"]["id"] == session.id
    assert second.json()["session"]["components"] == []


def test_unknown_session_returns_404():
    with TestClient(app) as client:
        assert client.post("/v1/design/reset", json={"session_id": "missing"}).status_code == 404
        assert client.get("/v1/design/sessions/missing").status_code == 404
        assert client.get("/v1/design/screen", params={"session_id": "missing"}).status_code == 404
