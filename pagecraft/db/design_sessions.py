"""In-memory session store for design sessions.

The store is constructed once per process (see ``pagecraft.main``) and passed
explicitly to the code that needs it. It holds no decision logic.
"""

import asyncio
from typing import Literal

from pagecraft.core.errors import SessionNotFoundError
from pagecraft.core.logging import get_logger
from pagecraft.core.schemas_design import (
    AgentDecision,
    Component,
    DecisionHistoryEntry,
    DesignSession,
    Message,
    Screen,
    SessionView,
)

logger = get_logger(__name__)


class SessionStore:
    """Holds design sessions keyed by session id."""

    def __init__(self) -> None:
        self._sessions: dict[str, DesignSession] = {}
        self._locks: dict[str, asyncio.Lock] = {}

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, session_id: object) -> bool:
        return session_id in self._sessions

    # Lifecycle

    def create_session(self) -> DesignSession:
        """Create a new session with empty state."""
        session = DesignSession()
        self._sessions[session.id] = session
        logger.info("Created design session", extra={"session_id": session.id})
        return session

    def find_session(self, session_id: str | None) -> DesignSession | None:
        """Get a session by ID, or None if it does not exist."""
        if not session_id:
            return None
        return self._sessions.get(session_id)

    def get_session(self, session_id: str) -> DesignSession:
        """Get a session by ID.

        Raises:
            SessionNotFoundError: If the session does not exist
        """
        session = self._sessions.get(session_id)
        if session is None:
            raise SessionNotFoundError(session_id)
        return session

    def get_or_create_session(self, session_id: str | None = None) -> tuple[DesignSession, bool]:
        """Get an existing session or create a new one.

        Returns:
            Tuple of (session, created)
        """
        session = self.find_session(session_id)
        if session is not None:
            session.touch()
            return session, False
        if session_id:
            logger.info(f"Unknown session {session_id}, creating a new one")
        return self.create_session(), True

    def reset_session(self, session_id: str) -> DesignSession:
        """Clear messages, components, screen, and history. Keeps the session ID."""
        session = self.get_session(session_id)
        session.messages = []
        session.components.clear()
        session.screen = None
        session.decision_history = []
        session.touch()
        logger.info("Reset design session", extra={"session_id": session_id})
        return session

    def delete_session(self, session_id: str) -> bool:
        """Delete a session completely."""
        self._locks.pop(session_id, None)
        return self._sessions.pop(session_id, None) is not None

    def session_lock(self, session_id: str) -> asyncio.Lock:
        """Per-session lock so prompts against one session run one at a time."""
        lock = self._locks.get(session_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[session_id] = lock
        return lock

    def close(self) -> None:
        """Drop all sessions. Called at process shutdown."""
        logger.info(f"Closing session store ({len(self._sessions)} sessions)")
        self._sessions.clear()
        self._locks.clear()

    # Messages

    def add_message(
        self,
        session_id: str,
        role: Literal["user", "assistant", "system"],
        content: str,
    ) -> Message:
        """Append a message to the session history."""
        session = self.get_session(session_id)
        message = Message(role=role, content=content)
        session.messages.append(message)
        session.touch()
        return message

    # Components

    def upsert_component(self, session_id: str, component: Component) -> Component:
        """Add or replace a component (keyed by its id)."""
        session = self.get_session(session_id)
        session.components[component.id] = component
        session.touch()
        return component

    def get_component(self, session_id: str, component_id: str) -> Component | None:
        """Get a component by ID from a session."""
        return self.get_session(session_id).components.get(component_id)

    def list_components(self, session_id: str) -> list[Component]:
        """All components in insertion order."""
        return list(self.get_session(session_id).components.values())

    def clear_design(self, session_id: str) -> None:
        """Remove all components and the screen, keeping conversation and history."""
        session = self.get_session(session_id)
        if session.components:
            logger.info(
                f"Clearing components: {', '.join(c.name for c in session.components.values())}",
                extra={"session_id": session_id},
            )
        session.components.clear()
        session.screen = None
        session.touch()

    # Screen

    def update_screen(self, session_id: str, screen: Screen) -> Screen:
        """Replace the screen composition wholesale."""
        session = self.get_session(session_id)
        session.screen = screen
        session.touch()
        return screen

    def get_screen_components(self, session_id: str) -> list[Component]:
        """Components of the current screen in render order."""
        session = self.get_session(session_id)
        if not session.screen:
            return []
        return [
            session.components[cid]
            for cid in session.screen.component_ids
            if cid in session.components
        ]

    # Decision history

    def add_decision_entry(
        self,
        session_id: str,
        prompt: str,
        decision: AgentDecision,
        components_affected: list[str],
    ) -> DecisionHistoryEntry:
        """Append an entry to the session's decision history."""
        session = self.get_session(session_id)
        entry = DecisionHistoryEntry(
            prompt=prompt,
            decision=decision,
            components_affected=components_affected,
        )
        session.decision_history.append(entry)
        session.touch()
        return entry

    # Serialization

    def serialize_session(self, session_id: str) -> SessionView:
        """Serialize a session for clients."""
        return serialize_session(self.get_session(session_id))


def serialize_session(session: DesignSession) -> SessionView:
    """Convert a session into its client view (components as a list)."""
    return SessionView(
        id=session.id,
        messages=list(session.messages),
        components=list(session.components.values()),
        screen=session.screen,
        decision_history=list(session.decision_history),
    )
