"""Compose the screen from an ordered list of component IDs."""

from pagecraft.core.errors import UnknownUnitError
from pagecraft.core.logging import get_logger
from pagecraft.core.schemas_design import LayoutConfig, LayoutType, Screen
from pagecraft.db.design_sessions import SessionStore

logger = get_logger(__name__)


def compose_screen(
    store: SessionStore,
    session_id: str,
    component_ids: list[str],
    layout: LayoutType = LayoutType.STACK,
    layout_config: LayoutConfig | None = None,
) -> Screen:
    """
    Validate component references and replace the session's screen.

    Nothing is written unless every ID in the order and every role binding
    exists in the session.

    Args:
        store: Session store
        session_id: Session to compose
        component_ids: Component IDs in render order
        layout: Layout type
        layout_config: Optional header/sidebar/footer bindings

    Returns:
        The new Screen

    Raises:
        SessionNotFoundError: If the session does not exist
        UnknownUnitError: If any referenced component does not exist
    """
    session = store.get_session(session_id)

    referenced = list(component_ids)
    if layout_config:
        referenced.extend(layout_config.bound_ids())

    for component_id in referenced:
        if component_id not in session.components:
            logger.warning(
                f"Compose rejected, unknown component {component_id}",
                extra={"session_id": session_id},
            )
            raise UnknownUnitError(component_id)

    screen = Screen(
        component_ids=list(component_ids),
        layout=layout,
        layout_config=layout_config,
    )
    store.update_screen(session_id, screen)

    logger.info(
        f"Composed screen with {len(component_ids)} components ({layout.value})",
        extra={"session_id": session_id},
    )
    return screen
