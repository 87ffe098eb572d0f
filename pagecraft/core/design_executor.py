"""Execute normalized agent decisions against a design session.

All component generations in one batch run concurrently and are joined with a
settle-all gather: one failure never cancels its siblings. Components are
persisted and the screen is recomposed only after the whole batch settled.
"""

import asyncio
from collections.abc import Awaitable, Sequence
from dataclasses import dataclass, field
from typing import Generic, TypeVar

from pagecraft.chains.generate_component import create_component, update_component
from pagecraft.core.composer import compose_screen
from pagecraft.core.errors import (
    DesignEngineError,
    GenerationError,
    ReferenceNotFoundError,
    UnknownUnitError,
)
from pagecraft.core.logging import get_logger
from pagecraft.core.reference_resolver import (
    resolve_component_by_exact_name,
    resolve_component_id,
)
from pagecraft.core.schemas_design import (
    AgentDecision,
    Component,
    ComponentRef,
    ComponentUpdate,
    DecisionAction,
    ExecutionFailure,
    ExecutionReport,
    LayoutConfig,
    LayoutSpec,
    LayoutType,
    NewComponentSpec,
)
from pagecraft.db.design_sessions import SessionStore

logger = get_logger(__name__)

T = TypeVar("T")


@dataclass
class SettledBatch(Generic[T]):
    """Results of a settle-all join, split by outcome and keyed by task index."""

    successes: list[tuple[int, T]] = field(default_factory=list)
    failures: list[tuple[int, Exception]] = field(default_factory=list)


async def settle_all(tasks: Sequence[Awaitable[T]]) -> SettledBatch[T]:
    """Run all tasks concurrently and wait for every one of them to finish."""
    results = await asyncio.gather(*tasks, return_exceptions=True)

    batch: SettledBatch[T] = SettledBatch()
    for index, result in enumerate(results):
        if isinstance(result, Exception):
            batch.failures.append((index, result))
        elif isinstance(result, BaseException):
            raise result
        else:
            batch.successes.append((index, result))
    return batch


@dataclass
class UpdateJob:
    """All requested changes to one existing component."""

    component: Component
    reference: str
    updates: list[ComponentUpdate] = field(default_factory=list)

    @property
    def change_description(self) -> str:
        if len(self.updates) == 1:
            return self.updates[0].change_description
        return "\n".join(f"{i + 1}. {u.change_description}" for i, u in enumerate(self.updates))


def _failure(target: str, error: Exception) -> ExecutionFailure:
    if isinstance(error, DesignEngineError):
        return ExecutionFailure(code=error.code, target=target, message=error.message)
    return ExecutionFailure(code=type(error).__name__, target=target, message=str(error))


def _resolve_layout_config(
    layout: LayoutSpec | None,
    candidates: list[Component],
    fallback: LayoutConfig | None,
    report: ExecutionReport,
) -> LayoutConfig | None:
    """Resolve role bindings by exact component name, falling back per role."""
    if layout is None:
        return fallback

    def bind(name: str | None, current: str | None) -> str | None:
        if not name:
            return current
        match = resolve_component_by_exact_name(candidates, name)
        if match is None:
            logger.warning(f"Could not resolve layout role component: {name}")
            report.failures.append(_failure(name, ReferenceNotFoundError(name)))
            return None
        return match.id

    fallback = fallback or LayoutConfig()
    config = LayoutConfig(
        header_component_id=bind(layout.header_component, fallback.header_component_id),
        sidebar_component_id=bind(layout.sidebar_component, fallback.sidebar_component_id),
        footer_component_id=bind(layout.footer_component, fallback.footer_component_id),
    )
    return config if config.bound_ids() else None


def _compose(
    store: SessionStore,
    session_id: str,
    component_ids: list[str],
    layout: LayoutType,
    layout_config: LayoutConfig | None,
    report: ExecutionReport,
) -> None:
    try:
        compose_screen(store, session_id, component_ids, layout, layout_config)
        report.composed = True
    except UnknownUnitError as e:
        logger.warning(f"Failed to compose screen: {e.message}", extra={"session_id": session_id})
        report.failures.append(_failure(e.component_id, e))


async def execute_regeneration(
    store: SessionStore,
    session_id: str,
    specs: list[NewComponentSpec],
    layout: LayoutSpec | None = None,
) -> ExecutionReport:
    """
    Replace the whole design with freshly generated components.

    Failed components are dropped; the survivors are composed in spec order.

    Raises:
        GenerationError: If no component could be created
    """
    report = ExecutionReport(
        action=DecisionAction.REGENERATE_SCREEN,
        requested=[spec.name for spec in specs],
    )

    store.clear_design(session_id)

    logger.info(f"Generating {len(specs)} components in parallel", extra={"session_id": session_id})
    batch = await settle_all([create_component(spec) for spec in specs])

    for index, error in batch.failures:
        logger.warning(f"Failed to create {specs[index].name}: {error}")
        report.failures.append(_failure(specs[index].name, error))

    created = [store.upsert_component(session_id, component) for _, component in batch.successes]
    report.created = [ComponentRef(id=c.id, name=c.name) for c in created]

    if not created:
        raise GenerationError(
            "Failed to create any components",
            details={"failures": [f.model_dump() for f in report.failures]},
        )

    logger.info(
        f"Successfully created {len(created)}/{len(specs)} components",
        extra={"session_id": session_id},
    )

    layout_config = _resolve_layout_config(layout, created, None, report)
    _compose(
        store,
        session_id,
        [c.id for c in created],
        layout.type if layout else LayoutType.STACK,
        layout_config,
        report,
    )
    return report


async def execute_update(
    store: SessionStore,
    session_id: str,
    decision: AgentDecision,
) -> ExecutionReport:
    """
    Apply updates, add new components, and recompose as the decision requires.

    Unresolvable references and failed generations are recorded in the report
    and skipped.
    """
    session = store.get_session(session_id)
    report = ExecutionReport(
        action=DecisionAction.UPDATE_COMPONENTS,
        requested=[u.component_id for u in decision.updates]
        + [spec.name for spec in decision.new_components],
    )

    # One job per component: updates resolving to the same id are merged
    update_jobs: dict[str, UpdateJob] = {}
    for update in decision.updates:
        try:
            component_id = resolve_component_id(session, update.component_id)
        except ReferenceNotFoundError as e:
            logger.warning(f"Could not resolve component: {update.component_id}")
            report.failures.append(_failure(update.component_id, e))
            continue

        component = session.components.get(component_id)
        if component is None:
            logger.warning(f"Component {component_id} not found for update")
            report.failures.append(_failure(update.component_id, UnknownUnitError(component_id)))
            continue

        job = update_jobs.get(component_id)
        if job is None:
            update_jobs[component_id] = UpdateJob(component, update.component_id, [update])
        else:
            logger.info(f"Merging repeated update for {component.name}")
            job.updates.append(update)

    jobs = list(update_jobs.values())
    if jobs:
        logger.info(f"Updating {len(jobs)} components in parallel")
    if decision.new_components:
        logger.info(f"Creating {len(decision.new_components)} new components in parallel")

    tasks = [update_component(job.component, job.change_description) for job in jobs]
    tasks += [create_component(spec) for spec in decision.new_components]
    batch = await settle_all(tasks)

    update_count = len(jobs)
    for index, error in batch.failures:
        if index < update_count:
            target = jobs[index].reference
            logger.warning(f"Failed to update {target}: {error}")
        else:
            target = decision.new_components[index - update_count].name
            logger.warning(f"Failed to create {target}: {error}")
        report.failures.append(_failure(target, error))

    created: list[Component] = []
    for index, component in batch.successes:
        store.upsert_component(session_id, component)
        ref = ComponentRef(id=component.id, name=component.name)
        if index < update_count:
            report.updated.append(ref)
        else:
            created.append(component)
            report.created.append(ref)

    logger.info(
        f"Completed: {len(report.updated)} updates, {len(created)} new components",
        extra={"session_id": session_id},
    )

    current_screen = session.screen
    layout_type = (
        decision.layout.type
        if decision.layout
        else (current_screen.layout if current_screen else LayoutType.STACK)
    )
    layout_config = _resolve_layout_config(
        decision.layout,
        list(session.components.values()),
        current_screen.layout_config if current_screen else None,
        report,
    )

    if decision.screen_order:
        ordered_ids: list[str] = []
        for reference in decision.screen_order:
            new_match = resolve_component_by_exact_name(created, reference)
            if new_match is not None:
                component_id = new_match.id
            else:
                try:
                    component_id = resolve_component_id(session, reference)
                except ReferenceNotFoundError as e:
                    logger.warning(f"Could not resolve component in order: {reference}")
                    report.failures.append(_failure(reference, e))
                    continue
            if component_id not in ordered_ids:
                ordered_ids.append(component_id)

        if ordered_ids:
            _compose(store, session_id, ordered_ids, layout_type, layout_config, report)
    elif created:
        existing_ids = list(current_screen.component_ids) if current_screen else []
        _compose(
            store,
            session_id,
            existing_ids + [c.id for c in created],
            layout_type,
            layout_config,
            report,
        )
    elif decision.layout and current_screen:
        _compose(
            store,
            session_id,
            list(current_screen.component_ids),
            layout_type,
            layout_config,
            report,
        )

    return report
