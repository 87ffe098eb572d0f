"""Tests for component reference resolution."""

import pytest

from pagecraft.core.errors import ReferenceNotFoundError
from pagecraft.core.reference_resolver import (
    find_components_by_name,
    resolve_component_by_exact_name,
    resolve_component_id,
)
from pagecraft.db.design_sessions import SessionStore
from tests.fixtures_design import ids_by_name, seed_session


class TestResolveComponentId:
    def test_first_match_by_insertion_order(self, store: SessionStore):
        session = seed_session(store, ["Header", "Header Section"])
        ids = ids_by_name(session)

        for reference in ["header", "HEADER", "Header"]:
            assert resolve_component_id(session, reference) == ids["Header"]

    def test_repeated_calls_are_stable(self, store: SessionStore):
        session = seed_session(store, ["Header", "Header Section"])

        results = {resolve_component_id(session, "header") for _ in range(5)}

        assert len(results) == 1

    def test_more_specific_reference_matches_longer_name(self, store: SessionStore):
        session = seed_session(store, ["Header", "Header Section"])

        assert resolve_component_id(session, "header section") == ids_by_name(session)[
            "Header Section"
        ]

    def test_substring_match(self, store: SessionStore):
        session = seed_session(store, ["Hero Banner", "Pricing Table"])

        assert resolve_component_id(session, "pricing") == ids_by_name(session)["Pricing Table"]

    def test_id_shaped_reference_returned_verbatim(self, store: SessionStore):
        session = seed_session(store, ["Header"])
        unknown_id = "123e4567-e89b-12d3-a456-426614174000"

        assert resolve_component_id(session, unknown_id) == unknown_id

    def test_no_match_raises_not_found(self, store: SessionStore):
        session = seed_session(store, ["Header"])

        with pytest.raises(ReferenceNotFoundError) as exc_info:
            resolve_component_id(session, "footer")

        assert exc_info.value.code == "NOT_FOUND"
        assert exc_info.value.reference == "footer"


class TestNameLookups:
    def test_find_components_by_name_returns_all_matches(self, store: SessionStore):
        session = seed_session(store, ["Header", "Footer", "Header Section"])

        names = [c.name for c in find_components_by_name(session, "head")]

        assert names == ["Header", "Header Section"]

    def test_exact_name_is_case_insensitive(self, store: SessionStore):
        session = seed_session(store, ["Header", "Header Section"])

        match = resolve_component_by_exact_name(session.components.values(), "header section")

        assert match is not None
        assert match.name == "Header Section"

    def test_exact_name_does_not_substring_match(self, store: SessionStore):
        session = seed_session(store, ["Header Section"])

        assert resolve_component_by_exact_name(session.components.values(), "header") is None
