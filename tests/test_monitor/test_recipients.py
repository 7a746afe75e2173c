"""Tests for RecipientResolver — policies, dedup, admin caching."""

from __future__ import annotations

import datetime
from decimal import Decimal

import pytest

from src.core.types import CreditSubject, DocumentSubject
from src.monitor.exceptions import RecipientResolutionError
from src.monitor.recipients import RecipientPolicy, RecipientResolver
from src.monitor.types import RecipientRole
from src.store.memory import FailurePlan, InMemoryStore


def _person(id: str = "u1") -> CreditSubject:
    return CreditSubject(id=id, name="Ana", limit_amount=Decimal(1000))


def _doc() -> DocumentSubject:
    return DocumentSubject(
        id="doc1", owner_profile_id="p1", expiration_date=datetime.date(2026, 10, 17),
    )


def _store(*admins: str, failures: FailurePlan | None = None) -> InMemoryStore:
    store = InMemoryStore(failures)
    for admin in admins:
        store.add_admin(admin)
    return store


class TestPolicies:
    async def test_subject_and_admins(self) -> None:
        resolver = RecipientResolver(
            _store("a1", "a2"), RecipientPolicy.SUBJECT_AND_ADMINS,
        )
        recipients = await resolver.resolve(_person())
        assert [(r.id, r.role) for r in recipients] == [
            ("u1", RecipientRole.SUBJECT),
            ("a1", RecipientRole.ADMIN),
            ("a2", RecipientRole.ADMIN),
        ]

    async def test_admins_only(self) -> None:
        resolver = RecipientResolver(_store("a1", "a2"), RecipientPolicy.ADMINS_ONLY)
        recipients = await resolver.resolve(_doc())
        assert [r.id for r in recipients] == ["a1", "a2"]
        assert all(r.role == RecipientRole.ADMIN for r in recipients)

    async def test_admins_only_ignores_person_subject(self) -> None:
        resolver = RecipientResolver(_store("a1"), RecipientPolicy.ADMINS_ONLY)
        recipients = await resolver.resolve(_person())
        assert [r.id for r in recipients] == ["a1"]

    async def test_document_never_notifies_owner(self) -> None:
        resolver = RecipientResolver(_store("a1"), RecipientPolicy.SUBJECT_AND_ADMINS)
        recipients = await resolver.resolve(_doc())
        assert [r.id for r in recipients] == ["a1"]

    async def test_no_admins(self) -> None:
        resolver = RecipientResolver(_store(), RecipientPolicy.ADMINS_ONLY)
        assert await resolver.resolve(_doc()) == []


class TestDedup:
    async def test_subject_who_is_admin_notified_once(self) -> None:
        resolver = RecipientResolver(
            _store("a1", "u1"), RecipientPolicy.SUBJECT_AND_ADMINS,
        )
        recipients = await resolver.resolve(_person("u1"))
        assert [r.id for r in recipients] == ["u1", "a1"]
        assert recipients[0].role == RecipientRole.SUBJECT


class TestAdminLoading:
    async def test_failure_raises_resolution_error(self) -> None:
        store = _store("a1", failures=FailurePlan(read_errors={"read_administrator_ids"}))
        resolver = RecipientResolver(store, RecipientPolicy.ADMINS_ONLY)
        with pytest.raises(RecipientResolutionError):
            await resolver.resolve(_doc())

    async def test_failure_not_cached(self) -> None:
        failures = FailurePlan(read_errors={"read_administrator_ids"})
        store = _store("a1", failures=failures)
        resolver = RecipientResolver(store, RecipientPolicy.ADMINS_ONLY)
        with pytest.raises(RecipientResolutionError):
            await resolver.resolve(_doc())

        failures.read_errors.clear()
        recipients = await resolver.resolve(_doc())
        assert [r.id for r in recipients] == ["a1"]

    async def test_admins_read_once(self) -> None:
        store = _store("a1")
        resolver = RecipientResolver(store, RecipientPolicy.ADMINS_ONLY)
        await resolver.resolve(_doc())
        # Later role changes are not seen by the same resolver.
        store.add_admin("a2")
        recipients = await resolver.resolve(_doc())
        assert [r.id for r in recipients] == ["a1"]
