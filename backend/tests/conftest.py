# tests/conftest.py
"""
Fixtures et factories partagées sur l'ensemble de la suite de tests.

Trois couches :
    1. Engine  — fonctions pures, aucun mock nécessaire (factories SimpleNamespace / dicts)
    2. Service — mocks AsyncSession + repos via pytest-mock
    3. Router  — httpx.AsyncClient + dependency_overrides FastAPI
"""
import pytest
from types import SimpleNamespace
from datetime import date, datetime, timezone
from unittest.mock import AsyncMock, MagicMock

from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession

from battleboard.main import app
from battleboard.core.database import get_db
from battleboard.shared.deps import _get_profile_from_token


# ── Formule de référence ──────────────────────────────────────────────────────

def leaders_config() -> dict:
    """leads 500 → 400 pts, sales 3 000 000 → 600 pts (Σ = 1000)."""
    return {
        "metrics": [
            {"key": "leads", "divisor": 500, "maxPoints": 400},
            {"key": "sales", "divisor": 3_000_000, "maxPoints": 600},
        ]
    }


def depots_config() -> dict:
    """Formule dépôt : payins absent (Σ = 1000)."""
    return {
        "metrics": [
            {"key": "leads", "divisor": 100, "maxPoints": 500},
            {"key": "sales", "divisor": 1000, "maxPoints": 500},
        ]
    }


# ── Entités ───────────────────────────────────────────────────────────────────

def make_profile(**kwargs) -> SimpleNamespace:
    defaults = dict(
        user_id="admin-1",
        email="admin@example.com",
        role="admin",
        depot_id=None,
    )
    defaults.update(kwargs)
    return SimpleNamespace(**defaults)


def make_super_admin(**kwargs) -> SimpleNamespace:
    defaults = dict(user_id="super-1", email="super@example.com", role="super_admin")
    defaults.update(kwargs)
    return make_profile(**defaults)


def make_participant(**kwargs) -> SimpleNamespace:
    defaults = dict(
        id="p1",
        name="Alice Martin",
        photo_url=None,
        company_id="c1",
        platoon_id="t1",
        upline_agent_id=None,
        role="platoon",
    )
    defaults.update(kwargs)
    return SimpleNamespace(**defaults)


def make_depot(**kwargs) -> SimpleNamespace:
    defaults = dict(id="d1", name="Depot Nord", photo_url=None)
    defaults.update(kwargs)
    return SimpleNamespace(**defaults)


def make_company(**kwargs) -> SimpleNamespace:
    defaults = dict(id="c1", name="Alpha Company", photo_url=None)
    defaults.update(kwargs)
    return SimpleNamespace(**defaults)


def make_platoon(**kwargs) -> SimpleNamespace:
    defaults = dict(id="t1", name="Platoon Bravo", photo_url=None)
    defaults.update(kwargs)
    return SimpleNamespace(**defaults)


def make_record(**kwargs) -> SimpleNamespace:
    defaults = dict(
        id=1,
        record_key="2025-03-10_p1",
        participant_id="p1",
        date=date(2025, 3, 10),
        source="company",
        leads=10,
        payins=2,
        sales=500.0,
        leads_depot_id="d1",
        sales_depot_id="d1",
        voided=False,
        void_reason=None,
        voided_at=None,
        voided_by=None,
        approved=False,
        approved_at=None,
        approved_by=None,
        version=1,
        created_at=datetime(2025, 3, 10, tzinfo=timezone.utc),
        updated_at=None,
    )
    defaults.update(kwargs)
    return SimpleNamespace(**defaults)


def make_formula(**kwargs) -> SimpleNamespace:
    defaults = dict(
        id=1,
        name="Leaders S1",
        battle_type="leaders",
        status="published",
        effective_start_week_key="2025-W01",
        effective_end_week_key=None,
        config=leaders_config(),
        version=1,
        created_by="super-1",
        published_at=datetime(2025, 1, 1, tzinfo=timezone.utc),
        published_by="super-1",
        created_at=datetime(2025, 1, 1, tzinfo=timezone.utc),
        updated_at=None,
    )
    defaults.update(kwargs)
    return SimpleNamespace(**defaults)


def make_week(**kwargs) -> SimpleNamespace:
    defaults = dict(
        week_key="2025-W11",
        start_date=date(2025, 3, 10),
        end_date=date(2025, 3, 16),
        status="open",
        finalized_at=None,
        finalized_by=None,
        finalize_reason=None,
        reopened_at=None,
        reopened_by=None,
        reopen_reason=None,
    )
    defaults.update(kwargs)
    return SimpleNamespace(**defaults)


def make_audit_entry(**kwargs) -> SimpleNamespace:
    defaults = dict(
        id=1,
        entity_type="daily_record",
        entity_id="1",
        action="edit",
        reason="Correction de saisie",
        actor_id="admin-1",
        before={"leads": 10},
        after={"leads": 12},
        created_at=datetime(2025, 3, 11, tzinfo=timezone.utc),
    )
    defaults.update(kwargs)
    return SimpleNamespace(**defaults)


# ── AsyncSession simulée ──────────────────────────────────────────────────────

def make_async_db() -> AsyncMock:
    """
    AsyncMock simulant une AsyncSession SQLAlchemy.
    add() capture les objets, flush() leur attribue un id.
    """
    db = AsyncMock(spec=AsyncSession)
    added_objects: list = []
    db.added = added_objects

    db.add = MagicMock(side_effect=added_objects.append)

    async def flush_side_effect():
        for i, obj in enumerate(added_objects, start=1):
            if getattr(obj, "id", None) is None and hasattr(obj, "id"):
                obj.id = i

    db.flush = AsyncMock(side_effect=flush_side_effect)
    db.refresh = AsyncMock(return_value=None)
    db.commit = AsyncMock(return_value=None)
    db.rollback = AsyncMock(return_value=None)
    return db


def audit_entries(db) -> list:
    """Entrées d'audit ajoutées à la session simulée."""
    from battleboard.shared.models import AuditEntry
    return [o for o in db.added if isinstance(o, AuditEntry)]


# ── Clients HTTP ──────────────────────────────────────────────────────────────

async def _client_as(profile):
    mock_db = make_async_db()
    app.dependency_overrides[get_db] = lambda: mock_db
    if profile is not None:
        app.dependency_overrides[_get_profile_from_token] = lambda: profile
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
async def client():
    """Client sans auth — endpoints publics, ou vérification du 401/403."""
    async for c in _client_as(None):
        yield c


@pytest.fixture
async def user_client():
    """Client authentifié avec le rôle user (aucun droit d'administration)."""
    async for c in _client_as(make_profile(user_id="user-1", role="user")):
        yield c


@pytest.fixture
async def admin_client():
    """Client authentifié comme admin."""
    async for c in _client_as(make_profile()):
        yield c


@pytest.fixture
async def super_admin_client():
    """Client authentifié comme super_admin."""
    async for c in _client_as(make_super_admin()):
        yield c
