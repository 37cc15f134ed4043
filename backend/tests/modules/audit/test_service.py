# tests/modules/audit/test_service.py
"""
Tests unitaires pour modules.audit.service

Couverture :
    require_reason → nettoyage, longueur minimale
    snapshot       → objet ORM (colonnes uniquement), SimpleNamespace, None,
                     valeurs Decimal / date rendues sérialisables
    list_entries   → filtres transmis, pagination par défaut, from_ts > to_ts
"""
import pytest
from datetime import date, datetime, timezone
from decimal import Decimal
from types import SimpleNamespace
from unittest.mock import AsyncMock

from battleboard.modules.audit.service import AuditService, require_reason, snapshot
from battleboard.shared.exceptions import ValidationError
from battleboard.shared.models import DailyRecord
from tests.conftest import make_async_db, make_audit_entry

pytestmark = pytest.mark.service

service = AuditService()

SVC = "battleboard.modules.audit.service"


# ── require_reason ────────────────────────────────────────────────────────────

class TestRequireReason:
    def test_require_reason_nettoie(self):
        assert require_reason("  Correction de saisie  ") == "Correction de saisie"

    @pytest.mark.parametrize("reason", [None, "", "    ", "abcd", " ab  "])
    def test_require_reason_trop_courte(self, reason):
        with pytest.raises(ValidationError):
            require_reason(reason)

    def test_require_reason_limite_exacte(self):
        assert require_reason("abcde") == "abcde"


# ── snapshot ──────────────────────────────────────────────────────────────────

class TestSnapshot:
    def test_snapshot_objet_orm(self):
        record = DailyRecord(
            id=4,
            record_key="2025-03-10_p1",
            participant_id="p1",
            date=date(2025, 3, 10),
            source="company",
            leads=3,
            payins=1,
            sales=Decimal("120.50"),
            voided=False,
            approved=False,
            version=1,
        )
        state = snapshot(record)
        assert state["id"] == 4
        assert state["date"] == "2025-03-10"
        assert state["sales"] == 120.5
        assert "participant" not in state

    def test_snapshot_simplenamespace(self):
        obj = SimpleNamespace(id=1, at=datetime(2025, 3, 10, 8, 0, tzinfo=timezone.utc), _private=True)
        assert snapshot(obj) == {"id": 1, "at": "2025-03-10T08:00:00+00:00"}

    def test_snapshot_none(self):
        assert snapshot(None) is None


# ── list_entries ──────────────────────────────────────────────────────────────

class TestListEntries:
    @pytest.mark.asyncio
    async def test_list_entries_filtres_transmis(self, mocker):
        mock_list = mocker.patch(f"{SVC}.repo.list", AsyncMock(return_value=([make_audit_entry()], 1)))
        db = make_async_db()

        result = await service.list_entries(db, entity_type="daily_record", entity_id="1", action="edit")

        mock_list.assert_awaited_once_with(
            db,
            entity_type="daily_record",
            entity_id="1",
            action="edit",
            actor_id=None,
            from_ts=None,
            to_ts=None,
            limit=200,
            offset=0,
        )
        assert result["total"] == 1
        assert result["limit"] == 200
        assert len(result["items"]) == 1

    @pytest.mark.asyncio
    async def test_list_entries_plage_invalide(self, mocker):
        mock_list = mocker.patch(f"{SVC}.repo.list", AsyncMock(return_value=([], 0)))
        with pytest.raises(ValidationError):
            await service.list_entries(
                make_async_db(),
                from_ts=datetime(2025, 3, 2, tzinfo=timezone.utc),
                to_ts=datetime(2025, 3, 1, tzinfo=timezone.utc),
            )
        mock_list.assert_not_awaited()
