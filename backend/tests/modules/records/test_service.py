# tests/modules/records/test_service.py
"""
Tests unitaires pour modules.records.service — RecordService.

Couverture :
    get          → succès + NotFoundError
    edit         → UPDATE versionné + audit, raison manquante (aucune écriture),
                   version obsolète → ConflictError, semaine finalisée → WeekFinalizedError,
                   dépôt inconnu, valeurs identiques, enregistrement annulé
    void/unvoid  → transitions + conflit d'unicité à la restauration
    set_approval → super_admin uniquement, ligne company absente, état déjà atteint
    import_rows  → insert / update / unchanged, lignes en erreur, semaine finalisée,
                   leads / payins fractionnaires rejetés, IntegrityError → ConflictError
    DailyRecord  → participant_id non nul, suppression du participant restreinte
"""
import pytest
from unittest.mock import AsyncMock

from sqlalchemy.exc import IntegrityError

from battleboard.modules.records.schemas import (
    ImportIn,
    PairApprovalIn,
    RecordEditIn,
    RecordReasonIn,
)
from battleboard.modules.records.service import RecordService
from battleboard.shared.exceptions import (
    ConflictError,
    NotFoundError,
    ValidationError,
    WeekFinalizedError,
)
from battleboard.shared.models import DailyRecord
from tests.conftest import (
    audit_entries,
    make_async_db,
    make_depot,
    make_participant,
    make_profile,
    make_record,
    make_super_admin,
)

pytestmark = pytest.mark.service

service = RecordService()

SVC = "battleboard.modules.records.service"


@pytest.fixture
def week_open(mocker):
    return mocker.patch(f"{SVC}.week_repo.finalized_keys", AsyncMock(return_value=[]))


@pytest.fixture
def known_depots(mocker):
    return mocker.patch(
        f"{SVC}.directory_repo.list_depots",
        AsyncMock(return_value=[make_depot(id="d1"), make_depot(id="d2", name="Depot Sud")]),
    )


@pytest.fixture
def directory(mocker, known_depots):
    mocker.patch(f"{SVC}.directory_repo.list_participants", AsyncMock(return_value=[
        make_participant(id="p1", name="Alice Martin"),
        make_participant(id="p2", name="Bruno Petit"),
    ]))
    mocker.patch(f"{SVC}.directory_repo.list_companies", AsyncMock(return_value=[]))
    mocker.patch(f"{SVC}.directory_repo.list_platoons", AsyncMock(return_value=[]))


def _import(*rows, **kwargs):
    defaults = dict(rows=list(rows), reason="Import hebdomadaire")
    defaults.update(kwargs)
    return ImportIn(**defaults)


def _row(**kwargs):
    row = dict(date="2025-03-10", leader_name="Alice Martin", leads=5, payins=1, sales=100,
               leads_depot_id="d1", sales_depot_id="d1")
    row.update(kwargs)
    return row


def _approval(**kwargs):
    defaults = dict(date="2025-03-10", participant_id="p1", reason="Validé avec le dépôt")
    defaults.update(kwargs)
    return PairApprovalIn(**defaults)


# ── get ───────────────────────────────────────────────────────────────────────

class TestGet:
    @pytest.mark.asyncio
    async def test_get_retourne_enregistrement(self, mocker):
        mocker.patch(f"{SVC}.repo.get", AsyncMock(return_value=make_record(id=7)))
        result = await service.get(make_async_db(), 7)
        assert result.id == 7

    @pytest.mark.asyncio
    async def test_get_introuvable(self, mocker):
        mocker.patch(f"{SVC}.repo.get", AsyncMock(return_value=None))
        with pytest.raises(NotFoundError):
            await service.get(make_async_db(), 999)


# ── edit ──────────────────────────────────────────────────────────────────────

class TestEdit:
    @pytest.mark.asyncio
    async def test_edit_succes_audit_et_commit(self, mocker, week_open, known_depots):
        record = make_record()
        mocker.patch(f"{SVC}.repo.get", AsyncMock(return_value=record))
        mock_update = mocker.patch(f"{SVC}.repo.update_versioned", AsyncMock(return_value=True))
        db = make_async_db()

        payload = RecordEditIn(leads=12, sales_depot_id="d2", expected_version=1, reason="Correction de saisie")
        result = await service.edit(db, 1, payload, make_profile())

        assert result is record
        mock_update.assert_awaited_once_with(db, 1, 1, {"leads": 12, "sales_depot_id": "d2"})
        [entry] = audit_entries(db)
        assert entry.action == "edit"
        assert entry.entity_type == "daily_record"
        assert entry.entity_id == "1"
        assert entry.reason == "Correction de saisie"
        assert entry.actor_id == "admin-1"
        assert entry.before["leads"] == 10
        assert entry.after["leads"] == 12
        assert entry.after["version"] == 2
        db.commit.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_edit_raison_manquante_aucune_ecriture(self, mocker):
        mock_get = mocker.patch(f"{SVC}.repo.get", AsyncMock(return_value=make_record()))
        mock_update = mocker.patch(f"{SVC}.repo.update_versioned", AsyncMock(return_value=True))
        db = make_async_db()

        with pytest.raises(ValidationError):
            await service.edit(db, 1, RecordEditIn(leads=12, expected_version=1, reason="  "), make_profile())

        mock_get.assert_not_awaited()
        mock_update.assert_not_awaited()
        db.commit.assert_not_awaited()
        assert audit_entries(db) == []

    @pytest.mark.asyncio
    async def test_edit_aucun_champ(self, mocker):
        with pytest.raises(ValidationError):
            await service.edit(make_async_db(), 1, RecordEditIn(expected_version=1, reason="Correction"), make_profile())

    @pytest.mark.asyncio
    async def test_edit_version_obsolete(self, mocker, week_open, known_depots):
        mocker.patch(f"{SVC}.repo.get", AsyncMock(return_value=make_record(version=3)))
        mocker.patch(f"{SVC}.repo.update_versioned", AsyncMock(return_value=False))
        db = make_async_db()

        with pytest.raises(ConflictError):
            await service.edit(db, 1, RecordEditIn(leads=99, expected_version=2, reason="Correction"), make_profile())

        db.commit.assert_not_awaited()
        assert audit_entries(db) == []

    @pytest.mark.asyncio
    async def test_edit_semaine_finalisee(self, mocker, known_depots):
        mocker.patch(f"{SVC}.repo.get", AsyncMock(return_value=make_record()))
        mocker.patch(f"{SVC}.week_repo.finalized_keys", AsyncMock(return_value=["2025-W11"]))
        mock_update = mocker.patch(f"{SVC}.repo.update_versioned", AsyncMock(return_value=True))

        with pytest.raises(WeekFinalizedError) as exc:
            await service.edit(make_async_db(), 1, RecordEditIn(leads=1, expected_version=1, reason="Correction"), make_profile())

        assert exc.value.week_key == "2025-W11"
        mock_update.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_edit_depot_inconnu(self, mocker, week_open, known_depots):
        mocker.patch(f"{SVC}.repo.get", AsyncMock(return_value=make_record()))
        with pytest.raises(ValidationError, match="d9"):
            await service.edit(
                make_async_db(), 1,
                RecordEditIn(leads_depot_id="d9", expected_version=1, reason="Correction"),
                make_profile(),
            )

    @pytest.mark.asyncio
    async def test_edit_valeurs_identiques(self, mocker, week_open, known_depots):
        mocker.patch(f"{SVC}.repo.get", AsyncMock(return_value=make_record(sales=500.0)))
        with pytest.raises(ValidationError):
            await service.edit(
                make_async_db(), 1,
                RecordEditIn(leads=10, sales=500, expected_version=1, reason="Correction"),
                make_profile(),
            )

    @pytest.mark.asyncio
    async def test_edit_enregistrement_annule(self, mocker):
        mocker.patch(f"{SVC}.repo.get", AsyncMock(return_value=make_record(voided=True)))
        with pytest.raises(ConflictError):
            await service.edit(make_async_db(), 1, RecordEditIn(leads=1, expected_version=1, reason="Correction"), make_profile())

    @pytest.mark.asyncio
    async def test_edit_integrity_error_rollback(self, mocker, week_open, known_depots):
        mocker.patch(f"{SVC}.repo.get", AsyncMock(return_value=make_record()))
        mocker.patch(f"{SVC}.repo.update_versioned", AsyncMock(return_value=True))
        db = make_async_db()
        db.commit = AsyncMock(side_effect=IntegrityError("UPDATE", {}, Exception("duplicate")))

        with pytest.raises(ConflictError):
            await service.edit(db, 1, RecordEditIn(leads=1, expected_version=1, reason="Correction"), make_profile())

        db.rollback.assert_awaited_once()


# ── void / unvoid ─────────────────────────────────────────────────────────────

class TestVoidUnvoid:
    @pytest.mark.asyncio
    async def test_void_succes(self, mocker, week_open):
        mocker.patch(f"{SVC}.repo.get", AsyncMock(return_value=make_record()))
        mock_update = mocker.patch(f"{SVC}.repo.update_versioned", AsyncMock(return_value=True))
        db = make_async_db()

        await service.void(db, 1, RecordReasonIn(reason="Doublon saisi", expected_version=1), make_profile())

        values = mock_update.await_args[0][3]
        assert values["voided"] is True
        assert values["void_reason"] == "Doublon saisi"
        assert values["voided_by"] == "admin-1"
        [entry] = audit_entries(db)
        assert entry.action == "void"
        assert entry.after["voided"] is True
        assert isinstance(entry.after["voided_at"], str)

    @pytest.mark.asyncio
    async def test_void_deja_annule(self, mocker):
        mocker.patch(f"{SVC}.repo.get", AsyncMock(return_value=make_record(voided=True)))
        with pytest.raises(ConflictError):
            await service.void(make_async_db(), 1, RecordReasonIn(reason="Doublon", expected_version=1), make_profile())

    @pytest.mark.asyncio
    async def test_unvoid_succes(self, mocker, week_open):
        mocker.patch(f"{SVC}.repo.get", AsyncMock(return_value=make_record(voided=True, void_reason="x")))
        mocker.patch(f"{SVC}.repo.get_active", AsyncMock(return_value=None))
        mock_update = mocker.patch(f"{SVC}.repo.update_versioned", AsyncMock(return_value=True))
        db = make_async_db()

        await service.unvoid(db, 1, RecordReasonIn(reason="Annulation par erreur", expected_version=1), make_profile())

        assert mock_update.await_args[0][3]["voided"] is False
        assert audit_entries(db)[0].action == "unvoid"

    @pytest.mark.asyncio
    async def test_unvoid_enregistrement_actif_existant(self, mocker, week_open):
        mocker.patch(f"{SVC}.repo.get", AsyncMock(return_value=make_record(voided=True)))
        mocker.patch(f"{SVC}.repo.get_active", AsyncMock(return_value=make_record(id=2)))
        mock_update = mocker.patch(f"{SVC}.repo.update_versioned", AsyncMock(return_value=True))

        with pytest.raises(ConflictError):
            await service.unvoid(make_async_db(), 1, RecordReasonIn(reason="Restauration", expected_version=1), make_profile())
        mock_update.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_unvoid_non_annule(self, mocker):
        mocker.patch(f"{SVC}.repo.get", AsyncMock(return_value=make_record()))
        with pytest.raises(ConflictError):
            await service.unvoid(make_async_db(), 1, RecordReasonIn(reason="Restauration", expected_version=1), make_profile())


# ── set_approval ──────────────────────────────────────────────────────────────

class TestSetApproval:
    @pytest.mark.asyncio
    async def test_approve_super_admin(self, mocker, week_open):
        record = make_record(version=4)
        mock_active = mocker.patch(f"{SVC}.repo.get_active", AsyncMock(return_value=record))
        mock_update = mocker.patch(f"{SVC}.repo.update_versioned", AsyncMock(return_value=True))
        db = make_async_db()

        await service.set_approval(db, _approval(), True, make_super_admin())

        assert mock_active.await_args[0][3] == "company"
        _, record_id, expected, values = mock_update.await_args[0]
        assert (record_id, expected) == (1, 4)
        assert values["approved"] is True
        assert values["approved_by"] == "super-1"
        assert audit_entries(db)[0].action == "approve"

    @pytest.mark.asyncio
    async def test_approve_refuse_pour_admin(self, mocker):
        mock_active = mocker.patch(f"{SVC}.repo.get_active", AsyncMock(return_value=make_record()))
        with pytest.raises(PermissionError):
            await service.set_approval(make_async_db(), _approval(), True, make_profile())
        mock_active.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_approve_sans_ligne_company(self, mocker):
        mocker.patch(f"{SVC}.repo.get_active", AsyncMock(return_value=None))
        with pytest.raises(NotFoundError):
            await service.set_approval(make_async_db(), _approval(), True, make_super_admin())

    @pytest.mark.asyncio
    async def test_approve_deja_approuve(self, mocker):
        mocker.patch(f"{SVC}.repo.get_active", AsyncMock(return_value=make_record(approved=True)))
        with pytest.raises(ConflictError):
            await service.set_approval(make_async_db(), _approval(), True, make_super_admin())

    @pytest.mark.asyncio
    async def test_unapprove_efface_les_champs(self, mocker, week_open):
        mocker.patch(f"{SVC}.repo.get_active", AsyncMock(return_value=make_record(approved=True, approved_by="super-1")))
        mock_update = mocker.patch(f"{SVC}.repo.update_versioned", AsyncMock(return_value=True))
        db = make_async_db()

        await service.set_approval(db, _approval(expected_version=1), False, make_super_admin())

        values = mock_update.await_args[0][3]
        assert values == {"approved": False, "approved_at": None, "approved_by": None}
        assert audit_entries(db)[0].action == "unapprove"


# ── import_rows ───────────────────────────────────────────────────────────────

class TestImportRows:
    @pytest.mark.asyncio
    async def test_import_insere_nouvelle_ligne(self, mocker, directory, week_open):
        mocker.patch(f"{SVC}.repo.get_active", AsyncMock(return_value=None))
        db = make_async_db()

        result = await service.import_rows(db, _import(_row()), make_profile())

        assert result["inserted"] == 1
        assert result["errors"] == []
        [record] = [o for o in db.added if isinstance(o, DailyRecord)]
        assert record.record_key == "2025-03-10_p1"
        assert record.source == "company"
        assert record.version == 1
        [entry] = audit_entries(db)
        assert entry.action == "import"
        assert entry.before is None
        db.commit.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_import_met_a_jour_l_existant(self, mocker, directory, week_open):
        existing = make_record(leads=1, payins=0, sales=10, version=2)
        mocker.patch(f"{SVC}.repo.get_active", AsyncMock(return_value=existing))
        db = make_async_db()

        result = await service.import_rows(db, _import(_row()), make_profile())

        assert result["updated"] == 1
        assert (existing.leads, existing.version) == (5, 3)
        [entry] = audit_entries(db)
        assert entry.before["leads"] == 1
        assert entry.after["leads"] == 5

    @pytest.mark.asyncio
    async def test_import_ligne_identique_inchangee(self, mocker, directory, week_open):
        existing = make_record(leads=5, payins=1, sales=100)
        mocker.patch(f"{SVC}.repo.get_active", AsyncMock(return_value=existing))
        db = make_async_db()

        result = await service.import_rows(db, _import(_row()), make_profile())

        assert result["unchanged"] == 1
        assert audit_entries(db) == []
        db.commit.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_import_lignes_en_erreur_non_ecrites(self, mocker, directory, week_open):
        mock_active = mocker.patch(f"{SVC}.repo.get_active", AsyncMock(return_value=None))
        db = make_async_db()

        result = await service.import_rows(
            db, _import(_row(leader_name="Inconnu"), _row(row_number=8, date="pas une date")), make_profile()
        )

        assert result["inserted"] == 0
        assert [e["row_number"] for e in result["errors"]] == [1, 8]
        assert "Leader introuvable" in result["errors"][0]["errors"]
        mock_active.assert_not_awaited()
        db.commit.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_import_leads_fractionnaires_en_erreur(self, mocker, directory, week_open):
        mock_active = mocker.patch(f"{SVC}.repo.get_active", AsyncMock(return_value=None))
        db = make_async_db()

        result = await service.import_rows(db, _import(_row(leads=2.7, payins=1.9)), make_profile())

        assert result["inserted"] == 0
        [error] = result["errors"]
        assert "leads doit être un entier" in error["errors"]
        assert "payins doit être un entier" in error["errors"]
        assert [o for o in db.added if isinstance(o, DailyRecord)] == []
        mock_active.assert_not_awaited()
        db.commit.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_import_stocke_des_entiers(self, mocker, directory, week_open):
        mocker.patch(f"{SVC}.repo.get_active", AsyncMock(return_value=None))
        db = make_async_db()

        await service.import_rows(db, _import(_row(leads=4.0, payins=2.0)), make_profile())

        [record] = [o for o in db.added if isinstance(o, DailyRecord)]
        assert (record.leads, record.payins) == (4, 2)
        assert isinstance(record.leads, int) and isinstance(record.payins, int)
        assert audit_entries(db)[0].after["leads"] == 4

    @pytest.mark.asyncio
    async def test_import_fusion_des_doublons(self, mocker, directory, week_open):
        mocker.patch(f"{SVC}.repo.get_active", AsyncMock(return_value=None))
        db = make_async_db()

        result = await service.import_rows(db, _import(_row(leads=2), _row(leads=3)), make_profile())

        assert result["inserted"] == 1
        assert result["merged"] == 1
        [record] = [o for o in db.added if isinstance(o, DailyRecord)]
        assert record.leads == 5

    @pytest.mark.asyncio
    async def test_import_semaine_finalisee(self, mocker, directory):
        mocker.patch(f"{SVC}.week_repo.finalized_keys", AsyncMock(return_value=["2025-W11"]))
        mocker.patch(f"{SVC}.repo.get_active", AsyncMock(return_value=None))

        result = await service.import_rows(
            make_async_db(), _import(_row(), _row(date="2025-03-17", leader_name="Bruno Petit")), make_profile()
        )

        assert result["inserted"] == 1
        assert result["errors"][0]["errors"] == ["Semaine 2025-W11 finalisée"]

    @pytest.mark.asyncio
    async def test_import_source_par_defaut_depot(self, mocker, directory, week_open):
        mock_active = mocker.patch(f"{SVC}.repo.get_active", AsyncMock(return_value=None))
        await service.import_rows(make_async_db(), _import(_row(), default_source="depot"), make_profile())
        assert mock_active.await_args[0][3] == "depot"

    @pytest.mark.asyncio
    async def test_import_raison_manquante(self, mocker):
        mock_participants = mocker.patch(f"{SVC}.directory_repo.list_participants", AsyncMock(return_value=[]))
        with pytest.raises(ValidationError):
            await service.import_rows(make_async_db(), _import(_row(), reason=""), make_profile())
        mock_participants.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_import_concurrent_conflit(self, mocker, directory, week_open):
        mocker.patch(f"{SVC}.repo.get_active", AsyncMock(return_value=None))
        db = make_async_db()
        db.commit = AsyncMock(side_effect=IntegrityError("INSERT", {}, Exception("duplicate")))

        with pytest.raises(ConflictError):
            await service.import_rows(db, _import(_row()), make_profile())
        db.rollback.assert_awaited_once()


# ── DailyRecord.participant_id ────────────────────────────────────────────────

class TestRecordParticipantLink:
    def test_suppression_participant_bloquee_tant_que_des_lignes_existent(self):
        column = DailyRecord.__table__.c.participant_id
        [fk] = column.foreign_keys
        assert fk.ondelete == "RESTRICT"
        assert column.nullable is False
