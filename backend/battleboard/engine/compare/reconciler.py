# engine/compare/reconciler.py
"""
Rapprochement company ↔ dépôt — ZÉRO accès DB.

Pour chaque paire (date, participant) :
  - les deux sources présentes, leads/payins/sales identiques → matched
  - les deux présentes, au moins une métrique diffère        → mismatch
  - company seule                                            → missing_depot
  - dépôt seul                                               → missing_company

publishable ⟺ une ligne company existe ET (matched OU company approuvée).
Un participant introuvable ou détaché ne fait jamais échouer la comparaison :
la ligne est conservée, anonymisée (restricted).

Appelé par : modules/compare/service.py, modules/rankings/service.py
"""
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional

from battleboard.engine.scoring.evaluator import field, to_number

RESTRICTED_NAME = "(Restricted)"


@dataclass
class CompareRow:
    key: str                          # "<date>_<participant_id>"
    date: Any
    participant_id: Optional[str]
    company: Optional[Dict[str, Any]]
    depot: Optional[Dict[str, Any]]
    status: str
    delta: Optional[Dict[str, Any]]
    approved: bool
    publishable: bool
    matched: bool
    leader_name: str
    restricted: bool
    restricted_participant_id: Optional[str] = None
    company_record_id: Optional[int] = None
    depot_record_id: Optional[int] = None


def pair_key(day: Any, participant_id: Any) -> str:
    return f"{day}_{participant_id}"


def _depot_ref(value: Any) -> Optional[str]:
    return str(value) if value not in (None, "") else None


def side_payload(record: Any, depot_names: Optional[Mapping] = None) -> Dict[str, Any]:
    depot_names = depot_names or {}
    leads_depot_id = _depot_ref(field(record, "leads_depot_id"))
    sales_depot_id = _depot_ref(field(record, "sales_depot_id"))
    return {
        "id": field(record, "id"),
        "leads": to_number(field(record, "leads")),
        "payins": to_number(field(record, "payins")),
        "sales": to_number(field(record, "sales")),
        "leads_depot_id": leads_depot_id,
        "sales_depot_id": sales_depot_id,
        "leads_depot_name": depot_names.get(leads_depot_id, "") if leads_depot_id else "",
        "sales_depot_name": depot_names.get(sales_depot_id, "") if sales_depot_id else "",
        "approved": bool(field(record, "approved", False)),
        "source": field(record, "source"),
        "voided": bool(field(record, "voided", False)),
    }


def compute_status(company: Optional[Dict], depot: Optional[Dict]) -> str:
    if company and depot:
        same = (
            company["leads"] == depot["leads"]
            and company["payins"] == depot["payins"]
            and company["sales"] == depot["sales"]
        )
        return "matched" if same else "mismatch"
    if company:
        return "missing_depot"
    return "missing_company"


def _channel_mismatch(company: Dict, depot: Dict, channel: str) -> bool:
    # Informatif uniquement : n'intervient pas dans publishable
    left, right = company.get(channel), depot.get(channel)
    return bool(left and right and left != right)


def compute_delta(company: Optional[Dict], depot: Optional[Dict]) -> Optional[Dict[str, Any]]:
    """company − dépôt, uniquement si les deux côtés sont présents."""
    if not company or not depot:
        return None
    return {
        "leads_diff": company["leads"] - depot["leads"],
        "payins_diff": company["payins"] - depot["payins"],
        "sales_diff": company["sales"] - depot["sales"],
        "leads_depot_mismatch": _channel_mismatch(company, depot, "leads_depot_id"),
        "sales_depot_mismatch": _channel_mismatch(company, depot, "sales_depot_id"),
    }


def is_publishable(company: Any, depot: Any) -> bool:
    """Accepte payloads ou enregistrements bruts (company / dépôt éventuellement None)."""
    if not company:
        return False
    if bool(field(company, "approved", False)):
        return True
    if not depot:
        return False
    return all(
        to_number(field(company, k)) == to_number(field(depot, k))
        for k in ("leads", "payins", "sales")
    )


def _index(participants: Any) -> Mapping:
    if participants is None:
        return {}
    if isinstance(participants, Mapping):
        return {str(k): v for k, v in participants.items()}
    return {str(field(p, "id")): p for p in participants}


def compare_rows(
    records: Iterable[Any],
    participant_index: Any,
    depot_names: Optional[Mapping] = None,
) -> List[CompareRow]:
    """
    Regroupe les enregistrements non annulés par (date, participant) et classe chaque paire.

    participant_index : mapping id → participant, ou liste de participants
    depot_names       : mapping id → nom affiché (optionnel)

    Résultat trié par date décroissante, ordre d'arrivée conservé à date égale.
    """
    participants = _index(participant_index)
    names = {str(k): v for k, v in (depot_names or {}).items()}

    groups: Dict[str, Dict[str, Any]] = {}
    for record in records:
        if bool(field(record, "voided", False)):
            continue
        participant_id = field(record, "participant_id")
        day = field(record, "date")
        if not day:
            continue
        source = str(field(record, "source", "")).lower()
        if source not in ("company", "depot"):
            continue

        # Participant détaché : la clé stockée garde la paire d'origine
        if participant_id in (None, ""):
            key = field(record, "record_key") or pair_key(day, None)
        else:
            key = pair_key(day, participant_id)
        entry = groups.setdefault(key, {
            "date": day,
            "participant_id": str(participant_id) if participant_id not in (None, "") else None,
            "company": None,
            "depot": None,
        })
        entry[source] = side_payload(record, names)

    rows: List[CompareRow] = []
    for key, entry in groups.items():
        company, depot = entry["company"], entry["depot"]
        participant = participants.get(entry["participant_id"])
        status = compute_status(company, depot)
        approved = bool(company and company["approved"])
        rows.append(CompareRow(
            key=key,
            date=entry["date"],
            participant_id=entry["participant_id"],
            company=company,
            depot=depot,
            status=status,
            delta=compute_delta(company, depot),
            approved=approved,
            publishable=bool(company) and (status == "matched" or approved),
            matched=status == "matched",
            leader_name=(field(participant, "name") if participant else None) or RESTRICTED_NAME,
            restricted=participant is None,
            restricted_participant_id=None if participant else entry["participant_id"],
            company_record_id=company["id"] if company else None,
            depot_record_id=depot["id"] if depot else None,
        ))

    rows.sort(key=lambda r: str(r.date), reverse=True)
    return rows
