# engine/ranking/aggregator.py
"""
Moteur de classement — ZÉRO accès DB.
Reçoit des enregistrements journaliers déjà filtrés par le store,
regroupe, additionne, score et classe.

Modes de regroupement :
  leaders    → participant_id (filtre de rôle optionnel)
  platoon    → upline_agent_id du participant, sentinelle "no-upline"
  depots     → fan-out : leads vers leads_depot_id, payins + sales vers sales_depot_id
               (sentinelle "unassigned" pour chaque canal)
  commanders → company_id du participant (enregistrement ignoré si non résolu)
  teams      → platoon_id du participant (idem)

Ordre : points décroissants, puis
  depots : ventes croissantes si le bucket est au plafond, décroissantes sinon,
           puis leads, puis payins (décroissants)
  autres : payins, ventes, leads (décroissants)
Le tri est stable (ordre d'apparition) ; les rangs sont positionnels 1..N.

Appelé par : modules/rankings/service.py
"""
import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional

from battleboard.engine.scoring.evaluator import (
    battle_type_for,
    field,
    max_attainable,
    score_total,
    to_number,
)
from battleboard.engine.scoring.formula import formula_config

logger = logging.getLogger(__name__)

NO_UPLINE = "no-upline"
UNASSIGNED = "unassigned"

UNKNOWN_LEADER = "Unknown Leader"
UNKNOWN_DEPOT = "Unknown Depot"
UNKNOWN_COMMANDER = "Unknown Commander"
UNKNOWN_TEAM = "Unknown Team"
NO_UPLINE_NAME = "No Upline"
UNASSIGNED_NAME = "Unassigned"

DEFAULT_PARTICIPANT_ROLE = "platoon"
_CAP_EPSILON = 1e-9


@dataclass
class RankedGroup:
    key: str
    name: str
    photo_url: Optional[str] = None
    leads: float = 0.0
    payins: float = 0.0
    sales: float = 0.0
    points: float = 0.0
    rank: int = 0
    platoon_name: Optional[str] = None   # mode leaders uniquement


@dataclass
class RankingResult:
    kpis: Dict[str, Any]
    rows: List[RankedGroup]
    battle_type: str


def _index(entities: Any) -> Dict[str, Any]:
    if entities is None:
        return {}
    if isinstance(entities, Mapping):
        return {str(k): v for k, v in entities.items()}
    return {str(field(e, "id")): e for e in entities}


def _ref(value: Any) -> Optional[str]:
    return str(value) if value not in (None, "") else None


def _day(value: Any) -> str:
    return str(value)[:10] if value is not None else ""


class _Buckets:
    """Accumulateur ordonné par première apparition."""

    def __init__(self):
        self.groups: Dict[str, RankedGroup] = {}

    def get(self, key: str, name: str, photo_url: Optional[str] = None,
            platoon_name: Optional[str] = None) -> RankedGroup:
        group = self.groups.get(key)
        if group is None:
            group = RankedGroup(key=key, name=name, photo_url=photo_url, platoon_name=platoon_name)
            self.groups[key] = group
        return group


def _entity_bucket(buckets: _Buckets, key: str, entities: Dict[str, Any], unknown: str) -> RankedGroup:
    entity = entities.get(key)
    return buckets.get(
        key,
        field(entity, "name") or unknown,
        field(entity, "photo_url"),
    )


def _sort_key(mode: str, cap: float):
    if mode == "depots":
        def key(g: RankedGroup):
            capped = cap > 0 and g.points >= cap - _CAP_EPSILON
            return (-g.points, g.sales if capped else -g.sales, -g.leads, -g.payins)
        return key
    return lambda g: (-g.points, -g.payins, -g.sales, -g.leads)


def aggregate_rankings(
    records: Iterable[Any],
    mode: str,
    role_filter: Optional[str],
    formula: Any,
    lookups: Optional[Mapping] = None,
    *,
    date_from: Any = None,
    date_to: Any = None,
) -> RankingResult:
    """
    Classement d'un ensemble d'enregistrements.

    Args:
        records:     DailyRecord (ORM ou dict), déjà visibles pour l'appelant.
        mode:        leaders | platoon | depots | commanders | teams
        role_filter: None ou platoon | squad | team (mode leaders uniquement)
        formula:     formule active (ORM / dict) ou None → tous les points à 0
        lookups:     {"participants", "depots", "companies", "platoons"} (mapping id → entité ou liste)
        date_from / date_to : bornes inclusives optionnelles (YYYY-MM-DD ou date)
    """
    mode = str(mode or "leaders").strip().lower()
    lookups = lookups or {}
    participants = _index(lookups.get("participants"))
    depots = _index(lookups.get("depots"))
    companies = _index(lookups.get("companies"))
    platoons = _index(lookups.get("platoons"))

    lower = _day(date_from) if date_from else None
    upper = _day(date_to) if date_to else None
    wanted_role = str(role_filter).strip().lower() if role_filter else None

    buckets = _Buckets()
    used = dropped = 0

    for record in records:
        if bool(field(record, "voided", False)):
            continue
        day = _day(field(record, "date"))
        if (lower and day < lower) or (upper and day > upper):
            continue

        participant_id = _ref(field(record, "participant_id"))
        participant = participants.get(participant_id) if participant_id else None
        leads = to_number(field(record, "leads"))
        payins = to_number(field(record, "payins"))
        sales = to_number(field(record, "sales"))

        if mode == "depots":
            leads_key = _ref(field(record, "leads_depot_id")) or UNASSIGNED
            sales_key = _ref(field(record, "sales_depot_id")) or UNASSIGNED
            leads_group = (
                buckets.get(UNASSIGNED, UNASSIGNED_NAME) if leads_key == UNASSIGNED
                else _entity_bucket(buckets, leads_key, depots, UNKNOWN_DEPOT)
            )
            leads_group.leads += leads
            sales_group = (
                buckets.get(UNASSIGNED, UNASSIGNED_NAME) if sales_key == UNASSIGNED
                else _entity_bucket(buckets, sales_key, depots, UNKNOWN_DEPOT)
            )
            sales_group.payins += payins
            sales_group.sales += sales
            used += 1
            continue

        if mode == "commanders" or mode == "teams":
            attr = "company_id" if mode == "commanders" else "platoon_id"
            group_id = _ref(field(participant, attr)) if participant else None
            if not group_id:
                dropped += 1
                continue
            if mode == "commanders":
                group = _entity_bucket(buckets, group_id, companies, UNKNOWN_COMMANDER)
            else:
                group = _entity_bucket(buckets, group_id, platoons, UNKNOWN_TEAM)

        elif mode == "platoon":
            upline_id = _ref(field(participant, "upline_agent_id")) if participant else None
            if upline_id:
                group = _entity_bucket(buckets, upline_id, participants, UNKNOWN_LEADER)
            else:
                group = buckets.get(NO_UPLINE, NO_UPLINE_NAME)

        else:
            if not participant_id:
                dropped += 1
                continue
            if wanted_role:
                role = str(field(participant, "role") or DEFAULT_PARTICIPANT_ROLE).lower()
                if role != wanted_role:
                    continue
            platoon = platoons.get(_ref(field(participant, "platoon_id")) or "")
            group = buckets.get(
                participant_id,
                field(participant, "name") or UNKNOWN_LEADER,
                field(participant, "photo_url"),
                platoon_name=field(platoon, "name") or "",
            )

        group.leads += leads
        group.payins += payins
        group.sales += sales
        used += 1

    if dropped:
        logger.debug("aggregate_rankings mode=%s : %d enregistrement(s) non rattaché(s)", mode, dropped)

    battle_type = battle_type_for(mode, role_filter)
    config = formula_config(formula)
    rows = list(buckets.groups.values())
    for group in rows:
        group.points = score_total(battle_type, group, config)

    rows.sort(key=_sort_key(mode, max_attainable(battle_type, config)))
    for position, group in enumerate(rows, start=1):
        group.rank = position

    kpis = {
        "entities_count": len(rows),
        "records_count": used,
        "dropped_records": dropped,
        "total_leads": sum(g.leads for g in rows),
        "total_payins": sum(g.payins for g in rows),
        "total_sales": sum(g.sales for g in rows),
        "participants_count": len(participants),
        "depots_count": len(depots),
        "companies_count": len(companies),
        "platoons_count": len(platoons),
    }
    return RankingResult(kpis=kpis, rows=rows, battle_type=battle_type)
