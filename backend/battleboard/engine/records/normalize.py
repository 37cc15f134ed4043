# engine/records/normalize.py
"""
Pré-validation d'un import — ZÉRO accès DB.

Les lignes arrivent déjà parsées par le collaborateur tableur.
Chaque ligne ressort typée : participant résolu OU erreurs explicites,
avant d'atteindre le store ou le moteur de classement.

Étapes :
  1. validate_rows : date, métriques, source, participant (id ou nom), dépôts
  2. merge_rows    : fusion des doublons (date, participant, source, dépôt leads, dépôt ventes)
"""
import re
from dataclasses import dataclass, field as dc_field
from datetime import date, datetime
from typing import Any, Dict, Iterable, List, Optional, Tuple

from battleboard.engine.scoring.evaluator import field

MAX_SUGGESTIONS = 5
MERGE_NOTE = "Lignes fusionnées : même leader / date / source / dépôt leads / dépôt ventes"

_PUNCTUATION = re.compile(r"[.,'\"()\[\]{}]")
_WHITESPACE = re.compile(r"\s+")


@dataclass
class ImportRow:
    row_number: int
    date: Optional[date] = None
    participant_id: Optional[str] = None
    leader_name: str = ""
    source: str = "company"
    leads: int = 0
    payins: int = 0
    sales: float = 0.0
    leads_depot_id: Optional[str] = None
    sales_depot_id: Optional[str] = None
    errors: List[str] = dc_field(default_factory=list)
    suggestions: List[str] = dc_field(default_factory=list)
    merge_count: int = 1
    merge_notes: List[str] = dc_field(default_factory=list)

    @property
    def valid(self) -> bool:
        return not self.errors

    @property
    def identity(self) -> Optional[Tuple]:
        if not (self.date and self.participant_id and self.leads_depot_id and self.sales_depot_id):
            return None
        return (self.date, self.participant_id, self.source, self.leads_depot_id, self.sales_depot_id)


def normalize_name(name: Any) -> str:
    """trim, minuscules, ponctuation .,'"()[]{} retirée, espaces compactés."""
    text = _PUNCTUATION.sub("", str(name or "").strip().lower())
    return _WHITESPACE.sub(" ", text).strip()


def _parse_date(value: Any) -> Optional[date]:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value).strip()[:10])
    except (TypeError, ValueError):
        return None


def _parse_metric(value: Any, label: str, errors: List[str], integral: bool = False):
    """leads / payins : entiers ≥ 0 (integral=True). sales : réel ≥ 0."""
    zero = 0 if integral else 0.0
    if value is None or value == "":
        return zero
    try:
        number = float(value)
    except (TypeError, ValueError):
        errors.append(f"Nombre invalide pour {label}")
        return zero
    if number != number or number in (float("inf"), float("-inf")):
        errors.append(f"Nombre invalide pour {label}")
        return zero
    if number < 0:
        errors.append(f"{label} doit être ≥ 0")
    if integral:
        if not number.is_integer():
            errors.append(f"{label} doit être un entier")
            return zero
        return int(number)
    return number


def _by_id(entities: Iterable[Any]) -> Dict[str, Any]:
    return {str(field(e, "id")): e for e in entities or []}


class NameIndex:
    """Résolution nom libre → participant, avec suggestions en cas d'ambiguïté."""

    def __init__(self, participants: Iterable[Any], companies=None, platoons=None):
        self.by_id = _by_id(participants)
        self.companies = _by_id(companies)
        self.platoons = _by_id(platoons)
        self.by_name: Dict[str, List[Any]] = {}
        for participant in self.by_id.values():
            self.by_name.setdefault(normalize_name(field(participant, "name")), []).append(participant)

    def suggestion(self, participant: Any) -> str:
        details = [
            field(self.companies.get(str(field(participant, "company_id"))), "name"),
            field(self.platoons.get(str(field(participant, "platoon_id"))), "name"),
        ]
        details = [d for d in details if d]
        suffix = f" ({' / '.join(details)})" if details else ""
        return f"{field(participant, 'name')} - {field(participant, 'id')}{suffix}"

    def resolve(self, participant_id: Any, leader_name: Any) -> Tuple[Optional[str], str, List[str], List[str]]:
        """(participant_id | None, nom affiché, erreurs, suggestions)."""
        if participant_id not in (None, ""):
            participant = self.by_id.get(str(participant_id))
            if participant is None:
                return None, str(leader_name or ""), ["Leader introuvable"], []
            return str(field(participant, "id")), str(leader_name or field(participant, "name") or ""), [], []

        name = str(leader_name or "").strip()
        if not name:
            return None, "", ["Nom du leader manquant"], []

        matches = self.by_name.get(normalize_name(name), [])
        if len(matches) == 1:
            return str(field(matches[0], "id")), name, [], []
        if len(matches) > 1:
            suggestions = [self.suggestion(p) for p in matches[:MAX_SUGGESTIONS]]
            return None, name, [
                "Nom de leader ambigu : plusieurs participants correspondent. "
                "Renommez le participant pour le rendre unique."
            ], suggestions
        return None, name, ["Leader introuvable"], []


def _resolve_depot(raw: Any, id_key: str, name_key: str, depots: Dict[str, Any],
                   depots_by_name: Dict[str, str]) -> Optional[str]:
    depot_id = field(raw, id_key)
    if depot_id not in (None, ""):
        return str(depot_id) if str(depot_id) in depots else None
    label = field(raw, name_key)
    if label in (None, ""):
        return None
    return depots_by_name.get(normalize_name(label))


def validate_rows(
    raw_rows: Iterable[Any],
    participants: Iterable[Any],
    depots: Iterable[Any],
    companies: Iterable[Any] = (),
    platoons: Iterable[Any] = (),
    default_source: str = "company",
) -> List[ImportRow]:
    """
    Valide chaque ligne brute. Les lignes invalides sont conservées avec leurs erreurs.
    Clés lues : date, participant_id | leader_name, source, leads, payins, sales,
    leads_depot_id | leads_depot, sales_depot_id | sales_depot.
    """
    names = NameIndex(participants, companies, platoons)
    depot_index = _by_id(depots)
    depots_by_name = {normalize_name(field(d, "name")): key for key, d in depot_index.items()}

    rows: List[ImportRow] = []
    for position, raw in enumerate(raw_rows, start=1):
        errors: List[str] = []

        day = _parse_date(field(raw, "date"))
        if day is None:
            errors.append("Date invalide")

        source = str(field(raw, "source") or default_source).strip().lower()
        if source not in ("company", "depot"):
            errors.append(f"Source inconnue '{source}'")

        leads = _parse_metric(field(raw, "leads"), "leads", errors, integral=True)
        payins = _parse_metric(field(raw, "payins"), "payins", errors, integral=True)
        sales = _parse_metric(field(raw, "sales"), "sales", errors)

        participant_id, leader_name, name_errors, suggestions = names.resolve(
            field(raw, "participant_id"), field(raw, "leader_name")
        )
        errors.extend(name_errors)

        leads_depot_id = _resolve_depot(raw, "leads_depot_id", "leads_depot", depot_index, depots_by_name)
        if leads_depot_id is None:
            errors.append("Dépôt leads invalide")
        sales_depot_id = _resolve_depot(raw, "sales_depot_id", "sales_depot", depot_index, depots_by_name)
        if sales_depot_id is None:
            errors.append("Dépôt ventes invalide")

        rows.append(ImportRow(
            row_number=field(raw, "row_number") or position,
            date=day,
            participant_id=participant_id,
            leader_name=leader_name,
            source=source,
            leads=leads,
            payins=payins,
            sales=sales,
            leads_depot_id=leads_depot_id,
            sales_depot_id=sales_depot_id,
            errors=errors,
            suggestions=suggestions,
        ))
    return rows


def _union(left: List[str], right: List[str]) -> List[str]:
    return list(dict.fromkeys([*left, *right]))


def merge_rows(rows: Iterable[ImportRow]) -> List[ImportRow]:
    """
    Fusionne les lignes de même identité en additionnant les métriques.
    Une ligne sans identité complète passe telle quelle.
    L'ordre de première apparition est conservé.
    """
    merged: List[ImportRow] = []
    by_identity: Dict[Tuple, ImportRow] = {}

    for row in rows:
        identity = row.identity
        if identity is None:
            merged.append(row)
            continue
        base = by_identity.get(identity)
        if base is None:
            by_identity[identity] = row
            merged.append(row)
            continue
        base.leads += row.leads
        base.payins += row.payins
        base.sales += row.sales
        base.errors = _union(base.errors, row.errors)
        base.suggestions = _union(base.suggestions, row.suggestions)
        base.merge_notes = _union(base.merge_notes, row.merge_notes)
        base.merge_count += row.merge_count

    for row in by_identity.values():
        if row.merge_count > 1:
            row.merge_notes = _union(row.merge_notes, [MERGE_NOTE])
    return merged


def flag_conflicts(rows: Iterable[ImportRow]) -> List[ImportRow]:
    """
    Après fusion, une même (date, participant, source) ne peut subsister qu'une fois :
    un seul enregistrement non annulé par triplet. Les lignes suivantes
    (dépôts différents) sont marquées en erreur.
    """
    rows = list(rows)
    seen = {}
    for row in rows:
        if not row.valid or row.identity is None:
            continue
        slot = row.identity[:3]
        first = seen.setdefault(slot, row.row_number)
        if first != row.row_number:
            row.errors.append(
                f"Conflit avec la ligne {first} : même leader / date / source avec des dépôts différents"
            )
    return rows
