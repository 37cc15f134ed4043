# engine/scoring/evaluator.py
"""
Calcul des points — ZÉRO accès DB.

score_metric : min(actual / divisor * maxPoints, maxPoints), 0 si divisor <= 0
score_total  : somme de score_metric sur config.metrics
               (les batailles dépôt ignorent toujours payins)

Aucune fonction ici ne lève d'exception : toute valeur non numérique vaut 0.

Appelé par : engine/ranking/aggregator.py, modules/formulas/service.py
"""
import math
from collections.abc import Mapping
from typing import Any, Dict, List, Optional

METRIC_KEYS = ("leads", "payins", "sales")
DEPOT_BATTLE_TYPES = ("depot", "depots")


def field(obj: Any, key: str, default: Any = None) -> Any:
    """Lecture uniforme dict / objet ORM / SimpleNamespace."""
    if obj is None:
        return default
    if isinstance(obj, Mapping):
        return obj.get(key, default)
    return getattr(obj, key, default)


def to_number(value: Any) -> float:
    """Coercion tolérante : None, texte, NaN, infini → 0.0."""
    if value is None or isinstance(value, bool):
        return float(value or 0)
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    if math.isnan(number) or math.isinf(number):
        return 0.0
    return number


def _first_present(metric: Any, *keys: str) -> Any:
    for key in keys:
        value = field(metric, key)
        if value is not None:
            return value
    return None


def normalize_metric(metric: Any) -> Optional[Dict[str, Any]]:
    """
    Ramène une entrée de config à {key, divisor, maxPoints}.

    Alias tolérés (formules saisies avant la normalisation du schéma) :
      key       ← name, metric
      divisor   ← division
      maxPoints ← max_points, points
    Retourne None si aucune clé de métrique n'est présente.
    """
    key = _first_present(metric, "key", "name", "metric")
    if key is None or str(key).strip() == "":
        return None
    return {
        "key": str(key).strip().lower(),
        "divisor": to_number(_first_present(metric, "divisor", "division")),
        "maxPoints": to_number(_first_present(metric, "maxPoints", "max_points", "points")),
    }


def metrics_of(config: Any) -> List[Dict[str, Any]]:
    """Liste normalisée des métriques d'une config (vide si config absente ou invalide)."""
    raw = field(config, "metrics")
    if not isinstance(raw, (list, tuple)):
        return []
    normalized = (normalize_metric(m) for m in raw)
    return [m for m in normalized if m is not None]


def is_depot_battle(battle_type: Optional[str]) -> bool:
    return str(battle_type or "").strip().lower() in DEPOT_BATTLE_TYPES


def score_metric(actual: Any, divisor: Any, max_points: Any) -> float:
    divisor = to_number(divisor)
    if divisor <= 0:
        return 0.0
    max_points = to_number(max_points)
    score = (to_number(actual) / divisor) * max_points
    return min(score, max_points)


def score_total(battle_type: Optional[str], totals: Any, formula_config: Any) -> float:
    """
    Points d'un bucket pour la config de formule donnée.

    totals : mapping ou objet exposant leads / payins / sales (clés manquantes → 0)
    formula_config : {"metrics": [...]} ou None → 0
    """
    depot = is_depot_battle(battle_type)
    total = 0.0
    for metric in metrics_of(formula_config):
        if depot and metric["key"] == "payins":
            continue
        actual = field(totals, metric["key"], 0)
        total += score_metric(actual, metric["divisor"], metric["maxPoints"])
    return total


def max_attainable(battle_type: Optional[str], formula_config: Any) -> float:
    """Plafond théorique : somme des maxPoints réellement scorés pour ce type de bataille."""
    depot = is_depot_battle(battle_type)
    return sum(
        max(m["maxPoints"], 0.0)
        for m in metrics_of(formula_config)
        if m["divisor"] > 0 and not (depot and m["key"] == "payins")
    )


# ── Mode de classement → type de bataille ──────────────────

_MODE_BATTLE_TYPES = {
    "depots":     "depots",
    "commanders": "commanders",
    "teams":      "teams",
    "platoon":    "platoons",
}

_ROLE_BATTLE_TYPES = {
    "platoon": "platoons",
    "squad":   "squads",
    "team":    "teams",
}


def battle_type_for(mode: Optional[str], role_filter: Optional[str] = None) -> str:
    """
    Type de bataille dont la formule s'applique à un mode de classement.

    leaders sans filtre de rôle → "leaders"
    leaders + rôle platoon/squad/team → platoons/squads/teams
    """
    key = str(mode or "").strip().lower()
    if key in _MODE_BATTLE_TYPES:
        return _MODE_BATTLE_TYPES[key]
    role = str(role_filter or "").strip().lower()
    return _ROLE_BATTLE_TYPES.get(role, "leaders")
