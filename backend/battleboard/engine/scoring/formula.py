# engine/scoring/formula.py
"""
Formules de scoring — validation et sélection de la formule active.
ZÉRO accès DB : le repository fournit les candidates, ce module choisit.

Règles de validation (sauvegarde d'un draft ET publication) :
  - clés ∈ {leads, payins, sales}, sans doublon
  - divisor > 0, maxPoints ≥ 0
  - Σ maxPoints = 1000
  - bataille dépôt → pas de métrique payins
  - clés de semaine "YYYY-Www", start ≤ end
"""
from typing import Any, Dict, Iterable, List, Optional

from battleboard.engine.scoring.evaluator import (
    METRIC_KEYS,
    field,
    is_depot_battle,
    normalize_metric,
)
from battleboard.engine.scoring.weeks import is_valid_week_key, week_key_in_range

TOTAL_MAX_POINTS = 1000.0
_EPSILON = 1e-6


def formula_config(formula: Any) -> Optional[Dict[str, Any]]:
    """Config d'une formule (ORM, dict ou config brute). None si absente."""
    if formula is None:
        return None
    config = field(formula, "config")
    if config is None and field(formula, "metrics") is not None:
        return {"metrics": field(formula, "metrics")}
    return config


def validate_formula(
    battle_type: str,
    metrics: Any,
    start_week_key: Optional[str],
    end_week_key: Optional[str] = None,
) -> List[str]:
    """
    Retourne la liste des erreurs (vide = formule valide).
    Le service transforme une liste non vide en ValidationError.
    """
    errors: List[str] = []

    if not is_valid_week_key(start_week_key):
        errors.append("Semaine de début invalide (format attendu : YYYY-Www).")
    if end_week_key is not None and not is_valid_week_key(end_week_key):
        errors.append("Semaine de fin invalide (format attendu : YYYY-Www).")
    if (
        is_valid_week_key(start_week_key)
        and end_week_key is not None
        and is_valid_week_key(end_week_key)
        and end_week_key < start_week_key
    ):
        errors.append("La semaine de fin précède la semaine de début.")

    if not isinstance(metrics, (list, tuple)) or not metrics:
        errors.append("Au moins une métrique est requise.")
        return errors

    seen = set()
    total = 0.0
    for index, raw in enumerate(metrics, start=1):
        metric = normalize_metric(raw)
        if metric is None:
            errors.append(f"Métrique #{index} : clé manquante.")
            continue
        key = metric["key"]
        if key not in METRIC_KEYS:
            errors.append(f"Métrique #{index} : clé inconnue '{key}'.")
        if key in seen:
            errors.append(f"Métrique #{index} : '{key}' apparaît deux fois.")
        seen.add(key)
        if metric["divisor"] <= 0:
            errors.append(f"Métrique '{key}' : le diviseur doit être > 0.")
        if metric["maxPoints"] < 0:
            errors.append(f"Métrique '{key}' : maxPoints doit être ≥ 0.")
        total += metric["maxPoints"]

    if is_depot_battle(battle_type) and "payins" in seen:
        errors.append("Les formules dépôt ne peuvent pas inclure payins.")

    if abs(total - TOTAL_MAX_POINTS) > _EPSILON:
        errors.append(f"La somme des maxPoints doit être 1000 (actuellement {total:g}).")

    return errors


def normalized_metrics(metrics: Iterable[Any]) -> List[Dict[str, Any]]:
    """Forme canonique stockée : alias résolus, entrées sans clé retirées."""
    normalized = (normalize_metric(m) for m in metrics or [])
    return [m for m in normalized if m is not None]


def select_active_formula(
    candidates: Iterable[Any], battle_type: str, week_key: str
) -> Optional[Any]:
    """
    Formule active pour (battle_type, semaine) parmi les candidates.

    Éligible : publiée, même type de bataille, plage contenant la semaine.
    Départage : début le plus récent, puis version la plus haute, puis id le plus haut.
    None = aucune formule configurée (état normal, jamais une erreur).
    """
    wanted = str(battle_type or "").strip().lower()
    eligible = [
        f for f in candidates
        if str(field(f, "status", "")).lower() == "published"
        and str(field(f, "battle_type", "")).lower() == wanted
        and week_key_in_range(
            week_key,
            field(f, "effective_start_week_key"),
            field(f, "effective_end_week_key"),
        )
    ]
    if not eligible:
        return None
    return max(
        eligible,
        key=lambda f: (
            field(f, "effective_start_week_key") or "",
            field(f, "version") or 0,
            field(f, "id") or 0,
        ),
    )
