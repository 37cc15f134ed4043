# engine/scoring/weeks.py
"""
Semaines ISO (lundi → dimanche) — ZÉRO accès DB.

Clé de semaine : "YYYY-Www" (ex. "2025-W07"). Avec le zéro de remplissage,
l'ordre lexicographique des clés est l'ordre chronologique.
"""
import re
from datetime import date, timedelta
from typing import Optional, Tuple

WEEK_KEY_PATTERN = re.compile(r"^(\d{4})-W(\d{2})$")


def iso_week_key(day: date) -> str:
    iso_year, iso_week, _ = day.isocalendar()
    return f"{iso_year}-W{iso_week:02d}"


def week_range(day: date) -> Tuple[date, date]:
    """(lundi, dimanche) de la semaine contenant `day`."""
    monday = day - timedelta(days=day.weekday())
    return monday, monday + timedelta(days=6)


def is_valid_week_key(value: Optional[str]) -> bool:
    if not isinstance(value, str):
        return False
    match = WEEK_KEY_PATTERN.match(value.strip())
    if not match:
        return False
    year, week = int(match.group(1)), int(match.group(2))
    if week < 1:
        return False
    # Le 28 décembre appartient toujours à la dernière semaine ISO de l'année
    return week <= date(year, 12, 28).isocalendar()[1]


def week_key_in_range(week_key: str, start_key: Optional[str], end_key: Optional[str]) -> bool:
    """start ≤ week_key ≤ end (end None = sans fin, start None = jamais actif)."""
    if not week_key or not start_key:
        return False
    if week_key < start_key:
        return False
    return end_key is None or week_key <= end_key
