"""Shoe wear from the athlete profile's gear list."""

from typing import Any, Dict, Iterable, List

from ..config import config
from ..exceptions import InvalidInputError
from ..models import ShoeUsage, WearLevel


def shoe_km(shoe: Dict[str, Any]) -> float:
    """Distance on a shoe: `distance` (meters) first, then `converted_distance` (km)."""
    distance = shoe.get("distance")
    if isinstance(distance, (int, float)) and distance > 0:
        return distance / 1000.0
    converted = shoe.get("converted_distance")
    if isinstance(converted, (int, float)) and converted > 0:
        return float(converted)
    return 0.0


def wear_level(km: float) -> WearLevel:
    if km >= config.SHOE_WEAR_RED_KM:
        return WearLevel.RED
    if km >= config.SHOE_WEAR_ORANGE_KM:
        return WearLevel.ORANGE
    return WearLevel.GREEN


def summarize_shoes(shoes: Iterable[Dict[str, Any]], descending: bool = True) -> List[ShoeUsage]:
    """Shoes with their wear level, sorted by distance then name.

    Entries with neither distance nor a name are dropped.

    Raises:
        InvalidInputError: if an entry is not a JSON object
    """
    usage = []
    for shoe in shoes or []:
        if not isinstance(shoe, dict):
            raise InvalidInputError(f"Shoe entry must be an object, got {type(shoe).__name__}")
        km = shoe_km(shoe)
        name = str(shoe.get("name") or "").strip() or None
        if km <= 0 and name is None:
            continue
        usage.append(ShoeUsage(id=shoe.get("id"), name=name, km=km, wear=wear_level(km)))

    # Name order stays ascending in both directions.
    usage.sort(key=lambda s: s.name or "")
    usage.sort(key=lambda s: s.km, reverse=descending)
    return usage
