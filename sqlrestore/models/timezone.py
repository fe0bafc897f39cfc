from __future__ import annotations

import re
from datetime import datetime, timezone
from typing import Optional
from zoneinfo import ZoneInfo

from sqlrestore.config import DISPLAY_TIMEZONE

# Horodatage le plus ancien possible, utilisé pour trier les champs absents.
EARLIEST = datetime.min.replace(tzinfo=timezone.utc)

_FRACTION = re.compile(r"\.(\d+)")


def parse_timestamp(value: object) -> Optional[datetime]:
    """Parse un horodatage RFC 3339 de l'API (`Z` ou offset, fraction quelconque).

    Retourne None pour une valeur absente ou vide.

    Raises:
        ValueError: si la valeur n'est pas un horodatage RFC 3339 avec fuseau.
    """

    if value is None or value == "":
        return None
    if not isinstance(value, str):
        raise ValueError(f"Horodatage attendu, reçu {type(value).__name__}")

    text = value.strip()
    if text[-1:] in ("Z", "z"):
        text = text[:-1] + "+00:00"
    # fromisoformat ne gère pas plus de 6 chiffres de fraction
    text = _FRACTION.sub(lambda m: "." + m.group(1)[:6].ljust(6, "0"), text, count=1)

    parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is None:
        raise ValueError(f"Horodatage sans fuseau: {value}")
    return parsed


def to_display_zone(moment: datetime) -> datetime:
    return moment.astimezone(ZoneInfo(DISPLAY_TIMEZONE))


def format_display(moment: Optional[datetime]) -> str:
    """Rend un horodatage dans le fuseau d'affichage, au format RFC 3339 à la seconde."""

    if moment is None:
        return ""
    return to_display_zone(moment).replace(microsecond=0).isoformat()
