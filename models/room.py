"""Datenmodell für einen Raum (Pydantic v2)."""

from typing import Optional

from pydantic import BaseModel, ConfigDict


class Room(BaseModel):
    """Repräsentiert einen Hörsaal oder Seminarraum."""

    model_config = ConfigDict(frozen=True)

    id: str                         # "R1", "H-204"
    name: str = ""                  # "Raum 1"
    capacity: Optional[int] = None  # Plätze (nur informativ)
