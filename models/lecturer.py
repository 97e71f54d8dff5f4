"""Datenmodell für eine Lehrperson mit Zeitwünschen (Pydantic v2)."""

from typing import Optional

from pydantic import BaseModel, ConfigDict, field_validator


class Lecturer(BaseModel):
    """Repräsentiert eine Dozentin / einen Dozenten.

    preferred_slots enthält die gewünschten (Tag, TimeSlot-ID)-Paare.
    has_preferences=False bedeutet: es liegt kein Präferenz-Datensatz vor,
    die Präferenzprüfung entfällt dann für diese Person.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    name: Optional[str] = None
    preferred_slots: tuple[tuple[int, str], ...] = ()
    has_preferences: bool = True

    @field_validator("preferred_slots", mode="before")
    @classmethod
    def _dedupe(cls, v):
        # Reihenfolge bleibt erhalten, Duplikate fliegen raus
        seen = set()
        result = []
        for day, slot_id in v:
            key = (int(day), str(slot_id))
            if key not in seen:
                seen.add(key)
                result.append(key)
        return tuple(result)

    def prefers(self, day: int, slot_id: str) -> bool:
        """True wenn (day, slot_id) gewünscht ist oder keine Wünsche vorliegen."""
        if not self.has_preferences:
            return True
        return (day, slot_id) in self.preferred_set

    @property
    def preferred_set(self) -> frozenset[tuple[int, str]]:
        return frozenset(self.preferred_slots)
