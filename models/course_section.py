"""Datenmodell für ein Lehrveranstaltungsangebot (Pydantic v2)."""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class CourseSection(BaseModel):
    """Ein einzuplanendes Angebot: Veranstaltung × Gruppe mit fester Lehrperson.

    credit_hours (SKS) bestimmt, wie viele aufeinanderfolgende Zeiteinheiten
    die Veranstaltung belegt.
    """

    model_config = ConfigDict(frozen=True)

    id: str                         # Angebots-/Jadwal-ID
    course_id: str                  # Veranstaltung ("MK-101")
    lecturer_id: str
    class_group_id: str
    program_id: str                 # Studiengang
    semester: int = Field(ge=1)
    credit_hours: int = Field(ge=1)
    session: Optional[str] = None   # Nur Slots dieses Abschnitts, z.B. "abend"

    @property
    def span(self) -> int:
        """Anzahl belegter Zeiteinheiten."""
        return self.credit_hours
