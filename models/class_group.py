"""Datenmodell für eine Studiengruppe (Pydantic v2)."""

from typing import Optional

from pydantic import BaseModel, ConfigDict


class ClassGroup(BaseModel):
    """Eine Studierendengruppe (Kohorte), deren Veranstaltungen sich nicht
    überschneiden dürfen, z.B. "IF-3A" (Informatik, 3. Semester, Gruppe A)."""

    model_config = ConfigDict(frozen=True)

    id: str
    program_id: Optional[str] = None
    semester: Optional[int] = None
