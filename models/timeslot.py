"""Datenmodell für einen Zeitslot im Wochenraster."""

from dataclasses import dataclass

from config.schema import TimeGridConfig, parse_hhmm


def format_minutes(minutes: int) -> str:
    """Minuten seit Mitternacht als "HH:MM"."""
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


@dataclass(frozen=True)
class TimeSlot:
    """Eine Zeiteinheit (1 SKS) im Wochenraster.

    Immutable (frozen=True) damit es als Dict-Key / Set-Element nutzbar ist.
    Slots sind global durchnummeriert (index); innerhalb eines Abschnitts
    schließen aufeinanderfolgende Slots lückenlos aneinander an.
    """

    # Eindeutiger Bezeichner, z.B. "0_1" (Mo, 1. Einheit)
    id: str
    # Wochentag (0-basiert)
    day: int
    # Globale laufende Nummer (0-basiert, sortiert nach Tag und Uhrzeit)
    index: int
    # Beginn / Ende in Minuten seit Mitternacht
    start_minute: int
    end_minute: int
    # Name des Tagesabschnitts ("vormittag", "abend", ...)
    session: str = ""
    day_name: str = ""

    @property
    def start_time(self) -> str:
        return format_minutes(self.start_minute)

    @property
    def end_time(self) -> str:
        return format_minutes(self.end_minute)

    def is_followed_by(self, other: "TimeSlot") -> bool:
        """True wenn `other` ohne Pause am selben Tag direkt anschließt."""
        return (
            other.day == self.day
            and other.session == self.session
            and other.start_minute == self.end_minute
        )

    def __repr__(self) -> str:
        return f"TimeSlot({self.id}, {self.day_name} {self.start_time}-{self.end_time})"

    def __str__(self) -> str:
        return f"{self.day_name} {self.start_time}"


def build_time_slots(time_grid: TimeGridConfig) -> list[TimeSlot]:
    """Erzeugt alle TimeSlots aus dem Zeitraster (Tag für Tag, chronologisch)."""
    sessions = sorted(time_grid.sessions, key=lambda s: parse_hhmm(s.start_time))
    slots: list[TimeSlot] = []
    for day, day_name in enumerate(time_grid.day_names):
        unit_no = 0
        for session in sessions:
            start = parse_hhmm(session.start_time)
            for unit in range(session.num_units):
                unit_no += 1
                begin = start + unit * time_grid.unit_minutes
                slots.append(TimeSlot(
                    id=f"{day}_{unit_no}",
                    day=day,
                    index=len(slots),
                    start_minute=begin,
                    end_minute=begin + time_grid.unit_minutes,
                    session=session.name,
                    day_name=day_name,
                ))
    return slots
