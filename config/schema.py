from pydantic import BaseModel, ConfigDict, Field, model_validator
from typing import Literal, Optional


def parse_hhmm(value: str) -> int:
    """Wandelt "HH:MM" in Minuten seit Mitternacht um."""
    hours, _, minutes = value.partition(":")
    if not hours.isdigit() or not minutes.isdigit():
        raise ValueError(f"Ungültige Uhrzeit '{value}' (erwartet HH:MM)")
    total = int(hours) * 60 + int(minutes)
    if not 0 <= total < 24 * 60 or int(minutes) >= 60:
        raise ValueError(f"Ungültige Uhrzeit '{value}'")
    return total


# ─── ZEITRASTER ───

class SessionDef(BaseModel):
    """Ein Tagesabschnitt (z.B. Vormittag oder Abend) mit festen Zeiteinheiten.

    Die Einheiten eines Abschnitts liegen lückenlos hintereinander.
    Zwischen zwei Abschnitten liegt eine Pause, über die keine
    Lehrveranstaltung hinweg geplant wird.
    """
    # Interner Name, z.B. "vormittag"
    name: str
    # Beginn der ersten Einheit im Format "HH:MM"
    start_time: str
    # Anzahl der Zeiteinheiten in diesem Abschnitt
    num_units: int = Field(ge=1, le=24)

    @model_validator(mode='after')
    def _check_start_time(self):
        parse_hhmm(self.start_time)
        return self


class TimeGridConfig(BaseModel):
    """Konfigurierbares Wochenraster.

    Aus Tagen × Abschnitten × Einheiten werden die TimeSlots erzeugt.
    Eine Veranstaltung mit n SKS belegt n aufeinanderfolgende Einheiten.
    """
    # Namen der Vorlesungstage
    day_names: list[str] = Field(
        default=["Mo", "Di", "Mi", "Do", "Fr"],
        description="Namen der Vorlesungstage")
    # Dauer einer Zeiteinheit (1 SKS) in Minuten
    unit_minutes: int = Field(40, ge=10, le=240,
        description="Dauer einer Zeiteinheit in Minuten")
    # Tagesabschnitte mit Beginn und Anzahl Einheiten
    sessions: list[SessionDef] = Field(
        description="Tagesabschnitte (Vormittag, Abend, ...)")

    @property
    def days_per_week(self) -> int:
        return len(self.day_names)

    @property
    def units_per_day(self) -> int:
        return sum(s.num_units for s in self.sessions)

    @model_validator(mode='after')
    def validate_sessions(self):
        """Prüfe, dass Abschnitte eindeutig benannt sind, sich nicht
        überschneiden und vor Mitternacht enden."""
        if not self.day_names:
            raise ValueError("Mindestens ein Vorlesungstag erforderlich")
        if not self.sessions:
            raise ValueError("Mindestens ein Tagesabschnitt erforderlich")
        names = [s.name for s in self.sessions]
        if len(set(names)) != len(names):
            raise ValueError(f"Abschnittsnamen nicht eindeutig: {names}")
        ranges = []
        for s in self.sessions:
            start = parse_hhmm(s.start_time)
            end = start + s.num_units * self.unit_minutes
            if end > 24 * 60:
                raise ValueError(f"Abschnitt '{s.name}' endet nach Mitternacht")
            ranges.append((start, end, s.name))
        ranges.sort()
        for (_, end_a, name_a), (start_b, _, name_b) in zip(ranges, ranges[1:]):
            if start_b < end_a:
                raise ValueError(
                    f"Abschnitte '{name_a}' und '{name_b}' überschneiden sich")
        return self


# ─── RÄUME ───

class RoomDef(BaseModel):
    """Ein Hörsaal oder Seminarraum."""
    id: str
    name: str = ""
    # Optional, wird für die Konfliktprüfung nicht verwendet
    capacity: Optional[int] = Field(None, ge=1)


class RoomConfig(BaseModel):
    """Raum-Konfiguration. Alle Räume sind für alle Veranstaltungen zulässig."""
    rooms: list[RoomDef] = Field(
        description="Verfügbare Räume")


# ─── OPTIMIERUNG ───

class OptimizationParams(BaseModel):
    """PSO-Parameter einer Optimierungsanfrage (unveränderlich)."""
    model_config = ConfigDict(frozen=True)

    # Anzahl Partikel im Schwarm
    swarm_size: int = Field(30, ge=1,
        description="Anzahl Partikel")
    # Iterationen pro Lauf
    max_iterations: int = Field(100, ge=1,
        description="Iterationen pro Lauf")
    # c1: Zug zum persönlichen Bestwert
    cognitive_weight: float = Field(2.0,
        description="Kognitives Gewicht c1")
    # c2: Zug zum globalen Bestwert
    social_weight: float = Field(2.0,
        description="Soziales Gewicht c2")
    # w: Trägheit der Geschwindigkeit
    inertia_weight: float = Field(0.7,
        description="Trägheitsgewicht w")
    # Unabhängige Läufe (jeweils frisch initialisierter Schwarm)
    num_runs: int = Field(1, ge=1,
        description="Anzahl unabhängiger Läufe")


class FitnessWeights(BaseModel):
    """Gewichte der Fitnessfunktion.

    fitness = harte_konflikte * weight_hard + präferenzkonflikte * weight_preference

    weight_hard muss größer als weight_preference sein, damit der Optimierer
    nie einen harten Konflikt gegen eine Präferenzverbesserung eintauscht.
    """
    model_config = ConfigDict(frozen=True)

    weight_hard: float = Field(100.0, gt=0,
        description="Gewicht: Raum-, Dozenten- und Gruppenkonflikte")
    weight_preference: float = Field(10.0, ge=0,
        description="Gewicht: Verletzte Zeitwünsche der Dozenten")

    @model_validator(mode='after')
    def _check_dominance(self):
        if self.weight_hard <= self.weight_preference:
            raise ValueError(
                f"weight_hard ({self.weight_hard}) muss größer sein als "
                f"weight_preference ({self.weight_preference})")
        return self


class EngineConfig(BaseModel):
    """Laufzeit-Einstellungen der Optimierungs-Engine."""
    # Threads für die Fitnessbewertung (0/1 = sequentiell)
    num_workers: int = Field(0, ge=0,
        description="Worker-Threads für die Bewertung (0=sequentiell)")
    # Puffergröße für Fortschrittsmeldungen (älteste werden verworfen)
    progress_queue_size: int = Field(256, ge=1,
        description="Maximale Anzahl gepufferter Fortschrittsmeldungen")
    # Fester Seed für reproduzierbare Läufe (None = Systementropie)
    seed: Optional[int] = Field(None, ge=0,
        description="Zufalls-Seed (leer = zufällig)")
    # Initialisierung der Partikelpositionen
    init_strategy: Literal["uniform", "latin_hypercube"] = Field("uniform",
        description="Startverteilung der Partikel")
    # Betrag der zufälligen Startgeschwindigkeit (0 = Start in Ruhe)
    initial_velocity: float = Field(1.0, ge=0,
        description="Maximale Startgeschwindigkeit je Dimension")


# ─── GESAMT-CONFIG ───

class PlannerConfig(BaseModel):
    """Gesamtkonfiguration des Vorlesungsplaners."""
    # Name der Hochschule bzw. Fakultät
    institution_name: str = Field("Muster-Hochschule",
        description="Name der Hochschule")
    # Wochenraster
    time_grid: TimeGridConfig
    # Räume
    rooms: RoomConfig
    # PSO-Standardparameter
    optimization: OptimizationParams = Field(default_factory=OptimizationParams)
    # Gewichte der Fitnessfunktion
    weights: FitnessWeights = Field(default_factory=FitnessWeights)
    # Laufzeit-Einstellungen
    engine: EngineConfig = Field(default_factory=EngineConfig)
